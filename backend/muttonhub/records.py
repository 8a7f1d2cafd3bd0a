# Overview: Typed views of gateway rows (profiles, transactions, audit entries, role assignments).

"""
Domain records

WHY: Gateway rows are loose dicts whose fields may be absent or null
(embedded relations, legacy rows, column-restricted selects). Each record
declares which fields are optional and normalizes the rest once, so views
never guess.

DESIGN:
- from_row() tolerates missing keys; amounts default to 0.00
- to_dict() is the JSON shape returned by the API (money as numbers)
- Transactions carry the embedded party (name/phone) when it was selected
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from .services.settlement_service import money, payment_status, weight
from .time_utils import parse_iso_date, parse_iso_datetime, to_iso_date, to_utc_z


def _datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return parse_iso_datetime(str(value))


def _date(value) -> Optional[date]:
    return parse_iso_date(value)


def _int(value) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def _number(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


# =============================================================================
# PROFILES
# =============================================================================


@dataclass
class PartyRef:
    """Embedded buyer/seller fields on a transaction row."""
    name: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_row(cls, row: Optional[dict]) -> Optional["PartyRef"]:
        if not row:
            return None
        return cls(name=row.get("name"), phone=row.get("phone"))

    def to_dict(self) -> dict:
        return {"name": self.name, "phone": self.phone}


@dataclass
class Party:
    """A buyer or seller profile."""
    id: Any
    name: str
    phone: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Party":
        return cls(
            id=row.get("id"),
            name=row.get("name") or "",
            phone=row.get("phone") or "",
            address=row.get("address"),
            created_at=_datetime(row.get("created_at")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


# =============================================================================
# TRANSACTIONS
# =============================================================================


@dataclass
class _TransactionBase:
    id: Any
    entry_date: Optional[date]
    total_amount: Decimal
    paid_amount: Decimal
    remaining_balance: Decimal
    payment_mode: Optional[str]
    created_at: Optional[datetime]

    @property
    def status(self) -> str:
        return payment_status(self.remaining_balance)

    def _base_dict(self) -> dict:
        return {
            "id": self.id,
            "entry_date": to_iso_date(self.entry_date),
            "total_amount": _number(self.total_amount),
            "paid_amount": _number(self.paid_amount),
            "remaining_balance": _number(self.remaining_balance),
            "payment_mode": self.payment_mode,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }

    @staticmethod
    def _base_fields(row: dict) -> dict:
        return {
            "id": row.get("id"),
            "entry_date": _date(row.get("entry_date")),
            "total_amount": money(row.get("total_amount")),
            "paid_amount": money(row.get("paid_amount")),
            "remaining_balance": money(row.get("remaining_balance")),
            "payment_mode": row.get("payment_mode"),
            "created_at": _datetime(row.get("created_at")),
        }


@dataclass
class BuyerTransaction(_TransactionBase):
    """A purchase of goats from a buyer-side counterparty."""
    buyer_id: Any = None
    number_of_goats: Optional[int] = None
    buyer: Optional[PartyRef] = None

    @property
    def party(self) -> Optional[PartyRef]:
        return self.buyer

    @classmethod
    def from_row(cls, row: dict) -> "BuyerTransaction":
        return cls(
            **cls._base_fields(row),
            buyer_id=row.get("buyer_id"),
            number_of_goats=_int(row.get("number_of_goats")),
            buyer=PartyRef.from_row(row.get("buyers")),
        )

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "buyer_id": self.buyer_id,
            "number_of_goats": self.number_of_goats,
            "buyer": self.buyer.to_dict() if self.buyer else None,
        })
        return data


@dataclass
class SellerTransaction(_TransactionBase):
    """A sale of meat by weight to a seller-side counterparty."""
    seller_id: Any = None
    total_weight: Optional[Decimal] = None
    price_per_kg: Optional[Decimal] = None
    seller: Optional[PartyRef] = None

    @property
    def party(self) -> Optional[PartyRef]:
        return self.seller

    @classmethod
    def from_row(cls, row: dict) -> "SellerTransaction":
        raw_weight = row.get("total_weight")
        raw_price = row.get("price_per_kg")
        return cls(
            **cls._base_fields(row),
            seller_id=row.get("seller_id"),
            total_weight=weight(raw_weight) if raw_weight is not None else None,
            price_per_kg=money(raw_price) if raw_price is not None else None,
            seller=PartyRef.from_row(row.get("sellers")),
        )

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "seller_id": self.seller_id,
            "total_weight": _number(self.total_weight),
            "price_per_kg": _number(self.price_per_kg),
            "seller": self.seller.to_dict() if self.seller else None,
        })
        return data


# =============================================================================
# AUDIT / ROLES
# =============================================================================


@dataclass
class AuditLogEntry:
    id: Any
    action: str
    table_name: str
    old_values: Optional[dict] = None
    new_values: Optional[dict] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    user_role: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "AuditLogEntry":
        embedded = row.get("user_roles") or {}
        return cls(
            id=row.get("id"),
            action=row.get("action") or "",
            table_name=row.get("table_name") or "",
            old_values=row.get("old_values"),
            new_values=row.get("new_values"),
            user_id=row.get("user_id"),
            created_at=_datetime(row.get("created_at")),
            user_role=embedded.get("role"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "table_name": self.table_name,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "user_id": self.user_id,
            "user_role": self.user_role,
            "created_at": to_utc_z(self.created_at),
        }


@dataclass
class UserRoleAssignment:
    user_id: str
    role: str
    created_at: Optional[datetime] = None
    email: Optional[str] = None
    user_created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "UserRoleAssignment":
        user = row.get("users") or {}
        return cls(
            user_id=row.get("user_id"),
            role=row.get("role") or "",
            created_at=_datetime(row.get("created_at")),
            email=user.get("email"),
            user_created_at=_datetime(user.get("created_at")),
            last_sign_in_at=_datetime(user.get("last_sign_in_at")),
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
            "email": self.email,
            "user_created_at": to_utc_z(self.user_created_at),
            "last_sign_in_at": to_utc_z(self.last_sign_in_at),
        }
