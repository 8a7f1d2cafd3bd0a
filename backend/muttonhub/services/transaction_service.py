# Overview: Service-layer operations for buyer/seller transactions; creation, listing and settlement.

"""
Transactions and Settlement

WHY: A transaction is agreed once and then paid in parts. Creation and
every settlement must leave remaining_balance = total_amount - paid_amount,
and each write is followed by one audit entry.

DESIGN:
- Buyer totals are entered; seller totals are weight x price, computed here
  once and stored
- Settlement is read, compute, conditional write: the update only matches
  if paid_amount still has the value that was read. A concurrent settlement
  makes the match fail and raises SettlementConflictError instead of
  silently overwriting the other payment
- The audit write is a separate call after the mutation; its failure is
  logged by the audit service and does not undo the mutation
- Amount validation is a numeric parse only. Zero, negative and
  overpaying amounts are accepted and show up as the resulting balance
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..gateway import eq, get_gateway, gte, lte
from ..time_utils import today
from ..validation import (
    ConflictError,
    ValidationError,
    parse_choice,
    parse_date_field,
    parse_decimal,
    parse_integer,
)
from . import audit_service, party_service
from .party_service import BUYERS, SELLERS, Side
from .settlement_service import money, remaining_balance, seller_total, settle, weight


PAYMENT_MODES = ("cash", "upi", "bank_transfer")
DEFAULT_PAYMENT_MODE = "cash"


class TransactionNotFoundError(Exception):
    """Transaction does not exist (or is not visible to the caller)."""
    pass


class SettlementConflictError(ConflictError):
    """The transaction was settled by someone else between read and write."""
    pass


# =============================================================================
# READS
# =============================================================================


def list_transactions(side: Side, start: Optional[date] = None, end: Optional[date] = None) -> list:
    """Transactions for a side, newest entry_date first, party embedded."""
    filters = []
    if start:
        filters.append(gte("entry_date", start))
    if end:
        filters.append(lte("entry_date", end))
    rows = get_gateway().select(
        side.transaction_table,
        filters=filters,
        order_by="entry_date",
        descending=True,
        embed=side.profile_table,
    )
    return [side.record.from_row(row) for row in rows]


def get_transaction(side: Side, transaction_id):
    rows = get_gateway().select(
        side.transaction_table,
        filters=[eq("id", transaction_id)],
        embed=side.profile_table,
    )
    if not rows:
        raise TransactionNotFoundError(f"{side.label} transaction {transaction_id} not found")
    return side.record.from_row(rows[0])


def search_transactions(transactions: Iterable, term: Optional[str]) -> list:
    """Match on the embedded party: name case-insensitive, phone substring."""
    transactions = list(transactions)
    needle = (term or "").strip()
    if not needle:
        return transactions
    lowered = needle.lower()
    matches = []
    for txn in transactions:
        party = txn.party
        if party is None:
            continue
        if lowered in (party.name or "").lower() or needle in (party.phone or ""):
            matches.append(txn)
    return matches


# =============================================================================
# CREATE
# =============================================================================


def _common_fields(side: Side, payload: dict) -> dict:
    party_id = payload.get(side.party_key)
    if party_id in (None, ""):
        raise ValidationError(f"{side.party_key} is required")
    if party_service.get_profile(side, party_id) is None:
        raise ValidationError(f"{side.party_key} does not match an existing {side.label.lower()}")

    entry_date = parse_date_field(payload.get("entry_date"), "entry_date") or today()
    payment_mode = parse_choice(
        payload.get("payment_mode") or DEFAULT_PAYMENT_MODE, "payment_mode", PAYMENT_MODES
    )
    paid_raw = payload.get("paid_amount")
    paid_amount = money(parse_decimal(paid_raw, "paid_amount")) if paid_raw not in (None, "") else money(0)

    return {
        side.party_key: party_id,
        "entry_date": entry_date,
        "paid_amount": paid_amount,
        "payment_mode": payment_mode,
    }


def build_buyer_transaction(payload: dict) -> dict:
    """Validated buyer_transactions row from form input."""
    row = _common_fields(BUYERS, payload)
    total_amount = money(parse_decimal(payload.get("total_amount"), "total_amount"))
    row.update({
        "number_of_goats": parse_integer(payload.get("number_of_goats"), "number_of_goats"),
        "total_amount": total_amount,
        "remaining_balance": remaining_balance(total_amount, row["paid_amount"]),
    })
    return row


def build_seller_transaction(payload: dict) -> dict:
    """Validated seller_transactions row; total_amount = weight x price."""
    row = _common_fields(SELLERS, payload)
    total_weight = weight(parse_decimal(payload.get("total_weight"), "total_weight"))
    price_per_kg = money(parse_decimal(payload.get("price_per_kg"), "price_per_kg"))
    total_amount = seller_total(total_weight, price_per_kg)
    row.update({
        "total_weight": total_weight,
        "price_per_kg": price_per_kg,
        "total_amount": total_amount,
        "remaining_balance": remaining_balance(total_amount, row["paid_amount"]),
    })
    return row


def create_transaction(side: Side, payload: dict):
    """
    Validate, insert, then audit CREATE with the inserted values.

    Raises ValidationError on bad input and GatewayError if the insert
    fails (no audit entry is written in that case).
    """
    payload = payload or {}
    if side is BUYERS:
        row = build_buyer_transaction(payload)
    else:
        row = build_seller_transaction(payload)

    inserted = get_gateway().insert(side.transaction_table, row)
    audit_service.log_action(audit_service.ACTION_CREATE, side.transaction_table, None, row)
    return side.record.from_row(inserted)


# =============================================================================
# SETTLEMENT
# =============================================================================


def settle_transaction(side: Side, transaction_id, amount):
    """
    Record a payment against a transaction.

    1. Parse the amount (numeric only)
    2. Read the current paid/total
    3. Conditional update matching id and the paid_amount that was read
    4. Audit UPDATE with before/after {paid_amount, remaining_balance}

    Raises:
        ValidationError: amount is not a number
        TransactionNotFoundError: no such transaction
        SettlementConflictError: paid_amount changed since it was read
        GatewayError: the read or write failed
    """
    payment = money(parse_decimal(amount, "amount"))
    current = get_transaction(side, transaction_id)

    result = settle(current.total_amount, current.paid_amount, payment)
    new_values = {
        "paid_amount": result.paid_amount,
        "remaining_balance": result.remaining_balance,
    }

    updated = get_gateway().update(
        side.transaction_table,
        new_values,
        match={"id": current.id, "paid_amount": current.paid_amount},
    )
    if not updated:
        raise SettlementConflictError(
            f"{side.label} transaction {transaction_id} was changed by another user; reload and try again"
        )

    audit_service.log_action(
        audit_service.ACTION_UPDATE,
        side.transaction_table,
        {"paid_amount": current.paid_amount, "remaining_balance": current.remaining_balance},
        new_values,
    )

    row = dict(updated[0])
    row[side.profile_table] = current.party.to_dict() if current.party else None
    return side.record.from_row(row)
