# Overview: Service-layer operations for buyer and seller profiles.

"""
Party Profiles

Buyers and sellers share one shape (name, phone, address) and one set of
operations; a Side describes where each lives and how its transactions
refer to it.

Profiles are append-only here and are not audited.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..gateway import eq, get_gateway
from ..records import BuyerTransaction, Party, SellerTransaction
from ..validation import optional_text, require_text


@dataclass(frozen=True)
class Side:
    key: str                 # URL segment and navigation section
    label: str               # singular, for messages and export titles
    profile_table: str
    transaction_table: str
    party_key: str           # FK column on the transaction table
    record: type             # transaction record class


BUYERS = Side(
    key="buyers",
    label="Buyer",
    profile_table="buyers",
    transaction_table="buyer_transactions",
    party_key="buyer_id",
    record=BuyerTransaction,
)

SELLERS = Side(
    key="sellers",
    label="Seller",
    profile_table="sellers",
    transaction_table="seller_transactions",
    party_key="seller_id",
    record=SellerTransaction,
)

SIDES = {BUYERS.key: BUYERS, SELLERS.key: SELLERS}


def list_profiles(side: Side) -> list[Party]:
    """All profiles for a side, newest first."""
    rows = get_gateway().select(side.profile_table, order_by="created_at", descending=True)
    return [Party.from_row(row) for row in rows]


def get_profile(side: Side, profile_id) -> Optional[Party]:
    rows = get_gateway().select(side.profile_table, filters=[eq("id", profile_id)])
    return Party.from_row(rows[0]) if rows else None


def create_profile(side: Side, payload: dict) -> Party:
    """
    Insert a profile. name and phone are required; address is optional.

    Raises ValidationError on bad input, GatewayError if the store refuses.
    """
    payload = payload or {}
    row = {
        "name": require_text(payload, "name"),
        "phone": require_text(payload, "phone"),
        "address": optional_text(payload, "address"),
    }
    return Party.from_row(get_gateway().insert(side.profile_table, row))


def search_profiles(profiles: Iterable[Party], term: Optional[str]) -> list[Party]:
    """Case-insensitive match on name, substring match on phone."""
    profiles = list(profiles)
    needle = (term or "").strip()
    if not needle:
        return profiles
    lowered = needle.lower()
    return [
        p for p in profiles
        if lowered in (p.name or "").lower() or needle in (p.phone or "")
    ]
