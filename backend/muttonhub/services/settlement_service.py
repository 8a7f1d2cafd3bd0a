# Overview: Pure settlement arithmetic for partial payments; no I/O.

"""
Settlement Calculator

WHY: Every transaction is settled in parts. The balance shown to the user
must always equal what was agreed minus what was paid, so the arithmetic
lives in one place and is used by both creation and settlement.

DESIGN:
- Money is Decimal quantized to two places (ROUND_HALF_UP)
- Weights keep three places (kilograms to the gram)
- Seller totals are computed once at creation and stored; later edits to
  weight or price (none exist today) would not recompute them
- No guard against overpayment or non-positive amounts: a negative
  remaining balance is a valid, visible state
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


TWOPLACES = Decimal("0.01")
THREEPLACES = Decimal("0.001")

PENDING = "Pending"
PAID = "Paid"


def money(v) -> Decimal:
    return Decimal(str(v if v is not None else "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def weight(v) -> Decimal:
    return Decimal(str(v if v is not None else "0")).quantize(THREEPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class SettlementResult:
    paid_amount: Decimal
    remaining_balance: Decimal

    @property
    def status(self) -> str:
        return payment_status(self.remaining_balance)


def remaining_balance(total_amount, paid_amount) -> Decimal:
    return money(total_amount) - money(paid_amount)


def seller_total(total_weight, price_per_kg) -> Decimal:
    """total_amount for a sale: weight (kg) x price per kg."""
    return money(weight(total_weight) * money(price_per_kg))


def settle(total_amount, paid_amount, amount) -> SettlementResult:
    """
    Apply one payment against a transaction.

    new_paid = paid + amount; new_remaining = total - new_paid.
    """
    new_paid = money(paid_amount) + money(amount)
    return SettlementResult(
        paid_amount=new_paid,
        remaining_balance=money(total_amount) - new_paid,
    )


def payment_status(remaining) -> str:
    return PENDING if money(remaining) > 0 else PAID
