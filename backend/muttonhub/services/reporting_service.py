# Overview: Service-layer aggregation for date-range reports and dashboard tiles.

"""
Reports

WHY: The owner needs to know, for a period, how much was bought and sold,
how much of it has been paid and what is still pending on each side.

DESIGN:
- Date range is inclusive on entry_date; both ends default to today
- All rows in range are fetched and reduced in memory (no pagination;
  volumes are a few hundred rows per month)
- Net Position = sum(seller total_amount) - sum(buyer total_amount)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..gateway import get_gateway
from ..time_utils import today
from ..validation import ValidationError, parse_date_field
from . import transaction_service
from .party_service import BUYERS, SELLERS
from .settlement_service import money, weight


class ReportError(ValidationError):
    """Invalid report request (bad or inverted date range)."""
    pass


@dataclass
class SideSummary:
    count: int = 0
    total_amount: Decimal = field(default_factory=lambda: money(0))
    paid_amount: Decimal = field(default_factory=lambda: money(0))
    remaining_balance: Decimal = field(default_factory=lambda: money(0))

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_amount": float(self.total_amount),
            "paid_amount": float(self.paid_amount),
            "remaining_balance": float(self.remaining_balance),
        }


@dataclass
class TransactionReport:
    start: date
    end: date
    buyer_transactions: list
    seller_transactions: list
    buyers: SideSummary
    sellers: SideSummary

    @property
    def net_position(self) -> Decimal:
        return net_position(self.buyers, self.sellers)

    @property
    def total_seller_weight(self) -> Decimal:
        return sum((weight(t.total_weight) for t in self.seller_transactions), weight(0))

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "buyers": self.buyers.to_dict(),
            "sellers": self.sellers.to_dict(),
            "overall": {
                "count": self.buyers.count + self.sellers.count,
                "total_amount": float(self.buyers.total_amount + self.sellers.total_amount),
                "paid_amount": float(self.buyers.paid_amount + self.sellers.paid_amount),
                "remaining_balance": float(self.buyers.remaining_balance + self.sellers.remaining_balance),
            },
            "net_position": float(self.net_position),
            "buyer_transactions": [t.to_dict() for t in self.buyer_transactions],
            "seller_transactions": [t.to_dict() for t in self.seller_transactions],
        }


def summarize(transactions: Iterable) -> SideSummary:
    summary = SideSummary()
    for txn in transactions:
        summary.count += 1
        summary.total_amount += money(txn.total_amount)
        summary.paid_amount += money(txn.paid_amount)
        summary.remaining_balance += money(txn.remaining_balance)
    return summary


def net_position(buyers: SideSummary, sellers: SideSummary) -> Decimal:
    return sellers.total_amount - buyers.total_amount


def parse_range(start_raw=None, end_raw=None) -> tuple[date, date]:
    """Inclusive [start, end]; missing ends default to today."""
    try:
        start = parse_date_field(start_raw, "start") or today()
        end = parse_date_field(end_raw, "end") or today()
    except ValidationError as e:
        raise ReportError(str(e)) from e
    if start > end:
        raise ReportError("start must be on or before end")
    return start, end


def transaction_report(start: Optional[date] = None, end: Optional[date] = None) -> TransactionReport:
    start = start or today()
    end = end or today()
    buyer_txns = transaction_service.list_transactions(BUYERS, start, end)
    seller_txns = transaction_service.list_transactions(SELLERS, start, end)
    return TransactionReport(
        start=start,
        end=end,
        buyer_transactions=buyer_txns,
        seller_transactions=seller_txns,
        buyers=summarize(buyer_txns),
        sellers=summarize(seller_txns),
    )


def dashboard_summary() -> dict:
    """
    Dashboard tiles: profile counts plus paid/pending per side.

    pending = total - paid over all transactions on that side.
    """
    gateway = get_gateway()
    tiles = {
        "buyer_count": gateway.count(BUYERS.profile_table),
        "seller_count": gateway.count(SELLERS.profile_table),
    }
    for side in (BUYERS, SELLERS):
        rows = gateway.select(side.transaction_table, columns="total_amount, paid_amount")
        total = sum((money(r.get("total_amount")) for r in rows), money(0))
        paid = sum((money(r.get("paid_amount")) for r in rows), money(0))
        tiles[f"{side.key}_paid"] = float(paid)
        tiles[f"{side.key}_pending"] = float(total - paid)
    return tiles
