# Overview: Spreadsheet (.xlsx) exports for transactions, reports, audit logs and profile lists.

"""
Export Formatter

Each export builds an openpyxl workbook in memory and returns
(filename, bytes) for the route to send as an attachment.

Layout per export:
- Data sheet: styled header row, one row per record
- Summary sheet (transaction exports): key/value rows, title first,
  blank separators, then Date Range and Generated On
"""

from __future__ import annotations

import json
from datetime import date
from io import BytesIO
from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .reporting_service import TransactionReport, net_position, summarize
from .settlement_service import weight
from ..time_utils import today, utcnow


XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

BUYER_HEADERS = [
    "Date", "Buyer Name", "Buyer Phone", "Number of Goats",
    "Total Amount", "Paid Amount", "Remaining Balance", "Payment Mode", "Status",
]
SELLER_HEADERS = [
    "Date", "Seller Name", "Seller Phone", "Weight (KG)", "Price per KG",
    "Total Amount", "Paid Amount", "Remaining Balance", "Payment Mode", "Status",
]
COMBINED_HEADERS = [
    "Type", "Date", "Party Name", "Party Phone", "Details",
    "Amount", "Paid", "Remaining", "Payment Mode", "Status",
]
AUDIT_HEADERS = ["Date", "Time", "Action", "Table", "User Role", "Old Values", "New Values"]
PROFILE_HEADERS = ["Name", "Phone", "Address", "Created Date"]

# ---------- Styles ----------
HEADER_FILL = PatternFill("solid", fgColor="00B0F0")
HEADER_FONT = Font(bold=True)
TITLE_FONT = Font(bold=True, size=13)
CENTER = Alignment(horizontal="center", vertical="center")
THIN = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)


def _number(value):
    return float(value) if value is not None else None


def _party(txn) -> tuple[str, str]:
    party = txn.party
    if party is None:
        return "Unknown", ""
    return party.name or "Unknown", party.phone or ""


def _write_table(ws, headers: list[str], rows: Iterable[list]) -> None:
    for col, title in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col, value=title)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = CENTER
        cell.border = THIN
        ws.column_dimensions[get_column_letter(col)].width = 18

    for i, values in enumerate(rows, start=2):
        for col, value in enumerate(values, start=1):
            ws.cell(i, col, value).border = THIN


def _write_summary(ws, rows: list[list]) -> None:
    for i, values in enumerate(rows, start=1):
        for col, value in enumerate(values, start=1):
            ws.cell(i, col, value)
    ws["A1"].font = TITLE_FONT
    ws.column_dimensions["A"].width = 28
    ws.column_dimensions["B"].width = 28


def _save(wb: Workbook) -> bytes:
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _footer(start: date, end: date) -> list[list]:
    return [
        [""],
        ["Date Range", f"{start.isoformat()} to {end.isoformat()}"],
        ["Generated On", utcnow().strftime("%Y-%m-%d %H:%M:%S")],
    ]


def _totals_rows(summary) -> list[list]:
    return [
        ["Total Transactions", summary.count],
        ["Total Amount", _number(summary.total_amount)],
        ["Total Paid", _number(summary.paid_amount)],
        ["Total Pending", _number(summary.remaining_balance)],
    ]


# =============================================================================
# ROW BUILDERS
# =============================================================================


def buyer_row(txn) -> list:
    name, phone = _party(txn)
    return [
        txn.entry_date, name, phone, txn.number_of_goats,
        _number(txn.total_amount), _number(txn.paid_amount), _number(txn.remaining_balance),
        txn.payment_mode, txn.status,
    ]


def seller_row(txn) -> list:
    name, phone = _party(txn)
    return [
        txn.entry_date, name, phone, _number(txn.total_weight), _number(txn.price_per_kg),
        _number(txn.total_amount), _number(txn.paid_amount), _number(txn.remaining_balance),
        txn.payment_mode, txn.status,
    ]


def combined_buyer_row(txn) -> list:
    name, phone = _party(txn)
    return [
        "Purchase", txn.entry_date, name, phone, f"{txn.number_of_goats} goats",
        _number(txn.total_amount), _number(txn.paid_amount), _number(txn.remaining_balance),
        txn.payment_mode, txn.status,
    ]


def combined_seller_row(txn) -> list:
    name, phone = _party(txn)
    return [
        "Sale", txn.entry_date, name, phone, f"{txn.total_weight} KG @ ₹{txn.price_per_kg}/KG",
        _number(txn.total_amount), _number(txn.paid_amount), _number(txn.remaining_balance),
        txn.payment_mode, txn.status,
    ]


# =============================================================================
# EXPORTS
# =============================================================================


def export_buyer_transactions(transactions: list, start: date, end: date) -> tuple[str, bytes]:
    wb = Workbook()
    ws = wb.active
    ws.title = "Buyer Transactions"
    _write_table(ws, BUYER_HEADERS, (buyer_row(t) for t in transactions))

    summary = summarize(transactions)
    _write_summary(
        wb.create_sheet("Summary"),
        [["Buyer Transactions Summary"], [""]] + _totals_rows(summary) + _footer(start, end),
    )
    return f"buyer-transactions-{start.isoformat()}-to-{end.isoformat()}.xlsx", _save(wb)


def export_seller_transactions(transactions: list, start: date, end: date) -> tuple[str, bytes]:
    wb = Workbook()
    ws = wb.active
    ws.title = "Seller Transactions"
    _write_table(ws, SELLER_HEADERS, (seller_row(t) for t in transactions))

    summary = summarize(transactions)
    total_weight = sum((weight(t.total_weight) for t in transactions), weight(0))
    _write_summary(
        wb.create_sheet("Summary"),
        [["Seller Transactions Summary"], [""]]
        + _totals_rows(summary)
        + [["Total Weight (KG)", _number(total_weight)]]
        + _footer(start, end),
    )
    return f"seller-transactions-{start.isoformat()}-to-{end.isoformat()}.xlsx", _save(wb)


def export_combined_report(report: TransactionReport) -> tuple[str, bytes]:
    wb = Workbook()
    ws = wb.active
    ws.title = "Buyer Transactions"
    _write_table(ws, COMBINED_HEADERS, (combined_buyer_row(t) for t in report.buyer_transactions))
    _write_table(
        wb.create_sheet("Seller Transactions"),
        COMBINED_HEADERS,
        (combined_seller_row(t) for t in report.seller_transactions),
    )

    buyers, sellers = report.buyers, report.sellers
    rows = [
        ["Mutton Hub - Combined Report Summary"],
        [""],
        ["BUYER TRANSACTIONS"],
        *_totals_rows(buyers),
        [""],
        ["SELLER TRANSACTIONS"],
        *_totals_rows(sellers),
        [""],
        ["OVERALL SUMMARY"],
        ["Total Transactions", buyers.count + sellers.count],
        ["Total Amount", _number(buyers.total_amount + sellers.total_amount)],
        ["Total Paid", _number(buyers.paid_amount + sellers.paid_amount)],
        ["Total Pending", _number(buyers.remaining_balance + sellers.remaining_balance)],
        ["Net Position", _number(net_position(buyers, sellers))],
    ] + _footer(report.start, report.end)
    _write_summary(wb.create_sheet("Summary"), rows)

    return f"combined-report-{report.start.isoformat()}-to-{report.end.isoformat()}.xlsx", _save(wb)


def export_audit_logs(entries: list) -> tuple[str, bytes]:
    wb = Workbook()
    ws = wb.active
    ws.title = "Audit Logs"

    def _row(entry) -> list:
        created = entry.created_at
        return [
            created.date() if created else None,
            created.strftime("%H:%M:%S") if created else None,
            entry.action,
            entry.table_name,
            entry.user_role or "Unknown",
            json.dumps(entry.old_values, indent=2) if entry.old_values else "",
            json.dumps(entry.new_values, indent=2) if entry.new_values else "",
        ]

    _write_table(ws, AUDIT_HEADERS, (_row(e) for e in entries))
    return f"audit-logs-{today().isoformat()}.xlsx", _save(wb)


def export_profiles(side_key: str, profiles: list) -> tuple[str, bytes]:
    """Buyers or sellers list; side_key is 'buyers' or 'sellers'."""
    wb = Workbook()
    ws = wb.active
    ws.title = side_key.capitalize()
    _write_table(
        ws,
        PROFILE_HEADERS,
        (
            [p.name, p.phone, p.address, p.created_at.date() if p.created_at else None]
            for p in profiles
        ),
    )
    return f"{side_key}-list-{today().isoformat()}.xlsx", _save(wb)
