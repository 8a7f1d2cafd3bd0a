# Overview: Service-layer operations for the audit trail; best-effort writes and filtered reads.

"""
Audit Logger

WHY: Settlements change what a counterparty owes. Each transaction
mutation records a before/after snapshot and the acting user so the owner
can reconstruct who changed what.

DESIGN:
- Called only from transaction creation and settlement; profile creation
  and role changes are not audited
- Best-effort: identity lookup or insert failures are logged and swallowed,
  never failing or rolling back the triggering action
- Snapshots are stored JSON-safe (numbers and ISO strings)
- The timestamp is assigned by the store, not by the caller
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from flask import current_app

from ..gateway import eq, get_gateway, gte, lte
from ..records import AuditLogEntry
from ..time_utils import end_of_day


ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"
ACTIONS = (ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE)

AUDIT_TABLE = "audit_logs"


def snapshot(values: Optional[dict]) -> Optional[dict]:
    """JSON-safe copy of a row fragment (Decimal -> number, dates -> ISO)."""
    if values is None:
        return None
    out = {}
    for key, value in values.items():
        if isinstance(value, Decimal):
            out[key] = float(value)
        elif isinstance(value, (datetime, date)):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


def log_action(
    action: str,
    table_name: str,
    old_values: Optional[dict],
    new_values: Optional[dict],
) -> bool:
    """
    Record one audit entry for the current session's user.

    Returns True if the entry was written. Never raises.
    """
    try:
        gateway = get_gateway()
        identity = gateway.current_user()
        gateway.insert(AUDIT_TABLE, {
            "action": action,
            "table_name": table_name,
            "old_values": snapshot(old_values),
            "new_values": snapshot(new_values),
            "user_id": identity.id if identity else None,
        })
        return True
    except Exception:
        current_app.logger.warning(
            "Audit write failed for %s on %s", action, table_name, exc_info=True
        )
        return False


def list_logs(
    *,
    action: Optional[str] = None,
    table_name: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> list[AuditLogEntry]:
    """
    Audit entries newest first, with the actor's role embedded.

    date_to is inclusive through 23:59:59 of that day.
    """
    filters = []
    if action:
        filters.append(eq("action", action))
    if table_name:
        filters.append(eq("table_name", table_name))
    if date_from:
        filters.append(gte("created_at", datetime.combine(date_from, datetime.min.time())))
    if date_to:
        filters.append(lte("created_at", end_of_day(date_to)))

    rows = get_gateway().select(
        AUDIT_TABLE,
        filters=filters,
        order_by="created_at",
        descending=True,
        embed="user_roles",
    )
    return [AuditLogEntry.from_row(row) for row in rows]
