from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Integer, Numeric, String, Text

from .time_utils import parse_iso_date, parse_iso_datetime


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level conflict (e.g., a row changed between read and write)."""


# =============================================================================
# FORM FIELDS
# =============================================================================


def require_text(payload: dict, field: str) -> str:
    """Return a stripped, non-empty string field or raise."""
    raw = payload.get(field)
    if raw is None:
        raise ValidationError(f"{field} is required")
    value = str(raw).strip()
    if not value:
        raise ValidationError(f"{field} cannot be blank")
    return value


def optional_text(payload: dict, field: str) -> str | None:
    raw = payload.get(field)
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def parse_decimal(value: Any, field: str) -> Decimal:
    """
    Generic numeric parse for amounts and weights.

    Accepts ints, floats, Decimals and numeric strings. Rejects booleans,
    blanks, NaN and infinities. Sign and magnitude are not checked here.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            raise ValidationError(f"{field} must be a number")
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    if not parsed.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return parsed


def parse_integer(value: Any, field: str) -> int:
    """Strict integer parse (no decimals, no scientific notation)."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def parse_date_field(value: Any, field: str) -> date | None:
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")


def parse_choice(value: Any, field: str, choices) -> str:
    text = str(value).strip() if value is not None else ""
    if text not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
    return text


# =============================================================================
# COLUMN COERCION (sql gateway)
# =============================================================================


def coerce_column_value(col, value: Any):
    """
    Coerce a gateway value (JSON primitives or Python types) to what the
    SQLAlchemy column expects.
    """
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, JSON):
        return value

    if isinstance(coltype, Integer):
        return parse_integer(value, col.key)

    if isinstance(coltype, Numeric):
        return parse_decimal(value, col.key)

    # DateTime before Date: some dialect types subclass both
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())
        try:
            dt = parse_iso_datetime(str(value))
        except ValueError:
            raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
        if dt is None:
            raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
        return dt

    if isinstance(coltype, Date):
        parsed = parse_date_field(value, col.key)
        if parsed is None:
            raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
        return parsed

    if isinstance(coltype, (String, Text)):
        text = str(value).strip()
        if isinstance(coltype, String) and coltype.length and len(text) > coltype.length:
            raise ValidationError(f"{col.key} exceeds max length {coltype.length}")
        return text

    return value
