"""Coercion of client-supplied form values.

Helpers that reject input raise ValueError; services turn
it into a ValidationError naming the field.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y")

# Numeric(12, 2) holds at most 10 integer digits.
MAX_MONEY = Decimal("1e10")


def parse_date(value):
    """``date`` from ISO (date or datetime) or DD.MM.YYYY text; None if unparseable."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def parse_date_input(value):
    """Like parse_date, but malformed text is an error rather than None."""
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError("Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY.")
    return parsed


def parse_money(value, field: str = "amount") -> Decimal:
    """Coerce a client-supplied amount to Decimal; empty → 0.

    Raises ValueError naming *field* when the value is not a finite number
    that fits a Numeric(12, 2) column.
    """
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        raise ValueError(f"{field} must be numeric")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"{field} must be numeric") from exc
    if not amount.is_finite() or abs(amount) >= MAX_MONEY:
        raise ValueError(f"{field} must be numeric")
    return amount


def parse_optional_id(value, field: str = "id") -> int | None:
    """Coerce an optional id; empty → None, non-integer → ValueError."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field} must be an integer") from exc


def parse_id_list(value, field: str = "ids") -> list[int]:
    """Coerce a list of ids, preserving order.

    Accepts None (→ []) or a list/tuple of ints or digit strings. Anything
    else, including a JSON-encoded string, raises ValueError.
    """
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{field} must be an array of integers")
    return [parse_optional_id(v, field) for v in value if v not in (None, "")]
