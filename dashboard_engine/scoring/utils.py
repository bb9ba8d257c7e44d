"""
Scoring Utilities
dashboard_engine/scoring/utils.py

Precision-safe decimal math plus the value coercion and date arithmetic
shared by the scorers, the rule evaluator and the list filters.
"""

import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional

_SECONDS_PER_DAY = 86400
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def to_decimal(value: float, places: int = 4) -> Decimal:
    """Convert float to Decimal with explicit precision."""
    return Decimal(str(value)).quantize(
        Decimal(10) ** -places, rounding=ROUND_HALF_UP
    )


def clamp(
    value: Decimal,
    min_val: Decimal = Decimal("0"),
    max_val: Decimal = Decimal("100"),
) -> Decimal:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def coerce_number(value: Any) -> Optional[Decimal]:
    """
    Interpret a loosely-typed CRM value as a number.

    Booleans, blanks, NaN and infinities are not numbers. Strings are
    stripped and parsed ("1,200" is not accepted).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a CRM date or timestamp into an aware UTC datetime.

    Accepts date/datetime objects and ISO-8601 strings, including the
    compact "+0000" offset CRM APIs emit. Naive values are taken as UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _COMPACT_OFFSET.sub(r"\1:\2", text) if "T" in text else text
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def days_between(first: Any, second: Any) -> int:
    """
    Whole days between two dates, rounded up.

    Symmetric: days_between(a, b) == days_between(b, a), and
    days_between(d, d) == 0.

    Raises:
        ValueError: if either value is not a parseable date.
    """
    d1 = parse_datetime(first)
    d2 = parse_datetime(second)
    if d1 is None or d2 is None:
        raise ValueError(f"Cannot compute days between {first!r} and {second!r}")
    seconds = abs((d2 - d1).total_seconds())
    return math.ceil(seconds / _SECONDS_PER_DAY)


def signed_days_until(target: Any, now: Optional[datetime] = None) -> Optional[int]:
    """Days from now until target (negative once target has passed), or None."""
    moment = parse_datetime(target)
    if moment is None:
        return None
    current = parse_datetime(now) if now is not None else utcnow()
    seconds = (moment - current).total_seconds()
    return math.ceil(seconds / _SECONDS_PER_DAY)
