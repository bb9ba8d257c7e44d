"""
Field Comparisons - Sales Dashboard Engine
dashboard_engine/scoring/comparisons.py

Operator semantics shared by risk-rule conditions and list-view filters.

    = != < > <= >=   numeric when both sides parse as numbers, else dates
                     when both sides parse as dates, else text
    IN / NOT IN      membership in a list (scalar -> one-item list,
                     "a, b" -> ["a", "b"])
    contains         case-sensitive substring
    between          inclusive [lo, hi] (list-view filters)

An ABSENT field satisfies only != and NOT IN.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List

from dashboard_engine.models.enumerations import ConditionOperator
from dashboard_engine.models.record import ABSENT
from dashboard_engine.scoring.utils import coerce_number, parse_datetime

_ORDERING = {
    ConditionOperator.LT: lambda a, b: a < b,
    ConditionOperator.GT: lambda a, b: a > b,
    ConditionOperator.LTE: lambda a, b: a <= b,
    ConditionOperator.GTE: lambda a, b: a >= b,
}


def as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value.normalize(), "f") if value == value.to_integral_value() else str(value)
    return str(value)


def as_list(value: Any) -> List[Any]:
    """Normalize an IN / NOT IN operand."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    if isinstance(value, str) and "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return [value]


def _coerced_pair(actual: Any, expected: Any):
    """Both sides as numbers, else both as datetimes, else both as text."""
    left, right = coerce_number(actual), coerce_number(expected)
    if left is not None and right is not None:
        return left, right
    if isinstance(actual, (datetime, date)) or isinstance(expected, (datetime, date)) or (
        isinstance(actual, str) and isinstance(expected, str)
    ):
        left_dt, right_dt = parse_datetime(actual), parse_datetime(expected)
        if left_dt is not None and right_dt is not None:
            return left_dt, right_dt
    return as_text(actual), as_text(expected)


def values_equal(actual: Any, expected: Any) -> bool:
    left, right = _coerced_pair(actual, expected)
    return left == right


def compare(actual: Any, operator: ConditionOperator, expected: Any) -> bool:
    """
    Evaluate `actual <operator> expected`.

    Args:
        actual: Record value, or ABSENT when the field is missing/blank.
        operator: Any ConditionOperator.
        expected: Condition/filter operand.

    Returns:
        True when the comparison holds. Malformed operands never raise.
    """
    operator = ConditionOperator(operator)

    if actual is ABSENT or actual is None:
        return operator in (ConditionOperator.NEQ, ConditionOperator.NOT_IN)

    if operator == ConditionOperator.EQ:
        return values_equal(actual, expected)
    if operator == ConditionOperator.NEQ:
        return not values_equal(actual, expected)

    if operator in _ORDERING:
        if expected is None:
            return False
        left, right = _coerced_pair(actual, expected)
        return _ORDERING[operator](left, right)

    if operator == ConditionOperator.IN:
        return any(values_equal(actual, item) for item in as_list(expected))
    if operator == ConditionOperator.NOT_IN:
        return not any(values_equal(actual, item) for item in as_list(expected))

    if operator == ConditionOperator.CONTAINS:
        if expected is None:
            return False
        return as_text(expected) in as_text(actual)

    if operator == ConditionOperator.BETWEEN:
        bounds = as_list(expected)
        if len(bounds) != 2:
            return False
        return compare(actual, ConditionOperator.GTE, bounds[0]) and compare(
            actual, ConditionOperator.LTE, bounds[1]
        )

    return False
