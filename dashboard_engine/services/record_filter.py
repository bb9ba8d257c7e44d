"""
Record Filter - Sales Dashboard Engine
dashboard_engine/services/record_filter.py

List-view predicates, free-text search and sorting over CRM records.
"""
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from dashboard_engine.models.dashboard import FilterCriteria
from dashboard_engine.models.enumerations import SortDirection
from dashboard_engine.models.record import ABSENT, Record
from dashboard_engine.scoring.comparisons import as_text, compare
from dashboard_engine.scoring.utils import coerce_number, parse_datetime


def matches_filters(record: Record, filters: Iterable[FilterCriteria]) -> bool:
    """All criteria hold (AND)."""
    return all(compare(record.get_value(f.field), f.operator, f.value) for f in filters)


def matches_search(record: Record, term: Optional[str], fields: Sequence[str]) -> bool:
    """Case-insensitive substring match over any of fields; blank term matches all."""
    if not term or not term.strip():
        return True
    needle = term.strip().lower()
    for field in fields:
        value = record.get_value(field)
        if value is not ABSENT and needle in as_text(value).lower():
            return True
    return False


def apply_filters(
    records: Iterable[Record],
    filters: Iterable[FilterCriteria] = (),
    search: Optional[str] = None,
    search_fields: Sequence[str] = (),
) -> List[Record]:
    filters = tuple(filters)
    return [
        record for record in records
        if matches_filters(record, filters) and matches_search(record, search, search_fields)
    ]


def _sort_key(value: Any) -> Tuple[int, Any]:
    """Rank numbers, then dates, then text so mixed columns never raise."""
    number = coerce_number(value)
    if number is not None:
        return (0, number)
    moment = parse_datetime(value)
    if moment is not None:
        return (1, moment)
    return (2, as_text(value).lower())


def sort_records(records: Sequence[Record], field: str, direction: SortDirection) -> List[Record]:
    """
    Stable sort on field; records without a value go last either way.
    """
    present = [r for r in records if r.get_value(field) is not ABSENT]
    missing = [r for r in records if r.get_value(field) is ABSENT]
    present.sort(
        key=lambda r: _sort_key(r.get_value(field)),
        reverse=SortDirection(direction) == SortDirection.DESC,
    )
    return present + missing


def paginate(records: Sequence[Record], limit: int, offset: int) -> List[Record]:
    return list(records[offset:offset + limit])
