"""
Domain Dedup Grouping - Sales Dashboard Engine
dashboard_engine/scoring/dedup.py

Collapses account records that belong to the same company (Park Hyatt,
Grand Hyatt) into one DomainGroup so a list view shows the company once.

Canonical key:
    1. lowercase, strip punctuation
    2. drop a trailing corporate suffix (inc, llc, corp, ...)
    3. several tokens -> last token, unless shorter than 3 characters, then
       the whole cleaned name without spaces
"""
import re
import structlog
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union

from dashboard_engine.models.dashboard import DomainGroup
from dashboard_engine.models.record import (
    ABSENT,
    DOMAIN,
    EMPLOYEE_COUNT,
    GROUP_COUNT,
    IS_GROUP,
    MEMBER_IDS,
    PRIORITY_SCORE,
    Record,
)

logger = structlog.get_logger(__name__)

CORPORATE_SUFFIXES = frozenset({
    "inc", "llc", "corp", "corporation", "ltd", "co", "company", "group", "holdings",
})

REPRESENTATIVE_SCORE_FIELDS = (PRIORITY_SCORE, "intentScore")

_PUNCTUATION = re.compile(r"[^\w\s]")
_MIN_KEY_LENGTH = 3
_GROUP_FIELDS = (IS_GROUP, GROUP_COUNT, MEMBER_IDS, DOMAIN, EMPLOYEE_COUNT)

DEFAULT_EMPLOYEE_FIELD = "Clay_Employee_Count__c"


def extract_domain_key(name: Optional[str]) -> str:
    """
    Canonical company key for a display name.

    >>> extract_domain_key("Acme Inc.")
    'acme'
    >>> extract_domain_key("Park Hyatt")
    'hyatt'
    >>> extract_domain_key("Open AI")
    'openai'
    """
    if not name:
        return ""
    cleaned = _PUNCTUATION.sub("", str(name).lower())
    tokens = cleaned.split()
    if len(tokens) > 1 and tokens[-1] in CORPORATE_SUFFIXES:
        tokens = tokens[:-1]
    if not tokens:
        return ""
    if len(tokens) == 1:
        return tokens[0]
    if len(tokens[-1]) < _MIN_KEY_LENGTH:
        return "".join(tokens)
    return tokens[-1]


def _ranking_score(record: Record) -> Optional[Decimal]:
    for field in REPRESENTATIVE_SCORE_FIELDS:
        value = record.get_number(field)
        if value is not ABSENT:
            return value
    return None


def _member_ids(record: Record) -> List[str]:
    """Ids a record stands for (a regrouped group contributes all its members)."""
    if record.get(IS_GROUP) is True and isinstance(record.get(MEMBER_IDS), (list, tuple)):
        return [str(member) for member in record[MEMBER_IDS]]
    return [record.id] if record.id is not None else []


class DedupGroupingEngine:
    """Group records by canonical domain key."""

    def __init__(self, name_field: str = "Name", employee_field: str = DEFAULT_EMPLOYEE_FIELD):
        self.name_field = name_field
        self.employee_field = employee_field

    def key_for(self, record: Record) -> str:
        name = record.get_string(self.name_field)
        key = extract_domain_key(name) if name is not ABSENT else ""
        if key:
            return key
        # nameless records never merge
        return f"id:{record.id}" if record.id is not None else f"obj:{id(record)}"

    def build_groups(self, records: Sequence[Union[Record, dict]]) -> List[Union[Record, DomainGroup]]:
        """Singletons as Records, shared keys as DomainGroups, in first-appearance order."""
        buckets: Dict[str, List[Record]] = {}
        for raw in records:
            record = Record.coerce(raw)
            buckets.setdefault(self.key_for(record), []).append(record)

        output: List[Union[Record, DomainGroup]] = []
        for key, members in buckets.items():
            if len(members) == 1:
                output.append(members[0])
                continue
            representative = members[0]
            best = _ranking_score(representative)
            for member in members[1:]:
                candidate = _ranking_score(member)
                if candidate is not None and (best is None or candidate > best):
                    representative, best = member, candidate
            member_ids: List[str] = []
            for member in members:
                member_ids.extend(_member_ids(member))
            employees = sum(self._employee_count(member) for member in members)
            output.append(
                DomainGroup(
                    domain=key,
                    representative=self._strip_group_fields(representative),
                    member_ids=tuple(member_ids),
                    employee_count=int(employees),
                )
            )

        logger.debug(
            "domain_groups_built",
            input_count=len(records),
            output_count=len(output),
            group_count=sum(1 for item in output if isinstance(item, DomainGroup)),
        )
        return output

    def group_by_domain(self, records: Sequence[Union[Record, dict]]) -> List[Record]:
        """Grouped view as plain Records (groups carry isGroup/groupCount/memberIds)."""
        return [
            item.to_record() if isinstance(item, DomainGroup) else item
            for item in self.build_groups(records)
        ]

    def _employee_count(self, record: Record) -> Decimal:
        """Employees a record stands for; missing counts as 0."""
        field = EMPLOYEE_COUNT if record.get(IS_GROUP) is True else self.employee_field
        value = record.get_number(field)
        return value if value is not ABSENT else Decimal(0)

    @staticmethod
    def _strip_group_fields(record: Record) -> Record:
        if IS_GROUP not in record:
            return record
        return Record({k: v for k, v in record.items() if k not in _GROUP_FIELDS})


def group_by_domain(records: Sequence[Union[Record, dict]]) -> List[Record]:
    return DedupGroupingEngine().group_by_domain(records)
