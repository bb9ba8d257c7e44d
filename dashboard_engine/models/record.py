"""
CRM Record Container
dashboard_engine/models/record.py

Read-only wrapper around one raw CRM account/opportunity field map.

Accessors return the ABSENT sentinel (falsy) instead of None when a value is
missing, blank or of the wrong shape, so callers can tell "no usable value"
apart from a legitimate falsy value such as 0 or False. Derived fields are
attached with with_fields(), which returns a new Record.
"""
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Iterator, Optional, Union

from dashboard_engine.scoring.utils import coerce_number, parse_datetime


class _Absent:
    """Singleton marker for a missing or unusable field value."""

    _instance: Optional["_Absent"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self):
        return (_Absent, ())


ABSENT = _Absent()

# Derived field names attached by the engine
PRIORITY_SCORE = "priorityScore"
PRIORITY_TIER = "priorityTier"
RISK_FLAG = "riskFlag"
MATCHED_RULE_IDS = "matchedRuleIds"
IS_GROUP = "isGroup"
GROUP_COUNT = "groupCount"
MEMBER_IDS = "memberIds"
DOMAIN = "domain"
EMPLOYEE_COUNT = "employeeCount"
MEDDPICC_SCORE = "meddpiccScore"


class Record(Mapping):
    """Immutable CRM record with a narrow typed accessor API."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Optional[Mapping] = None, **extra: Any):
        data = dict(fields or {})
        data.update(extra)
        self._fields = MappingProxyType(data)

    @classmethod
    def coerce(cls, value: Union["Record", Mapping]) -> "Record":
        return value if isinstance(value, Record) else cls(value)

    # ------------------------------------------------------------------
    # Mapping protocol
    # ------------------------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Record(id={self.id!r}, fields={len(self)})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            return dict(self._fields) == dict(other._fields)
        if isinstance(other, Mapping):
            return dict(self._fields) == dict(other)
        return NotImplemented

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def id(self) -> Optional[str]:
        value = self._fields.get("Id", self._fields.get("id"))
        return None if value is None else str(value)

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    def has(self, path: str) -> bool:
        """True when the field key exists, even if its value is null."""
        node: Any = self._fields
        for part in path.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return False
            node = node[part]
        return True

    def get_value(self, path: str) -> Any:
        """Raw value at a (possibly dotted) path, or ABSENT."""
        node: Any = self._fields
        for part in path.split("."):
            if not isinstance(node, Mapping):
                return ABSENT
            node = node.get(part, ABSENT)
            if node is ABSENT or node is None:
                return ABSENT
        return node

    def get_number(self, path: str) -> Union[Decimal, _Absent]:
        number = coerce_number(self.get_value(path))
        return ABSENT if number is None else number

    def get_string(self, path: str) -> Union[str, _Absent]:
        value = self.get_value(path)
        if value is ABSENT or isinstance(value, (Mapping, list, tuple)):
            return ABSENT
        text = value if isinstance(value, str) else str(value)
        return text if text.strip() else ABSENT

    def get_date(self, path: str) -> Union[datetime, _Absent]:
        parsed = parse_datetime(self.get_value(path))
        return ABSENT if parsed is None else parsed

    def get_bool(self, path: str) -> Union[bool, _Absent]:
        value = self.get_value(path)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        return ABSENT

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def with_fields(self, fields: Optional[Mapping] = None, **extra: Any) -> "Record":
        """Copy of this record with derived fields added or replaced."""
        data = dict(self._fields)
        if fields:
            data.update(fields)
        data.update(extra)
        return Record(data)

    def to_dict(self) -> dict:
        return dict(self._fields)
