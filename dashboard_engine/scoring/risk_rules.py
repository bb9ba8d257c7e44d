"""
Risk Rule Evaluator - Sales Dashboard Engine
dashboard_engine/scoring/risk_rules.py

Evaluates admin-defined risk rules against one record and surfaces the
highest-severity flag (critical > at-risk > warning).

Timestamp fields compared with < or > against a number are read as an
age in days: {"field": "LastModifiedDate", "operator": ">", "value": 30}
means "last modified more than 30 days ago".
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import FrozenSet, Iterable, List, Optional, Union

from dashboard_engine.config import TIMESTAMP_FIELDS
from dashboard_engine.models.config import RiskCondition, RiskRule
from dashboard_engine.models.dashboard import RiskEvaluation
from dashboard_engine.models.enumerations import ConditionOperator, ObjectType, RiskFlag, RuleLogic
from dashboard_engine.models.record import ABSENT, MATCHED_RULE_IDS, RISK_FLAG, Record
from dashboard_engine.scoring.comparisons import compare
from dashboard_engine.scoring.utils import coerce_number, parse_datetime, utcnow

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = Decimal("86400")
_AGE_OPERATORS = (ConditionOperator.LT, ConditionOperator.GT)


class RiskRuleEvaluator:
    """Evaluate risk rules for accounts and opportunities."""

    def __init__(
        self,
        now: Optional[datetime] = None,
        timestamp_fields: Iterable[str] = TIMESTAMP_FIELDS,
    ):
        self._now = now
        self.timestamp_fields: FrozenSet[str] = frozenset(timestamp_fields)

    def evaluate(
        self,
        record: Union[Record, dict],
        object_type: ObjectType,
        rules: Iterable[RiskRule],
    ) -> Optional[RiskFlag]:
        """Highest-severity flag among matching rules, or None."""
        return self.evaluate_detailed(record, object_type, rules).flag

    def evaluate_detailed(
        self,
        record: Union[Record, dict],
        object_type: ObjectType,
        rules: Iterable[RiskRule],
    ) -> RiskEvaluation:
        """
        Evaluate every active rule for object_type.

        Returns:
            RiskEvaluation with the top flag and the ids of all matched
            rules in rule order.
        """
        record = Record.coerce(record)
        object_type = ObjectType(object_type)
        now = self._current_time()

        matched: List[str] = []
        top: Optional[RiskFlag] = None
        for rule in rules:
            if not rule.active or rule.object_type != object_type:
                continue
            if not self.rule_matches(record, rule, now):
                continue
            matched.append(rule.id)
            if top is None or rule.flag.severity > top.severity:
                top = rule.flag

        if matched:
            logger.debug(
                "risk_rules_evaluated",
                extra={
                    "record_id": record.id,
                    "object_type": object_type.value,
                    "matched_rule_ids": matched,
                    "flag": top.value,
                },
            )
        return RiskEvaluation(flag=top, matched_rule_ids=tuple(matched))

    def enrich(
        self,
        record: Union[Record, dict],
        object_type: ObjectType,
        rules: Iterable[RiskRule],
    ) -> Record:
        """Copy of record with riskFlag / matchedRuleIds attached."""
        record = Record.coerce(record)
        result = self.evaluate_detailed(record, object_type, rules)
        return record.with_fields({
            RISK_FLAG: result.flag.value if result.flag else None,
            MATCHED_RULE_IDS: list(result.matched_rule_ids),
        })

    def rule_matches(self, record: Record, rule: RiskRule, now: Optional[datetime] = None) -> bool:
        if not rule.conditions:
            return False
        now = now or self._current_time()
        results = (self.condition_matches(record, condition, now) for condition in rule.conditions)
        if rule.logic == RuleLogic.OR:
            return any(results)
        return all(results)

    def condition_matches(self, record: Record, condition: RiskCondition, now: Optional[datetime] = None) -> bool:
        if self._is_age_condition(condition):
            moment = record.get_date(condition.field)
            if moment is ABSENT:
                self._warn_missing(record, condition)
                return False
            now = now or self._current_time()
            age_days = Decimal(str((now - moment).total_seconds())) / _SECONDS_PER_DAY
            return compare(age_days, condition.operator, condition.value)
        actual = record.get_value(condition.field)
        if actual is ABSENT:
            self._warn_missing(record, condition)
        return compare(actual, condition.operator, condition.value)

    # ------------------------------------------------------------------

    @staticmethod
    def _warn_missing(record: Record, condition: RiskCondition) -> None:
        logger.warning(
            "data_shape_warning",
            extra={
                "record_id": record.id,
                "missing_fields": [condition.field],
                "stage": "risk_rules",
            },
        )

    def _is_age_condition(self, condition: RiskCondition) -> bool:
        return (
            condition.field in self.timestamp_fields
            and condition.operator in _AGE_OPERATORS
            and coerce_number(condition.value) is not None
        )

    def _current_time(self) -> datetime:
        return parse_datetime(self._now) if self._now is not None else utcnow()
