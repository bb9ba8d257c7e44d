# dashboard_engine/scoring/priority_scorer.py
"""
Priority Scorer - Account Prioritization
------------------------------------------
Weighted multi-factor priority score with range bucketing and per-role
weight/threshold overrides.

Formula:
    raw_i        = field value (0-100)            field-based component
                 = score of first matching range   range-based component
    weight_i     = roleConfigs[role].componentWeights[id]  if overridden
                 = component.weight                         otherwise
    score        = round_half_up( Σ weight_i / 100 × raw_i )  clamped to [0, 100]
    tier         = band containing score (lowest min first)

Ranges are half-open [min, max); the range(s) with the highest max also
include max so the top bucket can act as an overflow bucket. Ranges are
scanned in declaration order and the first match wins.
"""
import structlog
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple, Union

from dashboard_engine.models.config import PriorityComponent, PriorityConfig, ScoreRange, TierThresholds
from dashboard_engine.models.dashboard import ComponentScore, ScoreResult
from dashboard_engine.models.enumerations import AppRole, TierName
from dashboard_engine.models.record import ABSENT, PRIORITY_SCORE, PRIORITY_TIER, Record
from dashboard_engine.scoring.utils import clamp, coerce_number, parse_datetime, round_half_up, utcnow

logger = structlog.get_logger(__name__)

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")
_SECONDS_PER_DAY = Decimal("86400")


def match_range(value: Decimal, ranges: Sequence[ScoreRange]) -> Optional[Decimal]:
    """Score of the first range containing value, or None when none does."""
    if not ranges:
        return None
    top = max(Decimal(str(r.max)) for r in ranges)
    for r in ranges:
        low, high = Decimal(str(r.min)), Decimal(str(r.max))
        if low <= value < high or (high == top and value == top):
            return Decimal(str(r.score))
    return None


def select_tier(score: Union[int, Decimal], thresholds: TierThresholds) -> TierName:
    """
    Band containing score, checked lowest min first.

    A score that falls in a gap takes the band with the highest min below
    it; a score below every band is cold.
    """
    ordered = thresholds.bands()
    for name, band in ordered:
        if band.contains(float(score)):
            return name
    below = [(name, band) for name, band in ordered if band.min <= float(score)]
    if below:
        return below[-1][0]
    return TierName.COLD


class ScoringEngine:
    """Calculate account priority scores and tiers."""

    def __init__(self, now: Optional[datetime] = None):
        self._now = now

    def score(
        self,
        record: Union[Record, dict],
        config: PriorityConfig,
        role: Optional[Union[AppRole, str]] = None,
    ) -> ScoreResult:
        """
        Args:
            record: Raw or enriched account record.
            config: Priority scoring section of the active AppConfig.
            role: Viewer role; selects roleConfigs weights/thresholds.

        Returns:
            ScoreResult with the integer score, tier, per-component
            breakdown and the fields that were missing or unusable.
        """
        record = Record.coerce(record)
        role_config = config.role_config(role)
        overrides = role_config.component_weights if role_config else {}
        thresholds = (
            role_config.thresholds
            if role_config is not None and role_config.thresholds is not None
            else config.thresholds
        )

        total = _ZERO
        breakdown: List[ComponentScore] = []
        missing: List[str] = []
        for component in config.components:
            if not component.active:
                continue
            raw, source = self._raw_score(record, component)
            if raw is None:
                missing.append(source)
                raw = _ZERO
            weight = Decimal(str(overrides.get(component.id, component.weight)))
            contribution = weight / _HUNDRED * raw
            total += contribution
            breakdown.append(
                ComponentScore(
                    id=component.id,
                    raw=float(raw),
                    weight=float(weight),
                    contribution=float(contribution),
                )
            )

        final = round_half_up(clamp(total))
        tier = select_tier(final, thresholds)

        if missing:
            logger.warning(
                "data_shape_warning",
                record_id=record.id,
                missing_fields=missing,
                stage="priority_score",
            )
        logger.debug(
            "priority_scored",
            record_id=record.id,
            role=str(role.value if isinstance(role, AppRole) else role),
            score=final,
            tier=tier.value,
        )
        return ScoreResult(
            score=final,
            tier=tier,
            components=tuple(breakdown),
            missing_fields=tuple(missing),
        )

    def enrich(
        self,
        record: Union[Record, dict],
        config: PriorityConfig,
        role: Optional[Union[AppRole, str]] = None,
    ) -> Record:
        """Copy of record with priorityScore / priorityTier attached."""
        record = Record.coerce(record)
        result = self.score(record, config, role)
        return record.with_fields({PRIORITY_SCORE: result.score, PRIORITY_TIER: result.tier.value})

    # ------------------------------------------------------------------
    # Component evaluation
    # ------------------------------------------------------------------

    def _raw_score(self, record: Record, component: PriorityComponent) -> Tuple[Optional[Decimal], str]:
        """(raw 0-100 score or None when unusable, field it was read from)."""
        if not component.is_range_based:
            value = record.get_number(component.field)
            if value is ABSENT:
                return None, component.field
            return clamp(value), component.field

        source = component.source_field or component.id
        if not component.source_field:
            return None, source
        value = self._bucket_value(record, component.source_field)
        if value is None:
            return None, source
        matched = match_range(value, component.score_ranges)
        return (matched if matched is not None else _ZERO), source

    def _bucket_value(self, record: Record, field: str) -> Optional[Decimal]:
        """Numeric source value, or the age in days of a date source."""
        raw = record.get_value(field)
        if raw is ABSENT:
            return None
        number = coerce_number(raw)
        if number is not None:
            return number
        moment = parse_datetime(raw)
        if moment is None:
            return None
        now = parse_datetime(self._now) if self._now is not None else utcnow()
        age_seconds = Decimal(str((now - moment).total_seconds()))
        return max(_ZERO, age_seconds / _SECONDS_PER_DAY)
