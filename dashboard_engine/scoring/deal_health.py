# dashboard_engine/scoring/deal_health.py
"""
Deal Health (MEDDPICC) Scorer
-------------------------------
Scores an opportunity 0-100 from whatever qualification signal the CRM
record carries, in order of preference:

    1. MEDDPICC_Overall_Score__c          native overall score
    2. Probability                        stage probability
    3. 8 MEDDPICC component fields        round(filled / 8 × 100)
    4. activity heuristic                 base 30
                                          +20 non-blank NextStep
                                          +15 Description longer than 50 chars
                                          +15 StageName in the last two stages
                                          capped at 100
"""
import structlog
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Union

from dashboard_engine.config import settings
from dashboard_engine.models.record import ABSENT, MEDDPICC_SCORE, Record
from dashboard_engine.scoring.utils import clamp, round_half_up

logger = structlog.get_logger(__name__)

OVERALL_SCORE_FIELD = "MEDDPICC_Overall_Score__c"
PROBABILITY_FIELD = "Probability"

MEDDPICC_COMPONENT_FIELDS = (
    "COM_Metrics__c",
    "MEDDPICCR_Economic_Buyer__c",
    "MEDDPICCR_Decision_Criteria__c",
    "MEDDPICCR_Decision_Process__c",
    "MEDDPICCR_Paper_Process__c",
    "MEDDPICCR_Implicate_Pain__c",
    "MEDDPICCR_Champion__c",
    "MEDDPICCR_Competition__c",
)

# presence of any of these means the org has the MEDDPICC fields installed
MEDDPICC_MARKER_FIELDS = MEDDPICC_COMPONENT_FIELDS[:3]

NEXT_STEP_BONUS = 20
DESCRIPTION_BONUS = 15
LATE_STAGE_BONUS = 15


@dataclass(frozen=True)
class DealHealthResult:
    score: int
    method: str   # overall | probability | components | heuristic


class DealHealthScorer:
    """Calculate a MEDDPICC-style deal health score."""

    def __init__(
        self,
        base_score: Optional[int] = None,
        description_min_length: Optional[int] = None,
        late_stage_count: Optional[int] = None,
    ):
        self.base_score = settings.MEDDPICC_BASE_SCORE if base_score is None else base_score
        self.description_min_length = (
            settings.MEDDPICC_DESCRIPTION_MIN_LENGTH
            if description_min_length is None
            else description_min_length
        )
        self.late_stage_count = (
            settings.MEDDPICC_LATE_STAGE_COUNT if late_stage_count is None else late_stage_count
        )

    def calculate(self, record: Union[Record, dict], stages: Sequence[str] = ()) -> DealHealthResult:
        """
        Args:
            record: Opportunity record.
            stages: Configured opportunity stages in pipeline order; the
                    last `late_stage_count` earn the late-stage bonus.

        Returns:
            DealHealthResult with the 0-100 score and the method used.
        """
        record = Record.coerce(record)

        overall = record.get_number(OVERALL_SCORE_FIELD)
        if overall is not ABSENT:
            return DealHealthResult(round_half_up(clamp(overall)), "overall")

        probability = record.get_number(PROBABILITY_FIELD)
        if probability is not ABSENT:
            return DealHealthResult(round_half_up(clamp(probability)), "probability")

        if any(record.has(field) for field in MEDDPICC_MARKER_FIELDS):
            filled = sum(1 for field in MEDDPICC_COMPONENT_FIELDS if record.get_string(field) is not ABSENT)
            ratio = Decimal(filled) / Decimal(len(MEDDPICC_COMPONENT_FIELDS)) * Decimal("100")
            return DealHealthResult(round_half_up(ratio), "components")

        score = self.base_score
        if record.get_string("NextStep") is not ABSENT:
            score += NEXT_STEP_BONUS
        description = record.get_string("Description")
        if description is not ABSENT and len(description) > self.description_min_length:
            score += DESCRIPTION_BONUS
        stage = record.get_string("StageName")
        late_stages = list(stages)[-self.late_stage_count:] if stages else []
        if stage is not ABSENT and stage in late_stages:
            score += LATE_STAGE_BONUS

        return DealHealthResult(min(score, 100), "heuristic")

    def score(self, record: Union[Record, dict], stages: Sequence[str] = ()) -> int:
        return self.calculate(record, stages).score

    def enrich(self, record: Union[Record, dict], stages: Sequence[str] = ()) -> Record:
        record = Record.coerce(record)
        return record.with_fields({MEDDPICC_SCORE: self.score(record, stages)})


def staleness_warning(days_stale: Optional[int], has_next_step: bool) -> Optional[str]:
    """Human-readable risk note for the at-risk deals list."""
    parts = []
    if days_stale is not None:
        if days_stale > 30:
            parts.append(f"No activity in {days_stale} days")
        elif days_stale > 14:
            parts.append(f"{days_stale} days since last update")
    if not has_next_step:
        parts.append("No next step defined")
    return " • ".join(parts) or None
