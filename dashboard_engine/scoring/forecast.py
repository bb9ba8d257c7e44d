"""
Pipeline Forecaster - Sales Dashboard Engine
dashboard_engine/scoring/forecast.py

Current- and next-quarter pipeline metrics for the forecast view.

    totalPipeline     Σ amount of open opportunities closing in the quarter
    commitForecast    Σ amount where ForecastCategory in (Commit, Closed)
    bestCaseForecast  commitForecast + Σ amount where ForecastCategory = Best Case
    coverageRatio     totalPipeline / max(commitForecast, 1)   (0 when no pipeline)

Quarters are calendar quarters in UTC.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from dashboard_engine.config import settings
from dashboard_engine.models.record import ABSENT, Record
from dashboard_engine.scoring.utils import parse_datetime, utcnow

COMMIT_CATEGORIES = ("Commit", "Closed")
BEST_CASE_CATEGORIES = COMMIT_CATEGORIES + ("Best Case",)
UNKNOWN_STAGE = "Unknown"


@dataclass
class StageBucket:
    stage_name: str
    count: int = 0
    value: Decimal = Decimal("0")


@dataclass
class QuarterForecast:
    quarter_name: str
    start: date
    end: date
    total_pipeline: Decimal = Decimal("0")
    commit_forecast: Decimal = Decimal("0")
    best_case_forecast: Decimal = Decimal("0")
    opportunities_by_stage: List[StageBucket] = field(default_factory=list)

    @property
    def coverage_ratio(self) -> Decimal:
        if self.total_pipeline <= 0:
            return Decimal("0")
        return self.total_pipeline / max(self.commit_forecast, Decimal("1"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quarterName": self.quarter_name,
            "totalPipeline": float(self.total_pipeline),
            "commitForecast": float(self.commit_forecast),
            "bestCaseForecast": float(self.best_case_forecast),
            "coverageRatio": round(float(self.coverage_ratio), 4),
            "opportunitiesByStage": [
                {"stageName": b.stage_name, "count": b.count, "value": float(b.value)}
                for b in self.opportunities_by_stage
            ],
        }


def quarter_bounds(moment: Union[date, datetime]) -> Tuple[date, date]:
    """First and last day of the calendar quarter containing moment."""
    start_month = (moment.month - 1) // 3 * 3 + 1
    start = date(moment.year, start_month, 1)
    if start_month == 10:
        end = date(moment.year, 12, 31)
    else:
        end = date.fromordinal(date(moment.year, start_month + 3, 1).toordinal() - 1)
    return start, end


def quarter_name(start: date) -> str:
    return f"Q{(start.month - 1) // 3 + 1} {start.year}"


class PipelineForecaster:
    """Aggregate open opportunities into quarter forecasts."""

    def __init__(self, amount_field: Optional[str] = None, now: Optional[datetime] = None):
        self.amount_field = amount_field or settings.OPPORTUNITY_AMOUNT_FIELD
        self._now = now

    def quarters(self, now: Optional[datetime] = None) -> Tuple[Tuple[date, date], Tuple[date, date]]:
        current = parse_datetime(now or self._now) or utcnow()
        this_start, this_end = quarter_bounds(current)
        next_start = date.fromordinal(this_end.toordinal() + 1)
        return (this_start, this_end), quarter_bounds(next_start)

    def in_forecast_window(self, record: Union[Record, dict], now: Optional[datetime] = None) -> bool:
        """True when CloseDate falls in the current or next quarter."""
        close = Record.coerce(record).get_date("CloseDate")
        if close is ABSENT:
            return False
        (this_start, _), (_, next_end) = self.quarters(now)
        return this_start <= close.date() <= next_end

    def summarize(self, records: Iterable[Union[Record, dict]], now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Args:
            records: Open opportunities (already scope-filtered).
            now: Reference time; defaults to the forecaster's clock.

        Returns:
            {"currentQuarter": {...}, "nextQuarter": {...}} in wire format.
        """
        (this_start, this_end), (next_start, next_end) = self.quarters(now)
        current = QuarterForecast(quarter_name(this_start), this_start, this_end)
        upcoming = QuarterForecast(quarter_name(next_start), next_start, next_end)

        for raw in records:
            record = Record.coerce(raw)
            close = record.get_date("CloseDate")
            if close is ABSENT:
                continue
            close_day = close.date()
            for quarter in (current, upcoming):
                if quarter.start <= close_day <= quarter.end:
                    self._add(quarter, record)
                    break

        return {"currentQuarter": current.to_dict(), "nextQuarter": upcoming.to_dict()}

    def _add(self, quarter: QuarterForecast, record: Record) -> None:
        amount = record.get_number(self.amount_field)
        amount = Decimal("0") if amount is ABSENT else amount
        quarter.total_pipeline += amount

        category = record.get_string("ForecastCategory")
        if category in COMMIT_CATEGORIES:
            quarter.commit_forecast += amount
        if category in BEST_CASE_CATEGORIES:
            quarter.best_case_forecast += amount

        stage = record.get_string("StageName")
        stage = UNKNOWN_STAGE if stage is ABSENT else stage
        for bucket in quarter.opportunities_by_stage:
            if bucket.stage_name == stage:
                break
        else:
            bucket = StageBucket(stage)
            quarter.opportunities_by_stage.append(bucket)
        bucket.count += 1
        bucket.value += amount
