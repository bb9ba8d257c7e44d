"""
Renewal Assessor - Sales Dashboard Engine
dashboard_engine/scoring/renewals.py

Renewal risk for accounts approaching their agreement expiry date.

    At Risk                Risk__c = Red, health < 50, or < 30 days to renewal
    Expansion Opportunity  health > 80 and more than 500 licensed users
    On Track               otherwise

Accounts without a health score are assumed healthy (70).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from dashboard_engine.config import settings
from dashboard_engine.models.enumerations import RenewalRisk
from dashboard_engine.models.record import ABSENT, Record
from dashboard_engine.scoring.utils import days_between, signed_days_until, utcnow

RENEWAL_DATE_FIELD = "Agreement_Expiry_Date__c"
HEALTH_SCORE_FIELD = "Current_Gainsight_Score__c"
RISK_STATUS_FIELD = "Risk__c"
LICENSED_USERS_FIELD = "of_Axonify_Users__c"
LAST_QBR_FIELD = "Last_QBR__c"
RISK_NOTES_FIELD = "Risk_Notes__c"

DEFAULT_HEALTH_SCORE = 70
QBR_OVERDUE_DAYS = 90


@dataclass(frozen=True)
class RenewalAssessment:
    days_to_renewal: Optional[int]
    health_score: float
    renewal_risk: RenewalRisk
    key_signals: List[str]


class RenewalAssessor:
    def __init__(self, window_days: Optional[int] = None, now: Optional[datetime] = None):
        self.window_days = settings.RENEWAL_WINDOW_DAYS if window_days is None else window_days
        self._now = now

    def in_window(self, record: Union[Record, dict], now: Optional[datetime] = None) -> bool:
        """Expiry date present and no more than window_days away."""
        days = signed_days_until(Record.coerce(record).get_value(RENEWAL_DATE_FIELD), now or self._now)
        return days is not None and days <= self.window_days

    def assess(self, record: Union[Record, dict], now: Optional[datetime] = None) -> RenewalAssessment:
        record = Record.coerce(record)
        now = now or self._now or utcnow()

        days = signed_days_until(record.get_value(RENEWAL_DATE_FIELD), now)
        health = record.get_number(HEALTH_SCORE_FIELD)
        # a zero score counts as missing
        health_score = float(health) if health is not ABSENT and health != 0 else float(DEFAULT_HEALTH_SCORE)
        users = record.get_number(LICENSED_USERS_FIELD)
        users = 0 if users is ABSENT else users

        if (
            record.get_string(RISK_STATUS_FIELD) == "Red"
            or health_score < 50
            or (days is not None and days < 30)
        ):
            risk = RenewalRisk.AT_RISK
        elif health_score > 80 and users > 500:
            risk = RenewalRisk.EXPANSION
        else:
            risk = RenewalRisk.ON_TRACK

        signals: List[str] = []
        if health_score < 60:
            signals.append(f"Low health score: {health_score:g}")
        if days is not None and days < 60:
            signals.append(f"Renewal in {days} days")
        last_qbr = record.get_date(LAST_QBR_FIELD)
        if last_qbr is ABSENT or days_between(last_qbr, now) > QBR_OVERDUE_DAYS:
            signals.append("QBR overdue")
        if record.get_string(RISK_NOTES_FIELD) is not ABSENT:
            signals.append("Has risk notes")

        return RenewalAssessment(
            days_to_renewal=days,
            health_score=health_score,
            renewal_risk=risk,
            key_signals=signals,
        )
