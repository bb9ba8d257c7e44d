"""
Dashboard Aggregator - Sales Dashboard Engine
dashboard_engine/services/dashboard_aggregator.py

Shapes one role-specific list view from raw CRM records:

    scope filter -> predicate filters -> search -> enrichment
        -> dedup (account views) -> sort -> paginate

Views:
    priority_accounts   accounts by priority score, grouped by company
    at_risk_deals       stale or rule-flagged open opportunities
    pipeline_forecast   open opportunities closing this or next quarter
    renewals            accounts whose agreement expires within the window

Only scope resolution is async (team scope may hit the CRM directory);
everything after it is pure computation over the supplied batch.
"""
import structlog
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from dashboard_engine.config import TIMESTAMP_FIELDS, settings
from dashboard_engine.core.exceptions import UnknownViewError
from dashboard_engine.models.config import AppConfig
from dashboard_engine.models.dashboard import (
    DashboardResult,
    FilterCriteria,
    ListQuery,
    ScopeResolution,
    TierOverride,
    Viewer,
)
from dashboard_engine.models.enumerations import (
    ConditionOperator,
    DashboardView,
    ObjectType,
    SortDirection,
)
from dashboard_engine.models.record import ABSENT, PRIORITY_SCORE, PRIORITY_TIER, RISK_FLAG, Record
from dashboard_engine.scoring.deal_health import DealHealthScorer, staleness_warning
from dashboard_engine.scoring.dedup import DedupGroupingEngine
from dashboard_engine.scoring.forecast import PipelineForecaster
from dashboard_engine.scoring.priority_scorer import ScoringEngine
from dashboard_engine.scoring.renewals import RenewalAssessor
from dashboard_engine.scoring.risk_rules import RiskRuleEvaluator
from dashboard_engine.scoring.utils import days_between, parse_datetime, utcnow
from dashboard_engine.services.record_filter import apply_filters, paginate, sort_records
from dashboard_engine.services.scope_resolver import ScopeResolver

logger = structlog.get_logger(__name__)

# View-specific derived fields
DAYS_STALE = "daysStale"
WARNING = "warning"
TIER_OVERRIDE = "tierOverride"
DAYS_TO_RENEWAL = "daysToRenewal"
HEALTH_SCORE = "healthScore"
RENEWAL_RISK = "renewalRisk"
KEY_SIGNALS = "keySignals"


@dataclass(frozen=True)
class ViewSpec:
    view: DashboardView
    object_type: ObjectType
    default_sort: str
    default_direction: SortDirection
    search_fields: Tuple[str, ...]
    default_filters: Tuple[FilterCriteria, ...] = ()
    owner_field: str = "OwnerId"
    group_by_domain: bool = False


_OPEN_DEAL = FilterCriteria(field="IsClosed", operator=ConditionOperator.NEQ, value=True)

VIEW_SPECS: Dict[DashboardView, ViewSpec] = {
    DashboardView.PRIORITY_ACCOUNTS: ViewSpec(
        view=DashboardView.PRIORITY_ACCOUNTS,
        object_type=ObjectType.ACCOUNT,
        default_sort=PRIORITY_SCORE,
        default_direction=SortDirection.DESC,
        search_fields=("Name", "Industry", "Website"),
        group_by_domain=True,
    ),
    DashboardView.AT_RISK_DEALS: ViewSpec(
        view=DashboardView.AT_RISK_DEALS,
        object_type=ObjectType.OPPORTUNITY,
        default_sort=DAYS_STALE,
        default_direction=SortDirection.DESC,
        search_fields=("Name", "Account.Name", "StageName"),
        default_filters=(
            FilterCriteria(
                field="StageName",
                operator=ConditionOperator.NOT_IN,
                value=["Prospecting", "Qualification"],
            ),
            _OPEN_DEAL,
        ),
    ),
    DashboardView.PIPELINE_FORECAST: ViewSpec(
        view=DashboardView.PIPELINE_FORECAST,
        object_type=ObjectType.OPPORTUNITY,
        default_sort="CloseDate",
        default_direction=SortDirection.ASC,
        search_fields=("Name", "Account.Name", "StageName", "ForecastCategory"),
        default_filters=(_OPEN_DEAL,),
    ),
    DashboardView.RENEWALS: ViewSpec(
        view=DashboardView.RENEWALS,
        object_type=ObjectType.ACCOUNT,
        default_sort=DAYS_TO_RENEWAL,
        default_direction=SortDirection.ASC,
        search_fields=("Name", "Industry"),
    ),
}


def view_spec(view: Union[DashboardView, str]) -> ViewSpec:
    try:
        return VIEW_SPECS[DashboardView(view)]
    except ValueError as exc:
        raise UnknownViewError(str(view)) from exc


class DashboardAggregator:
    """Build shaped dashboard views for a viewer."""

    def __init__(
        self,
        scope_resolver: Optional[ScopeResolver] = None,
        dedup: Optional[DedupGroupingEngine] = None,
        deal_health: Optional[DealHealthScorer] = None,
        timestamp_fields: Iterable[str] = TIMESTAMP_FIELDS,
        amount_field: Optional[str] = None,
        now: Optional[datetime] = None,
    ):
        self.scope_resolver = scope_resolver or ScopeResolver()
        self.dedup = dedup or DedupGroupingEngine()
        self.deal_health = deal_health or DealHealthScorer()
        self.timestamp_fields = frozenset(timestamp_fields)
        self.amount_field = amount_field or settings.OPPORTUNITY_AMOUNT_FIELD
        self._now = now

    async def build(
        self,
        view: Union[DashboardView, str],
        records: Iterable[Union[Record, Mapping]],
        viewer: Viewer,
        config: AppConfig,
        query: Optional[ListQuery] = None,
        tier_overrides: Optional[Mapping[str, Union[TierOverride, Mapping]]] = None,
        now: Optional[datetime] = None,
    ) -> DashboardResult:
        """
        Resolve the viewer's scope, then shape the view.

        Args:
            view: One of DashboardView.
            records: Raw records of the view's object type.
            viewer: Requesting user.
            config: AppConfig snapshot used for the whole call.
            query: Scope, filters, search, sort and paging; all optional.
            tier_overrides: {accountId: {tier, reason}} for priority_accounts.
            now: Reference time for ages and windows.

        Raises:
            UnknownViewError: if view is not a DashboardView.
        """
        spec = view_spec(view)
        query = query or ListQuery()
        scope = await self.scope_resolver.resolve_scope(viewer, query.scope, config.scope_defaults)
        return self.shape(spec.view, records, viewer, config, scope, query, tier_overrides, now)

    def shape(
        self,
        view: Union[DashboardView, str],
        records: Iterable[Union[Record, Mapping]],
        viewer: Viewer,
        config: AppConfig,
        scope: ScopeResolution,
        query: Optional[ListQuery] = None,
        tier_overrides: Optional[Mapping[str, Union[TierOverride, Mapping]]] = None,
        now: Optional[datetime] = None,
    ) -> DashboardResult:
        """Synchronous part of build() for an already-resolved scope."""
        spec = view_spec(view)
        query = query or ListQuery()
        now = parse_datetime(now or self._now) or utcnow()

        items = [Record.coerce(raw) for raw in records]
        items = [r for r in items if scope.allows(_owner(r, spec.owner_field))]
        items = apply_filters(
            items,
            spec.default_filters + tuple(query.filters),
            search=query.search,
            search_fields=spec.search_fields,
        )

        summary: Dict[str, Any] = {}
        risk = RiskRuleEvaluator(now=now, timestamp_fields=self.timestamp_fields)
        rules = config.rules_for(spec.object_type)
        items = [risk.enrich(r, spec.object_type, rules) for r in items]

        if spec.view == DashboardView.PRIORITY_ACCOUNTS:
            items = self._priority_accounts(items, viewer, config, tier_overrides, now)
        elif spec.view == DashboardView.AT_RISK_DEALS:
            items = self._at_risk_deals(items, config, now)
        elif spec.view == DashboardView.PIPELINE_FORECAST:
            items, summary = self._pipeline_forecast(items, config, now)
        elif spec.view == DashboardView.RENEWALS:
            items = self._renewals(items, now)

        if spec.group_by_domain:
            items = self.dedup.group_by_domain(items)

        sort_field = query.sort_field or spec.default_sort
        if query.sort_dir is not None:
            direction = query.sort_dir
        elif sort_field == spec.default_sort:
            direction = spec.default_direction
        else:
            direction = SortDirection.ASC
        items = sort_records(items, sort_field, direction)

        total = len(items)
        limit = min(query.limit or settings.DEFAULT_PAGE_LIMIT, settings.MAX_PAGE_LIMIT)
        page = paginate(items, limit, query.offset)

        logger.info(
            "dashboard_built",
            view=spec.view.value,
            user_id=viewer.user_id,
            scope=scope.scope.value,
            scope_degraded=scope.degraded,
            total=total,
            returned=len(page),
            config_version=config.version,
        )
        return DashboardResult(
            view=spec.view,
            items=page,
            total=total,
            limit=limit,
            offset=query.offset,
            scope=scope.scope,
            scope_degraded=scope.degraded,
            config_version=config.version,
            summary=summary,
        )

    # ------------------------------------------------------------------
    # View enrichment
    # ------------------------------------------------------------------

    def _priority_accounts(
        self,
        items: List[Record],
        viewer: Viewer,
        config: AppConfig,
        tier_overrides: Optional[Mapping[str, Union[TierOverride, Mapping]]],
        now: datetime,
    ) -> List[Record]:
        scorer = ScoringEngine(now=now)
        overrides = {
            account_id: value if isinstance(value, TierOverride) else TierOverride.model_validate(value)
            for account_id, value in (tier_overrides or {}).items()
        }
        enriched = []
        for record in items:
            record = scorer.enrich(record, config.priority_scoring, viewer.role)
            override = overrides.get(record.id) if record.id is not None else None
            if override is not None:
                record = record.with_fields({
                    PRIORITY_TIER: override.tier.value,
                    TIER_OVERRIDE: {"tier": override.tier.value, "reason": override.reason},
                })
            enriched.append(record)
        return enriched

    def _at_risk_deals(self, items: List[Record], config: AppConfig, now: datetime) -> List[Record]:
        kept = []
        for record in items:
            modified = record.get_date("LastModifiedDate")
            if modified is ABSENT:
                days_stale = None
            elif modified > now:
                # clock skew: a future timestamp is treated as just modified
                days_stale = 0
            else:
                days_stale = days_between(modified, now)
            flagged = record.get(RISK_FLAG) is not None
            if not flagged and (days_stale is None or days_stale < settings.STALE_DEAL_DAYS):
                continue
            record = self.deal_health.enrich(self._normalize_amount(record), config.opportunity_stages)
            kept.append(record.with_fields({
                DAYS_STALE: days_stale,
                WARNING: staleness_warning(days_stale, record.get_string("NextStep") is not ABSENT),
            }))
        return kept

    def _pipeline_forecast(
        self, items: List[Record], config: AppConfig, now: datetime
    ) -> Tuple[List[Record], Dict[str, Any]]:
        forecaster = PipelineForecaster(amount_field=self.amount_field, now=now)
        in_window = [r for r in items if forecaster.in_forecast_window(r)]
        summary = forecaster.summarize(in_window)
        enriched = [
            self.deal_health.enrich(self._normalize_amount(r), config.opportunity_stages)
            for r in in_window
        ]
        return enriched, summary

    def _renewals(self, items: List[Record], now: datetime) -> List[Record]:
        assessor = RenewalAssessor(now=now)
        kept = []
        for record in items:
            if not assessor.in_window(record):
                continue
            assessment = assessor.assess(record)
            kept.append(record.with_fields({
                DAYS_TO_RENEWAL: assessment.days_to_renewal,
                HEALTH_SCORE: assessment.health_score,
                RENEWAL_RISK: assessment.renewal_risk.value,
                KEY_SIGNALS: list(assessment.key_signals),
            }))
        return kept

    def _normalize_amount(self, record: Record) -> Record:
        """Expose the configured amount field as Amount."""
        if self.amount_field == "Amount":
            return record
        amount = record.get_number(self.amount_field)
        return record.with_fields({"Amount": 0 if amount is ABSENT else float(amount)})


def _owner(record: Record, owner_field: str) -> Optional[str]:
    owner = record.get_string(owner_field)
    return None if owner is ABSENT else owner
