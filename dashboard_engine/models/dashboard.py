"""
Dashboard Models - Sales Dashboard Engine
dashboard_engine/models/dashboard.py

Request/response shapes for the dashboard pipeline: viewer identity,
list-view queries, scoring and risk results, dedup groups, scope
resolution, hierarchy snapshots and the shaped DashboardResult.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dashboard_engine.models.enumerations import (
    AppRole,
    ConditionOperator,
    DashboardView,
    HierarchySource,
    OwnershipScope,
    RiskFlag,
    SortDirection,
    TierName,
)
from dashboard_engine.models.record import (
    DOMAIN,
    EMPLOYEE_COUNT,
    GROUP_COUNT,
    IS_GROUP,
    MEMBER_IDS,
    Record,
)


# =============================================================================
# Request models
# =============================================================================

class Viewer(BaseModel):
    """The authenticated user a dashboard is built for."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(..., min_length=1, alias="userId")
    org_id: str = Field(..., min_length=1, alias="orgId")
    role: AppRole = AppRole.UNKNOWN


class FilterCriteria(BaseModel):
    """One list-view predicate. Criteria in a query are AND-ed."""
    model_config = ConfigDict(frozen=True)

    field: str = Field(..., min_length=1)
    operator: ConditionOperator
    value: Any = None

    @field_validator("value")
    @classmethod
    def freeze_lists(cls, v: Any) -> Any:
        return tuple(v) if isinstance(v, list) else v


class ListQuery(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    scope: Optional[OwnershipScope] = None
    filters: Tuple[FilterCriteria, ...] = ()
    search: Optional[str] = None
    sort_field: Optional[str] = Field(default=None, alias="sortField")
    sort_dir: Optional[SortDirection] = Field(default=None, alias="sortDir")
    limit: Optional[int] = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)


class TierOverride(BaseModel):
    """Manual tier assignment for one account."""
    tier: TierName
    reason: Optional[str] = None


# =============================================================================
# Scoring / risk results
# =============================================================================

@dataclass(frozen=True)
class ComponentScore:
    """Contribution of one active component to a priority score."""
    id: str
    raw: float            # 0-100 before weighting
    weight: float         # effective weight after role override
    contribution: float   # weight/100 * raw


@dataclass(frozen=True)
class ScoreResult:
    """Output of ScoringEngine.score()."""
    score: int
    tier: TierName
    components: Tuple[ComponentScore, ...] = ()
    missing_fields: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RiskEvaluation:
    """Output of RiskRuleEvaluator.evaluate_detailed()."""
    flag: Optional[RiskFlag]
    matched_rule_ids: Tuple[str, ...] = ()


# =============================================================================
# Dedup groups
# =============================================================================

@dataclass(frozen=True)
class DomainGroup:
    """Two or more records sharing a canonical company domain key."""
    domain: str
    representative: Record
    member_ids: Tuple[str, ...]
    employee_count: int = 0

    @property
    def group_count(self) -> int:
        return len(self.member_ids)

    def to_record(self) -> Record:
        """The representative's fields plus the group fields."""
        return self.representative.with_fields({
            IS_GROUP: True,
            GROUP_COUNT: self.group_count,
            MEMBER_IDS: list(self.member_ids),
            DOMAIN: self.domain,
            EMPLOYEE_COUNT: self.employee_count,
        })


# =============================================================================
# Scope & hierarchy
# =============================================================================

@dataclass(frozen=True)
class ScopeResolution:
    """
    Owner-id filter for a list view.

    owner_ids is None for "all" (no ownership filter).
    degraded is True when a team lookup failed and only the viewer's own
    records are visible.
    """
    scope: OwnershipScope
    owner_ids: Optional[FrozenSet[str]]
    degraded: bool = False

    def allows(self, owner_id: Optional[str]) -> bool:
        if self.owner_ids is None:
            return True
        return owner_id is not None and owner_id in self.owner_ids


class RoleNode(BaseModel):
    """One UserRole row."""
    id: str
    parent_role_id: Optional[str] = None
    name: Optional[str] = None


class DirectoryUser(BaseModel):
    """One active User row."""
    id: str
    role_id: Optional[str] = None
    manager_id: Optional[str] = None
    is_active: bool = True


class HierarchySnapshot(BaseModel):
    """What a HierarchyDirectory returns for one (user, org) lookup."""
    viewer_role_id: Optional[str] = None
    roles: List[RoleNode] = Field(default_factory=list)
    users: List[DirectoryUser] = Field(default_factory=list)


class RoleHierarchyResult(BaseModel):
    """Cached subordinate set for one viewer."""
    user_id: str
    user_role_id: Optional[str] = None
    subordinate_user_ids: List[str] = Field(default_factory=list)
    source: HierarchySource = HierarchySource.NONE


# =============================================================================
# Dashboard output
# =============================================================================

@dataclass
class DashboardResult:
    """Shaped output of DashboardAggregator.build()."""
    view: DashboardView
    items: List[Record]
    total: int
    limit: int
    offset: int
    scope: OwnershipScope
    scope_degraded: bool = False
    config_version: int = 1
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view": self.view.value,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "scope": self.scope.value,
            "scopeDegraded": self.scope_degraded,
            "configVersion": self.config_version,
            "summary": self.summary,
        }
