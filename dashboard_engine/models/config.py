"""
Configuration Models - Sales Dashboard Engine
dashboard_engine/models/config.py

Pydantic models for the admin-editable AppConfig: risk rules, priority
scoring, field mappings, role mapping and scope defaults.

Models are frozen; a configuration change always produces a new snapshot
(see services/config_store.py). JSON uses camelCase keys, Python uses
snake_case attributes; both are accepted on input.

Structural checks (one driver per component, well-formed ranges) run in
pydantic validators. Weight sums and tier contiguity are checked by
PriorityConfig.validate_for_save(), which the write path calls, so configs
that were already accepted never fail at scoring time.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from dashboard_engine.core.exceptions import ConfigurationError, WeightSumError
from dashboard_engine.models.enumerations import (
    AppRole,
    ConditionOperator,
    ObjectType,
    OwnershipScope,
    RiskFlag,
    RuleLogic,
    TierName,
)


class EngineModel(BaseModel):
    """Base for frozen, camelCase-serialized configuration models."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =====================================================================
# Priority scoring
# =====================================================================

class ScoreRange(EngineModel):
    """One bucket of a range-based component: values in [min, max) score `score`."""
    min: float
    max: float
    score: float = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def check_bounds(self) -> "ScoreRange":
        if self.min > self.max:
            raise ValueError(f"Range min {self.min} is greater than max {self.max}")
        return self


class PriorityComponent(EngineModel):
    """
    One weighted factor of the priority score.

    Field-based components read a 0-100 value straight from `field`.
    Range-based components bucket the value of `source_field` through
    `score_ranges`; a date-valued source is bucketed by its age in days.
    """
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    weight: float = Field(..., ge=0, le=100, description="Percentage (0-100)")
    field: Optional[str] = Field(default=None, description="CRM field holding a 0-100 value")
    score_ranges: Optional[Tuple[ScoreRange, ...]] = None
    source_field: Optional[str] = Field(default=None, description="CRM field bucketed by score_ranges")
    active: bool = True

    @model_validator(mode="after")
    def check_single_driver(self) -> "PriorityComponent":
        """Exactly one of field / scoreRanges drives the raw contribution."""
        has_field = bool(self.field)
        has_ranges = bool(self.score_ranges)
        if has_field == has_ranges:
            raise ValueError(
                f"Component {self.id!r} needs exactly one of 'field' or 'scoreRanges'"
            )
        return self

    @property
    def is_range_based(self) -> bool:
        return bool(self.score_ranges)


class TierBand(EngineModel):
    min: float = Field(..., ge=0, le=100)
    max: float = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def check_bounds(self) -> "TierBand":
        if self.min > self.max:
            raise ValueError(f"Tier band min {self.min} is greater than max {self.max}")
        return self

    def contains(self, score: float) -> bool:
        return self.min <= score <= self.max


class TierThresholds(EngineModel):
    hot: TierBand
    warm: TierBand
    cool: TierBand
    cold: TierBand

    def bands(self) -> List[Tuple[TierName, TierBand]]:
        """Bands ordered lowest min first (declaration order breaks ties)."""
        pairs = [
            (TierName.HOT, self.hot),
            (TierName.WARM, self.warm),
            (TierName.COOL, self.cool),
            (TierName.COLD, self.cold),
        ]
        return sorted(pairs, key=lambda pair: pair[1].min)

    def check_contiguous(self, label: str = "Default") -> None:
        """
        Reject gaps, overlaps and incomplete coverage of 0-100.

        Adjacent integer bands (0-39, 40-64) and shared endpoints
        (0-40, 40-65) both count as contiguous.

        Raises:
            ConfigurationError: describing the first problem found.
        """
        ordered = self.bands()
        lowest, highest = ordered[0][1], ordered[-1][1]
        if lowest.min != 0 or max(band.max for _, band in ordered) != 100:
            raise ConfigurationError(
                f"{label} tier thresholds must cover 0-100 "
                f"(got {lowest.min:g}-{highest.max:g})",
                field="thresholds",
            )
        for (prev_name, prev), (next_name, nxt) in zip(ordered, ordered[1:]):
            step = nxt.min - prev.max
            if step < 0:
                raise ConfigurationError(
                    f"{label} tier thresholds overlap: {prev_name.value} ends at "
                    f"{prev.max:g} but {next_name.value} starts at {nxt.min:g}",
                    field="thresholds",
                )
            if step > 1:
                raise ConfigurationError(
                    f"{label} tier thresholds leave a gap between "
                    f"{prev_name.value} ({prev.max:g}) and {next_name.value} ({nxt.min:g})",
                    field="thresholds",
                )


class RoleConfig(EngineModel):
    """Per-role override of component weights and (optionally) tier bands."""
    component_weights: Dict[str, float] = Field(default_factory=dict)
    thresholds: Optional[TierThresholds] = None

    @field_validator("component_weights")
    @classmethod
    def check_weight_range(cls, v: Dict[str, float]) -> Dict[str, float]:
        for component_id, weight in v.items():
            if not 0 <= weight <= 100:
                raise ValueError(f"Weight for {component_id!r} must be within 0-100, got {weight}")
        return v


class PriorityConfig(EngineModel):
    components: Tuple[PriorityComponent, ...] = ()
    thresholds: TierThresholds
    role_configs: Optional[Dict[str, RoleConfig]] = None

    def role_config(self, role: Optional[str]) -> Optional[RoleConfig]:
        if not role or not self.role_configs:
            return None
        key = role.value if isinstance(role, AppRole) else str(role)
        return self.role_configs.get(key)

    def validate_for_save(self, tolerance: float = 0.01) -> None:
        """
        Write-path validation.

        Active default weights must sum to 100 (within tolerance). For each
        role the weights the scorer resolves (override, else default) over
        the active components must also sum to 100. Tier bands must be
        contiguous and cover 0-100, and component ids must be unique.

        Raises:
            ConfigurationError / WeightSumError naming the offending total.
        """
        ids = [component.id for component in self.components]
        duplicates = sorted({cid for cid in ids if ids.count(cid) > 1})
        if duplicates:
            raise ConfigurationError(
                f"Duplicate priority component ids: {', '.join(duplicates)}",
                field="components",
            )

        active = [component for component in self.components if component.active]
        total = sum(component.weight for component in active)
        if abs(total - 100) > tolerance:
            raise WeightSumError(total)

        self.thresholds.check_contiguous()

        for role, role_config in (self.role_configs or {}).items():
            unknown = sorted(set(role_config.component_weights) - set(ids))
            if unknown:
                raise ConfigurationError(
                    f"{role.upper()} overrides unknown components: {', '.join(unknown)}",
                    field="roleConfigs",
                )
            if role_config.component_weights:
                weights = role_config.component_weights
                role_total = sum(weights.get(component.id, component.weight) for component in active)
                if abs(role_total - 100) > tolerance:
                    raise WeightSumError(role_total, role=role)
            if role_config.thresholds is not None:
                role_config.thresholds.check_contiguous(label=role.upper())


# =====================================================================
# Risk rules
# =====================================================================

class RiskCondition(EngineModel):
    field: str = Field(..., min_length=1)
    operator: ConditionOperator
    value: Any = None

    @model_validator(mode="after")
    def check_operator(self) -> "RiskCondition":
        if self.operator == ConditionOperator.BETWEEN:
            raise ValueError("'between' is a list-view filter operator, not a rule operator")
        return self


class RiskRule(EngineModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    object_type: ObjectType
    conditions: Tuple[RiskCondition, ...] = ()
    logic: RuleLogic = RuleLogic.AND
    flag: RiskFlag
    active: bool = True
    created_by: Optional[str] = None
    created_date: Optional[str] = None


# =====================================================================
# Field, role and display settings
# =====================================================================

class FieldMapping(EngineModel):
    concept_name: str
    category: str
    salesforce_field: Optional[str] = None
    calculate_in_app: bool = False


class RoleMappingEntry(EngineModel):
    salesforce_profile: str = Field(..., min_length=1)
    app_role: AppRole


class UserRoleOverride(EngineModel):
    user_name: str = Field(..., min_length=1)
    app_role: AppRole


class DisplaySettings(EngineModel):
    accounts_per_page: int = Field(default=10, ge=1, le=500)
    deals_per_page: int = Field(default=8, ge=1, le=500)
    default_sort: str = "priority"
    view_mode: str = "table"


class ScopeDefaults(EngineModel):
    """Default ownership scope per app role."""
    ae: OwnershipScope = OwnershipScope.MINE
    am: OwnershipScope = OwnershipScope.MINE
    csm: OwnershipScope = OwnershipScope.MINE
    sales_leader: OwnershipScope = Field(default=OwnershipScope.TEAM, alias="sales-leader")
    executive: OwnershipScope = OwnershipScope.ALL
    admin: OwnershipScope = OwnershipScope.ALL
    unknown: OwnershipScope = OwnershipScope.MINE

    def for_role(self, role: Optional[AppRole]) -> OwnershipScope:
        try:
            attr = AppRole(role).value.replace("-", "_")
        except ValueError:
            return self.unknown
        return getattr(self, attr)


class LastModified(EngineModel):
    by: str
    date: datetime


# =====================================================================
# AppConfig
# =====================================================================

class AppConfig(EngineModel):
    risk_rules: Tuple[RiskRule, ...] = ()
    priority_scoring: PriorityConfig
    field_mappings: Tuple[FieldMapping, ...] = ()
    opportunity_stages: Tuple[str, ...] = ()
    role_mapping: Tuple[RoleMappingEntry, ...] = ()
    user_role_overrides: Tuple[UserRoleOverride, ...] = ()
    display_settings: DisplaySettings = Field(default_factory=DisplaySettings)
    scope_defaults: ScopeDefaults = Field(default_factory=ScopeDefaults)
    last_modified: Optional[LastModified] = None
    version: int = Field(default=1, ge=1)

    def rules_for(self, object_type: ObjectType) -> List[RiskRule]:
        return [rule for rule in self.risk_rules if rule.object_type == object_type]

    def field_for(self, concept_name: str, category: Optional[str] = None) -> Optional[str]:
        """CRM field mapped to a concept, or None when unmapped/calculated."""
        for mapping in self.field_mappings:
            if mapping.concept_name == concept_name and (category is None or mapping.category == category):
                return mapping.salesforce_field
        return None
