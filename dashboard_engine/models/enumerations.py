from enum import Enum


class AppRole(str, Enum):
    AE = "ae"                        # Account executive
    AM = "am"                        # Account manager
    CSM = "csm"                      # Customer success manager
    ADMIN = "admin"
    SALES_LEADER = "sales-leader"
    EXECUTIVE = "executive"
    UNKNOWN = "unknown"


class OwnershipScope(str, Enum):
    MINE = "mine"
    TEAM = "team"
    ALL = "all"

    @classmethod
    def _missing_(cls, value):
        # list views and saved presets still send "my"
        if isinstance(value, str) and value.lower() in ("my", "mine"):
            return cls.MINE
        return None


class TierName(str, Enum):
    HOT = "hot"
    WARM = "warm"
    COOL = "cool"
    COLD = "cold"


class RiskFlag(str, Enum):
    WARNING = "warning"
    AT_RISK = "at-risk"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        return _FLAG_SEVERITY[self]


_FLAG_SEVERITY = {
    RiskFlag.WARNING: 1,
    RiskFlag.AT_RISK: 2,
    RiskFlag.CRITICAL: 3,
}


class ObjectType(str, Enum):
    ACCOUNT = "Account"
    OPPORTUNITY = "Opportunity"


class RuleLogic(str, Enum):
    AND = "AND"
    OR = "OR"


class ConditionOperator(str, Enum):
    EQ = "="
    NEQ = "!="
    LT = "<"
    GT = ">"
    LTE = "<="
    GTE = ">="
    IN = "IN"
    NOT_IN = "NOT IN"
    CONTAINS = "contains"
    BETWEEN = "between"              # list-view filters only

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return _OPERATOR_ALIASES.get(value.strip().lower())
        return None


_OPERATOR_ALIASES = {
    "eq": ConditionOperator.EQ,
    "==": ConditionOperator.EQ,
    "neq": ConditionOperator.NEQ,
    "<>": ConditionOperator.NEQ,
    "lt": ConditionOperator.LT,
    "gt": ConditionOperator.GT,
    "lte": ConditionOperator.LTE,
    "gte": ConditionOperator.GTE,
    "in": ConditionOperator.IN,
    "not_in": ConditionOperator.NOT_IN,
    "not in": ConditionOperator.NOT_IN,
    "contains": ConditionOperator.CONTAINS,
    "between": ConditionOperator.BETWEEN,
}


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.DESC if value.strip().upper() == "DESC" else cls.ASC
        return None


class DashboardView(str, Enum):
    PRIORITY_ACCOUNTS = "priority_accounts"
    AT_RISK_DEALS = "at_risk_deals"
    PIPELINE_FORECAST = "pipeline_forecast"
    RENEWALS = "renewals"


class HierarchySource(str, Enum):
    ROLE_HIERARCHY = "role_hierarchy"
    MANAGER_ID = "manager_id"
    NONE = "none"


class RenewalRisk(str, Enum):
    AT_RISK = "At Risk"
    ON_TRACK = "On Track"
    EXPANSION = "Expansion Opportunity"
