"""
Custom Exceptions - Sales Dashboard Engine
dashboard_engine/core/exceptions.py

Custom exception classes for configuration, scope and view handling.
"""
from typing import Optional


class EngineException(Exception):
    """Base exception for engine operations."""

    pass


class ConfigurationError(EngineException):
    """Configuration rejected on the write path."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class WeightSumError(ConfigurationError):
    """Component weights do not add up to 100."""

    def __init__(self, total: float, role: Optional[str] = None):
        self.total = total
        self.role = role
        label = f"{role.upper()} component" if role else "Default component"
        super().__init__(
            f"{label} weights must sum to 100%. Current total: {total:g}%",
            field="priorityScoring",
        )


class HierarchyLookupError(EngineException):
    """Organizational hierarchy could not be loaded upstream."""

    def __init__(self, user_id: str, org_id: str, reason: str = "lookup failed"):
        self.user_id = user_id
        self.org_id = org_id
        self.reason = reason
        super().__init__(f"Role hierarchy for user {user_id} in org {org_id}: {reason}")


class UnknownViewError(EngineException):
    """Requested dashboard view is not defined."""

    def __init__(self, view: str):
        self.view = view
        super().__init__(f"Unknown dashboard view: {view}")
