"""
Dependencies - Sales Dashboard Engine
dashboard_engine/core/dependencies.py

Process-wide service instances for the host application.
"""

from functools import lru_cache

from dashboard_engine.services.config_store import ConfigStore
from dashboard_engine.services.dashboard_aggregator import DashboardAggregator
from dashboard_engine.services.scope_resolver import ScopeResolver


@lru_cache()
def get_config_store() -> ConfigStore:
    """Get cached ConfigStore instance."""
    return ConfigStore()


@lru_cache()
def get_scope_resolver() -> ScopeResolver:
    """Get cached ScopeResolver instance (no hierarchy directory attached)."""
    return ScopeResolver()


@lru_cache()
def get_dashboard_aggregator() -> DashboardAggregator:
    """Get cached DashboardAggregator instance."""
    return DashboardAggregator(scope_resolver=get_scope_resolver())
