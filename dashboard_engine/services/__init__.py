"""
services/ - Sales Dashboard Engine services

Modules:
    ttl_cache.py             - TTLCache interface and in-memory implementation
    redis_cache.py           - Redis-backed TTLCache
    cache.py                 - Hierarchy cache singleton and TTL constants
    role_hierarchy.py        - Subordinate lookup with caching (RoleHierarchyService)
    scope_resolver.py        - Ownership scope to owner-id filter (ScopeResolver)
    config_store.py          - Versioned AppConfig snapshots (ConfigStore)
    record_filter.py         - List-view filters, search, sort, paging
    dashboard_aggregator.py  - View shaping pipeline (DashboardAggregator)
"""
