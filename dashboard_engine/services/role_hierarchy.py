"""
Role Hierarchy Service - Sales Dashboard Engine
dashboard_engine/services/role_hierarchy.py

Resolves the subordinate user ids of a viewer for "team" scope.

Walks the CRM role tree breadth-first below the viewer's role and collects
the active users holding those roles. When that finds nobody, falls back
to the users whose ManagerId is the viewer. Results are cached per
(user, org) for HIERARCHY_CACHE_TTL_SECONDS (30 minutes).
"""
import redis
import structlog
from collections import deque
from typing import Dict, List, Optional, Protocol, Set

from dashboard_engine.core.exceptions import HierarchyLookupError
from dashboard_engine.models.dashboard import HierarchySnapshot, RoleHierarchyResult, RoleNode
from dashboard_engine.models.enumerations import HierarchySource
from dashboard_engine.services.cache import TTL_ROLE_HIERARCHY, get_hierarchy_cache
from dashboard_engine.services.ttl_cache import TTLCache

logger = structlog.get_logger(__name__)

CACHE_NAMESPACE = "roleHierarchy"


class HierarchyDirectory(Protocol):
    """Upstream source of roles and users (the CRM)."""

    async def load_snapshot(self, user_id: str, org_id: str) -> HierarchySnapshot:
        ...


def subordinate_role_ids(root_role_id: str, roles: List[RoleNode]) -> Set[str]:
    """All role ids below root_role_id (the root itself excluded)."""
    children: Dict[str, List[str]] = {}
    for role in roles:
        if role.parent_role_id:
            children.setdefault(role.parent_role_id, []).append(role.id)

    found: Set[str] = set()
    queue = deque([root_role_id])
    while queue:
        current = queue.popleft()
        for child_id in children.get(current, []):
            if child_id not in found and child_id != root_role_id:
                found.add(child_id)
                queue.append(child_id)
    return found


def compute_hierarchy(user_id: str, snapshot: HierarchySnapshot) -> RoleHierarchyResult:
    """Subordinates of user_id within one directory snapshot."""
    active = [user for user in snapshot.users if user.is_active]
    subordinates: List[str] = []
    source = HierarchySource.NONE

    if snapshot.viewer_role_id and snapshot.roles:
        role_ids = subordinate_role_ids(snapshot.viewer_role_id, snapshot.roles)
        subordinates = [
            user.id for user in active
            if user.id != user_id and user.role_id and user.role_id in role_ids
        ]
        source = HierarchySource.ROLE_HIERARCHY

    if not subordinates:
        subordinates = [user.id for user in active if user.manager_id == user_id and user.id != user_id]
        source = HierarchySource.MANAGER_ID if subordinates else HierarchySource.NONE

    return RoleHierarchyResult(
        user_id=user_id,
        user_role_id=snapshot.viewer_role_id,
        subordinate_user_ids=subordinates,
        source=source,
    )


class RoleHierarchyService:
    """Cached subordinate lookups on top of a HierarchyDirectory."""

    def __init__(
        self,
        directory: HierarchyDirectory,
        cache: Optional[TTLCache] = None,
        ttl_seconds: int = TTL_ROLE_HIERARCHY,
    ):
        self.directory = directory
        self.ttl_seconds = ttl_seconds
        self.cache = cache if cache is not None else get_hierarchy_cache()

    @staticmethod
    def cache_key(user_id: str, org_id: str) -> str:
        return f"{CACHE_NAMESPACE}:{user_id}:{org_id}"

    async def get_hierarchy(self, user_id: str, org_id: str) -> RoleHierarchyResult:
        """
        Subordinates of user_id in org_id, from cache when fresh.

        Raises:
            HierarchyLookupError: if the directory lookup fails. Failures are
                not cached.
        """
        key = self.cache_key(user_id, org_id)
        try:
            cached = self.cache.get(key, RoleHierarchyResult)
        except (redis.RedisError, ValueError) as exc:
            logger.warning("hierarchy_cache_read_failed", user_id=user_id, org_id=org_id, error=str(exc))
            cached = None
        if cached is not None:
            logger.debug("hierarchy_cache_hit", user_id=user_id, org_id=org_id)
            return cached

        try:
            snapshot = await self.directory.load_snapshot(user_id, org_id)
        except HierarchyLookupError:
            raise
        except Exception as exc:
            raise HierarchyLookupError(user_id, org_id, reason=str(exc) or type(exc).__name__) from exc

        result = compute_hierarchy(user_id, snapshot)
        try:
            self.cache.set(key, result, self.ttl_seconds)
        except redis.RedisError as exc:
            logger.warning("hierarchy_cache_write_failed", user_id=user_id, org_id=org_id, error=str(exc))
        logger.info(
            "hierarchy_loaded",
            user_id=user_id,
            org_id=org_id,
            source=result.source.value,
            subordinate_count=len(result.subordinate_user_ids),
        )
        return result

    async def get_subordinate_ids(self, user_id: str, org_id: str) -> List[str]:
        result = await self.get_hierarchy(user_id, org_id)
        return list(result.subordinate_user_ids)

    def invalidate(self, user_id: str, org_id: Optional[str] = None) -> None:
        """Drop one (user, org) entry, or every org's entry for the user."""
        if org_id is None:
            self.cache.invalidate_prefix(f"{CACHE_NAMESPACE}:{user_id}:")
        else:
            self.cache.invalidate(self.cache_key(user_id, org_id))
