"""
Scope Resolver - Sales Dashboard Engine
dashboard_engine/services/scope_resolver.py

Turns a viewer and an ownership scope into the owner-id filter applied to
a list view:

    mine  -> {viewer}
    team  -> {viewer} ∪ subordinates(viewer, org)
    all   -> None (no ownership filter)

A failed hierarchy lookup degrades team scope to {viewer} instead of
failing the request.
"""
import structlog
from typing import Optional, Union

from dashboard_engine.core.exceptions import HierarchyLookupError
from dashboard_engine.models.config import ScopeDefaults
from dashboard_engine.models.dashboard import ScopeResolution, Viewer
from dashboard_engine.models.enumerations import OwnershipScope
from dashboard_engine.services.role_hierarchy import RoleHierarchyService

logger = structlog.get_logger(__name__)


class ScopeResolver:
    def __init__(
        self,
        hierarchy: Optional[RoleHierarchyService] = None,
        scope_defaults: Optional[ScopeDefaults] = None,
    ):
        self.hierarchy = hierarchy
        self.scope_defaults = scope_defaults or ScopeDefaults()

    def default_scope(self, viewer: Viewer, scope_defaults: Optional[ScopeDefaults] = None) -> OwnershipScope:
        return (scope_defaults or self.scope_defaults).for_role(viewer.role)

    async def resolve_scope(
        self,
        viewer: Viewer,
        scope: Optional[Union[OwnershipScope, str]] = None,
        scope_defaults: Optional[ScopeDefaults] = None,
    ) -> ScopeResolution:
        """
        Args:
            viewer: Requesting user.
            scope: Requested scope; None uses the role's default.
            scope_defaults: Per-request defaults (from the active AppConfig);
                            falls back to the resolver's own.

        Returns:
            ScopeResolution; owner_ids is None for "all".
        """
        resolved = OwnershipScope(scope) if scope is not None else self.default_scope(viewer, scope_defaults)

        if resolved == OwnershipScope.ALL:
            resolution = ScopeResolution(scope=resolved, owner_ids=None)
        elif resolved == OwnershipScope.MINE:
            resolution = ScopeResolution(scope=resolved, owner_ids=frozenset({viewer.user_id}))
        else:
            resolution = await self._resolve_team(viewer)

        logger.debug(
            "scope_resolved",
            user_id=viewer.user_id,
            role=viewer.role.value,
            scope=resolution.scope.value,
            owner_count=None if resolution.owner_ids is None else len(resolution.owner_ids),
            degraded=resolution.degraded,
        )
        return resolution

    async def _resolve_team(self, viewer: Viewer) -> ScopeResolution:
        own = frozenset({viewer.user_id})
        if self.hierarchy is None:
            logger.warning(
                "scope_degraded",
                user_id=viewer.user_id,
                org_id=viewer.org_id,
                reason="no hierarchy service configured",
            )
            return ScopeResolution(scope=OwnershipScope.TEAM, owner_ids=own, degraded=True)

        try:
            subordinates = await self.hierarchy.get_subordinate_ids(viewer.user_id, viewer.org_id)
        except HierarchyLookupError as exc:
            logger.warning(
                "scope_degraded",
                user_id=viewer.user_id,
                org_id=viewer.org_id,
                reason=exc.reason,
            )
            return ScopeResolution(scope=OwnershipScope.TEAM, owner_ids=own, degraded=True)

        return ScopeResolution(scope=OwnershipScope.TEAM, owner_ids=own | frozenset(subordinates))
