"""
Role Hierarchy Tests - Sales Dashboard Engine
tests/test_role_hierarchy.py

Subordinate resolution through the role tree, the ManagerId fallback,
caching and failure handling.
"""
import asyncio

import pytest

from dashboard_engine.core.exceptions import HierarchyLookupError
from dashboard_engine.models.dashboard import DirectoryUser, HierarchySnapshot, RoleNode
from dashboard_engine.models.enumerations import HierarchySource
from dashboard_engine.services.role_hierarchy import (
    RoleHierarchyService,
    compute_hierarchy,
    subordinate_role_ids,
)

from tests.conftest import ROLES


@pytest.fixture
def service(directory, memory_cache):
    return RoleHierarchyService(directory, cache=memory_cache, ttl_seconds=1800)


class TestSubordinateRoleIds:

    def test_walks_whole_subtree(self):
        assert subordinate_role_ids("R1", ROLES) == {"R2", "R3", "R4"}

    def test_leaf_role(self):
        assert subordinate_role_ids("R3", ROLES) == set()

    def test_unknown_role(self):
        assert subordinate_role_ids("R404", ROLES) == set()

    def test_cycle_terminates(self):
        roles = [
            RoleNode(id="A", parent_role_id="C"),
            RoleNode(id="B", parent_role_id="A"),
            RoleNode(id="C", parent_role_id="B"),
        ]
        assert subordinate_role_ids("A", roles) == {"B", "C"}


class TestComputeHierarchy:

    def test_role_walk(self, org_snapshots):
        result = compute_hierarchy("u1", org_snapshots["u1"])
        assert result.subordinate_user_ids == ["u2", "u3", "u6"]
        assert result.source == HierarchySource.ROLE_HIERARCHY
        assert result.user_role_id == "R1"

    def test_inactive_users_excluded(self, org_snapshots):
        assert "u4" not in compute_hierarchy("u1", org_snapshots["u1"]).subordinate_user_ids

    def test_manager_fallback(self, org_snapshots):
        result = compute_hierarchy("u5", org_snapshots["u5"])
        assert result.subordinate_user_ids == ["u7"]
        assert result.source == HierarchySource.MANAGER_ID

    def test_no_subordinates(self, org_snapshots):
        result = compute_hierarchy("u3", org_snapshots["u3"])
        assert result.subordinate_user_ids == []
        assert result.source == HierarchySource.NONE

    def test_no_role_uses_manager_id(self):
        snapshot = HierarchySnapshot(users=[
            DirectoryUser(id="m1"),
            DirectoryUser(id="r1", manager_id="m1"),
            DirectoryUser(id="r2", manager_id="m1", is_active=False),
        ])
        result = compute_hierarchy("m1", snapshot)
        assert result.subordinate_user_ids == ["r1"]
        assert result.source == HierarchySource.MANAGER_ID

    def test_viewer_never_own_subordinate(self):
        snapshot = HierarchySnapshot(
            viewer_role_id="A",
            roles=[RoleNode(id="A", parent_role_id="B"), RoleNode(id="B", parent_role_id="A")],
            users=[DirectoryUser(id="me", role_id="B"), DirectoryUser(id="peer", role_id="B")],
        )
        assert compute_hierarchy("me", snapshot).subordinate_user_ids == ["peer"]


class TestRoleHierarchyService:

    def test_loads_and_caches(self, service, directory):
        first = asyncio.run(service.get_hierarchy("u1", "org-1"))
        second = asyncio.run(service.get_hierarchy("u1", "org-1"))
        assert first == second
        assert directory.calls == [("u1", "org-1")]

    def test_cache_is_per_org(self, service, directory):
        asyncio.run(service.get_hierarchy("u1", "org-1"))
        asyncio.run(service.get_hierarchy("u1", "org-2"))
        assert directory.calls == [("u1", "org-1"), ("u1", "org-2")]

    def test_reloads_after_ttl(self, service, directory, clock):
        asyncio.run(service.get_hierarchy("u1", "org-1"))
        clock.advance(1799)
        asyncio.run(service.get_hierarchy("u1", "org-1"))
        assert len(directory.calls) == 1
        clock.advance(1)
        asyncio.run(service.get_hierarchy("u1", "org-1"))
        assert len(directory.calls) == 2

    def test_get_subordinate_ids(self, service):
        assert asyncio.run(service.get_subordinate_ids("u5", "org-1")) == ["u7"]

    def test_failure_raises_and_is_not_cached(self, failing_directory, memory_cache):
        service = RoleHierarchyService(failing_directory, cache=memory_cache)
        with pytest.raises(HierarchyLookupError) as exc_info:
            asyncio.run(service.get_hierarchy("u1", "org-1"))
        assert exc_info.value.reason == "INVALID_SESSION_ID"
        assert exc_info.value.user_id == "u1"
        assert len(memory_cache) == 0

        failing_directory.error = None
        failing_directory.snapshots = {"u1": HierarchySnapshot()}
        result = asyncio.run(service.get_hierarchy("u1", "org-1"))
        assert result.source == HierarchySource.NONE
        assert len(failing_directory.calls) == 2

    def test_invalidate_single_org(self, service, directory):
        asyncio.run(service.get_hierarchy("u1", "org-1"))
        service.invalidate("u1", "org-1")
        asyncio.run(service.get_hierarchy("u1", "org-1"))
        assert len(directory.calls) == 2

    def test_invalidate_all_orgs(self, service, directory, memory_cache):
        asyncio.run(service.get_hierarchy("u1", "org-1"))
        asyncio.run(service.get_hierarchy("u1", "org-2"))
        asyncio.run(service.get_hierarchy("u5", "org-1"))
        service.invalidate("u1")
        assert len(memory_cache) == 1

    def test_cache_key(self):
        assert RoleHierarchyService.cache_key("u1", "org-1") == "roleHierarchy:u1:org-1"
