# tests/conftest.py

"""
Pytest Fixtures - Shared test configurations and data for the dashboard engine

REFERENCE DATA:
- Reference time:  2026-03-15 12:00 UTC (Q1 2026; next quarter Q2 2026)
- Users:           u1 (VP, viewer) -> u2, u6 (managers) -> u3 (rep); u4 inactive;
                   u5 in an unrelated role, u7 reports to u5 by ManagerId only
- Org:             org-1
"""

from datetime import datetime, timedelta, timezone

import pytest

from dashboard_engine.models.dashboard import (
    DirectoryUser,
    HierarchySnapshot,
    RoleNode,
    Viewer,
)
from dashboard_engine.models.defaults import build_default_config
from dashboard_engine.models.enumerations import AppRole
from dashboard_engine.services.ttl_cache import InMemoryTTLCache

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> str:
    """CRM-style timestamp `days` before NOW."""
    return (NOW - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%S.000+0000")


def days_ahead(days: float) -> datetime:
    return NOW + timedelta(days=days)


# =============================================================================
# HIERARCHY DIRECTORY FAKE
# =============================================================================

class FakeDirectory:
    """In-memory HierarchyDirectory that records calls and can fail on demand."""

    def __init__(self, snapshots=None, error=None):
        self.snapshots = snapshots or {}
        self.error = error
        self.calls = []

    async def load_snapshot(self, user_id, org_id):
        self.calls.append((user_id, org_id))
        if self.error is not None:
            raise self.error
        return self.snapshots.get(user_id, HierarchySnapshot())


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


ROLES = [
    RoleNode(id="R1", parent_role_id=None, name="VP Sales"),
    RoleNode(id="R2", parent_role_id="R1", name="Sales Manager"),
    RoleNode(id="R3", parent_role_id="R2", name="Account Executive"),
    RoleNode(id="R4", parent_role_id="R1", name="Sales Ops"),
    RoleNode(id="R5", parent_role_id=None, name="Customer Success"),
]

USERS = [
    DirectoryUser(id="u1", role_id="R1"),
    DirectoryUser(id="u2", role_id="R2", manager_id="u1"),
    DirectoryUser(id="u3", role_id="R3", manager_id="u2"),
    DirectoryUser(id="u4", role_id="R4", manager_id="u1", is_active=False),
    DirectoryUser(id="u5", role_id="R5"),
    DirectoryUser(id="u6", role_id="R2", manager_id="u1"),
    DirectoryUser(id="u7", role_id=None, manager_id="u5"),
]


@pytest.fixture
def org_snapshots():
    """Directory snapshots keyed by viewer id."""
    return {
        "u1": HierarchySnapshot(viewer_role_id="R1", roles=ROLES, users=USERS),
        "u5": HierarchySnapshot(viewer_role_id="R5", roles=ROLES, users=USERS),
        "u3": HierarchySnapshot(viewer_role_id="R3", roles=ROLES, users=USERS),
    }


@pytest.fixture
def directory(org_snapshots):
    return FakeDirectory(org_snapshots)


@pytest.fixture
def failing_directory():
    return FakeDirectory(error=RuntimeError("INVALID_SESSION_ID"))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_cache(clock):
    return InMemoryTTLCache(clock=clock)


# =============================================================================
# CONFIG / VIEWER FIXTURES
# =============================================================================

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def default_config():
    """Factory-default AppConfig (version 1)."""
    return build_default_config()


@pytest.fixture
def priority_config(default_config):
    return default_config.priority_scoring


@pytest.fixture
def ae_viewer():
    return Viewer(user_id="u1", org_id="org-1", role=AppRole.AE)


@pytest.fixture
def leader_viewer():
    return Viewer(user_id="u1", org_id="org-1", role=AppRole.SALES_LEADER)


@pytest.fixture
def executive_viewer():
    return Viewer(user_id="u1", org_id="org-1", role=AppRole.EXECUTIVE)


# =============================================================================
# RECORD FIXTURES
# =============================================================================

@pytest.fixture
def hot_account():
    """Intent 90, 500 employees, active 3 days ago -> 36 + 30 + 30 = 96 (hot)."""
    return {
        "Id": "001A",
        "Name": "Northwind Traders",
        "OwnerId": "u1",
        "Industry": "Retail",
        "accountIntentScore6sense__c": 90,
        "Clay_Employee_Count__c": 500,
        "LastActivityDate": days_ago(3),
    }


@pytest.fixture
def warm_account():
    """Intent 50, 150 employees, active 10 days ago -> 20 + 22.5 + 22.5 = 65 (warm)."""
    return {
        "Id": "001B",
        "Name": "Contoso Ltd",
        "OwnerId": "u1",
        "Industry": "Manufacturing",
        "accountIntentScore6sense__c": 50,
        "Clay_Employee_Count__c": 150,
        "LastActivityDate": days_ago(10),
    }


@pytest.fixture
def account_batch(hot_account, warm_account):
    """Accounts for u1 and u2, including two Hyatt properties."""
    return [
        hot_account,
        warm_account,
        {
            "Id": "001C",
            "Name": "Park Hyatt",
            "OwnerId": "u1",
            "Industry": "Hospitality",
            "accountIntentScore6sense__c": 40,
            "Clay_Employee_Count__c": 80,
            "LastActivityDate": days_ago(20),
        },
        {
            "Id": "001D",
            "Name": "Grand Hyatt",
            "OwnerId": "u1",
            "Industry": "Hospitality",
            "accountIntentScore6sense__c": 80,
            "Clay_Employee_Count__c": 300,
            "LastActivityDate": days_ago(5),
        },
        {
            "Id": "001E",
            "Name": "Fabrikam Inc",
            "OwnerId": "u2",
            "Industry": "Software",
            "accountIntentScore6sense__c": 70,
            "Clay_Employee_Count__c": 1200,
            "LastActivityDate": days_ago(1),
        },
    ]


@pytest.fixture
def opportunity_batch():
    """Opportunities owned by u1 with varied staleness and stages."""
    return [
        {
            "Id": "006A",
            "Name": "Northwind Expansion",
            "OwnerId": "u1",
            "StageName": "Negotiation",
            "IsClosed": False,
            "Amount": 120000,
            "CloseDate": "2026-03-28",
            "ForecastCategory": "Commit",
            "LastModifiedDate": days_ago(40),
            "NextStep": "Send redlines",
            "Account": {"Name": "Northwind Traders"},
        },
        {
            "Id": "006B",
            "Name": "Contoso Pilot",
            "OwnerId": "u1",
            "StageName": "Discovery",
            "IsClosed": False,
            "Amount": 30000,
            "CloseDate": "2026-05-10",
            "ForecastCategory": "Best Case",
            "LastModifiedDate": days_ago(20),
            "MEDDPICC_Overall_Score__c": 45,
            "Account": {"Name": "Contoso Ltd"},
        },
        {
            "Id": "006C",
            "Name": "Fresh Deal",
            "OwnerId": "u1",
            "StageName": "Technical Evaluation",
            "IsClosed": False,
            "Amount": 50000,
            "CloseDate": "2026-03-20",
            "ForecastCategory": "Pipeline",
            "LastModifiedDate": days_ago(2),
            "NextStep": "Demo",
            "Account": {"Name": "Fabrikam Inc"},
        },
        {
            "Id": "006D",
            "Name": "Early Prospect",
            "OwnerId": "u1",
            "StageName": "Prospecting",
            "IsClosed": False,
            "Amount": 10000,
            "CloseDate": "2026-04-15",
            "ForecastCategory": "Pipeline",
            "LastModifiedDate": days_ago(60),
            "Account": {"Name": "Tailspin Toys"},
        },
        {
            "Id": "006E",
            "Name": "Closed Won Deal",
            "OwnerId": "u1",
            "StageName": "Negotiation",
            "IsClosed": True,
            "Amount": 75000,
            "CloseDate": "2026-03-01",
            "ForecastCategory": "Closed",
            "LastModifiedDate": days_ago(45),
            "Account": {"Name": "Wide World Importers"},
        },
        {
            "Id": "006F",
            "Name": "Next Year Deal",
            "OwnerId": "u1",
            "StageName": "Discovery",
            "IsClosed": False,
            "Amount": 90000,
            "CloseDate": "2026-09-30",
            "ForecastCategory": "Pipeline",
            "LastModifiedDate": days_ago(16),
            "Account": {"Name": "Adventure Works"},
        },
        {
            "Id": "006G",
            "Name": "Teammate Deal",
            "OwnerId": "u2",
            "StageName": "Negotiation",
            "IsClosed": False,
            "Amount": 65000,
            "CloseDate": "2026-03-25",
            "ForecastCategory": "Commit",
            "LastModifiedDate": days_ago(35),
            "Account": {"Name": "Litware"},
        },
    ]
