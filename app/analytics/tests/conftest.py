"""
Test configuration and fixtures for analytics tests.

The clock is frozen at 2026-03-15 15:00 UTC (12:00 in Sao Paulo) so report
windows and local-day buckets are deterministic.

Usage:
    def test_example(workspace, window, owner_client):
        response = owner_client.get("/api/v1/analytics/kpis/", window.params)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

import pytest
from freezegun import freeze_time

from analytics.services import ReportFilters
from authentication.tests.factories import UserFactory
from workspaces.models import WorkspaceRole
from workspaces.tests.conftest import make_client
from workspaces.tests.factories import WorkspaceFactory, WorkspaceMemberFactory

NOW = datetime(2026, 3, 15, 15, 0, tzinfo=dt_timezone.utc)


@dataclass
class Window:
    date_from: datetime
    date_to: datetime
    tz: str = "America/Sao_Paulo"

    @property
    def filters(self) -> ReportFilters:
        return ReportFilters(date_from=self.date_from, date_to=self.date_to, tz=self.tz)

    @property
    def params(self) -> dict:
        return {
            "from": self.date_from.isoformat(),
            "to": self.date_to.isoformat(),
            "tz": self.tz,
        }


@pytest.fixture(autouse=True)
def frozen_now():
    with freeze_time(NOW):
        yield NOW


@pytest.fixture
def window():
    """The 30 days up to now."""
    return Window(date_from=NOW - timedelta(days=30), date_to=NOW)


@pytest.fixture
def owner(db):
    return UserFactory(email="owner@example.com")


@pytest.fixture
def workspace(owner):
    workspace = WorkspaceFactory(name="Acme Inc", slug="acme-inc", owner=owner)
    owner.active_workspace = workspace
    owner.save(update_fields=["active_workspace"])
    return workspace


@pytest.fixture
def other_workspace(db):
    return WorkspaceFactory(name="Globex", slug="globex")


@pytest.fixture
def member_user(workspace):
    user = UserFactory(email="member@example.com")
    WorkspaceMemberFactory(workspace=workspace, user=user, role=WorkspaceRole.MEMBER)
    user.active_workspace = workspace
    user.save(update_fields=["active_workspace"])
    return user


@pytest.fixture
def owner_client(owner, workspace):
    """Owner with `workspace` active."""
    return make_client(owner)


@pytest.fixture
def member_client(member_user):
    return make_client(member_user)
