"""
Test configuration and fixtures for workspace tests.

Fixtures build one workspace with an owner, an admin and a member, plus
JWT-authenticated API clients for each role.

Usage:
    def test_example(workspace, owner_client):
        response = owner_client.get(f"/api/v1/workspaces/{workspace.id}/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from workspaces.models import WorkspaceRole
from workspaces.tests.factories import (
    InvitationFactory,
    WorkspaceFactory,
    WorkspaceMemberFactory,
)


def make_client(user) -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


# =============================================================================
# Users & memberships
# =============================================================================


@pytest.fixture
def owner(db):
    return UserFactory(email="owner@example.com", full_name="Olivia Owner")


@pytest.fixture
def workspace(owner):
    """Workspace owned by `owner` and active for them."""
    workspace = WorkspaceFactory(name="Acme Inc", slug="acme-inc", owner=owner)
    owner.active_workspace = workspace
    owner.save(update_fields=["active_workspace"])
    return workspace


@pytest.fixture
def admin_user(workspace):
    user = UserFactory(email="admin@example.com", full_name="Adam Admin")
    WorkspaceMemberFactory(workspace=workspace, user=user, role=WorkspaceRole.ADMIN)
    user.active_workspace = workspace
    user.save(update_fields=["active_workspace"])
    return user


@pytest.fixture
def member_user(workspace):
    user = UserFactory(email="member@example.com", full_name="Mia Member")
    WorkspaceMemberFactory(workspace=workspace, user=user, role=WorkspaceRole.MEMBER)
    user.active_workspace = workspace
    user.save(update_fields=["active_workspace"])
    return user


@pytest.fixture
def outsider(db):
    """Authenticated user with no membership in `workspace`."""
    return UserFactory(email="outsider@example.com")


@pytest.fixture
def invitation(workspace, owner):
    return InvitationFactory(
        workspace=workspace, email="invitee@example.com", invited_by=owner
    )


# =============================================================================
# API clients
# =============================================================================


@pytest.fixture
def owner_client(owner):
    return make_client(owner)


@pytest.fixture
def admin_client(admin_user):
    return make_client(admin_user)


@pytest.fixture
def member_client(member_user):
    return make_client(member_user)


@pytest.fixture
def outsider_client(outsider):
    return make_client(outsider)
