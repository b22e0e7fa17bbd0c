"""
URL configuration for workspace API.

URL Structure:
    Workspaces:
        /                                   GET, POST
        /active/                            GET
        /switch/                            POST
        /slug/generate/                     GET
        /slug/check/                        GET
        /{id}/                              GET, PATCH, DELETE
        /{id}/archive/                      POST
        /{id}/export/                       POST
        /{id}/leave/                        POST
        /{id}/transfer-ownership/           POST

    Members:
        /{id}/members/                      GET
        /{id}/members/{user_id}/            PATCH, DELETE

    Invitations:
        /{id}/invitations/                  GET, POST
        /{id}/invitations/bulk/             POST

All URLs are prefixed with /api/v1/workspaces/ in the main URL configuration.
Token-addressed invitation URLs live in invitation_urls.py.
"""

from django.urls import path

from workspaces.views import MemberViewSet, WorkspaceInvitationViewSet, WorkspaceViewSet

app_name = "workspaces"

urlpatterns = [
    path(
        "",
        WorkspaceViewSet.as_view({"get": "list", "post": "create"}),
        name="workspace-list",
    ),
    path(
        "active/",
        WorkspaceViewSet.as_view({"get": "active"}),
        name="workspace-active",
    ),
    path(
        "switch/",
        WorkspaceViewSet.as_view({"post": "switch"}),
        name="workspace-switch",
    ),
    path(
        "slug/generate/",
        WorkspaceViewSet.as_view({"get": "generate_slug"}),
        name="workspace-slug-generate",
    ),
    path(
        "slug/check/",
        WorkspaceViewSet.as_view({"get": "check_slug"}),
        name="workspace-slug-check",
    ),
    path(
        "<uuid:pk>/",
        WorkspaceViewSet.as_view(
            {"get": "retrieve", "patch": "partial_update", "delete": "destroy"}
        ),
        name="workspace-detail",
    ),
    path(
        "<uuid:pk>/archive/",
        WorkspaceViewSet.as_view({"post": "archive"}),
        name="workspace-archive",
    ),
    path(
        "<uuid:pk>/export/",
        WorkspaceViewSet.as_view({"post": "export"}),
        name="workspace-export",
    ),
    path(
        "<uuid:pk>/leave/",
        WorkspaceViewSet.as_view({"post": "leave"}),
        name="workspace-leave",
    ),
    path(
        "<uuid:pk>/transfer-ownership/",
        WorkspaceViewSet.as_view({"post": "transfer_ownership"}),
        name="workspace-transfer-ownership",
    ),
    # Nested routes for members
    path(
        "<uuid:workspace_pk>/members/",
        MemberViewSet.as_view({"get": "list"}),
        name="workspace-member-list",
    ),
    path(
        "<uuid:workspace_pk>/members/<int:user_pk>/",
        MemberViewSet.as_view({"patch": "partial_update", "delete": "destroy"}),
        name="workspace-member-detail",
    ),
    # Nested routes for invitations
    path(
        "<uuid:workspace_pk>/invitations/",
        WorkspaceInvitationViewSet.as_view({"get": "list", "post": "create"}),
        name="workspace-invitation-list",
    ),
    path(
        "<uuid:workspace_pk>/invitations/bulk/",
        WorkspaceInvitationViewSet.as_view({"post": "bulk"}),
        name="workspace-invitation-bulk",
    ),
]
