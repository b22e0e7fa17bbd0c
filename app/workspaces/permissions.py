"""
Permission classes for workspace-scoped APIs.

- HasActiveWorkspace: User has selected a workspace they still belong to
- IsActiveWorkspaceManager: User is owner or admin of that workspace

Role checks for workspace, member and invitation operations live in the
service layer; these classes guard APIs that act on "the current
workspace" implicitly, such as analytics.

Usage:
    class KpisView(APIView):
        permission_classes = [IsAuthenticated, IsActiveWorkspaceManager]

        def get(self, request):
            workspace = request.workspace_membership.workspace
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from workspaces.services import get_membership

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class HasActiveWorkspace(permissions.BasePermission):
    """
    Allows access only when the user's active workspace is usable.

    On success the membership is stored on `request.workspace_membership`.
    """

    message = "Select a workspace first."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        if not user.is_authenticated or not user.active_workspace_id:
            return False

        membership = get_membership(user, user.active_workspace_id)
        if membership is None:
            return False

        request.workspace_membership = membership
        return True


class IsActiveWorkspaceManager(HasActiveWorkspace):
    """Allows access only to owners and admins of the active workspace."""

    message = "Only workspace owners and admins can access this resource."

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not super().has_permission(request, view):
            return False
        return request.workspace_membership.can_manage
