"""
ViewSets for workspace API.

This module provides REST API endpoints for team workspaces:
- WorkspaceViewSet: Workspace CRUD and actions
- MemberViewSet: Member management (nested under workspace)
- WorkspaceInvitationViewSet: Invitations of one workspace
- InvitationViewSet: Invitation lookup, accept, cancel and resend

URL Structure:
    /api/v1/workspaces/                              GET, POST
    /api/v1/workspaces/active/                       GET
    /api/v1/workspaces/switch/                       POST
    /api/v1/workspaces/slug/generate/                GET
    /api/v1/workspaces/slug/check/                   GET
    /api/v1/workspaces/{id}/                         GET, PATCH, DELETE
    /api/v1/workspaces/{id}/archive/                 POST
    /api/v1/workspaces/{id}/export/                  POST
    /api/v1/workspaces/{id}/leave/                   POST
    /api/v1/workspaces/{id}/transfer-ownership/      POST
    /api/v1/workspaces/{id}/members/                 GET
    /api/v1/workspaces/{id}/members/{user_id}/       PATCH, DELETE
    /api/v1/workspaces/{id}/invitations/             GET, POST
    /api/v1/workspaces/{id}/invitations/bulk/        POST
    /api/v1/invitations/accept/                      POST
    /api/v1/invitations/{id}/cancel/                 POST
    /api/v1/invitations/{id}/resend/                 POST
    /api/v1/invitations/{token}/                     GET (public)

Design Decisions:
    - Views validate input shape and render results; all role checks are
      in the service layer
    - Failed ServiceResults are rendered by ServiceResultMixin
    - Export is rate limited per user with the "heavy" policy
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from core.decorators import rate_limit
from core.viewset_mixins import ServiceResultMixin

from workspaces.pagination import MemberCursorPagination
from workspaces.serializers import (
    BulkInvitationResultSerializer,
    InvitationAcceptResponseSerializer,
    InvitationBulkCreateSerializer,
    InvitationCreateSerializer,
    InvitationPreviewSerializer,
    InvitationSerializer,
    InvitationTokenSerializer,
    MemberRoleSerializer,
    MemberSerializer,
    MessageSerializer,
    SlugAvailabilitySerializer,
    SlugCheckSerializer,
    SlugGenerateSerializer,
    SwitchWorkspaceSerializer,
    TransferOwnershipSerializer,
    WorkspaceCreateSerializer,
    WorkspaceDeleteSerializer,
    WorkspaceSerializer,
    WorkspaceUpdateSerializer,
)
from workspaces.services import InvitationService, MemberService, WorkspaceService


@extend_schema_view(
    list=extend_schema(
        operation_id="list_workspaces",
        summary="List workspaces",
        tags=["Workspaces"],
        responses={200: WorkspaceSerializer(many=True)},
    ),
    create=extend_schema(
        operation_id="create_workspace",
        summary="Create workspace",
        tags=["Workspaces"],
        request=WorkspaceCreateSerializer,
        responses={
            201: WorkspaceSerializer,
            409: OpenApiResponse(description="Slug already taken"),
        },
    ),
    retrieve=extend_schema(
        operation_id="get_workspace",
        summary="Get workspace",
        tags=["Workspaces"],
        responses={200: WorkspaceSerializer, 404: OpenApiResponse(description="Not found")},
    ),
    partial_update=extend_schema(
        operation_id="update_workspace",
        summary="Update workspace",
        tags=["Workspaces"],
        request=WorkspaceUpdateSerializer,
        responses={
            200: WorkspaceSerializer,
            403: OpenApiResponse(description="Not an owner or admin"),
            409: OpenApiResponse(description="Slug already taken"),
        },
    ),
    destroy=extend_schema(
        operation_id="delete_workspace",
        summary="Delete workspace",
        tags=["Workspaces"],
        request=WorkspaceDeleteSerializer,
        responses={
            204: OpenApiResponse(description="Workspace deleted"),
            403: OpenApiResponse(description="Not the owner"),
        },
    ),
)
class WorkspaceViewSet(ServiceResultMixin, viewsets.GenericViewSet):
    """
    ViewSet for workspace operations.

    list:
        Workspaces the user belongs to, with role and member count.

    create:
        Create a workspace. The creator becomes owner and the workspace
        becomes active. The slug is generated from the name when omitted.

    retrieve:
        Workspace details. Requires membership.

    partial_update:
        Update name, slug, description, logo or settings. Owners and admins.

    destroy:
        Soft delete. Owner only, body {"confirmation": "DELETE"}.

    active / switch:
        Read or change the workspace selected in the UI.

    archive, export, leave, transfer_ownership:
        See each action.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = WorkspaceSerializer

    def list(self, request):
        result = WorkspaceService.list(request.user)
        return Response(WorkspaceSerializer(result.data, many=True).data)

    def create(self, request):
        serializer = WorkspaceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = WorkspaceService.create(request.user, **serializer.validated_data)
        if not result:
            return self.failure_response(result)
        return Response(WorkspaceSerializer(result.data).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        result = WorkspaceService.get(request.user, pk)
        if not result:
            return self.failure_response(result)
        return Response(WorkspaceSerializer(result.data).data)

    def partial_update(self, request, pk=None):
        serializer = WorkspaceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = WorkspaceService.update(request.user, pk, **serializer.validated_data)
        if not result:
            return self.failure_response(result)
        return Response(WorkspaceSerializer(result.data).data)

    def destroy(self, request, pk=None):
        serializer = WorkspaceDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = WorkspaceService.delete(
            request.user, pk, serializer.validated_data["confirmation"]
        )
        if not result:
            return self.failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="get_active_workspace",
        summary="Get active workspace",
        tags=["Workspaces"],
        responses={200: WorkspaceSerializer},
    )
    @action(detail=False, methods=["get"])
    def active(self, request):
        """Active workspace, or null when the user has none."""
        result = WorkspaceService.get_active(request.user)
        if result.data is None:
            return Response(None)
        return Response(WorkspaceSerializer(result.data).data)

    @extend_schema(
        operation_id="switch_workspace",
        summary="Switch active workspace",
        tags=["Workspaces"],
        request=SwitchWorkspaceSerializer,
        responses={
            200: WorkspaceSerializer,
            403: OpenApiResponse(description="Not a member of this workspace"),
        },
    )
    @action(detail=False, methods=["post"])
    def switch(self, request):
        serializer = SwitchWorkspaceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = WorkspaceService.switch_active(
            request.user, serializer.validated_data["workspace_id"]
        )
        if not result:
            return self.failure_response(result)
        return Response(WorkspaceSerializer(result.data).data)

    @extend_schema(
        operation_id="generate_workspace_slug",
        summary="Suggest a slug for a name",
        tags=["Workspaces"],
        parameters=[OpenApiParameter("name", OpenApiTypes.STR, required=True)],
        responses={200: OpenApiResponse(description='{"slug": "acme-inc"}')},
    )
    @action(detail=False, methods=["get"], url_path="slug/generate")
    def generate_slug(self, request):
        serializer = SlugGenerateSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        result = WorkspaceService.generate_slug(serializer.validated_data["name"])
        return Response(result.data)

    @extend_schema(
        operation_id="check_workspace_slug",
        summary="Check slug availability",
        tags=["Workspaces"],
        parameters=[
            OpenApiParameter("slug", OpenApiTypes.STR, required=True),
            OpenApiParameter("exclude_id", OpenApiTypes.UUID, required=False),
        ],
        responses={200: SlugAvailabilitySerializer},
    )
    @action(detail=False, methods=["get"], url_path="slug/check")
    def check_slug(self, request):
        serializer = SlugCheckSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        result = WorkspaceService.check_slug(
            serializer.validated_data["slug"],
            exclude_id=serializer.validated_data.get("exclude_id"),
        )
        return Response(result.data)

    @extend_schema(
        operation_id="archive_workspace",
        summary="Archive workspace",
        tags=["Workspaces"],
        request=None,
        responses={200: WorkspaceSerializer, 403: OpenApiResponse(description="Not the owner")},
    )
    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        result = WorkspaceService.archive(request.user, pk)
        if not result:
            return self.failure_response(result)
        return Response(WorkspaceSerializer(result.data).data)

    @extend_schema(
        operation_id="export_workspace",
        summary="Email a data export",
        tags=["Workspaces"],
        request=None,
        responses={
            202: MessageSerializer,
            403: OpenApiResponse(description="Not an owner or admin"),
            429: OpenApiResponse(description="Rate limit exceeded"),
        },
    )
    @action(detail=True, methods=["post"])
    @rate_limit("heavy", identifier="user_id")
    def export(self, request, pk=None):
        result = WorkspaceService.export_data(request.user, pk)
        if not result:
            return self.failure_response(result)
        return Response(result.data, status=status.HTTP_202_ACCEPTED)

    @extend_schema(
        operation_id="leave_workspace",
        summary="Leave workspace",
        tags=["Workspaces"],
        request=None,
        responses={
            204: OpenApiResponse(description="Left the workspace"),
            400: OpenApiResponse(description="Owners cannot leave"),
        },
    )
    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        result = MemberService.leave(request.user, pk)
        if not result:
            return self.failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="transfer_workspace_ownership",
        summary="Transfer ownership",
        tags=["Workspaces"],
        request=TransferOwnershipSerializer,
        responses={
            200: OpenApiResponse(description="Ownership transferred"),
            403: OpenApiResponse(description="Not the owner"),
            404: OpenApiResponse(description="New owner is not a member"),
        },
    )
    @action(detail=True, methods=["post"], url_path="transfer-ownership")
    def transfer_ownership(self, request, pk=None):
        serializer = TransferOwnershipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MemberService.transfer_ownership(
            request.user, pk, serializer.validated_data["new_owner_id"]
        )
        if not result:
            return self.failure_response(result)
        return Response({"status": "transferred"})


@extend_schema_view(
    list=extend_schema(
        operation_id="list_workspace_members",
        summary="List members",
        tags=["Workspaces - Members"],
    ),
    partial_update=extend_schema(
        operation_id="update_workspace_member_role",
        summary="Change member role",
        tags=["Workspaces - Members"],
        request=MemberRoleSerializer,
        responses={200: MemberSerializer},
    ),
    destroy=extend_schema(
        operation_id="remove_workspace_member",
        summary="Remove member",
        tags=["Workspaces - Members"],
        responses={204: OpenApiResponse(description="Member removed")},
    ),
)
class MemberViewSet(ServiceResultMixin, viewsets.GenericViewSet):
    """
    ViewSet for members of one workspace.

    list:
        Members ordered owner, admins, members, then join date.
        Cursor paginated (`cursor`, `limit` 1-100, default 50).

    partial_update:
        Change a member's role. Owner only.

    destroy:
        Remove a member. Owners remove admins and members; admins remove
        members only.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = MemberSerializer
    pagination_class = MemberCursorPagination

    def list(self, request, workspace_pk=None):
        result = MemberService.list(request.user, workspace_pk)
        if not result:
            return self.failure_response(result)

        page = self.paginate_queryset(result.data)
        serializer = MemberSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def partial_update(self, request, workspace_pk=None, user_pk=None):
        serializer = MemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MemberService.update_role(
            request.user, workspace_pk, user_pk, serializer.validated_data["role"]
        )
        if not result:
            return self.failure_response(result)
        return Response(MemberSerializer(result.data).data)

    def destroy(self, request, workspace_pk=None, user_pk=None):
        result = MemberService.remove(request.user, workspace_pk, user_pk)
        if not result:
            return self.failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_workspace_invitations",
        summary="List invitations",
        tags=["Workspaces - Invitations"],
        parameters=[
            OpenApiParameter(
                "status",
                OpenApiTypes.STR,
                required=False,
                description='"pending" to show only open invitations',
            )
        ],
        responses={200: InvitationSerializer(many=True)},
    ),
    create=extend_schema(
        operation_id="create_workspace_invitation",
        summary="Invite by email",
        tags=["Workspaces - Invitations"],
        request=InvitationCreateSerializer,
        responses={
            201: InvitationSerializer,
            403: OpenApiResponse(description="Not an owner or admin"),
            409: OpenApiResponse(description="Already a member or already invited"),
        },
    ),
)
class WorkspaceInvitationViewSet(ServiceResultMixin, viewsets.GenericViewSet):
    """
    ViewSet for the invitations of one workspace (owners and admins).

    list:
        All invitations with their status, or only pending ones with
        ?status=pending.

    create:
        Invite one address.

    bulk:
        Invite up to 50 addresses; one result per address.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = InvitationSerializer

    def list(self, request, workspace_pk=None):
        if request.query_params.get("status") == "pending":
            result = InvitationService.list_pending(request.user, workspace_pk)
        else:
            result = InvitationService.list(request.user, workspace_pk)
        if not result:
            return self.failure_response(result)
        return Response(InvitationSerializer(result.data, many=True).data)

    @rate_limit("api", identifier="user_id")
    def create(self, request, workspace_pk=None):
        serializer = InvitationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = InvitationService.create(
            request.user,
            workspace_pk,
            serializer.validated_data["email"],
            serializer.validated_data["role"],
        )
        if not result:
            return self.failure_response(result)
        return Response(InvitationSerializer(result.data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="bulk_create_workspace_invitations",
        summary="Invite several addresses",
        tags=["Workspaces - Invitations"],
        request=InvitationBulkCreateSerializer,
        responses={200: BulkInvitationResultSerializer(many=True)},
    )
    @rate_limit("api", identifier="user_id")
    def bulk(self, request, workspace_pk=None):
        serializer = InvitationBulkCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = InvitationService.create_bulk(
            request.user,
            workspace_pk,
            serializer.validated_data["emails"],
            serializer.validated_data["role"],
        )
        if not result:
            return self.failure_response(result)
        return Response(BulkInvitationResultSerializer(result.data, many=True).data)


class InvitationViewSet(ServiceResultMixin, viewsets.GenericViewSet):
    """
    ViewSet for invitations addressed by token or id.

    retrieve:
        Public preview of a pending invitation by token.

    accept:
        Accept by token. Anonymous callers get 401 telling them whether to
        log in or sign up.

    cancel / resend:
        Managed by the inviter or workspace owners and admins.
    """

    serializer_class = InvitationSerializer

    def get_permissions(self):
        """Preview and accept are public; the service decides on accept."""
        if self.action in ("retrieve", "accept"):
            return [AllowAny()]
        return [IsAuthenticated()]

    @extend_schema(
        operation_id="get_invitation",
        summary="Preview invitation",
        tags=["Invitations"],
        responses={
            200: InvitationPreviewSerializer,
            404: OpenApiResponse(description="Invalid or expired invitation"),
        },
    )
    @rate_limit("auth_callback")
    def retrieve(self, request, token=None):
        result = InvitationService.get(token)
        if not result:
            return self.failure_response(result)
        return Response(InvitationPreviewSerializer(result.data).data)

    @extend_schema(
        operation_id="accept_invitation",
        summary="Accept invitation",
        tags=["Invitations"],
        request=InvitationTokenSerializer,
        responses={
            200: InvitationAcceptResponseSerializer,
            401: OpenApiResponse(description="Log in or sign up first"),
            403: OpenApiResponse(description="Invitation sent to another address"),
            404: OpenApiResponse(description="Invalid or expired invitation"),
        },
    )
    @rate_limit("auth_callback")
    def accept(self, request):
        serializer = InvitationTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = InvitationService.accept(request.user, serializer.validated_data["token"])
        if not result:
            return self.failure_response(result)
        return Response(InvitationAcceptResponseSerializer(result.data).data)

    @extend_schema(
        operation_id="cancel_invitation",
        summary="Cancel invitation",
        tags=["Invitations"],
        request=None,
        responses={204: OpenApiResponse(description="Invitation canceled")},
    )
    def cancel(self, request, pk=None):
        result = InvitationService.cancel(request.user, pk)
        if not result:
            return self.failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="resend_invitation",
        summary="Resend invitation",
        tags=["Invitations"],
        request=None,
        responses={200: InvitationSerializer},
    )
    @rate_limit("api", identifier="user_id")
    def resend(self, request, pk=None):
        result = InvitationService.resend(request.user, pk)
        if not result:
            return self.failure_response(result)
        return Response(InvitationSerializer(result.data).data)
