"""
Serializers for workspace API.

This module provides serializers for:
- Workspace serializers (read with role, create, update, delete, slugs)
- Member serializers (read, role update, ownership transfer)
- Invitation serializers (read, public preview, create, bulk create)

Serializer Hierarchy:
    WorkspaceSerializer: Workspace with the caller's role and member count
    WorkspaceCreateSerializer / WorkspaceUpdateSerializer: Input
    MemberSerializer: Membership with user summary
    InvitationSerializer: Invitation with derived status
    InvitationPreviewSerializer: Public view for the invitation page

Design Decisions:
    - Read and write serializers are separate for clarity
    - Business rules (roles, conflicts) live in services.py; serializers
      only check shape and format
"""

from __future__ import annotations

from rest_framework import serializers

from workspaces.models import (
    ASSIGNABLE_ROLES,
    Invitation,
    Workspace,
    WorkspaceMember,
    WorkspaceRole,
)
from workspaces.services import MAX_BULK_INVITATIONS
from workspaces.validators import SLUG_MAX_LENGTH, SLUG_MIN_LENGTH

ROLE_CHOICES = [(role.value, role.label) for role in ASSIGNABLE_ROLES]

SLUG_FIELD_KWARGS = {
    "min_length": SLUG_MIN_LENGTH,
    "max_length": SLUG_MAX_LENGTH,
    "regex": r"^[a-z0-9-]+$",
    "error_messages": {
        "invalid": "Slug can only contain lowercase letters, numbers, and hyphens",
    },
}


class MemberUserSerializer(serializers.Serializer):
    """Public summary of a member's account."""

    id = serializers.IntegerField(read_only=True)
    email = serializers.EmailField(read_only=True)
    full_name = serializers.CharField(read_only=True)
    avatar_url = serializers.CharField(read_only=True)
    last_active_at = serializers.DateTimeField(read_only=True)


class WorkspaceSerializer(serializers.ModelSerializer):
    """
    Read serializer for workspaces.

    Expects the `role` and `member_count` annotations added by
    services.workspaces_for_user().
    """

    role = serializers.CharField(read_only=True)
    member_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Workspace
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "logo_url",
            "settings",
            "is_archived",
            "archived_at",
            "role",
            "member_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class WorkspaceCreateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=50)
    slug = serializers.RegexField(required=False, **SLUG_FIELD_KWARGS)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    logo_url = serializers.URLField(max_length=500, required=False, allow_blank=True)


class WorkspaceUpdateSerializer(serializers.Serializer):
    """Every field is optional; only the ones sent are changed."""

    name = serializers.CharField(min_length=2, max_length=50, required=False)
    slug = serializers.RegexField(required=False, **SLUG_FIELD_KWARGS)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    logo_url = serializers.URLField(
        max_length=500, required=False, allow_blank=True, allow_null=True
    )
    settings = serializers.DictField(required=False)


class WorkspaceDeleteSerializer(serializers.Serializer):
    confirmation = serializers.CharField(help_text='Must be exactly "DELETE"')


class SwitchWorkspaceSerializer(serializers.Serializer):
    workspace_id = serializers.UUIDField()


class SlugGenerateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)


class SlugCheckSerializer(serializers.Serializer):
    slug = serializers.CharField(max_length=100)
    exclude_id = serializers.UUIDField(required=False)


class SlugAvailabilitySerializer(serializers.Serializer):
    available = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)


class MessageSerializer(serializers.Serializer):
    message = serializers.CharField()


class MemberSerializer(serializers.ModelSerializer):
    """
    Read serializer for workspace members.

    Includes a summary of the user and their role.
    """

    user = MemberUserSerializer(read_only=True)

    class Meta:
        model = WorkspaceMember
        fields = [
            "id",
            "user",
            "role",
            "joined_at",
            "last_active_at",
        ]
        read_only_fields = fields


class MemberRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(
        choices=ROLE_CHOICES,
        help_text="New role (admin or member)",
    )


class TransferOwnershipSerializer(serializers.Serializer):
    new_owner_id = serializers.IntegerField(min_value=1)


class InviterSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    email = serializers.EmailField(read_only=True)
    full_name = serializers.CharField(read_only=True)
    avatar_url = serializers.CharField(read_only=True)


class InvitationSerializer(serializers.ModelSerializer):
    """
    Read serializer for invitations shown to workspace admins.

    The token is never exposed here; it only travels in the email.
    """

    status = serializers.CharField(read_only=True)
    invited_by = InviterSerializer(read_only=True)

    class Meta:
        model = Invitation
        fields = [
            "id",
            "workspace",
            "email",
            "role",
            "status",
            "invited_by",
            "expires_at",
            "accepted_at",
            "canceled_at",
            "created_at",
        ]
        read_only_fields = fields


class InvitationPreviewSerializer(serializers.ModelSerializer):
    """
    Public view of a pending invitation, looked up by token.

    Shows enough for the invitee to decide: workspace, inviter and role.
    """

    workspace_name = serializers.CharField(source="workspace.name", read_only=True)
    workspace_slug = serializers.CharField(source="workspace.slug", read_only=True)
    workspace_logo_url = serializers.CharField(source="workspace.logo_url", read_only=True)
    inviter_name = serializers.SerializerMethodField()

    class Meta:
        model = Invitation
        fields = [
            "email",
            "role",
            "workspace_name",
            "workspace_slug",
            "workspace_logo_url",
            "inviter_name",
            "expires_at",
        ]
        read_only_fields = fields

    def get_inviter_name(self, obj):
        return obj.invited_by.get_full_name() if obj.invited_by else None


class InvitationCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=ROLE_CHOICES, default=WorkspaceRole.MEMBER)


class InvitationBulkCreateSerializer(serializers.Serializer):
    emails = serializers.ListField(
        child=serializers.EmailField(),
        min_length=1,
        max_length=MAX_BULK_INVITATIONS,
    )
    role = serializers.ChoiceField(choices=ROLE_CHOICES, default=WorkspaceRole.MEMBER)


class BulkInvitationResultSerializer(serializers.Serializer):
    email = serializers.EmailField()
    success = serializers.BooleanField()
    error = serializers.CharField(required=False)


class InvitationTokenSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)


class InvitationAcceptResponseSerializer(serializers.Serializer):
    """Result of accepting an invitation."""

    workspace = serializers.SerializerMethodField()
    role = serializers.CharField(source="membership.role")
    already_member = serializers.BooleanField()

    def get_workspace(self, obj):
        workspace = obj["workspace"]
        return {"id": str(workspace.id), "name": workspace.name, "slug": workspace.slug}
