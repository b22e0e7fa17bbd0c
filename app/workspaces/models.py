"""
Workspace models.

This module defines the data models for multi-tenant team management:
- Workspaces owned by one user and shared with members
- Role-based membership (owner, admin, member)
- Email invitations with expiring tokens

Models:
    Workspace: Tenant container for members and scoped data
    WorkspaceMember: User membership in a workspace with a role
    Invitation: Pending, accepted, canceled or expired invitation by email

Design Decisions:
    - Workspaces use UUID primary keys since IDs appear in URLs and emails
    - Soft delete hides workspaces but keeps their slug reserved
    - Exactly one owner per workspace; ownership moves by transfer only
    - Invitation status is derived from timestamps, never stored
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.core.validators import MinLengthValidator, RegexValidator
from django.db import models
from django.utils import timezone

from core.helpers import generate_token
from core.managers import SoftDeleteManager
from core.model_mixins import SoftDeleteMixin, UUIDPrimaryKeyMixin
from core.models import BaseModel
from core.validators import validate_no_script

SLUG_PATTERN = r"^[a-z0-9-]+$"


class WorkspaceRole(models.TextChoices):
    """
    Role within a workspace.

    Hierarchy: OWNER > ADMIN > MEMBER

    OWNER: Full control (delete, archive, change roles, transfer ownership)
    ADMIN: Update settings, invite and remove members, export data
    MEMBER: Read access to the workspace
    """

    OWNER = "owner", "Owner"
    ADMIN = "admin", "Admin"
    MEMBER = "member", "Member"


# Roles that may be granted by invitation or role change
ASSIGNABLE_ROLES = (WorkspaceRole.ADMIN, WorkspaceRole.MEMBER)

# Roles allowed to manage members, invitations and settings
MANAGER_ROLES = (WorkspaceRole.OWNER, WorkspaceRole.ADMIN)


def default_invitation_expiry():
    """Invitations expire INVITATION_EXPIRY_DAYS after creation."""
    return timezone.now() + timedelta(days=settings.INVITATION_EXPIRY_DAYS)


def generate_invitation_token():
    return generate_token(32)


class Workspace(UUIDPrimaryKeyMixin, SoftDeleteMixin, BaseModel):
    """
    A team workspace.

    Fields:
        name: Display name (2-50 characters)
        slug: URL-safe unique identifier (3-50 characters, a-z, 0-9, -)
        description: Optional description
        logo_url: Optional logo image URL
        settings: Free-form workspace settings
        is_archived: Archived workspaces are read-only in the UI
        archived_at: When the workspace was archived
        created_by: User who created the workspace

    Managers:
        objects: Excludes soft-deleted workspaces
        all_objects: Everything, used for slug reservation checks
    """

    name = models.CharField(
        max_length=50,
        validators=[MinLengthValidator(2)],
        help_text="Workspace display name",
    )
    slug = models.SlugField(
        max_length=50,
        unique=True,
        validators=[
            MinLengthValidator(3),
            RegexValidator(
                SLUG_PATTERN,
                "Slug can only contain lowercase letters, numbers, and hyphens",
            ),
        ],
        help_text="URL-safe unique identifier (kept after soft delete)",
    )
    description = models.TextField(
        max_length=500,
        blank=True,
        validators=[validate_no_script],
        help_text="Optional workspace description",
    )
    logo_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="URL of the workspace logo",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_workspaces",
        help_text="User who created this workspace",
    )
    settings = models.JSONField(
        default=dict,
        blank=True,
        help_text="Workspace settings as JSON",
    )
    is_archived = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the workspace has been archived",
    )
    archived_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the workspace was archived",
    )

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        db_table = "workspaces_workspace"
        ordering = ["-created_at"]
        verbose_name = "workspace"
        verbose_name_plural = "workspaces"

    def __str__(self) -> str:
        return f"{self.name} ({self.slug})"


class WorkspaceMember(BaseModel):
    """
    User membership in a workspace.

    Fields:
        workspace: Workspace the user belongs to
        user: Member user
        role: owner, admin or member
        joined_at: When the user joined
        last_active_at: Last time the user switched to this workspace

    Constraints:
        - UniqueConstraint(workspace, user): one membership per user
    """

    workspace = models.ForeignKey(
        Workspace,
        on_delete=models.CASCADE,
        related_name="members",
        help_text="Workspace this membership belongs to",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="workspace_memberships",
        help_text="Member user",
    )
    role = models.CharField(
        max_length=10,
        choices=WorkspaceRole.choices,
        default=WorkspaceRole.MEMBER,
        db_index=True,
        help_text="Role in the workspace",
    )
    joined_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the user joined this workspace",
    )
    last_active_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last time the user made this workspace active",
    )

    class Meta:
        db_table = "workspaces_member"
        ordering = ["joined_at"]
        indexes = [
            # User's workspaces in join order
            models.Index(
                fields=["user", "joined_at"],
                name="ws_member_user_joined_idx",
            ),
            models.Index(
                fields=["workspace", "role"],
                name="ws_member_ws_role_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["workspace", "user"],
                name="unique_workspace_member",
            ),
        ]

    def __str__(self) -> str:
        return f"Member: {self.user_id} in {self.workspace_id} ({self.role})"

    @property
    def is_owner(self) -> bool:
        return self.role == WorkspaceRole.OWNER

    @property
    def is_admin(self) -> bool:
        return self.role == WorkspaceRole.ADMIN

    @property
    def can_manage(self) -> bool:
        """Owners and admins manage members, invitations and settings."""
        return self.role in MANAGER_ROLES


class InvitationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    CANCELED = "canceled", "Canceled"
    EXPIRED = "expired", "Expired"


class Invitation(BaseModel):
    """
    Invitation to join a workspace by email.

    Lifecycle:
        1. Created with a 64-character hex token, expires in 7 days
        2. Accepted: accepted_at/accepted_by set, membership created
        3. Canceled: canceled_at set by the inviter or a workspace admin
        4. Expired: expires_at passed without acceptance

    Fields:
        workspace: Workspace the invitation is for
        email: Invited address (lower-cased)
        role: admin or member
        token: Secret token sent in the invitation link
        invited_by: User who sent the invitation
        expires_at: Expiry time
        accepted_at: When the invitation was accepted
        accepted_by: User who accepted it
        canceled_at: When the invitation was canceled
    """

    workspace = models.ForeignKey(
        Workspace,
        on_delete=models.CASCADE,
        related_name="invitations",
        help_text="Workspace this invitation is for",
    )
    email = models.EmailField(
        db_index=True,
        help_text="Email address the invitation was sent to",
    )
    role = models.CharField(
        max_length=10,
        choices=[(role.value, role.label) for role in ASSIGNABLE_ROLES],
        default=WorkspaceRole.MEMBER,
        help_text="Role granted on acceptance",
    )
    token = models.CharField(
        max_length=64,
        unique=True,
        default=generate_invitation_token,
        help_text="Secret invitation token (64 hex characters)",
    )
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_invitations",
        help_text="User who sent the invitation",
    )
    expires_at = models.DateTimeField(
        default=default_invitation_expiry,
        db_index=True,
        help_text="When this invitation expires",
    )
    accepted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the invitation was accepted",
    )
    accepted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="accepted_invitations",
        help_text="User who accepted the invitation",
    )
    canceled_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the invitation was canceled",
    )

    class Meta:
        db_table = "workspaces_invitation"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["workspace", "email"],
                name="ws_invite_ws_email_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Invitation: {self.email} to {self.workspace_id} [{self.status}]"

    @property
    def status(self) -> str:
        """Derived state: accepted, canceled, expired or pending."""
        if self.accepted_at:
            return InvitationStatus.ACCEPTED
        if self.canceled_at:
            return InvitationStatus.CANCELED
        if self.expires_at <= timezone.now():
            return InvitationStatus.EXPIRED
        return InvitationStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING
