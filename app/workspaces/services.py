"""
Workspace service layer.

This module provides the business logic for team workspaces, encapsulating
all operations on workspaces, memberships and invitations.

Services:
    WorkspaceService: Workspace lifecycle (create, update, delete, archive,
        switch active, slugs, export)
    MemberService: Membership management (list, remove, roles, leave,
        ownership transfer)
    InvitationService: Invitations (create, bulk create, accept, cancel,
        resend, list)

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with an HTTP status
    - Role checks happen here, views only require authentication
    - A user's active workspace never points at a workspace they cannot use:
      every path that removes access calls reassign_active_workspace()

Usage:
    from workspaces.services import MemberService, WorkspaceService

    result = WorkspaceService.create(user, name="Acme Inc")
    if result.success:
        workspace = result.data

    result = MemberService.transfer_ownership(owner, workspace.id, new_owner_id)
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Case, Count, IntegerField, OuterRef, Subquery, Value, When
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.services import BaseService, ServiceResult

from workspaces.models import (
    ASSIGNABLE_ROLES,
    Invitation,
    Workspace,
    WorkspaceMember,
    WorkspaceRole,
)
from workspaces.validators import (
    SLUG_TAKEN_REASON,
    check_slug_availability,
    generate_slug,
)

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)

DELETE_WORKSPACE_CONFIRMATION = "DELETE"
SLUG_TAKEN_MESSAGE = "Slug already taken"
EXPORT_STARTED_MESSAGE = "Export initiated. You will receive an email when ready."
MAX_BULK_INVITATIONS = 50


# =============================================================================
# Helpers
# =============================================================================


def get_membership(user, workspace_id) -> WorkspaceMember | None:
    """Membership of `user` in a non-deleted workspace, or None."""
    if user is None or not user.is_authenticated:
        return None
    return (
        WorkspaceMember.objects.select_related("workspace")
        .filter(user=user, workspace_id=workspace_id, workspace__is_deleted=False)
        .first()
    )


def workspaces_for_user(user):
    """
    Workspaces the user belongs to, annotated with `role`, `joined_at` and
    `member_count`.

    Subqueries keep the member count independent of the membership filter.
    """
    membership = WorkspaceMember.objects.filter(workspace=OuterRef("pk"), user=user)
    member_count = (
        WorkspaceMember.objects.filter(workspace=OuterRef("pk"))
        .order_by()
        .values("workspace")
        .annotate(total=Count("pk"))
        .values("total")
    )
    return (
        Workspace.objects.annotate(
            role=Subquery(membership.values("role")[:1]),
            joined_at=Subquery(membership.values("joined_at")[:1]),
            member_count=Coalesce(
                Subquery(member_count, output_field=IntegerField()), Value(0)
            ),
        )
        .filter(role__isnull=False)
        .order_by("joined_at")
    )


def members_by_rank(workspace_id):
    """Members ordered owner, admin, member, then by join date."""
    return (
        WorkspaceMember.objects.filter(workspace_id=workspace_id)
        .select_related("user")
        .annotate(
            role_rank=Case(
                When(role=WorkspaceRole.OWNER, then=Value(0)),
                When(role=WorkspaceRole.ADMIN, then=Value(1)),
                default=Value(2),
                output_field=IntegerField(),
            )
        )
        .order_by("role_rank", "joined_at", "id")
    )


def next_active_workspace_id(user, exclude_workspace_id=None):
    """Oldest membership of `user` in a workspace neither deleted nor archived."""
    memberships = WorkspaceMember.objects.filter(
        user=user, workspace__is_deleted=False, workspace__is_archived=False
    ).order_by("joined_at")
    if exclude_workspace_id is not None:
        memberships = memberships.exclude(workspace_id=exclude_workspace_id)
    membership = memberships.first()
    return membership.workspace_id if membership else None


def reassign_active_workspace(workspace_id, users=None) -> int:
    """
    Move users off a workspace they can no longer use.

    Args:
        workspace_id: Workspace being deleted, archived or left
        users: Limit to these users (default: everyone with it active)

    Returns:
        Number of users whose active workspace changed
    """
    from authentication.models import User

    affected = User.objects.filter(active_workspace_id=workspace_id)
    if users is not None:
        affected = affected.filter(pk__in=[u.pk for u in users])

    count = 0
    for user in affected:
        user.active_workspace_id = next_active_workspace_id(user, workspace_id)
        user.save(update_fields=["active_workspace", "updated_at"])
        count += 1
    return count


# =============================================================================
# Workspaces
# =============================================================================


class WorkspaceService(BaseService):
    """
    Service for workspace lifecycle operations.

    Methods:
        get_active: The user's active workspace (with fallback)
        list: Workspaces the user belongs to
        get: One workspace, membership required
        create: New workspace owned by the user
        update: Change name, slug, description, logo or settings
        delete: Soft delete (owner only, typed confirmation)
        archive: Archive (owner only)
        switch_active: Select the workspace shown in the UI
        generate_slug / check_slug: Slug helpers for forms
        export_data: Email a JSON export to the requester
    """

    @classmethod
    def get_active(cls, user: User) -> ServiceResult[Workspace | None]:
        """
        Return the user's active workspace annotated with their role.

        When nothing valid is selected, the oldest membership in a workspace
        that is not archived becomes active. Users without one get None.
        """
        workspaces = workspaces_for_user(user)

        if user.active_workspace_id:
            workspace = workspaces.filter(pk=user.active_workspace_id).first()
            if workspace is not None:
                return ServiceResult.success(workspace)

        workspace = workspaces.filter(is_archived=False).first()
        new_active_id = workspace.pk if workspace else None
        if user.active_workspace_id != new_active_id:
            user.active_workspace_id = new_active_id
            user.save(update_fields=["active_workspace", "updated_at"])
            cls.get_logger().info(
                f"Active workspace for user {user.id} fell back to {new_active_id}"
            )
        return ServiceResult.success(workspace)

    @classmethod
    def list(cls, user: User) -> ServiceResult:
        return ServiceResult.success(workspaces_for_user(user))

    @classmethod
    def get(cls, user: User, workspace_id) -> ServiceResult[Workspace]:
        workspace = workspaces_for_user(user).filter(pk=workspace_id).first()
        if workspace is None:
            return ServiceResult.failure(
                "Workspace not found",
                error_code="WORKSPACE_NOT_FOUND",
                status_code=404,
            )
        return ServiceResult.success(workspace)

    @classmethod
    def _resolve_slug(cls, slug: str, exclude_id=None) -> ServiceResult[str]:
        slug = slug.strip().lower()
        check = check_slug_availability(slug, exclude_id=exclude_id)
        if check.available:
            return ServiceResult.success(slug)
        if check.reason == SLUG_TAKEN_REASON:
            return ServiceResult.failure(
                SLUG_TAKEN_MESSAGE, error_code="SLUG_TAKEN", status_code=409
            )
        return ServiceResult.failure(
            check.reason,
            error_code="INVALID_SLUG",
            errors={"slug": [check.reason]},
        )

    @classmethod
    def create(
        cls,
        user: User,
        name: str,
        slug: str | None = None,
        description: str = "",
        logo_url: str = "",
    ) -> ServiceResult[Workspace]:
        """
        Create a workspace with `user` as owner and make it active.

        Args:
            user: Creator, becomes the owner
            name: Display name
            slug: Optional slug; generated from the name when omitted
            description: Optional description
            logo_url: Optional logo URL

        Returns:
            ServiceResult with the annotated workspace

        Error codes:
            SLUG_TAKEN (409): Slug belongs to another workspace
            INVALID_SLUG: Slug fails format or reserved-word rules
        """
        from authentication.security import sanitize_auth_input

        name = sanitize_auth_input(name)
        if slug:
            slug_result = cls._resolve_slug(slug)
            if not slug_result:
                return slug_result
            slug = slug_result.data
        else:
            slug = generate_slug(name)

        try:
            with transaction.atomic():
                workspace = Workspace.objects.create(
                    name=name,
                    slug=slug,
                    description=sanitize_auth_input(description) if description else "",
                    logo_url=logo_url or "",
                    created_by=user,
                )
                WorkspaceMember.objects.create(
                    workspace=workspace,
                    user=user,
                    role=WorkspaceRole.OWNER,
                    last_active_at=timezone.now(),
                )
                user.active_workspace = workspace
                user.save(update_fields=["active_workspace", "updated_at"])
        except IntegrityError:
            # Lost a race for the same slug
            return ServiceResult.failure(
                SLUG_TAKEN_MESSAGE, error_code="SLUG_TAKEN", status_code=409
            )

        cls.get_logger().info(
            f"Created workspace {workspace.id} ({workspace.slug}) for user {user.id}"
        )
        return ServiceResult.success(workspaces_for_user(user).get(pk=workspace.pk))

    @classmethod
    def update(cls, user: User, workspace_id, **data) -> ServiceResult[Workspace]:
        """
        Update workspace fields (owner or admin).

        Accepted keys: name, slug, description, logo_url, settings. Keys
        that are absent are left unchanged.
        """
        from authentication.security import sanitize_auth_input

        membership = get_membership(user, workspace_id)
        if membership is None or not membership.can_manage:
            return ServiceResult.failure(
                "You do not have permission to update this workspace",
                error_code="PERMISSION_DENIED",
                status_code=403,
            )

        workspace = membership.workspace
        update_fields = []

        if data.get("name"):
            workspace.name = sanitize_auth_input(data["name"])
            update_fields.append("name")

        if data.get("slug"):
            slug_result = cls._resolve_slug(data["slug"], exclude_id=workspace.id)
            if not slug_result:
                return slug_result
            workspace.slug = slug_result.data
            update_fields.append("slug")

        if "description" in data:
            workspace.description = sanitize_auth_input(data["description"] or "")
            update_fields.append("description")

        if "logo_url" in data:
            workspace.logo_url = data["logo_url"] or ""
            update_fields.append("logo_url")

        if data.get("settings") is not None:
            workspace.settings = data["settings"]
            update_fields.append("settings")

        if update_fields:
            try:
                workspace.save(update_fields=[*update_fields, "updated_at"])
            except IntegrityError:
                return ServiceResult.failure(
                    SLUG_TAKEN_MESSAGE, error_code="SLUG_TAKEN", status_code=409
                )
            cls.get_logger().info(
                f"Workspace {workspace.id} updated by user {user.id}: {update_fields}"
            )

        return ServiceResult.success(workspaces_for_user(user).get(pk=workspace.pk))

    @classmethod
    def delete(cls, user: User, workspace_id, confirmation: str) -> ServiceResult[None]:
        """
        Soft delete a workspace (owner only).

        The slug stays reserved. Everyone who had the workspace active is
        moved to their next membership, or to no workspace.

        Error codes:
            INVALID_CONFIRMATION: confirmation is not "DELETE"
            PERMISSION_DENIED (403): caller is not the owner
        """
        if confirmation != DELETE_WORKSPACE_CONFIRMATION:
            return ServiceResult.failure(
                f'Type "{DELETE_WORKSPACE_CONFIRMATION}" to confirm',
                error_code="INVALID_CONFIRMATION",
                errors={"confirmation": ["Confirmation text does not match"]},
            )

        membership = get_membership(user, workspace_id)
        if membership is None or not membership.is_owner:
            return ServiceResult.failure(
                "Only workspace owners can delete workspaces",
                error_code="PERMISSION_DENIED",
                status_code=403,
            )

        workspace = membership.workspace
        with transaction.atomic():
            workspace.soft_delete()
            moved = reassign_active_workspace(workspace.id)

        cls.get_logger().warning(
            f"Workspace {workspace.id} ({workspace.slug}) deleted by user {user.id}, "
            f"{moved} active users reassigned"
        )
        return ServiceResult.success(None)

    @classmethod
    def archive(cls, user: User, workspace_id) -> ServiceResult[Workspace]:
        membership = get_membership(user, workspace_id)
        if membership is None or not membership.is_owner:
            return ServiceResult.failure(
                "Only workspace owners can archive workspaces",
                error_code="PERMISSION_DENIED",
                status_code=403,
            )

        workspace = membership.workspace
        if workspace.is_archived:
            return ServiceResult.failure(
                "This workspace is already archived",
                error_code="ALREADY_ARCHIVED",
            )

        with transaction.atomic():
            workspace.is_archived = True
            workspace.archived_at = timezone.now()
            workspace.save(update_fields=["is_archived", "archived_at", "updated_at"])
            reassign_active_workspace(workspace.id)

        cls.get_logger().info(f"Workspace {workspace.id} archived by user {user.id}")
        return ServiceResult.success(workspaces_for_user(user).get(pk=workspace.pk))

    @classmethod
    def switch_active(cls, user: User, workspace_id) -> ServiceResult[Workspace]:
        """
        Make `workspace_id` the user's active workspace.

        Also stamps the membership's last_active_at.
        """
        membership = get_membership(user, workspace_id)
        if membership is None:
            return ServiceResult.failure(
                "You are not a member of this workspace",
                error_code="NOT_MEMBER",
                status_code=403,
            )

        now = timezone.now()
        with transaction.atomic():
            membership.last_active_at = now
            membership.save(update_fields=["last_active_at", "updated_at"])
            user.active_workspace_id = membership.workspace_id
            user.last_active_at = now
            user.save(update_fields=["active_workspace", "last_active_at", "updated_at"])

        return ServiceResult.success(
            workspaces_for_user(user).get(pk=membership.workspace_id)
        )

    @classmethod
    def generate_slug(cls, name: str) -> ServiceResult[dict]:
        return ServiceResult.success({"slug": generate_slug(name)})

    @classmethod
    def check_slug(cls, slug: str, exclude_id=None) -> ServiceResult[dict]:
        return ServiceResult.success(
            check_slug_availability(slug, exclude_id=exclude_id).to_dict()
        )

    @classmethod
    def export_data(cls, user: User, workspace_id) -> ServiceResult[dict]:
        """
        Queue a JSON export of the workspace, emailed to `user`.

        Owners and admins only. The view applies the "heavy" rate limit.
        """
        from workspaces.tasks import export_workspace_data

        membership = get_membership(user, workspace_id)
        if membership is None or not membership.can_manage:
            return ServiceResult.failure(
                "You do not have permission to export this workspace",
                error_code="PERMISSION_DENIED",
                status_code=403,
            )

        workspace_pk = str(membership.workspace_id)
        user_pk = user.pk
        transaction.on_commit(lambda: export_workspace_data.delay(workspace_pk, user_pk))
        cls.get_logger().info(f"Export of workspace {workspace_pk} requested by {user_pk}")
        return ServiceResult.success({"message": EXPORT_STARTED_MESSAGE})


# =============================================================================
# Members
# =============================================================================


class MemberService(BaseService):
    """
    Service for workspace membership.

    Permission rules:
        - Owner: remove admins and members, change roles, transfer ownership
        - Admin: remove members, invite
        - Member: leave
    """

    @classmethod
    def list(cls, user: User, workspace_id) -> ServiceResult:
        """Members by role rank then join date; the view paginates."""
        if get_membership(user, workspace_id) is None:
            return ServiceResult.failure(
                "You do not have access to this workspace",
                error_code="NOT_MEMBER",
                status_code=403,
            )
        return ServiceResult.success(members_by_rank(workspace_id))

    @classmethod
    def invite(
        cls, actor: User, workspace_id, email: str, role: str = WorkspaceRole.MEMBER
    ) -> ServiceResult[Invitation]:
        return InvitationService.create(actor, workspace_id, email, role)

    @classmethod
    def remove(cls, actor: User, workspace_id, user_id) -> ServiceResult[None]:
        """
        Remove a member.

        Error codes:
            PERMISSION_DENIED (403): Actor is not owner/admin, target is the
                owner, or an admin targets another admin
            CANNOT_REMOVE_SELF: Use leave() instead
            MEMBER_NOT_FOUND (404): Target is not a member
        """
        actor_membership = get_membership(actor, workspace_id)
        if actor_membership is None or not actor_membership.can_manage:
            return ServiceResult.failure(
                "You do not have permission to remove members from this workspace",
                error_code="PERMISSION_DENIED",
                status_code=403,
            )

        if str(user_id) == str(actor.id):
            return ServiceResult.failure(
                "Use leave to remove yourself from a workspace",
                error_code="CANNOT_REMOVE_SELF",
            )

        target = (
            WorkspaceMember.objects.select_related("user")
            .filter(workspace_id=workspace_id, user_id=user_id)
            .first()
        )
        if target is None:
            return ServiceResult.failure(
                "Member not found in this workspace",
                error_code="MEMBER_NOT_FOUND",
                status_code=404,
            )

        if target.is_owner:
            return ServiceResult.failure(
                "Cannot remove the workspace owner",
                error_code="CANNOT_REMOVE_OWNER",
                status_code=403,
            )

        if actor_membership.is_admin and target.is_admin:
            return ServiceResult.failure(
                "Admins cannot remove other admins",
                error_code="PERMISSION_DENIED",
                status_code=403,
            )

        with transaction.atomic():
            target.delete()
            reassign_active_workspace(workspace_id, users=[target.user])

        cls.get_logger().info(
            f"Removed user {user_id} from workspace {workspace_id} by user {actor.id}"
        )
        return ServiceResult.success(None)

    @classmethod
    def update_role(
        cls, actor: User, workspace_id, user_id, role: str
    ) -> ServiceResult[WorkspaceMember]:
        actor_membership = get_membership(actor, workspace_id)
        if actor_membership is None or not actor_membership.is_owner:
            return ServiceResult.failure(
                "Only workspace owners can change member roles",
                error_code="PERMISSION_DENIED",
                status_code=403,
            )

        if role not in ASSIGNABLE_ROLES:
            return ServiceResult.failure(
                "Role must be admin or member",
                error_code="INVALID_ROLE",
                errors={"role": ["Role must be admin or member"]},
            )

        target = (
            WorkspaceMember.objects.select_related("user")
            .filter(workspace_id=workspace_id, user_id=user_id)
            .first()
        )
        if target is None:
            return ServiceResult.failure(
                "Member not found in this workspace",
                error_code="MEMBER_NOT_FOUND",
                status_code=404,
            )

        if target.is_owner:
            return ServiceResult.failure(
                "Cannot change the role of workspace owner",
                error_code="CANNOT_CHANGE_OWNER",
                status_code=403,
            )

        target.role = role
        target.save(update_fields=["role", "updated_at"])

        cls.get_logger().info(
            f"User {user_id} in workspace {workspace_id} is now {role} "
            f"(changed by {actor.id})"
        )
        return ServiceResult.success(target)

    @classmethod
    def leave(cls, user: User, workspace_id) -> ServiceResult[None]:
        membership = get_membership(user, workspace_id)
        if membership is None:
            return ServiceResult.failure(
                "You are not a member of this workspace",
                error_code="NOT_MEMBER",
                status_code=404,
            )

        if membership.is_owner:
            return ServiceResult.failure(
                "Workspace owners cannot leave. Transfer ownership or delete "
                "the workspace instead.",
                error_code="OWNER_CANNOT_LEAVE",
            )

        with transaction.atomic():
            membership.delete()
            reassign_active_workspace(workspace_id, users=[user])

        user.refresh_from_db(fields=["active_workspace"])
        cls.get_logger().info(f"User {user.id} left workspace {workspace_id}")
        return ServiceResult.success(None)

    @classmethod
    def transfer_ownership(
        cls, actor: User, workspace_id, new_owner_id
    ) -> ServiceResult[None]:
        """
        Hand the workspace to another member.

        The current owner becomes an admin. Both role changes happen in one
        transaction so the workspace always has exactly one owner.

        Error codes:
            SAME_USER: Transfer to yourself
            NOT_OWNER (403): Actor is not the owner
            NOT_MEMBER (404): Target is not a member
        """
        if str(new_owner_id) == str(actor.id):
            return ServiceResult.failure(
                "You are already the owner of this workspace",
                error_code="SAME_USER",
            )

        with transaction.atomic():
            current = (
                WorkspaceMember.objects.select_for_update()
                .filter(
                    workspace_id=workspace_id,
                    user=actor,
                    workspace__is_deleted=False,
                )
                .first()
            )
            if current is None or not current.is_owner:
                return ServiceResult.failure(
                    "Only the current owner can transfer ownership",
                    error_code="NOT_OWNER",
                    status_code=403,
                )

            target = (
                WorkspaceMember.objects.select_for_update()
                .filter(workspace_id=workspace_id, user_id=new_owner_id)
                .first()
            )
            if target is None:
                return ServiceResult.failure(
                    "New owner must be a current member of the workspace",
                    error_code="NOT_MEMBER",
                    status_code=404,
                )

            current.role = WorkspaceRole.ADMIN
            current.save(update_fields=["role", "updated_at"])
            target.role = WorkspaceRole.OWNER
            target.save(update_fields=["role", "updated_at"])

        cls.get_logger().info(
            f"Transferred ownership of workspace {workspace_id} "
            f"from user {actor.id} to user {new_owner_id}"
        )
        return ServiceResult.success(None)


# =============================================================================
# Invitations
# =============================================================================


def pending_invitations():
    return Invitation.objects.filter(
        accepted_at__isnull=True,
        canceled_at__isnull=True,
        expires_at__gt=timezone.now(),
    )


class InvitationService(BaseService):
    """
    Service for workspace invitations.

    Invitations are addressed to an email. Whoever accepts must be logged
    in with that same address.
    """

    @classmethod
    def _queue_email(cls, invitation: Invitation) -> None:
        from workspaces.tasks import send_invitation_email

        invitation_id = invitation.id
        transaction.on_commit(lambda: send_invitation_email.delay(invitation_id))

    @classmethod
    def _require_manager(cls, actor, workspace_id, message: str) -> ServiceResult | None:
        membership = get_membership(actor, workspace_id)
        if membership is None or not membership.can_manage:
            return ServiceResult.failure(
                message, error_code="PERMISSION_DENIED", status_code=403
            )
        return None

    @classmethod
    def _conflict_for(cls, workspace_id, email: str) -> ServiceResult | None:
        if WorkspaceMember.objects.filter(
            workspace_id=workspace_id, user__email__iexact=email
        ).exists():
            return ServiceResult.failure(
                "User is already a member of this workspace",
                error_code="ALREADY_MEMBER",
                status_code=409,
            )
        if pending_invitations().filter(
            workspace_id=workspace_id, email__iexact=email
        ).exists():
            return ServiceResult.failure(
                "An invitation has already been sent to this email",
                error_code="ALREADY_INVITED",
                status_code=409,
            )
        return None

    @classmethod
    def get(cls, token: str) -> ServiceResult[Invitation]:
        """Public lookup for the invitation landing page."""
        invitation = (
            pending_invitations()
            .select_related("workspace", "invited_by")
            .filter(token=token, workspace__is_deleted=False)
            .first()
        )
        if invitation is None:
            return ServiceResult.failure(
                "Invalid or expired invitation",
                error_code="INVALID_INVITATION",
                status_code=404,
            )
        return ServiceResult.success(invitation)

    @classmethod
    def accept(cls, user: User | None, token: str) -> ServiceResult[dict]:
        """
        Accept an invitation as `user`.

        Returns:
            ServiceResult with {"workspace", "membership", "already_member"}

        Error codes:
            INVALID_INVITATION (404): Unknown, used, canceled or expired token
            WORKSPACE_DELETED (404): Workspace was deleted since
            LOGIN_REQUIRED / SIGNUP_REQUIRED (401): Anonymous caller
            EMAIL_MISMATCH (403): Logged in with another address
        """
        from authentication.models import User as UserModel

        invitation = (
            pending_invitations()
            .select_related("workspace")
            .filter(token=token)
            .first()
        )
        if invitation is None:
            return ServiceResult.failure(
                "Invalid or expired invitation",
                error_code="INVALID_INVITATION",
                status_code=404,
            )

        workspace = invitation.workspace
        if workspace.is_deleted:
            return ServiceResult.failure(
                "This workspace no longer exists",
                error_code="WORKSPACE_DELETED",
                status_code=404,
            )

        if user is None or not user.is_authenticated:
            if UserModel.objects.filter(email__iexact=invitation.email).exists():
                return ServiceResult.failure(
                    "Please log in to accept this invitation",
                    error_code="LOGIN_REQUIRED",
                    status_code=401,
                )
            return ServiceResult.failure(
                "Please sign up with this email to accept the invitation",
                error_code="SIGNUP_REQUIRED",
                status_code=401,
            )

        if user.email.lower() != invitation.email.lower():
            return ServiceResult.failure(
                "This invitation was sent to a different email address",
                error_code="EMAIL_MISMATCH",
                status_code=403,
            )

        now = timezone.now()
        with transaction.atomic():
            # Concurrent accepts of the same token queue up here
            invitation = (
                Invitation.objects.select_for_update()
                .filter(
                    pk=invitation.pk, accepted_at__isnull=True, canceled_at__isnull=True
                )
                .first()
            )
            if invitation is None:
                return ServiceResult.failure(
                    "Invalid or expired invitation",
                    error_code="INVALID_INVITATION",
                    status_code=404,
                )

            existing = WorkspaceMember.objects.filter(
                workspace=workspace, user=user
            ).first()
            if existing is None:
                try:
                    with transaction.atomic():
                        membership = WorkspaceMember.objects.create(
                            workspace=workspace,
                            user=user,
                            role=invitation.role,
                        )
                except IntegrityError:
                    # Joined through another invitation in the meantime
                    existing = WorkspaceMember.objects.get(
                        workspace=workspace, user=user
                    )

            invitation.accepted_at = now
            invitation.accepted_by = user
            invitation.save(update_fields=["accepted_at", "accepted_by", "updated_at"])
            if existing is not None:
                return ServiceResult.success(
                    {
                        "workspace": workspace,
                        "membership": existing,
                        "already_member": True,
                    }
                )

            if not user.active_workspace_id:
                user.active_workspace = workspace
                user.save(update_fields=["active_workspace", "updated_at"])

        cls.get_logger().info(
            f"User {user.id} joined workspace {workspace.id} as {invitation.role}"
        )
        return ServiceResult.success(
            {"workspace": workspace, "membership": membership, "already_member": False}
        )

    @classmethod
    def list_pending(cls, actor: User, workspace_id) -> ServiceResult:
        denied = cls._require_manager(
            actor,
            workspace_id,
            "You do not have permission to view invitations for this workspace",
        )
        if denied is not None:
            return denied
        return ServiceResult.success(
            pending_invitations()
            .filter(workspace_id=workspace_id)
            .select_related("invited_by")
            .order_by("-created_at")
        )

    @classmethod
    def list(cls, actor: User, workspace_id) -> ServiceResult:
        denied = cls._require_manager(
            actor,
            workspace_id,
            "You do not have permission to view invitations for this workspace",
        )
        if denied is not None:
            return denied
        return ServiceResult.success(
            Invitation.objects.filter(workspace_id=workspace_id)
            .select_related("invited_by")
            .order_by("-created_at")
        )

    @classmethod
    def create(
        cls, actor: User, workspace_id, email: str, role: str = WorkspaceRole.MEMBER
    ) -> ServiceResult[Invitation]:
        """
        Invite `email` to the workspace and queue the invitation email.

        Error codes:
            PERMISSION_DENIED (403): Actor is not owner/admin
            INVALID_ROLE: Role is not admin or member
            ALREADY_MEMBER (409) / ALREADY_INVITED (409)
        """
        denied = cls._require_manager(
            actor,
            workspace_id,
            "You do not have permission to invite members to this workspace",
        )
        if denied is not None:
            return denied

        if role not in ASSIGNABLE_ROLES:
            return ServiceResult.failure(
                "Role must be admin or member",
                error_code="INVALID_ROLE",
                errors={"role": ["Role must be admin or member"]},
            )

        email = email.strip().lower()
        conflict = cls._conflict_for(workspace_id, email)
        if conflict is not None:
            return conflict

        with transaction.atomic():
            invitation = Invitation.objects.create(
                workspace_id=workspace_id,
                email=email,
                role=role,
                invited_by=actor,
            )
            cls._queue_email(invitation)

        cls.get_logger().info(
            f"Invitation {invitation.id} to {email} for workspace {workspace_id} "
            f"created by user {actor.id}"
        )
        return ServiceResult.success(invitation)

    @classmethod
    def create_bulk(
        cls,
        actor: User,
        workspace_id,
        emails: list[str],
        role: str = WorkspaceRole.MEMBER,
    ) -> ServiceResult[list[dict]]:
        """
        Invite up to 50 addresses at once.

        Returns:
            ServiceResult with one {"email", "success", "error"?} per address
        """
        denied = cls._require_manager(
            actor,
            workspace_id,
            "You do not have permission to invite members to this workspace",
        )
        if denied is not None:
            return denied

        if not emails or len(emails) > MAX_BULK_INVITATIONS:
            return ServiceResult.failure(
                f"Send between 1 and {MAX_BULK_INVITATIONS} invitations at a time",
                error_code="INVALID_BULK_SIZE",
            )

        if role not in ASSIGNABLE_ROLES:
            return ServiceResult.failure(
                "Role must be admin or member",
                error_code="INVALID_ROLE",
            )

        results = []
        for raw_email in emails:
            email = raw_email.strip().lower()
            conflict = cls._conflict_for(workspace_id, email)
            if conflict is not None:
                error = (
                    "Already a member"
                    if conflict.error_code == "ALREADY_MEMBER"
                    else "Invitation already sent"
                )
                results.append({"email": email, "success": False, "error": error})
                continue

            try:
                with transaction.atomic():
                    invitation = Invitation.objects.create(
                        workspace_id=workspace_id,
                        email=email,
                        role=role,
                        invited_by=actor,
                    )
                    cls._queue_email(invitation)
            except IntegrityError:
                logger.exception(f"Failed to create invitation for {email}")
                results.append(
                    {"email": email, "success": False, "error": "Failed to create invitation"}
                )
                continue

            results.append({"email": email, "success": True})

        sent = sum(1 for r in results if r["success"])
        cls.get_logger().info(
            f"Bulk invite to workspace {workspace_id} by user {actor.id}: "
            f"{sent}/{len(results)} sent"
        )
        return ServiceResult.success(results)

    @classmethod
    def _get_invitation(cls, invitation_id) -> Invitation | None:
        return (
            Invitation.objects.select_related("workspace")
            .filter(pk=invitation_id, workspace__is_deleted=False)
            .first()
        )

    @classmethod
    def cancel(cls, actor: User, invitation_id) -> ServiceResult[None]:
        """Cancel an invitation (its inviter, or an owner/admin)."""
        invitation = cls._get_invitation(invitation_id)
        if invitation is None:
            return ServiceResult.failure(
                "Invitation not found",
                error_code="INVITATION_NOT_FOUND",
                status_code=404,
            )

        membership = get_membership(actor, invitation.workspace_id)
        is_inviter = invitation.invited_by_id == actor.id and membership is not None
        if not is_inviter and (membership is None or not membership.can_manage):
            return ServiceResult.failure(
                "You do not have permission to cancel this invitation",
                error_code="PERMISSION_DENIED",
                status_code=403,
            )

        if invitation.accepted_at:
            return ServiceResult.failure(
                "This invitation has already been accepted",
                error_code="ALREADY_ACCEPTED",
            )
        if invitation.canceled_at:
            return ServiceResult.failure(
                "This invitation has already been canceled",
                error_code="ALREADY_CANCELED",
            )

        invitation.canceled_at = timezone.now()
        invitation.save(update_fields=["canceled_at", "updated_at"])

        cls.get_logger().info(f"Invitation {invitation.id} canceled by user {actor.id}")
        return ServiceResult.success(None)

    @classmethod
    def resend(cls, actor: User, invitation_id) -> ServiceResult[Invitation]:
        """Extend a pending invitation by another week and email it again."""
        invitation = cls._get_invitation(invitation_id)
        if invitation is None:
            return ServiceResult.failure(
                "Invitation not found",
                error_code="INVITATION_NOT_FOUND",
                status_code=404,
            )

        denied = cls._require_manager(
            actor,
            invitation.workspace_id,
            "You do not have permission to resend invitations for this workspace",
        )
        if denied is not None:
            return denied

        if invitation.accepted_at:
            return ServiceResult.failure(
                "This invitation has already been accepted",
                error_code="ALREADY_ACCEPTED",
            )
        if invitation.canceled_at:
            return ServiceResult.failure(
                "This invitation has been canceled",
                error_code="ALREADY_CANCELED",
            )
        if invitation.expires_at <= timezone.now():
            return ServiceResult.failure(
                "This invitation has expired",
                error_code="INVITATION_EXPIRED",
            )

        with transaction.atomic():
            invitation.expires_at = timezone.now() + timedelta(
                days=settings.INVITATION_EXPIRY_DAYS
            )
            invitation.save(update_fields=["expires_at", "updated_at"])
            cls._queue_email(invitation)

        cls.get_logger().info(f"Invitation {invitation.id} resent by user {actor.id}")
        return ServiceResult.success(invitation)
