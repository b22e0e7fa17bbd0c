"""
Tests for workspace services.

This module tests the business logic in services.py:
- WorkspaceService: create, update, delete, archive, switch, export
- MemberService: list, remove, update_role, leave, transfer_ownership
- InvitationService: create, bulk create, accept, cancel, resend, list

Test Organization:
    - One test class per service method
    - Tests follow pattern: test_<scenario>_<expected_outcome>

Testing Philosophy:
    Services return ServiceResult, so tests assert on success, error_code
    and status_code, plus the resulting database state. Emails are queued
    with transaction.on_commit; tests patch the task's delay().
"""

from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from authentication.tests.factories import UserFactory
from workspaces.models import Invitation, Workspace, WorkspaceMember, WorkspaceRole
from workspaces.services import (
    EXPORT_STARTED_MESSAGE,
    InvitationService,
    MemberService,
    WorkspaceService,
    members_by_rank,
    reassign_active_workspace,
    workspaces_for_user,
)
from workspaces.tests.factories import (
    InvitationFactory,
    WorkspaceFactory,
    WorkspaceMemberFactory,
)


@pytest.fixture
def mock_invitation_email(mocker):
    return mocker.patch("workspaces.tasks.send_invitation_email.delay")


@pytest.fixture
def mock_export(mocker):
    return mocker.patch("workspaces.tasks.export_workspace_data.delay")


# =============================================================================
# Query helpers
# =============================================================================


class TestWorkspacesForUser:
    def test_annotates_role_and_member_count(self, workspace, owner, admin_user, member_user):
        """
        Why it matters: The workspace switcher shows role and team size.
        """
        result = workspaces_for_user(member_user).get(pk=workspace.pk)

        assert result.role == WorkspaceRole.MEMBER
        assert result.member_count == 3

    def test_excludes_deleted_and_foreign_workspaces(self, workspace, owner):
        WorkspaceFactory()
        deleted = WorkspaceFactory(owner=owner)
        deleted.soft_delete()

        ids = list(workspaces_for_user(owner).values_list("id", flat=True))

        assert ids == [workspace.id]


class TestMembersByRank:
    def test_owner_then_admins_then_members(self, workspace, owner, admin_user, member_user):
        later_admin = UserFactory()
        WorkspaceMemberFactory(workspace=workspace, user=later_admin, role=WorkspaceRole.ADMIN)

        user_ids = [m.user_id for m in members_by_rank(workspace.id)]

        assert user_ids == [owner.id, admin_user.id, later_admin.id, member_user.id]


class TestReassignActiveWorkspace:
    def test_moves_users_to_oldest_remaining_membership(self, workspace, member_user):
        with freeze_time(timezone.now() - timedelta(days=30)):
            older = WorkspaceFactory()
            WorkspaceMemberFactory(workspace=older, user=member_user)

        moved = reassign_active_workspace(workspace.id, users=[member_user])

        member_user.refresh_from_db()
        assert moved == 1
        assert member_user.active_workspace_id == older.id

    def test_clears_active_workspace_without_alternatives(self, workspace, member_user):
        reassign_active_workspace(workspace.id)

        member_user.refresh_from_db()
        assert member_user.active_workspace_id is None

    def test_skips_archived_workspaces(self, workspace, member_user):
        with freeze_time(timezone.now() - timedelta(days=30)):
            archived = WorkspaceFactory(is_archived=True)
            WorkspaceMemberFactory(workspace=archived, user=member_user)

        reassign_active_workspace(workspace.id)

        member_user.refresh_from_db()
        assert member_user.active_workspace_id is None


# =============================================================================
# WorkspaceService
# =============================================================================


class TestWorkspaceServiceCreate:
    """Tests for WorkspaceService.create()."""

    def test_creates_workspace_with_owner_membership(self, db):
        """
        Creator becomes owner and the workspace becomes active.

        Why it matters: Every workspace must have exactly one owner.
        """
        user = UserFactory()

        result = WorkspaceService.create(user, name="Acme Inc")

        assert result.success
        workspace = result.data
        assert workspace.slug == "acme-inc"
        assert workspace.role == WorkspaceRole.OWNER
        assert workspace.member_count == 1
        assert workspace.created_by == user
        user.refresh_from_db()
        assert user.active_workspace_id == workspace.id

    def test_uses_explicit_slug(self, db):
        user = UserFactory()
        result = WorkspaceService.create(user, name="Acme Inc", slug="acme")
        assert result.data.slug == "acme"

    def test_taken_slug_returns_conflict(self, workspace):
        result = WorkspaceService.create(UserFactory(), name="Other", slug="acme-inc")

        assert not result.success
        assert result.error_code == "SLUG_TAKEN"
        assert result.status_code == 409
        assert result.error == "Slug already taken"

    def test_reserved_slug_is_invalid(self, db):
        result = WorkspaceService.create(UserFactory(), name="Admin", slug="admin")

        assert result.error_code == "INVALID_SLUG"
        assert result.status_code == 400
        assert "slug" in result.errors

    def test_generated_slug_avoids_collision(self, workspace):
        result = WorkspaceService.create(UserFactory(), name="Acme Inc")
        assert result.data.slug == "acme-inc-1"

    def test_name_is_sanitized(self, db):
        result = WorkspaceService.create(UserFactory(), name="  <script>alert(1)</script>Acme  ")
        assert result.data.name == "Acme"


class TestWorkspaceServiceGetActive:
    def test_returns_active_workspace(self, workspace, owner):
        result = WorkspaceService.get_active(owner)
        assert result.data.id == workspace.id

    def test_falls_back_to_oldest_membership(self, workspace, owner):
        """
        Why it matters: A stale pointer must never leave the UI empty.
        """
        owner.active_workspace = None
        owner.save(update_fields=["active_workspace"])

        result = WorkspaceService.get_active(owner)

        owner.refresh_from_db()
        assert result.data.id == workspace.id
        assert owner.active_workspace_id == workspace.id

    def test_none_without_workspaces(self, db):
        assert WorkspaceService.get_active(UserFactory()).data is None

    def test_archived_workspace_is_not_reactivated(self, workspace, owner):
        WorkspaceService.archive(owner, workspace.id)

        result = WorkspaceService.get_active(owner)

        owner.refresh_from_db()
        assert result.success
        assert result.data is None
        assert owner.active_workspace_id is None

    def test_falls_back_past_archived_workspace(self, workspace, owner):
        with freeze_time(timezone.now() + timedelta(days=1)):
            newer = WorkspaceFactory()
            WorkspaceMemberFactory(workspace=newer, user=owner)

        WorkspaceService.archive(owner, workspace.id)
        result = WorkspaceService.get_active(owner)

        owner.refresh_from_db()
        assert result.data.id == newer.id
        assert owner.active_workspace_id == newer.id


class TestWorkspaceServiceUpdate:
    """Tests for WorkspaceService.update()."""

    def test_admin_updates_fields(self, workspace, admin_user):
        result = WorkspaceService.update(
            admin_user,
            workspace.id,
            name="Acme Labs",
            description="Research",
            settings={"theme": "dark"},
        )

        assert result.success
        workspace.refresh_from_db()
        assert workspace.name == "Acme Labs"
        assert workspace.description == "Research"
        assert workspace.settings == {"theme": "dark"}

    def test_member_cannot_update(self, workspace, member_user):
        """
        Why it matters: Members have read access only.
        """
        result = WorkspaceService.update(member_user, workspace.id, name="Hijacked")

        assert result.status_code == 403
        assert result.error_code == "PERMISSION_DENIED"

    def test_slug_change_to_taken_slug_conflicts(self, workspace, owner):
        WorkspaceFactory(slug="taken")

        result = WorkspaceService.update(owner, workspace.id, slug="taken")

        assert result.status_code == 409

    def test_keeping_own_slug_is_allowed(self, workspace, owner):
        result = WorkspaceService.update(owner, workspace.id, slug="acme-inc")
        assert result.success

    def test_clearing_logo(self, workspace, owner):
        workspace.logo_url = "https://cdn.example.com/logo.png"
        workspace.save()

        WorkspaceService.update(owner, workspace.id, logo_url=None)

        workspace.refresh_from_db()
        assert workspace.logo_url == ""


class TestWorkspaceServiceDelete:
    """Tests for WorkspaceService.delete()."""

    def test_owner_soft_deletes(self, workspace, owner, member_user):
        """
        Deleting moves everyone off the workspace.

        Why it matters: Users must not keep a deleted workspace active.
        """
        result = WorkspaceService.delete(owner, workspace.id, "DELETE")

        assert result.success
        assert not Workspace.objects.filter(pk=workspace.pk).exists()
        assert Workspace.all_objects.get(pk=workspace.pk).is_deleted
        owner.refresh_from_db()
        member_user.refresh_from_db()
        assert owner.active_workspace_id is None
        assert member_user.active_workspace_id is None

    def test_wrong_confirmation(self, workspace, owner):
        result = WorkspaceService.delete(owner, workspace.id, "delete")

        assert result.error_code == "INVALID_CONFIRMATION"
        assert Workspace.objects.filter(pk=workspace.pk).exists()

    def test_admin_cannot_delete(self, workspace, admin_user):
        result = WorkspaceService.delete(admin_user, workspace.id, "DELETE")

        assert result.status_code == 403
        assert result.error == "Only workspace owners can delete workspaces"


class TestWorkspaceServiceArchive:
    def test_owner_archives(self, workspace, owner):
        result = WorkspaceService.archive(owner, workspace.id)

        assert result.success
        assert result.data.is_archived
        assert result.data.archived_at is not None

    def test_already_archived(self, workspace, owner):
        WorkspaceService.archive(owner, workspace.id)
        result = WorkspaceService.archive(owner, workspace.id)
        assert result.error_code == "ALREADY_ARCHIVED"

    def test_admin_cannot_archive(self, workspace, admin_user):
        assert WorkspaceService.archive(admin_user, workspace.id).status_code == 403


class TestWorkspaceServiceSwitchActive:
    def test_switches_and_stamps_activity(self, workspace, outsider):
        other = WorkspaceFactory(owner=outsider)
        WorkspaceMemberFactory(workspace=workspace, user=outsider)

        with freeze_time("2026-05-01 09:00:00"):
            result = WorkspaceService.switch_active(outsider, workspace.id)

        assert result.success
        outsider.refresh_from_db()
        assert outsider.active_workspace_id == workspace.id
        assert outsider.active_workspace_id != other.id
        membership = WorkspaceMember.objects.get(workspace=workspace, user=outsider)
        assert membership.last_active_at.isoformat().startswith("2026-05-01T09:00:00")

    def test_non_member_is_rejected(self, workspace, outsider):
        """
        Why it matters: Switching must not grant access to other tenants.
        """
        result = WorkspaceService.switch_active(outsider, workspace.id)

        assert result.status_code == 403
        assert result.error_code == "NOT_MEMBER"


class TestWorkspaceServiceExport:
    def test_admin_queues_export(
        self, workspace, admin_user, mock_export, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            result = WorkspaceService.export_data(admin_user, workspace.id)

        assert result.data == {"message": EXPORT_STARTED_MESSAGE}
        mock_export.assert_called_once_with(str(workspace.id), admin_user.pk)

    def test_member_cannot_export(self, workspace, member_user, mock_export):
        result = WorkspaceService.export_data(member_user, workspace.id)

        assert result.status_code == 403
        mock_export.assert_not_called()


# =============================================================================
# MemberService
# =============================================================================


class TestMemberServiceList:
    def test_member_lists_members(self, workspace, member_user, admin_user):
        result = MemberService.list(member_user, workspace.id)
        assert result.data.count() == 3

    def test_outsider_is_denied(self, workspace, outsider):
        assert MemberService.list(outsider, workspace.id).status_code == 403


class TestMemberServiceRemove:
    """Tests for MemberService.remove()."""

    def test_admin_removes_member(self, workspace, admin_user, member_user):
        result = MemberService.remove(admin_user, workspace.id, member_user.id)

        assert result.success
        assert not WorkspaceMember.objects.filter(workspace=workspace, user=member_user).exists()
        member_user.refresh_from_db()
        assert member_user.active_workspace_id is None

    def test_member_cannot_remove(self, workspace, member_user, admin_user):
        result = MemberService.remove(member_user, workspace.id, admin_user.id)
        assert result.status_code == 403

    def test_cannot_remove_self(self, workspace, admin_user):
        result = MemberService.remove(admin_user, workspace.id, admin_user.id)
        assert result.error_code == "CANNOT_REMOVE_SELF"

    def test_cannot_remove_owner(self, workspace, admin_user, owner):
        """
        Why it matters: A workspace without an owner cannot be managed.
        """
        result = MemberService.remove(admin_user, workspace.id, owner.id)

        assert result.error_code == "CANNOT_REMOVE_OWNER"
        assert result.status_code == 403

    def test_admin_cannot_remove_admin(self, workspace, admin_user):
        other_admin = UserFactory()
        WorkspaceMemberFactory(workspace=workspace, user=other_admin, role=WorkspaceRole.ADMIN)

        result = MemberService.remove(admin_user, workspace.id, other_admin.id)

        assert result.error == "Admins cannot remove other admins"

    def test_owner_removes_admin(self, workspace, owner, admin_user):
        assert MemberService.remove(owner, workspace.id, admin_user.id).success

    def test_unknown_member(self, workspace, owner, outsider):
        result = MemberService.remove(owner, workspace.id, outsider.id)
        assert result.error_code == "MEMBER_NOT_FOUND"


class TestMemberServiceUpdateRole:
    def test_owner_promotes_member(self, workspace, owner, member_user):
        result = MemberService.update_role(owner, workspace.id, member_user.id, "admin")

        assert result.success
        assert result.data.role == WorkspaceRole.ADMIN

    def test_admin_cannot_change_roles(self, workspace, admin_user, member_user):
        result = MemberService.update_role(admin_user, workspace.id, member_user.id, "admin")
        assert result.status_code == 403

    def test_owner_role_cannot_be_assigned(self, workspace, owner, member_user):
        """
        Why it matters: Ownership only moves through transfer_ownership.
        """
        result = MemberService.update_role(owner, workspace.id, member_user.id, "owner")
        assert result.error_code == "INVALID_ROLE"

    def test_owner_role_cannot_be_changed(self, workspace, owner):
        result = MemberService.update_role(owner, workspace.id, owner.id, "member")
        assert result.error_code == "CANNOT_CHANGE_OWNER"


class TestMemberServiceLeave:
    def test_member_leaves(self, workspace, member_user):
        result = MemberService.leave(member_user, workspace.id)

        assert result.success
        assert member_user.active_workspace_id is None

    def test_owner_cannot_leave(self, workspace, owner):
        result = MemberService.leave(owner, workspace.id)

        assert result.error_code == "OWNER_CANNOT_LEAVE"
        assert result.status_code == 400

    def test_non_member(self, workspace, outsider):
        assert MemberService.leave(outsider, workspace.id).status_code == 404


class TestMemberServiceTransferOwnership:
    """Tests for MemberService.transfer_ownership()."""

    def test_transfers_and_demotes_previous_owner(self, workspace, owner, member_user):
        """
        Why it matters: There is exactly one owner before and after.
        """
        result = MemberService.transfer_ownership(owner, workspace.id, member_user.id)

        assert result.success
        roles = dict(
            WorkspaceMember.objects.filter(workspace=workspace).values_list("user_id", "role")
        )
        assert roles[owner.id] == WorkspaceRole.ADMIN
        assert roles[member_user.id] == WorkspaceRole.OWNER
        assert list(roles.values()).count(WorkspaceRole.OWNER) == 1

    def test_transfer_to_self(self, workspace, owner):
        result = MemberService.transfer_ownership(owner, workspace.id, owner.id)
        assert result.error_code == "SAME_USER"

    def test_admin_cannot_transfer(self, workspace, admin_user, member_user):
        result = MemberService.transfer_ownership(admin_user, workspace.id, member_user.id)
        assert result.error_code == "NOT_OWNER"

    def test_target_must_be_member(self, workspace, owner, outsider):
        result = MemberService.transfer_ownership(owner, workspace.id, outsider.id)
        assert result.status_code == 404


# =============================================================================
# InvitationService
# =============================================================================


class TestInvitationServiceCreate:
    """Tests for InvitationService.create()."""

    def test_admin_invites(
        self, workspace, admin_user, mock_invitation_email, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            result = InvitationService.create(
                admin_user, workspace.id, "  New.Person@Example.com ", "admin"
            )

        assert result.success
        invitation = result.data
        assert invitation.email == "new.person@example.com"
        assert invitation.role == WorkspaceRole.ADMIN
        assert invitation.invited_by == admin_user
        mock_invitation_email.assert_called_once_with(invitation.id)

    def test_member_cannot_invite(self, workspace, member_user, mock_invitation_email):
        result = InvitationService.create(member_user, workspace.id, "x@example.com")
        assert result.status_code == 403

    def test_outsider_cannot_invite(self, workspace, outsider, mock_invitation_email):
        result = InvitationService.create(outsider, workspace.id, "x@example.com", "admin")

        assert not result.success
        assert result.error_code == "PERMISSION_DENIED"
        assert not Invitation.objects.exists()

    def test_already_member(self, workspace, owner, member_user, mock_invitation_email):
        result = InvitationService.create(owner, workspace.id, "MEMBER@example.com")

        assert result.error_code == "ALREADY_MEMBER"
        assert result.status_code == 409

    def test_already_invited(self, invitation, owner, mock_invitation_email):
        """
        Why it matters: One pending invitation per address avoids spam.
        """
        result = InvitationService.create(owner, invitation.workspace_id, invitation.email)
        assert result.error_code == "ALREADY_INVITED"
        assert result.status_code == 409
        assert Invitation.objects.filter(email=invitation.email).count() == 1

    def test_expired_invitation_allows_new_one(self, invitation, owner, mock_invitation_email):
        invitation.expires_at = timezone.now() - timedelta(minutes=1)
        invitation.save()

        result = InvitationService.create(owner, invitation.workspace_id, invitation.email)

        assert result.success

    def test_owner_role_rejected(self, workspace, owner, mock_invitation_email):
        result = InvitationService.create(owner, workspace.id, "x@example.com", "owner")
        assert result.error_code == "INVALID_ROLE"


class TestInvitationServiceCreateBulk:
    def test_mixed_results(self, invitation, owner, member_user, mock_invitation_email):
        result = InvitationService.create_bulk(
            owner,
            invitation.workspace_id,
            ["fresh@example.com", member_user.email, invitation.email],
        )

        assert result.data == [
            {"email": "fresh@example.com", "success": True},
            {"email": member_user.email, "success": False, "error": "Already a member"},
            {"email": invitation.email, "success": False, "error": "Invitation already sent"},
        ]

    def test_duplicate_addresses_in_one_batch(self, workspace, owner, mock_invitation_email):
        result = InvitationService.create_bulk(
            owner, workspace.id, ["dup@example.com", "DUP@example.com"]
        )

        assert [r["success"] for r in result.data] == [True, False]

    def test_member_cannot_bulk_invite(self, workspace, member_user, mock_invitation_email):
        result = InvitationService.create_bulk(
            member_user, workspace.id, ["a@example.com", "b@example.com"]
        )

        assert result.status_code == 403
        assert not Invitation.objects.exists()

    def test_size_limits(self, workspace, owner):
        too_many = [f"user{i}@example.com" for i in range(51)]

        assert InvitationService.create_bulk(owner, workspace.id, []).error_code == (
            "INVALID_BULK_SIZE"
        )
        assert InvitationService.create_bulk(owner, workspace.id, too_many).error_code == (
            "INVALID_BULK_SIZE"
        )


class TestInvitationServiceGet:
    def test_pending_invitation(self, invitation):
        assert InvitationService.get(invitation.token).data == invitation

    @pytest.mark.parametrize("field", ["accepted_at", "canceled_at"])
    def test_closed_invitation_is_invalid(self, invitation, field):
        setattr(invitation, field, timezone.now())
        invitation.save()

        result = InvitationService.get(invitation.token)

        assert result.error_code == "INVALID_INVITATION"
        assert result.status_code == 404

    def test_deleted_workspace(self, invitation):
        invitation.workspace.soft_delete()
        assert not InvitationService.get(invitation.token).success


class TestInvitationServiceAccept:
    """Tests for InvitationService.accept()."""

    def test_creates_membership(self, invitation):
        """
        Accepting adds the user with the invited role.

        Why it matters: This is the only way to join someone else's workspace.
        """
        user = UserFactory(email="invitee@example.com")

        result = InvitationService.accept(user, invitation.token)

        assert result.success
        assert result.data["already_member"] is False
        assert result.data["membership"].role == WorkspaceRole.MEMBER
        invitation.refresh_from_db()
        assert invitation.accepted_by == user
        user.refresh_from_db()
        assert user.active_workspace_id == invitation.workspace_id

    def test_email_comparison_is_case_insensitive(self, invitation):
        user = UserFactory(email="INVITEE@example.com")
        assert InvitationService.accept(user, invitation.token).success

    def test_keeps_existing_active_workspace(self, invitation, outsider):
        own = WorkspaceFactory(owner=outsider)
        outsider.active_workspace = own
        outsider.save()
        invitation.email = outsider.email
        invitation.save()

        InvitationService.accept(outsider, invitation.token)

        outsider.refresh_from_db()
        assert outsider.active_workspace_id == own.id

    def test_email_mismatch(self, invitation, outsider):
        result = InvitationService.accept(outsider, invitation.token)

        assert result.error_code == "EMAIL_MISMATCH"
        assert result.status_code == 403

    def test_anonymous_with_existing_account(self, invitation):
        UserFactory(email=invitation.email)
        result = InvitationService.accept(None, invitation.token)
        assert result.error_code == "LOGIN_REQUIRED"
        assert result.status_code == 401

    def test_anonymous_without_account(self, invitation):
        result = InvitationService.accept(None, invitation.token)
        assert result.error_code == "SIGNUP_REQUIRED"

    def test_expired(self, invitation):
        user = UserFactory(email=invitation.email)
        with freeze_time(invitation.expires_at + timedelta(seconds=1)):
            result = InvitationService.accept(user, invitation.token)
        assert result.error_code == "INVALID_INVITATION"

    def test_deleted_workspace(self, invitation):
        user = UserFactory(email=invitation.email)
        invitation.workspace.soft_delete()

        result = InvitationService.accept(user, invitation.token)

        assert result.error_code == "WORKSPACE_DELETED"

    def test_already_member_marks_invitation_accepted(self, invitation, member_user):
        invitation.email = member_user.email
        invitation.save()

        result = InvitationService.accept(member_user, invitation.token)

        assert result.data["already_member"] is True
        invitation.refresh_from_db()
        assert invitation.accepted_at is not None

    def test_token_cannot_be_reused(self, invitation):
        user = UserFactory(email=invitation.email)
        InvitationService.accept(user, invitation.token)

        result = InvitationService.accept(user, invitation.token)

        assert result.error_code == "INVALID_INVITATION"

    def test_locks_invitation_row(self, invitation, mocker):
        """Concurrent accepts of one token serialize on the invitation row."""
        user = UserFactory(email=invitation.email)
        lock = mocker.spy(Invitation.objects, "select_for_update")

        result = InvitationService.accept(user, invitation.token)

        assert result.success
        lock.assert_called_once()
        assert WorkspaceMember.objects.filter(
            workspace=invitation.workspace, user=user
        ).count() == 1

    def test_canceled_while_accepting(self, invitation, mocker):
        user = UserFactory(email=invitation.email)
        original = Invitation.objects.select_for_update

        def cancel_then_lock(*args, **kwargs):
            Invitation.objects.filter(pk=invitation.pk).update(
                canceled_at=timezone.now()
            )
            return original(*args, **kwargs)

        mocker.patch.object(
            Invitation.objects, "select_for_update", side_effect=cancel_then_lock
        )

        result = InvitationService.accept(user, invitation.token)

        assert result.error_code == "INVALID_INVITATION"
        assert not WorkspaceMember.objects.filter(user=user).exists()


class TestInvitationServiceCancel:
    def test_inviter_cancels(self, invitation, owner):
        result = InvitationService.cancel(owner, invitation.id)

        assert result.success
        invitation.refresh_from_db()
        assert invitation.canceled_at is not None

    def test_inviting_member_can_cancel_own_invitation(self, workspace, member_user):
        invitation = InvitationFactory(workspace=workspace, invited_by=member_user)
        assert InvitationService.cancel(member_user, invitation.id).success

    def test_member_cannot_cancel_others(self, invitation, member_user):
        assert InvitationService.cancel(member_user, invitation.id).status_code == 403

    def test_already_canceled(self, invitation, owner):
        InvitationService.cancel(owner, invitation.id)
        assert InvitationService.cancel(owner, invitation.id).error_code == "ALREADY_CANCELED"

    def test_already_accepted(self, invitation, owner):
        invitation.accepted_at = timezone.now()
        invitation.save()
        assert InvitationService.cancel(owner, invitation.id).error_code == "ALREADY_ACCEPTED"

    def test_unknown(self, db, owner):
        assert InvitationService.cancel(owner, 999999).status_code == 404


class TestInvitationServiceResend:
    def test_extends_expiry_and_requeues(
        self, invitation, admin_user, mock_invitation_email, django_capture_on_commit_callbacks
    ):
        """
        Why it matters: Invitees who missed the email get a fresh week.
        """
        with freeze_time(timezone.now() + timedelta(days=3)):
            with django_capture_on_commit_callbacks(execute=True):
                result = InvitationService.resend(admin_user, invitation.id)
            expected = timezone.now() + timedelta(days=7)

        assert result.success
        invitation.refresh_from_db()
        assert invitation.expires_at == expected
        mock_invitation_email.assert_called_once_with(invitation.id)

    def test_expired_cannot_be_resent(self, invitation, owner):
        invitation.expires_at = timezone.now() - timedelta(seconds=1)
        invitation.save()
        assert InvitationService.resend(owner, invitation.id).error_code == "INVITATION_EXPIRED"

    def test_member_cannot_resend(self, invitation, member_user):
        assert InvitationService.resend(member_user, invitation.id).status_code == 403


class TestInvitationServiceList:
    def test_pending_only(self, invitation, owner):
        InvitationFactory(workspace=invitation.workspace, canceled_at=timezone.now())

        pending = InvitationService.list_pending(owner, invitation.workspace_id).data
        everything = InvitationService.list(owner, invitation.workspace_id).data

        assert list(pending) == [invitation]
        assert everything.count() == 2

    def test_member_denied(self, invitation, member_user):
        result = InvitationService.list_pending(member_user, invitation.workspace_id)
        assert result.status_code == 403

    def test_outsider_cannot_read_tokens(self, invitation, outsider):
        result = InvitationService.list(outsider, invitation.workspace_id)

        assert not result.success
        assert result.data is None
        assert result.status_code == 403


def test_invitation_count_is_untouched_by_failed_create(workspace, member_user):
    InvitationService.create(member_user, workspace.id, "x@example.com")
    assert Invitation.objects.count() == 0
