"""
Tests for workspace Celery tasks.

Covers:
- send_invitation_email: link, skipping closed invitations
- export_workspace_data: JSON attachment contents
- cleanup_expired_invitations: retention window
"""

import json
from datetime import timedelta

from django.core import mail
from django.utils import timezone
from freezegun import freeze_time

from workspaces.models import Invitation
from workspaces.tasks import (
    build_invitation_url,
    build_workspace_export,
    cleanup_expired_invitations,
    export_workspace_data,
    send_invitation_email,
)
from workspaces.tests.factories import InvitationFactory


class TestBuildInvitationUrl:
    def test_points_at_localized_invite_page(self, settings):
        settings.FRONTEND_URL = "https://app.example.com/"

        url = build_invitation_url("abc123", "pt-BR")

        assert url == "https://app.example.com/pt-BR/invite?token=abc123"


class TestSendInvitationEmail:
    """Tests for send_invitation_email task."""

    def test_sends_link_to_invitee(self, invitation, settings):
        """
        Why it matters: The email is the only way the token reaches the invitee.
        """
        settings.FRONTEND_URL = "https://app.example.com"

        assert send_invitation_email(invitation.id) is True

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == ["invitee@example.com"]
        assert message.subject == "You're invited to join Acme Inc"
        assert f"https://app.example.com/en/invite?token={invitation.token}" in message.body
        assert "Olivia Owner" in message.body

    def test_skips_canceled_invitation(self, invitation):
        invitation.canceled_at = timezone.now()
        invitation.save()

        assert send_invitation_email(invitation.id) is False
        assert mail.outbox == []

    def test_missing_invitation(self, db):
        assert send_invitation_email(424242) is False


class TestExportWorkspaceData:
    def test_build_export_contents(self, workspace, invitation, member_user):
        data = build_workspace_export(workspace)

        assert data["workspace"]["slug"] == "acme-inc"
        assert {m["email"] for m in data["members"]} == {
            "owner@example.com",
            "member@example.com",
        }
        assert data["invitations"][0]["status"] == "pending"
        assert "token" not in data["invitations"][0]

    def test_emails_json_attachment(self, workspace, owner):
        """
        Why it matters: The export arrives as a file the user can keep.
        """
        with freeze_time("2026-04-02 10:00:00"):
            assert export_workspace_data(str(workspace.id), owner.id) is True

        message = mail.outbox[0]
        assert message.to == [owner.email]
        filename, content, mimetype = message.attachments[0]
        assert filename == "acme-inc-export-20260402.json"
        assert mimetype == "application/json"
        assert json.loads(content)["workspace"]["name"] == "Acme Inc"

    def test_deleted_workspace_is_skipped(self, workspace, owner):
        workspace.soft_delete()

        assert export_workspace_data(str(workspace.id), owner.id) is False
        assert mail.outbox == []


class TestCleanupExpiredInvitations:
    def test_deletes_only_past_retention(self, workspace, settings):
        settings.INVITATION_RETENTION_DAYS = 30
        now = timezone.now()
        old = InvitationFactory(workspace=workspace, expires_at=now - timedelta(days=31))
        recent = InvitationFactory(workspace=workspace, expires_at=now - timedelta(days=5))
        accepted = InvitationFactory(
            workspace=workspace,
            expires_at=now - timedelta(days=60),
            accepted_at=now - timedelta(days=62),
        )

        deleted = cleanup_expired_invitations()

        assert deleted == 1
        remaining = set(Invitation.objects.values_list("id", flat=True))
        assert remaining == {recent.id, accepted.id}
        assert old.id not in remaining
