"""
Celery tasks for workspaces.

This module defines async tasks for:
- Sending invitation emails
- Building and emailing workspace data exports
- Purging long-expired invitations

Related files:
    - services.py: InvitationService and WorkspaceService queue these tasks
    - templates/workspaces/email/: Email templates

Usage:
    from workspaces.tasks import send_invitation_email
    send_invitation_email.delay(invitation_id=42)
"""

import json
import logging
from datetime import timedelta
from urllib.parse import urlencode

from celery import shared_task
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

logger = logging.getLogger(__name__)


def build_invitation_url(token: str, locale: str = "en") -> str:
    """Link to the web client's invitation page."""
    query = urlencode({"token": token})
    return f"{settings.FRONTEND_URL.rstrip('/')}/{locale}/invite?{query}"


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_invitation_email(self, invitation_id: int) -> bool:
    """
    Send the invitation link to the invited address.

    Skips invitations that were accepted or canceled before the task ran.

    Args:
        invitation_id: ID of the Invitation to send

    Returns:
        True if email was sent successfully
    """
    from toolkit.services.email import EmailService
    from workspaces.models import Invitation

    try:
        invitation = Invitation.objects.select_related("workspace", "invited_by").get(
            id=invitation_id
        )
    except Invitation.DoesNotExist:
        logger.error(f"Invitation {invitation_id} not found")
        return False

    if not invitation.is_pending:
        logger.info(f"Invitation {invitation_id} is {invitation.status}, not sending")
        return False

    inviter = invitation.invited_by
    inviter_name = inviter.get_full_name() if inviter else "A teammate"
    locale = inviter.locale if inviter else "en"

    return EmailService.send(
        to=invitation.email,
        subject=f"You're invited to join {invitation.workspace.name}",
        template_name="workspaces/email/invitation",
        context={
            "inviter_name": inviter_name,
            "workspace_name": invitation.workspace.name,
            "role": invitation.get_role_display(),
            "accept_url": build_invitation_url(invitation.token, locale),
            "expires_at": invitation.expires_at,
        },
    )


def build_workspace_export(workspace) -> dict:
    """JSON-serializable snapshot of a workspace, its members and invitations."""
    members = workspace.members.select_related("user").order_by("joined_at")
    invitations = workspace.invitations.order_by("-created_at")
    return {
        "exported_at": timezone.now(),
        "workspace": {
            "id": workspace.id,
            "name": workspace.name,
            "slug": workspace.slug,
            "description": workspace.description,
            "logo_url": workspace.logo_url,
            "settings": workspace.settings,
            "is_archived": workspace.is_archived,
            "created_at": workspace.created_at,
        },
        "members": [
            {
                "user_id": m.user_id,
                "email": m.user.email,
                "full_name": m.user.full_name,
                "role": m.role,
                "joined_at": m.joined_at,
            }
            for m in members
        ],
        "invitations": [
            {
                "email": i.email,
                "role": i.role,
                "status": str(i.status),
                "created_at": i.created_at,
                "expires_at": i.expires_at,
            }
            for i in invitations
        ],
    }


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def export_workspace_data(self, workspace_id: str, user_id: int) -> bool:
    """
    Build the workspace export and email it as a JSON attachment.

    Args:
        workspace_id: Workspace UUID as a string
        user_id: Requesting user

    Returns:
        True if the email was sent
    """
    from authentication.models import User
    from toolkit.services.email import EmailService
    from workspaces.models import Workspace

    try:
        workspace = Workspace.objects.get(id=workspace_id)
        user = User.objects.get(id=user_id)
    except (Workspace.DoesNotExist, User.DoesNotExist):
        logger.error(f"Export skipped: workspace {workspace_id} or user {user_id} missing")
        return False

    payload = json.dumps(build_workspace_export(workspace), cls=DjangoJSONEncoder, indent=2)
    filename = f"{workspace.slug}-export-{timezone.now():%Y%m%d}.json"

    sent = EmailService.send(
        to=user.email,
        subject=f"Your export of {workspace.name} is ready",
        template_name="workspaces/email/export",
        context={"name": user.get_short_name(), "workspace_name": workspace.name},
        attachments=[(filename, payload, "application/json")],
    )
    logger.info(f"Workspace {workspace_id} export for user {user_id}: sent={sent}")
    return sent


@shared_task
def cleanup_expired_invitations() -> int:
    """
    Delete pending invitations that expired more than
    INVITATION_RETENTION_DAYS ago.

    Scheduled daily via CELERY_BEAT_SCHEDULE.

    Returns:
        Number of invitations deleted
    """
    from workspaces.models import Invitation

    cutoff = timezone.now() - timedelta(days=settings.INVITATION_RETENTION_DAYS)
    deleted, _ = Invitation.objects.filter(
        accepted_at__isnull=True,
        expires_at__lt=cutoff,
    ).delete()

    logger.info(f"Cleaned up {deleted} expired invitations")
    return deleted
