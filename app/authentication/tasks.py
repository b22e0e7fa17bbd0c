"""
Celery tasks for authentication.

This module defines async tasks for:
- Sending verification emails
- Sending password reset emails
- Sending email change confirmations
- Cleaning up expired tokens
- Purging old login attempts

Every email task takes the id of an EmailVerificationToken; the link in
the email points at the API's /auth/callback/ endpoint, which consumes
the token and redirects to the web client.

Related files:
    - services.py: AuthService that queues these tasks
    - models.py: EmailVerificationToken and LoginAttempt models
    - views.py: AuthCallbackView handles the links

Usage:
    from authentication.tasks import send_verification_email
    send_verification_email.delay(token_id=123)
"""

import logging
from datetime import timedelta
from urllib.parse import urlencode

from celery import shared_task
from django.conf import settings
from django.db.models import Q
from django.utils import timezone

logger = logging.getLogger(__name__)

LOGIN_ATTEMPT_RETENTION_DAYS = 30


def build_callback_url(token: str, link_type: str, locale: str = "en") -> str:
    """Link to the API callback that consumes `token`."""
    query = urlencode({"token": token, "type": link_type, "locale": locale})
    return f"{settings.API_URL.rstrip('/')}/api/v1/auth/callback/?{query}"


def _get_token(token_id: int):
    from authentication.models import EmailVerificationToken

    try:
        return EmailVerificationToken.objects.select_related("user").get(id=token_id)
    except EmailVerificationToken.DoesNotExist:
        logger.error(f"Verification token {token_id} not found")
        return None


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_verification_email(self, token_id: int) -> bool:
    """
    Send email verification link to user.

    Args:
        token_id: ID of the EmailVerificationToken to send

    Returns:
        True if email was sent successfully
    """
    from toolkit.services.email import EmailService

    token = _get_token(token_id)
    if token is None:
        return False

    user = token.user
    return EmailService.send(
        to=user.email,
        subject="Verify your email address",
        template_name="authentication/email/verification",
        context={
            "name": user.get_short_name(),
            "verification_url": build_callback_url(token.token, "signup", user.locale),
            "expires_hours": 24,
        },
    )


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_password_reset_email(self, token_id: int) -> bool:
    """
    Send password reset link to user.

    Args:
        token_id: ID of the password reset token

    Returns:
        True if email was sent successfully
    """
    from toolkit.services.email import EmailService

    token = _get_token(token_id)
    if token is None:
        return False

    user = token.user
    return EmailService.send(
        to=user.email,
        subject="Reset your password",
        template_name="authentication/email/password_reset",
        context={
            "name": user.get_short_name(),
            "reset_url": build_callback_url(token.token, "recovery", user.locale),
            "expires_hours": 1,
        },
    )


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_email_change_email(self, token_id: int) -> bool:
    """
    Send the confirmation link for an email change to the new address.

    Args:
        token_id: ID of the email_change token

    Returns:
        True if email was sent successfully
    """
    from toolkit.services.email import EmailService

    token = _get_token(token_id)
    if token is None:
        return False

    user = token.user
    return EmailService.send(
        to=token.new_email,
        subject="Confirm your new email address",
        template_name="authentication/email/email_change",
        context={
            "name": user.get_short_name(),
            "old_email": user.email,
            "new_email": token.new_email,
            "confirm_url": build_callback_url(token.token, "email_change", user.locale),
            "expires_hours": 24,
        },
    )


@shared_task
def cleanup_expired_tokens() -> int:
    """
    Remove expired and used verification tokens.

    Scheduled daily via CELERY_BEAT_SCHEDULE.

    Returns:
        Number of tokens deleted
    """
    from authentication.models import EmailVerificationToken

    deleted, _ = EmailVerificationToken.objects.filter(
        Q(expires_at__lt=timezone.now()) | Q(used_at__isnull=False)
    ).delete()

    logger.info(f"Cleaned up {deleted} expired tokens")
    return deleted


@shared_task
def cleanup_login_attempts(days: int = LOGIN_ATTEMPT_RETENTION_DAYS) -> int:
    """
    Purge login attempts older than `days`.

    Scheduled daily via CELERY_BEAT_SCHEDULE.

    Returns:
        Number of attempts deleted
    """
    from authentication.models import LoginAttempt

    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = LoginAttempt.objects.filter(created_at__lt=cutoff).delete()

    logger.info(f"Purged {deleted} login attempts older than {days} days")
    return deleted
