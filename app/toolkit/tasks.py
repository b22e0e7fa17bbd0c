"""
Celery tasks for toolkit services.

Usage:
    from toolkit.tasks import send_email_task
    send_email_task.delay(
        to="user@example.com",
        subject="Hello",
        template_name="workspaces/email/invitation",
        context={...},
    )
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised so Celery retries an email the backend refused."""


@shared_task(
    bind=True,
    autoretry_for=(EmailDeliveryError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_email_task(
    self,
    to,
    subject: str,
    template_name: str,
    context: dict,
    **kwargs,
) -> bool:
    """
    Send a template email in the background.

    Returns:
        True once the email is delivered

    Raises:
        EmailDeliveryError: Delivery failed (triggers a retry)
    """
    from toolkit.services.email import EmailService

    sent = EmailService.send(
        to=to,
        subject=subject,
        template_name=template_name,
        context=context,
        **kwargs,
    )
    if not sent:
        raise EmailDeliveryError(f"Could not deliver '{subject}' to {to}")
    return True
