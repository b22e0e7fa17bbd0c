"""
Email service for centralized email sending.

This module provides the EmailService class for sending emails with:
- Django template rendering for plain text and optional HTML
- Async sending via Celery

Related files:
    - toolkit/tasks.py: Async email task
    - */templates/*/email/: Email templates per app

Configuration:
    Email settings are read from Django settings:
    - EMAIL_BACKEND
    - EMAIL_HOST, EMAIL_PORT
    - DEFAULT_FROM_EMAIL

Usage:
    from toolkit.services.email import EmailService

    # Send email with template
    EmailService.send(
        to="user@example.com",
        subject="Verify your email address",
        template_name="authentication/email/verification",
        context={"verification_url": url},
    )

    # Send async
    EmailService.send_async(
        to="user@example.com",
        subject="You're invited",
        template_name="workspaces/email/invitation",
        context={"accept_url": url},
    )
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


class EmailService:
    """
    Centralized email sending with template support.

    Each template name maps to `<name>.txt` (required) and `<name>.html`
    (optional). SMTP failures are logged and reported as False so callers
    (usually Celery tasks) can decide whether to retry.

    Usage:
        # Send template email
        success = EmailService.send(
            to="user@example.com",
            subject="Welcome!",
            template_name="authentication/email/verification",
            context={"user_name": "Ana"},
        )

        # Send raw email
        success = EmailService.send_raw(
            to="user@example.com",
            subject="Quick note",
            body_text="Plain text content",
            body_html="<p>HTML content</p>",
        )
    """

    @staticmethod
    def send(
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict,
        from_email: str | None = None,
        reply_to: str | None = None,
        attachments: list[tuple[str, str | bytes, str]] | None = None,
    ) -> bool:
        """
        Send email using a template.

        Args:
            to: Recipient email address(es)
            subject: Email subject line
            template_name: Name of template (without extension)
                           Looks for: {template_name}.txt and {template_name}.html
            context: Template context variables
            from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)
            reply_to: Reply-to address
            attachments: (filename, content, mimetype) tuples

        Returns:
            True if email was sent successfully

        Raises:
            TemplateDoesNotExist: The plain text template is missing
        """
        body_text = render_to_string(f"{template_name}.txt", context)
        try:
            body_html = render_to_string(f"{template_name}.html", context)
        except TemplateDoesNotExist:
            body_html = None

        return EmailService.send_raw(
            to=to,
            subject=subject,
            body_text=body_text,
            body_html=body_html,
            from_email=from_email,
            reply_to=reply_to,
            attachments=attachments,
        )

    @staticmethod
    def send_raw(
        to: str | list[str],
        subject: str,
        body_text: str,
        body_html: str | None = None,
        from_email: str | None = None,
        reply_to: str | None = None,
        attachments: list[tuple[str, str | bytes, str]] | None = None,
    ) -> bool:
        """
        Send email with raw content (no template).

        Args:
            to: Recipient email address(es)
            subject: Email subject line
            body_text: Plain text email body
            body_html: HTML email body (optional)
            from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)
            reply_to: Reply-to address
            attachments: (filename, content, mimetype) tuples

        Returns:
            True if email was sent successfully
        """
        if isinstance(to, str):
            to = [to]

        email = EmailMultiAlternatives(
            subject=subject,
            body=body_text,
            from_email=from_email or settings.DEFAULT_FROM_EMAIL,
            to=to,
            reply_to=[reply_to] if reply_to else None,
        )
        if body_html:
            email.attach_alternative(body_html, "text/html")
        for filename, content, mimetype in attachments or ():
            email.attach(filename, content, mimetype)

        try:
            email.send(fail_silently=False)
        except (SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False

        logger.info(f"Email sent to {to}: {subject}")
        return True

    @staticmethod
    def send_async(
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict,
        **kwargs,
    ) -> None:
        """
        Queue email for async sending via Celery.

        This method returns immediately; email is sent in background.

        Note:
            Context must be JSON-serializable for Celery.
        """
        from toolkit.tasks import send_email_task

        send_email_task.delay(
            to=to,
            subject=subject,
            template_name=template_name,
            context=context,
            **kwargs,
        )
        logger.debug(f"Email queued for {to}: {subject}")
