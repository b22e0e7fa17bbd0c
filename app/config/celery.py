"""
Celery configuration for the Django application.

Background work in this project:
- Transactional email (verification, password reset, invitations)
- Workspace data exports, delivered by email
- Periodic cleanup of expired tokens, invitations and login attempts

Redis is both the message broker and result backend. Periodic tasks are
declared in settings.CELERY_BEAT_SCHEDULE and stored by django_celery_beat.

Usage:
    from workspaces.tasks import send_invitation_email

    transaction.on_commit(lambda: send_invitation_email.delay(invitation.id))

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import logging
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

logger = logging.getLogger(__name__)

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up tasks.py in authentication, workspaces and toolkit
app.autodiscover_tasks()


@app.task(bind=True, ignore_result=True)
def debug_task(self):
    """Log the task request to verify worker connectivity."""
    logger.info("Celery debug task request: %r", self.request)
