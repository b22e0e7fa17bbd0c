# =============================================================================
# Django Project Configuration
# =============================================================================
# Settings, URL routing, ASGI/WSGI entry points and the Celery app for the
# authentication, workspaces and analytics APIs.
#
# The Celery app is imported here so shared_task functions in every
# installed app bind to it when Django starts.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
