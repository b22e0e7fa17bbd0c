"""
Django app configuration for toolkit.

Toolkit has no models; it is installed so Django finds its Celery tasks.
"""

from django.apps import AppConfig


class ToolkitConfig(AppConfig):
    """Configuration for the toolkit application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "toolkit"
    verbose_name = "Toolkit"
