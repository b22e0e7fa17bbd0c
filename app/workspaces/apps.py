"""
Workspaces application configuration.

This app provides team workspaces with:
- Role-based permissions (owner, admin, member)
- Email invitations with expiry
- Soft deletion and archiving
"""

from django.apps import AppConfig


class WorkspacesConfig(AppConfig):
    """Configuration for the workspaces application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "workspaces"
    verbose_name = "Workspaces"
