"""
Shared services used by the authentication and workspaces apps.

Usage:
    from toolkit.services import EmailService
"""

from toolkit.services.email import EmailService

__all__ = ["EmailService"]
