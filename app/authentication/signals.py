"""
Django signals for authentication.

This module defines signal handlers for:
- Auto-creating Profile when User is created
- Filling the user's name and avatar from social login data
- Logging email verification

Related files:
    - models.py: User, Profile, and LinkedAccount models
    - apps.py: Signal import in ready()
    - adapters.py: Sets extra_data with name info for social logins

Usage:
    Signals are automatically connected when the app is ready.
    See apps.py for the import that triggers connection.
"""

import logging

from allauth.socialaccount.signals import social_account_added
from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, **kwargs):
    """
    Create a Profile for newly created users.

    Args:
        sender: The User model class
        instance: The User instance that was saved
        created: Boolean indicating if this is a new record
    """
    if created:
        from authentication.models import Profile

        Profile.objects.get_or_create(user=instance)
        logger.debug(f"Profile created for user: {instance.email}")


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def log_email_verification(sender, instance, created, update_fields, **kwargs):
    """Log when a user's email is verified."""
    if not created and update_fields:
        if "email_verified" in update_fields and instance.email_verified:
            logger.info(f"Email verified for user: {instance.email}")


@receiver(social_account_added)
def populate_user_from_social(sender, request, sociallogin, **kwargs):
    """
    Fill full_name and avatar_url from the social provider's data.

    Existing values are never overwritten.
    """
    user = sociallogin.user
    extra_data = sociallogin.account.extra_data
    provider = sociallogin.account.provider

    full_name = extra_data.get("name") or " ".join(
        part
        for part in (
            extra_data.get("first_name") or extra_data.get("given_name", ""),
            extra_data.get("last_name") or extra_data.get("family_name", ""),
        )
        if part
    )
    avatar_url = extra_data.get("picture") or extra_data.get("avatar_url", "")

    updated_fields = []
    if full_name and not user.full_name:
        user.full_name = full_name[:100]
        updated_fields.append("full_name")
    if avatar_url and not user.avatar_url:
        user.avatar_url = avatar_url
        updated_fields.append("avatar_url")

    if updated_fields:
        user.save(update_fields=[*updated_fields, "updated_at"])
        logger.debug(f"User populated from {provider}: {user.email}")
