"""
Tests for authentication signal handlers.
"""

import logging
from unittest.mock import MagicMock

import pytest
from allauth.socialaccount.models import SocialLogin
from allauth.socialaccount.signals import social_account_added

from authentication.models import Profile
from authentication.tests.factories import UserFactory


def send_social_account_added(user, extra_data, provider="google"):
    sociallogin = MagicMock()
    sociallogin.user = user
    sociallogin.account.provider = provider
    sociallogin.account.extra_data = extra_data
    social_account_added.send(sender=SocialLogin, request=None, sociallogin=sociallogin)


@pytest.mark.django_db
class TestCreateUserProfile:
    def test_profile_created_with_user(self):
        user = UserFactory()

        assert Profile.objects.filter(user=user).count() == 1

    def test_profile_not_duplicated_on_save(self):
        user = UserFactory()
        user.full_name = "Changed"
        user.save()

        assert Profile.objects.filter(user=user).count() == 1


@pytest.mark.django_db
class TestLogEmailVerification:
    def test_logs_when_verified(self, caplog):
        user = UserFactory(email="ana@example.com", email_verified=False)

        with caplog.at_level(logging.INFO, logger="authentication.signals"):
            user.email_verified = True
            user.save(update_fields=["email_verified"])

        assert "Email verified for user: ana@example.com" in caplog.text

    def test_silent_for_other_updates(self, caplog):
        user = UserFactory()

        with caplog.at_level(logging.INFO, logger="authentication.signals"):
            user.save(update_fields=["full_name"])

        assert "Email verified" not in caplog.text


@pytest.mark.django_db
class TestPopulateUserFromSocial:
    def test_fills_empty_fields(self):
        user = UserFactory(full_name="")

        send_social_account_added(
            user,
            {
                "given_name": "Ana",
                "family_name": "Souza",
                "picture": "https://lh3.example.com/a.png",
            },
        )

        user.refresh_from_db()
        assert user.full_name == "Ana Souza"
        assert user.avatar_url == "https://lh3.example.com/a.png"

    def test_prefers_full_name_from_provider(self):
        user = UserFactory(full_name="")

        send_social_account_added(user, {"name": "Ana Maria Souza"}, provider="github")

        user.refresh_from_db()
        assert user.full_name == "Ana Maria Souza"

    def test_keeps_existing_values(self):
        """Connecting a provider later must not rename the user."""
        user = UserFactory(full_name="Ana S.", avatar_url="https://cdn.example.com/me.png")

        send_social_account_added(
            user, {"name": "Someone Else", "avatar_url": "https://other.example.com/x.png"}
        )

        user.refresh_from_db()
        assert user.full_name == "Ana S."
        assert user.avatar_url == "https://cdn.example.com/me.png"
