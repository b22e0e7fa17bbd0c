"""
Tests for the allauth adapters.

The allauth base implementations are patched out; these tests cover only
what the custom adapters add on top.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from django import forms

from authentication.adapters import CustomAccountAdapter, CustomSocialAccountAdapter
from authentication.models import LinkedAccount, User
from authentication.tests.factories import UserFactory


def make_sociallogin(provider, uid="uid-1", extra_data=None):
    sociallogin = MagicMock()
    sociallogin.account.provider = provider
    sociallogin.account.uid = uid
    sociallogin.account.extra_data = dict(extra_data or {})
    return sociallogin


class TestCustomAccountAdapter:
    def test_lowercases_email(self):
        assert CustomAccountAdapter().clean_email("Ana@Example.com") == "ana@example.com"

    @pytest.mark.parametrize(
        "email, message",
        [
            ("ana@mailinator.com", "Temporary email domains are not allowed"),
            ("ana+tag@example.com", "Email contains suspicious patterns"),
        ],
    )
    def test_rejects_insecure_email(self, email, message):
        with pytest.raises(forms.ValidationError) as exc_info:
            CustomAccountAdapter().clean_email(email)

        assert exc_info.value.messages == [message]


class TestPopulateUser:
    @pytest.fixture
    def adapter(self, mocker):
        mocker.patch(
            "allauth.socialaccount.adapter.DefaultSocialAccountAdapter.populate_user",
            side_effect=lambda request, sociallogin, data: User(email=data.get("email")),
        )
        return CustomSocialAccountAdapter()

    def test_google(self, adapter):
        sociallogin = make_sociallogin(
            "google", extra_data={"picture": "https://lh3.example.com/a.png"}
        )
        data = {"email": "ana@example.com", "given_name": "Ana", "family_name": "Souza"}

        user = adapter.populate_user(None, sociallogin, data)

        assert user.full_name == "Ana Souza"
        assert user.avatar_url == "https://lh3.example.com/a.png"
        assert sociallogin.account.extra_data["first_name"] == "Ana"
        assert sociallogin.account.extra_data["last_name"] == "Souza"

    def test_github_splits_single_name(self, adapter):
        sociallogin = make_sociallogin(
            "github",
            extra_data={
                "name": "Ana Maria Souza",
                "avatar_url": "https://avatars.example.com/u/1",
            },
        )

        user = adapter.populate_user(None, sociallogin, {"email": "ana@example.com"})

        assert user.full_name == "Ana Maria Souza"
        assert sociallogin.account.extra_data["first_name"] == "Ana"
        assert sociallogin.account.extra_data["last_name"] == "Maria Souza"
        assert user.avatar_url == "https://avatars.example.com/u/1"

    def test_github_without_name(self, adapter):
        sociallogin = make_sociallogin("github", extra_data={"name": None})

        user = adapter.populate_user(None, sociallogin, {"email": "ana@example.com"})

        assert user.full_name == ""

    def test_apple_name_from_first_login_body(self, adapter):
        """
        Why it matters: Apple sends the user's name only once, in the body
        of the first sign-in; if it is not captured then it is gone.
        """
        request = SimpleNamespace(
            data={"user": {"name": {"firstName": "Ana", "lastName": "Souza"}}}
        )
        sociallogin = make_sociallogin("apple")

        user = adapter.populate_user(request, sociallogin, {"email": "ana@example.com"})

        assert user.full_name == "Ana Souza"
        assert user.avatar_url == ""

    def test_apple_later_logins(self, adapter):
        request = SimpleNamespace(data={})
        sociallogin = make_sociallogin("apple")

        user = adapter.populate_user(request, sociallogin, {"email": "ana@example.com"})

        assert user.full_name == ""


@pytest.mark.django_db
class TestSaveUser:
    def test_verifies_email_and_links_account(self, mocker):
        user = UserFactory(email="ana@example.com", email_verified=False)
        mocker.patch(
            "allauth.socialaccount.adapter.DefaultSocialAccountAdapter.save_user",
            return_value=user,
        )
        sociallogin = make_sociallogin("google", uid="google-uid-1")

        saved = CustomSocialAccountAdapter().save_user(None, sociallogin)

        saved.refresh_from_db()
        assert saved.email_verified is True
        assert saved.get_meta("signup_provider") == "google"
        assert LinkedAccount.objects.filter(
            user=user, provider="google", provider_user_id="google-uid-1"
        ).exists()

    def test_existing_link_is_kept(self, mocker):
        user = UserFactory()
        LinkedAccount.objects.create(user=user, provider="github", provider_user_id="7")
        mocker.patch(
            "allauth.socialaccount.adapter.DefaultSocialAccountAdapter.save_user",
            return_value=user,
        )

        CustomSocialAccountAdapter().save_user(None, make_sociallogin("github", uid="7"))

        assert LinkedAccount.objects.filter(provider="github").count() == 1
