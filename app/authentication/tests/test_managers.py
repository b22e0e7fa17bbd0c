"""
Tests for the email-based UserManager.
"""

import pytest

from authentication.models import User


@pytest.mark.django_db
class TestCreateUser:
    def test_email_is_lowercased(self):
        """
        Why it matters: invitations and sign-in compare emails without
        case, so the stored address must be canonical.
        """
        user = User.objects.create_user(email="Ana.Souza@Example.COM", password="x")

        assert user.email == "ana.souza@example.com"

    def test_password_is_hashed(self):
        user = User.objects.create_user(email="ana@example.com", password="Str0ng!Pass")

        assert user.password != "Str0ng!Pass"
        assert user.check_password("Str0ng!Pass")

    def test_without_password_is_unusable(self):
        """OAuth users never get a password they could sign in with."""
        user = User.objects.create_user(email="oauth@example.com")

        assert user.has_usable_password() is False

    def test_extra_fields(self):
        user = User.objects.create_user(
            email="ana@example.com",
            password="x",
            full_name="Ana Souza",
            locale="pt-BR",
            timezone="America/Sao_Paulo",
        )

        assert (user.full_name, user.locale, user.timezone) == (
            "Ana Souza",
            "pt-BR",
            "America/Sao_Paulo",
        )
        assert user.is_staff is False
        assert user.is_superuser is False

    def test_email_required(self):
        with pytest.raises(ValueError, match="The Email field must be set"):
            User.objects.create_user(email="", password="x")


@pytest.mark.django_db
class TestCreateSuperuser:
    def test_flags(self):
        admin = User.objects.create_superuser(email="admin@example.com", password="x")

        assert admin.is_staff is True
        assert admin.is_superuser is True
        assert admin.email_verified is True

    @pytest.mark.parametrize("flag", ["is_staff", "is_superuser"])
    def test_rejects_disabled_flags(self, flag):
        with pytest.raises(ValueError, match=f"Superuser must have {flag}=True."):
            User.objects.create_superuser(
                email="admin@example.com", password="x", **{flag: False}
            )
