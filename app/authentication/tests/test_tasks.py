"""
Tests for authentication Celery tasks.

Tasks are called directly (synchronously); emails land in the locmem
outbox exposed by pytest-django's `mailoutbox` fixture.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from authentication.models import EmailVerificationToken, LoginAttempt
from authentication.tasks import (
    build_callback_url,
    cleanup_expired_tokens,
    cleanup_login_attempts,
    send_email_change_email,
    send_password_reset_email,
    send_verification_email,
)
from authentication.tests.factories import (
    EmailVerificationTokenFactory,
    LoginAttemptFactory,
)


@pytest.fixture
def api_url(settings):
    settings.API_URL = "https://api.example.com/"
    return "https://api.example.com"


class TestBuildCallbackUrl:
    def test_points_at_api_callback(self, api_url):
        url = build_callback_url("abc123", "signup", "pt-BR")

        assert url == (
            "https://api.example.com/api/v1/auth/callback/"
            "?token=abc123&type=signup&locale=pt-BR"
        )


@pytest.mark.django_db
class TestSendVerificationEmail:
    def test_sends_link(self, api_url, verification_token, mailoutbox):
        assert send_verification_email(verification_token.id) is True

        assert len(mailoutbox) == 1
        message = mailoutbox[0]
        assert message.to == ["new@example.com"]
        assert message.subject == "Verify your email address"
        assert build_callback_url(verification_token.token, "signup") in message.body

    def test_includes_html_alternative(self, verification_token, mailoutbox):
        send_verification_email(verification_token.id)

        html, mimetype = mailoutbox[0].alternatives[0]
        assert mimetype == "text/html"
        assert verification_token.token in html

    def test_missing_token(self, db, mailoutbox):
        assert send_verification_email(999999) is False
        assert mailoutbox == []


@pytest.mark.django_db
class TestSendPasswordResetEmail:
    def test_sends_recovery_link(self, api_url, user, password_reset_token, mailoutbox):
        user.locale = "pt-BR"
        user.save(update_fields=["locale"])

        assert send_password_reset_email(password_reset_token.id) is True

        message = mailoutbox[0]
        assert message.to == ["ana@example.com"]
        assert message.subject == "Reset your password"
        assert (
            build_callback_url(password_reset_token.token, "recovery", "pt-BR")
            in message.body
        )


@pytest.mark.django_db
class TestSendEmailChangeEmail:
    def test_goes_to_new_address(self, api_url, email_change_token, mailoutbox):
        assert send_email_change_email(email_change_token.id) is True

        message = mailoutbox[0]
        assert message.to == ["ana.souza@example.org"]
        assert "from ana@example.com to ana.souza@example.org" in message.body
        assert (
            build_callback_url(email_change_token.token, "email_change") in message.body
        )


@pytest.mark.django_db
class TestCleanupExpiredTokens:
    def test_removes_expired_and_used(self, unverified_user):
        valid = EmailVerificationTokenFactory(user=unverified_user)
        EmailVerificationTokenFactory(
            user=unverified_user, expires_at=timezone.now() - timedelta(seconds=1)
        )
        EmailVerificationTokenFactory(user=unverified_user, used_at=timezone.now())

        assert cleanup_expired_tokens() == 2
        assert list(EmailVerificationToken.objects.all()) == [valid]


@pytest.mark.django_db
class TestCleanupLoginAttempts:
    def test_purges_old_attempts(self):
        recent = LoginAttemptFactory()
        old = LoginAttemptFactory()
        LoginAttempt.objects.filter(pk=old.pk).update(
            created_at=timezone.now() - timedelta(days=31)
        )

        assert cleanup_login_attempts() == 1
        assert list(LoginAttempt.objects.all()) == [recent]

    def test_custom_retention(self):
        attempt = LoginAttemptFactory()
        LoginAttempt.objects.filter(pk=attempt.pk).update(
            created_at=timezone.now() - timedelta(days=3)
        )

        assert cleanup_login_attempts(days=2) == 1
