"""
Test configuration and fixtures for authentication tests.

This module provides:
- Users in the common states (verified, unverified, inactive)
- JWT-authenticated API clients
- Email tokens for verification, email change and password reset
- Mocked email tasks so nothing is queued

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get("/api/v1/auth/profile/")
        assert response.status_code == 200
"""

from datetime import timedelta
from types import SimpleNamespace

import pytest
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.models import EmailVerificationToken, LinkedAccount
from authentication.tests.factories import (
    DEFAULT_PASSWORD,
    EmailVerificationTokenFactory,
    LinkedAccountFactory,
    UserFactory,
)

STRONG_PASSWORD = "N3w!Correct-Horse"


def make_authenticated_client(user) -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Verified user signed up with email and DEFAULT_PASSWORD."""
    user = UserFactory(email="ana@example.com", full_name="Ana Souza")
    LinkedAccountFactory(user=user)
    return user


@pytest.fixture
def unverified_user(db):
    return UserFactory(email="new@example.com", email_verified=False)


@pytest.fixture
def deactivated_user(db):
    return UserFactory(email="gone@example.com", is_active=False)


@pytest.fixture
def password():
    return DEFAULT_PASSWORD


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def authenticated_client(user):
    """API client authenticated with a JWT for the `user` fixture."""
    return make_authenticated_client(user)


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, some_user):
            client = authenticated_client_factory(some_user)
    """
    return make_authenticated_client


# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def verification_token(unverified_user):
    return EmailVerificationTokenFactory(user=unverified_user)


@pytest.fixture
def expired_verification_token(unverified_user):
    return EmailVerificationTokenFactory(
        user=unverified_user, expires_at=timezone.now() - timedelta(minutes=1)
    )


@pytest.fixture
def used_verification_token(unverified_user):
    return EmailVerificationTokenFactory(user=unverified_user, used_at=timezone.now())


@pytest.fixture
def password_reset_token(user):
    return EmailVerificationTokenFactory(
        user=user,
        token_type=EmailVerificationToken.TokenType.PASSWORD_RESET,
        expires_at=timezone.now() + timedelta(hours=1),
    )


@pytest.fixture
def email_change_token(user):
    return EmailVerificationTokenFactory(
        user=user,
        token_type=EmailVerificationToken.TokenType.EMAIL_CHANGE,
        new_email="ana.souza@example.org",
    )


@pytest.fixture
def google_account(user):
    return LinkedAccountFactory(
        user=user,
        provider=LinkedAccount.Provider.GOOGLE,
        provider_user_id="google-uid-123",
    )


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_email_tasks(mocker):
    """
    Patch the delay() of every authentication email task.

    Services queue emails with transaction.on_commit, so tests that assert
    on these mocks also need django_capture_on_commit_callbacks.
    """
    return SimpleNamespace(
        verification=mocker.patch("authentication.tasks.send_verification_email.delay"),
        password_reset=mocker.patch(
            "authentication.tasks.send_password_reset_email.delay"
        ),
        email_change=mocker.patch("authentication.tasks.send_email_change_email.delay"),
        account_deleted=mocker.patch("toolkit.tasks.send_email_task.delay"),
    )


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def registration_data():
    return {
        "email": "Bruno@Example.com",
        "password1": STRONG_PASSWORD,
        "password2": STRONG_PASSWORD,
        "full_name": "Bruno Lima",
        "locale": "pt-BR",
        "timezone": "America/Sao_Paulo",
    }
