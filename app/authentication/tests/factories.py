"""
Factory Boy factories for authentication models.

Provides realistic test data generation for:
- User: Custom user model with email-based authentication
- LinkedAccount: OAuth provider connections
- EmailVerificationToken: Verification, email change and password reset tokens
- LoginAttempt: Audited sign-in attempts

Usage:
    from authentication.tests.factories import UserFactory

    # Create a user with default values
    user = UserFactory()

    # Create a verified user
    user = UserFactory(email_verified=True)
"""

import secrets
from datetime import timedelta

import factory
from django.utils import timezone

from authentication.models import (
    EmailVerificationToken,
    LinkedAccount,
    LoginAttempt,
    User,
)

DEFAULT_PASSWORD = "Str0ng!Passphrase"


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Creates users with email-based authentication.
    By default, users are verified and active.

    Examples:
        # Basic user
        user = UserFactory()

        # Unverified user
        user = UserFactory(email_verified=False)

        # Inactive user (deactivated)
        user = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    full_name = factory.Faker("name")
    email_verified = True
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", DEFAULT_PASSWORD)
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )


class LinkedAccountFactory(factory.django.DjangoModelFactory):
    """
    Factory for LinkedAccount model.

    Examples:
        LinkedAccountFactory(user=user)
        LinkedAccountFactory(user=user, provider=LinkedAccount.Provider.GOOGLE)
    """

    class Meta:
        model = LinkedAccount

    user = factory.SubFactory(UserFactory)
    provider = LinkedAccount.Provider.EMAIL
    provider_user_id = factory.LazyAttribute(lambda o: o.user.email)


class EmailVerificationTokenFactory(factory.django.DjangoModelFactory):
    """
    Factory for EmailVerificationToken model.

    Defaults to a valid email verification token expiring in 24 hours.

    Examples:
        # Password reset token
        EmailVerificationTokenFactory(
            user=user,
            token_type=EmailVerificationToken.TokenType.PASSWORD_RESET,
        )

        # Expired token
        EmailVerificationTokenFactory(
            user=user, expires_at=timezone.now() - timedelta(hours=1)
        )
    """

    class Meta:
        model = EmailVerificationToken

    user = factory.SubFactory(UserFactory, email_verified=False)
    token = factory.LazyFunction(lambda: secrets.token_hex(32))
    token_type = EmailVerificationToken.TokenType.EMAIL_VERIFICATION
    expires_at = factory.LazyFunction(lambda: timezone.now() + timedelta(hours=24))
    used_at = None


class LoginAttemptFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = LoginAttempt

    email = factory.Sequence(lambda n: f"attempt{n}@example.com")
    ip_address = "203.0.113.10"
    user_agent = "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) Safari/605.1.15"
    success = False
