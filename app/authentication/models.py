"""
Authentication models.

This module defines the core authentication models:
- User: Custom user model with email-based authentication and the
  active workspace pointer
- Profile: Extended user profile data (OneToOne with User)
- LinkedAccount: Tracks authentication providers linked to a user
- EmailVerificationToken: Tokens for email verification, email change and
  password reset
- LoginAttempt: Audit trail of sign-in attempts for brute-force detection

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: AuthService business logic
    - security.py: Password/email/token validation rules
    - session_security.py: Session risk evaluation
    - signals.py: Auto-create profile on user creation

Security:
    - User passwords hashed with Django's PBKDF2
    - Verification tokens are cryptographically random
    - Tokens are single-use and expire
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone

from authentication.managers import UserManager
from core.model_mixins import MetadataMixin
from core.models import BaseModel
from core.validators import validate_no_script


class User(MetadataMixin, AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Besides credentials, the user carries display data used across the app
    (full name, avatar, locale, timezone) and a pointer to the workspace the
    user is currently working in.

    Fields:
        email: Primary identifier, unique, used for login
        full_name: Display name chosen at sign-up
        avatar_url: Avatar image URL (uploaded elsewhere or from OAuth)
        phone: Optional phone number
        locale: Preferred UI locale (e.g. "en", "pt-BR")
        timezone: IANA timezone name
        email_verified: Whether the user's email has been verified
        active_workspace: Workspace selected in the UI (nullable)
        last_active_at: Last authenticated activity
        metadata: Free-form JSON (from MetadataMixin)

    Usage:
        user = User.objects.create_user(
            email="user@example.com",
            password="Str0ng!Passphrase",
            full_name="Ana Souza",
        )
    """

    # Primary identifier (replaces username)
    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    full_name = models.CharField(
        max_length=100,
        blank=True,
        help_text="User's display name",
    )
    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="URL of the user's avatar image",
    )
    phone = models.CharField(
        max_length=32,
        blank=True,
        help_text="Optional phone number",
    )
    locale = models.CharField(
        max_length=10,
        default="en",
        help_text="Preferred UI locale",
    )
    timezone = models.CharField(
        max_length=50,
        default="UTC",
        help_text="User's preferred timezone (e.g., 'America/Sao_Paulo')",
    )

    # Email verification status
    email_verified = models.BooleanField(
        default=False,
        help_text="Whether the user's email has been verified",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    active_workspace = models.ForeignKey(
        "workspaces.Workspace",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="active_users",
        help_text="Workspace currently selected by the user",
    )
    last_active_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last authenticated activity",
    )

    # Timestamps
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        """Return the display name, or the email when none is set."""
        return self.full_name or self.email

    def get_short_name(self):
        """Return the first word of the name, or the email local part."""
        if self.full_name:
            return self.full_name.split()[0]
        return self.email.split("@")[0]

    def touch(self):
        """Record activity now."""
        self.last_active_at = timezone.now()
        self.save(update_fields=["last_active_at", "updated_at"])


class Profile(BaseModel):
    """
    Extended user profile data.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        bio: Short self-description (max 500 chars)
        website: Personal or company website
        company: Company name
        job_title: Role at the company
        preferences: JSON field for flexible user preferences

    Note:
        Profile is automatically created via signals when a User is created.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )
    bio = models.TextField(
        max_length=500,
        blank=True,
        validators=[validate_no_script],
        help_text="Short self-description",
    )
    website = models.URLField(
        max_length=200,
        blank=True,
        help_text="Personal or company website",
    )
    company = models.CharField(
        max_length=100,
        blank=True,
        help_text="Company name",
    )
    job_title = models.CharField(
        max_length=100,
        blank=True,
        help_text="Job title",
    )

    # Flexible preferences storage
    preferences = models.JSONField(
        default=dict,
        blank=True,
        help_text="User preferences as JSON (e.g., theme, email_frequency)",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"

    def __str__(self):
        return f"Profile of {self.user}"


class LinkedAccount(BaseModel):
    """
    Tracks authentication providers linked to a user account.

    A user can sign in with email/password and any number of OAuth
    providers; each is one row here.

    Fields:
        user: User this account belongs to
        provider: Authentication provider (email, google, apple, github)
        provider_user_id: Unique identifier from the provider
    """

    class Provider(models.TextChoices):
        """Authentication provider choices."""

        EMAIL = "email", "Email"
        GOOGLE = "google", "Google"
        APPLE = "apple", "Apple"
        GITHUB = "github", "GitHub"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="linked_accounts",
        help_text="User this linked account belongs to",
    )
    provider = models.CharField(
        max_length=20,
        choices=Provider.choices,
        db_index=True,
        help_text="Authentication provider",
    )
    provider_user_id = models.CharField(
        max_length=255,
        help_text="Unique identifier from the provider",
    )

    class Meta:
        db_table = "authentication_linked_account"
        verbose_name = "linked account"
        verbose_name_plural = "linked accounts"
        constraints = [
            models.UniqueConstraint(
                fields=["provider", "provider_user_id"],
                name="unique_provider_user",
            ),
        ]
        indexes = [
            models.Index(
                fields=["user", "provider"],
                name="auth_linked_user_provider_idx",
            ),
        ]

    def __str__(self):
        return f"{self.get_provider_display()} account for {self.user}"


class EmailVerificationToken(BaseModel):
    """
    Single-use tokens sent by email.

    Used for:
    - Email address verification after registration (24 hours)
    - Confirming a change of email address (24 hours, new_email set)
    - Password reset (1 hour)

    Fields:
        user: User this token belongs to
        token: Unique, cryptographically random token string (64 hex chars)
        token_type: email_verification, email_change or password_reset
        new_email: Target address for email_change tokens
        expires_at: When this token expires
        used_at: When this token was used (null if unused)
    """

    class TokenType(models.TextChoices):
        """Types of verification tokens."""

        EMAIL_VERIFICATION = "email_verification", "Email Verification"
        EMAIL_CHANGE = "email_change", "Email Change"
        PASSWORD_RESET = "password_reset", "Password Reset"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="verification_tokens",
        help_text="User this token belongs to",
    )
    token = models.CharField(
        max_length=64,
        unique=True,
        db_index=True,
        help_text="Unique verification token",
    )
    token_type = models.CharField(
        max_length=20,
        choices=TokenType.choices,
        help_text="Type of verification token",
    )
    new_email = models.EmailField(
        max_length=254,
        blank=True,
        help_text="New address to apply when an email_change token is used",
    )
    expires_at = models.DateTimeField(
        db_index=True,
        help_text="When this token expires",
    )
    used_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When this token was used (null if unused)",
    )

    class Meta:
        db_table = "authentication_email_verification_token"
        verbose_name = "email verification token"
        verbose_name_plural = "email verification tokens"
        indexes = [
            models.Index(
                fields=["user", "token_type", "used_at"],
                name="auth_token_user_type_used_idx",
            ),
        ]

    def __str__(self):
        return f"{self.get_token_type_display()} for {self.user}"

    @property
    def is_valid(self):
        """Check if token is valid (not used and not expired)."""
        return self.used_at is None and self.expires_at > timezone.now()


class LoginAttempt(models.Model):
    """
    One sign-in attempt, successful or not.

    Recorded by the login serializer and read by
    session_security.detect_suspicious_activity to spot brute-force
    attempts and unusually rapid successful logins.

    Fields:
        email: Email the attempt was made for (may not exist)
        ip_address: Client IP as seen by core.helpers.get_client_ip
        user_agent: Raw User-Agent header (truncated)
        success: Whether authentication succeeded
        created_at: When the attempt happened
    """

    email = models.EmailField(
        max_length=254,
        db_index=True,
        help_text="Email used in the attempt",
    )
    ip_address = models.CharField(
        max_length=64,
        blank=True,
        help_text="Client IP address",
    )
    user_agent = models.CharField(
        max_length=500,
        blank=True,
        help_text="Client user agent",
    )
    success = models.BooleanField(
        default=False,
        help_text="Whether the attempt succeeded",
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the attempt was made",
    )

    class Meta:
        db_table = "authentication_login_attempt"
        verbose_name = "login attempt"
        verbose_name_plural = "login attempts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["email", "created_at"],
                name="auth_attempt_email_time_idx",
            ),
        ]

    def __str__(self):
        outcome = "success" if self.success else "failure"
        return f"Login {outcome} for {self.email}"
