"""
Authentication services.

This module provides the AuthService class for sign-up, password and
profile management, email verification and change, password reset,
account deletion, login auditing and session security.

Related files:
    - models.py: User, Profile, LinkedAccount, EmailVerificationToken, LoginAttempt
    - security.py: Password/email/token validation and input sanitization
    - session_security.py: Session checks and suspicious activity detection
    - tasks.py: Async email sending
    - signals.py: Profile auto-creation

Security:
    - Tokens are cryptographically random (32 bytes, 64 hex chars)
    - Passwords hashed with Django's PBKDF2
    - Token expiration enforced, tokens are single-use
    - Password reset never reveals whether an email is registered
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from django.db import transaction
from django.utils import timezone

from authentication.security import (
    sanitize_auth_input,
    validate_auth_token,
    validate_email_security,
    validate_password_strength,
)
from core.helpers import generate_token
from core.services import BaseService, ServiceResult
from toolkit.helpers import mask_email

if TYPE_CHECKING:
    from authentication.models import LinkedAccount, LoginAttempt, Profile, User
    from authentication.session_security import SessionSecurityCheck

logger = logging.getLogger(__name__)

DELETE_ACCOUNT_CONFIRMATION = "DELETE MY ACCOUNT"

USER_PROFILE_FIELDS = ("full_name", "avatar_url", "phone", "locale", "timezone")
EXTENDED_PROFILE_FIELDS = ("bio", "website", "company", "job_title", "preferences")


class AuthService(BaseService):
    """
    Centralized authentication business logic.

    Methods return ServiceResult for expected failures (weak password,
    wrong confirmation, invalid token) so views can render them directly.

    Usage:
        from authentication.services import AuthService

        result = AuthService.sign_up(
            email="ana@example.com",
            password="Correct-Horse-42",
            full_name="Ana Souza",
        )
        if not result:
            return Response(result.to_response(), status=result.status_code)

        result = AuthService.verify_email(token, verification_type="signup")
    """

    # Token expiration times (in hours)
    EMAIL_VERIFICATION_EXPIRY_HOURS = 24
    EMAIL_CHANGE_EXPIRY_HOURS = 24
    PASSWORD_RESET_EXPIRY_HOURS = 1

    # =========================================================================
    # Sign-up
    # =========================================================================

    @staticmethod
    def sign_up(
        email: str,
        password: str,
        full_name: str = "",
        locale: str = "en",
        timezone_name: str = "UTC",
    ) -> ServiceResult[User]:
        """
        Register a new email/password user.

        Creates the User (the Profile follows via signal), an email
        LinkedAccount and a verification token, then queues the
        verification email.

        Returns:
            ServiceResult with the new user, or a failure for an insecure
            email (400), a weak password (400) or a duplicate email (409)
        """
        from authentication.models import LinkedAccount, User

        email = email.lower().strip()

        email_check = validate_email_security(email)
        if not email_check.is_secure:
            return ServiceResult.failure(
                email_check.issues[0],
                error_code="INSECURE_EMAIL",
                errors={"email": email_check.issues},
            )

        password_check = validate_password_strength(password)
        if not password_check.is_strong:
            issues = password_check.critical_issues or password_check.feedback
            return ServiceResult.failure(
                "Password is too weak",
                error_code="WEAK_PASSWORD",
                errors={"password": issues or ["Password is too weak"]},
            )

        if User.objects.filter(email__iexact=email).exists():
            return ServiceResult.failure(
                "A user with this email already exists",
                error_code="EMAIL_EXISTS",
                status_code=409,
            )

        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                full_name=sanitize_auth_input(full_name)[:100],
                locale=locale or "en",
                timezone=timezone_name or "UTC",
            )
            LinkedAccount.objects.create(
                user=user,
                provider=LinkedAccount.Provider.EMAIL,
                provider_user_id=email,
            )

        AuthService.send_verification_email(user)

        logger.info(f"User signed up: {user.email}", extra={"user_id": user.id})
        return ServiceResult.success(user)

    @staticmethod
    def create_linked_account(
        user: User,
        provider: str,
        provider_user_id: str,
    ) -> LinkedAccount:
        """
        Create or get a linked account for a user.

        Args:
            user: User to link the account to
            provider: Provider name (email, google, apple, github)
            provider_user_id: Unique ID from the provider

        Returns:
            LinkedAccount instance
        """
        from authentication.models import LinkedAccount

        linked_account, created = LinkedAccount.objects.get_or_create(
            provider=provider,
            provider_user_id=provider_user_id,
            defaults={"user": user},
        )

        if created:
            logger.info(
                f"Linked {provider} account for user: {user.email}",
                extra={
                    "user_id": user.id,
                    "provider": provider,
                    "provider_user_id": provider_user_id,
                },
            )

        return linked_account

    # =========================================================================
    # Profile & password
    # =========================================================================

    @staticmethod
    def get_or_create_profile(user: User) -> Profile:
        """
        Get or create user profile.

        Args:
            user: User instance

        Returns:
            Profile instance for the user
        """
        from authentication.models import Profile

        profile, created = Profile.objects.get_or_create(user=user)
        if created:
            logger.debug(f"Profile created for user: {user.email}")
        return profile

    @staticmethod
    def update_profile(user: User, **data) -> ServiceResult[User]:
        """
        Update display data on the user and the extended profile.

        Text values are sanitized before saving; unknown keys are ignored.
        Field-level validation (lengths, URLs) happens in the serializer.

        Args:
            user: User instance
            **data: Any of full_name, avatar_url, phone, locale, timezone,
                bio, website, company, job_title, preferences

        Returns:
            ServiceResult with the updated user
        """
        profile = AuthService.get_or_create_profile(user)

        user_fields = []
        profile_fields = []
        for field_name, value in data.items():
            if isinstance(value, str):
                value = sanitize_auth_input(value)
            if field_name in USER_PROFILE_FIELDS:
                setattr(user, field_name, value)
                user_fields.append(field_name)
            elif field_name in EXTENDED_PROFILE_FIELDS:
                setattr(profile, field_name, value)
                profile_fields.append(field_name)

        with transaction.atomic():
            if user_fields:
                user.save(update_fields=[*user_fields, "updated_at"])
            if profile_fields:
                profile.save(update_fields=[*profile_fields, "updated_at"])

        logger.info(
            f"Profile updated for user: {user.email}",
            extra={"user_id": user.id, "fields": user_fields + profile_fields},
        )
        return ServiceResult.success(user)

    @staticmethod
    def update_password(
        user: User, current_password: str, new_password: str
    ) -> ServiceResult[User]:
        """
        Change the password of a signed-in user.

        Returns:
            ServiceResult; failures for a wrong current password, a weak new
            password, or reusing the current one
        """
        if not user.check_password(current_password):
            return ServiceResult.failure(
                "Current password is incorrect",
                error_code="INVALID_PASSWORD",
                errors={"current_password": ["Current password is incorrect"]},
            )

        if current_password == new_password:
            return ServiceResult.failure(
                "New password must be different from the current password",
                error_code="PASSWORD_REUSED",
                errors={"new_password": ["Choose a different password"]},
            )

        strength = validate_password_strength(new_password)
        if not strength.is_strong:
            return ServiceResult.failure(
                "Password is too weak",
                error_code="WEAK_PASSWORD",
                errors={"new_password": strength.critical_issues or strength.feedback},
            )

        user.set_password(new_password)
        user.save(update_fields=["password", "updated_at"])

        logger.info(f"Password changed for user: {user.email}")
        return ServiceResult.success(user)

    # =========================================================================
    # Email verification & change
    # =========================================================================

    @staticmethod
    def send_verification_email(user: User) -> None:
        """
        Send email verification to user.

        Creates a verification token and queues the email for sending.

        Args:
            user: User to send verification email to
        """
        from authentication.models import EmailVerificationToken
        from authentication.tasks import send_verification_email

        token = EmailVerificationToken.objects.create(
            user=user,
            token=generate_token(),
            token_type=EmailVerificationToken.TokenType.EMAIL_VERIFICATION,
            expires_at=timezone.now()
            + timedelta(hours=AuthService.EMAIL_VERIFICATION_EXPIRY_HOURS),
        )

        transaction.on_commit(lambda: send_verification_email.delay(token.id))
        logger.info(f"Verification email queued for user: {user.email}")

    @staticmethod
    def resend_verification(user: User) -> ServiceResult[None]:
        """Issue a fresh verification token unless the email is verified."""
        if user.email_verified:
            return ServiceResult.failure(
                "Email is already verified", error_code="ALREADY_VERIFIED"
            )

        AuthService.send_verification_email(user)
        return ServiceResult.success(None)

    @staticmethod
    def verify_email(token: str, verification_type: str = "signup") -> ServiceResult[User]:
        """
        Consume an email token.

        Args:
            token: The token string from the link
            verification_type: "signup" (or "email") marks the address
                verified; "email_change" swaps in the new address

        Returns:
            ServiceResult with the user, or "Invalid or expired token"
        """
        from authentication.models import EmailVerificationToken, User

        if verification_type == "email_change":
            token_type = EmailVerificationToken.TokenType.EMAIL_CHANGE
        else:
            token_type = EmailVerificationToken.TokenType.EMAIL_VERIFICATION

        if not validate_auth_token(token, verification_type).is_valid:
            return ServiceResult.failure(
                "Invalid or expired token", error_code="INVALID_TOKEN"
            )

        try:
            token_obj = EmailVerificationToken.objects.select_related("user").get(
                token=token,
                token_type=token_type,
                used_at__isnull=True,
                expires_at__gt=timezone.now(),
            )
        except EmailVerificationToken.DoesNotExist:
            return ServiceResult.failure(
                "Invalid or expired token", error_code="INVALID_TOKEN"
            )

        user = token_obj.user

        with transaction.atomic():
            if token_type == EmailVerificationToken.TokenType.EMAIL_CHANGE:
                new_email = token_obj.new_email.lower()
                taken = (
                    User.objects.filter(email__iexact=new_email)
                    .exclude(pk=user.pk)
                    .exists()
                )
                if taken:
                    return ServiceResult.failure(
                        "A user with this email already exists",
                        error_code="EMAIL_EXISTS",
                        status_code=409,
                    )
                old_email = user.email
                user.email = new_email
                user.email_verified = True
                user.save(update_fields=["email", "email_verified", "updated_at"])
                logger.info(f"Email changed from {old_email} to {new_email}")
            else:
                user.email_verified = True
                user.save(update_fields=["email_verified", "updated_at"])

            token_obj.used_at = timezone.now()
            token_obj.save(update_fields=["used_at"])

        logger.info(f"Email verified for user: {user.email}")
        return ServiceResult.success(user)

    @staticmethod
    def request_email_change(user: User, new_email: str) -> ServiceResult[None]:
        """
        Start an email change.

        The address must pass the email security checks and must not belong
        to another account. The confirmation link goes to the new address.
        """
        from authentication.models import EmailVerificationToken, User
        from authentication.tasks import send_email_change_email

        new_email = new_email.lower().strip()

        check = validate_email_security(new_email)
        if not check.is_secure:
            return ServiceResult.failure(
                check.issues[0],
                error_code="INSECURE_EMAIL",
                errors={"new_email": check.issues},
            )

        if new_email == user.email.lower():
            return ServiceResult.failure(
                "New email is the same as the current email",
                error_code="SAME_EMAIL",
            )

        if User.objects.filter(email__iexact=new_email).exists():
            return ServiceResult.failure(
                "A user with this email already exists",
                error_code="EMAIL_EXISTS",
                status_code=409,
            )

        # Only the latest pending change is honoured
        EmailVerificationToken.objects.filter(
            user=user,
            token_type=EmailVerificationToken.TokenType.EMAIL_CHANGE,
            used_at__isnull=True,
        ).update(used_at=timezone.now())

        token = EmailVerificationToken.objects.create(
            user=user,
            token=generate_token(),
            token_type=EmailVerificationToken.TokenType.EMAIL_CHANGE,
            new_email=new_email,
            expires_at=timezone.now()
            + timedelta(hours=AuthService.EMAIL_CHANGE_EXPIRY_HOURS),
        )

        transaction.on_commit(lambda: send_email_change_email.delay(token.id))
        logger.info(f"Email change requested for user: {user.email}")
        return ServiceResult.success(None)

    # =========================================================================
    # Password reset
    # =========================================================================

    @staticmethod
    def request_password_reset(email: str) -> bool:
        """
        Send password reset email.

        Args:
            email: User's email address

        Returns:
            True if email was sent (or would be sent - don't reveal user existence)

        Note:
            Always returns True to prevent user enumeration attacks.
            Email is only sent if user exists.
        """
        from authentication.models import EmailVerificationToken, User
        from authentication.tasks import send_password_reset_email

        try:
            user = User.objects.get(email__iexact=email.strip(), is_active=True)
        except User.DoesNotExist:
            # Don't reveal whether user exists
            logger.debug(
                f"Password reset requested for unknown email: {mask_email(email)}"
            )
            return True

        token = EmailVerificationToken.objects.create(
            user=user,
            token=generate_token(),
            token_type=EmailVerificationToken.TokenType.PASSWORD_RESET,
            expires_at=timezone.now()
            + timedelta(hours=AuthService.PASSWORD_RESET_EXPIRY_HOURS),
        )

        transaction.on_commit(lambda: send_password_reset_email.delay(token.id))
        logger.info(f"Password reset requested for user: {user.email}")
        return True

    @staticmethod
    def get_password_reset_token(token: str):
        """Return the usable reset token row for a link, or None."""
        from authentication.models import EmailVerificationToken

        if not validate_auth_token(token, "recovery").is_valid:
            return None

        return (
            EmailVerificationToken.objects.select_related("user")
            .filter(
                token=token,
                token_type=EmailVerificationToken.TokenType.PASSWORD_RESET,
                used_at__isnull=True,
                expires_at__gt=timezone.now(),
            )
            .first()
        )

    @staticmethod
    def reset_password(token: str, new_password: str) -> ServiceResult[User]:
        """
        Reset password with token.

        Args:
            token: The password reset token string
            new_password: The new password to set

        Returns:
            ServiceResult with the user, or a failure for an invalid token
            or weak password
        """
        from authentication.models import EmailVerificationToken

        token_obj = AuthService.get_password_reset_token(token)
        if token_obj is None:
            return ServiceResult.failure(
                "Invalid or expired token", error_code="INVALID_TOKEN"
            )

        strength = validate_password_strength(new_password)
        if not strength.is_strong:
            return ServiceResult.failure(
                "Password is too weak",
                error_code="WEAK_PASSWORD",
                errors={"new_password": strength.critical_issues or strength.feedback},
            )

        user = token_obj.user
        now = timezone.now()

        with transaction.atomic():
            user.set_password(new_password)
            user.save(update_fields=["password", "updated_at"])

            token_obj.used_at = now
            token_obj.save(update_fields=["used_at"])

            # Invalidate all other reset tokens for this user
            EmailVerificationToken.objects.filter(
                user=user,
                token_type=EmailVerificationToken.TokenType.PASSWORD_RESET,
                used_at__isnull=True,
            ).exclude(pk=token_obj.pk).update(used_at=now)

        logger.info(f"Password reset for user: {user.email}")
        return ServiceResult.success(user)

    # =========================================================================
    # Account deletion
    # =========================================================================

    @staticmethod
    def _owned_workspaces(user: User) -> tuple[list, list]:
        """Split the live workspaces `user` owns into (solo, shared)."""
        from workspaces.models import WorkspaceMember, WorkspaceRole

        owned = WorkspaceMember.objects.filter(
            user=user, role=WorkspaceRole.OWNER, workspace__is_deleted=False
        ).select_related("workspace")

        solo_workspaces = []
        shared_workspaces = []
        for membership in owned:
            workspace = membership.workspace
            has_others = (
                WorkspaceMember.objects.filter(workspace=workspace)
                .exclude(user=user)
                .exists()
            )
            if has_others:
                shared_workspaces.append(workspace)
            else:
                solo_workspaces.append(workspace)
        return solo_workspaces, shared_workspaces

    @staticmethod
    def _owns_shared_failure(shared_workspaces: list) -> ServiceResult[None]:
        return ServiceResult.failure(
            "Transfer ownership of your shared workspaces before deleting your account",
            error_code="OWNS_SHARED_WORKSPACES",
            errors={"workspaces": [w.name for w in shared_workspaces]},
            status_code=409,
        )

    @staticmethod
    def delete_account(user: User, confirmation: str) -> ServiceResult[None]:
        """
        Permanently delete a user account.

        Workspaces the user owns alone are soft-deleted with the account.
        While the user owns a workspace that still has other members the
        deletion is refused; ownership must be transferred first.
        A goodbye email is queued once the deletion commits.

        Args:
            user: User to delete
            confirmation: Must be exactly "DELETE MY ACCOUNT"

        Returns:
            ServiceResult; 409 failure listing the blocking workspaces
        """
        from toolkit.services.email import EmailService

        if confirmation != DELETE_ACCOUNT_CONFIRMATION:
            return ServiceResult.failure(
                f'Type "{DELETE_ACCOUNT_CONFIRMATION}" to confirm',
                error_code="INVALID_CONFIRMATION",
                errors={"confirmation": ["Confirmation text does not match"]},
            )

        solo_workspaces, shared_workspaces = AuthService._owned_workspaces(user)
        if shared_workspaces:
            return AuthService._owns_shared_failure(shared_workspaces)

        email = user.email
        name = user.get_short_name()
        with transaction.atomic():
            for workspace in solo_workspaces:
                workspace.soft_delete()
            user.delete()
            transaction.on_commit(
                lambda: EmailService.send_async(
                    to=email,
                    subject="Your account has been deleted",
                    template_name="authentication/email/account_deleted",
                    context={
                        "name": name,
                        "deleted_workspaces": [w.name for w in solo_workspaces],
                    },
                )
            )

        logger.warning(
            f"User account deleted: {mask_email(email)}",
            extra={"deleted_workspaces": [str(w.id) for w in solo_workspaces]},
        )
        return ServiceResult.success(None)

    @staticmethod
    def delete_user_by_id(user_id: int) -> ServiceResult[None]:
        """
        Hard-delete a user for internal tooling.

        Applies the same workspace rules as delete_account: solo workspaces
        are soft-deleted and shared ownership blocks the deletion.

        Error codes:
            USER_NOT_FOUND (404): No such user
            OWNS_SHARED_WORKSPACES (409): Owner of a workspace with other members
        """
        from authentication.models import User

        user = User.objects.filter(pk=user_id).first()
        if user is None:
            return ServiceResult.failure(
                "User not found", error_code="USER_NOT_FOUND", status_code=404
            )

        solo_workspaces, shared_workspaces = AuthService._owned_workspaces(user)
        if shared_workspaces:
            return AuthService._owns_shared_failure(shared_workspaces)

        with transaction.atomic():
            for workspace in solo_workspaces:
                workspace.soft_delete()
            user.delete()

        logger.warning(f"User {user_id} deleted via internal API")
        return ServiceResult.success(None)

    # =========================================================================
    # Login auditing & session security
    # =========================================================================

    @staticmethod
    def record_login_attempt(
        email: str, success: bool, ip_address: str = "", user_agent: str = ""
    ) -> LoginAttempt:
        """
        Store one sign-in attempt.

        After a failure the recent attempts for the same email are checked
        for brute force and any findings are logged.
        """
        from authentication.models import LoginAttempt
        from authentication.session_security import (
            FAILURE_WINDOW,
            detect_suspicious_activity,
        )

        email = (email or "").lower().strip()
        attempt = LoginAttempt.objects.create(
            email=email,
            success=success,
            ip_address=ip_address[:64],
            user_agent=user_agent[:500],
        )

        if not success:
            recent = LoginAttempt.objects.filter(
                email=email, created_at__gte=timezone.now() - FAILURE_WINDOW
            )
            for event in detect_suspicious_activity(recent):
                logger.warning(
                    f"Suspicious login activity for {email}: {event.message}",
                    extra={"ip_address": ip_address, **event.metadata},
                )

        return attempt

    @staticmethod
    def get_session_security(
        user: User,
        token_payload: dict | None,
        user_agent: str = "",
        ip_address: str = "",
    ) -> SessionSecurityCheck:
        """
        Evaluate the caller's session and record activity.

        Args:
            user: Authenticated user
            token_payload: Claims of the JWT access token (iat, exp); None
                when the request was not authenticated by a JWT
            user_agent: Raw User-Agent header
            ip_address: Client IP

        Returns:
            SessionSecurityCheck
        """
        from datetime import datetime, timezone as dt_timezone

        from authentication.session_security import (
            SessionInfo,
            check_session_security,
            create_security_report,
        )

        session = None
        if token_payload and "iat" in token_payload and "exp" in token_payload:
            session = SessionInfo(
                issued_at=datetime.fromtimestamp(token_payload["iat"], tz=dt_timezone.utc),
                expires_at=datetime.fromtimestamp(token_payload["exp"], tz=dt_timezone.utc),
                last_activity=user.last_active_at,
            )

        check = check_session_security(
            session, user_agent=user_agent, ip_address=ip_address
        )

        if check.is_secure:
            logger.debug(create_security_report(user.id, check))
        else:
            logger.warning(create_security_report(user.id, check))

        user.touch()
        return check
