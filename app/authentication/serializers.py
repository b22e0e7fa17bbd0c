"""
Serializers for authentication models.

This module provides DRF serializers for:
- User model (read operations, also the dj-rest-auth user details)
- Profile updates (user display data plus extended profile)
- LinkedAccount model (read operations)
- Registration and login (dj-rest-auth hooks)
- Password change/reset, email verification/change, account deletion
- OAuth start and the internal delete-user endpoint

Related files:
    - models.py: User, Profile, LinkedAccount, LoginAttempt
    - views.py: Views that use these serializers
    - services.py: AuthService for the business rules
    - security.py: Password and email checks shared with AuthService
    - settings.py: REST_AUTH serializer configuration

Security:
    - Password fields are write-only
    - Text input is sanitized by AuthService before saving
    - Every login attempt is recorded, successful or not
"""

from zoneinfo import available_timezones

from dj_rest_auth.serializers import LoginSerializer as BaseLoginSerializer
from rest_framework import serializers

from authentication.models import LinkedAccount, Profile, User
from authentication.oauth_state import OAUTH_PROVIDERS
from authentication.security import validate_email_security, validate_password_strength
from authentication.services import AuthService
from core.helpers import get_client_ip
from toolkit.helpers import get_initials
from toolkit.validators import validate_locale, validate_phone_number


def _check_password_strength(value):
    """Field validator raising the critical issues of a weak password."""
    result = validate_password_strength(value)
    if not result.is_strong:
        raise serializers.ValidationError(
            result.critical_issues or result.feedback or ["Password is too weak"]
        )
    return value


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model (read operations).

    Used by dj-rest-auth for the /api/v1/auth/user/ endpoint and
    for serializing user data in API responses.
    """

    initials = serializers.SerializerMethodField()
    active_workspace_id = serializers.UUIDField(read_only=True, allow_null=True)
    linked_providers = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "full_name",
            "initials",
            "avatar_url",
            "phone",
            "locale",
            "timezone",
            "email_verified",
            "active_workspace_id",
            "linked_providers",
            "last_active_at",
            "date_joined",
        ]
        read_only_fields = fields

    def get_initials(self, obj):
        return get_initials(obj.full_name, obj.email)

    def get_linked_providers(self, obj):
        """Return list of linked authentication providers."""
        return list(obj.linked_accounts.values_list("provider", flat=True))


class ProfileSerializer(serializers.ModelSerializer):
    """
    Serializer for Profile model (read operations).

    Includes the display fields that live on User so the client gets the
    whole profile from one endpoint.
    """

    user_id = serializers.IntegerField(source="user.id", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    full_name = serializers.CharField(source="user.full_name", read_only=True)
    avatar_url = serializers.CharField(source="user.avatar_url", read_only=True)
    phone = serializers.CharField(source="user.phone", read_only=True)
    locale = serializers.CharField(source="user.locale", read_only=True)
    timezone = serializers.CharField(source="user.timezone", read_only=True)

    class Meta:
        model = Profile
        fields = [
            "user_id",
            "email",
            "full_name",
            "avatar_url",
            "phone",
            "locale",
            "timezone",
            "bio",
            "website",
            "company",
            "job_title",
            "preferences",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.Serializer):
    """
    Input for profile updates.

    Every field is optional; only the ones sent are changed.
    """

    full_name = serializers.CharField(min_length=1, max_length=100, required=False)
    avatar_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    phone = serializers.CharField(
        max_length=32,
        required=False,
        allow_blank=True,
        validators=[validate_phone_number],
    )
    locale = serializers.CharField(
        max_length=10, required=False, validators=[validate_locale]
    )
    timezone = serializers.CharField(max_length=50, required=False)
    bio = serializers.CharField(max_length=500, required=False, allow_blank=True)
    website = serializers.URLField(max_length=200, required=False, allow_blank=True)
    company = serializers.CharField(max_length=100, required=False, allow_blank=True)
    job_title = serializers.CharField(max_length=100, required=False, allow_blank=True)
    preferences = serializers.DictField(required=False)

    def validate_timezone(self, value):
        if value not in available_timezones():
            raise serializers.ValidationError("Unknown timezone.")
        return value


class LinkedAccountSerializer(serializers.ModelSerializer):
    """
    Serializer for LinkedAccount model (read operations).
    """

    provider_display = serializers.CharField(
        source="get_provider_display", read_only=True
    )

    class Meta:
        model = LinkedAccount
        fields = [
            "id",
            "provider",
            "provider_display",
            "provider_user_id",
            "created_at",
        ]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    """
    Serializer for user registration.

    Used by dj-rest-auth for the /api/v1/auth/registration/ endpoint.
    Handles email/password registration (not OAuth).
    """

    email = serializers.EmailField(required=True)
    password1 = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        validators=[_check_password_strength],
        help_text="At least 8 characters mixing letters, numbers and symbols.",
    )
    password2 = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="Confirm your password.",
    )
    full_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    locale = serializers.CharField(
        max_length=10, required=False, default="en", validators=[validate_locale]
    )
    timezone = serializers.CharField(max_length=50, required=False, default="UTC")

    def validate_email(self, value):
        """Reject insecure or already registered addresses."""
        email = value.lower().strip()
        check = validate_email_security(email)
        if not check.is_secure:
            raise serializers.ValidationError(check.issues)
        if User.objects.filter(email__iexact=email).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return email

    def validate_timezone(self, value):
        if value not in available_timezones():
            raise serializers.ValidationError("Unknown timezone.")
        return value

    def validate(self, attrs):
        """Validate that passwords match."""
        if attrs["password1"] != attrs["password2"]:
            raise serializers.ValidationError({"password2": "Passwords do not match."})
        return attrs

    def get_cleaned_data(self):
        """Return cleaned data for user creation (required by dj-rest-auth)."""
        return {
            "email": self.validated_data.get("email", ""),
            "password1": self.validated_data.get("password1", ""),
        }

    def save(self, request):
        """
        Create a new user with the validated data.

        This method signature is required by dj-rest-auth which passes
        the request object to the serializer's save method.
        """
        result = AuthService.sign_up(
            email=self.validated_data["email"],
            password=self.validated_data["password1"],
            full_name=self.validated_data.get("full_name", ""),
            locale=self.validated_data.get("locale", "en"),
            timezone_name=self.validated_data.get("timezone", "UTC"),
        )
        if not result:
            raise serializers.ValidationError(result.errors or {"email": [result.error]})
        return result.data


class LoginSerializer(BaseLoginSerializer):
    """
    Email/password login that audits every attempt.

    Used by dj-rest-auth for /api/v1/auth/login/ via REST_AUTH
    LOGIN_SERIALIZER. The username field is removed; users sign in by email.
    """

    username = None
    email = serializers.EmailField(required=True)

    def validate(self, attrs):
        request = self.context.get("request")
        ip_address = get_client_ip(request) if request is not None else ""
        user_agent = request.META.get("HTTP_USER_AGENT", "") if request is not None else ""

        try:
            attrs = super().validate(attrs)
        except serializers.ValidationError:
            AuthService.record_login_attempt(
                attrs.get("email", ""), False, ip_address, user_agent
            )
            raise

        AuthService.record_login_attempt(attrs["email"], True, ip_address, user_agent)
        return attrs


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)
    new_password_confirm = serializers.CharField(write_only=True)

    def validate(self, attrs):
        if attrs["new_password"] != attrs["new_password_confirm"]:
            raise serializers.ValidationError(
                {"new_password_confirm": "Passwords do not match."}
            )
        return attrs


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()


class PasswordResetConfirmSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=512)
    new_password = serializers.CharField(write_only=True)
    new_password_confirm = serializers.CharField(write_only=True)

    def validate(self, attrs):
        if attrs["new_password"] != attrs["new_password_confirm"]:
            raise serializers.ValidationError(
                {"new_password_confirm": "Passwords do not match."}
            )
        return attrs


class EmailVerificationSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=512)
    type = serializers.ChoiceField(
        choices=["signup", "email", "email_change"], default="signup"
    )


class EmailChangeSerializer(serializers.Serializer):
    new_email = serializers.EmailField()


class DeleteAccountSerializer(serializers.Serializer):
    confirmation = serializers.CharField(
        help_text='Must be exactly "DELETE MY ACCOUNT"',
    )


class OAuthInitSerializer(serializers.Serializer):
    provider = serializers.ChoiceField(choices=OAUTH_PROVIDERS)


class OAuthInitResponseSerializer(serializers.Serializer):
    url = serializers.URLField()
    state = serializers.CharField()


class InternalDeleteUserSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    secret = serializers.CharField(trim_whitespace=False)
