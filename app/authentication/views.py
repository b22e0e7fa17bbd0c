"""
Authentication views.

This module provides API views for:
- Registration and login (dj-rest-auth subclasses with rate limiting)
- OAuth: authorize URL + state cookie, provider code exchange
- The email link callback that redirects to the web client
- Session data and session security reports
- Profile, password, email verification/change and account deletion
- Internal service-to-service user deletion

Related files:
    - serializers.py: Request/response serialization
    - services.py: Business logic (AuthService)
    - oauth_state.py: OAuth state cookie helpers
    - urls.py: URL routing
    - adapters.py: Social auth adapters

Note:
    Some endpoints are still served by dj-rest-auth as-is:
    - Logout: /api/v1/auth/logout/
    - Current user: /api/v1/auth/user/
    - Token refresh/verify: /api/v1/auth/token/refresh/, /api/v1/auth/token/verify/

    Social login endpoints:
    - Google: /api/v1/auth/google/
    - GitHub: /api/v1/auth/github/
    - Apple: /api/v1/auth/apple/
"""

import hmac
import logging
import re
from urllib.parse import urlencode

from allauth.socialaccount.providers.apple.client import AppleOAuth2Client
from allauth.socialaccount.providers.apple.views import AppleOAuth2Adapter
from allauth.socialaccount.providers.github.views import GitHubOAuth2Adapter
from allauth.socialaccount.providers.google.views import GoogleOAuth2Adapter
from allauth.socialaccount.providers.oauth2.client import OAuth2Client
from dj_rest_auth.registration.views import RegisterView as BaseRegisterView
from dj_rest_auth.registration.views import SocialLoginView
from dj_rest_auth.views import LoginView as BaseLoginView
from django.conf import settings
from django.http import HttpResponseRedirect
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.oauth_state import (
    build_authorize_url,
    clear_oauth_state_cookie,
    generate_oauth_state,
    get_oauth_redirect_uri,
    set_oauth_state_cookie,
    validate_oauth_state,
)
from authentication.security import validate_auth_token
from authentication.serializers import (
    DeleteAccountSerializer,
    EmailChangeSerializer,
    EmailVerificationSerializer,
    InternalDeleteUserSerializer,
    OAuthInitResponseSerializer,
    OAuthInitSerializer,
    PasswordChangeSerializer,
    PasswordResetConfirmSerializer,
    PasswordResetRequestSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    UserSerializer,
)
from authentication.services import AuthService
from core.decorators import rate_limit
from core.helpers import get_client_ip
from core.viewset_mixins import ServiceResultMixin
from toolkit.helpers import parse_user_agent

logger = logging.getLogger(__name__)

LOCALE_RE = re.compile(r"^[a-z]{2}(-[A-Za-z]{2})?$")
DEFAULT_LOCALE = "en"


# =============================================================================
# Registration & Login
# =============================================================================


class RegisterView(BaseRegisterView):
    """
    dj-rest-auth registration, limited by the `auth` policy per IP.

    URL: /api/v1/auth/registration/
    """

    @rate_limit("auth")
    def create(self, request, *args, **kwargs):
        return super().create(request, *args, **kwargs)


class LoginView(BaseLoginView):
    """
    dj-rest-auth login, limited by the `auth` policy per IP.

    Attempts are recorded by authentication.serializers.LoginSerializer.

    URL: /api/v1/auth/login/
    """

    @rate_limit("auth")
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


# =============================================================================
# OAuth
# =============================================================================


class OAuthInitView(APIView):
    """
    Start an OAuth sign-in.

    POST: Returns the provider authorize URL and sets the oauth_state cookie

    URL: /api/v1/auth/oauth/

    Request body:
        {"provider": "google" | "github" | "apple"}

    Returns:
        {"url": "https://provider/authorize?...", "state": "<64 hex chars>"}
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Start OAuth sign-in",
        description=(
            "Return the provider authorize URL and store a CSRF state in an "
            "httpOnly cookie. The provider echoes the state back."
        ),
        tags=["Auth - OAuth"],
        request=OAuthInitSerializer,
        responses={200: OAuthInitResponseSerializer},
    )
    @rate_limit("auth_callback")
    def post(self, request):
        serializer = OAuthInitSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid request"}, status=status.HTTP_400_BAD_REQUEST
            )

        provider = serializer.validated_data["provider"]
        state = generate_oauth_state()
        url = build_authorize_url(provider, state)

        response = Response({"url": url, "state": state})
        set_oauth_state_cookie(response, state)

        logger.info(f"OAuth sign-in started with {provider}")
        return response


class StateCheckedSocialLoginView(SocialLoginView):
    """
    SocialLoginView that checks the OAuth state for the code flow.

    Requests carrying `code` must also carry the `state` stored in the
    oauth_state cookie by OAuthInitView. Token-based requests (id_token or
    access_token from a mobile SDK) skip the check. The cookie is cleared
    on every code-flow response.
    """

    client_class = OAuth2Client

    @property
    def callback_url(self):
        return get_oauth_redirect_uri()

    def post(self, request, *args, **kwargs):
        if not request.data.get("code"):
            return super().post(request, *args, **kwargs)

        if not validate_oauth_state(request, request.data.get("state")):
            logger.warning(
                f"OAuth state mismatch for {self.adapter_class.provider_id} "
                f"from {get_client_ip(request)}"
            )
            response = Response(
                {"error": "Invalid OAuth state"}, status=status.HTTP_400_BAD_REQUEST
            )
        else:
            response = super().post(request, *args, **kwargs)

        clear_oauth_state_cookie(response)
        return response


@extend_schema(
    summary="Sign in with Google",
    description=(
        "Authenticate using a Google OAuth2 token. For mobile apps, use the id_token "
        "from Google Sign-In SDK. For web apps, send the authorization code and state."
    ),
    tags=["Auth - OAuth"],
)
class GoogleLoginView(StateCheckedSocialLoginView):
    """
    API view for Google OAuth2 authentication.

    URL: /api/v1/auth/google/

    Request body:
        {"access_token": "..."} OR {"id_token": "..."}
        OR {"code": "authorization_code", "state": "..."}

    Returns:
        {"access": "jwt_access_token", "refresh": "jwt_refresh_token", "user": {...}}
    """

    adapter_class = GoogleOAuth2Adapter


@extend_schema(
    summary="Sign in with GitHub",
    description="Exchange a GitHub authorization code (with its state) for JWTs.",
    tags=["Auth - OAuth"],
)
class GitHubLoginView(StateCheckedSocialLoginView):
    """
    API view for GitHub OAuth2 authentication.

    URL: /api/v1/auth/github/

    Request body:
        {"code": "authorization_code", "state": "..."}
    """

    adapter_class = GitHubOAuth2Adapter


@extend_schema(
    summary="Sign in with Apple",
    description=(
        "Authenticate using Apple Sign-In. Apple only sends the user's name on the "
        "first authentication, so it's captured and stored at that time."
    ),
    tags=["Auth - OAuth"],
)
class AppleLoginView(StateCheckedSocialLoginView):
    """
    API view for Apple Sign-In authentication.

    URL: /api/v1/auth/apple/

    Request body:
        {"id_token": "apple_identity_token", "access_token": "apple_authorization_code"}
        OR {"code": "authorization_code", "state": "..."}

        On first login, Apple may also send user info:
        {"user": {"name": {"firstName": "Ana", "lastName": "Souza"}}}

    Note:
        Apple only sends user's name on the FIRST authentication.
        The CustomSocialAccountAdapter captures this data.
    """

    adapter_class = AppleOAuth2Adapter
    client_class = AppleOAuth2Client


# =============================================================================
# Email link callback
# =============================================================================


class AuthCallbackView(APIView):
    """
    Landing endpoint for links sent by email.

    GET: Consume or check the token, then redirect to the web client

    URL: /api/v1/auth/callback/?token=...&type=signup|email|email_change|recovery

    Redirects:
        error / error_description      -> /<locale>/auth/login?error=...
        type=recovery, token usable    -> /<locale>/auth/reset-password?token=...
        other types, token consumed    -> `next` (relative) or /<locale>/dashboard
        token rejected                 -> /<locale>/auth/login?error=...
        nothing to do                  -> /<locale>/auth/login
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Email link callback",
        description="Verify a token from an email link and redirect to the web app.",
        tags=["Auth"],
        parameters=[
            OpenApiParameter("token", str),
            OpenApiParameter("type", str),
            OpenApiParameter("next", str),
            OpenApiParameter("error", str),
            OpenApiParameter("error_description", str),
            OpenApiParameter("locale", str),
        ],
        responses={302: None},
    )
    @rate_limit("auth_callback")
    def get(self, request):
        params = request.query_params
        locale = self._get_locale(request)

        error = params.get("error")
        if error:
            description = params.get("error_description") or error
            logger.info(f"Auth callback error: {error} ({description})")
            return self._redirect(locale, "auth/login", error=description)

        token = params.get("token")
        link_type = params.get("type")
        if not token or not link_type:
            return self._redirect(locale, "auth/login")

        token_check = validate_auth_token(token, link_type)
        if not token_check.is_valid:
            return self._redirect(locale, "auth/login", error=token_check.error)

        if link_type == "recovery":
            if AuthService.get_password_reset_token(token) is None:
                return self._redirect(
                    locale, "auth/login", error="Invalid or expired token"
                )
            return self._redirect(locale, "auth/reset-password", token=token)

        if link_type in ("signup", "email"):
            result = AuthService.verify_email(token, verification_type="signup")
        elif link_type == "email_change":
            result = AuthService.verify_email(token, verification_type="email_change")
        else:
            return self._redirect(locale, "auth/login", error="Unsupported link type")

        if not result:
            return self._redirect(locale, "auth/login", error=result.error)

        next_path = params.get("next", "")
        if next_path.startswith("/") and not next_path.startswith("//"):
            return HttpResponseRedirect(f"{self._frontend_url()}{next_path}")
        return self._redirect(locale, "dashboard")

    @staticmethod
    def _frontend_url():
        return settings.FRONTEND_URL.rstrip("/")

    @staticmethod
    def _get_locale(request):
        locale = request.query_params.get("locale") or request.COOKIES.get("locale")
        if locale and LOCALE_RE.match(locale):
            return locale
        return DEFAULT_LOCALE

    def _redirect(self, locale, path, **query):
        url = f"{self._frontend_url()}/{locale}/{path}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return HttpResponseRedirect(url)


# =============================================================================
# Session
# =============================================================================


class SessionView(APIView):
    """
    Current session summary for the web client.

    GET: User, profile, active workspace and the user's role in it.
    Anonymous callers get {"user": null}.

    URL: /api/v1/auth/session/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Get current session",
        description="Signed-in user with profile and active workspace, or a null user.",
        tags=["Auth - User"],
    )
    def get(self, request):
        from workspaces.models import WorkspaceMember

        user = request.user
        if not user.is_authenticated:
            return Response({"user": None, "profile": None, "workspace": None, "role": None})

        profile = AuthService.get_or_create_profile(user)

        workspace_data = None
        role = None
        workspace = user.active_workspace
        if workspace is not None and not workspace.is_deleted:
            membership = WorkspaceMember.objects.filter(
                workspace=workspace, user=user
            ).first()
            if membership is not None:
                workspace_data = {
                    "id": str(workspace.id),
                    "name": workspace.name,
                    "slug": workspace.slug,
                    "logo_url": workspace.logo_url,
                }
                role = membership.role

        return Response(
            {
                "user": UserSerializer(user, context={"request": request}).data,
                "profile": ProfileSerializer(profile, context={"request": request}).data,
                "workspace": workspace_data,
                "role": role,
            }
        )


class SessionSecurityView(APIView):
    """
    Security report for the caller's session.

    GET: Evaluate the JWT session (age, expiry, inactivity) and the client
    (user agent, IP). Also records activity for the next check.

    URL: /api/v1/auth/session/security/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Check session security",
        description="Return security events and recommended actions for this session.",
        tags=["Auth - Security"],
    )
    def get(self, request):
        token_payload = getattr(request.auth, "payload", None)
        user_agent = request.META.get("HTTP_USER_AGENT", "")
        check = AuthService.get_session_security(
            request.user,
            token_payload,
            user_agent=user_agent,
            ip_address=get_client_ip(request),
        )

        data = check.to_dict()
        data["device"] = {
            key: value
            for key, value in parse_user_agent(user_agent).items()
            if key != "raw"
        }
        return Response(data)


# =============================================================================
# Profile & Account Management Views
# =============================================================================


class ProfileView(ServiceResultMixin, APIView):
    """
    API view for user profile operations.

    GET: Retrieve current user's profile
    PUT/PATCH: Update current user's profile

    URL: /api/v1/auth/profile/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get current user's profile",
        tags=["Auth - Profile"],
        responses={200: ProfileSerializer},
    )
    def get(self, request):
        profile = AuthService.get_or_create_profile(request.user)
        serializer = ProfileSerializer(profile, context={"request": request})
        return Response(serializer.data)

    @extend_schema(
        summary="Update profile",
        tags=["Auth - Profile"],
        request=ProfileUpdateSerializer,
        responses={200: ProfileSerializer},
    )
    def put(self, request):
        return self._update_profile(request)

    @extend_schema(
        summary="Partially update profile",
        tags=["Auth - Profile"],
        request=ProfileUpdateSerializer,
        responses={200: ProfileSerializer},
    )
    def patch(self, request):
        return self._update_profile(request)

    def _update_profile(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.update_profile(request.user, **serializer.validated_data)
        if not result:
            return self.failure_response(result)

        profile = AuthService.get_or_create_profile(request.user)
        profile.refresh_from_db()
        return Response(ProfileSerializer(profile, context={"request": request}).data)


class PasswordChangeView(ServiceResultMixin, APIView):
    """
    Change the signed-in user's password.

    URL: /api/v1/auth/password/change/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Change password",
        description="Requires the current password; the new one must be strong.",
        tags=["Auth"],
        request=PasswordChangeSerializer,
    )
    @rate_limit("auth", identifier="user_id")
    def post(self, request):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.update_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        if not result:
            return self.failure_response(result)
        return Response({"detail": "Password updated successfully"})


class PasswordResetRequestView(APIView):
    """
    Email a password reset link.

    Always answers 200 so the endpoint cannot be used to discover accounts.

    URL: /api/v1/auth/password/reset/
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Request password reset",
        tags=["Auth"],
        request=PasswordResetRequestSerializer,
    )
    @rate_limit("password_reset", identifier="email")
    def post(self, request):
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        AuthService.request_password_reset(serializer.validated_data["email"])
        return Response(
            {"detail": "If an account exists for this email, a reset link has been sent"}
        )


class PasswordResetConfirmView(ServiceResultMixin, APIView):
    """
    Set a new password with a reset token.

    URL: /api/v1/auth/password/reset/confirm/
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Confirm password reset",
        tags=["Auth"],
        request=PasswordResetConfirmSerializer,
    )
    @rate_limit("password_reset")
    def post(self, request):
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.reset_password(
            serializer.validated_data["token"],
            serializer.validated_data["new_password"],
        )
        if not result:
            return self.failure_response(result)
        return Response({"detail": "Password reset successfully"})


class EmailVerificationView(ServiceResultMixin, APIView):
    """
    API view for email verification.

    POST: Verify email with token

    URL: /api/v1/auth/verify-email/
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Verify email address",
        description=(
            "Verify the user's email (type=signup) or confirm an email change "
            "(type=email_change) using the token sent by email."
        ),
        tags=["Auth"],
        request=EmailVerificationSerializer,
    )
    @rate_limit("auth_callback")
    def post(self, request):
        serializer = EmailVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.verify_email(
            serializer.validated_data["token"],
            verification_type=serializer.validated_data["type"],
        )
        if not result:
            return self.failure_response(result)
        return Response({"detail": "Email verified successfully"})


class ResendEmailView(ServiceResultMixin, APIView):
    """
    API view to resend verification email.

    POST: Resend verification email to current user

    URL: /api/v1/auth/resend-email/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Resend verification email",
        description="Send a new verification email to the current user.",
        tags=["Auth"],
    )
    @rate_limit("auth", identifier="user_id")
    def post(self, request):
        result = AuthService.resend_verification(request.user)
        if not result:
            return self.failure_response(result)
        return Response({"detail": "Verification email sent"})


class EmailChangeView(ServiceResultMixin, APIView):
    """
    Start changing the signed-in user's email address.

    URL: /api/v1/auth/email/change/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Change email address",
        description="Send a confirmation link to the new address.",
        tags=["Auth"],
        request=EmailChangeSerializer,
    )
    @rate_limit("auth", identifier="user_id")
    def post(self, request):
        serializer = EmailChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.request_email_change(
            request.user, serializer.validated_data["new_email"]
        )
        if not result:
            return self.failure_response(result)
        return Response({"detail": "Confirmation email sent to the new address"})


class DeleteAccountView(ServiceResultMixin, APIView):
    """
    Permanently delete the signed-in user's account.

    URL: /api/v1/auth/delete-account/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Delete account",
        description=(
            'Permanently delete the account. Requires "DELETE MY ACCOUNT" as '
            "confirmation. Refused while the user owns a workspace with other members."
        ),
        tags=["Auth"],
        request=DeleteAccountSerializer,
    )
    @rate_limit("account_deletion", identifier="user_id")
    def post(self, request):
        serializer = DeleteAccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.delete_account(
            request.user, serializer.validated_data["confirmation"]
        )
        if not result:
            return self.failure_response(result)
        return Response({"detail": "Account deleted"})


class InternalDeleteUserView(APIView):
    """
    Delete a user on behalf of another internal service.

    URL: /api/v1/auth/internal/delete-user/

    Request body:
        {"user_id": 123, "secret": "<INTERNAL_API_SECRET>"}
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Delete user (internal)",
        description="Service-to-service user deletion guarded by a shared secret.",
        tags=["Auth - Security"],
        request=InternalDeleteUserSerializer,
    )
    def post(self, request):
        serializer = InternalDeleteUserSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid request"}, status=status.HTTP_400_BAD_REQUEST
            )

        expected = settings.INTERNAL_API_SECRET
        received = serializer.validated_data["secret"]
        if not expected or not hmac.compare_digest(
            received.encode(), expected.encode()
        ):
            logger.warning(
                f"Rejected internal delete-user call from {get_client_ip(request)}"
            )
            return Response(
                {"error": "Unauthorized"}, status=status.HTTP_401_UNAUTHORIZED
            )

        result = AuthService.delete_user_by_id(serializer.validated_data["user_id"])
        if not result.success:
            return Response(result.to_response(), status=result.status_code)
        return Response({"success": True})
