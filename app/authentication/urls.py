"""
URL configuration for authentication app.

This module defines URL patterns for authentication-related endpoints.
It is included in config/urls.py before dj-rest-auth's own URLs, so the
views here take precedence where paths overlap.

URL structure:
    /api/v1/auth/registration/            - Register (rate limited)
    /api/v1/auth/login/                   - Log in (rate limited, audited)
    /api/v1/auth/oauth/                   - Start OAuth, sets oauth_state cookie
    /api/v1/auth/google/                  - Google OAuth2 login
    /api/v1/auth/github/                  - GitHub OAuth2 login
    /api/v1/auth/apple/                   - Apple Sign-In login
    /api/v1/auth/callback/                - Email link landing, redirects to the web app
    /api/v1/auth/session/                 - Current session summary
    /api/v1/auth/session/security/        - Session security report
    /api/v1/auth/profile/                 - Profile management (GET/PUT/PATCH)
    /api/v1/auth/password/change/         - Change password
    /api/v1/auth/password/reset/          - Request reset email
    /api/v1/auth/password/reset/confirm/  - Set new password with token
    /api/v1/auth/verify-email/            - Email verification / change confirmation
    /api/v1/auth/resend-email/            - Resend verification email
    /api/v1/auth/email/change/            - Start an email change
    /api/v1/auth/delete-account/          - Delete own account
    /api/v1/auth/internal/delete-user/    - Internal user deletion

Note:
    Remaining dj-rest-auth URLs are included in config/urls.py:
    - /api/v1/auth/logout/
    - /api/v1/auth/user/
    - /api/v1/auth/token/refresh/, /api/v1/auth/token/verify/
"""

from django.urls import path

from authentication.views import (
    AppleLoginView,
    AuthCallbackView,
    DeleteAccountView,
    EmailChangeView,
    EmailVerificationView,
    GitHubLoginView,
    GoogleLoginView,
    InternalDeleteUserView,
    LoginView,
    OAuthInitView,
    PasswordChangeView,
    PasswordResetConfirmView,
    PasswordResetRequestView,
    ProfileView,
    RegisterView,
    ResendEmailView,
    SessionSecurityView,
    SessionView,
)

app_name = "authentication"

urlpatterns = [
    # Registration & login
    path("registration/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    # Social authentication
    path("oauth/", OAuthInitView.as_view(), name="oauth-init"),
    path("google/", GoogleLoginView.as_view(), name="google-login"),
    path("github/", GitHubLoginView.as_view(), name="github-login"),
    path("apple/", AppleLoginView.as_view(), name="apple-login"),
    path("callback/", AuthCallbackView.as_view(), name="callback"),
    # Session
    path("session/", SessionView.as_view(), name="session"),
    path("session/security/", SessionSecurityView.as_view(), name="session-security"),
    # Profile & password
    path("profile/", ProfileView.as_view(), name="profile"),
    path("password/change/", PasswordChangeView.as_view(), name="password-change"),
    path("password/reset/", PasswordResetRequestView.as_view(), name="password-reset"),
    path(
        "password/reset/confirm/",
        PasswordResetConfirmView.as_view(),
        name="password-reset-confirm",
    ),
    # Email verification & change
    path("verify-email/", EmailVerificationView.as_view(), name="verify-email"),
    path("resend-email/", ResendEmailView.as_view(), name="resend-email"),
    path("email/change/", EmailChangeView.as_view(), name="email-change"),
    # Account management
    path("delete-account/", DeleteAccountView.as_view(), name="delete-account"),
    path(
        "internal/delete-user/",
        InternalDeleteUserView.as_view(),
        name="internal-delete-user",
    ),
]
