"""
URL configuration for the Django application.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Authentication endpoints
        registration/, login/      - Email/password (custom, rate limited)
        logout/, user/             - dj-rest-auth
        token/refresh/             - JWT refresh (dj-rest-auth)
        google/, github/, apple/   - Social login (custom)
        session/                   - Session summary and security report
        profile/                   - User profile (custom)
        password/...               - Change and reset password (custom)
        verify-email/              - Email verification (custom)
        delete-account/            - Account deletion (custom)
    /api/v1/workspaces/            - Workspaces
        active/, switch/           - Active workspace
        slug/generate/, slug/check/ - Slug helpers
        {id}/                      - Detail/update/delete
        {id}/archive/, export/, leave/, transfer-ownership/
        {id}/members/              - Member list
        {id}/members/{user}/       - Change role / remove member
        {id}/invitations/          - Invitation list/create
        {id}/invitations/bulk/     - Bulk invitations
    /api/v1/invitations/           - Invitations by token or id
        {token}/                   - Public preview
        accept/                    - Accept
        {id}/cancel/, {id}/resend/ - Manage
    /api/v1/analytics/             - Dashboard analytics for the active workspace
        kpis/, revenue-timeseries/, orders-timeseries/, products-top/
        subscriptions-summary/, disputes-summary/, payments-recent/
        sales-by-product/, revenue-by-product/, sales-by-day-of-week/
        sales-by-hour/, exchange-rates/, export/ (CSV)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Custom authentication first so it wins over dj-rest-auth where paths overlap
    path("auth/", include("authentication.urls")),
    path("auth/", include("dj_rest_auth.urls")),
    path("auth/registration/", include("dj_rest_auth.registration.urls")),
    path("accounts/", include("allauth.urls")),
    # Workspaces & invitations
    path("workspaces/", include("workspaces.urls")),
    path("invitations/", include("workspaces.invitation_urls")),
    # Analytics
    path("analytics/", include("analytics.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Application Admin"
admin.site.site_title = "Admin Portal"
admin.site.index_title = "Welcome to the Admin Portal"
