"""
URL configuration for token- and id-addressed invitations.

URL Structure:
    /accept/                POST    Accept by token (public)
    /{id}/cancel/           POST
    /{id}/resend/           POST
    /{token}/               GET     Preview by token (public)

All URLs are prefixed with /api/v1/invitations/ in the main URL configuration.
"""

from django.urls import path

from workspaces.views import InvitationViewSet

app_name = "invitations"

urlpatterns = [
    path(
        "accept/",
        InvitationViewSet.as_view({"post": "accept"}),
        name="invitation-accept",
    ),
    path(
        "<int:pk>/cancel/",
        InvitationViewSet.as_view({"post": "cancel"}),
        name="invitation-cancel",
    ),
    path(
        "<int:pk>/resend/",
        InvitationViewSet.as_view({"post": "resend"}),
        name="invitation-resend",
    ),
    path(
        "<str:token>/",
        InvitationViewSet.as_view({"get": "retrieve"}),
        name="invitation-detail",
    ),
]
