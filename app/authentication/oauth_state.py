"""
OAuth redirect flow helpers.

Before sending the browser to a provider we generate a random state, keep
a copy in an httpOnly cookie and put the other copy in the authorize URL.
When the provider redirects back, the state it echoes must match the cookie.

Related files:
    - views.py: OAuthInitView sets the cookie, social login views check it
    - config/settings.py: SOCIALACCOUNT_PROVIDERS, OAUTH_STATE_MAX_AGE

Usage:
    state = generate_oauth_state()
    response = Response({"url": build_authorize_url("github", state), "state": state})
    set_oauth_state_cookie(response, state)

    # On return from the provider
    is_valid = validate_oauth_state(request, received_state)
    clear_oauth_state_cookie(response)
"""

from __future__ import annotations

import hmac
import secrets
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from django.conf import settings

from core.exceptions import ValidationError

if TYPE_CHECKING:
    from django.http import HttpRequest, HttpResponse

OAUTH_STATE_COOKIE = "oauth_state"

PROVIDER_AUTHORIZE_URLS = {
    "google": "https://accounts.google.com/o/oauth2/v2/auth",
    "github": "https://github.com/login/oauth/authorize",
    "apple": "https://appleid.apple.com/auth/authorize",
}
OAUTH_PROVIDERS = tuple(PROVIDER_AUTHORIZE_URLS)


def generate_oauth_state() -> str:
    """Return 32 random bytes as 64 hex characters."""
    return secrets.token_hex(32)


def get_oauth_redirect_uri() -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/auth/callback"


def build_authorize_url(provider: str, state: str) -> str:
    """
    Build the provider's authorize URL for the code flow.

    Client id and scopes come from SOCIALACCOUNT_PROVIDERS.

    Raises:
        ValidationError: Unknown provider or provider without a client id
    """
    if provider not in PROVIDER_AUTHORIZE_URLS:
        raise ValidationError("Invalid request", error_code="INVALID_PROVIDER")

    config = settings.SOCIALACCOUNT_PROVIDERS.get(provider, {})
    client_id = config.get("APP", {}).get("client_id")
    if not client_id:
        raise ValidationError(
            "Authentication failed", error_code="PROVIDER_NOT_CONFIGURED"
        )

    params = {
        "client_id": client_id,
        "redirect_uri": get_oauth_redirect_uri(),
        "response_type": "code",
        "scope": " ".join(config.get("SCOPE", [])),
        "state": state,
    }
    params.update(config.get("AUTH_PARAMS", {}))
    if provider == "apple":
        # Apple only returns name/email scopes to a form_post callback
        params["response_mode"] = "form_post"

    return f"{PROVIDER_AUTHORIZE_URLS[provider]}?{urlencode(params)}"


def set_oauth_state_cookie(response: HttpResponse, state: str) -> None:
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=getattr(settings, "OAUTH_STATE_MAX_AGE", 1800),
        path="/",
        httponly=True,
        secure=not settings.DEBUG,
        samesite="Lax",
    )


def clear_oauth_state_cookie(response: HttpResponse) -> None:
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/", samesite="Lax")


def validate_oauth_state(request: HttpRequest, received_state: str | None) -> bool:
    """
    Compare the state echoed by the provider with the cookie copy.

    Empty values never match. Callers clear the cookie afterwards whatever
    the outcome, so a state can only be used once.
    """
    stored_state = request.COOKIES.get(OAUTH_STATE_COOKIE, "")
    if not received_state or not stored_state:
        return False
    return hmac.compare_digest(str(received_state).encode(), stored_state.encode())
