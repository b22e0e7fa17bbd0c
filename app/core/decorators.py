"""
Custom decorators for views and functions.

This module provides generic infrastructure decorators for:
- Rate limiting (named policies from core.ratelimit)
- Request/response logging

Usage:
    from core.decorators import rate_limit, log_request

    class LoginView(BaseLoginView):
        @rate_limit("auth")
        def post(self, request, *args, **kwargs):
            ...

    @rate_limit("password_reset", identifier="email")
    @api_view(["POST"])
    def request_reset(request):
        ...

Note:
    Both decorators work on plain function views and on view methods; the
    request is found whether or not a `self` argument comes first.
"""

from __future__ import annotations

import functools
import logging
from typing import Callable, TYPE_CHECKING

from django.conf import settings

from core.ratelimit import (
    RateLimitIdentifier,
    enforce_rate_limit,
    get_rate_limit_identifier,
    rate_limit_headers,
)

if TYPE_CHECKING:
    from rest_framework.request import Request

logger = logging.getLogger(__name__)


def _find_request(args: tuple) -> Request:
    """Return the request from (request, ...) or (self, request, ...)."""
    if args and hasattr(args[0], "META"):
        return args[0]
    return args[1]


def rate_limit(
    policy: str,
    identifier: str | Callable[[Request], RateLimitIdentifier] = "ip",
):
    """
    Rate limit decorator using a named policy.

    Args:
        policy: Key of core.ratelimit.RATE_LIMIT_POLICIES
        identifier: "ip", "user_id", "email", or a callable taking the
            request and returning a RateLimitIdentifier

    Returns:
        Decorator function

    HTTP 429 Response:
        RateLimitError is raised and rendered by the API exception handler
        with Retry-After and X-RateLimit-* headers. Allowed responses carry
        the X-RateLimit-* headers too.
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not getattr(settings, "RATE_LIMIT_ENABLED", True):
                return func(*args, **kwargs)

            request = _find_request(args)
            if callable(identifier):
                ident = identifier(request)
            else:
                ident = get_rate_limit_identifier(request, identifier)

            result = enforce_rate_limit(policy, ident)
            response = func(*args, **kwargs)

            if result is not None and hasattr(response, "__setitem__"):
                for header, value in rate_limit_headers(result).items():
                    response[header] = value
            return response

        return wrapper

    return decorator


def log_request(logger_name: str | None = None):
    """
    Log request/response for debugging.

    Logs request method, path, user, and response status at DEBUG level.

    Args:
        logger_name: Optional logger name (defaults to view module)
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            log = logging.getLogger(logger_name or func.__module__)
            request = _find_request(args)

            user_str = (
                str(request.user) if hasattr(request, "user") else "anonymous"
            )
            log.debug(
                f"Request: {request.method} {request.path}",
                extra={
                    "user": user_str,
                    "method": request.method,
                    "path": request.path,
                },
            )

            response = func(*args, **kwargs)

            status_code = getattr(response, "status_code", "unknown")
            log.debug(
                f"Response: {status_code} for {request.method} {request.path}",
                extra={
                    "status_code": status_code,
                    "method": request.method,
                    "path": request.path,
                },
            )

            return response

        return wrapper

    return decorator
