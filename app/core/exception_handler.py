"""
DRF exception handler for application errors.

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Application errors from
core.exceptions become JSON bodies with their own HTTP status; everything
else falls through to DRF's default handler.

Response body:
    {
        "error": "Rate limit exceeded. Try again in 42 seconds.",
        "error_code": "RATE_LIMIT_EXCEEDED",
        "details": {"retry_after": 42, ...}
    }

Rate-limit errors also carry Retry-After and X-RateLimit-* headers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError, RateLimitError

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Convert BaseApplicationError subclasses into API responses."""
    if not isinstance(exc, BaseApplicationError):
        return exception_handler(exc, context)

    response = Response(exc.to_dict(), status=exc.http_status)

    if isinstance(exc, RateLimitError):
        details = exc.details
        if "retry_after" in details:
            response["Retry-After"] = str(details["retry_after"])
        if "limit" in details:
            response["X-RateLimit-Limit"] = str(details["limit"])
            response["X-RateLimit-Remaining"] = "0"
        if "reset" in details:
            response["X-RateLimit-Reset"] = details["reset"]

    if exc.http_status >= 500:
        logger.error(f"Application error: {exc!r}")
    else:
        logger.info(f"Application error {exc.http_status}: {exc.error_code}")

    return response
