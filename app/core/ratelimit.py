"""
Named rate-limit policies backed by the Django cache.

Every sensitive endpoint is protected by one of a small set of policies.
Each policy picks an algorithm, a limit and a window; state is kept in the
default cache (Redis in production, LocMemCache in tests).

Policies:
    api              - sliding window, 100 requests / 1 minute
    auth             - sliding window, 5 requests / 15 minutes
    password_reset   - fixed window, 3 requests / 1 hour
    account_deletion - fixed window, 1 request / 24 hours
    heavy            - token bucket, 5 tokens refilled per hour, burst 10
    auth_callback    - sliding window, 10 requests / 5 minutes

Algorithms:
    fixed window   - one counter per window; allowed while count <= limit
    sliding window - weighted previous window plus current window counter
    token bucket   - bucket of `burst` tokens, refilled `limit` per window
                     (not atomic under concurrent requests, see _token_bucket)

Identifiers:
    Limits are tracked per identifier, written "<type>:<value>" where type
    is ip, user_id or email. IPs come from core.helpers.get_client_ip.

Usage:
    from core.ratelimit import check_rate_limit, get_rate_limit_identifier

    identifier = get_rate_limit_identifier(request, "ip")
    result = check_rate_limit("auth", identifier)
    if not result.success:
        ...

    # Or let it raise RateLimitError (handled by the API exception handler)
    result = enforce_rate_limit("auth", identifier)

    # Most views use the decorator instead, see core.decorators.rate_limit

Related files:
    - core/decorators.py: rate_limit view decorator
    - core/exception_handler.py: turns RateLimitError into a 429 response
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.cache import cache

from core.exceptions import AuthenticationError, RateLimitError
from core.helpers import get_client_ip

if TYPE_CHECKING:
    from rest_framework.request import Request

    from core.protocols import CacheBackend

logger = logging.getLogger(__name__)

CACHE_PREFIX = "ratelimit"

FIXED_WINDOW = "fixed_window"
SLIDING_WINDOW = "sliding_window"
TOKEN_BUCKET = "token_bucket"

IDENTIFIER_TYPES = ("ip", "user_id", "email")


# =============================================================================
# Policies
# =============================================================================


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    A named limit.

    Attributes:
        name: Policy name used in cache keys and logs
        algorithm: FIXED_WINDOW, SLIDING_WINDOW or TOKEN_BUCKET
        limit: Requests per window (tokens refilled per window for buckets)
        window: Window length in seconds
        burst: Bucket capacity (token bucket only)
    """

    name: str
    algorithm: str
    limit: int
    window: int
    burst: int | None = None


RATE_LIMIT_POLICIES: dict[str, RateLimitPolicy] = {
    "api": RateLimitPolicy("api", SLIDING_WINDOW, 100, 60),
    "auth": RateLimitPolicy("auth", SLIDING_WINDOW, 5, 15 * 60),
    "password_reset": RateLimitPolicy("password_reset", FIXED_WINDOW, 3, 60 * 60),
    "account_deletion": RateLimitPolicy(
        "account_deletion", FIXED_WINDOW, 1, 24 * 60 * 60
    ),
    "heavy": RateLimitPolicy("heavy", TOKEN_BUCKET, 5, 60 * 60, burst=10),
    "auth_callback": RateLimitPolicy("auth_callback", SLIDING_WINDOW, 10, 5 * 60),
}


def get_policy(name: str) -> RateLimitPolicy:
    """Look up a policy by name. Unknown names are a programming error."""
    try:
        return RATE_LIMIT_POLICIES[name]
    except KeyError:
        raise ValueError(f"Unknown rate limit policy: {name}") from None


# =============================================================================
# Identifiers
# =============================================================================


@dataclass(frozen=True)
class RateLimitIdentifier:
    """Who a limit applies to: an IP address, a user ID or an email."""

    type: str
    value: str

    def __post_init__(self):
        if self.type not in IDENTIFIER_TYPES:
            raise ValueError(f"Invalid identifier type: {self.type}")

    def __str__(self) -> str:
        return f"{self.type}:{self.value}"


def get_rate_limit_identifier(request: Request, kind: str = "ip") -> RateLimitIdentifier:
    """
    Build the identifier for a request.

    Args:
        request: DRF request
        kind: "ip", "user_id" or "email"

    Returns:
        RateLimitIdentifier

    Raises:
        AuthenticationError: kind is "user_id" and the request is anonymous
    """
    if kind == "user_id":
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            raise AuthenticationError(
                "Authentication required", error_code="AUTHENTICATION_REQUIRED"
            )
        return RateLimitIdentifier("user_id", str(user.pk))

    if kind == "email":
        data = getattr(request, "data", None) or {}
        email = data.get("email") if hasattr(data, "get") else None
        if isinstance(email, str) and email.strip():
            return RateLimitIdentifier("email", email.strip().lower())
        # No email in the body: fall back to the caller's IP
        return RateLimitIdentifier("ip", get_client_ip(request))

    return RateLimitIdentifier("ip", get_client_ip(request))


# =============================================================================
# Results
# =============================================================================


@dataclass
class RateLimitResult:
    """
    Outcome of a rate-limit check.

    Attributes:
        success: Whether the request is allowed
        limit: Policy limit (bucket capacity for token buckets)
        remaining: Requests left in the current window
        reset: Epoch seconds when capacity returns
    """

    success: bool
    limit: int
    remaining: int
    reset: float

    @property
    def retry_after(self) -> int:
        """Whole seconds until reset, never less than 1."""
        return max(1, math.ceil(self.reset - time.time()))

    @property
    def reset_iso(self) -> str:
        return (
            datetime.fromtimestamp(self.reset, tz=dt_timezone.utc)
            .isoformat()
            .replace("+00:00", "Z")
        )


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Response headers describing the caller's remaining budget."""
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": result.reset_iso,
    }


# =============================================================================
# Algorithms
# =============================================================================


def _increment(backend: CacheBackend, key: str, timeout: int) -> int:
    """Create-or-increment a counter, returning the new value."""
    backend.add(key, 0, timeout=timeout)
    try:
        count = backend.incr(key)
    except ValueError:
        # Key evicted between add() and incr(); start a fresh counter
        backend.set(key, 1, timeout=timeout)
        return 1
    # django-redis returns None with IGNORE_EXCEPTIONS when Redis is down;
    # the limiter then fails open
    return count or 0


def _decrement(backend: CacheBackend, key: str) -> None:
    try:
        backend.decr(key)
    except ValueError:
        # Counter expired in the meantime; nothing to give back
        return


def _fixed_window(
    backend: CacheBackend, policy: RateLimitPolicy, identifier: str, now: float
) -> RateLimitResult:
    window_start = int(now // policy.window) * policy.window
    key = f"{CACHE_PREFIX}:{policy.name}:{identifier}:{window_start}"
    count = _increment(backend, key, policy.window)
    return RateLimitResult(
        success=count <= policy.limit,
        limit=policy.limit,
        remaining=max(0, policy.limit - count),
        reset=window_start + policy.window,
    )


def _sliding_window(
    backend: CacheBackend, policy: RateLimitPolicy, identifier: str, now: float
) -> RateLimitResult:
    current_window = int(now // policy.window)
    current_key = f"{CACHE_PREFIX}:{policy.name}:{identifier}:{current_window}"
    previous_key = f"{CACHE_PREFIX}:{policy.name}:{identifier}:{current_window - 1}"
    reset = (current_window + 1) * policy.window

    elapsed = (now % policy.window) / policy.window
    previous = backend.get(previous_key, 0) or 0
    # Reserve a slot before checking so concurrent requests never share one
    current = _increment(backend, current_key, policy.window * 2)
    weighted = math.floor(previous * (1 - elapsed)) + current

    if weighted > policy.limit:
        # Rejected requests do not count against the next window
        _decrement(backend, current_key)
        return RateLimitResult(
            success=False, limit=policy.limit, remaining=0, reset=reset
        )

    return RateLimitResult(
        success=True,
        limit=policy.limit,
        remaining=max(0, policy.limit - weighted),
        reset=reset,
    )


def _token_bucket(
    backend: CacheBackend, policy: RateLimitPolicy, identifier: str, now: float
) -> RateLimitResult:
    """
    Spend one token from the identifier's bucket.

    The bucket state is read, updated and written back without a lock, so
    concurrent requests for the same identifier can spend the same token.
    """
    capacity = policy.burst or policy.limit
    key = f"{CACHE_PREFIX}:{policy.name}:{identifier}"
    state = backend.get(key) or {"tokens": capacity, "refilled_at": now}

    # Tokens come back in whole intervals of window / limit seconds
    interval = policy.window / policy.limit
    intervals = int((now - state["refilled_at"]) // interval)
    tokens = state["tokens"]
    refilled_at = state["refilled_at"]
    if intervals > 0:
        tokens = min(capacity, tokens + intervals)
        refilled_at = refilled_at + intervals * interval
    if tokens >= capacity:
        refilled_at = now

    reset = refilled_at + interval
    if tokens < 1:
        backend.set(
            key, {"tokens": tokens, "refilled_at": refilled_at}, timeout=policy.window * 2
        )
        return RateLimitResult(success=False, limit=capacity, remaining=0, reset=reset)

    tokens -= 1
    backend.set(
        key, {"tokens": tokens, "refilled_at": refilled_at}, timeout=policy.window * 2
    )
    return RateLimitResult(
        success=True, limit=capacity, remaining=int(tokens), reset=reset
    )


_ALGORITHMS = {
    FIXED_WINDOW: _fixed_window,
    SLIDING_WINDOW: _sliding_window,
    TOKEN_BUCKET: _token_bucket,
}


# =============================================================================
# Public API
# =============================================================================


def check_rate_limit(
    policy_name: str,
    identifier: RateLimitIdentifier | str,
    backend: CacheBackend | None = None,
) -> RateLimitResult:
    """
    Consume one request from a policy's budget.

    Args:
        policy_name: Key of RATE_LIMIT_POLICIES
        identifier: RateLimitIdentifier or its "<type>:<value>" string
        backend: Cache to use (defaults to the Django default cache)

    Returns:
        RateLimitResult; success is False when the caller is over the limit
    """
    policy = get_policy(policy_name)
    algorithm = _ALGORITHMS[policy.algorithm]
    return algorithm(backend or cache, policy, str(identifier), time.time())


def enforce_rate_limit(
    policy_name: str,
    identifier: RateLimitIdentifier | str,
    backend: CacheBackend | None = None,
) -> RateLimitResult | None:
    """
    Consume one request or raise RateLimitError.

    Returns None without touching the cache when RATE_LIMIT_ENABLED is off.

    Raises:
        RateLimitError: With retry_after, limit and reset in details
    """
    if not getattr(settings, "RATE_LIMIT_ENABLED", True):
        return None

    result = check_rate_limit(policy_name, identifier, backend=backend)
    if result.success:
        return result

    retry_after = result.retry_after
    logger.warning(
        f"Rate limit exceeded: policy={policy_name} identifier={identifier} "
        f"retry_after={retry_after}s"
    )
    raise RateLimitError(
        f"Rate limit exceeded. Try again in {retry_after} seconds.",
        details={
            "retry_after": retry_after,
            "limit": result.limit,
            "remaining": 0,
            "reset": result.reset_iso,
            "policy": policy_name,
        },
    )


def reset_rate_limit(policy_name: str, identifier: RateLimitIdentifier | str) -> None:
    """
    Forget the current state for an identifier.

    Clears the token bucket and the current/previous window counters.
    """
    policy = get_policy(policy_name)
    ident = str(identifier)
    now = time.time()
    window = int(now // policy.window)
    keys = [
        f"{CACHE_PREFIX}:{policy.name}:{ident}",
        f"{CACHE_PREFIX}:{policy.name}:{ident}:{window}",
        f"{CACHE_PREFIX}:{policy.name}:{ident}:{window - 1}",
        f"{CACHE_PREFIX}:{policy.name}:{ident}:{window * policy.window}",
    ]
    for key in keys:
        cache.delete(key)
