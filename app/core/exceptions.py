"""
Base exception classes for application-wide error handling.

Services raise these for expected business-rule failures; the DRF exception
handler in core.exception_handler turns them into JSON responses, so views
never build error bodies for them by hand.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures (400)
    ├── AuthenticationError - Caller must sign in first (401)
    ├── PermissionDeniedError - Authorization failures (403)
    ├── NotFoundError - Resource not found (404)
    ├── ConflictError - Duplicates and state conflicts (409)
    ├── RateLimitError - Rate limit exceeded (429)
    └── ExternalServiceError - Third-party service failures (502)

Usage:
    from core.exceptions import ConflictError, NotFoundError

    # Raise with message only
    raise NotFoundError("Workspace not found")

    # Raise with error code for client handling
    raise ConflictError("Slug already taken", error_code="SLUG_TAKEN")

    # Raise with additional details
    raise RateLimitError(
        "Rate limit exceeded. Try again in 30 seconds.",
        details={"retry_after": 30},
    )

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        http_status: Status code used by the API exception handler

    Example:
        try:
            workspace = WorkspaceService.get_for_user(user, workspace_id)
        except NotFoundError as e:
            logger.warning(f"Workspace lookup failed: {e.error_code}")
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Workspace not found",
                "error_code": "WORKSPACE_NOT_FOUND",
                "details": {"workspace_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Invalid field formats (slug, email, date range)
    - Business rule violations (wrong confirmation phrase, weak password)

    Example:
        raise ValidationError(
            "Invalid slug",
            error_code="INVALID_SLUG",
            details={"slug": ["This slug is reserved"]},
        )

    Note:
        For DRF serializer validation, use DRF's built-in validation.
        Use this for service-layer validation logic.
    """

    default_error_code: str = "VALIDATION_ERROR"


class AuthenticationError(BaseApplicationError):
    """
    Raised when an operation needs a signed-in user and there is none.

    Example:
        raise AuthenticationError(
            "Please log in to accept this invitation",
            error_code="LOGIN_REQUIRED",
        )
    """

    default_error_code: str = "AUTHENTICATION_REQUIRED"
    http_status: int = 401


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when user lacks permission for an operation.

    Use for:
    - Role-based access control violations (member acting as admin)
    - Acting on a workspace the user does not belong to

    Example:
        if membership.role != WorkspaceRole.OWNER:
            raise PermissionDeniedError(
                "Only the workspace owner can do this",
                error_code="OWNER_REQUIRED",
            )

    Note:
        For authentication failures (missing/invalid token), use DRF's
        AuthenticationFailed. Use this for authorization failures.
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = 403


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        workspace = Workspace.objects.filter(id=workspace_id).first()
        if not workspace:
            raise NotFoundError(
                "Workspace not found",
                error_code="WORKSPACE_NOT_FOUND",
                details={"workspace_id": str(workspace_id)},
            )
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    Use for:
    - Duplicate entries (slug taken, already a member)
    - Invalid state transitions (owner leaving their own workspace)

    Example:
        if Workspace.all_objects.filter(slug=slug).exists():
            raise ConflictError("Slug already taken", error_code="SLUG_TAKEN")

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409


class RateLimitError(BaseApplicationError):
    """
    Raised when rate limit is exceeded.

    Example:
        raise RateLimitError(
            "Rate limit exceeded. Try again in 42 seconds.",
            details={"retry_after": 42, "limit": 5, "policy": "auth"},
        )

    Note:
        Include retry_after in details; the exception handler turns it into
        a Retry-After header.
    """

    default_error_code: str = "RATE_LIMIT_EXCEEDED"
    http_status: int = 429


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - OAuth provider misconfiguration or outages
    - SMTP failures surfaced synchronously

    Note:
        Log the original error for debugging but don't expose
        internal details to clients in production.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502
