"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks shared by the authentication, workspaces
and analytics apps. No business logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)
    - MetadataMixin: Flexible JSON metadata storage

Managers (import from core.managers):
    - SoftDeleteManager: Filter deleted records by default
    - SoftDeleteQuerySet: QuerySet with soft delete operations

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes and HTTP status
    - ValidationError, AuthenticationError, PermissionDeniedError,
      NotFoundError, ConflictError, RateLimitError, ExternalServiceError

Rate limiting (import from core.ratelimit):
    - RATE_LIMIT_POLICIES: Named policies (api, auth, password_reset, ...)
    - check_rate_limit / enforce_rate_limit: Consume from a policy budget
    - get_rate_limit_identifier: ip / user_id / email identifiers

Decorators (import from core.decorators):
    - rate_limit: Apply a named policy to a view
    - log_request: Request/response logging decorator

Helpers (import from core.helpers):
    - generate_token, get_client_ip

Note:
    Django models, mixins, managers and anything touching settings are NOT
    imported here to avoid AppRegistryNotReady errors. Import them directly
    from their modules.
"""

# Exceptions (no Django dependencies)
from .exceptions import (
    AuthenticationError,
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ValidationError,
)

# Protocols (no Django dependencies)
from .protocols import CacheBackend

# Helpers (no Django model dependencies)
from .helpers import (
    generate_token,
    get_client_ip,
)

__all__ = [
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "RateLimitError",
    "ExternalServiceError",
    # Protocols
    "CacheBackend",
    # Helpers
    "generate_token",
    "get_client_ip",
]
