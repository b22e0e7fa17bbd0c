"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, business rules)
    - Exceptions: Use for unexpected failures (database errors, bugs) and for
      cross-cutting failures raised outside services (rate limiting)

Usage:
    from core.services import BaseService, ServiceResult

    class WorkspaceService(BaseService):
        @classmethod
        def create_workspace(cls, user, name: str) -> ServiceResult[Workspace]:
            if not name:
                return ServiceResult.failure(
                    "Name is required",
                    error_code="VALIDATION_ERROR",
                )

            with cls.atomic():
                workspace = Workspace.objects.create(name=name, ...)
                WorkspaceMember.objects.create(workspace=workspace, user=user, ...)

            cls.get_logger().info(f"Created workspace {workspace.id}")
            return ServiceResult.success(workspace)

    # In view (see core.viewset_mixins.ServiceResultMixin)
    result = WorkspaceService.create_workspace(request.user, name)
    if not result:
        return self.failure_response(result)
    return Response(WorkspaceSerializer(result.data).data, status=201)

Related:
    - core.exceptions: For unexpected/exceptional errors
    - core.decorators: For cross-cutting concerns (rate limiting, logging)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (validation errors, business rule violations).

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
        status_code: HTTP status a view should use for this failure

    Usage:
        # Success case
        return ServiceResult.success(workspace)

        # Failure case
        return ServiceResult.failure("Slug already taken", "SLUG_TAKEN", status_code=409)

        # Check result
        result = WorkspaceService.create_workspace(user, name)
        if result.success:
            workspace = result.data
        else:
            print(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, Any] | None = field(default=None)
    status_code: int = 400

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Alias for success() - use whichever reads better in context.
        """
        return cls.success(data)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data, status_code=200)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, Any] | None = None,
        status_code: int = 400,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
            status_code: HTTP status for the failure (400 unless stated)

        Returns:
            ServiceResult with success=False and error details

        Example:
            return ServiceResult.failure(
                "Workspace not found",
                error_code="WORKSPACE_NOT_FOUND",
                status_code=404,
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
            status_code=status_code,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their message, code, details and HTTP status.
        Anything else becomes a 400 named after the exception class.

        Example:
            try:
                validate_workspace_slug_security(slug)
            except ValidationError as e:
                return ServiceResult.from_exception(e)
        """
        if isinstance(exc, BaseApplicationError):
            return cls(
                success=False,
                error=exc.message,
                error_code=error_code or exc.error_code,
                errors=exc.details or None,
                status_code=exc.http_status,
            )
        return cls(
            success=False,
            error=str(exc),
            error_code=error_code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Returns:
            Dict with data on success, or error/error_code/errors on failure
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {"error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def map(self, func) -> ServiceResult:
        """
        Transform the data if successful.

        Example:
            result = WorkspaceService.get_workspace(user, workspace_id)
            serialized = result.map(lambda w: WorkspaceSerializer(w).data)
        """
        if self.success and self.data is not None:
            return ServiceResult.success(func(self.data))
        return self  # type: ignore

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management
    - Exception handling patterns

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services should be stateless
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Example:
            with cls.atomic():
                new_owner.role = WorkspaceRole.OWNER
                new_owner.save()
                old_owner.role = WorkspaceRole.ADMIN
                old_owner.save()
                # If the second save fails, the first is rolled back

        Note:
            This is a thin wrapper around Django's transaction.atomic().
            Use it to make transaction boundaries explicit in service code.
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Convert exception to ServiceResult with logging.

        Args:
            exc: The caught exception
            context: Additional context for logging
            log_level: Logging level (default ERROR)

        Returns:
            ServiceResult with error details
        """
        message = f"{context}: {exc}" if context else str(exc)
        cls.get_logger().log(
            log_level,
            message,
            exc_info=not isinstance(exc, BaseApplicationError),
        )
        return ServiceResult.from_exception(exc)

    @classmethod
    def validate_required(cls, **kwargs) -> ServiceResult | None:
        """
        Validate that required fields are provided.

        Returns a failure result if any required field is None or empty.
        Returns None if all fields are valid.
        Compare against None: a failure result is falsy.

        Example:
            validation = cls.validate_required(email=email, role=role)
            if validation is not None:
                return validation
        """
        errors = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]

        if errors:
            return ServiceResult.failure(
                "Required fields missing",
                error_code="VALIDATION_ERROR",
                errors=errors,
            )
        return None
