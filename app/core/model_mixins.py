"""
Model mixins providing reusable functionality for Django models.

Abstract mixin classes combined with BaseModel to add specific behaviour.
They carry no domain logic; workspaces, users and analytics records pick
the ones they need.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)
    MetadataMixin: Flexible JSON metadata storage

Usage:
    from core.models import BaseModel
    from core.model_mixins import SoftDeleteMixin, UUIDPrimaryKeyMixin

    class Workspace(UUIDPrimaryKeyMixin, SoftDeleteMixin, BaseModel):
        name = models.CharField(max_length=50)

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
    - SoftDeleteMixin requires SoftDeleteManager (see core.managers)
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import models
from django.utils import timezone

if TYPE_CHECKING:
    from typing import Any


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Workspace IDs appear in URLs and invitation emails, so they should not
    reveal record counts or be guessable.

    Fields:
        id: UUIDField as primary key (auto-generated)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class SoftDeleteMixin(models.Model):
    """
    Soft delete support for models.

    Instead of permanently deleting records, marks them as deleted.
    Deleted records can be restored and are preserved for auditing.

    Fields:
        is_deleted: Boolean flag indicating soft delete status
        deleted_at: Timestamp when the record was soft deleted

    Usage:
        from core.managers import SoftDeleteManager

        class Workspace(SoftDeleteMixin, BaseModel):
            objects = SoftDeleteManager()  # Excludes deleted by default
            all_objects = models.Manager()  # For admin and slug checks

        workspace.soft_delete()
        workspace.restore()

        Workspace.objects.deleted()  # Only deleted
        Workspace.all_objects.all()  # All including deleted
    """

    is_deleted = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this record has been soft deleted",
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp when this record was soft deleted",
    )

    class Meta:
        abstract = True

    def soft_delete(self) -> None:
        """
        Mark this record as deleted.

        Sets is_deleted=True and deleted_at to current time.
        Does not actually remove the record from database. A record that
        is already deleted keeps its original deleted_at.
        """
        if self.is_deleted:
            return
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=["is_deleted", "deleted_at", "updated_at"])

    def restore(self) -> None:
        """Restore a soft-deleted record. No-op for live records."""
        if not self.is_deleted:
            return
        self.is_deleted = False
        self.deleted_at = None
        self.save(update_fields=["is_deleted", "deleted_at", "updated_at"])

    def hard_delete(self) -> None:
        """
        Permanently delete this record.

        Warning:
            This cannot be undone. Consider soft_delete() instead.
        """
        super().delete()


class MetadataMixin(models.Model):
    """
    Flexible JSON metadata storage.

    Provides a JSONField for storing arbitrary key-value data, such as the
    OAuth provider a user signed up with or onboarding flags.

    Fields:
        metadata: JSONField for arbitrary key-value data

    Usage:
        user.set_meta("signup_provider", "github")
        user.get_meta("signup_provider")  # "github"
        user.delete_meta("signup_provider")
    """

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Flexible key-value metadata storage",
    )

    class Meta:
        abstract = True

    def get_meta(self, key: str, default: Any = None) -> Any:
        """Get metadata value by key, or default when missing."""
        return self.metadata.get(key, default)

    def set_meta(self, key: str, value: Any, save: bool = True) -> None:
        """
        Set metadata value and optionally save.

        Args:
            key: Metadata key
            value: Value to store (must be JSON-serializable)
            save: Whether to save the model (default True)
        """
        self.metadata[key] = value
        if save:
            self.save(update_fields=["metadata", "updated_at"])

    def delete_meta(self, key: str, save: bool = True) -> None:
        """Remove metadata key if present."""
        if key in self.metadata:
            del self.metadata[key]
            if save:
                self.save(update_fields=["metadata", "updated_at"])

    def has_meta(self, key: str) -> bool:
        return key in self.metadata
