"""
Django admin configuration for workspace models.

Provides admin interfaces for:
- Workspace management (including soft-deleted workspaces)
- Member viewing
- Invitation tracking
"""

from django.contrib import admin

from workspaces.models import Invitation, Workspace, WorkspaceMember


class WorkspaceMemberInline(admin.TabularInline):
    """Inline display of members in workspace admin."""

    model = WorkspaceMember
    extra = 0
    readonly_fields = ["joined_at", "last_active_at"]
    raw_id_fields = ["user"]


@admin.register(Workspace)
class WorkspaceAdmin(admin.ModelAdmin):
    """Admin interface for Workspace model."""

    list_display = [
        "name",
        "slug",
        "is_archived",
        "is_deleted",
        "created_by",
        "created_at",
    ]
    list_filter = ["is_archived", "is_deleted", "created_at"]
    search_fields = ["name", "slug", "id"]
    readonly_fields = ["id", "created_at", "updated_at", "archived_at", "deleted_at"]
    raw_id_fields = ["created_by"]
    inlines = [WorkspaceMemberInline]
    ordering = ["-created_at"]

    def get_queryset(self, request):
        """Show soft-deleted workspaces too."""
        return Workspace.all_objects.all()


@admin.register(WorkspaceMember)
class WorkspaceMemberAdmin(admin.ModelAdmin):
    """Admin interface for WorkspaceMember model."""

    list_display = ["user", "workspace", "role", "joined_at", "last_active_at"]
    list_filter = ["role"]
    search_fields = ["user__email", "workspace__name", "workspace__slug"]
    raw_id_fields = ["user", "workspace"]


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):
    """Admin interface for Invitation model."""

    list_display = ["email", "workspace", "role", "status", "invited_by", "expires_at"]
    list_filter = ["role", "created_at"]
    search_fields = ["email", "workspace__name"]
    readonly_fields = ["token", "accepted_at", "accepted_by", "canceled_at", "created_at"]
    raw_id_fields = ["workspace", "invited_by", "accepted_by"]
