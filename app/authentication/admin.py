"""
Django admin configuration for authentication models.

Registers User, Profile, LinkedAccount, EmailVerificationToken and
LoginAttempt with the Django admin site.

Related files:
    - models.py: Model definitions
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import (
    EmailVerificationToken,
    LinkedAccount,
    LoginAttempt,
    Profile,
    User,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin configuration for User model, customized for email login."""

    list_display = (
        "email",
        "full_name",
        "active_workspace",
        "email_verified",
        "is_active",
        "is_staff",
        "date_joined",
    )
    list_filter = (
        "is_active",
        "is_staff",
        "is_superuser",
        "email_verified",
        "date_joined",
    )
    search_fields = ("email", "full_name")
    ordering = ("-date_joined",)
    raw_id_fields = ("active_workspace",)

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            "Identity",
            {"fields": ("full_name", "avatar_url", "phone", "locale", "timezone")},
        ),
        (
            "Workspace",
            {"fields": ("active_workspace", "last_active_at")},
        ),
        (
            "Status",
            {"fields": ("email_verified", "is_active", "is_staff", "is_superuser")},
        ),
        (
            "Permissions",
            {"fields": ("groups", "user_permissions")},
        ),
        (
            "Important dates",
            {"fields": ("date_joined", "last_login")},
        ),
        (
            "Metadata",
            {"fields": ("metadata",)},
        ),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "full_name", "password1", "password2"),
            },
        ),
    )

    readonly_fields = ("date_joined", "last_login", "last_active_at")


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    """Admin configuration for Profile model."""

    list_display = ("user", "company", "job_title", "created_at")
    search_fields = ("user__email", "company", "job_title")
    ordering = ("-created_at",)

    raw_id_fields = ("user",)
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        ("User", {"fields": ("user",)}),
        ("About", {"fields": ("bio", "website", "company", "job_title")}),
        ("Preferences", {"fields": ("preferences",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(LinkedAccount)
class LinkedAccountAdmin(admin.ModelAdmin):
    """Admin configuration for LinkedAccount model."""

    list_display = ("user", "provider", "provider_user_id", "created_at")
    list_filter = ("provider", "created_at")
    search_fields = ("user__email", "provider_user_id")
    ordering = ("-created_at",)

    raw_id_fields = ("user",)
    readonly_fields = ("created_at", "updated_at")


@admin.register(EmailVerificationToken)
class EmailVerificationTokenAdmin(admin.ModelAdmin):
    """Admin configuration for EmailVerificationToken model."""

    list_display = (
        "user",
        "token_type",
        "new_email",
        "is_valid_display",
        "created_at",
        "expires_at",
        "used_at",
    )
    list_filter = ("token_type", "created_at", "expires_at")
    search_fields = ("user__email", "new_email")
    ordering = ("-created_at",)

    raw_id_fields = ("user",)
    readonly_fields = ("token", "created_at")

    @admin.display(boolean=True, description="Valid")
    def is_valid_display(self, obj):
        return obj.is_valid


@admin.register(LoginAttempt)
class LoginAttemptAdmin(admin.ModelAdmin):
    """Read-only view of sign-in attempts."""

    list_display = ("email", "ip_address", "success", "created_at")
    list_filter = ("success", "created_at")
    search_fields = ("email", "ip_address")
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
