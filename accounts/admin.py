"""
Django admin configuration for accounts app.
"""

from django.contrib import admin
from django.utils.html import format_html

from accounts.infrastructure.models import AdminApiKey, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin interface for User model."""

    list_display = ["email", "banned_display", "key_count", "is_staff", "created_at"]
    list_filter = ["banned", "is_staff", "created_at"]
    search_fields = ["email"]
    readonly_fields = ["id", "created_at", "last_login"]
    exclude = ["password"]
    actions = ["ban_users", "unban_users"]

    def banned_display(self, obj):
        """Display ban state with color."""
        if obj.banned:
            return format_html('<span style="color: red; font-weight: bold;">BANNED</span>')
        return format_html('<span style="color: green;">active</span>')

    banned_display.short_description = "Status"

    def key_count(self, obj):
        """Display number of keys claimed onto this account."""
        return obj.license_keys.count()

    key_count.short_description = "Keys"

    @admin.action(description="Ban selected users")
    def ban_users(self, request, queryset):
        updated = queryset.update(banned=True)
        self.message_user(request, f"{updated} user(s) banned")

    @admin.action(description="Unban selected users")
    def unban_users(self, request, queryset):
        updated = queryset.update(banned=False)
        self.message_user(request, f"{updated} user(s) unbanned")

    def has_delete_permission(self, request, obj=None):
        """Users are banned, never deleted."""
        return False

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).prefetch_related("license_keys")


@admin.register(AdminApiKey)
class AdminApiKeyAdmin(admin.ModelAdmin):
    """Admin interface for AdminApiKey model."""

    list_display = [
        "name",
        "key_prefix_display",
        "is_valid_display",
        "expires_at",
        "last_used_at",
        "created_at",
    ]
    list_filter = ["is_active", "expires_at", "created_at"]
    search_fields = ["name", "key_prefix"]
    readonly_fields = ["id", "key_prefix", "key_hash", "created_at", "last_used_at", "is_valid_display"]
    fieldsets = (
        ("Basic Information", {"fields": ("id", "name", "is_active")}),
        (
            "Key Information",
            {
                "fields": ("key_prefix", "key_hash"),
                "description": "The raw key is only shown once when created.",
            },
        ),
        ("Validity", {"fields": ("expires_at", "is_valid_display")}),
        ("Timestamps", {"fields": ("created_at", "last_used_at"), "classes": ("collapse",)}),
    )

    def key_prefix_display(self, obj):
        """Display key prefix with ellipsis."""
        return f"{obj.key_prefix}..."

    key_prefix_display.short_description = "Key Prefix"

    def is_valid_display(self, obj):
        """Display validity status with color."""
        if obj.pk and obj.is_valid():
            return format_html('<span style="color: green;">✓ Valid</span>')
        return format_html('<span style="color: red;">✗ Invalid</span>')

    is_valid_display.short_description = "Status"

    def save_model(self, request, obj, form, change):
        """Save model and show raw key if new."""
        super().save_model(request, obj, form, change)
        if not change and hasattr(obj, "_raw_key"):
            self.message_user(
                request,
                f"API Key created! Raw key: {obj._raw_key} "
                "(Save this - it won't be shown again)",
                level="WARNING",
            )
