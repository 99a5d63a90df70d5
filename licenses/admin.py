"""
Django admin configuration for licenses app.
"""
from django.contrib import admin
from django.utils.html import format_html

from licenses.infrastructure.models import LicenseKey

STATE_COLORS = {
    "available": "blue",
    "active": "green",
    "expired": "gray",
}


@admin.register(LicenseKey)
class LicenseKeyAdmin(admin.ModelAdmin):
    """
    Admin interface for LicenseKey model.

    Keys are minted through the admin API or the ``mint_keys`` command;
    here they can only be inspected, unbound or deleted.
    """

    list_display = [
        "key",
        "duration",
        "state_display",
        "owner",
        "purchased_by",
        "claimed_at",
        "expires_at",
        "hardware_id",
        "created_at",
    ]
    list_filter = ["duration", "can_be_used_for_registration", "claimed_at", "created_at"]
    search_fields = ["key", "lookup_key", "owner__email", "purchased_by__email", "hardware_id"]
    readonly_fields = [
        "id",
        "key",
        "lookup_key",
        "duration",
        "owner",
        "purchased_by",
        "claimed_at",
        "expires_at",
        "created_at",
        "updated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "key", "lookup_key", "duration", "can_be_used_for_registration"),
            },
        ),
        (
            "Ownership",
            {
                "fields": ("owner", "purchased_by", "claimed_at", "expires_at"),
            },
        ),
        (
            "Hardware Binding",
            {
                "fields": ("hardware_id",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )
    actions = ["reset_hardware_id"]

    def state_display(self, obj):
        """Display state with color coding."""
        state = obj.state
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            STATE_COLORS.get(state, "black"),
            state.upper(),
        )

    state_display.short_description = "State"

    @admin.action(description="Reset hardware binding")
    def reset_hardware_id(self, request, queryset):
        updated = queryset.exclude(hardware_id__isnull=True).update(hardware_id=None)
        self.message_user(request, f"Hardware binding cleared on {updated} key(s)")

    def has_add_permission(self, request):
        return False

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("owner", "purchased_by")
