"""
Django admin configuration for activations app.
"""

from asgiref.sync import async_to_sync
from django.contrib import admin, messages
from django.utils.html import format_html

from activations.infrastructure.models import Activation
from core.domain.exceptions import DomainException
from licenses.infrastructure.container import build_lifecycle_manager


@admin.action(description="Deactivate selected machines")
def deactivate_machines(modeladmin, request, queryset):
    """Release the slots held by the selected activations."""
    manager = build_lifecycle_manager()
    actor = f"admin:{request.user.get_username()}"
    done = 0
    for activation in queryset.filter(active=True).select_related("license"):
        try:
            async_to_sync(manager.deactivate)(
                activation.license.license_key, activation.machine_fingerprint, actor=actor
            )
            done += 1
        except DomainException as e:
            modeladmin.message_user(
                request, f"{activation.machine_fingerprint}: {e.message}", level=messages.WARNING
            )
    if done:
        modeladmin.message_user(request, f"Deactivated {done} machine(s).", level=messages.SUCCESS)


@admin.register(Activation)
class ActivationAdmin(admin.ModelAdmin):
    """Admin interface for Activation model."""

    list_display = [
        "license",
        "fingerprint_display",
        "machine_name",
        "active_display",
        "activated_at",
        "last_seen_at",
    ]
    list_filter = ["active", "activated_at", "last_seen_at"]
    search_fields = [
        "machine_fingerprint",
        "machine_name",
        "license__license_key",
        "license__customer_email",
    ]
    readonly_fields = [
        "id",
        "license",
        "machine_fingerprint",
        "machine_name",
        "os_info",
        "ip_address",
        "user_agent",
        "system_info",
        "active",
        "activated_at",
        "last_seen_at",
        "deactivated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "license", "active"),
            },
        ),
        (
            "Machine Information",
            {
                "fields": (
                    "machine_fingerprint",
                    "machine_name",
                    "os_info",
                    "ip_address",
                    "user_agent",
                    "system_info",
                ),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("activated_at", "last_seen_at", "deactivated_at"),
                "classes": ("collapse",),
            },
        ),
    )
    actions = [deactivate_machines]

    @admin.display(description="Machine")
    def fingerprint_display(self, obj):
        """Display machine fingerprint with truncation."""
        if len(obj.machine_fingerprint) > 50:
            return format_html(
                '<span title="{}">{}</span>',
                obj.machine_fingerprint,
                obj.machine_fingerprint[:47] + "...",
            )
        return obj.machine_fingerprint

    @admin.display(description="Status")
    def active_display(self, obj):
        """Display active status with color."""
        if obj.active:
            return format_html('<span style="color: green; font-weight: bold;">Active</span>')
        return format_html('<span style="color: red; font-weight: bold;">Inactive</span>')

    def has_add_permission(self, request):
        """Machines activate through the lifecycle manager."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Activation history is kept."""
        return False

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("license__product")
