"""
Django admin configuration for licenses app.

State changes go through the lifecycle manager so the admin site obeys
the same transition rules and emits the same audit events as every
other caller.
"""
import json

from asgiref.sync import async_to_sync
from django.contrib import admin, messages
from django.utils import timezone
from django.utils.html import format_html

from core.domain.exceptions import DomainException
from licenses.infrastructure.container import build_lifecycle_manager
from licenses.infrastructure.models import AuditLog, License


def _run_for_each(modeladmin, request, queryset, operation, verb, **kwargs):
    """Apply a manager operation to every selected license and report the outcome."""
    manager = build_lifecycle_manager()
    actor = f"admin:{request.user.get_username()}"
    done = 0
    for license in queryset:
        try:
            async_to_sync(getattr(manager, operation))(
                license.license_key, actor=actor, **kwargs
            )
            done += 1
        except DomainException as e:
            modeladmin.message_user(
                request, f"{license.license_key}: {e.message}", level=messages.WARNING
            )
    if done:
        modeladmin.message_user(request, f"{verb} {done} license(s).", level=messages.SUCCESS)


@admin.action(description="Suspend selected licenses")
def suspend_licenses(modeladmin, request, queryset):
    _run_for_each(modeladmin, request, queryset, "suspend", "Suspended")


@admin.action(description="Reinstate selected licenses")
def reinstate_licenses(modeladmin, request, queryset):
    _run_for_each(modeladmin, request, queryset, "reinstate", "Reinstated")


@admin.action(description="Reset activations of selected licenses")
def reset_license_activations(modeladmin, request, queryset):
    _run_for_each(modeladmin, request, queryset, "reset_activations", "Reset")


@admin.action(description="Revoke selected licenses")
def revoke_licenses(modeladmin, request, queryset):
    _run_for_each(
        modeladmin, request, queryset, "revoke", "Revoked", reason="Revoked from admin site"
    )


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "license_key",
        "product",
        "customer_email",
        "status_display",
        "max_activations",
        "activation_count",
        "download_count",
        "expires_at",
        "created_at",
    ]
    list_filter = ["status", "expires_at", "created_at", "product"]
    search_fields = ["license_key", "customer_email", "product__name"]
    readonly_fields = [
        "id",
        "license_key",
        "product",
        "status",
        "max_activations",
        "activation_count",
        "download_count",
        "expires_at",
        "last_activated_at",
        "last_downloaded_at",
        "created_at",
        "updated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "license_key", "product", "order_id", "customer_email", "status"),
            },
        ),
        (
            "Activations",
            {
                "fields": ("max_activations", "activation_count", "last_activated_at"),
            },
        ),
        (
            "Downloads",
            {
                "fields": ("download_count", "last_downloaded_at"),
            },
        ),
        (
            "Expiration",
            {
                "fields": ("expires_at",),
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
    actions = [suspend_licenses, reinstate_licenses, revoke_licenses, reset_license_activations]

    @admin.display(description="Status")
    def status_display(self, obj):
        """Display the effective status with color coding."""
        colors = {
            "active": "green",
            "suspended": "orange",
            "revoked": "red",
            "expired": "gray",
        }
        status = obj.status
        if status == "active" and obj.expires_at and obj.expires_at <= timezone.now():
            status = "expired"
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(status, "black"),
            status.upper(),
        )

    def has_add_permission(self, request):
        """Licenses are issued by the lifecycle manager."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Licenses are never deleted."""
        return False

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("product")


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Admin interface for AuditLog model."""

    list_display = [
        "action",
        "entity_type",
        "entity_id",
        "actor",
        "created_at",
    ]
    list_filter = ["action", "entity_type", "created_at"]
    search_fields = ["actor", "entity_id"]
    readonly_fields = ["id", "created_at", "changes_display"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "entity_type", "entity_id", "action"),
            },
        ),
        (
            "Details",
            {
                "fields": ("actor", "changes_display", "created_at"),
            },
        ),
    )

    @admin.display(description="Changes")
    def changes_display(self, obj):
        """Display changes in a formatted way."""
        if obj.changes:
            return format_html(
                '<pre style="background: #f5f5f5; padding: 10px; '
                'border-radius: 4px; overflow-x: auto;">{}</pre>',
                json.dumps(obj.changes, indent=2),
            )
        return "-"

    def has_add_permission(self, request):
        """Audit logs are read-only."""
        return False

    def has_change_permission(self, request, obj=None):
        """Audit logs are read-only."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Audit logs should not be deleted."""
        return False
