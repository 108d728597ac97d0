"""
Django admin configuration for subscriptions app.
"""

from django.contrib import admin

from subscriptions.infrastructure.models import Subscription


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """Read-only view of billing state; changes arrive from payment webhooks."""

    list_display = [
        "license",
        "status",
        "current_period_start",
        "current_period_end",
        "auto_renew",
        "canceled_at",
    ]
    list_filter = ["status", "auto_renew", "current_period_end"]
    search_fields = [
        "license__license_key",
        "license__customer_email",
        "stripe_subscription_id",
        "paypal_subscription_id",
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("license")
