"""
Django admin configuration for products app.
"""

from django.contrib import admin

from products.infrastructure.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for Product model."""

    list_display = [
        "name",
        "license_type",
        "price",
        "currency",
        "max_activations",
        "license_duration_days",
        "active",
        "license_count",
    ]
    list_filter = ["license_type", "active", "created_at"]
    search_fields = ["name", "version"]
    readonly_fields = ["id", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "name", "description", "version", "download_file", "active"),
            },
        ),
        (
            "Pricing",
            {
                "fields": ("price", "currency", "license_type"),
            },
        ),
        (
            "License Defaults",
            {
                "fields": ("max_activations", "license_duration_days"),
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

    @admin.display(description="Licenses")
    def license_count(self, obj):
        """Display number of licenses for this product."""
        return obj.licenses.count()

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).prefetch_related("licenses")
