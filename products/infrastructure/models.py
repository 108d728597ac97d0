"""
Product model.
"""
import uuid

from django.db import models
from django.utils import timezone


class Product(models.Model):
    """
    Represents a product that can be licensed.
    """

    LICENSE_TYPE_CHOICES = [
        ("one_time", "One-time purchase"),
        ("subscription", "Subscription"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, help_text="Product display name")
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    license_type = models.CharField(
        max_length=20, choices=LICENSE_TYPE_CHOICES, default="one_time"
    )
    max_activations = models.PositiveIntegerField(
        default=1, help_text="Default activation limit of issued licenses"
    )
    license_duration_days = models.PositiveIntegerField(
        null=True, blank=True, help_text="Leave empty for perpetual licenses"
    )
    version = models.CharField(max_length=50, null=True, blank=True)
    download_file = models.CharField(max_length=500, null=True, blank=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "products"
        ordering = ["name"]

    def clean(self):
        """Validate product fields."""
        from django.core.exceptions import ValidationError

        if not self.name:
            raise ValidationError("Name is required")
        if self.max_activations < 1:
            raise ValidationError("Max activations must be at least 1")

    def save(self, *args, **kwargs):
        """Save product with validation."""
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name
