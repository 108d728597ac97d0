"""
License and AuditLog models.

This is the infrastructure layer model for licenses.
Domain entities are in licenses.domain.license.
"""
import uuid

from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class LicenseQuerySet(models.QuerySet):
    """Query helpers shared by the repository adapters."""

    def usable(self, now):
        """Licenses that may activate, re-validate or download at ``now``."""
        return self.filter(
            Q(status="active") & (Q(expires_at__isnull=True) | Q(expires_at__gt=now))
        )

    def overdue(self, now):
        """Licenses still stored as active whose expiry has been reached."""
        return self.filter(status="active", expires_at__isnull=False, expires_at__lte=now)


class License(models.Model):
    """
    A license grants a customer the right to run a product on a bounded
    number of machines.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("suspended", "Suspended"),
        ("expired", "Expired"),
        ("revoked", "Revoked"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license_key = models.CharField(max_length=19, unique=True, editable=False)
    product = models.ForeignKey(
        "products.Product", on_delete=models.PROTECT, related_name="licenses"
    )
    order_id = models.UUIDField(
        null=True, blank=True, db_index=True, help_text="Originating order, if any"
    )
    customer_email = models.EmailField(db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    max_activations = models.PositiveIntegerField(
        default=1, help_text="Maximum number of simultaneously activated machines"
    )
    activation_count = models.PositiveIntegerField(default=0)
    download_count = models.PositiveIntegerField(default=0)
    expires_at = models.DateTimeField(null=True, blank=True)
    last_activated_at = models.DateTimeField(null=True, blank=True)
    last_downloaded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    objects = LicenseQuerySet.as_manager()

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "expires_at"]),
            models.Index(fields=["customer_email", "product"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(max_activations__gte=1),
                name="license_max_activations_at_least_one",
            ),
            models.CheckConstraint(
                condition=Q(activation_count__lte=F("max_activations")),
                name="license_activation_count_within_max",
            ),
        ]

    def __str__(self):
        return self.license_key


class AuditLog(models.Model):
    """
    Immutable audit trail of all license-related changes.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    entity_type = models.CharField(max_length=50)
    entity_id = models.UUIDField()
    action = models.CharField(max_length=50)
    changes = models.JSONField(default=dict, help_text="Details of the change")
    actor = models.CharField(max_length=255, help_text="Who performed the action")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["created_at"]),
            models.Index(fields=["action"]),
        ]

    def __str__(self):
        return f"{self.action} - {self.entity_type} {self.entity_id}"
