"""
Activation Django ORM model.

This is the infrastructure layer model for activations.
Domain entities are in activations.domain.activation.
"""
import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone


class Activation(models.Model):
    """
    Represents one machine bound to a license.
    An active row consumes one of the license's activation slots.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license = models.ForeignKey(
        "licenses.License",
        on_delete=models.PROTECT,
        related_name="activations",
    )
    machine_fingerprint = models.CharField(
        max_length=255, help_text="Stable hardware/OS identifier"
    )
    machine_name = models.CharField(max_length=255, null=True, blank=True)
    os_info = models.CharField(max_length=255, null=True, blank=True)
    ip_address = models.CharField(max_length=45, null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    system_info = models.JSONField(
        default=dict,
        blank=True,
        help_text="Additional machine information",
    )
    active = models.BooleanField(default=True)
    activated_at = models.DateTimeField(default=timezone.now)
    last_seen_at = models.DateTimeField(default=timezone.now)
    deactivated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "license_activations"
        ordering = ["-activated_at"]
        indexes = [
            models.Index(fields=["license", "machine_fingerprint"]),
            models.Index(fields=["license", "active"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["license", "machine_fingerprint"],
                condition=Q(active=True),
                name="unique_active_machine_per_license",
            ),
        ]

    def __str__(self):
        return f"{self.license.license_key} @ {self.machine_fingerprint}"
