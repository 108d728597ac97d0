"""
Subscription Django ORM model.
"""
import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone


class Subscription(models.Model):
    """
    Recurring billing state of a license, mirrored from Stripe or PayPal.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("canceled", "Canceled"),
        ("past_due", "Past due"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license = models.ForeignKey(
        "licenses.License", on_delete=models.PROTECT, related_name="subscriptions"
    )
    stripe_subscription_id = models.CharField(max_length=255, null=True, blank=True)
    paypal_subscription_id = models.CharField(max_length=255, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    current_period_start = models.DateTimeField()
    current_period_end = models.DateTimeField()
    auto_renew = models.BooleanField(default=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "subscriptions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["license", "status"]),
            models.Index(fields=["stripe_subscription_id"]),
            models.Index(fields=["paypal_subscription_id"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["license"],
                condition=Q(status__in=["active", "past_due"]),
                name="one_live_subscription_per_license",
            ),
        ]

    def __str__(self):
        return f"{self.license.license_key} ({self.status})"
