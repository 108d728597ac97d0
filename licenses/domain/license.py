"""
License domain entity.

This is the core domain entity representing a license.
It contains business logic and is independent of infrastructure.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from core.domain.exceptions import InvalidTransitionError, ValidationError
from core.domain.value_objects import Email, LicenseStatus
from licenses.domain.license_key import is_well_formed


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    Represents a license that grants access to a specific product.
    This is an immutable value object with business logic.
    """

    id: uuid.UUID
    license_key: str
    product_id: uuid.UUID
    order_id: Optional[uuid.UUID]
    customer_email: Email
    status: LicenseStatus
    max_activations: int
    activation_count: int
    download_count: int
    expires_at: Optional[datetime]
    last_activated_at: Optional[datetime]
    last_downloaded_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate license entity."""
        if not is_well_formed(self.license_key):
            raise ValidationError(f"Malformed license key: {self.license_key!r}")
        if not self.product_id:
            raise ValidationError("Product ID is required")
        if self.max_activations < 1:
            raise ValidationError("Max activations must be at least 1")
        if not 0 <= self.activation_count <= self.max_activations:
            raise ValidationError("Activation count must be between 0 and max activations")
        if self.download_count < 0:
            raise ValidationError("Download count cannot be negative")

    @classmethod
    def create(
        cls,
        license_key: str,
        product_id: uuid.UUID,
        customer_email: str,
        now: datetime,
        max_activations: int = 1,
        duration_days: Optional[int] = None,
        order_id: Optional[uuid.UUID] = None,
        license_id: Optional[uuid.UUID] = None,
    ) -> "License":
        """
        Create a new License entity.

        Args:
            license_key: Generated license key
            product_id: Product UUID
            customer_email: Customer email address
            now: Creation time
            max_activations: Maximum number of simultaneously activated machines
            duration_days: Days until expiry; None for a perpetual license
            order_id: Originating order, if any
            license_id: Optional UUID (generated if not provided)

        Returns:
            License entity instance
        """
        if duration_days is not None and duration_days < 0:
            raise ValidationError("Duration cannot be negative")
        expires_at = now + timedelta(days=duration_days) if duration_days is not None else None
        return cls(
            id=license_id or uuid.uuid4(),
            license_key=license_key,
            product_id=product_id,
            order_id=order_id,
            customer_email=Email(customer_email),
            status=LicenseStatus.ACTIVE,
            max_activations=max_activations,
            activation_count=0,
            download_count=0,
            expires_at=expires_at,
            last_activated_at=None,
            last_downloaded_at=None,
            created_at=now,
            updated_at=now,
        )

    def is_expired_at(self, now: datetime) -> bool:
        """True once expires_at has been reached."""
        return self.expires_at is not None and self.expires_at <= now

    def effective_status(self, now: datetime) -> LicenseStatus:
        """
        Status as callers must see it.

        A reached expiry always wins over the stored status so reads are
        never stale.
        """
        if self.is_expired_at(now):
            return LicenseStatus.EXPIRED
        return self.status

    def is_usable(self, now: datetime) -> bool:
        """Whether machines may activate, re-validate or download."""
        return self.effective_status(now) == LicenseStatus.ACTIVE

    @property
    def activations_remaining(self) -> int:
        return max(0, self.max_activations - self.activation_count)

    def renew(self, new_expiration: datetime, now: datetime) -> "License":
        """
        Create a new License instance with renewed expiration.

        Args:
            new_expiration: New expiration datetime
            now: Current time

        Returns:
            New License instance with updated expiration, or this one if
            new_expiration would not move expires_at forward
        """
        if new_expiration <= now:
            raise ValidationError("Expiration date cannot be in the past")
        if self.status == LicenseStatus.REVOKED:
            raise InvalidTransitionError("Cannot renew a revoked license")
        if self.expires_at is not None and new_expiration <= self.expires_at:
            return self  # Already paid up to that date

        new_status = (
            LicenseStatus.ACTIVE if self.status == LicenseStatus.EXPIRED else self.status
        )
        return replace(self, status=new_status, expires_at=new_expiration, updated_at=now)
