"""
License domain events.

Domain events represent something that happened in the license domain.
"""

import uuid
from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent


class LicenseEvent(DomainEvent):
    """Common constructor for events about one license."""

    def __init__(
        self,
        license_id: uuid.UUID,
        license_key: str,
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize license event.

        Args:
            license_id: License UUID
            license_key: License key string
            actor: Who triggered the change
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at,
            aggregate_id=str(license_id),
            event_type=type(self).__name__,
        )
        self.license_id = license_id
        self.license_key = license_key
        self._actor = actor

    def payload(self):
        return {"license_key": self.license_key}


class LicenseIssued(LicenseEvent):
    """Event raised when a license is issued."""

    def __init__(
        self,
        license_id: uuid.UUID,
        license_key: str,
        product_id: uuid.UUID,
        customer_email: str,
        order_id: Optional[uuid.UUID] = None,
        expires_at: Optional[datetime] = None,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(license_id, license_key, occurred_at=occurred_at)
        self.product_id = product_id
        self.customer_email = customer_email
        self.order_id = order_id
        self.expires_at = expires_at

    def payload(self):
        return {
            "license_key": self.license_key,
            "product_id": str(self.product_id),
            "order_id": str(self.order_id) if self.order_id else None,
            "customer_email": self.customer_email,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


class LicenseDownloaded(LicenseEvent):
    """Event raised when a licensed download is recorded."""

    def __init__(
        self,
        license_id: uuid.UUID,
        license_key: str,
        download_count: int,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(license_id, license_key, occurred_at=occurred_at)
        self.download_count = download_count

    def payload(self):
        return {"license_key": self.license_key, "download_count": self.download_count}


class LicenseRenewed(LicenseEvent):
    """Event raised when a license is renewed."""

    def __init__(
        self,
        license_id: uuid.UUID,
        license_key: str,
        new_expiration: datetime,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(license_id, license_key, occurred_at=occurred_at)
        self.new_expiration = new_expiration

    def payload(self):
        return {
            "license_key": self.license_key,
            "new_expiration": self.new_expiration.isoformat(),
        }


class LicenseSuspended(LicenseEvent):
    """Event raised when a license is suspended."""


class LicenseReinstated(LicenseEvent):
    """Event raised when a suspended license is reinstated."""


class LicenseRevoked(LicenseEvent):
    """Event raised when a license is revoked."""

    def __init__(
        self,
        license_id: uuid.UUID,
        license_key: str,
        reason: str,
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(license_id, license_key, actor=actor, occurred_at=occurred_at)
        self.reason = reason

    def payload(self):
        return {"license_key": self.license_key, "reason": self.reason}


class LicenseExpired(LicenseEvent):
    """Event raised when an expired status is persisted."""
