"""
Subscription domain events.
"""
import uuid
from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent


class SubscriptionEvent(DomainEvent):
    """Common constructor for subscription events."""

    entity_type = "subscription"

    def __init__(
        self,
        subscription_id: uuid.UUID,
        license_id: uuid.UUID,
        current_period_end: datetime,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize subscription event.

        Args:
            subscription_id: Subscription UUID
            license_id: License UUID
            current_period_end: End of the current billing period
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at,
            aggregate_id=str(subscription_id),
            event_type=type(self).__name__,
        )
        self.subscription_id = subscription_id
        self.license_id = license_id
        self.current_period_end = current_period_end

    def payload(self):
        return {
            "license_id": str(self.license_id),
            "current_period_end": self.current_period_end.isoformat(),
        }


class SubscriptionStarted(SubscriptionEvent):
    """Event raised when a recurring license starts billing."""


class SubscriptionCanceled(SubscriptionEvent):
    """Event raised when a subscription is canceled."""


class SubscriptionReactivated(SubscriptionEvent):
    """Event raised when a cancellation is undone."""


class SubscriptionPastDue(SubscriptionEvent):
    """Event raised when a renewal charge fails."""
