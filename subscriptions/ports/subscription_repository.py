"""
Subscription repository port (interface).
"""
from abc import ABC, abstractmethod
from typing import Optional
import uuid

from subscriptions.domain.subscription import Subscription


class SubscriptionRepository(ABC):
    """
    Abstract repository for Subscription entities.
    """

    @abstractmethod
    async def add(self, subscription: Subscription) -> Subscription:
        """
        Insert a new subscription.

        Raises:
            InvalidTransitionError: If the license already has a live
                (active or past-due) subscription
        """
        pass

    @abstractmethod
    async def save(
        self, subscription: Subscription, previous: Subscription
    ) -> Optional[Subscription]:
        """
        Update a subscription if it is still as it was read.

        Args:
            subscription: Changed subscription entity
            previous: The subscription as read before the change

        Returns:
            Saved subscription entity, or None if the stored status or
            billing period no longer match previous

        Raises:
            SubscriptionNotFoundError: If the subscription does not exist
            InvalidTransitionError: If the change would leave the license
                with two live subscriptions
        """
        pass

    @abstractmethod
    async def find_current(self, license_id: uuid.UUID) -> Optional[Subscription]:
        """
        Find the most recent subscription of a license.

        Args:
            license_id: License UUID

        Returns:
            Subscription entity or None if the license never subscribed
        """
        pass
