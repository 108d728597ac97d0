"""
Subscription domain entity.

A subscription tracks the recurring billing state of exactly one license.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from core.domain.exceptions import InvalidTransitionError, ValidationError
from core.domain.value_objects import SubscriptionStatus


@dataclass(frozen=True)
class Subscription:
    """
    Subscription domain entity.

    Carries the billing provider's subscription id (Stripe or PayPal) and
    the current billing period.
    """

    id: uuid.UUID
    license_id: uuid.UUID
    stripe_subscription_id: Optional[str]
    paypal_subscription_id: Optional[str]
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
    auto_renew: bool
    canceled_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate subscription entity."""
        if not self.license_id:
            raise ValidationError("License ID is required")
        if self.current_period_end <= self.current_period_start:
            raise ValidationError("Billing period must end after it starts")

    @classmethod
    def create(
        cls,
        license_id: uuid.UUID,
        current_period_start: datetime,
        current_period_end: datetime,
        now: datetime,
        stripe_subscription_id: Optional[str] = None,
        paypal_subscription_id: Optional[str] = None,
        auto_renew: bool = True,
        subscription_id: Optional[uuid.UUID] = None,
    ) -> "Subscription":
        """
        Create a new Subscription entity.

        Args:
            license_id: License UUID
            current_period_start: Start of the paid period
            current_period_end: End of the paid period
            now: Creation time
            stripe_subscription_id: Stripe subscription id, if billed by Stripe
            paypal_subscription_id: PayPal subscription id, if billed by PayPal
            auto_renew: Whether the provider renews automatically
            subscription_id: Optional UUID (generated if not provided)

        Returns:
            Subscription entity instance
        """
        return cls(
            id=subscription_id or uuid.uuid4(),
            license_id=license_id,
            stripe_subscription_id=stripe_subscription_id,
            paypal_subscription_id=paypal_subscription_id,
            status=SubscriptionStatus.ACTIVE,
            current_period_start=current_period_start,
            current_period_end=current_period_end,
            auto_renew=auto_renew,
            canceled_at=None,
            created_at=now,
            updated_at=now,
        )

    def roll_period(self, new_period_end: datetime, now: datetime) -> "Subscription":
        """
        Start the next billing period after a successful charge.

        A canceled subscription stays canceled; a past-due one is active again.
        """
        if new_period_end <= self.current_period_end:
            return self
        status = (
            SubscriptionStatus.CANCELED
            if self.status == SubscriptionStatus.CANCELED
            else SubscriptionStatus.ACTIVE
        )
        return replace(
            self,
            status=status,
            current_period_start=self.current_period_end,
            current_period_end=new_period_end,
            updated_at=now,
        )

    def cancel(self, now: datetime) -> "Subscription":
        """
        Create a new Subscription instance with canceled status.

        The license stays usable until current_period_end.
        """
        if self.status == SubscriptionStatus.CANCELED:
            raise InvalidTransitionError("Subscription is already canceled")
        return replace(
            self,
            status=SubscriptionStatus.CANCELED,
            auto_renew=False,
            canceled_at=now,
            updated_at=now,
        )

    def reactivate(self, now: datetime) -> "Subscription":
        """
        Undo a cancellation before the paid period runs out.
        """
        if self.status != SubscriptionStatus.CANCELED:
            raise InvalidTransitionError("Only a canceled subscription can be reactivated")
        if self.current_period_end <= now:
            raise InvalidTransitionError("Subscription period has already ended")
        return replace(
            self,
            status=SubscriptionStatus.ACTIVE,
            auto_renew=True,
            canceled_at=None,
            updated_at=now,
        )

    def mark_past_due(self, now: datetime) -> "Subscription":
        """
        Record a failed renewal charge.
        """
        if self.status == SubscriptionStatus.CANCELED:
            raise InvalidTransitionError("Subscription is canceled")
        return replace(self, status=SubscriptionStatus.PAST_DUE, updated_at=now)
