"""
Django implementation of SubscriptionRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from typing import Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction

from core.domain.exceptions import (
    InvalidTransitionError,
    StorageError,
    SubscriptionNotFoundError,
)
from core.domain.value_objects import SubscriptionStatus
from core.infrastructure.database import translate_database_errors
from subscriptions.domain.subscription import Subscription
from subscriptions.infrastructure.models import Subscription as SubscriptionModel
from subscriptions.ports.subscription_repository import SubscriptionRepository


class DjangoSubscriptionRepository(SubscriptionRepository):
    """
    Django ORM implementation of SubscriptionRepository.

    The one-live-subscription rule is a partial unique index; violating
    it surfaces as InvalidTransitionError.
    """

    def _to_domain(self, model: SubscriptionModel) -> Subscription:
        return Subscription(
            id=model.id,
            license_id=model.license_id,
            stripe_subscription_id=model.stripe_subscription_id,
            paypal_subscription_id=model.paypal_subscription_id,
            status=SubscriptionStatus(model.status),
            current_period_start=model.current_period_start,
            current_period_end=model.current_period_end,
            auto_renew=model.auto_renew,
            canceled_at=model.canceled_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _fields(self, subscription: Subscription) -> dict:
        return {
            "stripe_subscription_id": subscription.stripe_subscription_id,
            "paypal_subscription_id": subscription.paypal_subscription_id,
            "status": subscription.status.value,
            "current_period_start": subscription.current_period_start,
            "current_period_end": subscription.current_period_end,
            "auto_renew": subscription.auto_renew,
            "canceled_at": subscription.canceled_at,
            "updated_at": subscription.updated_at,
        }

    @sync_to_async
    @translate_database_errors
    def add(self, subscription: Subscription) -> Subscription:
        """
        Insert a new subscription.

        Args:
            subscription: Subscription entity to insert

        Returns:
            Saved subscription entity
        """
        try:
            with transaction.atomic():
                model = SubscriptionModel.objects.create(
                    id=subscription.id,
                    license_id=subscription.license_id,
                    created_at=subscription.created_at,
                    **self._fields(subscription),
                )
        except IntegrityError as e:
            if SubscriptionModel.objects.filter(
                license_id=subscription.license_id,
                status__in=[SubscriptionStatus.ACTIVE.value, SubscriptionStatus.PAST_DUE.value],
            ).exists():
                raise InvalidTransitionError(
                    "License already has an active or past-due subscription"
                ) from e
            raise StorageError(f"Could not store subscription: {e}") from e
        return self._to_domain(model)

    @sync_to_async
    @translate_database_errors
    def save(
        self, subscription: Subscription, previous: Subscription
    ) -> Optional[Subscription]:
        """
        Update a subscription if it is still as it was read.

        Args:
            subscription: Changed subscription entity
            previous: The subscription as read before the change

        Returns:
            Saved subscription entity, or None if it changed in between
        """
        try:
            with transaction.atomic():
                updated = SubscriptionModel.objects.filter(
                    id=subscription.id,
                    status=previous.status.value,
                    current_period_end=previous.current_period_end,
                ).update(**self._fields(subscription))
        except IntegrityError as e:
            raise InvalidTransitionError(
                "License already has an active or past-due subscription"
            ) from e
        if not updated:
            if SubscriptionModel.objects.filter(id=subscription.id).exists():
                return None
            raise SubscriptionNotFoundError(f"Subscription {subscription.id} not found")
        return self._to_domain(SubscriptionModel.objects.get(id=subscription.id))

    @sync_to_async
    @translate_database_errors
    def find_current(self, license_id: uuid.UUID) -> Optional[Subscription]:
        """
        Find the most recent subscription of a license.

        Args:
            license_id: License UUID

        Returns:
            Subscription entity or None if the license never subscribed
        """
        model = (
            SubscriptionModel.objects.filter(license_id=license_id)
            .order_by("-created_at")
            .first()
        )
        return self._to_domain(model) if model else None
