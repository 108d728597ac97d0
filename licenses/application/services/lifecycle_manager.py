"""
License lifecycle manager.

Single authority for license state transitions and activation
accounting. Request handlers, billing webhooks and the admin site call
these coroutines instead of writing license rows themselves.

The manager keeps no license state between calls: every operation
re-reads storage, and every write is a conditional update decided by
storage, so several managers may share one database.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from activations.domain.activation import Activation, MachineMetadata
from activations.domain.events import LicenseActivated, LicenseDeactivated
from activations.ports.activation_repository import ActivationRepository
from core.domain.clock import Clock, SystemClock
from core.domain.events import DomainEvent, EventBus
from core.domain.exceptions import (
    ActivationLimitError,
    ActivationNotFoundError,
    DuplicateActivationError,
    ExpiredError,
    InvalidTransitionError,
    LicenseKeyConflictError,
    LicenseNotFoundError,
    ProductNotFoundError,
    StorageError,
    SubscriptionNotFoundError,
    ValidationError,
)
from core.domain.value_objects import LicenseStatus, MachineFingerprint
from licenses.domain.events import (
    LicenseDownloaded,
    LicenseExpired,
    LicenseIssued,
    LicenseReinstated,
    LicenseRenewed,
    LicenseRevoked,
    LicenseSuspended,
)
from licenses.domain.license import License
from licenses.domain.license_key import normalize_license_key
from licenses.domain.services import LicenseKeyGenerator, LicenseTransitions, LicenseValidator
from licenses.ports.license_repository import LicenseRepository
from products.ports.product_repository import ProductRepository
from subscriptions.domain.events import (
    SubscriptionCanceled,
    SubscriptionPastDue,
    SubscriptionReactivated,
    SubscriptionStarted,
)
from subscriptions.domain.subscription import Subscription
from subscriptions.ports.subscription_repository import SubscriptionRepository

logger = logging.getLogger(__name__)

DEFAULT_KEY_GENERATION_ATTEMPTS = 5

# A lost fingerprint race is retried once against the winner's record
ACTIVATION_ATTEMPTS = 2
SUBSCRIPTION_ATTEMPTS = 3


class LicenseLifecycleManager:
    """Issues licenses and drives every later change of their state."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
        subscription_repository: SubscriptionRepository,
        product_repository: ProductRepository,
        event_bus: EventBus,
        clock: Optional[Clock] = None,
        key_generator: Optional[LicenseKeyGenerator] = None,
        key_generation_attempts: int = DEFAULT_KEY_GENERATION_ATTEMPTS,
    ):
        """Initialize manager with repositories, event bus and clock."""
        if key_generation_attempts < 1:
            raise ValueError("key_generation_attempts must be at least 1")
        self.license_repository = license_repository
        self.activation_repository = activation_repository
        self.subscription_repository = subscription_repository
        self.product_repository = product_repository
        self.event_bus = event_bus
        self.clock = clock or SystemClock()
        self.key_generator = key_generator or LicenseKeyGenerator()
        self.key_generation_attempts = key_generation_attempts

    # Reads

    def effective_status(self, license: License) -> LicenseStatus:
        """Status to report for a license; a reached expiry always wins."""
        return license.effective_status(self.clock.now())

    async def get_license(self, license_key: str) -> License:
        """
        Look up a license by key.

        Raises:
            LicenseNotFoundError: If the key is malformed or unknown
        """
        key = normalize_license_key(license_key)
        if key is None:
            raise LicenseNotFoundError(f"License {license_key!r} not found")
        license = await self.license_repository.find_by_key(key)
        if not license:
            raise LicenseNotFoundError(f"License {key} not found")
        return license

    # Issue

    async def issue(
        self,
        product_id: uuid.UUID,
        customer_email: str,
        max_activations: Optional[int] = None,
        duration_days: Optional[int] = None,
        order_id: Optional[uuid.UUID] = None,
    ) -> License:
        """
        Issue a new license for a product.

        Activation limit and duration default to the product's settings.
        A key collision reported by storage triggers regeneration.

        Args:
            product_id: Product UUID
            customer_email: Customer email address
            max_activations: Maximum simultaneously activated machines
            duration_days: Days until expiry; None for perpetual
            order_id: Originating order, if fulfilled from an order

        Returns:
            Saved License entity

        Raises:
            ProductNotFoundError: If the product does not exist
            ValidationError: If limits, duration or email are invalid
            StorageError: If no unique key could be stored
        """
        product = await self.product_repository.find_by_id(product_id)
        if not product:
            raise ProductNotFoundError(f"Product {product_id} not found")
        if not product.active:
            raise ValidationError(f"Product {product.name} is not available")

        if max_activations is None:
            max_activations = product.max_activations
        if duration_days is None:
            duration_days = product.license_duration_days
        if max_activations < 1:
            raise ValidationError("Max activations must be at least 1")
        if duration_days is not None and duration_days < 0:
            raise ValidationError("Duration cannot be negative")

        now = self.clock.now()
        saved = None
        for attempt in range(1, self.key_generation_attempts + 1):
            candidate = License.create(
                license_key=self.key_generator.generate(),
                product_id=product.id,
                customer_email=customer_email,
                now=now,
                max_activations=max_activations,
                duration_days=duration_days,
                order_id=order_id,
            )
            try:
                saved = await self.license_repository.add(candidate)
                break
            except LicenseKeyConflictError:
                logger.warning(
                    "License key collision on attempt %d of %d",
                    attempt,
                    self.key_generation_attempts,
                )
        if saved is None:
            raise StorageError(
                f"Could not store a unique license key after "
                f"{self.key_generation_attempts} attempts"
            )

        logger.info(
            "License issued",
            extra={
                "license_id": str(saved.id),
                "product_id": str(product.id),
                "order_id": str(order_id) if order_id else None,
            },
        )
        await self._publish(
            LicenseIssued(
                license_id=saved.id,
                license_key=saved.license_key,
                product_id=saved.product_id,
                customer_email=str(saved.customer_email),
                order_id=saved.order_id,
                expires_at=saved.expires_at,
                occurred_at=now,
            )
        )
        return saved

    # Activations

    async def activate(
        self,
        license_key: str,
        machine_fingerprint: str,
        machine_metadata: Union[MachineMetadata, Dict[str, Any], None] = None,
    ) -> Activation:
        """
        Bind a machine to a license.

        Repeating the call for an already active machine returns the
        existing activation with a fresh last_seen_at and consumes no
        extra slot.

        Raises:
            LicenseNotFoundError: If the key is unknown
            ExpiredError: If the license is expired, suspended or revoked
            ActivationLimitError: If every slot is taken
        """
        fingerprint = MachineFingerprint(machine_fingerprint).value
        license = await self.get_license(license_key)
        now = self.clock.now()
        LicenseValidator.ensure_usable(license, now)

        if isinstance(machine_metadata, MachineMetadata):
            metadata = machine_metadata
        else:
            metadata = MachineMetadata.from_dict(machine_metadata)

        for _ in range(ACTIVATION_ATTEMPTS):
            existing = await self.activation_repository.find_active(license.id, fingerprint)
            if existing:
                touched = await self.activation_repository.touch(existing.id, now)
                if touched:
                    logger.debug(
                        "Machine already activated",
                        extra={"license_id": str(license.id), "activation_id": str(existing.id)},
                    )
                    return touched
                continue

            activation = Activation.create(
                license_id=license.id,
                machine_fingerprint=fingerprint,
                now=now,
                metadata=metadata,
            )
            try:
                saved = await self.activation_repository.claim_seat(activation, now)
            except DuplicateActivationError:
                continue

            if saved is None:
                # The same machine may have taken the last slot concurrently
                if await self.activation_repository.find_active(license.id, fingerprint):
                    continue
                await self._raise_claim_rejected(license, now)

            logger.info(
                "License activated",
                extra={"license_id": str(license.id), "activation_id": str(saved.id)},
            )
            await self._publish(
                LicenseActivated(
                    activation_id=saved.id,
                    license_id=license.id,
                    license_key=license.license_key,
                    machine_fingerprint=fingerprint,
                    occurred_at=now,
                )
            )
            return saved

        raise StorageError(f"Activation of license {license.license_key} kept conflicting")

    async def _raise_claim_rejected(self, license: License, now: datetime) -> None:
        """Explain why storage refused to hand out a slot."""
        current = await self.license_repository.find_by_id(license.id)
        if current is None:
            raise LicenseNotFoundError(f"License {license.license_key} not found")
        LicenseValidator.ensure_usable(current, now)
        logger.warning(
            "Activation limit reached",
            extra={"license_id": str(license.id), "max_activations": current.max_activations},
        )
        raise ActivationLimitError(
            f"License {license.license_key} is activated on "
            f"{current.activation_count} of {current.max_activations} machines"
        )

    async def deactivate(
        self, license_key: str, machine_fingerprint: str, actor: str = "system"
    ) -> Activation:
        """
        Release the slot held by a machine.

        Raises:
            LicenseNotFoundError: If the key is unknown
            ValidationError: If the fingerprint is blank or too long
            ActivationNotFoundError: If the machine holds no active activation
        """
        fingerprint = MachineFingerprint(machine_fingerprint).value
        license = await self.get_license(license_key)
        activation = await self.activation_repository.find_active(license.id, fingerprint)
        if not activation:
            raise ActivationNotFoundError(f"No active activation for machine {fingerprint!r}")
        return await self._release(license, activation, actor=actor)

    async def _release(self, license: License, activation: Activation, actor: str) -> Activation:
        now = self.clock.now()
        released = await self.activation_repository.release_seat(activation, now)
        if released is None:
            raise ActivationNotFoundError(f"Activation {activation.id} is no longer active")
        logger.info(
            "License deactivated",
            extra={"license_id": str(license.id), "activation_id": str(activation.id)},
        )
        await self._publish(
            LicenseDeactivated(
                activation_id=released.id,
                license_id=license.id,
                license_key=license.license_key,
                machine_fingerprint=str(released.machine_fingerprint),
                actor=actor,
                occurred_at=now,
            )
        )
        return released

    async def heartbeat(self, license_key: str, machine_fingerprint: str) -> Activation:
        """
        Re-validate an activated machine and record that it was seen.

        Raises:
            LicenseNotFoundError: If the key is unknown
            ValidationError: If the fingerprint is blank or too long
            ExpiredError: If the license is no longer usable
            ActivationNotFoundError: If the machine is not activated
        """
        fingerprint = MachineFingerprint(machine_fingerprint).value
        license = await self.get_license(license_key)
        now = self.clock.now()
        LicenseValidator.ensure_usable(license, now)
        activation = await self.activation_repository.find_active(license.id, fingerprint)
        touched = await self.activation_repository.touch(activation.id, now) if activation else None
        if touched is None:
            raise ActivationNotFoundError(f"No active activation for machine {fingerprint!r}")
        return touched

    async def reset_activations(self, license_key: str, actor: str = "system") -> int:
        """
        Deactivate every machine bound to a license.

        Returns:
            Number of activations released
        """
        license = await self.get_license(license_key)
        released = 0
        for activation in await self.activation_repository.find_active_by_license(license.id):
            try:
                await self._release(license, activation, actor=actor)
            except ActivationNotFoundError:
                # Deactivated concurrently
                continue
            released += 1
        logger.info(
            "Activations reset",
            extra={"license_id": str(license.id), "released": released, "actor": actor},
        )
        return released

    # Downloads

    async def record_download(self, license_key: str) -> License:
        """
        Count a download of the licensed product.

        Raises:
            LicenseNotFoundError: If the key is unknown
            ExpiredError: If the license is no longer usable
        """
        license = await self.get_license(license_key)
        now = self.clock.now()
        LicenseValidator.ensure_usable(license, now)
        updated = await self.license_repository.record_download(license.id, now)
        if updated is None:
            current = await self.license_repository.find_by_id(license.id) or license
            LicenseValidator.ensure_usable(current, now)
            raise ExpiredError(f"License {license.license_key} is not usable")
        await self._publish(
            LicenseDownloaded(
                license_id=updated.id,
                license_key=updated.license_key,
                download_count=updated.download_count,
                occurred_at=now,
            )
        )
        return updated

    # Administrative transitions

    async def suspend(self, license_key: str, actor: str = "system") -> License:
        """Suspend an active license."""
        license = await self._transition(license_key, LicenseTransitions.SUSPEND)
        await self._publish(
            LicenseSuspended(
                license.id, license.license_key, actor=actor, occurred_at=license.updated_at
            )
        )
        return license

    async def reinstate(self, license_key: str, actor: str = "system") -> License:
        """Return a suspended license to active."""
        license = await self._transition(license_key, LicenseTransitions.REINSTATE)
        await self._publish(
            LicenseReinstated(
                license.id, license.license_key, actor=actor, occurred_at=license.updated_at
            )
        )
        return license

    async def revoke(self, license_key: str, reason: str, actor: str = "system") -> License:
        """
        Permanently revoke a license. The row is kept for audit.
        """
        if not reason or not reason.strip():
            raise ValidationError("A revocation reason is required")
        license = await self._transition(license_key, LicenseTransitions.REVOKE)
        await self._publish(
            LicenseRevoked(
                license.id,
                license.license_key,
                reason=reason.strip(),
                actor=actor,
                occurred_at=license.updated_at,
            )
        )
        return license

    async def _transition(self, license_key: str, transition: str) -> License:
        license = await self.get_license(license_key)
        LicenseTransitions.check(license, transition)
        sources, target = LicenseTransitions.rule(transition)
        updated = await self.license_repository.transition_status(
            license.id, sources, target, self.clock.now()
        )
        if updated is None:
            current = await self.license_repository.find_by_id(license.id) or license
            LicenseTransitions.check(current, transition)
            raise InvalidTransitionError(f"License {license.license_key} changed concurrently")
        logger.info(
            "License %s", transition, extra={"license_id": str(license.id), "status": target.value}
        )
        return updated

    # Renewal and expiry

    async def renew(self, license_key: str, new_period_end: datetime) -> License:
        """
        Extend a license after a successful billing charge.

        A license stored as expired becomes active again; a live
        subscription rolls over to the new period. A period end at or
        before the current expiry changes nothing, so replayed charges
        never shorten a license.

        Raises:
            ValidationError: If new_period_end is not in the future
            InvalidTransitionError: If the license is revoked
        """
        license = await self.get_license(license_key)
        now = self.clock.now()
        if license.renew(new_period_end, now) is license:
            return self._skip_renewal(license, new_period_end)

        updated = await self.license_repository.extend(license.id, new_period_end, now)
        if updated is None:
            current = await self.license_repository.find_by_id(license.id) or license
            if current.status == LicenseStatus.REVOKED:
                raise InvalidTransitionError(
                    f"Cannot renew revoked license {license.license_key}"
                )
            return self._skip_renewal(current, new_period_end)

        def roll(subscription: Subscription) -> Subscription:
            # A racing renewal may already have rolled past this period
            if subscription.status.is_live and subscription.current_period_end < new_period_end:
                return subscription.roll_period(new_period_end, now)
            return subscription

        await self._change_subscription(license.id, roll)

        logger.info(
            "License renewed",
            extra={"license_id": str(license.id), "expires_at": new_period_end.isoformat()},
        )
        await self._publish(
            LicenseRenewed(
                license_id=updated.id,
                license_key=updated.license_key,
                new_expiration=new_period_end,
                occurred_at=now,
            )
        )
        return updated

    def _skip_renewal(self, license: License, new_period_end: datetime) -> License:
        logger.info(
            "Renewal does not extend license",
            extra={
                "license_id": str(license.id),
                "expires_at": license.expires_at.isoformat() if license.expires_at else None,
                "requested_expires_at": new_period_end.isoformat(),
            },
        )
        return license

    async def expire_overdue(self) -> int:
        """
        Persist the expired status of licenses whose time has run out.

        Reads never depend on this; it keeps stored status in line for
        reporting.

        Returns:
            Number of licenses marked expired
        """
        now = self.clock.now()
        expired = 0
        for license in await self.license_repository.find_overdue(now):
            updated = await self.license_repository.mark_expired(license.id, now)
            if updated is None:
                continue
            expired += 1
            logger.info("Marked license %s as expired", license.id)
            await self._publish(LicenseExpired(updated.id, updated.license_key, occurred_at=now))
        return expired

    # Subscriptions

    async def subscribe(
        self,
        license_key: str,
        current_period_start: datetime,
        current_period_end: datetime,
        stripe_subscription_id: Optional[str] = None,
        paypal_subscription_id: Optional[str] = None,
        auto_renew: bool = True,
    ) -> Subscription:
        """
        Attach a recurring subscription to a license.

        The license's expiry follows the end of the paid period.

        Raises:
            ValidationError: If the period is empty
            InvalidTransitionError: If the license is revoked or already
                has a live subscription
        """
        license = await self.get_license(license_key)
        now = self.clock.now()
        if license.status == LicenseStatus.REVOKED:
            raise InvalidTransitionError(f"License {license.license_key} is revoked")

        subscription = Subscription.create(
            license_id=license.id,
            current_period_start=current_period_start,
            current_period_end=current_period_end,
            now=now,
            stripe_subscription_id=stripe_subscription_id,
            paypal_subscription_id=paypal_subscription_id,
            auto_renew=auto_renew,
        )
        saved = await self.subscription_repository.add(subscription)
        if current_period_end > now:
            await self.license_repository.extend(
                license.id, current_period_end, now, allow_earlier=True
            )

        logger.info(
            "Subscription started",
            extra={"license_id": str(license.id), "subscription_id": str(saved.id)},
        )
        await self._publish(
            SubscriptionStarted(saved.id, license.id, saved.current_period_end, occurred_at=now)
        )
        return saved

    async def cancel_subscription(self, license_key: str) -> Subscription:
        """
        Stop renewals. The license keeps working until the paid period ends.
        """
        license = await self.get_license(license_key)
        now = self.clock.now()
        saved = await self._require_subscription(license, lambda s: s.cancel(now))
        logger.info(
            "Subscription canceled",
            extra={"license_id": str(license.id), "subscription_id": str(saved.id)},
        )
        await self._publish(
            SubscriptionCanceled(saved.id, license.id, saved.current_period_end, occurred_at=now)
        )
        return saved

    async def reactivate_subscription(self, license_key: str) -> Subscription:
        """
        Undo a cancellation before the paid period ends.

        Raises:
            InvalidTransitionError: If not canceled or the period is over
        """
        license = await self.get_license(license_key)
        now = self.clock.now()
        saved = await self._require_subscription(license, lambda s: s.reactivate(now))
        await self._publish(
            SubscriptionReactivated(saved.id, license.id, saved.current_period_end, occurred_at=now)
        )
        return saved

    async def record_payment_failure(self, license_key: str) -> Subscription:
        """
        Mark the subscription past due and the license expired.

        A later successful renew restores both.
        """
        license = await self.get_license(license_key)
        now = self.clock.now()
        saved = await self._require_subscription(license, lambda s: s.mark_past_due(now))

        sources, target = LicenseTransitions.rule(LicenseTransitions.EXPIRE)
        expired = await self.license_repository.transition_status(license.id, sources, target, now)

        logger.warning(
            "Subscription payment failed",
            extra={"license_id": str(license.id), "subscription_id": str(saved.id)},
        )
        await self._publish(
            SubscriptionPastDue(saved.id, license.id, saved.current_period_end, occurred_at=now)
        )
        if expired:
            await self._publish(LicenseExpired(expired.id, expired.license_key, occurred_at=now))
        return saved

    async def _change_subscription(
        self, license_id: uuid.UUID, change: Callable[[Subscription], Subscription]
    ) -> Optional[Subscription]:
        """
        Apply a change to the current subscription of a license.

        The write only lands if the subscription still looks as it did when
        read; otherwise the change is re-applied to a fresh read, so a
        concurrent update is never overwritten.

        Returns:
            Saved subscription, or None if the license never subscribed
        """
        for _ in range(SUBSCRIPTION_ATTEMPTS):
            current = await self.subscription_repository.find_current(license_id)
            if current is None:
                return None
            changed = change(current)
            if changed is current:
                return current
            saved = await self.subscription_repository.save(changed, current)
            if saved is not None:
                return saved
        raise InvalidTransitionError(f"Subscription of license {license_id} changed concurrently")

    async def _require_subscription(
        self, license: License, change: Callable[[Subscription], Subscription]
    ) -> Subscription:
        saved = await self._change_subscription(license.id, change)
        if saved is None:
            raise SubscriptionNotFoundError(f"License {license.license_key} has no subscription")
        return saved

    async def _publish(self, event: DomainEvent) -> None:
        await self.event_bus.publish(event)
