"""
Unit tests for LicenseLifecycleManager.
"""

import asyncio
import uuid
from dataclasses import replace
from datetime import timedelta
from decimal import Decimal
from itertools import chain

import pytest

from activations.domain.events import LicenseActivated, LicenseDeactivated
from core.domain.exceptions import (
    ActivationLimitError,
    ActivationNotFoundError,
    ExpiredError,
    InvalidTransitionError,
    LicenseNotFoundError,
    LicenseRevokedError,
    LicenseSuspendedError,
    NotFoundError,
    ProductNotFoundError,
    StorageError,
    ValidationError,
)
from core.domain.value_objects import LicenseStatus
from licenses.application.services.lifecycle_manager import LicenseLifecycleManager
from licenses.domain.events import (
    LicenseDownloaded,
    LicenseExpired,
    LicenseIssued,
    LicenseReinstated,
    LicenseRenewed,
    LicenseRevoked,
    LicenseSuspended,
)
from licenses.domain.services import LicenseKeyGenerator
from products.domain.product import Product


def keys(*values):
    """Key generator that hands out ``values`` and then fresh distinct keys."""
    fresh = (f"ZZZZ-ZZZZ-ZZZZ-{n:04d}" for n in range(10000))
    source = chain(values, fresh)
    return LicenseKeyGenerator(generate=lambda: next(source))


@pytest.mark.asyncio
class TestIssue:
    """Tests for issuing licenses."""

    async def test_issue_uses_product_defaults(
        self, manager, subscription_product, clock, event_bus
    ):
        license = await manager.issue(subscription_product.id, "buyer@example.com")

        assert license.status == LicenseStatus.ACTIVE
        assert license.max_activations == 3
        assert license.expires_at == clock.now() + timedelta(days=365)
        assert license.activation_count == 0
        assert [type(e) for e in event_bus.events] == [LicenseIssued]
        assert event_bus.events[0].payload()["customer_email"] == "buyer@example.com"

    async def test_issue_overrides(self, manager, product):
        order_id = uuid.uuid4()
        license = await manager.issue(
            product.id,
            "buyer@example.com",
            max_activations=5,
            duration_days=30,
            order_id=order_id,
        )

        assert license.max_activations == 5
        assert license.order_id == order_id
        assert license.expires_at is not None

    async def test_issue_perpetual(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        assert license.expires_at is None

    async def test_issue_unknown_product(self, manager):
        with pytest.raises(ProductNotFoundError):
            await manager.issue(uuid.uuid4(), "buyer@example.com")

    async def test_issue_inactive_product(self, manager, product_repository):
        product = Product.create(name="Retired", price=Decimal("1.00"))
        product_repository.put(replace(product, active=False))

        with pytest.raises(ValidationError):
            await manager.issue(product.id, "buyer@example.com")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_activations": 0},
            {"duration_days": -1},
            {"customer_email": "nope"},
        ],
    )
    async def test_issue_validation(self, manager, product, kwargs):
        arguments = {"customer_email": "buyer@example.com", **kwargs}
        with pytest.raises(ValidationError):
            await manager.issue(product.id, **arguments)

    async def test_issue_regenerates_on_key_collision(
        self,
        license_repository,
        activation_repository,
        subscription_repository,
        product_repository,
        event_bus,
        clock,
        product,
    ):
        manager = LicenseLifecycleManager(
            license_repository,
            activation_repository,
            subscription_repository,
            product_repository,
            event_bus,
            clock=clock,
            key_generator=keys("AAAA-AAAA-AAAA-AAAA", "AAAA-AAAA-AAAA-AAAA"),
        )
        first = await manager.issue(product.id, "one@example.com")
        second = await manager.issue(product.id, "two@example.com")

        assert first.license_key == "AAAA-AAAA-AAAA-AAAA"
        assert second.license_key != first.license_key
        assert len(license_repository.licenses) == 2

    async def test_issue_gives_up_after_configured_attempts(
        self,
        license_repository,
        activation_repository,
        subscription_repository,
        product_repository,
        event_bus,
        clock,
        product,
    ):
        generated = []

        def always_same():
            generated.append(1)
            return "AAAA-AAAA-AAAA-AAAA"

        manager = LicenseLifecycleManager(
            license_repository,
            activation_repository,
            subscription_repository,
            product_repository,
            event_bus,
            clock=clock,
            key_generator=LicenseKeyGenerator(generate=always_same),
            key_generation_attempts=3,
        )
        await manager.issue(product.id, "one@example.com")
        generated.clear()

        with pytest.raises(StorageError):
            await manager.issue(product.id, "two@example.com")
        assert len(generated) == 3


def test_attempt_limit_must_be_positive(
    license_repository,
    activation_repository,
    subscription_repository,
    product_repository,
    event_bus,
):
    with pytest.raises(ValueError):
        LicenseLifecycleManager(
            license_repository,
            activation_repository,
            subscription_repository,
            product_repository,
            event_bus,
            key_generation_attempts=0,
        )


@pytest.mark.asyncio
class TestReads:
    """Tests for key lookup and effective status."""

    async def test_get_license_normalizes_key(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        found = await manager.get_license(f"  {license.license_key.lower()} ")
        assert found.id == license.id

    @pytest.mark.parametrize("key", ["", "garbage", "AAAA-BBBB-CCCC-DDDD"])
    async def test_unknown_or_malformed_key(self, manager, key):
        with pytest.raises(NotFoundError):
            await manager.get_license(key)

    async def test_effective_status_follows_clock(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=1)

        assert manager.effective_status(license) == LicenseStatus.ACTIVE
        clock.advance(timedelta(days=1))
        assert manager.effective_status(license) == LicenseStatus.EXPIRED

    async def test_zero_duration_is_expired_on_first_read(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=0)
        assert manager.effective_status(license) == LicenseStatus.EXPIRED

        with pytest.raises(ExpiredError):
            await manager.activate(license.license_key, "host-1")


@pytest.mark.asyncio
class TestActivation:
    """Tests for activation accounting."""

    async def test_activate_consumes_slot(self, manager, product, clock, event_bus):
        license = await manager.issue(product.id, "buyer@example.com", max_activations=2)
        activation = await manager.activate(
            license.license_key, "host-1", {"machine_name": "build box", "cpu": "arm64"}
        )

        stored = await manager.get_license(license.license_key)
        assert activation.is_active
        assert activation.metadata.machine_name == "build box"
        assert activation.metadata.system_info == {"cpu": "arm64"}
        assert stored.activation_count == 1
        assert stored.last_activated_at == clock.now()
        assert len(event_bus.of_type(LicenseActivated)) == 1

    async def test_activation_is_idempotent(self, manager, product, clock, event_bus):
        license = await manager.issue(product.id, "buyer@example.com", max_activations=2)
        first = await manager.activate(license.license_key, "host-1")
        clock.advance(timedelta(hours=1))
        second = await manager.activate(license.license_key, "host-1")

        stored = await manager.get_license(license.license_key)
        assert second.id == first.id
        assert second.last_seen_at == clock.now()
        assert stored.activation_count == 1
        assert len(event_bus.of_type(LicenseActivated)) == 1

    async def test_limit_deactivate_reactivate_scenario(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com", max_activations=2)

        await manager.activate(license.license_key, "A")
        await manager.activate(license.license_key, "B")
        with pytest.raises(ActivationLimitError):
            await manager.activate(license.license_key, "C")

        await manager.deactivate(license.license_key, "A")
        activation = await manager.activate(license.license_key, "C")

        stored = await manager.get_license(license.license_key)
        assert activation.is_active
        assert stored.activation_count == 2

    async def test_limit_error_reports_usage(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.activate(license.license_key, "A")

        with pytest.raises(ActivationLimitError, match="1 of 1"):
            await manager.activate(license.license_key, "B")

    async def test_activate_unknown_key(self, manager):
        with pytest.raises(LicenseNotFoundError):
            await manager.activate("AAAA-BBBB-CCCC-DDDD", "host-1")

    async def test_activate_blank_fingerprint(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        with pytest.raises(ValidationError):
            await manager.activate(license.license_key, "  ")

    async def test_activate_suspended(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.suspend(license.license_key)
        with pytest.raises(LicenseSuspendedError):
            await manager.activate(license.license_key, "host-1")

    async def test_activate_revoked(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.revoke(license.license_key, reason="refund")
        with pytest.raises(LicenseRevokedError):
            await manager.activate(license.license_key, "host-1")

    async def test_activate_after_expiry(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=30)
        clock.advance(timedelta(days=30))
        with pytest.raises(ExpiredError):
            await manager.activate(license.license_key, "host-1")

    async def test_deactivate_releases_slot(self, manager, product, clock, event_bus):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.activate(license.license_key, "host-1")
        released = await manager.deactivate(license.license_key, "host-1")

        stored = await manager.get_license(license.license_key)
        assert not released.is_active
        assert released.deactivated_at == clock.now()
        assert stored.activation_count == 0
        assert len(event_bus.of_type(LicenseDeactivated)) == 1

    async def test_deactivate_unknown_machine(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        with pytest.raises(ActivationNotFoundError):
            await manager.deactivate(license.license_key, "host-1")

    async def test_deactivate_twice(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.activate(license.license_key, "host-1")
        await manager.deactivate(license.license_key, "host-1")

        with pytest.raises(ActivationNotFoundError):
            await manager.deactivate(license.license_key, "host-1")
        assert (await manager.get_license(license.license_key)).activation_count == 0

    async def test_deactivate_allowed_after_expiry(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=1)
        await manager.activate(license.license_key, "host-1")
        clock.advance(timedelta(days=2))

        await manager.deactivate(license.license_key, "host-1")
        assert (await manager.get_license(license.license_key)).activation_count == 0

    async def test_heartbeat_touches_activation(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.activate(license.license_key, "host-1")
        clock.advance(timedelta(minutes=5))

        activation = await manager.heartbeat(license.license_key, "host-1")
        assert activation.last_seen_at == clock.now()

    async def test_heartbeat_requires_activation(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        with pytest.raises(ActivationNotFoundError):
            await manager.heartbeat(license.license_key, "host-1")

    @pytest.mark.parametrize("fingerprint", ["", "   ", "x" * 256])
    async def test_deactivate_and_heartbeat_validate_fingerprint(
        self, manager, product, fingerprint
    ):
        license = await manager.issue(product.id, "buyer@example.com")
        with pytest.raises(ValidationError):
            await manager.deactivate(license.license_key, fingerprint)
        with pytest.raises(ValidationError):
            await manager.heartbeat(license.license_key, fingerprint)

    async def test_heartbeat_rejects_suspended(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.activate(license.license_key, "host-1")
        await manager.suspend(license.license_key)
        with pytest.raises(LicenseSuspendedError):
            await manager.heartbeat(license.license_key, "host-1")

    async def test_reset_activations(self, manager, product, event_bus):
        license = await manager.issue(product.id, "buyer@example.com", max_activations=3)
        for host in ("A", "B", "C"):
            await manager.activate(license.license_key, host)

        released = await manager.reset_activations(license.license_key, actor="admin:ops")

        stored = await manager.get_license(license.license_key)
        assert released == 3
        assert stored.activation_count == 0
        deactivations = event_bus.of_type(LicenseDeactivated)
        assert {event.actor for event in deactivations} == {"admin:ops"}


@pytest.mark.asyncio
class TestDownloads:
    """Tests for download accounting."""

    async def test_record_download(self, manager, product, clock, event_bus):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.record_download(license.license_key)
        updated = await manager.record_download(license.license_key)

        assert updated.download_count == 2
        assert updated.last_downloaded_at == clock.now()
        assert event_bus.of_type(LicenseDownloaded)[-1].download_count == 2

    async def test_download_requires_usable_license(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=1)
        clock.advance(timedelta(days=1))
        with pytest.raises(ExpiredError):
            await manager.record_download(license.license_key)


@pytest.mark.asyncio
class TestTransitions:
    """Tests for suspend, reinstate and revoke."""

    async def test_suspend_and_reinstate(self, manager, product, event_bus):
        license = await manager.issue(product.id, "buyer@example.com")

        suspended = await manager.suspend(license.license_key, actor="admin:ops")
        assert suspended.status == LicenseStatus.SUSPENDED
        reinstated = await manager.reinstate(license.license_key)
        assert reinstated.status == LicenseStatus.ACTIVE

        assert event_bus.of_type(LicenseSuspended)[0].actor == "admin:ops"
        assert len(event_bus.of_type(LicenseReinstated)) == 1

    async def test_reinstate_requires_suspended(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        with pytest.raises(InvalidTransitionError):
            await manager.reinstate(license.license_key)

    async def test_suspend_twice(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.suspend(license.license_key)
        with pytest.raises(InvalidTransitionError):
            await manager.suspend(license.license_key)

    async def test_revoke_is_terminal(self, manager, product, event_bus):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.suspend(license.license_key)
        revoked = await manager.revoke(license.license_key, reason=" chargeback ", actor="billing")

        assert revoked.status == LicenseStatus.REVOKED
        event = event_bus.of_type(LicenseRevoked)[0]
        assert event.reason == "chargeback"
        assert event.actor == "billing"
        for operation in (manager.suspend, manager.reinstate):
            with pytest.raises(InvalidTransitionError):
                await operation(license.license_key)
        with pytest.raises(InvalidTransitionError):
            await manager.revoke(license.license_key, reason="again")

    async def test_revoke_requires_reason(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        with pytest.raises(ValidationError):
            await manager.revoke(license.license_key, reason="  ")

    async def test_revoked_license_still_readable(self, manager, product):
        license = await manager.issue(product.id, "buyer@example.com")
        await manager.revoke(license.license_key, reason="fraud")

        stored = await manager.get_license(license.license_key)
        assert manager.effective_status(stored) == LicenseStatus.REVOKED

    async def test_revoked_after_expiry_reads_expired(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=1)
        await manager.revoke(license.license_key, reason="fraud")
        clock.advance(timedelta(days=1))

        stored = await manager.get_license(license.license_key)
        assert manager.effective_status(stored) == LicenseStatus.EXPIRED


@pytest.mark.asyncio
class TestRenewAndExpiry:
    """Tests for renewals and expiry housekeeping."""

    async def test_renew_extends(self, manager, product, clock, event_bus):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=30)
        new_end = clock.now() + timedelta(days=60)

        renewed = await manager.renew(license.license_key, new_end)

        assert renewed.expires_at == new_end
        assert event_bus.of_type(LicenseRenewed)[0].new_expiration == new_end

    async def test_renew_restores_expired_license(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=30)
        clock.advance(timedelta(days=31))
        assert await manager.expire_overdue() == 1
        assert (await manager.get_license(license.license_key)).status == LicenseStatus.EXPIRED

        renewed = await manager.renew(license.license_key, clock.now() + timedelta(days=30))

        assert renewed.status == LicenseStatus.ACTIVE
        assert manager.effective_status(renewed) == LicenseStatus.ACTIVE
        await manager.activate(license.license_key, "host-1")

    async def test_renew_keeps_suspended(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=30)
        await manager.suspend(license.license_key)

        renewed = await manager.renew(license.license_key, clock.now() + timedelta(days=60))
        assert renewed.status == LicenseStatus.SUSPENDED

    async def test_renew_never_shortens(self, manager, product, clock, event_bus):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=365)

        renewed = await manager.renew(license.license_key, clock.now() + timedelta(days=10))

        stored = await manager.get_license(license.license_key)
        assert renewed.expires_at == stored.expires_at == license.expires_at
        assert event_bus.of_type(LicenseRenewed) == []

    async def test_racing_renewals_keep_latest_expiry(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=30)
        later = clock.now() + timedelta(days=60)
        sooner = clock.now() + timedelta(days=40)

        await asyncio.gather(
            manager.renew(license.license_key, later),
            manager.renew(license.license_key, sooner),
        )

        assert (await manager.get_license(license.license_key)).expires_at == later

    async def test_renew_rejects_past(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=30)
        with pytest.raises(ValidationError):
            await manager.renew(license.license_key, clock.now())

    async def test_renew_rejects_revoked(self, manager, product, clock):
        license = await manager.issue(product.id, "buyer@example.com", duration_days=30)
        await manager.revoke(license.license_key, reason="fraud")
        with pytest.raises(InvalidTransitionError):
            await manager.renew(license.license_key, clock.now() + timedelta(days=1))

    async def test_expire_overdue(self, manager, product, clock, event_bus):
        short = await manager.issue(product.id, "a@example.com", duration_days=1)
        await manager.issue(product.id, "b@example.com", duration_days=10)
        await manager.issue(product.id, "c@example.com")
        suspended = await manager.issue(product.id, "d@example.com", duration_days=1)
        await manager.suspend(suspended.license_key)
        clock.advance(timedelta(days=1))

        assert await manager.expire_overdue() == 1
        assert await manager.expire_overdue() == 0

        assert (await manager.get_license(short.license_key)).status == LicenseStatus.EXPIRED
        stored_suspended = await manager.get_license(suspended.license_key)
        assert stored_suspended.status == LicenseStatus.SUSPENDED
        assert [e.license_key for e in event_bus.of_type(LicenseExpired)] == [short.license_key]
