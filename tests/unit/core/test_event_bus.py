"""
Unit tests for domain events and the in-memory event bus.
"""

import uuid

import pytest

from activations.domain.events import LicenseActivated
from core.domain.events import EventHandler
from core.infrastructure.events import InMemoryEventBus
from licenses.domain.events import LicenseIssued, LicenseRevoked, LicenseSuspended


class CollectingHandler(EventHandler):
    def __init__(self):
        self.seen = []

    async def handle(self, event):
        self.seen.append(event)


class FailingHandler(EventHandler):
    async def handle(self, event):
        raise RuntimeError("handler down")


class TestDomainEvents:
    """Tests for event payloads."""

    def test_event_type_and_aggregate(self):
        license_id = uuid.uuid4()
        event = LicenseSuspended(license_id, "ABCD-EFGH-IJKL-MNOP", actor="admin:root")

        assert event.event_type == "LicenseSuspended"
        assert event.aggregate_id == str(license_id)
        assert event.actor == "admin:root"
        assert event.entity_type == "license"
        assert event.occurred_at is not None

    def test_revoked_payload_carries_reason(self):
        event = LicenseRevoked(uuid.uuid4(), "ABCD-EFGH-IJKL-MNOP", reason="chargeback")
        data = event.to_dict()

        assert data["event_type"] == "LicenseRevoked"
        assert data["actor"] == "system"
        assert data["data"] == {"license_key": "ABCD-EFGH-IJKL-MNOP", "reason": "chargeback"}

    def test_activation_event_is_keyed_by_activation(self):
        activation_id = uuid.uuid4()
        event = LicenseActivated(
            activation_id=activation_id,
            license_id=uuid.uuid4(),
            license_key="ABCD-EFGH-IJKL-MNOP",
            machine_fingerprint="host-1",
        )

        assert event.entity_type == "activation"
        assert event.aggregate_id == str(activation_id)
        assert event.payload()["machine_fingerprint"] == "host-1"


@pytest.mark.asyncio
class TestInMemoryEventBus:
    """Tests for InMemoryEventBus."""

    async def test_publish_reaches_subscribed_handler(self):
        bus = InMemoryEventBus()
        handler = CollectingHandler()
        bus.subscribe(LicenseSuspended, handler)

        event = LicenseSuspended(uuid.uuid4(), "ABCD-EFGH-IJKL-MNOP")
        await bus.publish(event)

        assert handler.seen == [event]

    async def test_handlers_only_get_their_event_type(self):
        bus = InMemoryEventBus()
        handler = CollectingHandler()
        bus.subscribe(LicenseIssued, handler)

        await bus.publish(LicenseSuspended(uuid.uuid4(), "ABCD-EFGH-IJKL-MNOP"))

        assert handler.seen == []

    async def test_same_handler_type_registered_once(self):
        bus = InMemoryEventBus()
        bus.subscribe(LicenseSuspended, CollectingHandler())
        bus.subscribe(LicenseSuspended, CollectingHandler())

        assert len(bus._handlers[LicenseSuspended]) == 1

    async def test_failing_handler_does_not_fail_publisher(self):
        bus = InMemoryEventBus()
        handler = CollectingHandler()
        bus.subscribe(LicenseSuspended, FailingHandler())
        bus.subscribe(LicenseSuspended, handler)

        await bus.publish(LicenseSuspended(uuid.uuid4(), "ABCD-EFGH-IJKL-MNOP"))

        assert len(handler.seen) == 1

    async def test_clear_drops_subscriptions(self):
        bus = InMemoryEventBus()
        handler = CollectingHandler()
        bus.subscribe(LicenseSuspended, handler)
        bus.clear()

        await bus.publish(LicenseSuspended(uuid.uuid4(), "ABCD-EFGH-IJKL-MNOP"))

        assert handler.seen == []
