"""
Event handlers for domain events.

These handlers run after a lifecycle change has been committed and
record it for later inspection.
"""

import logging
import uuid

from asgiref.sync import sync_to_async

from activations.domain.events import LicenseActivated, LicenseDeactivated
from core.domain.events import DomainEvent, EventHandler
from licenses.domain.events import (
    LicenseDownloaded,
    LicenseExpired,
    LicenseIssued,
    LicenseReinstated,
    LicenseRenewed,
    LicenseRevoked,
    LicenseSuspended,
)
from subscriptions.domain.events import (
    SubscriptionCanceled,
    SubscriptionPastDue,
    SubscriptionReactivated,
    SubscriptionStarted,
)

logger = logging.getLogger(__name__)

AUDITED_EVENTS = (
    LicenseIssued,
    LicenseActivated,
    LicenseDeactivated,
    LicenseDownloaded,
    LicenseRenewed,
    LicenseSuspended,
    LicenseReinstated,
    LicenseRevoked,
    LicenseExpired,
    SubscriptionStarted,
    SubscriptionCanceled,
    SubscriptionReactivated,
    SubscriptionPastDue,
)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes one AuditLog row per domain event.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        logger.info(
            "Audit log: %s - %s", event.event_type, event.aggregate_id, extra=event.to_dict()
        )
        await self._write(event)

    @sync_to_async
    def _write(self, event: DomainEvent) -> None:
        from licenses.infrastructure.models import AuditLog

        AuditLog.objects.create(
            entity_type=event.entity_type,
            entity_id=uuid.UUID(event.aggregate_id),
            action=event.event_type,
            changes=event.payload(),
            actor=event.actor,
            created_at=event.occurred_at,
        )


def register_event_handlers(bus=None):
    """Register all event handlers with the event bus."""
    if bus is None:
        from core.infrastructure.events import event_bus as bus

    audit_handler = AuditLogEventHandler()
    for event_type in AUDITED_EVENTS:
        bus.subscribe(event_type, audit_handler)

    logger.info("Event handlers registered")
