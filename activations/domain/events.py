"""
Activation domain events.

Domain events represent something that happened in the activation domain.
"""
import uuid
from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent


class ActivationEvent(DomainEvent):
    """Common constructor for activation events."""

    entity_type = "activation"

    def __init__(
        self,
        activation_id: uuid.UUID,
        license_id: uuid.UUID,
        license_key: str,
        machine_fingerprint: str,
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize activation event.

        Args:
            activation_id: Activation UUID
            license_id: License UUID
            license_key: License key string
            machine_fingerprint: Machine fingerprint
            actor: Who triggered the change
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at,
            aggregate_id=str(activation_id),
            event_type=type(self).__name__,
        )
        self.activation_id = activation_id
        self.license_id = license_id
        self.license_key = license_key
        self.machine_fingerprint = machine_fingerprint
        self._actor = actor

    def payload(self):
        return {
            "license_id": str(self.license_id),
            "license_key": self.license_key,
            "machine_fingerprint": self.machine_fingerprint,
        }


class LicenseActivated(ActivationEvent):
    """Event raised when a machine takes an activation slot."""


class LicenseDeactivated(ActivationEvent):
    """Event raised when a machine releases its activation slot."""
