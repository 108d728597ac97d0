"""
Activation domain entity.

This is the core domain entity representing a license activation.
It contains business logic and is independent of infrastructure.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.value_objects import MachineFingerprint


@dataclass(frozen=True)
class MachineMetadata:
    """Descriptive machine details sent along with an activation request."""

    machine_name: Optional[str] = None
    os_info: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    system_info: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MachineMetadata":
        """Build metadata from a loosely shaped request payload."""
        if not data:
            return cls()
        known = {"machine_name", "os_info", "ip_address", "user_agent"}
        extra = {k: v for k, v in data.items() if k not in known and k != "system_info"}
        system_info = dict(data.get("system_info") or {})
        system_info.update(extra)
        return cls(
            machine_name=data.get("machine_name"),
            os_info=data.get("os_info"),
            ip_address=data.get("ip_address"),
            user_agent=data.get("user_agent"),
            system_info=system_info,
        )


@dataclass(frozen=True)
class Activation:
    """
    Activation domain entity.

    Represents one machine bound to a license.
    This is an immutable value object with business logic.
    """

    id: uuid.UUID
    license_id: uuid.UUID
    machine_fingerprint: MachineFingerprint
    metadata: MachineMetadata
    is_active: bool
    activated_at: datetime
    last_seen_at: datetime
    deactivated_at: Optional[datetime]

    def __post_init__(self):
        """Validate activation entity."""
        if not self.license_id:
            raise ValueError("License ID is required")
        if not self.machine_fingerprint:
            raise ValueError("Machine fingerprint is required")

    @classmethod
    def create(
        cls,
        license_id: uuid.UUID,
        machine_fingerprint: str,
        now: datetime,
        metadata: Optional[MachineMetadata] = None,
        activation_id: Optional[uuid.UUID] = None,
    ) -> "Activation":
        """
        Create a new Activation entity.

        Args:
            license_id: License UUID
            machine_fingerprint: Stable machine identifier
            now: Activation time
            metadata: Optional machine details
            activation_id: Optional UUID (generated if not provided)

        Returns:
            Activation entity instance
        """
        return cls(
            id=activation_id or uuid.uuid4(),
            license_id=license_id,
            machine_fingerprint=MachineFingerprint(machine_fingerprint),
            metadata=metadata or MachineMetadata(),
            is_active=True,
            activated_at=now,
            last_seen_at=now,
            deactivated_at=None,
        )

    def touch(self, now: datetime) -> "Activation":
        """
        Create a new Activation instance with updated last_seen_at.

        Returns:
            New Activation instance with updated timestamp
        """
        return replace(self, last_seen_at=now)

    def deactivate(self, now: datetime) -> "Activation":
        """
        Create a new Activation instance with deactivated status.

        Returns:
            New Activation instance with deactivated status
        """
        if not self.is_active:
            return self  # Already deactivated
        return replace(self, is_active=False, deactivated_at=now, last_seen_at=now)
