"""
Activation repository port (interface).

This defines the contract for activation persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
import uuid

from activations.domain.activation import Activation


class ActivationRepository(ABC):
    """
    Abstract repository for Activation entities.

    Seat accounting lives here because claiming and releasing a seat
    changes the activation row and the license's activation_count in
    one storage transaction.
    """

    @abstractmethod
    async def claim_seat(self, activation: Activation, now: datetime) -> Optional[Activation]:
        """
        Atomically take an activation slot and store a new activation.

        The license's activation_count is incremented only if it is below
        max_activations and the license is active and not expired at
        ``now``; the insert happens in the same transaction.

        Args:
            activation: New activation entity
            now: Current time

        Returns:
            Saved activation, or None if no slot could be claimed

        Raises:
            DuplicateActivationError: The machine already holds an
                active activation on this license
        """
        pass

    @abstractmethod
    async def release_seat(self, activation: Activation, now: datetime) -> Optional[Activation]:
        """
        Atomically deactivate an activation and give its slot back.

        Args:
            activation: Active activation entity
            now: Current time

        Returns:
            Deactivated activation, or None if it was no longer active
        """
        pass

    @abstractmethod
    async def touch(self, activation_id: uuid.UUID, now: datetime) -> Optional[Activation]:
        """
        Update last_seen_at of an active activation.

        Returns:
            Updated activation, or None if it is no longer active
        """
        pass

    @abstractmethod
    async def find_by_id(self, activation_id: uuid.UUID) -> Optional[Activation]:
        """
        Find an activation by ID.

        Args:
            activation_id: Activation UUID

        Returns:
            Activation entity or None if not found
        """
        pass

    @abstractmethod
    async def find_active(
        self, license_id: uuid.UUID, machine_fingerprint: str
    ) -> Optional[Activation]:
        """
        Find the active activation of a machine on a license.

        Args:
            license_id: License UUID
            machine_fingerprint: Machine fingerprint

        Returns:
            Activation entity or None if not found
        """
        pass

    @abstractmethod
    async def find_active_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        """
        Find all active activations for a license.

        Args:
            license_id: License UUID

        Returns:
            List of active Activation entities
        """
        pass
