"""
License repository port (interface).

This defines the contract for license persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional
import uuid

from core.domain.value_objects import LicenseStatus
from licenses.domain.license import License


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    Every mutation is a conditional update evaluated by storage, so
    concurrent managers sharing one database cannot lose updates.
    """

    @abstractmethod
    async def add(self, license: License) -> License:
        """
        Insert a new license.

        Args:
            license: License entity to insert

        Returns:
            Saved license entity

        Raises:
            LicenseKeyConflictError: If the license key is already taken
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_key(self, license_key: str) -> Optional[License]:
        """
        Find a license by its key.

        Args:
            license_key: Normalized license key

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def transition_status(
        self,
        license_id: uuid.UUID,
        from_statuses: Iterable[LicenseStatus],
        to_status: LicenseStatus,
        now: datetime,
    ) -> Optional[License]:
        """
        Change the stored status if it is still one of ``from_statuses``.

        Returns:
            Updated license, or None if the stored status did not match
        """
        pass

    @abstractmethod
    async def extend(
        self,
        license_id: uuid.UUID,
        expires_at: datetime,
        now: datetime,
        allow_earlier: bool = False,
    ) -> Optional[License]:
        """
        Move expires_at and turn a stored expired status back to active.

        Revoked licenses are left untouched. Unless allow_earlier is set,
        expires_at only moves forward.

        Returns:
            Updated license, or None if the license is revoked or already
            expires at or after expires_at
        """
        pass

    @abstractmethod
    async def record_download(self, license_id: uuid.UUID, now: datetime) -> Optional[License]:
        """
        Increment download_count if the license is active and unexpired.

        Returns:
            Updated license, or None if the license was not usable
        """
        pass

    @abstractmethod
    async def mark_expired(self, license_id: uuid.UUID, now: datetime) -> Optional[License]:
        """
        Store the expired status if the license is still active and its
        expires_at has been reached at ``now``.

        Returns:
            Updated license, or None if it was renewed or changed meanwhile
        """
        pass

    @abstractmethod
    async def find_overdue(self, now: datetime) -> List[License]:
        """
        Find licenses stored as active whose expires_at has been reached.

        Returns:
            List of License entities
        """
        pass
