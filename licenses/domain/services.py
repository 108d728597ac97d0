"""
License domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""
from datetime import datetime
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from core.domain.exceptions import (
    ExpiredError,
    InvalidTransitionError,
    LicenseRevokedError,
    LicenseSuspendedError,
)
from core.domain.value_objects import LicenseStatus
from licenses.domain.license import License
from licenses.domain.license_key import generate_license_key


class LicenseKeyGenerator:
    """Domain service for license key generation."""

    def __init__(self, generate: Optional[Callable[[], str]] = None):
        self._generate = generate or generate_license_key

    def generate(self) -> str:
        """
        Generate a license key.

        Returns:
            Generated license key string
        """
        return self._generate()


class LicenseValidator:
    """Domain service for license validation."""

    @staticmethod
    def validate_license(license: License, now: datetime) -> Tuple[bool, Optional[str]]:
        """
        Validate a license.

        Args:
            license: License entity to validate
            now: Current time

        Returns:
            Tuple of (is_valid, error_message)
        """
        status = license.effective_status(now)
        if status == LicenseStatus.ACTIVE:
            return True, None
        if status == LicenseStatus.EXPIRED:
            return False, "License has expired"
        if status == LicenseStatus.SUSPENDED:
            return False, "License is suspended"
        if status == LicenseStatus.REVOKED:
            return False, "License is revoked"
        return False, "License is not valid"

    @staticmethod
    def ensure_usable(license: License, now: datetime) -> None:
        """
        Raise the ExpiredError variant matching why a license is unusable.

        Raises:
            ExpiredError: Expired by time or stored status
            LicenseSuspendedError: License is suspended
            LicenseRevokedError: License is revoked
        """
        is_valid, error = LicenseValidator.validate_license(license, now)
        if is_valid:
            return
        status = license.effective_status(now)
        if status == LicenseStatus.SUSPENDED:
            raise LicenseSuspendedError(f"License {license.license_key} is suspended")
        if status == LicenseStatus.REVOKED:
            raise LicenseRevokedError(f"License {license.license_key} is revoked")
        raise ExpiredError(f"License {license.license_key}: {error}")


class LicenseTransitions:
    """Stored-status transitions performed by administrators and billing."""

    SUSPEND = "suspend"
    REINSTATE = "reinstate"
    REVOKE = "revoke"
    EXPIRE = "expire"

    _RULES: Dict[str, Tuple[FrozenSet[LicenseStatus], LicenseStatus]] = {
        SUSPEND: (frozenset({LicenseStatus.ACTIVE}), LicenseStatus.SUSPENDED),
        REINSTATE: (frozenset({LicenseStatus.SUSPENDED}), LicenseStatus.ACTIVE),
        REVOKE: (
            frozenset({LicenseStatus.ACTIVE, LicenseStatus.SUSPENDED}),
            LicenseStatus.REVOKED,
        ),
        EXPIRE: (frozenset({LicenseStatus.ACTIVE}), LicenseStatus.EXPIRED),
    }

    @classmethod
    def rule(cls, transition: str) -> Tuple[FrozenSet[LicenseStatus], LicenseStatus]:
        """Return (allowed source statuses, target status)."""
        return cls._RULES[transition]

    @classmethod
    def check(cls, license: License, transition: str) -> LicenseStatus:
        """
        Validate a transition against the stored status.

        Returns:
            Target status

        Raises:
            InvalidTransitionError: If the stored status does not allow it
        """
        sources, target = cls.rule(transition)
        if license.status not in sources:
            raise InvalidTransitionError(
                f"Cannot {transition} license {license.license_key} "
                f"from status {license.status.value}"
            )
        return target
