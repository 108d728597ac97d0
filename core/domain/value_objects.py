"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
import re
from abc import ABC
from dataclasses import dataclass
from enum import Enum

from core.domain.exceptions import ValidationError

LICENSE_KEY_PATTERN = re.compile(r"^[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}$")


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class Email(ValueObject):
    """Email value object with validation."""

    value: str

    def __post_init__(self):
        """Validate email format."""
        if not self.value or "@" not in self.value:
            raise ValidationError(f"Invalid email address: {self.value}")
        local, _, domain = self.value.rpartition("@")
        if not local or not domain or " " in self.value:
            raise ValidationError(f"Invalid email address: {self.value}")

    def __str__(self) -> str:
        """Return email as string."""
        return self.value


@dataclass(frozen=True)
class MachineFingerprint(ValueObject):
    """Stable hardware/OS identifier of an activated machine."""

    value: str

    def __post_init__(self):
        """Validate fingerprint."""
        if not self.value or len(self.value.strip()) == 0:
            raise ValidationError("Machine fingerprint cannot be empty")
        if len(self.value) > 255:
            raise ValidationError("Machine fingerprint too long")

    def __str__(self) -> str:
        """Return fingerprint as string."""
        return self.value


class LicenseStatus(Enum):
    """License status value object."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    EXPIRED = "expired"
    REVOKED = "revoked"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class SubscriptionStatus(Enum):
    """Subscription status value object."""

    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"

    def __str__(self) -> str:
        return self.value

    @property
    def is_live(self) -> bool:
        """Live subscriptions still bill and keep the license renewing."""
        return self in (SubscriptionStatus.ACTIVE, SubscriptionStatus.PAST_DUE)


class LicenseType(Enum):
    """How a product is licensed."""

    ONE_TIME = "one_time"
    SUBSCRIPTION = "subscription"

    def __str__(self) -> str:
        return self.value
