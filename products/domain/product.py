"""
Product domain entity.

This is the core domain entity representing a product.
It contains business logic and is independent of infrastructure.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from core.domain.value_objects import LicenseType


@dataclass(frozen=True)
class Product:
    """
    Product domain entity.

    Represents a product that can be licensed. Its license type, default
    activation limit and duration seed the licenses issued for it.
    """

    id: uuid.UUID
    name: str
    price: Decimal
    currency: str
    license_type: LicenseType
    max_activations: int
    license_duration_days: Optional[int]
    version: Optional[str]
    active: bool
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate product entity."""
        if not self.name or len(self.name.strip()) == 0:
            raise ValueError("Product name cannot be empty")
        if len(self.name) > 255:
            raise ValueError("Product name too long")
        if self.max_activations < 1:
            raise ValueError("Max activations must be at least 1")
        if self.license_duration_days is not None and self.license_duration_days < 0:
            raise ValueError("License duration cannot be negative")

    @classmethod
    def create(
        cls,
        name: str,
        price: Decimal = Decimal("0.00"),
        currency: str = "USD",
        license_type: LicenseType = LicenseType.ONE_TIME,
        max_activations: int = 1,
        license_duration_days: Optional[int] = None,
        version: Optional[str] = None,
        product_id: Optional[uuid.UUID] = None,
    ) -> "Product":
        """
        Create a new Product entity.

        Returns:
            Product entity instance
        """
        now = datetime.now(timezone.utc)
        return cls(
            id=product_id or uuid.uuid4(),
            name=name,
            price=price,
            currency=currency,
            license_type=license_type,
            max_activations=max_activations,
            license_duration_days=license_duration_days,
            version=version,
            active=True,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_recurring(self) -> bool:
        return self.license_type == LicenseType.SUBSCRIPTION
