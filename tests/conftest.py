"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.domain.clock import FrozenClock
from core.domain.value_objects import LicenseType
from licenses.application.services.lifecycle_manager import LicenseLifecycleManager
from products.domain.product import Product
from tests.fakes import (
    InMemoryActivationRepository,
    InMemoryLicenseRepository,
    InMemoryProductRepository,
    InMemorySubscriptionRepository,
    RecordingEventBus,
)

START = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    """Fixture for a clock pinned to a known instant."""
    return FrozenClock(START)


@pytest.fixture
def license_repository():
    """Fixture for an in-memory LicenseRepository."""
    return InMemoryLicenseRepository()


@pytest.fixture
def activation_repository(license_repository):
    """Fixture for an in-memory ActivationRepository sharing license state."""
    return InMemoryActivationRepository(license_repository)


@pytest.fixture
def subscription_repository():
    """Fixture for an in-memory SubscriptionRepository."""
    return InMemorySubscriptionRepository()


@pytest.fixture
def product_repository():
    """Fixture for an in-memory ProductRepository."""
    return InMemoryProductRepository()


@pytest.fixture
def event_bus():
    """Fixture for an event bus that records what was published."""
    return RecordingEventBus()


@pytest.fixture
def manager(
    license_repository,
    activation_repository,
    subscription_repository,
    product_repository,
    event_bus,
    clock,
):
    """Fixture for a lifecycle manager over in-memory storage."""
    return LicenseLifecycleManager(
        license_repository=license_repository,
        activation_repository=activation_repository,
        subscription_repository=subscription_repository,
        product_repository=product_repository,
        event_bus=event_bus,
        clock=clock,
    )


@pytest.fixture
def product(product_repository):
    """Fixture for a perpetual single-seat product."""
    return product_repository.put(Product.create(name="Source Studio", price=Decimal("49.00")))


@pytest.fixture
def subscription_product(product_repository):
    """Fixture for a yearly three-seat subscription product."""
    return product_repository.put(
        Product.create(
            name="Source Studio Cloud",
            price=Decimal("99.00"),
            license_type=LicenseType.SUBSCRIPTION,
            max_activations=3,
            license_duration_days=365,
        )
    )
