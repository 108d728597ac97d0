"""
Fixtures for tests that run against the database.

Tests here are synchronous and drive the async code through
async_to_sync, so every ORM call runs on the test thread inside the
test transaction.
"""

from decimal import Decimal

import pytest
from django.utils import timezone

from core.domain.clock import FrozenClock
from licenses.infrastructure.container import build_lifecycle_manager
from products.infrastructure.models import Product as ProductModel


@pytest.fixture
def db_clock():
    """Fixture for a clock frozen at the current time."""
    return FrozenClock(timezone.now())


@pytest.fixture
def db_manager(db, db_clock):
    """Fixture for a lifecycle manager backed by the Django ORM."""
    return build_lifecycle_manager(clock=db_clock)


@pytest.fixture
def db_product(db):
    """Fixture for a stored two-seat product."""
    return ProductModel.objects.create(
        name="Source Studio",
        price=Decimal("49.00"),
        max_activations=2,
    )


@pytest.fixture
def db_subscription_product(db):
    """Fixture for a stored yearly subscription product."""
    return ProductModel.objects.create(
        name="Source Studio Cloud",
        price=Decimal("99.00"),
        license_type="subscription",
        max_activations=3,
        license_duration_days=365,
    )
