"""
Wiring of the lifecycle manager to its Django adapters.
"""
from typing import Optional

from django.conf import settings

from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationRepository,
)
from core.domain.clock import Clock
from core.domain.events import EventBus
from licenses.application.services.lifecycle_manager import (
    DEFAULT_KEY_GENERATION_ATTEMPTS,
    LicenseLifecycleManager,
)
from licenses.infrastructure.repositories.django_license_repository import (
    DjangoLicenseRepository,
)
from products.infrastructure.repositories.django_product_repository import (
    DjangoProductRepository,
)
from subscriptions.infrastructure.repositories.django_subscription_repository import (
    DjangoSubscriptionRepository,
)


def build_lifecycle_manager(
    clock: Optional[Clock] = None, event_bus: Optional[EventBus] = None
) -> LicenseLifecycleManager:
    """
    Build a manager backed by the Django ORM.

    Args:
        clock: Clock override, the system clock by default
        event_bus: Event bus override, the process-wide bus by default
    """
    if event_bus is None:
        from core.infrastructure.events import event_bus

    return LicenseLifecycleManager(
        license_repository=DjangoLicenseRepository(),
        activation_repository=DjangoActivationRepository(),
        subscription_repository=DjangoSubscriptionRepository(),
        product_repository=DjangoProductRepository(),
        event_bus=event_bus,
        clock=clock,
        key_generation_attempts=getattr(
            settings, "LICENSE_KEY_GENERATION_ATTEMPTS", DEFAULT_KEY_GENERATION_ATTEMPTS
        ),
    )
