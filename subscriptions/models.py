"""
Model registry for the subscriptions app; definitions live in the infrastructure layer.
"""
from subscriptions.infrastructure.models import Subscription  # noqa: F401
