"""
Model registry for the activations app; definitions live in the infrastructure layer.
"""
from activations.infrastructure.models import Activation  # noqa: F401
