"""
Model registry for the products app; definitions live in the infrastructure layer.
"""
from products.infrastructure.models import Product  # noqa: F401
