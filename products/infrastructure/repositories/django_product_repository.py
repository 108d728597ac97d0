"""
Django implementation of ProductRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from typing import Optional

from asgiref.sync import sync_to_async

from core.domain.value_objects import LicenseType
from core.infrastructure.database import translate_database_errors
from products.domain.product import Product
from products.infrastructure.models import Product as ProductModel
from products.ports.product_repository import ProductRepository


class DjangoProductRepository(ProductRepository):
    """
    Django ORM implementation of ProductRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Implements repository interface
    """

    def _to_domain(self, model: ProductModel) -> Product:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Product model

        Returns:
            Product domain entity
        """
        return Product(
            id=model.id,
            name=model.name,
            price=model.price,
            currency=model.currency,
            license_type=LicenseType(model.license_type),
            max_activations=model.max_activations,
            license_duration_days=model.license_duration_days,
            version=model.version,
            active=model.active,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, product: Product) -> ProductModel:
        """
        Convert domain entity to Django model.

        Args:
            product: Product domain entity

        Returns:
            Django Product model
        """
        fields = {
            "name": product.name,
            "price": product.price,
            "currency": product.currency,
            "license_type": product.license_type.value,
            "max_activations": product.max_activations,
            "license_duration_days": product.license_duration_days,
            "version": product.version,
            "active": product.active,
            "updated_at": product.updated_at,
        }
        model, created = ProductModel.objects.get_or_create(
            id=product.id,
            defaults={**fields, "created_at": product.created_at},
        )
        # Update if exists
        if not created:
            for name, value in fields.items():
                setattr(model, name, value)
        return model

    @sync_to_async
    @translate_database_errors
    def save(self, product: Product) -> Product:
        """
        Save a product entity.

        Args:
            product: Product entity to save

        Returns:
            Saved product entity
        """
        model = self._to_model(product)
        model.save()
        return self._to_domain(model)

    @sync_to_async
    @translate_database_errors
    def find_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        """
        Find a product by ID.

        Args:
            product_id: Product UUID

        Returns:
            Product entity or None if not found
        """
        try:
            model = ProductModel.objects.get(id=product_id)
            return self._to_domain(model)
        except ProductModel.DoesNotExist:
            return None
