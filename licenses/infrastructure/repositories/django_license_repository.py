"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
Status and counter changes are single conditional UPDATE statements so
the database, not the caller, decides whether they apply.
"""
import uuid
from datetime import datetime
from typing import Iterable, List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import Case, CharField, F, Q, Value, When

from core.domain.exceptions import LicenseKeyConflictError, StorageError
from core.domain.value_objects import Email, LicenseStatus
from core.infrastructure.database import translate_database_errors
from licenses.domain.license import License
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Inserts new licenses, mapping key collisions to a domain error
    3. Applies conditional updates and re-reads the affected row
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            id=model.id,
            license_key=model.license_key,
            product_id=model.product_id,
            order_id=model.order_id,
            customer_email=Email(model.customer_email),
            status=LicenseStatus(model.status),
            max_activations=model.max_activations,
            activation_count=model.activation_count,
            download_count=model.download_count,
            expires_at=model.expires_at,
            last_activated_at=model.last_activated_at,
            last_downloaded_at=model.last_downloaded_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _reload(self, license_id: uuid.UUID) -> License:
        return self._to_domain(LicenseModel.objects.get(id=license_id))

    @sync_to_async
    @translate_database_errors
    def add(self, license: License) -> License:
        """
        Insert a new license.

        Args:
            license: License entity to insert

        Returns:
            Saved license entity
        """
        try:
            with transaction.atomic():
                model = LicenseModel.objects.create(
                    id=license.id,
                    license_key=license.license_key,
                    product_id=license.product_id,
                    order_id=license.order_id,
                    customer_email=str(license.customer_email),
                    status=license.status.value,
                    max_activations=license.max_activations,
                    activation_count=license.activation_count,
                    download_count=license.download_count,
                    expires_at=license.expires_at,
                    last_activated_at=license.last_activated_at,
                    last_downloaded_at=license.last_downloaded_at,
                    created_at=license.created_at,
                    updated_at=license.updated_at,
                )
        except IntegrityError as e:
            if LicenseModel.objects.filter(license_key=license.license_key).exists():
                raise LicenseKeyConflictError(
                    f"License key {license.license_key} already exists"
                ) from e
            raise StorageError(f"Could not insert license: {e}") from e
        return self._to_domain(model)

    @sync_to_async
    @translate_database_errors
    def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        try:
            model = LicenseModel.objects.get(id=license_id)
            return self._to_domain(model)
        except LicenseModel.DoesNotExist:
            return None

    @sync_to_async
    @translate_database_errors
    def find_by_key(self, license_key: str) -> Optional[License]:
        """
        Find a license by its key.

        Args:
            license_key: Normalized license key

        Returns:
            License entity or None if not found
        """
        try:
            model = LicenseModel.objects.get(license_key=license_key)
            return self._to_domain(model)
        except LicenseModel.DoesNotExist:
            return None

    @sync_to_async
    @translate_database_errors
    def transition_status(
        self,
        license_id: uuid.UUID,
        from_statuses: Iterable[LicenseStatus],
        to_status: LicenseStatus,
        now: datetime,
    ) -> Optional[License]:
        updated = LicenseModel.objects.filter(
            id=license_id, status__in=[status.value for status in from_statuses]
        ).update(status=to_status.value, updated_at=now)
        if not updated:
            return None
        return self._reload(license_id)

    @sync_to_async
    @translate_database_errors
    def extend(
        self,
        license_id: uuid.UUID,
        expires_at: datetime,
        now: datetime,
        allow_earlier: bool = False,
    ) -> Optional[License]:
        queryset = LicenseModel.objects.filter(id=license_id).exclude(
            status=LicenseStatus.REVOKED.value
        )
        if not allow_earlier:
            queryset = queryset.filter(Q(expires_at__isnull=True) | Q(expires_at__lt=expires_at))
        updated = queryset.update(
            expires_at=expires_at,
            status=Case(
                When(
                    status=LicenseStatus.EXPIRED.value,
                    then=Value(LicenseStatus.ACTIVE.value),
                ),
                default=F("status"),
                output_field=CharField(),
            ),
            updated_at=now,
        )
        if not updated:
            return None
        return self._reload(license_id)

    @sync_to_async
    @translate_database_errors
    def record_download(self, license_id: uuid.UUID, now: datetime) -> Optional[License]:
        updated = (
            LicenseModel.objects.usable(now)
            .filter(id=license_id)
            .update(
                download_count=F("download_count") + 1,
                last_downloaded_at=now,
                updated_at=now,
            )
        )
        if not updated:
            return None
        return self._reload(license_id)

    @sync_to_async
    @translate_database_errors
    def mark_expired(self, license_id: uuid.UUID, now: datetime) -> Optional[License]:
        updated = (
            LicenseModel.objects.overdue(now)
            .filter(id=license_id)
            .update(status=LicenseStatus.EXPIRED.value, updated_at=now)
        )
        if not updated:
            return None
        return self._reload(license_id)

    @sync_to_async
    @translate_database_errors
    def find_overdue(self, now: datetime) -> List[License]:
        """
        Find licenses stored as active whose expiry has been reached.

        Args:
            now: Current time

        Returns:
            List of License entities, oldest expiry first
        """
        models = LicenseModel.objects.overdue(now).order_by("expires_at")
        return [self._to_domain(model) for model in models]
