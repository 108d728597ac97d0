"""
Django implementation of ActivationRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import F

from activations.domain.activation import Activation, MachineMetadata
from activations.infrastructure.models import Activation as ActivationModel
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import DuplicateActivationError, StorageError
from core.domain.value_objects import MachineFingerprint
from core.infrastructure.database import translate_database_errors
from licenses.infrastructure.models import License as LicenseModel


class DjangoActivationRepository(ActivationRepository):
    """
    Django ORM implementation of ActivationRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Claims and releases seats with conditional counter updates
    3. Relies on the partial unique index to reject duplicate machines
    """

    def _to_domain(self, model: ActivationModel) -> Activation:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Activation model

        Returns:
            Activation domain entity
        """
        return Activation(
            id=model.id,
            license_id=model.license_id,
            machine_fingerprint=MachineFingerprint(model.machine_fingerprint),
            metadata=MachineMetadata(
                machine_name=model.machine_name,
                os_info=model.os_info,
                ip_address=model.ip_address,
                user_agent=model.user_agent,
                system_info=model.system_info or {},
            ),
            is_active=model.active,
            activated_at=model.activated_at,
            last_seen_at=model.last_seen_at,
            deactivated_at=model.deactivated_at,
        )

    @sync_to_async
    @translate_database_errors
    def claim_seat(self, activation: Activation, now: datetime) -> Optional[Activation]:
        """
        Atomically take an activation slot and store a new activation.

        Args:
            activation: New activation entity
            now: Current time

        Returns:
            Saved activation, or None if no slot could be claimed
        """
        fingerprint = str(activation.machine_fingerprint)
        try:
            with transaction.atomic():
                claimed = (
                    LicenseModel.objects.usable(now)
                    .filter(
                        id=activation.license_id,
                        activation_count__lt=F("max_activations"),
                    )
                    .update(
                        activation_count=F("activation_count") + 1,
                        last_activated_at=now,
                        updated_at=now,
                    )
                )
                if not claimed:
                    return None
                model = ActivationModel.objects.create(
                    id=activation.id,
                    license_id=activation.license_id,
                    machine_fingerprint=fingerprint,
                    machine_name=activation.metadata.machine_name,
                    os_info=activation.metadata.os_info,
                    ip_address=activation.metadata.ip_address,
                    user_agent=activation.metadata.user_agent,
                    system_info=activation.metadata.system_info,
                    active=True,
                    activated_at=activation.activated_at,
                    last_seen_at=activation.last_seen_at,
                )
        except IntegrityError as e:
            # The counter increment above was rolled back with the insert.
            if ActivationModel.objects.filter(
                license_id=activation.license_id,
                machine_fingerprint=fingerprint,
                active=True,
            ).exists():
                raise DuplicateActivationError(
                    f"Machine {fingerprint} is already activated"
                ) from e
            raise StorageError(f"Could not store activation: {e}") from e
        return self._to_domain(model)

    @sync_to_async
    @translate_database_errors
    def release_seat(self, activation: Activation, now: datetime) -> Optional[Activation]:
        """
        Atomically deactivate an activation and give its slot back.

        Args:
            activation: Active activation entity
            now: Current time

        Returns:
            Deactivated activation, or None if it was no longer active
        """
        with transaction.atomic():
            released = ActivationModel.objects.filter(id=activation.id, active=True).update(
                active=False, deactivated_at=now, last_seen_at=now
            )
            if not released:
                return None
            LicenseModel.objects.filter(
                id=activation.license_id, activation_count__gt=0
            ).update(activation_count=F("activation_count") - 1, updated_at=now)
        return self._to_domain(ActivationModel.objects.get(id=activation.id))

    @sync_to_async
    @translate_database_errors
    def touch(self, activation_id: uuid.UUID, now: datetime) -> Optional[Activation]:
        touched = ActivationModel.objects.filter(id=activation_id, active=True).update(
            last_seen_at=now
        )
        if not touched:
            return None
        return self._to_domain(ActivationModel.objects.get(id=activation_id))

    @sync_to_async
    @translate_database_errors
    def find_by_id(self, activation_id: uuid.UUID) -> Optional[Activation]:
        """
        Find an activation by ID.

        Args:
            activation_id: Activation UUID

        Returns:
            Activation entity or None if not found
        """
        try:
            model = ActivationModel.objects.get(id=activation_id)
            return self._to_domain(model)
        except ActivationModel.DoesNotExist:
            return None

    @sync_to_async
    @translate_database_errors
    def find_active(
        self, license_id: uuid.UUID, machine_fingerprint: str
    ) -> Optional[Activation]:
        """
        Find the active activation of a machine on a license.

        Args:
            license_id: License UUID
            machine_fingerprint: Machine fingerprint

        Returns:
            Activation entity or None if not found
        """
        model = ActivationModel.objects.filter(
            license_id=license_id,
            machine_fingerprint=machine_fingerprint,
            active=True,
        ).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    @translate_database_errors
    def find_active_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        models = ActivationModel.objects.filter(license_id=license_id, active=True)
        return [self._to_domain(model) for model in models]
