"""
Unit tests for Activation domain entity.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from activations.domain.activation import Activation, MachineMetadata
from core.domain.exceptions import ValidationError

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestActivationEntity:
    """Tests for Activation domain entity."""

    def test_create_activation(self):
        license_id = uuid.uuid4()
        activation = Activation.create(license_id=license_id, machine_fingerprint="host-1", now=NOW)

        assert activation.license_id == license_id
        assert str(activation.machine_fingerprint) == "host-1"
        assert activation.is_active
        assert activation.activated_at == NOW
        assert activation.last_seen_at == NOW
        assert activation.deactivated_at is None
        assert activation.metadata == MachineMetadata()

    def test_blank_fingerprint_rejected(self):
        with pytest.raises(ValidationError):
            Activation.create(license_id=uuid.uuid4(), machine_fingerprint="", now=NOW)

    def test_touch(self):
        activation = Activation.create(uuid.uuid4(), "host-1", NOW)
        later = NOW + timedelta(hours=1)

        assert activation.touch(later).last_seen_at == later
        assert activation.touch(later).activated_at == NOW

    def test_deactivate(self):
        activation = Activation.create(uuid.uuid4(), "host-1", NOW)
        later = NOW + timedelta(days=1)
        deactivated = activation.deactivate(later)

        assert not deactivated.is_active
        assert deactivated.deactivated_at == later
        assert deactivated.deactivate(later + timedelta(days=1)) is deactivated


class TestMachineMetadata:
    """Tests for MachineMetadata parsing."""

    def test_from_empty(self):
        assert MachineMetadata.from_dict(None) == MachineMetadata()

    def test_unknown_keys_go_to_system_info(self):
        metadata = MachineMetadata.from_dict(
            {
                "machine_name": "studio",
                "os_info": "Linux 6.8",
                "ip_address": "10.0.0.8",
                "system_info": {"cores": 8},
                "gpu": "none",
            }
        )

        assert metadata.machine_name == "studio"
        assert metadata.os_info == "Linux 6.8"
        assert metadata.ip_address == "10.0.0.8"
        assert metadata.system_info == {"cores": 8, "gpu": "none"}
