"""
Unit tests for license key generation and parsing.
"""

import pytest

from core.domain.value_objects import LICENSE_KEY_PATTERN
from licenses.domain.license_key import (
    generate_license_key,
    is_well_formed,
    normalize_license_key,
)
from licenses.domain.services import LicenseKeyGenerator


def test_generated_keys_are_well_formed_and_unique():
    keys = [generate_license_key() for _ in range(10_000)]

    assert all(LICENSE_KEY_PATTERN.match(key) for key in keys)
    assert len(set(keys)) == len(keys)


@pytest.mark.parametrize(
    "key,expected",
    [
        ("ABCD-1234-EFGH-5678", True),
        ("abcd-1234-efgh-5678", False),
        ("ABCD1234EFGH5678", False),
        ("ABCD-1234-EFGH", False),
        ("ABCD-1234-EFGH-567!", False),
        ("", False),
    ],
)
def test_is_well_formed(key, expected):
    assert is_well_formed(key) is expected


def test_normalize_strips_and_upper_cases():
    assert normalize_license_key("  abcd-1234-efgh-5678\n") == "ABCD-1234-EFGH-5678"


@pytest.mark.parametrize("raw", [None, "", "   ", "not a key"])
def test_normalize_rejects_garbage(raw):
    assert normalize_license_key(raw) is None


def test_generator_uses_injected_source():
    generator = LicenseKeyGenerator(generate=lambda: "AAAA-BBBB-CCCC-DDDD")
    assert generator.generate() == "AAAA-BBBB-CCCC-DDDD"
