"""
License key generation and parsing.

Keys are four groups of four uppercase alphanumerics separated by hyphens,
e.g. ``7KQ2-M9XA-0B3T-ZZ41``. The format is the one wire contract the
service fixes; storage enforces uniqueness.
"""

import secrets
import string
from typing import Optional

from core.domain.value_objects import LICENSE_KEY_PATTERN

KEY_ALPHABET = string.ascii_uppercase + string.digits
GROUP_COUNT = 4
GROUP_LENGTH = 4


def generate_license_key() -> str:
    """
    Generate a license key in format: XXXX-XXXX-XXXX-XXXX.

    Returns:
        Generated license key string
    """
    parts = [
        "".join(secrets.choice(KEY_ALPHABET) for _ in range(GROUP_LENGTH))
        for _ in range(GROUP_COUNT)
    ]
    return "-".join(parts)


def is_well_formed(key: str) -> bool:
    """Check a key against the wire format."""
    return bool(key) and LICENSE_KEY_PATTERN.match(key) is not None


def normalize_license_key(raw_key: Optional[str]) -> Optional[str]:
    """
    Normalize a caller-supplied key for lookup.

    Args:
        raw_key: Key as typed or sent by a client

    Returns:
        The upper-cased key, or None if it cannot be a license key
    """
    if not raw_key:
        return None
    key = raw_key.strip().upper()
    return key if is_well_formed(key) else None
