"""
Utility functions for the signing service.

Base64 helpers and device identity helpers shared by the core and the
HTTP layer.
"""

import base64
import binascii
import uuid
from typing import Optional, Union


def b64e_bytes(b: bytes) -> bytes:
    """Base64 encode bytes to bytes (standard alphabet, padded)."""
    return base64.b64encode(b)


def b64d(s: Union[str, bytes]) -> bytes:
    """Base64 decode strictly; raises binascii.Error on malformed input."""
    if isinstance(s, str):
        s = s.encode('ascii')
    return base64.b64decode(s, validate=True)


def try_b64d(s: Union[str, bytes]) -> Optional[bytes]:
    """Base64 decode, returning None instead of raising on malformed input."""
    try:
        return b64d(s)
    except (binascii.Error, ValueError):
        return None


def new_device_id() -> uuid.UUID:
    """Generate a random (version 4) device identity from the OS CSPRNG."""
    return uuid.uuid4()


def parse_device_id(value: Union[str, uuid.UUID]) -> uuid.UUID:
    """
    Parse a device identity from its canonical 8-4-4-4-12 text form.

    Raises:
        ValueError: If the value is not a valid UUID
    """
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))
