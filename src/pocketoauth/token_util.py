# Random opaque token generation.
# Created: 2026-10-19

from __future__ import annotations

import hashlib
import secrets

__all__ = ["generate_random_token"]

RANDOM_BYTES = 256


async def generate_random_token() -> str:
    """Return a 40-character hex token: SHA-1 over 256 bytes of secure randomness."""
    buffer = secrets.token_bytes(RANDOM_BYTES)
    return hashlib.sha1(buffer).hexdigest()
