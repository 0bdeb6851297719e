"""
Real Estate API - Version Token Codec
======================================

What:  Converts between the store's row version (an integer bumped by
       SQLAlchemy on every UPDATE) and the display-safe token clients see.
How:   The version is packed as an 8-byte big-endian value and base64
       encoded, e.g. version 1 → "AAAAAAAAAAE=".

Clients must treat the token as opaque and echo it back unchanged on
PUT /api/properties/{id} and PATCH /api/properties/{id}/price.
"""

import base64
import binascii

from realestate.exceptions import ValidationError

TOKEN_BYTES = 8


def encode_version_token(row_version: int) -> str:
    """Row version → base64 token."""
    return base64.b64encode(row_version.to_bytes(TOKEN_BYTES, "big")).decode("ascii")


def decode_version_token(token: str, field: str = "versionToken") -> int:
    """
    Base64 token → row version.

    Raises:
        ValidationError: token is blank, not base64, or not 8 bytes long.
    """
    if not token or not token.strip():
        raise ValidationError(message="Version token must not be empty.", field=field)
    try:
        raw = base64.b64decode(token.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError(
            message="Version token is not valid base64.",
            field=field,
        )
    if len(raw) != TOKEN_BYTES:
        raise ValidationError(
            message="Version token has an unexpected length.",
            field=field,
            context={"expected_bytes": TOKEN_BYTES, "actual_bytes": len(raw)},
        )
    return int.from_bytes(raw, "big")
