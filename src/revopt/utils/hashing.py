"""
Deterministic content hashing.

Payload integrity is checked against the SHA-256 digest published in the
dataset manifest, so every digest here is SHA-256 in lowercase hex.
"""

import hashlib


def content_hash(text: str) -> str:
    """
    Compute the SHA-256 digest of a text payload.

    The text is encoded as UTF-8 before hashing, which matches how
    publishers hash the payload file on disk.

    Args:
        text: Decoded payload text.

    Returns:
        64-character lowercase hex digest.
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def digests_match(expected: str, actual: str) -> bool:
    """Compare two hex digests case-insensitively."""
    return expected.lower() == actual.lower()
