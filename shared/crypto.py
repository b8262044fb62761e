"""
Token hashing: salted SHA-512 digests of one-time codes.

The identity key is the salt, so the same code issued to two identities
hashes differently. Both inputs are lowercased first: opaque codes are
case-insensitive when presented back.
"""

from __future__ import annotations

import hashlib
import hmac

HASH_SEPARATOR = "|"


def hash_code(identity_key: str, code: str) -> str:
    """Return the hex-encoded SHA-512 digest of *code* salted with *identity_key*.

    Args:
        identity_key: Canonical identity key (the salt).
        code: Plaintext one-time code.

    Returns:
        128-character lowercase hex string.
    """
    material = f"{identity_key.lower()}{HASH_SEPARATOR}{code.lower()}"
    return hashlib.sha512(material.encode("utf-8")).hexdigest()


def verify_code(identity_key: str, code: str, code_hash: str) -> bool:
    """Check *code* against a stored digest in constant time."""
    expected = hash_code(identity_key, code)
    return hmac.compare_digest(expected.encode("ascii"), code_hash.encode("utf-8"))
