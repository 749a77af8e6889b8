"""Password hashing for the identity store.

Hashes are PBKDF2-HMAC-SHA256 from the cryptography library, encoded as
`pbkdf2_sha256$<iterations>$<salt b64>$<hash b64>`.
"""
from __future__ import annotations
import base64
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 200000


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    salt = os.urandom(16)
    digest = _kdf(salt, iterations).derive(password.encode("utf-8"))
    return "$".join([
        ALGORITHM,
        str(iterations),
        base64.urlsafe_b64encode(salt).decode("ascii"),
        base64.urlsafe_b64encode(digest).decode("ascii"),
    ])


def verify_password(password: str, encoded: str | None) -> bool:
    """Return True when `password` matches the `encoded` hash."""
    if not encoded:
        return False
    try:
        algorithm, iterations, salt_b64, digest_b64 = encoded.split("$")
        if algorithm != ALGORITHM:
            return False
        salt = base64.urlsafe_b64decode(salt_b64.encode("ascii"))
        digest = base64.urlsafe_b64decode(digest_b64.encode("ascii"))
        _kdf(salt, int(iterations)).verify(password.encode("utf-8"), digest)
        return True
    except (ValueError, InvalidKey):
        return False
