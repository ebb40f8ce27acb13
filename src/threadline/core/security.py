"""Password hashing, random tokens and SSO signature primitives."""
from __future__ import annotations

import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

# Argon2id parameters (OWASP minimums)
_password_hasher = PasswordHasher(
    time_cost=2,
    memory_cost=19456,
    parallelism=1,
    hash_len=32,
    salt_len=16,
)

# Verified against when the account does not exist, so unknown emails pay the
# same hashing cost as wrong passwords.
_DUMMY_HASH = _password_hasher.hash("threadline-dummy-password")


def hash_password(password: str) -> str:
    """Return a salted Argon2id digest of ``password``."""
    return _password_hasher.hash(password)


def verify_password(password_hash: str | None, password: str) -> bool:
    """Return True if ``password`` matches ``password_hash``.

    A missing digest (non-local commenters) never matches but still costs one
    verification.
    """
    try:
        _password_hasher.verify(password_hash or _DUMMY_HASH, password)
    except (VerificationError, InvalidHashError):
        return False
    return bool(password_hash)


def random_hex(num_bytes: int) -> str:
    """Return ``num_bytes`` of cryptographically secure randomness as hex."""
    return secrets.token_hex(num_bytes)


def sign_hmac_sha256(key: bytes, message: bytes) -> bytes:
    """Return the HMAC-SHA256 of ``message`` under ``key``."""
    mac = hmac.HMAC(key, hashes.SHA256())
    mac.update(message)
    return mac.finalize()


def verify_hmac_sha256(key: bytes, message: bytes, signature: bytes) -> bool:
    """Verify an HMAC-SHA256 signature in constant time.

    Args:
        key: Raw shared secret.
        message: Exact bytes that were signed.
        signature: Raw signature bytes supplied by the caller.

    Returns:
        True if the signature matches; False otherwise.
    """
    mac = hmac.HMAC(key, hashes.SHA256())
    mac.update(message)
    try:
        mac.verify(signature)
        return True
    except InvalidSignature:
        return False
