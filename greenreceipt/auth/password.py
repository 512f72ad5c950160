"""Password hashing for customer and merchant accounts.

bcrypt only considers the first 72 bytes of its input, so passwords are
pre-hashed with SHA-256 (base64 encoded, always 44 bytes) before bcrypt sees
them. Long passphrases are therefore compared in full.
"""

import base64
import hashlib

import bcrypt

BCRYPT_ROUNDS = 12


def _prehash_password(password: str) -> bytes:
    sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.b64encode(sha256_hash)


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Return the bcrypt hash stored as ``passwordHash``."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_prehash_password(password), salt).decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    """
    Check a login attempt against a stored hash.

    Accounts without a usable hash (missing or malformed) never match.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_prehash_password(password), hashed.encode("utf-8"))
    except ValueError:
        return False
