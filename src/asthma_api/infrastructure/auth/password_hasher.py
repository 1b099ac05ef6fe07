"""Password hashing utility using bcrypt.

Hashes are self-describing ``$2b$<cost>$<salt><digest>`` strings. The cost
factor defaults to 12 for resistance to offline brute force.
"""

from functools import lru_cache

import bcrypt

from asthma_api.core.config import get_settings

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str, *, rounds: int | None = None) -> str:
    """Hash a password using bcrypt.

    Args:
        password: The plaintext password to hash.
        rounds: bcrypt cost factor. Defaults to the configured `bcrypt_rounds`.

    Returns:
        The hashed password string.

    Example:
        >>> hashed = hash_password("Passw0rd")
        >>> hashed.startswith("$2b$12$")
        True
    """
    salt = bcrypt.gensalt(rounds=rounds or get_settings().bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("ascii")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a hash.

    Uses constant-time comparison to prevent timing attacks. Malformed
    hashes verify as False rather than raising.

    Args:
        password: The plaintext password to verify.
        hashed: The hashed password to verify against.

    Returns:
        True if the password matches, False otherwise.
    """
    try:
        return bcrypt.checkpw(_encode(password), hashed.encode("ascii"))
    except (ValueError, TypeError, UnicodeEncodeError):
        return False


def needs_rehash(hashed: str, *, rounds: int | None = None) -> bool:
    """Check if a password hash was created with a different cost factor.

    Args:
        hashed: The hashed password to check.
        rounds: Expected cost factor. Defaults to the configured `bcrypt_rounds`.

    Returns:
        True if the hash should be updated, False otherwise.
    """
    parts = hashed.split("$")
    if len(parts) < 4 or not parts[2].isdigit():
        return True
    return int(parts[2]) != (rounds or get_settings().bcrypt_rounds)


@lru_cache(maxsize=4)
def get_dummy_password_hash(rounds: int | None = None) -> str:
    """Hash verified against when a login email is unknown.

    Spending the same bcrypt time on unknown accounts keeps response timing
    from revealing which emails are registered.
    """
    return hash_password("dummy_password_for_timing_safety", rounds=rounds)
