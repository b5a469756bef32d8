"""Password hashing and verification (bcrypt). Stateless."""

import bcrypt

# Bcrypt cost (rounds).
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def _encode(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    return bcrypt.hashpw(_encode(plain_password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored digest. Malformed digests never match."""
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Compared against when the identifier matches no user, so both failure paths pay one bcrypt check.
DUMMY_PASSWORD_HASH = hash_password("admin-api-timing-dummy")
