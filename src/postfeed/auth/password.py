"""Password hashing utilities.

Learn: Uses bcrypt for password hashing. bcrypt salts automatically and
embeds its cost factor in the hash ("$2b$12$..."), which is how
needs_rehash() spots hashes made with a lower cost than configured.
Passwords are truncated to 72 bytes (bcrypt's limit).
"""

import bcrypt


def hash_password(password: str, rounds: int = 12) -> str:
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Malformed hashes never verify."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


def needs_rehash(password_hash: str, rounds: int) -> bool:
    """Check if a hash was made with a lower cost than `rounds`."""
    return _cost_of(password_hash) < rounds


def _cost_of(password_hash: str) -> int:
    # Format: $2b$<cost>$<salt+digest>
    try:
        return int(password_hash.split("$")[2])
    except (IndexError, ValueError):
        return 0
