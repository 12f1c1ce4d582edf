from __future__ import annotations

import bcrypt


def hash_password(password: str, *, rounds: int = 12) -> str:
    """
    Hash password with bcrypt.

    Args:
        password: Plain text password
        rounds: Bcrypt cost factor

    Returns:
        Bcrypt hash string
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash with constant-time comparison.

    Returns:
        True if password matches, False otherwise (including a malformed hash)
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
