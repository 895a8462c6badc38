"""
Password hashing helpers backed by bcrypt.
"""

import secrets

import bcrypt


def get_password_hash(password: str) -> str:
    """Hash a plain password with a fresh bcrypt salt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash (e.g. the unusable system password)
        return False


def generate_unusable_password() -> str:
    """Random marker stored for accounts that must never log in."""
    return f"!{secrets.token_urlsafe(32)}"
