"""
Password hashing and verification for account credentials.

Uses passlib's bcrypt. Hashes produced under deprecated settings are
re-hashed on the next successful login.
"""
from __future__ import annotations

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Return a bcrypt hash for the given plain password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hashed form.

    Malformed or unknown stored hashes count as a mismatch.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def verify_and_update(plain_password: str, hashed_password: str) -> tuple[bool, str | None]:
    """Verify and, when the stored hash is outdated, return a replacement hash."""
    try:
        return pwd_context.verify_and_update(plain_password, hashed_password)
    except ValueError:
        return False, None
