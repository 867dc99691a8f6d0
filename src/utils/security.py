"""Security utilities for password hashing and access-token handling.

Passwords are hashed with bcrypt through passlib. Access tokens are opaque
random strings; only their SHA-256 digest is stored, which is enough to look a
token up and useless for forging one.
"""

import hashlib
import secrets

from passlib.context import CryptContext

from src.core.config.settings import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        str: Bcrypt-hashed password
    """
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Args:
        password: Plain text password to verify
        hashed_password: Stored bcrypt hash

    Returns:
        bool: True if password matches hash, False otherwise
    """
    if not password or not hashed_password:
        return False
    return pwd_context.verify(password, hashed_password)


def dummy_verify() -> None:
    """Spend the time of one hash check so unknown accounts are not faster to reject."""
    pwd_context.dummy_verify()


def generate_token(nbytes: int = settings.ACCESS_TOKEN_BYTES) -> str:
    return secrets.token_urlsafe(nbytes)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
