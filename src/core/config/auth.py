"""Authentication settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class AuthSettings(BaseSettings):
    """Defines settings for password hashing, access tokens and email checks.

    Security Note:
        - BCRYPT_ROUNDS below 10 is only acceptable in test environments.
        - ACCESS_TOKEN_BYTES controls the entropy of issued bearer tokens; the
          plaintext is returned once and only its SHA-256 digest is stored.
    """

    BCRYPT_ROUNDS: int = Field(ge=4, le=31, default=12)
    ACCESS_TOKEN_BYTES: int = Field(ge=16, default=40)
    ACCESS_TOKEN_NAME: str = "auth_token"
    TOKEN_ISSUE_ATTEMPTS: int = Field(ge=1, default=3)

    # Resolve the email domain (MX / A records) during validation.
    EMAIL_CHECK_DELIVERABILITY: bool = True
