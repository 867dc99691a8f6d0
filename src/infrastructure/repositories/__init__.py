"""Repository implementations for the infrastructure layer."""

from .access_token_repository import AccessTokenRepository
from .user_repository import UserRepository

__all__ = ["UserRepository", "AccessTokenRepository"]
