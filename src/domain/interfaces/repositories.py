"""Repository interfaces for abstracting data persistence in the domain layer.

This module defines the abstract base classes (interfaces) for repositories,
which act as a "port" in the context of Hexagonal Architecture. The domain layer
uses these interfaces to interact with persistence mechanisms without being
coupled to any specific technology.

The concrete implementations of these interfaces reside in the `infrastructure`
layer, acting as "adapters" that translate the domain's requests into specific
database queries.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from src.domain.entities.access_token import AccessToken
from src.domain.entities.user import User
from src.domain.value_objects.pagination import Page, PageRequest, SortSpec, UserFilters


class IUserRepository(ABC):
    """An interface defining the contract for user persistence operations.

    This repository is responsible for managing the lifecycle of the `User`
    aggregate root. Emails passed in must already be normalized.
    """

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Retrieves a user by their unique identifier.

        Returns:
            An optional `User` entity. Returns `None` if no user is found.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Retrieves a user by their normalized email address.

        Returns:
            An optional `User` entity. Returns `None` if no user is found.
        """
        raise NotImplementedError

    @abstractmethod
    async def save(self, user: User) -> User:
        """Inserts or updates a user and commits.

        Raises:
            DuplicateEmailError: If the email is already taken by another user.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, user: User) -> None:
        """Hard-deletes a user together with the user's access tokens."""
        raise NotImplementedError

    @abstractmethod
    async def list(
        self, filters: UserFilters, sort: SortSpec, page: PageRequest
    ) -> Page[User]:
        """Returns one page of users matching `filters` in `sort` order."""
        raise NotImplementedError


class IAccessTokenRepository(ABC):
    """An interface for persisting hashed access tokens."""

    @abstractmethod
    async def replace_for_user(self, user_id: int, name: str, token_hash: str) -> AccessToken:
        """Deletes every token of the user and stores a new one in one transaction.

        Raises:
            TokenIssueConflictError: If a concurrent transaction stored a token
                for the same user first. Nothing is committed in that case.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete_for_user(self, user_id: int) -> int:
        """Deletes every token of the user. Returns the number removed."""
        raise NotImplementedError

    @abstractmethod
    async def delete_by_hash(self, token_hash: str) -> bool:
        """Deletes one token. Returns False when no token had that hash."""
        raise NotImplementedError

    @abstractmethod
    async def find_with_owner(self, token_hash: str) -> Optional[Tuple[AccessToken, User]]:
        """Returns the token and its owner, or None when the hash is unknown."""
        raise NotImplementedError

    @abstractmethod
    async def touch(self, token: AccessToken) -> None:
        """Records that the token has just authenticated a request."""
        raise NotImplementedError
