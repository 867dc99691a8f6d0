"""User Repository implementation using SQLAlchemy.

This module provides the repository pattern implementation for User entity
operations, abstracting database access and providing a clean interface for
domain services.

The store is the source of truth for email uniqueness: a unique-constraint
violation on insert or update is translated into `DuplicateEmailError` so the
caller sees a field-level validation failure rather than a driver error.
"""

from typing import Optional

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import DatabaseError, DuplicateEmailError
from src.core.logging import mask_email
from src.domain.entities.access_token import AccessToken
from src.domain.entities.user import User
from src.domain.interfaces.repositories import IUserRepository
from src.domain.value_objects.pagination import Page, PageRequest, SortSpec, UserFilters

logger = get_logger(__name__)


def _is_email_conflict(exc: IntegrityError) -> bool:
    return "email" in str(exc.orig).lower()


class UserRepository(IUserRepository):
    """SQLAlchemy implementation of `IUserRepository`.

    Every mutating method commits its own transaction and rolls back on
    failure, so a failed request never leaves partial writes in the session.
    """

    def __init__(self, db_session: AsyncSession):
        """Initialize repository with database session.

        Args:
            db_session: SQLAlchemy async session for database operations
        """
        self.db_session = db_session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by primary key; None when absent or when the id is not positive."""
        if user_id is None or user_id <= 0:
            return None

        statement = select(User).where(User.id == user_id)
        result = await self.db_session.execute(statement)
        user = result.scalars().first()

        logger.debug("user_lookup_by_id", user_id=user_id, found=user is not None)
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by normalized email.

        Args:
            email: Address already passed through `normalize_email`.
        """
        if not email:
            return None

        statement = select(User).where(User.email == email)
        result = await self.db_session.execute(statement)
        user = result.scalars().first()

        logger.debug("user_lookup_by_email", email=mask_email(email), found=user is not None)
        return user

    async def save(self, user: User) -> User:
        """Insert or update `user` and commit.

        Raises:
            DuplicateEmailError: If the email is already taken by another user.
            DatabaseError: If any other constraint rejects the row.
        """
        is_new = user.id is None
        self.db_session.add(user)
        try:
            await self.db_session.commit()
        except IntegrityError as exc:
            await self.db_session.rollback()
            if _is_email_conflict(exc):
                logger.info("user_save_duplicate_email", email=mask_email(user.email))
                raise DuplicateEmailError() from exc
            logger.error("user_save_integrity_error", user_id=user.id, error=str(exc.orig))
            raise DatabaseError("Failed to save user") from exc
        except Exception as exc:
            await self.db_session.rollback()
            logger.error(
                "user_save_failed",
                user_id=user.id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

        await self.db_session.refresh(user)
        logger.debug("user_saved", user_id=user.id, created=is_new)
        return user

    async def delete(self, user: User) -> None:
        """Hard-delete `user` and the user's tokens in one transaction."""
        try:
            await self.db_session.execute(
                sa_delete(AccessToken).where(AccessToken.user_id == user.id)
            )
            await self.db_session.delete(user)
            await self.db_session.commit()
        except Exception as exc:
            await self.db_session.rollback()
            logger.error("user_delete_failed", user_id=user.id, error=str(exc))
            raise
        logger.debug("user_deleted_from_store", user_id=user.id)

    async def list(
        self, filters: UserFilters, sort: SortSpec, page: PageRequest
    ) -> Page[User]:
        """Return one page of users.

        `search` is a case-insensitive substring match on first name, last
        name or email. Rows with equal sort keys are ordered by id in the same
        direction so pages never overlap.
        """
        conditions = []
        if filters.role is not None:
            conditions.append(User.role == int(filters.role))
        if filters.search:
            term = filters.search
            conditions.append(
                or_(
                    User.first_name.icontains(term, autoescape=True),
                    User.last_name.icontains(term, autoescape=True),
                    User.email.icontains(term, autoescape=True),
                )
            )

        count_statement = select(func.count()).select_from(User).where(*conditions)
        total = (await self.db_session.execute(count_statement)).scalar_one()

        column = getattr(User, sort.column)
        id_column = User.id
        if sort.descending:
            ordering = (column.desc(), id_column.desc())
        else:
            ordering = (column.asc(), id_column.asc())

        statement = (
            select(User)
            .where(*conditions)
            .order_by(*ordering)
            .offset(page.offset)
            .limit(page.per_page)
        )
        result = await self.db_session.execute(statement)
        items = list(result.scalars().all())

        return Page(items=items, total=total, request=page)
