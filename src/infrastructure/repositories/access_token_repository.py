"""Access token repository implementation using SQLAlchemy."""

from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import TokenIssueConflictError
from src.domain.entities.access_token import AccessToken
from src.domain.entities.user import User
from src.domain.interfaces.repositories import IAccessTokenRepository

logger = get_logger(__name__)


class AccessTokenRepository(IAccessTokenRepository):
    """Persists hashed access tokens.

    `replace_for_user` deletes and inserts inside one transaction: other
    requests either see the previous token or the new one, never both and
    never neither.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def replace_for_user(self, user_id: int, name: str, token_hash: str) -> AccessToken:
        token = AccessToken(user_id=user_id, name=name, token_hash=token_hash)
        try:
            result = await self.db_session.execute(
                delete(AccessToken).where(AccessToken.user_id == user_id)
            )
            self.db_session.add(token)
            await self.db_session.commit()
        except IntegrityError as exc:
            await self.db_session.rollback()
            logger.warning("access_token_issue_conflict", user_id=user_id)
            raise TokenIssueConflictError(user_id) from exc
        except Exception:
            await self.db_session.rollback()
            raise

        await self.db_session.refresh(token)
        logger.debug("access_token_replaced", user_id=user_id, revoked=result.rowcount)
        return token

    async def delete_for_user(self, user_id: int) -> int:
        try:
            result = await self.db_session.execute(
                delete(AccessToken).where(AccessToken.user_id == user_id)
            )
            await self.db_session.commit()
        except Exception:
            await self.db_session.rollback()
            raise
        return result.rowcount

    async def delete_by_hash(self, token_hash: str) -> bool:
        try:
            result = await self.db_session.execute(
                delete(AccessToken).where(AccessToken.token_hash == token_hash)
            )
            await self.db_session.commit()
        except Exception:
            await self.db_session.rollback()
            raise
        return result.rowcount > 0

    async def find_with_owner(self, token_hash: str) -> Optional[Tuple[AccessToken, User]]:
        statement = (
            select(AccessToken, User)
            .join(User, User.id == AccessToken.user_id)
            .where(AccessToken.token_hash == token_hash)
        )
        row = (await self.db_session.execute(statement)).first()
        if row is None:
            return None
        return row[0], row[1]

    async def touch(self, token: AccessToken) -> None:
        token.last_used_at = datetime.now(timezone.utc)
        self.db_session.add(token)
        try:
            await self.db_session.commit()
        except Exception:
            await self.db_session.rollback()
            raise
