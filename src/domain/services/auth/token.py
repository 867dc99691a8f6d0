"""Opaque bearer-token issuing and resolution."""

from typing import Optional, Tuple

from structlog import get_logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from src.core.config.settings import settings
from src.core.exceptions import AuthenticationError, TokenIssueConflictError
from src.domain.entities.access_token import AccessToken
from src.domain.entities.user import User
from src.domain.interfaces.repositories import IAccessTokenRepository
from src.utils.security import generate_token, hash_token

logger = get_logger(__name__)


class TokenIssuer:
    """Creates, resolves and revokes opaque bearer tokens.

    A user holds at most one token. `issue` replaces whatever the user had in
    a single transaction, so a refresh never leaves a moment where the caller
    has no valid token, and a failed issue leaves the previous token intact.

    Attributes:
        token_repository: Store of hashed tokens.
        token_name: Label written on every issued token.
        max_attempts: How often a lost concurrent-issue race is retried.
    """

    def __init__(
        self,
        token_repository: IAccessTokenRepository,
        token_name: str = settings.ACCESS_TOKEN_NAME,
        max_attempts: int = settings.TOKEN_ISSUE_ATTEMPTS,
    ):
        self.token_repository = token_repository
        self.token_name = token_name
        self.max_attempts = max_attempts

    async def issue(self, user: User) -> str:
        """Revoke every token of `user` and return a new plaintext token.

        The plaintext is returned once; only its digest is stored.

        Raises:
            TokenIssueConflictError: If concurrent issues for the same user
                kept winning for `max_attempts` tries.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception_type(TokenIssueConflictError),
            reraise=True,
        ):
            with attempt:
                token = generate_token()
                await self.token_repository.replace_for_user(
                    user.id, self.token_name, hash_token(token)
                )
        logger.debug("access_token_issued", user_id=user.id)
        return token

    async def revoke_all(self, user: User) -> int:
        revoked = await self.token_repository.delete_for_user(user.id)
        logger.debug("access_tokens_revoked", user_id=user.id, count=revoked)
        return revoked

    async def revoke(self, token: str) -> None:
        """Revoke a single token.

        Raises:
            AuthenticationError: If the token is unknown or already revoked.
        """
        if not token or not await self.token_repository.delete_by_hash(hash_token(token)):
            raise AuthenticationError()

    async def resolve(self, token: Optional[str]) -> User:
        """Return the owner of `token`.

        Raises:
            AuthenticationError: If the token is absent, unknown or revoked.
        """
        user, _ = await self.authenticate(token)
        return user

    async def authenticate(self, token: Optional[str]) -> Tuple[User, AccessToken]:
        """Resolve `token` to its owner and record the use.

        Raises:
            AuthenticationError: If the token is absent, unknown or revoked.
        """
        if not token:
            raise AuthenticationError()

        found = await self.token_repository.find_with_owner(hash_token(token))
        if found is None:
            logger.info("access_token_rejected")
            raise AuthenticationError()

        record, user = found
        await self.token_repository.touch(record)
        return user, record
