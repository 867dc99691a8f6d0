from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from src.core.exceptions import AuthenticationError, TokenIssueConflictError
from src.domain.entities.access_token import AccessToken
from src.domain.services.auth.token import TokenIssuer
from src.utils.security import hash_token
from tests.factories.user import create_user


@pytest_asyncio.fixture
async def user(user_repository):
    return await create_user(user_repository)


async def _token_count(db_session, user_id: int) -> int:
    statement = select(func.count()).select_from(AccessToken).where(AccessToken.user_id == user_id)
    return (await db_session.execute(statement)).scalar_one()


@pytest.mark.asyncio
async def test_issue_returns_plaintext_and_stores_only_the_digest(token_issuer, user, db_session):
    token = await token_issuer.issue(user)

    stored = (await db_session.execute(select(AccessToken))).scalars().one()
    assert stored.token_hash == hash_token(token)
    assert token not in stored.token_hash
    assert stored.name == "auth_token"


@pytest.mark.asyncio
async def test_issue_revokes_previous_token(token_issuer, user, db_session):
    first = await token_issuer.issue(user)
    second = await token_issuer.issue(user)

    assert first != second
    assert await _token_count(db_session, user.id) == 1
    with pytest.raises(AuthenticationError):
        await token_issuer.resolve(first)
    assert (await token_issuer.resolve(second)).id == user.id


@pytest.mark.asyncio
async def test_tokens_of_other_users_are_untouched(token_issuer, user, user_repository):
    other = await create_user(user_repository)
    other_token = await token_issuer.issue(other)
    await token_issuer.issue(user)

    assert (await token_issuer.resolve(other_token)).id == other.id


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "", "not-a-real-token"])
async def test_resolve_rejects_absent_or_unknown_tokens(token_issuer, token):
    with pytest.raises(AuthenticationError) as exc_info:
        await token_issuer.resolve(token)
    assert exc_info.value.message == "Unauthenticated."


@pytest.mark.asyncio
async def test_authenticate_records_last_use(token_issuer, user):
    token = await token_issuer.issue(user)
    resolved, record = await token_issuer.authenticate(token)

    assert resolved.id == user.id
    assert record.last_used_at is not None


@pytest.mark.asyncio
async def test_revoke_then_revoke_again_fails(token_issuer, user):
    token = await token_issuer.issue(user)
    await token_issuer.revoke(token)

    with pytest.raises(AuthenticationError):
        await token_issuer.revoke(token)
    with pytest.raises(AuthenticationError):
        await token_issuer.resolve(token)


@pytest.mark.asyncio
async def test_revoke_all(token_issuer, user, db_session):
    await token_issuer.issue(user)
    assert await token_issuer.revoke_all(user) == 1
    assert await _token_count(db_session, user.id) == 0


@pytest.mark.asyncio
async def test_lost_race_is_retried(user):
    repository = AsyncMock()
    repository.replace_for_user.side_effect = [TokenIssueConflictError(user.id), None]
    issuer = TokenIssuer(repository, max_attempts=3)

    token = await issuer.issue(user)

    assert repository.replace_for_user.await_count == 2
    stored_hash = repository.replace_for_user.await_args.args[2]
    assert stored_hash == hash_token(token)


@pytest.mark.asyncio
async def test_conflict_surfaces_after_max_attempts(user):
    repository = AsyncMock()
    repository.replace_for_user.side_effect = TokenIssueConflictError(user.id)
    issuer = TokenIssuer(repository, max_attempts=2)

    with pytest.raises(TokenIssueConflictError):
        await issuer.issue(user)
    assert repository.replace_for_user.await_count == 2
