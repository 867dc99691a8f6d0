import asyncio

import pytest
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException
from structlog.testing import capture_logs

from src.adapters.api.operations import guarded_operation, redact
from src.adapters.api.schemas import UserPayload
from src.core.exceptions import (
    GENERAL_ERROR_MESSAGE,
    StoreUnavailableError,
    UnexpectedError,
    UserNotFoundError,
)


@pytest.mark.asyncio
async def test_result_passes_through():
    @guarded_operation("noop", "Failed")
    async def noop(value):
        return value * 2

    assert await noop(value=21) == 42


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [UserNotFoundError(), HTTPException(status_code=405)])
async def test_classified_errors_are_not_wrapped(error):
    @guarded_operation("op", "Failed")
    async def failing():
        raise error

    with pytest.raises(type(error)):
        await failing()


@pytest.mark.asyncio
async def test_unexpected_error_is_logged_with_redacted_input():
    @guarded_operation("create_user", "Failed to create user")
    async def create_user(payload, user_id):
        raise RuntimeError("boom")

    payload = UserPayload(email="john@example.com", password="Secret123!")
    with capture_logs() as logs:
        with pytest.raises(UnexpectedError) as exc_info:
            await create_user(payload=payload, user_id=5)

    assert exc_info.value.message == "Failed to create user"
    assert exc_info.value.errors == {"general": [GENERAL_ERROR_MESSAGE]}
    assert isinstance(exc_info.value.__cause__, RuntimeError)

    [event] = [log for log in logs if log["event"] == "operation_failed"]
    assert event["operation"] == "create_user"
    assert event["input"] == {
        "payload": {"email": "john@example.com", "password": "[REDACTED]"},
        "user_id": 5,
    }
    assert "Secret123!" not in str(logs)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        OperationalError("SELECT 1", {}, Exception("database is locked")),
        asyncio.TimeoutError(),
    ],
)
async def test_store_timeouts_become_retryable(error):
    @guarded_operation("list_users", "Failed to retrieve users")
    async def listing():
        raise error

    with pytest.raises(StoreUnavailableError) as exc_info:
        await listing()
    assert exc_info.value.retry_after == 1


def test_redact_drops_non_data_values():
    assert redact({"token": "abc", "nested": {"Password": "x"}, "obj": object()}) == {
        "token": "[REDACTED]",
        "nested": {"Password": "[REDACTED]"},
        "obj": None,
    }
