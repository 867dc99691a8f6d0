from datetime import date

import pytest
import pytest_asyncio
from structlog.testing import capture_logs

from src.core.exceptions import AuthenticationError, InvalidCredentialsError, ValidationError
from src.domain.events.audit_events import REDACTED, AuditAction
from src.domain.interfaces.services import IAuditTrail
from src.domain.services.auth.user_authentication import UserAuthenticationService
from src.domain.services.validation import CredentialValidator
from src.utils.security import verify_password
from tests.factories.user import create_user, user_payload


class RecordingAuditTrail(IAuditTrail):
    def __init__(self):
        self.records = []

    def record(self, change):
        self.records.append(change)


@pytest.fixture
def audit():
    return RecordingAuditTrail()


@pytest.fixture
def service(user_repository, token_issuer, audit):
    validator = CredentialValidator(user_repository)
    return UserAuthenticationService(user_repository, validator, token_issuer, audit)


@pytest_asyncio.fixture
async def member(user_repository):
    return await create_user(user_repository, email="member@gmail.com", password="Password123!")


@pytest.mark.asyncio
async def test_register_creates_user_and_signs_in(service, token_issuer, audit):
    payload = user_payload(email="John.Doe+signup@Gmail.com", date_of_birth="1990-01-01")

    session = await service.register(payload)

    assert session.user.id is not None
    assert session.user.email == "johndoe@gmail.com"
    assert session.user.date_of_birth == date(1990, 1, 1)
    assert session.token_type == "Bearer"
    assert verify_password("Password123!", session.user.password)
    assert (await token_issuer.resolve(session.token)).id == session.user.id

    [record] = audit.records
    assert record.action is AuditAction.REGISTERED
    assert record.actor_id == session.user.id
    assert record.after()["password"] == REDACTED
    assert record.after()["email"] == "johndoe@gmail.com"


@pytest.mark.asyncio
async def test_register_with_equivalent_email_fails(service):
    await service.register(user_payload(email="ab@gmail.com"))

    with pytest.raises(ValidationError) as exc_info:
        await service.register(user_payload(email="a.b+second@gmail.com"))
    assert exc_info.value.errors == {"email": ["The email has already been taken."]}


@pytest.mark.asyncio
async def test_register_validation_failure_has_no_side_effects(service, user_repository, audit):
    with pytest.raises(ValidationError):
        await service.register(user_payload(email="fresh@example.com", password="weak"))

    assert await user_repository.get_by_email("fresh@example.com") is None
    assert audit.records == []


@pytest.mark.asyncio
async def test_login_with_alias_email(service, member):
    session = await service.login("Mem.ber+work@gmail.com", "Password123!")
    assert session.user.id == member.id


@pytest.mark.asyncio
async def test_login_replaces_previous_token(service, member, token_issuer):
    first = await service.login("member@gmail.com", "Password123!")
    second = await service.login("member@gmail.com", "Password123!")

    with pytest.raises(AuthenticationError):
        await token_issuer.resolve(first.token)
    assert (await token_issuer.resolve(second.token)).id == member.id


@pytest.mark.asyncio
async def test_wrong_password_and_unknown_email_fail_identically(service, member):
    with pytest.raises(InvalidCredentialsError) as wrong_password:
        await service.login("member@gmail.com", "Wrong123!")
    with pytest.raises(InvalidCredentialsError) as unknown_email:
        await service.login("nobody@gmail.com", "Password123!")

    assert wrong_password.value.errors == unknown_email.value.errors == {
        "email": ["The provided credentials are incorrect."]
    }
    assert wrong_password.value.message == unknown_email.value.message


@pytest.mark.asyncio
async def test_failed_login_is_logged_without_the_full_address(service, member):
    with capture_logs() as logs:
        with pytest.raises(InvalidCredentialsError):
            await service.login("member@gmail.com", "Wrong123!", client_ip="10.0.0.1")

    [event] = [log for log in logs if log["event"] == "failed_login_attempt"]
    assert event["log_level"] == "warning"
    assert event["email"] == "mem***@gmail.com"
    assert event["ip"] == "10.0.0.1"
    assert "Wrong123!" not in str(logs)


@pytest.mark.asyncio
async def test_login_requires_both_fields(service):
    with pytest.raises(ValidationError) as exc_info:
        await service.login(None, "")
    assert exc_info.value.errors == {
        "email": ["The email field is required."],
        "password": ["The password field is required."],
    }


@pytest.mark.asyncio
async def test_logout_revokes_current_token(service, member, token_issuer):
    session = await service.login("member@gmail.com", "Password123!")
    await service.logout(member, session.token)

    with pytest.raises(AuthenticationError):
        await token_issuer.resolve(session.token)
    with pytest.raises(AuthenticationError):
        await service.logout(member, session.token)


@pytest.mark.asyncio
async def test_refresh_invalidates_pre_refresh_token(service, member, token_issuer):
    session = await service.login("member@gmail.com", "Password123!")
    refreshed = await service.refresh(member)

    assert refreshed.token != session.token
    with pytest.raises(AuthenticationError):
        await token_issuer.resolve(session.token)
    assert (await token_issuer.resolve(refreshed.token)).id == member.id


@pytest.mark.asyncio
async def test_me_returns_the_user(service, member):
    assert await service.me(member) is member
