"""Authentication use cases: register, login, logout, refresh and "who am I".

A session moves from anonymous to authenticated when `register` or `login`
hands out a token, and back to anonymous on `logout`. `refresh` swaps the
caller's token for a new one without an unauthenticated gap.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from structlog import get_logger

from src.core.exceptions import InvalidCredentialsError
from src.core.logging import mask_email
from src.domain.entities.user import User
from src.domain.events.audit_events import AuditAction, ChangeRecord
from src.domain.interfaces.repositories import IUserRepository
from src.domain.interfaces.services import IAuditTrail
from src.domain.services.auth.token import TokenIssuer
from src.domain.services.validation import CredentialValidator, ValidationMode
from src.domain.value_objects.email import INVALID_EMAIL, normalize_email
from src.utils.security import dummy_verify, hash_password, verify_password

logger = get_logger(__name__)

TOKEN_TYPE = "Bearer"


@dataclass(frozen=True)
class AuthenticatedSession:
    """A user together with the plaintext token just issued to them."""

    user: User
    token: str
    token_type: str = TOKEN_TYPE


def build_user(data: Mapping[str, Any]) -> User:
    """Create a transient `User` from a validated payload, hashing the password."""
    values = dict(data)
    values["password"] = hash_password(values["password"])
    values["role"] = int(values["role"])
    return User(**values)


def user_snapshot(user: User) -> dict:
    """The audited, password-free field values of `user`."""
    return {
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": int(user.role),
        "email": user.email,
        "latitude": user.latitude,
        "longitude": user.longitude,
        "date_of_birth": user.date_of_birth.isoformat() if user.date_of_birth else None,
        "timezone": user.timezone,
    }


class UserAuthenticationService:
    """Orchestrates the credential check, token issue and audit for auth flows.

    Attributes:
        user_repository: Store of users.
        validator: Rules applied to registration payloads.
        token_issuer: Issues and revokes bearer tokens.
        audit: Receives a change record after every registration.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        validator: CredentialValidator,
        token_issuer: TokenIssuer,
        audit: IAuditTrail,
    ):
        self.user_repository = user_repository
        self.validator = validator
        self.token_issuer = token_issuer
        self.audit = audit

    async def register(self, payload: Mapping[str, Any]) -> AuthenticatedSession:
        """Create a user from `payload` and sign them in.

        Raises:
            ValidationError: If any field rule fails. Nothing is written.
            DuplicateEmailError: If a concurrent registration took the email.
        """
        result = await self.validator.validate(payload, ValidationMode.CREATE)
        data = result.raise_for_errors()

        user = await self.user_repository.save(build_user(data))
        token = await self.token_issuer.issue(user)

        self.audit.record(
            ChangeRecord.diff(
                AuditAction.REGISTERED,
                user.id,
                before={},
                after=user_snapshot(user),
                fields=list(data),
                actor_id=user.id,
            )
        )
        logger.info("user_registered", user_id=user.id, email=mask_email(user.email), role=user.role_name)
        return AuthenticatedSession(user=user, token=token)

    async def login(
        self,
        email: Any,
        password: Any,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuthenticatedSession:
        """Check the credentials and issue a token, revoking any previous one.

        Raises:
            ValidationError: If the email or password is missing.
            InvalidCredentialsError: For an unknown email or a wrong password;
                the two cases are indistinguishable to the caller.
        """
        credentials = self.validator.validate_login({"email": email, "password": password})
        credentials.raise_for_errors()
        normalized = normalize_email(email)
        user = None
        if normalized != INVALID_EMAIL:
            user = await self.user_repository.get_by_email(normalized)

        if user is None:
            dummy_verify()
            authenticated = False
        else:
            authenticated = verify_password(password, user.password)

        if not authenticated:
            logger.warning(
                "failed_login_attempt",
                email=mask_email(normalized if normalized != INVALID_EMAIL else email),
                ip=client_ip,
                user_agent=user_agent,
            )
            raise InvalidCredentialsError()

        token = await self.token_issuer.issue(user)
        logger.info("user_logged_in", user_id=user.id, email=mask_email(user.email), ip=client_ip)
        return AuthenticatedSession(user=user, token=token)

    async def logout(self, user: User, token: str) -> None:
        """Revoke the token the caller authenticated with.

        Raises:
            AuthenticationError: If the token is no longer valid.
        """
        await self.token_issuer.revoke(token)
        logger.info("user_logged_out", user_id=user.id, email=mask_email(user.email))

    async def refresh(self, user: User) -> AuthenticatedSession:
        """Replace the caller's token with a new one.

        The old token stays valid until the new one is committed, and is gone
        as soon as it is.
        """
        token = await self.token_issuer.issue(user)
        logger.info("token_refreshed", user_id=user.id, email=mask_email(user.email))
        return AuthenticatedSession(user=user, token=token)

    async def me(self, user: User) -> User:
        return user
