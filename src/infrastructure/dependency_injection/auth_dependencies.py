"""Dependency wiring for repositories and domain services.

Every factory receives its collaborators through FastAPI's `Depends`, so a
single request shares one database session across the repositories and
services it touches, and tests can swap any layer through
`app.dependency_overrides`.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import settings
from src.domain.interfaces.repositories import IAccessTokenRepository, IUserRepository
from src.domain.interfaces.services import IAuditTrail
from src.domain.services.auth.token import TokenIssuer
from src.domain.services.auth.user_authentication import UserAuthenticationService
from src.domain.services.user_management import UserManagementService
from src.domain.services.validation import CredentialValidator
from src.infrastructure.database.async_db import get_db
from src.infrastructure.repositories import AccessTokenRepository, UserRepository
from src.infrastructure.services.audit import StructlogAuditTrail

AsyncDB = Annotated[AsyncSession, Depends(get_db)]

# ---------------------------------------------------------------------------
# Infrastructure layer
# ---------------------------------------------------------------------------


def get_user_repository(db: AsyncDB) -> IUserRepository:
    return UserRepository(db)


def get_token_repository(db: AsyncDB) -> IAccessTokenRepository:
    return AccessTokenRepository(db)


def get_audit_trail() -> IAuditTrail:
    return StructlogAuditTrail()


# ---------------------------------------------------------------------------
# Domain services
# ---------------------------------------------------------------------------


def get_token_issuer(
    token_repository: IAccessTokenRepository = Depends(get_token_repository),
) -> TokenIssuer:
    return TokenIssuer(token_repository)


def get_credential_validator(
    user_repository: IUserRepository = Depends(get_user_repository),
) -> CredentialValidator:
    """Validator honouring the configured email deliverability check."""
    return CredentialValidator(
        user_repository,
        check_deliverability=settings.EMAIL_CHECK_DELIVERABILITY,
    )


def get_auth_service(
    user_repository: IUserRepository = Depends(get_user_repository),
    validator: CredentialValidator = Depends(get_credential_validator),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    audit: IAuditTrail = Depends(get_audit_trail),
) -> UserAuthenticationService:
    return UserAuthenticationService(user_repository, validator, token_issuer, audit)


def get_user_service(
    user_repository: IUserRepository = Depends(get_user_repository),
    validator: CredentialValidator = Depends(get_credential_validator),
    audit: IAuditTrail = Depends(get_audit_trail),
) -> UserManagementService:
    return UserManagementService(user_repository, validator, audit)


# ---------------------------------------------------------------------------
# Annotated shortcuts used by the routes
# ---------------------------------------------------------------------------

UserRepositoryDep = Annotated[IUserRepository, Depends(get_user_repository)]
TokenIssuerDep = Annotated[TokenIssuer, Depends(get_token_issuer)]
AuthServiceDep = Annotated[UserAuthenticationService, Depends(get_auth_service)]
UserServiceDep = Annotated[UserManagementService, Depends(get_user_service)]
