from __future__ import annotations

"""Pydantic models for the authentication endpoints."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.adapters.api.schemas.user import UserOut
from src.domain.services.auth.user_authentication import AuthenticatedSession


class LoginRequest(BaseModel):
    """Payload expected by ``POST /auth/login``."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[Any] = Field(default=None, examples=["john@gmail.com"])
    password: Optional[Any] = Field(default=None, examples=["Password123!"])


class AuthData(BaseModel):
    """``data`` of a login, registration or refresh response."""

    user: UserOut
    token: str
    token_type: str = "Bearer"

    @classmethod
    def from_session(cls, session: AuthenticatedSession) -> "AuthData":
        return cls(
            user=UserOut.from_entity(session.user),
            token=session.token,
            token_type=session.token_type,
        )
