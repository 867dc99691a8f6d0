from __future__ import annotations

"""Pydantic models for user payloads and the outgoing user representation."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.domain.entities.user import User


class UserPayload(BaseModel):
    """Body of ``POST /auth/register``, ``POST /users`` and ``PUT /users/{id}``.

    Fields are deliberately untyped: the credential validator owns every rule
    and reports all violations per field, which a typed model would cut short.
    Only the keys a client actually sent are forwarded, so partial updates
    leave other fields untouched.
    """

    model_config = ConfigDict(extra="ignore")

    first_name: Optional[Any] = Field(default=None, examples=["John"])
    last_name: Optional[Any] = Field(default=None, examples=["Doe"])
    role: Optional[Any] = Field(default=None, examples=[3])
    email: Optional[Any] = Field(default=None, examples=["john@gmail.com"])
    password: Optional[Any] = Field(default=None, examples=["Password123!"])
    latitude: Optional[Any] = Field(default=None, examples=[40.7128])
    longitude: Optional[Any] = Field(default=None, examples=[-74.006])
    date_of_birth: Optional[Any] = Field(default=None, examples=["1990-01-01"])
    timezone: Optional[Any] = Field(default=None, examples=["America/New_York"])

    def submitted(self) -> dict:
        return self.model_dump(exclude_unset=True)


class Location(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class UserOut(BaseModel):
    """Serialised representation of :class:`~src.domain.entities.user.User`.

    The password hash never leaves the entity.
    """

    id: int
    first_name: str
    last_name: str
    full_name: str
    email: str
    role: int
    role_name: str
    location: Location
    date_of_birth: Optional[date] = None
    timezone: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            email=user.email,
            role=int(user.role),
            role_name=user.role_name,
            location=Location(**user.location),
            date_of_birth=user.date_of_birth,
            timezone=user.timezone,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
