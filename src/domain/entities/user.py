from datetime import date, datetime, timezone  # For timestamp and birth date fields
from enum import IntEnum  # For integer-backed role enumeration
from typing import Dict, List, Optional  # For optional fields

from sqlalchemy import Date, DateTime, Integer, Numeric  # Explicit column types
from sqlmodel import Column, Field, Index, SQLModel, String  # For ORM and table definition


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(IntEnum):
    """Represents the role of a user within the system.

    Roles are persisted as integers; every other layer works with the enum and
    its display label so no magic numbers leak out of persistence code.

    Attributes:
        ADMIN: System administrators.
        SUPERVISOR: Team supervisors.
        AGENT: Field agents.
    """

    ADMIN = 1
    SUPERVISOR = 2
    AGENT = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def values(cls) -> List[int]:
        """Return the valid role ids in ascending order."""
        return [role.value for role in cls]

    @classmethod
    def label_for(cls, value: Optional[int]) -> str:
        """Return the display name for a stored role id, ``"Unknown"`` when unmapped."""
        try:
            return cls(value).label
        except ValueError:
            return "Unknown"


class User(SQLModel, table=True):
    """Represents a User entity and acts as an Aggregate Root.

    The password column only ever holds a bcrypt hash and is excluded from
    every outward representation (see `UserOut`). Email addresses are stored in
    their normalized form and are globally unique.

    Attributes:
        id: The unique identifier for the user (primary key).
        first_name: Given name; letters, spaces, hyphens, apostrophes, periods.
        last_name: Family name; same alphabet as `first_name`.
        role: Integer role id, one of `Role.values()`.
        email: Normalized, unique email address.
        password: Bcrypt hash of the user's password.
        latitude: Decimal degrees in [-90, 90], stored as decimal(10,8).
        longitude: Decimal degrees in [-180, 180], stored as decimal(11,8).
        date_of_birth: Strictly between 1900-01-01 and today.
        timezone: IANA timezone identifier.
        created_at: The timestamp of when the user account was created.
        updated_at: The timestamp of the last update to the user's record.
    """

    __tablename__ = "users"

    id: Optional[int] = Field(
        default=None,  # Auto-incremented by database
        primary_key=True,
        description="The unique identifier for the user.",
    )
    first_name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Given name of the user.",
    )
    last_name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Family name of the user.",
    )
    role: int = Field(
        sa_column=Column(Integer, nullable=False, index=True),
        description="Role id: 1 Admin, 2 Supervisor, 3 Agent.",
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
        description="Normalized, globally unique email address.",
    )
    password: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Bcrypt-hashed password.",
    )
    latitude: float = Field(
        sa_column=Column(Numeric(10, 8, asdecimal=False), nullable=False),
        description="Latitude in decimal degrees.",
    )
    longitude: float = Field(
        sa_column=Column(Numeric(11, 8, asdecimal=False), nullable=False),
        description="Longitude in decimal degrees.",
    )
    date_of_birth: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Date of birth.",
    )
    timezone: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="IANA timezone identifier.",
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="The timestamp of when the user account was created.",
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="The timestamp of the last update to the user's record.",
    )

    __table_args__ = (
        Index("ix_users_location", "latitude", "longitude"),
        {"extend_existing": True},
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def role_name(self) -> str:
        return Role.label_for(self.role)

    @property
    def location(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def is_supervisor(self) -> bool:
        return self.role == Role.SUPERVISOR

    def is_agent(self) -> bool:
        return self.role == Role.AGENT

    def touch(self) -> None:
        """Stamp `updated_at` with the current time."""
        self.updated_at = _utcnow()
