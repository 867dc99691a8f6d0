from datetime import datetime, timezone  # For timestamp fields
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer  # Explicit column types
from sqlmodel import Column, Field, SQLModel, String


class AccessToken(SQLModel, table=True):
    """Represents an opaque bearer token issued to a user.

    Only the SHA-256 digest of the token is persisted; the plaintext is handed
    to the client once and cannot be recovered from this record.

    A user owns at most one token at any time. The unique constraint on
    `user_id` makes the store reject a second concurrent issue, which the
    token issuer resolves by retrying its revoke-then-create transaction.

    Attributes:
        id: The unique identifier for the token record.
        user_id: Owner of the token (unique).
        name: Label of the token, e.g. ``auth_token``.
        token_hash: Hex SHA-256 digest of the plaintext token (unique).
        created_at: When the token was issued.
        last_used_at: Last time the token authenticated a request.
    """

    __tablename__ = "personal_access_tokens"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="The unique identifier for the token record.",
    )
    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("users.id", ondelete="CASCADE"),
            unique=True,
            index=True,
            nullable=False,
        ),
        description="Owner of the token.",
    )
    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Label of the token.",
    )
    token_hash: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False),
        description="Hex SHA-256 digest of the plaintext token.",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="When the token was issued.",
    )
    last_used_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
        description="Last time the token authenticated a request.",
    )
