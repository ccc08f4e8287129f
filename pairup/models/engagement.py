# pairup/models/engagement.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Like(SQLModel, table=True):
    """
    A like on a pairing.

    The composite primary key (user_id, pairing_id) makes a double like
    impossible at the database level.
    """

    __tablename__ = "likes"

    user_id: uuid.UUID = Field(primary_key=True)

    pairing_id: uuid.UUID = Field(
        primary_key=True,
        foreign_key="pairings.id",
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class Comment(SQLModel, table=True):
    """
    A comment on a pairing. Append-only.
    """

    __tablename__ = "comments"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(index=True)

    pairing_id: uuid.UUID = Field(
        foreign_key="pairings.id",
        index=True,
    )

    content: str = Field(max_length=1000)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
