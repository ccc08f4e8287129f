# pairup/schemas/engagement.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from pairup.schemas.pairing import AuthorRead


class LikeStatus(SQLModel):
    """
    Server-confirmed like state after a toggle.

    Clients that flipped the heart optimistically reconcile against this.
    """

    pairing_id: uuid.UUID
    liked: bool
    likes_count: int


class CommentCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    content: str = Field(max_length=1000)

    @field_validator("content")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("comment cannot be empty")
        return v


class CommentRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    pairing_id: uuid.UUID
    content: str
    created_at: datetime
    author: AuthorRead | None = None
