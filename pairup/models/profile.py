# pairup/models/profile.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """
    Public profile for a PairUp account.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    A row may exist with only `id` set: the profile page creates an empty
    row lazily, and onboarding fills the rest. `username` stays NULL until
    onboarding completes.
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    username: str | None = Field(
        default=None,
        max_length=30,
        unique=True,
        index=True,
        description="Unique handle; NULL until onboarding completes",
    )

    display_name: str | None = Field(default=None, max_length=50)

    bio: str | None = Field(default=None, max_length=500)

    avatar_url: str | None = Field(
        default=None,
        description="Public URL in the avatars bucket",
    )

    beverage_preferences: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
        description="Beverage category ids picked during onboarding",
    )

    # Not collected in onboarding yet, kept for parity with the table.
    dietary_preferences: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
    )

    alcohol_toggle: str = Field(
        default="Show All",
        description="Show All | Non-Alcoholic Only | Alcoholic Only",
    )

    instagram_handle: str | None = Field(default=None, max_length=30)
    tiktok_handle: str | None = Field(default=None, max_length=24)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last update timestamp (UTC)",
    )
