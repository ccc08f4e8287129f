# pairup/models/pairing.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Pairing(SQLModel, table=True):
    """
    A posted food/beverage pairing.

    Immutable after creation except for `reality_score`, which only the
    author may set.

    `user_id` references Supabase auth.users, which lives outside this
    metadata, so no foreign key is declared here.
    """

    __tablename__ = "pairings"
    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_pairings_user_idempotency"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        index=True,
        description="Author account id (auth.users.id)",
    )

    image_url: str = Field(
        description="Public URL in the pairings bucket",
    )

    food_name: str = Field(max_length=200)

    beverage_type: str = Field(
        default="none",
        max_length=50,
        index=True,
        description="Free-form beverage tag; 'none' when omitted",
    )

    flavor_principle: str | None = Field(
        default=None,
        index=True,
        description="One of the 7 flavor principles, if set",
    )

    review_text: str | None = None
    beverage_brand: str | None = Field(default=None, max_length=200)
    food_brand: str | None = Field(default=None, max_length=200)

    rating: str = Field(
        max_length=4,
        description="Author's thumbs rating: up | down",
    )

    reality_score: int | None = Field(
        default=None,
        ge=1,
        le=5,
        description="Author's 1-5 verdict after tasting",
    )

    idempotency_key: str | None = Field(
        default=None,
        max_length=100,
        description="Client-generated key that deduplicates retried submissions",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
