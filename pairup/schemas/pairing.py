# pairup/schemas/pairing.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

FLAVOR_PRINCIPLES: tuple[str, ...] = (
    "Acid + Umami",
    "Sweet + Spicy",
    "Fat + Tannin",
    "Bitter + Sweet",
    "Effervescence + Fried",
    "Complement",
    "Contrast",
)

# Values the AI analysis may return for beverage_type.
AI_BEVERAGE_TYPES: tuple[str, ...] = (
    "Wine",
    "Beer",
    "Spirits",
    "Cocktails",
    "Non-Alcoholic",
)

# Beverage category ids used by the pairing form and profile palate step.
BEVERAGE_CATEGORIES: dict[str, str] = {
    "wine": "Wine",
    "beer": "Beer",
    "spirits": "Spirits",
    "cocktails": "Cocktails",
    "cider": "Cider",
    "na-wine": "Non-Alcoholic Wine",
    "na-beer": "Non-Alcoholic Beer",
    "na-spirits": "Non-Alcoholic Spirits",
    "mocktails": "Mocktails",
}

NON_ALCOHOLIC_FILTER = "non-alcoholic"
NON_ALCOHOLIC_TAGS: tuple[str, ...] = (
    "na-wine",
    "na-beer",
    "na-spirits",
    "mocktails",
    "Non-Alcoholic",
)

NO_BEVERAGE = "none"

Rating = Literal["up", "down"]


def _blank_to_none(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


class PairingDraft(SQLModel):
    """
    Server-side validation of the multipart pairing form.

    The image itself is validated by the service; these are the text fields.
    """

    model_config = ConfigDict(extra="forbid")

    food_name: str = Field(max_length=200)
    beverage_type: str | None = Field(default=None, max_length=50)
    flavor_principle: str | None = None
    review_text: str | None = Field(default=None, max_length=2000)
    beverage_brand: str | None = Field(default=None, max_length=200)
    food_brand: str | None = Field(default=None, max_length=200)
    rating: str
    idempotency_key: str | None = Field(default=None, max_length=100)

    @field_validator("food_name")
    @classmethod
    def food_name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Food name is required")
        return v

    @field_validator("beverage_type")
    @classmethod
    def default_beverage(cls, v: str | None) -> str:
        return _blank_to_none(v) or NO_BEVERAGE

    @field_validator("flavor_principle")
    @classmethod
    def known_principle(cls, v: str | None) -> str | None:
        v = _blank_to_none(v)
        if v is not None and v not in FLAVOR_PRINCIPLES:
            raise ValueError("Unknown flavor principle")
        return v

    @field_validator("review_text", "beverage_brand", "food_brand", "idempotency_key")
    @classmethod
    def optional_text(cls, v: str | None) -> str | None:
        return _blank_to_none(v)

    @field_validator("rating")
    @classmethod
    def valid_rating(cls, v: str) -> str:
        if v not in ("up", "down"):
            raise ValueError("Valid rating is required")
        return v


class PairingRead(SQLModel):
    """Pairing representation for clients."""

    id: uuid.UUID
    user_id: uuid.UUID
    image_url: str
    food_name: str
    beverage_type: str
    flavor_principle: str | None = None
    review_text: str | None = None
    beverage_brand: str | None = None
    food_brand: str | None = None
    rating: Rating
    reality_score: int | None = None
    created_at: datetime


class AuthorRead(SQLModel):
    username: str | None = None
    avatar_url: str | None = None


class PairingFeedItem(PairingRead):
    """
    Feed/detail item with author info and like state.
    """

    author: AuthorRead | None = None
    likes_count: int = 0
    liked_by_me: bool = False


class PairingCreateResponse(SQLModel):
    success: bool = True
    pairing: PairingRead


class RealityScoreUpdate(SQLModel):
    """Author-only 1-5 verdict after tasting."""

    model_config = ConfigDict(extra="forbid")

    reality_score: int = Field(ge=1, le=5)
