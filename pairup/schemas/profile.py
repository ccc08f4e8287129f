# pairup/schemas/profile.py
import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from pairup.schemas.pairing import BEVERAGE_CATEGORIES

AlcoholToggle = Literal["Show All", "Non-Alcoholic Only", "Alcoholic Only"]

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
HANDLE_RE = re.compile(r"^[a-zA-Z0-9._]*$")


def _check_username(v: str) -> str:
    v = v.strip()
    if len(v) < 3:
        raise ValueError("Username must be at least 3 characters")
    if len(v) > 30:
        raise ValueError("Username must be at most 30 characters")
    if not USERNAME_RE.match(v):
        raise ValueError("Username can only contain letters, numbers, and underscores")
    return v


def _check_display_name(v: str) -> str:
    v = v.strip()
    if len(v) < 2:
        raise ValueError("Display name must be at least 2 characters")
    if len(v) > 50:
        raise ValueError("Display name must be at most 50 characters")
    return v


def _check_bio(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if len(v) > 500:
        raise ValueError("Bio must be at most 500 characters")
    return v or None


def _check_handle(v: str | None, label: str, max_len: int) -> str | None:
    if v is None:
        return None
    v = v.strip().lstrip("@")
    if len(v) > max_len:
        raise ValueError(f"{label} handle must be at most {max_len} characters")
    if not HANDLE_RE.match(v):
        raise ValueError(f"Invalid {label} handle format")
    return v or None


class ProfileCreate(SQLModel):
    """
    Full onboarding payload (all wizard steps merged).

    Steps:
      - basic info: display_name, username, bio
      - palate: beverage_preferences (at least one)
      - alcohol toggle
      - socials: instagram_handle, tiktok_handle
    """

    model_config = ConfigDict(extra="forbid")

    display_name: str
    username: str
    bio: str | None = None
    beverage_preferences: list[str]
    alcohol_toggle: AlcoholToggle
    instagram_handle: str | None = None
    tiktok_handle: str | None = None

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        return _check_display_name(v)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("bio")
    @classmethod
    def validate_bio(cls, v: str | None) -> str | None:
        return _check_bio(v)

    @field_validator("beverage_preferences")
    @classmethod
    def validate_palate(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("Select at least one beverage preference")
        unknown = [c for c in v if c not in BEVERAGE_CATEGORIES]
        if unknown:
            raise ValueError(f"Unknown beverage preference: {unknown[0]}")
        # keep first occurrence order
        return list(dict.fromkeys(v))

    @field_validator("instagram_handle")
    @classmethod
    def validate_instagram(cls, v: str | None) -> str | None:
        return _check_handle(v, "Instagram", 30)

    @field_validator("tiktok_handle")
    @classmethod
    def validate_tiktok(cls, v: str | None) -> str | None:
        return _check_handle(v, "TikTok", 24)


class ProfileUpdate(SQLModel):
    """
    Partial profile edit from the profile page.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    username: str | None = None
    display_name: str | None = None
    bio: str | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        return None if v is None else _check_username(v)

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: str | None) -> str | None:
        return None if v is None else _check_display_name(v)

    @field_validator("bio")
    @classmethod
    def validate_bio(cls, v: str | None) -> str | None:
        return _check_bio(v)


class ProfileRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    username: str | None = None
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    beverage_preferences: list[str] = Field(default_factory=list)
    dietary_preferences: list[str] = Field(default_factory=list)
    alcohol_toggle: AlcoholToggle = "Show All"
    instagram_handle: str | None = None
    tiktok_handle: str | None = None
    created_at: datetime
    updated_at: datetime


class ProfileSaveResponse(SQLModel):
    success: bool = True
    profile: ProfileRead
