# pairup/schemas/auth.py
import re
from datetime import date, datetime, timezone

from pydantic import ConfigDict, EmailStr, field_validator, model_validator
from sqlmodel import SQLModel

from pairup.core.access_policy import RouteCategory


class DateOfBirth(SQLModel):
    """
    Age gate form input. Fields arrive as strings from the MM/DD/YYYY inputs.
    """

    model_config = ConfigDict(extra="forbid")

    month: str
    day: str
    year: str

    def to_date(self) -> date:
        return date(int(self.year), int(self.month), int(self.day))

    @model_validator(mode="after")
    def real_date(self) -> "DateOfBirth":
        try:
            month, day, year = int(self.month), int(self.day), int(self.year)
        except ValueError:
            raise ValueError("Please enter a valid date")

        if year < 1900 or year > datetime.now(timezone.utc).year:
            raise ValueError("Please enter a valid date")
        try:
            date(year, month, day)
        except ValueError:
            raise ValueError("Please enter a valid date")
        return self


class AgeGateResult(SQLModel):
    verified: bool
    redirect_to: str
    age_token: str | None = None


class SignupRequest(SQLModel):
    """
    Email/password signup.

    `age_token` is the signed token from the age gate; it replaces the date
    of birth the browser used to keep in local storage.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str
    confirm_password: str
    data_consent: bool
    age_token: str

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"[0-9]", v):
            raise ValueError("Password must contain at least one number")
        return v

    @field_validator("data_consent")
    @classmethod
    def consent_given(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("You must agree to the data consent to create an account")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "SignupRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class SignupResponse(SQLModel):
    success: bool = True
    user_id: str | None = None
    confirmation_required: bool = False


class AccessDecisionRead(SQLModel):
    path: str
    category: RouteCategory
    allowed: bool
    redirect_to: str | None = None
