# pairup/core/age_gate.py
"""
Age verification helpers.

The age gate issues two artefacts:
  - the `age_verified` cookie read by the access policy on every navigation
  - a short-lived signed token carrying the verified date of birth, which
    the signup endpoint requires instead of trusting browser storage
"""
from datetime import date, datetime, timedelta, timezone
from typing import Any

from jose import jwt, JWTError

from pairup.core.config import get_settings

settings = get_settings()

AGE_COOKIE = "age_verified"
AGE_COOKIE_ADULT_MAX_AGE = 30 * 24 * 60 * 60  # 30 days
AGE_COOKIE_MINOR_MAX_AGE = 24 * 60 * 60  # 1 day

_TOKEN_ALG = "HS256"
_TOKEN_PURPOSE = "age_gate"


class AgeTokenError(Exception):
    """Raised when an age token is missing, expired, or tampered with."""


def age_on(date_of_birth: date, today: date) -> int:
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def is_adult(date_of_birth: date, today: date | None = None) -> bool:
    today = today or datetime.now(timezone.utc).date()
    return age_on(date_of_birth, today) >= settings.MINIMUM_AGE


def issue_age_token(date_of_birth: date, now: datetime | None = None) -> str:
    """Sign a token stating the holder passed the age gate with this DOB."""
    now = now or datetime.now(timezone.utc)
    claims = {
        "purpose": _TOKEN_PURPOSE,
        "age_verified": True,
        "dob": date_of_birth.isoformat(),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.AGE_TOKEN_TTL_MINUTES)).timestamp()),
    }
    return jwt.encode(claims, settings.age_token_secret, algorithm=_TOKEN_ALG)


def verify_age_token(token: str) -> date:
    """
    Verify an age token and return the date of birth it carries.

    Raises:
        AgeTokenError: on bad signature, expiry, or unexpected claims.
    """
    try:
        claims: dict[str, Any] = jwt.decode(
            token, settings.age_token_secret, algorithms=[_TOKEN_ALG]
        )
    except JWTError as exc:
        raise AgeTokenError(str(exc)) from exc

    if claims.get("purpose") != _TOKEN_PURPOSE or claims.get("age_verified") is not True:
        raise AgeTokenError("Token does not attest age verification")

    try:
        return date.fromisoformat(claims["dob"])
    except (KeyError, ValueError) as exc:
        raise AgeTokenError("Token has no valid date of birth") from exc
