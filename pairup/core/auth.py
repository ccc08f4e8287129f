# pairup/core/auth.py
import uuid
from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from pairup.core.config import get_settings

settings = get_settings()

# Cookie used by the frontend to forward the Supabase access token on
# page navigations (browsers do not send Authorization headers there).
ACCESS_TOKEN_COOKIE = "sb-access-token"

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support anonymous reads (feed, comments).
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Account:
    """
    Authenticated Supabase account, built from access token claims.

    The account itself lives in Supabase Auth (auth.users). The app never
    stores it; profiles are keyed by the same id.
    """

    id: uuid.UUID
    email: str | None = None
    user_metadata: dict[str, Any] = field(default_factory=dict)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def account_from_token(token: str) -> Account:
    """
    Build an Account from a raw access token.

    Raises:
        HTTPException(401): if the token is invalid or has no usable `sub`.
    """
    payload = decode_access_token(token)
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    # Supabase provides sub as a string; enforce UUID
    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    return Account(
        id=sub_uuid,
        email=payload.get("email"),
        user_metadata=payload.get("user_metadata") or {},
    )


def session_account(request: Request) -> Account | None:
    """
    Session introspection for page navigations.

    Looks for a bearer token first, then the access token cookie. Any
    invalid token counts as "no session".
    """
    token = None
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
    if not token:
        token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        return None

    try:
        return account_from_token(token)
    except HTTPException:
        return None


def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Account | None:
    """
    Resolve the current account from a Supabase JWT.

    Flow:
      1. If no Authorization header => anonymous => return None.
      2. Decode JWT => extract 'sub' (auth user id) and 'email'.

    Raises:
        HTTPException(401): if a token is present but invalid.
    """
    if credentials is None:
        return None  # anonymous
    return account_from_token(credentials.credentials)


def require_auth(account: Account | None = Depends(get_current_account)) -> Account:
    """
    Enforce authentication.

    API routes never redirect; missing auth is always a 401.

    Raises:
        HTTPException(401): if account is None.
    """
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return account
