# pairup/routers/auth.py
from fastapi import APIRouter, Request, Response
from fastapi.responses import RedirectResponse

from pairup.core.access_policy import FEED_PATH
from pairup.core.age_gate import (
    AGE_COOKIE,
    AGE_COOKIE_ADULT_MAX_AGE,
    AGE_COOKIE_MINOR_MAX_AGE,
)
from pairup.core.auth import ACCESS_TOKEN_COOKIE
from pairup.schemas.auth import AgeGateResult, DateOfBirth, SignupRequest, SignupResponse
from pairup.services.auth_service import AuthService

router = APIRouter(tags=["Auth"])

# Served at the site root (outside the API prefix) as the OAuth redirect URL.
callback_router = APIRouter(tags=["Auth"])

CODE_VERIFIER_COOKIE = "sb-code-verifier"

service = AuthService()


@router.post("/age-gate", response_model=AgeGateResult)
def age_gate(payload: DateOfBirth, response: Response):
    """
    Check the visitor's date of birth.

    - Adult: `age_verified=true` cookie for 30 days + signed `age_token`
      to send with signup.
    - Under age: `age_verified=false` cookie for 1 day, redirect to /blocked.
    """
    result = service.verify_age(payload)
    response.set_cookie(
        AGE_COOKIE,
        "true" if result.verified else "false",
        max_age=AGE_COOKIE_ADULT_MAX_AGE if result.verified else AGE_COOKIE_MINOR_MAX_AGE,
        path="/",
        samesite="lax",
    )
    return result


@router.post("/auth/signup", response_model=SignupResponse)
def signup(payload: SignupRequest):
    """
    Create an email/password account in Supabase Auth.

    Requires the `age_token` issued by the age gate.
    """
    return service.signup(payload)


@callback_router.get("/callback")
def oauth_callback(request: Request, code: str | None = None):
    """
    OAuth redirect target: exchange the code, then continue to the feed.

    The feed's access check sends the visitor to /login if no session
    came out of the exchange.
    """
    response = RedirectResponse(url=FEED_PATH, status_code=303)
    if not code:
        return response

    session = service.complete_oauth(code, request.cookies.get(CODE_VERIFIER_COOKIE))
    if session is not None:
        response.set_cookie(
            ACCESS_TOKEN_COOKIE,
            session.access_token,
            max_age=session.expires_in,
            path="/",
            httponly=True,
            secure=True,
            samesite="lax",
        )
        response.delete_cookie(CODE_VERIFIER_COOKIE, path="/")
    return response
