# pairup/routers/access.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from pairup.core.access_policy import evaluate_access, resolve_route
from pairup.core.age_gate import AGE_COOKIE
from pairup.core.auth import session_account
from pairup.database import get_session
from pairup.repositories.profile_repo import ProfileRepository
from pairup.schemas.auth import AccessDecisionRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/access", tags=["Access"])

repo = ProfileRepository()


@router.get("", response_model=AccessDecisionRead)
def check_access(
    request: Request,
    path: str = Query(..., description="Page path being navigated to"),
    session: Session = Depends(get_session),
):
    """
    Decide whether a page navigation is allowed.

    The frontend edge forwards the visitor's cookies (and bearer token, if
    any) and calls this once per navigation.

    Errors:
      - 503 if the profile lookup fails; the client should retry rather
        than treat the visitor as allowed or redirect them.
    """
    category = resolve_route(path)
    age_verified = request.cookies.get(AGE_COOKIE) == "true"
    account = session_account(request)

    def profile_exists() -> bool:
        return repo.exists(session, account.id)

    try:
        decision = evaluate_access(
            category,
            age_verified=age_verified,
            has_session=account is not None,
            profile_exists=profile_exists,
        )
    except SQLAlchemyError as e:
        logger.error("Profile lookup failed during access check for %s: %s", path, e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile lookup failed, please retry",
            headers={"Retry-After": "1"},
        )

    return AccessDecisionRead(
        path=path,
        category=category,
        allowed=decision.allowed,
        redirect_to=decision.redirect_to,
    )
