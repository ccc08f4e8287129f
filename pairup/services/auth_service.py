# pairup/services/auth_service.py
import logging
from datetime import date, datetime, timezone

from fastapi import HTTPException, status
from supabase import AuthError

from pairup.core.access_policy import BLOCKED_PATH, LOGIN_PATH
from pairup.core.age_gate import (
    AgeTokenError,
    is_adult,
    issue_age_token,
    verify_age_token,
)
from pairup.core.supabase_client import supabase_public, supabase_request_client
from pairup.schemas.auth import AgeGateResult, DateOfBirth, SignupRequest, SignupResponse

logger = logging.getLogger(__name__)


class AuthService:
    """
    Age gate and account creation.

    Password handling and sessions stay in Supabase Auth; this service only
    checks the age attestation and attaches consent metadata.
    """

    def verify_age(self, payload: DateOfBirth) -> AgeGateResult:
        """
        Decide the age gate.

        Adults get a signed age token for signup; everyone else is sent to
        the blocked page.
        """
        dob = payload.to_date()
        if not is_adult(dob):
            return AgeGateResult(verified=False, redirect_to=BLOCKED_PATH)
        return AgeGateResult(
            verified=True,
            redirect_to=LOGIN_PATH,
            age_token=issue_age_token(dob),
        )

    @staticmethod
    def _consent_metadata(dob: date | None = None) -> dict:
        data = {
            "data_consent_granted": True,
            "data_consent_timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if dob is not None:
            data["date_of_birth"] = dob.isoformat()
        return data

    def signup(self, payload: SignupRequest) -> SignupResponse:
        """
        Create an email/password account.

        Raises:
            HTTPException(400): missing/invalid age token or Supabase rejection.
        """
        try:
            dob = verify_age_token(payload.age_token)
        except AgeTokenError as e:
            logger.info("Signup rejected, bad age token: %s", e)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Date of birth not found. Please complete age verification first.",
            )

        try:
            resp = supabase_public().auth.sign_up(
                {
                    "email": payload.email,
                    "password": payload.password,
                    "options": {"data": self._consent_metadata(dob)},
                }
            )
        except AuthError as e:
            logger.warning("Supabase sign_up failed for %s: %s", payload.email, e)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            )

        user = resp.user
        return SignupResponse(
            user_id=str(user.id) if user else None,
            confirmation_required=resp.session is None,
        )

    def complete_oauth(self, code: str, code_verifier: str | None = None):
        """
        Exchange an OAuth/magic-link code for a session.

        OAuth users never saw the consent checkbox; reaching this point after
        the age gate counts as consent, so it is recorded when missing.

        Returns:
            The Supabase session, or None when the exchange failed.
        """
        client = supabase_request_client()
        params = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier

        try:
            resp = client.auth.exchange_code_for_session(params)
        except AuthError as e:
            logger.warning("OAuth code exchange failed: %s", e)
            return None

        session = resp.session
        if session is None:
            return None

        metadata = session.user.user_metadata or {}
        if not metadata.get("data_consent_granted"):
            try:
                client.auth.update_user({"data": {**metadata, **self._consent_metadata()}})
            except AuthError:
                logger.exception("Failed to record consent for %s", session.user.id)

        return session
