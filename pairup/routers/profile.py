# pairup/routers/profile.py
from typing import Any

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status
from sqlmodel import Session

from pairup.core.auth import Account, require_auth
from pairup.core.storage_utils import ImageUpload
from pairup.database import get_session
from pairup.repositories.profile_repo import ProfileRepository
from pairup.schemas.profile import ProfileRead, ProfileSaveResponse, ProfileUpdate
from pairup.services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["Profile"])

repo = ProfileRepository()
service = ProfileService(repo)


@router.post("", response_model=ProfileSaveResponse)
def save_profile(
    body: dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    current_account: Account = Depends(require_auth),
):
    """
    Onboarding: create or replace the caller's profile.

    Validation failures and taken usernames return 400 with the first
    error message.

    Auth:
      - Requires valid Supabase JWT.
    """
    profile = service.save_onboarding(session, current_account, body)
    return ProfileSaveResponse(profile=ProfileRead.model_validate(profile, from_attributes=True))


@router.get("/me", response_model=ProfileRead)
def read_me(
    session: Session = Depends(get_session),
    current_account: Account = Depends(require_auth),
):
    """
    Return the caller's profile, creating an empty one on first access.
    """
    return service.get_or_create_me(session, current_account)


@router.patch("/me", response_model=ProfileRead)
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current_account: Account = Depends(require_auth),
):
    """
    Update username, display name or bio (partial update).
    """
    return service.update_me(session, current_account, payload)


@router.post(
    "/me/avatar",
    response_model=ProfileRead,
    summary="Upload or replace the caller's avatar",
)
def upload_avatar(
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    current_account: Account = Depends(require_auth),
):
    """
    Upload a new avatar image (max 5MB).
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    image = ImageUpload(
        filename=file.filename,
        content_type=file.content_type,
        data=file.file.read(),
    )
    return service.set_avatar(session, current_account, image)
