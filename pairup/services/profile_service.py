# pairup/services/profile_service.py
import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from pairup.core.auth import Account
from pairup.core.config import get_settings
from pairup.core.storage_utils import (
    ImageUpload,
    delete_from_storage,
    extract_path_from_public_url,
    generate_object_path,
    get_public_url,
    image_extension,
    upload_to_storage,
)
from pairup.core.validation import validate_or_400
from pairup.models.profile import Profile
from pairup.repositories.profile_repo import ProfileRepository
from pairup.schemas.profile import ProfileCreate, ProfileUpdate

logger = logging.getLogger(__name__)
settings = get_settings()

MAX_AVATAR_BYTES = 5 * 1024 * 1024  # 5MB

USERNAME_TAKEN = "Username is already taken"


class ProfileService:
    """
    Business logic for Profile.

    Responsibilities:
      - onboarding upsert with username uniqueness
      - lazy creation of an empty profile on first fetch
      - profile edits and avatar upload
    """

    def __init__(self, repo: ProfileRepository):
        self.repo = repo

    # ----- Helpers -----

    def _ensure_username_free(
        self, session: Session, account: Account, username: str | None
    ) -> None:
        if username and self.repo.username_taken(session, username, account.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=USERNAME_TAKEN,
            )

    def _save(self, session: Session, profile: Profile) -> Profile:
        """
        Persist a profile, mapping the username unique index to a 400.

        The pre-check in `_ensure_username_free` can race with another
        onboarding; the unique index is the final word.
        """
        profile.updated_at = datetime.now(timezone.utc)
        try:
            return self.repo.update(session, profile)
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=USERNAME_TAKEN,
            )
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Profile save error for %s: %s", profile.id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to save profile: {getattr(e, 'orig', None) or e}",
            )

    # ----- Self profile -----

    def get_or_create_me(self, session: Session, account: Account) -> Profile:
        """
        Return the caller's profile, creating an empty row if none exists.
        """
        profile = self.repo.get_by_id(session, account.id)
        if profile is None:
            logger.info("Creating empty profile for %s", account.id)
            profile = self.repo.create(session, Profile(id=account.id))
        return profile

    def save_onboarding(
        self,
        session: Session,
        account: Account,
        body: dict,
    ) -> Profile:
        """
        Insert or update the caller's profile from the onboarding wizard.

        Raises:
            HTTPException(400): validation failure or username taken.
            HTTPException(500): database failure.
        """
        payload = validate_or_400(ProfileCreate, body)
        self._ensure_username_free(session, account, payload.username)

        profile = self.repo.get_by_id(session, account.id) or Profile(id=account.id)
        profile.display_name = payload.display_name
        profile.username = payload.username
        profile.bio = payload.bio
        profile.beverage_preferences = payload.beverage_preferences
        profile.alcohol_toggle = payload.alcohol_toggle
        profile.instagram_handle = payload.instagram_handle
        profile.tiktok_handle = payload.tiktok_handle

        logger.info("Saving profile for %s (username=%s)", account.id, payload.username)
        return self._save(session, profile)

    def update_me(
        self,
        session: Session,
        account: Account,
        payload: ProfileUpdate,
    ) -> Profile:
        """
        Partial update for profile edits.

        Only fields present in the request are touched; an empty bio clears it.
        """
        profile = self.get_or_create_me(session, account)
        fields = payload.model_fields_set

        if "username" in fields and payload.username is not None:
            self._ensure_username_free(session, account, payload.username)
            profile.username = payload.username

        if "display_name" in fields and payload.display_name is not None:
            profile.display_name = payload.display_name

        if "bio" in fields:
            profile.bio = payload.bio

        return self._save(session, profile)

    # ----- Avatar -----

    def set_avatar(
        self,
        session: Session,
        account: Account,
        image: ImageUpload,
    ) -> Profile:
        """
        Upload a new avatar and point the profile at it.

        - Validates content type + size.
        - Deletes the previous avatar from Storage (best-effort).
        """
        ext = image_extension(image)
        if ext is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Please select an image file",
            )
        if image.size > MAX_AVATAR_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image must be less than 5MB",
            )

        profile = self.get_or_create_me(session, account)
        previous_url = profile.avatar_url

        path = generate_object_path(account.id, ext)
        try:
            upload_to_storage(
                settings.AVATARS_BUCKET,
                path,
                image.data,
                content_type=image.content_type,
                upsert=True,
            )
            profile.avatar_url = get_public_url(settings.AVATARS_BUCKET, path)
        except Exception as e:
            logger.error("Avatar upload error for %s: %s", account.id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to upload image",
            )

        saved = self._save(session, profile)

        if previous_url:
            old_path = extract_path_from_public_url(settings.AVATARS_BUCKET, previous_url)
            if old_path and old_path != path:
                try:
                    delete_from_storage(settings.AVATARS_BUCKET, old_path)
                except Exception:
                    logger.exception("Failed to delete previous avatar %s", old_path)

        return saved
