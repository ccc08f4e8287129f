# pairup/services/pairing_service.py
import logging
import uuid

import httpx
from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlmodel import Session

from pairup.core.auth import Account
from pairup.core.config import get_settings
from pairup.core.storage_utils import (
    ImageUpload,
    delete_from_storage,
    generate_object_path,
    get_public_url,
    image_extension,
    upload_to_storage,
)
from pairup.core.validation import field_errors
from pairup.models.pairing import Pairing
from pairup.repositories.engagement_repo import EngagementRepository
from pairup.repositories.pairing_repo import PairingRepository
from pairup.repositories.profile_repo import ProfileRepository
from pairup.schemas.pairing import (
    BEVERAGE_CATEGORIES,
    FLAVOR_PRINCIPLES,
    NON_ALCOHOLIC_FILTER,
    NON_ALCOHOLIC_TAGS,
    AuthorRead,
    PairingDraft,
    PairingFeedItem,
)

logger = logging.getLogger(__name__)
settings = get_settings()

MAX_PAIRING_IMAGE_BYTES = 10 * 1024 * 1024  # 10MB

# Postgres SQLSTATE for "canceling statement due to statement timeout"
QUERY_CANCELED = "57014"

ALL_FILTER = "all"


def _is_statement_timeout(exc: SQLAlchemyError) -> bool:
    return isinstance(exc, OperationalError) and (
        getattr(exc.orig, "pgcode", None) == QUERY_CANCELED
    )


class PairingService:
    """
    Business logic for pairings.

    Responsibilities:
      - validate submissions before any I/O
      - upload -> public URL -> insert, deleting the upload if the insert fails
      - feed/detail reads with author and like info
      - author-only reality score
    """

    def __init__(
        self,
        repo: PairingRepository,
        profile_repo: ProfileRepository,
        engagement_repo: EngagementRepository,
    ):
        self.repo = repo
        self.profile_repo = profile_repo
        self.engagement_repo = engagement_repo

    # ----- Helpers -----

    @staticmethod
    def _validate_submission(
        fields: dict,
        image: ImageUpload | None,
    ) -> tuple[PairingDraft, str]:
        """
        Validate the image and the text fields together.

        Returns:
            (validated draft, storage extension)

        Raises:
            HTTPException(400): with every failing field in `errors`.
        """
        errors: dict[str, str] = {}
        ext: str | None = None

        if image is None or image.size == 0:
            errors["image"] = "Image is required"
        else:
            ext = image_extension(image)
            if ext is None:
                errors["image"] = "Unsupported image type"
            elif image.size > MAX_PAIRING_IMAGE_BYTES:
                errors["image"] = "Image too large (max 10MB)"

        draft: PairingDraft | None = None
        try:
            draft = PairingDraft.model_validate(fields)
        except ValidationError as exc:
            errors.update(field_errors(exc))

        if errors:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": next(iter(errors.values())), "errors": errors},
            )
        return draft, ext

    def _remove_orphan(self, path: str) -> None:
        """Best-effort delete of an upload whose row was never saved."""
        try:
            delete_from_storage(settings.PAIRINGS_BUCKET, path)
            logger.info("Removed orphaned upload %s", path)
        except Exception:
            logger.exception("Failed to remove orphaned upload %s", path)

    def _get_pairing(self, session: Session, pairing_id: uuid.UUID) -> Pairing:
        pairing = self.repo.get_by_id(session, pairing_id)
        if not pairing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Pairing not found",
            )
        return pairing

    @staticmethod
    def _beverage_filter(beverage: str | None) -> list[str] | None:
        """
        Translate a beverage filter into the exact stored tags it covers.

        Category ids also match their display label ("wine" -> "Wine"),
        which is what AI-prefilled forms submit.
        """
        if not beverage or beverage == ALL_FILTER:
            return None
        beverage = beverage.strip()
        if beverage == NON_ALCOHOLIC_FILTER:
            return list(NON_ALCOHOLIC_TAGS)
        if beverage in BEVERAGE_CATEGORIES:
            return list(dict.fromkeys([beverage, BEVERAGE_CATEGORIES[beverage]]))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown beverage filter: {beverage}",
        )

    @staticmethod
    def _principle_filter(principle: str | None) -> str | None:
        if not principle or principle == ALL_FILTER:
            return None
        if principle not in FLAVOR_PRINCIPLES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown flavor principle: {principle}",
            )
        return principle

    def _to_feed_items(
        self,
        session: Session,
        pairings: list[Pairing],
        viewer: Account | None,
    ) -> list[PairingFeedItem]:
        ids = [p.id for p in pairings]
        authors = self.profile_repo.list_by_ids(session, {p.user_id for p in pairings})
        counts = self.engagement_repo.like_counts(session, ids)
        liked = (
            self.engagement_repo.liked_pairing_ids(session, viewer.id, ids)
            if viewer
            else set()
        )

        items: list[PairingFeedItem] = []
        for p in pairings:
            author = authors.get(p.user_id)
            items.append(
                PairingFeedItem(
                    **p.model_dump(exclude={"idempotency_key"}),
                    author=(
                        AuthorRead(username=author.username, avatar_url=author.avatar_url)
                        if author
                        else None
                    ),
                    likes_count=counts.get(p.id, 0),
                    liked_by_me=p.id in liked,
                )
            )
        return items

    # ----- Submission -----

    def create_pairing(
        self,
        session: Session,
        account: Account,
        fields: dict,
        image: ImageUpload | None,
    ) -> Pairing:
        """
        Persist one pairing and its photo.

        Steps:
          1. validate (400, no I/O)
          2. replay an earlier submission with the same idempotency key
          3. upload to <account_id>/<epoch_ms>.<ext> (no overwrite)
          4. resolve the public URL
          5. insert the row; on failure delete the upload, then raise

        Without an idempotency key, a retried request creates a second
        pairing.
        """
        draft, ext = self._validate_submission(fields, image)

        if draft.idempotency_key:
            existing = self.repo.get_by_idempotency_key(
                session, account.id, draft.idempotency_key
            )
            if existing:
                logger.info(
                    "Replaying pairing %s for idempotency key %s",
                    existing.id,
                    draft.idempotency_key,
                )
                return existing

        path = generate_object_path(account.id, ext)
        logger.info("Uploading pairing image %s (%d bytes)", path, image.size)

        try:
            upload_to_storage(
                settings.PAIRINGS_BUCKET,
                path,
                image.data,
                content_type=image.content_type,
                upsert=False,
            )
        except httpx.TimeoutException:
            logger.warning("Pairing image upload timed out: %s", path)
            # Storage may have stored the object before the read timed out.
            self._remove_orphan(path)
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail="Image upload timed out",
            )
        except Exception as e:
            logger.error("Upload error for %s: %s", path, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to upload image: {e}",
            )

        try:
            public_url = get_public_url(settings.PAIRINGS_BUCKET, path)
        except Exception as e:
            logger.error("Could not resolve public URL for %s: %s", path, e)
            self._remove_orphan(path)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to resolve image URL: {e}",
            )

        pairing = Pairing(
            user_id=account.id,
            image_url=public_url,
            food_name=draft.food_name,
            beverage_type=draft.beverage_type,
            flavor_principle=draft.flavor_principle,
            review_text=draft.review_text,
            beverage_brand=draft.beverage_brand,
            food_brand=draft.food_brand,
            rating=draft.rating,
            idempotency_key=draft.idempotency_key,
        )

        try:
            created = self.repo.create(session, pairing)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(
                "Insert error for pairing by %s (image %s): %s", account.id, path, e
            )
            self._remove_orphan(path)

            if isinstance(e, IntegrityError) and draft.idempotency_key:
                # A concurrent request with the same key won the insert.
                existing = self.repo.get_by_idempotency_key(
                    session, account.id, draft.idempotency_key
                )
                if existing:
                    return existing

            if _is_statement_timeout(e):
                raise HTTPException(
                    status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                    detail="Saving the pairing timed out",
                )
            cause = getattr(e, "orig", None) or e
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to save pairing: {cause}",
            )

        logger.info("Pairing created: %s by %s", created.id, account.id)
        return created

    # ----- Reads -----

    def list_feed(
        self,
        session: Session,
        viewer: Account | None,
        beverage: str | None = None,
        principle: str | None = None,
        limit: int = 50,
    ) -> list[PairingFeedItem]:
        """Newest pairings, optionally filtered by exact beverage/principle."""
        pairings = self.repo.list(
            session,
            beverage_types=self._beverage_filter(beverage),
            flavor_principle=self._principle_filter(principle),
            limit=limit,
        )
        return self._to_feed_items(session, pairings, viewer)

    def get_detail(
        self,
        session: Session,
        pairing_id: uuid.UUID,
        viewer: Account | None,
    ) -> PairingFeedItem:
        pairing = self._get_pairing(session, pairing_id)
        return self._to_feed_items(session, [pairing], viewer)[0]

    # ----- Reality score -----

    def set_reality_score(
        self,
        session: Session,
        account: Account,
        pairing_id: uuid.UUID,
        score: int,
    ) -> Pairing:
        """
        Overwrite the author's 1-5 verdict.

        Raises:
            HTTPException(404): pairing missing.
            HTTPException(403): caller is not the author.
        """
        pairing = self._get_pairing(session, pairing_id)
        if pairing.user_id != account.id:
            logger.warning(
                "Account %s tried to rate pairing %s owned by %s",
                account.id,
                pairing.id,
                pairing.user_id,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the author can set the reality score",
            )

        pairing.reality_score = score
        return self.repo.update(session, pairing)
