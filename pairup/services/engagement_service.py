# pairup/services/engagement_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from pairup.core.auth import Account
from pairup.models.engagement import Comment, Like
from pairup.repositories.engagement_repo import EngagementRepository
from pairup.repositories.pairing_repo import PairingRepository
from pairup.repositories.profile_repo import ProfileRepository
from pairup.schemas.engagement import CommentCreate, CommentRead, LikeStatus
from pairup.schemas.pairing import AuthorRead

logger = logging.getLogger(__name__)


class EngagementService:
    """
    Likes and comments.

    Every operation returns the state the server actually holds, which is
    what clients reconcile optimistic previews against.
    """

    def __init__(
        self,
        repo: EngagementRepository,
        pairing_repo: PairingRepository,
        profile_repo: ProfileRepository,
    ):
        self.repo = repo
        self.pairing_repo = pairing_repo
        self.profile_repo = profile_repo

    def _ensure_pairing(self, session: Session, pairing_id: uuid.UUID) -> None:
        if not self.pairing_repo.get_by_id(session, pairing_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Pairing not found",
            )

    # ----- Likes -----

    def toggle_like(
        self,
        session: Session,
        account: Account,
        pairing_id: uuid.UUID,
    ) -> LikeStatus:
        """
        Like if not liked, unlike if liked.

        A duplicate-key error on insert means a concurrent toggle already
        created the row, so the pairing is liked either way.
        """
        self._ensure_pairing(session, pairing_id)

        existing = self.repo.get_like(session, account.id, pairing_id)
        if existing:
            self.repo.delete_like(session, existing)
            liked = False
        else:
            try:
                self.repo.create_like(
                    session, Like(user_id=account.id, pairing_id=pairing_id)
                )
            except IntegrityError:
                session.rollback()
                logger.info(
                    "Concurrent like for %s by %s already stored", pairing_id, account.id
                )
            liked = True

        return LikeStatus(
            pairing_id=pairing_id,
            liked=liked,
            likes_count=self.repo.count_likes(session, pairing_id),
        )

    # ----- Comments -----

    def _to_reads(self, session: Session, comments: list[Comment]) -> list[CommentRead]:
        authors = self.profile_repo.list_by_ids(session, {c.user_id for c in comments})
        reads: list[CommentRead] = []
        for c in comments:
            author = authors.get(c.user_id)
            reads.append(
                CommentRead(
                    **c.model_dump(),
                    author=(
                        AuthorRead(username=author.username, avatar_url=author.avatar_url)
                        if author
                        else None
                    ),
                )
            )
        return reads

    def list_comments(
        self,
        session: Session,
        pairing_id: uuid.UUID,
    ) -> list[CommentRead]:
        """Comments for a pairing, oldest first."""
        self._ensure_pairing(session, pairing_id)
        return self._to_reads(session, self.repo.list_comments(session, pairing_id))

    def add_comment(
        self,
        session: Session,
        account: Account,
        pairing_id: uuid.UUID,
        payload: CommentCreate,
    ) -> CommentRead:
        """Append a comment. Comments cannot be edited or deleted."""
        self._ensure_pairing(session, pairing_id)
        comment = self.repo.create_comment(
            session,
            Comment(user_id=account.id, pairing_id=pairing_id, content=payload.content),
        )
        return self._to_reads(session, [comment])[0]
