# pairup/repositories/engagement_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from pairup.models.engagement import Comment, Like


class EngagementRepository:
    """Data access for likes and comments."""

    # ----- Likes -----

    def get_like(
        self, session: Session, user_id: uuid.UUID, pairing_id: uuid.UUID
    ) -> Like | None:
        return session.get(Like, (user_id, pairing_id))

    def create_like(self, session: Session, like: Like) -> Like:
        """
        Insert a like.

        A duplicate (user_id, pairing_id) raises IntegrityError from the
        primary key; the caller decides what that means.
        """
        session.add(like)
        session.commit()
        return like

    def delete_like(self, session: Session, like: Like) -> None:
        session.delete(like)
        session.commit()

    def count_likes(self, session: Session, pairing_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Like).where(Like.pairing_id == pairing_id)
        return session.exec(stmt).one()

    def like_counts(
        self, session: Session, pairing_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, int]:
        if not pairing_ids:
            return {}
        stmt = (
            select(Like.pairing_id, func.count())
            .where(Like.pairing_id.in_(pairing_ids))
            .group_by(Like.pairing_id)
        )
        return {pid: count for pid, count in session.exec(stmt).all()}

    def liked_pairing_ids(
        self, session: Session, user_id: uuid.UUID, pairing_ids: list[uuid.UUID]
    ) -> set[uuid.UUID]:
        if not pairing_ids:
            return set()
        stmt = select(Like.pairing_id).where(
            Like.user_id == user_id, Like.pairing_id.in_(pairing_ids)
        )
        return set(session.exec(stmt).all())

    # ----- Comments -----

    def list_comments(self, session: Session, pairing_id: uuid.UUID) -> list[Comment]:
        stmt = (
            select(Comment)
            .where(Comment.pairing_id == pairing_id)
            .order_by(Comment.created_at)
        )
        return session.exec(stmt).all()

    def create_comment(self, session: Session, comment: Comment) -> Comment:
        session.add(comment)
        session.commit()
        session.refresh(comment)
        return comment
