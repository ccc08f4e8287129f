# pairup/routers/engagement.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from pairup.core.auth import Account, require_auth
from pairup.database import get_session
from pairup.repositories.engagement_repo import EngagementRepository
from pairup.repositories.pairing_repo import PairingRepository
from pairup.repositories.profile_repo import ProfileRepository
from pairup.schemas.engagement import CommentCreate, CommentRead, LikeStatus
from pairup.services.engagement_service import EngagementService

router = APIRouter(prefix="/pairings/{pairing_id}", tags=["Engagement"])

service = EngagementService(
    EngagementRepository(), PairingRepository(), ProfileRepository()
)


@router.post("/like", response_model=LikeStatus)
def toggle_like(
    pairing_id: uuid.UUID,
    session: Session = Depends(get_session),
    account: Account = Depends(require_auth),
):
    """
    Toggle the caller's like.

    Returns the confirmed like state and count.
    """
    return service.toggle_like(session, account, pairing_id)


@router.get("/comments", response_model=list[CommentRead])
def list_comments(
    pairing_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    List comments, oldest first (public).
    """
    return service.list_comments(session, pairing_id)


@router.post(
    "/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    pairing_id: uuid.UUID,
    payload: CommentCreate,
    session: Session = Depends(get_session),
    account: Account = Depends(require_auth),
):
    """
    Post a comment.

    Auth:
      - Requires valid Supabase JWT.
    """
    return service.add_comment(session, account, pairing_id, payload)
