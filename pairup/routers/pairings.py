# pairup/routers/pairings.py
import uuid

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlmodel import Session

from pairup.core.auth import Account, get_current_account, require_auth
from pairup.core.storage_utils import ImageUpload
from pairup.database import get_session
from pairup.repositories.engagement_repo import EngagementRepository
from pairup.repositories.pairing_repo import PairingRepository
from pairup.repositories.profile_repo import ProfileRepository
from pairup.schemas.pairing import (
    PairingCreateResponse,
    PairingFeedItem,
    PairingRead,
    RealityScoreUpdate,
)
from pairup.services.pairing_service import PairingService

router = APIRouter(prefix="/pairings", tags=["Pairings"])

repo = PairingRepository()
service = PairingService(repo, ProfileRepository(), EngagementRepository())


@router.post("", response_model=PairingCreateResponse)
def create_pairing(
    image: UploadFile | None = File(None),
    food_name: str | None = Form(None),
    beverage_type: str | None = Form(None),
    flavor_principle: str | None = Form(None),
    review_text: str | None = Form(None),
    beverage_brand: str | None = Form(None),
    food_brand: str | None = Form(None),
    rating: str | None = Form(None),
    idempotency_key: str | None = Form(None),
    session: Session = Depends(get_session),
    account: Account = Depends(require_auth),
):
    """
    Publish a pairing (multipart form).

    - `beverage_type` defaults to "none".
    - Send a client-generated `idempotency_key` to make retries safe.

    Auth:
      - Requires valid Supabase JWT.
    """
    upload = None
    if image is not None:
        upload = ImageUpload(
            filename=image.filename,
            content_type=image.content_type,
            data=image.file.read(),
        )

    fields = {
        "food_name": food_name or "",
        "beverage_type": beverage_type,
        "flavor_principle": flavor_principle,
        "review_text": review_text,
        "beverage_brand": beverage_brand,
        "food_brand": food_brand,
        "rating": rating or "",
        "idempotency_key": idempotency_key,
    }
    pairing = service.create_pairing(session, account, fields, upload)
    return PairingCreateResponse(pairing=PairingRead.model_validate(pairing, from_attributes=True))


@router.get("", response_model=list[PairingFeedItem])
def list_pairings(
    beverage: str | None = Query(None, description="Beverage category id, 'non-alcoholic' or 'all'"),
    principle: str | None = Query(None, description="Exact flavor principle or 'all'"),
    limit: int = Query(50, ge=1, le=100),
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
):
    """
    Feed: newest pairings first.

    - Public endpoint; `liked_by_me` is filled when a token is sent.
    """
    return service.list_feed(
        session, viewer, beverage=beverage, principle=principle, limit=limit
    )


@router.get("/{pairing_id}", response_model=PairingFeedItem)
def get_pairing(
    pairing_id: uuid.UUID,
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
):
    """
    Get a single pairing by id.
    """
    return service.get_detail(session, pairing_id, viewer)


@router.put("/{pairing_id}/reality-score", response_model=PairingRead)
def set_reality_score(
    pairing_id: uuid.UUID,
    payload: RealityScoreUpdate,
    session: Session = Depends(get_session),
    account: Account = Depends(require_auth),
):
    """
    Set the author's 1-5 reality score (overwrites any previous score).

    Auth:
      - Only the pairing's author; others get 403.
    """
    return service.set_reality_score(session, account, pairing_id, payload.reality_score)
