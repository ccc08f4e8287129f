# pairup/repositories/pairing_repo.py
import uuid

from sqlmodel import Session, select

from pairup.models.pairing import Pairing


class PairingRepository:
    """
    Data access layer for Pairing.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, pairing_id: uuid.UUID) -> Pairing | None:
        return session.get(Pairing, pairing_id)

    def get_by_idempotency_key(
        self,
        session: Session,
        user_id: uuid.UUID,
        key: str,
    ) -> Pairing | None:
        stmt = select(Pairing).where(
            Pairing.user_id == user_id, Pairing.idempotency_key == key
        )
        return session.exec(stmt).first()

    def list(
        self,
        session: Session,
        beverage_types: list[str] | None = None,
        flavor_principle: str | None = None,
        limit: int = 50,
    ) -> list[Pairing]:
        """
        Newest-first pairing listing.

        Filters are exact matches: `beverage_types` is an IN list,
        `flavor_principle` an equality.
        """
        stmt = select(Pairing)
        if beverage_types:
            stmt = stmt.where(Pairing.beverage_type.in_(beverage_types))
        if flavor_principle:
            stmt = stmt.where(Pairing.flavor_principle == flavor_principle)
        stmt = stmt.order_by(Pairing.created_at.desc()).limit(limit)
        return session.exec(stmt).all()

    def create(self, session: Session, pairing: Pairing) -> Pairing:
        session.add(pairing)
        session.commit()
        session.refresh(pairing)
        return pairing

    def update(self, session: Session, pairing: Pairing) -> Pairing:
        session.add(pairing)
        session.commit()
        session.refresh(pairing)
        return pairing
