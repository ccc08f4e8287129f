# pairup/repositories/profile_repo.py
import uuid

from sqlmodel import Session, select

from pairup.models.profile import Profile


class ProfileRepository:
    """
    Data access layer for Profile.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_id(self, session: Session, profile_id: uuid.UUID) -> Profile | None:
        """Return a Profile by primary key, or None if not found."""
        return session.get(Profile, profile_id)

    def exists(self, session: Session, profile_id: uuid.UUID) -> bool:
        """
        Single-row existence check.

        Returns False only when zero rows match. Database errors are not
        caught here and propagate to the caller.
        """
        stmt = select(Profile.id).where(Profile.id == profile_id)
        return session.exec(stmt).first() is not None

    def get_by_username(self, session: Session, username: str) -> Profile | None:
        stmt = select(Profile).where(Profile.username == username)
        return session.exec(stmt).first()

    def username_taken(
        self,
        session: Session,
        username: str,
        exclude_id: uuid.UUID,
    ) -> bool:
        """True if another profile already uses `username`."""
        stmt = select(Profile.id).where(
            Profile.username == username, Profile.id != exclude_id
        )
        return session.exec(stmt).first() is not None

    def list_by_ids(
        self,
        session: Session,
        profile_ids: set[uuid.UUID],
    ) -> dict[uuid.UUID, Profile]:
        """Fetch several profiles at once, keyed by id."""
        if not profile_ids:
            return {}
        stmt = select(Profile).where(Profile.id.in_(list(profile_ids)))
        return {p.id: p for p in session.exec(stmt).all()}

    def create(self, session: Session, profile: Profile) -> Profile:
        """Insert a new Profile and return the persisted row."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    def update(self, session: Session, profile: Profile) -> Profile:
        """Persist changes to an existing Profile."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile
