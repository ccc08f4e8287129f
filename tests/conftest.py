"""tests/conftest.py - shared fixtures for all tests."""
import os

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("SUPABASE_URL", "https://pairup-test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from pairup.database import get_session
from pairup.main import app
from pairup.models.pairing import Pairing
from pairup.models.profile import Profile
from tests.helpers import make_pairing


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)

@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session

@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()

@pytest.fixture
def other_user_id() -> uuid.UUID:
    return uuid.uuid4()

@pytest.fixture
def profile(session, user_id) -> Profile:
    p = Profile(
        id=user_id,
        username="cork_dork",
        display_name="Cork Dork",
        beverage_preferences=["wine"],
    )
    session.add(p)
    session.commit()
    session.refresh(p)
    return p

@pytest.fixture
def pairing(session, user_id) -> Pairing:
    p = make_pairing(user_id=user_id)
    session.add(p)
    session.commit()
    session.refresh(p)
    return p

@pytest.fixture
def seeded_feed(session, user_id) -> list[Pairing]:
    now = datetime.now(timezone.utc)
    rows = [
        make_pairing(user_id=user_id, food_name="Steak", beverage_type="wine",
                     flavor_principle="Fat + Tannin", created_at=now - timedelta(minutes=5)),
        make_pairing(user_id=user_id, food_name="Salmon", beverage_type="Wine",
                     flavor_principle="Acid + Umami", created_at=now - timedelta(minutes=4)),
        make_pairing(user_id=user_id, food_name="Fries", beverage_type="na-wine",
                     flavor_principle="Effervescence + Fried", created_at=now - timedelta(minutes=3)),
        make_pairing(user_id=user_id, food_name="Wings", beverage_type="mocktails",
                     flavor_principle="Sweet + Spicy", created_at=now - timedelta(minutes=2)),
        make_pairing(user_id=user_id, food_name="Pretzel", beverage_type="beer",
                     flavor_principle=None, created_at=now - timedelta(minutes=1)),
    ]
    for r in rows:
        session.add(r)
    session.commit()
    return rows
