"""tests/helpers.py - token and row builders shared by the test modules."""
import os
import time
import uuid

from jose import jwt

from pairup.models.pairing import Pairing

# Smallest JPEG-looking payload; content is never decoded.
IMAGE_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-bytes\xff\xd9"


def make_token(user_id: uuid.UUID, email: str = "taster@example.com", **claims) -> str:
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
        **claims,
    }
    return jwt.encode(payload, os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")


def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def make_pairing(**kw) -> Pairing:
    defaults = dict(
        user_id=uuid.uuid4(),
        image_url="https://pairup-test.supabase.co/storage/v1/object/public/pairings/x/1.jpg",
        food_name="Grilled Ribeye Steak",
        beverage_type="Wine",
        flavor_principle="Fat + Tannin",
        review_text="Bold tannins meet rich marbling.",
        rating="up",
    )
    defaults.update(kw)
    return Pairing(**defaults)
