"""tests/test_profile_api.py - onboarding, self profile and avatar."""
import asyncio

import pytest
from unittest.mock import patch

from pairup.models.profile import Profile
from tests.helpers import IMAGE_BYTES, auth_headers

SVC = "pairup.services.profile_service"
AVATAR_BASE = "https://pairup-test.supabase.co/storage/v1/object/public/avatars/"


def _onboarding(**overrides):
    body = {
        "display_name": "Hop Head",
        "username": "hop_head",
        "bio": "IPAs and tacos.",
        "beverage_preferences": ["beer", "cocktails", "beer"],
        "alcohol_toggle": "Show All",
        "instagram_handle": "@hophead",
        "tiktok_handle": None,
    }
    body.update(overrides)
    return body


class TestOnboarding:

    def test_creates_profile(self, client, session, user_id):
        r = client.post("/api/v1/profile", json=_onboarding(), headers=auth_headers(user_id))
        assert r.status_code == 200
        profile = r.json()["profile"]
        assert r.json()["success"] is True
        assert profile["username"] == "hop_head"
        assert profile["beverage_preferences"] == ["beer", "cocktails"]
        assert profile["instagram_handle"] == "hophead"
        assert session.get(Profile, user_id) is not None

    def test_updates_existing(self, client, profile, user_id):
        r = client.post("/api/v1/profile", json=_onboarding(), headers=auth_headers(user_id))
        assert r.status_code == 200
        assert r.json()["profile"]["id"] == str(user_id)
        assert r.json()["profile"]["username"] == "hop_head"

    def test_username_taken(self, client, profile, other_user_id):
        r = client.post(
            "/api/v1/profile",
            json=_onboarding(username="cork_dork"),
            headers=auth_headers(other_user_id),
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Username is already taken"

    @pytest.mark.parametrize("overrides,message", [
        ({"username": "ab"}, "Username must be at least 3 characters"),
        ({"username": "bad name!"}, "Username can only contain letters, numbers, and underscores"),
        ({"display_name": "A"}, "Display name must be at least 2 characters"),
        ({"beverage_preferences": []}, "Select at least one beverage preference"),
        ({"instagram_handle": "no spaces"}, "Invalid Instagram handle format"),
    ])
    def test_validation(self, client, user_id, overrides, message):
        r = client.post(
            "/api/v1/profile", json=_onboarding(**overrides), headers=auth_headers(user_id)
        )
        assert r.status_code == 400
        assert r.json()["detail"]["message"] == message

    def test_requires_auth(self, client):
        assert client.post("/api/v1/profile", json=_onboarding()).status_code == 401


class TestMe:

    def test_lazily_created(self, client, session, user_id):
        assert session.get(Profile, user_id) is None
        r = client.get("/api/v1/profile/me", headers=auth_headers(user_id))
        assert r.status_code == 200
        assert r.json()["id"] == str(user_id)
        assert r.json()["username"] is None
        assert r.json()["beverage_preferences"] == []

    def test_patch(self, client, profile, user_id):
        r = client.patch(
            "/api/v1/profile/me",
            json={"bio": "Natural wine only."},
            headers=auth_headers(user_id),
        )
        assert r.status_code == 200
        assert r.json()["bio"] == "Natural wine only."
        assert r.json()["username"] == "cork_dork"

    def test_patch_taken_username(self, client, profile, other_user_id):
        r = client.patch(
            "/api/v1/profile/me",
            json={"username": "cork_dork"},
            headers=auth_headers(other_user_id),
        )
        assert r.status_code == 400

    def test_requires_auth(self, client):
        assert client.get("/api/v1/profile/me").status_code == 401


class TestAvatar:

    @pytest.fixture
    def storage(self):
        with (
            patch(f"{SVC}.upload_to_storage") as m_upload,
            patch(f"{SVC}.get_public_url") as m_url,
            patch(f"{SVC}.delete_from_storage") as m_delete,
        ):
            m_url.side_effect = lambda bucket, path: AVATAR_BASE + path
            yield {"upload": m_upload, "url": m_url, "delete": m_delete}

    def test_upload_replaces_previous(self, client, session, profile, user_id, storage):
        profile.avatar_url = AVATAR_BASE + f"{user_id}/1.png"
        session.add(profile)
        session.commit()

        r = client.post(
            "/api/v1/profile/me/avatar",
            files={"file": ("me.png", IMAGE_BYTES, "image/png")},
            headers=auth_headers(user_id),
        )
        assert r.status_code == 200
        bucket, path = storage["upload"].call_args.args[:2]
        assert bucket == "avatars"
        assert path.startswith(f"{user_id}/") and path.endswith(".png")
        assert r.json()["avatar_url"] == AVATAR_BASE + path
        storage["delete"].assert_called_once_with("avatars", f"{user_id}/1.png")

    def test_runs_outside_event_loop(self, client, user_id, storage):
        loop_threads = []

        def _upload(*a, **kw):
            try:
                asyncio.get_running_loop()
                loop_threads.append(True)
            except RuntimeError:
                loop_threads.append(False)

        storage["upload"].side_effect = _upload
        r = client.post(
            "/api/v1/profile/me/avatar",
            files={"file": ("me.jpg", IMAGE_BYTES, "image/jpeg")},
            headers=auth_headers(user_id),
        )
        assert r.status_code == 200
        assert loop_threads == [False]

    def test_not_an_image(self, client, user_id, storage):
        r = client.post(
            "/api/v1/profile/me/avatar",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(user_id),
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Please select an image file"
        storage["upload"].assert_not_called()

    def test_too_large(self, client, user_id, storage):
        big = b"\x00" * (5 * 1024 * 1024 + 1)
        r = client.post(
            "/api/v1/profile/me/avatar",
            files={"file": ("big.jpg", big, "image/jpeg")},
            headers=auth_headers(user_id),
        )
        assert r.status_code == 413
        storage["upload"].assert_not_called()

    def test_upload_failure(self, client, user_id, storage):
        storage["upload"].side_effect = RuntimeError("storage down")
        r = client.post(
            "/api/v1/profile/me/avatar",
            files={"file": ("me.jpg", IMAGE_BYTES, "image/jpeg")},
            headers=auth_headers(user_id),
        )
        assert r.status_code == 500
        assert r.json()["detail"] == "Failed to upload image"
