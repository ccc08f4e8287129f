"""
tests/test_pairings_api.py - submission workflow, feed reads and the
reality score.

Supabase Storage is patched out; the database is in-memory SQLite.
"""
import asyncio
import uuid

import httpx
import pytest
from unittest.mock import patch
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import select

from pairup.models.pairing import Pairing
from tests.helpers import IMAGE_BYTES, auth_headers, make_pairing

SVC = "pairup.services.pairing_service"
PUBLIC_BASE = "https://pairup-test.supabase.co/storage/v1/object/public/pairings/"


class _QueryCanceled(Exception):
    pgcode = "57014"


@pytest.fixture
def storage():
    """Patch the three storage calls used by the workflow."""
    with (
        patch(f"{SVC}.upload_to_storage") as m_upload,
        patch(f"{SVC}.get_public_url") as m_url,
        patch(f"{SVC}.delete_from_storage") as m_delete,
    ):
        m_upload.side_effect = lambda bucket, path, *a, **kw: path
        m_url.side_effect = lambda bucket, path: PUBLIC_BASE + path
        yield {"upload": m_upload, "url": m_url, "delete": m_delete}


def _form(**overrides):
    data = {
        "food_name": "  Margherita Pizza ",
        "beverage_type": "Wine",
        "flavor_principle": "Acid + Umami",
        "review_text": "Bright acidity meets tomato umami.",
        "rating": "up",
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


def _files(content=IMAGE_BYTES, content_type="image/jpeg", name="pizza.jpg"):
    return {"image": (name, content, content_type)}


def _count(session) -> int:
    return len(session.exec(select(Pairing)).all())


class TestCreatePairing:

    def test_success(self, client, session, storage, user_id):
        r = client.post(
            "/api/v1/pairings",
            data=_form(),
            files=_files(),
            headers=auth_headers(user_id),
        )
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        pairing = body["pairing"]
        assert pairing["food_name"] == "Margherita Pizza"
        assert pairing["user_id"] == str(user_id)
        assert pairing["reality_score"] is None

        bucket, path = storage["upload"].call_args.args[:2]
        assert bucket == "pairings"
        assert path.startswith(f"{user_id}/")
        assert path.endswith(".jpg")
        assert storage["upload"].call_args.kwargs["upsert"] is False
        assert pairing["image_url"] == PUBLIC_BASE + path
        storage["delete"].assert_not_called()
        assert _count(session) == 1

    def test_beverage_defaults_to_none(self, client, storage, user_id):
        r = client.post(
            "/api/v1/pairings",
            data=_form(beverage_type=None, flavor_principle=None),
            files=_files(),
            headers=auth_headers(user_id),
        )
        assert r.status_code == 200
        assert r.json()["pairing"]["beverage_type"] == "none"
        assert r.json()["pairing"]["flavor_principle"] is None

    def test_requires_auth(self, client, storage):
        r = client.post("/api/v1/pairings", data=_form(), files=_files())
        assert r.status_code == 401
        storage["upload"].assert_not_called()

    @pytest.mark.parametrize("overrides,field", [
        ({"food_name": "   "}, "food_name"),
        ({"food_name": None}, "food_name"),
        ({"rating": "sideways"}, "rating"),
        ({"rating": None}, "rating"),
        ({"flavor_principle": "Salt + Fat"}, "flavor_principle"),
    ])
    def test_field_validation(self, client, session, storage, user_id, overrides, field):
        r = client.post(
            "/api/v1/pairings",
            data=_form(**overrides),
            files=_files(),
            headers=auth_headers(user_id),
        )
        assert r.status_code == 400
        assert field in r.json()["detail"]["errors"]
        storage["upload"].assert_not_called()
        assert _count(session) == 0

    def test_missing_image(self, client, storage, user_id):
        r = client.post("/api/v1/pairings", data=_form(), headers=auth_headers(user_id))
        assert r.status_code == 400
        assert r.json()["detail"]["errors"]["image"] == "Image is required"
        storage["upload"].assert_not_called()

    def test_all_errors_reported_together(self, client, storage, user_id):
        r = client.post(
            "/api/v1/pairings",
            data=_form(food_name="", rating="meh"),
            headers=auth_headers(user_id),
        )
        assert r.status_code == 400
        assert set(r.json()["detail"]["errors"]) == {"image", "food_name", "rating"}

    def test_non_image_rejected(self, client, storage, user_id):
        r = client.post(
            "/api/v1/pairings",
            data=_form(),
            files=_files(content=b"%PDF-1.4", content_type="application/pdf", name="menu.pdf"),
            headers=auth_headers(user_id),
        )
        assert r.status_code == 400
        assert "image" in r.json()["detail"]["errors"]

    def test_upload_failure_leaves_nothing(self, client, session, storage, user_id):
        storage["upload"].side_effect = RuntimeError("bucket not found")
        r = client.post(
            "/api/v1/pairings", data=_form(), files=_files(), headers=auth_headers(user_id)
        )
        assert r.status_code == 500
        assert "Failed to upload image" in r.json()["detail"]
        storage["delete"].assert_not_called()
        assert _count(session) == 0

    def test_upload_timeout_removes_partial_object(self, client, session, storage, user_id):
        storage["upload"].side_effect = httpx.ReadTimeout("timed out")
        r = client.post(
            "/api/v1/pairings", data=_form(), files=_files(), headers=auth_headers(user_id)
        )
        assert r.status_code == 504
        assert "timed out" in r.json()["detail"]
        uploaded_path = storage["upload"].call_args.args[1]
        storage["delete"].assert_called_once_with("pairings", uploaded_path)
        assert _count(session) == 0

    def test_public_url_failure_removes_upload(self, client, session, storage, user_id):
        storage["url"].side_effect = RuntimeError("bucket is private")
        r = client.post(
            "/api/v1/pairings", data=_form(), files=_files(), headers=auth_headers(user_id)
        )
        assert r.status_code == 500
        assert r.json()["detail"].startswith("Failed to resolve image URL")
        uploaded_path = storage["upload"].call_args.args[1]
        storage["delete"].assert_called_once_with("pairings", uploaded_path)
        assert _count(session) == 0

    def test_insert_statement_timeout(self, client, session, storage, user_id):
        from pairup.routers import pairings

        with patch.object(
            pairings.repo,
            "create",
            side_effect=OperationalError("INSERT", {}, _QueryCanceled("statement timeout")),
        ):
            r = client.post(
                "/api/v1/pairings", data=_form(), files=_files(), headers=auth_headers(user_id)
            )
        assert r.status_code == 504
        assert r.json()["detail"] == "Saving the pairing timed out"
        assert storage["delete"].call_count == 1
        assert _count(session) == 0

    def test_runs_outside_event_loop(self, client, storage, user_id):
        loop_threads = []

        def _upload(bucket, path, *a, **kw):
            try:
                asyncio.get_running_loop()
                loop_threads.append(True)
            except RuntimeError:
                loop_threads.append(False)
            return path

        storage["upload"].side_effect = _upload
        r = client.post(
            "/api/v1/pairings", data=_form(), files=_files(), headers=auth_headers(user_id)
        )
        assert r.status_code == 200
        # blocking storage I/O must run in the threadpool
        assert loop_threads == [False]

    def test_insert_failure_removes_upload(self, client, session, storage, user_id):
        from pairup.routers import pairings

        with patch.object(
            pairings.repo,
            "create",
            side_effect=OperationalError("INSERT", {}, Exception("db unavailable")),
        ):
            r = client.post(
                "/api/v1/pairings", data=_form(), files=_files(), headers=auth_headers(user_id)
            )

        assert r.status_code == 500
        assert r.json()["detail"].startswith("Failed to save pairing")
        uploaded_path = storage["upload"].call_args.args[1]
        storage["delete"].assert_called_once_with("pairings", uploaded_path)
        assert _count(session) == 0

    def test_failed_cleanup_does_not_mask_error(self, client, session, storage, user_id):
        from pairup.routers import pairings

        storage["delete"].side_effect = RuntimeError("storage down")
        with patch.object(
            pairings.repo,
            "create",
            side_effect=OperationalError("INSERT", {}, Exception("db unavailable")),
        ):
            r = client.post(
                "/api/v1/pairings", data=_form(), files=_files(), headers=auth_headers(user_id)
            )
        assert r.status_code == 500
        assert storage["delete"].call_count == 1

    def test_retry_without_key_duplicates(self, client, session, storage, user_id):
        for _ in range(2):
            r = client.post(
                "/api/v1/pairings", data=_form(), files=_files(), headers=auth_headers(user_id)
            )
            assert r.status_code == 200
        assert _count(session) == 2

    def test_retry_with_key_is_deduplicated(self, client, session, storage, user_id):
        key = str(uuid.uuid4())
        ids = set()
        for _ in range(2):
            r = client.post(
                "/api/v1/pairings",
                data=_form(idempotency_key=key),
                files=_files(),
                headers=auth_headers(user_id),
            )
            assert r.status_code == 200
            ids.add(r.json()["pairing"]["id"])
        assert len(ids) == 1
        assert storage["upload"].call_count == 1
        assert _count(session) == 1

    def test_concurrent_same_key_returns_winner(self, client, session, storage, user_id):
        from pairup.routers import pairings

        winner = make_pairing(user_id=user_id, idempotency_key="retry-key-1")
        session.add(winner)
        session.commit()
        session.refresh(winner)

        # the pre-check misses the winner, which commits before our insert
        with (
            patch.object(
                pairings.repo, "get_by_idempotency_key", side_effect=[None, winner]
            ),
            patch.object(
                pairings.repo,
                "create",
                side_effect=IntegrityError("INSERT", {}, Exception("duplicate key")),
            ),
        ):
            r = client.post(
                "/api/v1/pairings",
                data=_form(idempotency_key="retry-key-1"),
                files=_files(),
                headers=auth_headers(user_id),
            )

        assert r.status_code == 200
        assert r.json()["pairing"]["id"] == str(winner.id)
        storage["delete"].assert_called_once()
        assert _count(session) == 1

    def test_flavor_principle_round_trip(self, client, storage, user_id):
        r = client.post(
            "/api/v1/pairings",
            data=_form(flavor_principle="Fat + Tannin"),
            files=_files(),
            headers=auth_headers(user_id),
        )
        pairing_id = r.json()["pairing"]["id"]
        detail = client.get(f"/api/v1/pairings/{pairing_id}")
        assert detail.json()["flavor_principle"] == "Fat + Tannin"


class TestFeed:

    def _names(self, r):
        return [p["food_name"] for p in r.json()]

    def test_newest_first(self, client, seeded_feed):
        r = client.get("/api/v1/pairings")
        assert r.status_code == 200
        assert self._names(r) == ["Pretzel", "Wings", "Fries", "Salmon", "Steak"]

    def test_beverage_filter_is_exact(self, client, seeded_feed):
        r = client.get("/api/v1/pairings", params={"beverage": "wine"})
        # "na-wine" contains "wine" but must not match
        assert sorted(self._names(r)) == ["Salmon", "Steak"]

    def test_non_alcoholic_group(self, client, seeded_feed):
        r = client.get("/api/v1/pairings", params={"beverage": "non-alcoholic"})
        assert sorted(self._names(r)) == ["Fries", "Wings"]

    def test_principle_filter(self, client, seeded_feed):
        r = client.get("/api/v1/pairings", params={"principle": "Sweet + Spicy"})
        assert self._names(r) == ["Wings"]

    def test_all_means_no_filter(self, client, seeded_feed):
        r = client.get("/api/v1/pairings", params={"beverage": "all", "principle": "all"})
        assert len(r.json()) == 5

    @pytest.mark.parametrize("params", [
        {"beverage": "wi"},
        {"principle": "Sweet"},
    ])
    def test_unknown_filter_values(self, client, seeded_feed, params):
        assert client.get("/api/v1/pairings", params=params).status_code == 400

    def test_limit(self, client, seeded_feed):
        r = client.get("/api/v1/pairings", params={"limit": 2})
        assert self._names(r) == ["Pretzel", "Wings"]

    def test_author_and_likes(self, client, session, seeded_feed, profile, other_user_id):
        from pairup.models.engagement import Like

        target = seeded_feed[0]
        session.add(Like(user_id=other_user_id, pairing_id=target.id))
        session.commit()

        r = client.get("/api/v1/pairings", headers=auth_headers(other_user_id))
        item = next(p for p in r.json() if p["id"] == str(target.id))
        assert item["author"]["username"] == "cork_dork"
        assert item["likes_count"] == 1
        assert item["liked_by_me"] is True

    def test_detail_not_found(self, client):
        assert client.get(f"/api/v1/pairings/{uuid.uuid4()}").status_code == 404


class TestRealityScore:

    def _put(self, client, pairing_id, score, user):
        return client.put(
            f"/api/v1/pairings/{pairing_id}/reality-score",
            json={"reality_score": score},
            headers=auth_headers(user),
        )

    def test_author_can_rate(self, client, pairing, user_id):
        r = self._put(client, pairing.id, 4, user_id)
        assert r.status_code == 200
        assert r.json()["reality_score"] == 4

    def test_overwrites(self, client, pairing, user_id):
        self._put(client, pairing.id, 5, user_id)
        r = self._put(client, pairing.id, 2, user_id)
        assert r.json()["reality_score"] == 2

    def test_other_account_rejected(self, client, session, pairing, other_user_id):
        r = self._put(client, pairing.id, 1, other_user_id)
        assert r.status_code == 403
        session.refresh(pairing)
        assert pairing.reality_score is None

    @pytest.mark.parametrize("score", [0, 6])
    def test_out_of_range(self, client, pairing, user_id, score):
        assert self._put(client, pairing.id, score, user_id).status_code == 422

    def test_missing_pairing(self, client, user_id):
        assert self._put(client, uuid.uuid4(), 3, user_id).status_code == 404

    def test_requires_auth(self, client, pairing):
        r = client.put(
            f"/api/v1/pairings/{pairing.id}/reality-score", json={"reality_score": 3}
        )
        assert r.status_code == 401
