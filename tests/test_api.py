"""
API tests: the full application on a mocked provider network.
Each test gets a fresh SQLite Review Store under tmp_path.
"""

from __future__ import annotations

import pytest
from conftest import osm_item, provider_transport, write_snapshot, yelp_item
from fastapi.testclient import TestClient

from locallink.main import RETRY_AFTER_SECONDS, create_app

YELP = [
    yelp_item("kims", "Kim's Kitchen", aliases=("korean",)),
    yelp_item("sbux1", "Starbucks", aliases=("cafes",)),
    yelp_item("sbux2", "Starbucks - Main St", aliases=("cafes",)),
]
OSM = [osm_item(1, "Sweet Crumbs", shop="bakery")]

ALICE = {"X-User-ID": "u-alice", "X-Username": "Alice"}
BOB = {"X-User-ID": "u-bob", "X-Username": "Bob"}

REVIEW_BODY = {
    "rating": 5,
    "foodQuality": 5,
    "service": 4,
    "cleanliness": 5,
    "atmosphere": 4,
    "comment": "Best bibimbap in town",
}


@pytest.fixture
def client(settings):
    app = create_app(settings, transport=provider_transport(YELP, OSM))
    with TestClient(app) as test_client:
        yield test_client


def _submit(client, business_id="yelp-kims", headers=ALICE, body=None):
    resp = client.post(f"/api/businesses/{business_id}/reviews", json=body or REVIEW_BODY, headers=headers)
    assert resp.status_code == 201
    return resp.json()["review"]


# ── Health ───────────────────────────────────────────────────────────────


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is True
        assert data["dataSource"] == "Live (Yelp + OpenStreetMap)"
        assert data["offlineMode"] is False
        assert "metadata" not in data

    def test_ready(self, client):
        resp = client.get("/api/ready")
        assert resp.status_code == 200
        assert resp.json() == {"db": "ok"}

    def test_demo_status(self, client):
        data = client.get("/api/demo-status").json()
        assert data["offlineDataAvailable"] is False
        assert data["location"] == "Cumming, Georgia"
        assert data["radiusMeters"] == 16093


# ── Catalog ──────────────────────────────────────────────────────────────


class TestBusinesses:
    def test_list(self, client):
        resp = client.get("/api/businesses")
        assert resp.status_code == 200
        data = resp.json()
        assert [b["id"] for b in data] == ["osm-node-1", "yelp-kims", "yelp-sbux1"]
        assert data[0]["relevancyScore"] == 100
        assert data[2]["isChain"] is True
        assert data[1]["reviewCount"] == 0

    def test_filters(self, client):
        data = client.get("/api/businesses", params={"search": "starbucks", "limit": 1}).json()
        assert [b["id"] for b in data] == ["yelp-sbux1"]
        data = client.get("/api/businesses", params={"tag": "Korean"}).json()
        assert [b["id"] for b in data] == ["yelp-kims"]

    def test_sort_by_name(self, client):
        data = client.get("/api/businesses", params={"sort": "name"}).json()
        assert [b["name"] for b in data] == ["Kim's Kitchen", "Starbucks", "Sweet Crumbs"]

    def test_invalid_min_rating(self, client):
        resp = client.get("/api/businesses", params={"minRating": 9})
        assert resp.status_code == 400

    def test_invalid_sort(self, client):
        resp = client.get("/api/businesses", params={"sort": "random"})
        assert resp.status_code == 422

    def test_single_business(self, client):
        resp = client.get("/api/businesses/yelp-kims")
        assert resp.status_code == 200
        data = resp.json()
        assert data["hours"] == "Mon 09:00-17:00"
        assert data["image"] == "https://img.test/photo.jpg"

    def test_unknown_business(self, client):
        resp = client.get("/api/businesses/yelp-missing")
        assert resp.status_code == 404
        assert resp.json()["code"] == "BUSINESS_NOT_FOUND"


# ── Reviews ──────────────────────────────────────────────────────────────


class TestReviews:
    def test_submit_requires_user(self, client):
        resp = client.post("/api/businesses/yelp-kims/reviews", json=REVIEW_BODY)
        assert resp.status_code == 401
        assert resp.headers["X-Error-Code"] == "MISSING_USER_ID"

    def test_submit_validates_ratings(self, client):
        resp = client.post("/api/businesses/yelp-kims/reviews", json={**REVIEW_BODY, "rating": 6}, headers=ALICE)
        assert resp.status_code == 422

    def test_submit_and_overlay(self, client):
        review = _submit(client)
        assert review["author"] == "Alice"
        assert review["foodQuality"] == 5

        business = client.get("/api/businesses/yelp-kims").json()
        assert business["rating"] == 5.0
        assert business["reviewCount"] == 1
        assert business["reviews"][0]["id"] == review["id"]

    def test_list_hides_voters_from_anonymous_callers(self, client):
        review = _submit(client)
        client.post(f"/api/businesses/yelp-kims/reviews/{review['id']}/upvote", headers=BOB)

        anonymous = client.get("/api/businesses/yelp-kims/reviews").json()
        assert "upvotedBy" not in anonymous[0]
        assert "reports" not in anonymous[0]
        assert anonymous[0]["helpful"] == 1

        signed_in = client.get("/api/businesses/yelp-kims/reviews", headers=ALICE).json()
        assert signed_in[0]["upvotedBy"] == ["u-bob"]

    def test_business_payloads_omit_voters_and_reports(self, client):
        review = _submit(client)
        path = f"/api/businesses/yelp-kims/reviews/{review['id']}"
        client.post(f"{path}/upvote", headers=BOB)
        client.post(f"{path}/report", json={"reason": "spam"})

        single = client.get("/api/businesses/yelp-kims").json()
        listed = next(b for b in client.get("/api/businesses").json() if b["id"] == "yelp-kims")
        mine = client.get("/api/my-reviews", headers=ALICE).json()
        for embedded in (single["reviews"][0], listed["reviews"][0], mine[0]["review"]):
            assert embedded["id"] == review["id"]
            assert embedded["helpful"] == 1
            assert "upvotedBy" not in embedded
            assert "reports" not in embedded

    def test_edit_and_delete_are_owner_only(self, client):
        review = _submit(client)
        path = f"/api/businesses/yelp-kims/reviews/{review['id']}"

        resp = client.put(path, json={"rating": 1}, headers=BOB)
        assert resp.status_code == 403
        assert resp.json()["code"] == "REVIEW_FORBIDDEN"

        resp = client.put(path, json={"rating": 3}, headers=ALICE)
        assert resp.status_code == 200
        assert resp.json()["rating"] == 3
        assert resp.json()["editedAt"] is not None

        assert client.delete(path, headers=BOB).status_code == 403
        resp = client.delete(path, headers=ALICE)
        assert resp.json() == {"message": "Review deleted successfully"}
        assert client.get("/api/businesses/yelp-kims/reviews").json() == []

    def test_upvote_round_trip(self, client):
        review = _submit(client)
        path = f"/api/businesses/yelp-kims/reviews/{review['id']}"

        assert client.post(f"{path}/upvote", headers=BOB).json()["helpful"] == 1
        assert client.post(f"{path}/upvote", headers=BOB).json()["helpful"] == 1
        assert client.post(f"{path}/remove-upvote", headers=BOB).json()["helpful"] == 0

        resp = client.post(f"{path}/remove-upvote", headers=BOB)
        assert resp.status_code == 400
        assert resp.json()["code"] == "REVIEW_INVALID"

    def test_three_reports_hide_review(self, client):
        review = _submit(client)
        path = f"/api/businesses/yelp-kims/reviews/{review['id']}/report"

        for count in (1, 2, 3):
            resp = client.post(path, json={"reason": "spam"})
            assert resp.status_code == 200
            assert resp.json()["reportCount"] == count

        assert client.get("/api/businesses/yelp-kims/reviews").json() == []
        assert client.get("/api/businesses/yelp-kims").json()["reviewCount"] == 0

    def test_unknown_review(self, client):
        _submit(client)
        resp = client.post("/api/businesses/yelp-kims/reviews/nope/upvote", headers=BOB)
        assert resp.status_code == 404
        assert resp.json()["code"] == "REVIEW_NOT_FOUND"

    def test_my_reviews(self, client):
        _submit(client)
        _submit(client, business_id="osm-node-1", headers=BOB)

        data = client.get("/api/my-reviews", headers=ALICE).json()
        assert [(r["businessId"], r["businessName"]) for r in data] == [("yelp-kims", "Kim's Kitchen")]
        assert client.get("/api/my-reviews").status_code == 401


# ── Recommendations & summaries ──────────────────────────────────────────


class TestRecommendations:
    def test_top_picks(self, client):
        resp = client.post("/api/recommendations", json={"favoriteIds": ["yelp-kims"]})
        assert resp.status_code == 200
        data = resp.json()
        assert "yelp-kims" not in [b["id"] for b in data]
        assert all("recommendationScore" in b for b in data)

    def test_debug(self, client):
        data = client.post("/api/recommendations", json={"favoriteIds": ["yelp-kims"], "debug": True}).json()
        assert data["categoryScores"] == {"Food": 1}
        assert data["favoriteCount"] == 1
        assert data["recommendations"][0]["scoreBreakdown"]["category"] == 10


class TestSummaries:
    def test_tags(self, client):
        assert client.get("/api/tags").json() == [{"tag": "Cafes", "count": 2}]

    def test_trending(self, client):
        data = client.get("/api/trending").json()
        assert [b["id"] for b in data] == ["osm-node-1", "yelp-kims"]

    def test_analytics(self, client):
        _submit(client)
        data = client.get("/api/analytics").json()
        assert data["totalBusinesses"] == 4
        assert data["byCategory"] == {"Food": 4}
        assert data["totalUserReviews"] == 1
        assert len(data["topRated"]) == 3

    def test_cache_stats(self, client):
        client.get("/api/businesses")
        client.get("/api/businesses")
        data = client.get("/api/cache/stats").json()
        assert data["catalog"]["hits"] == 1
        assert data["catalog"]["misses"] == 1
        assert data["catalog"]["size"] == 1
        assert data["images"]["size"] == 0


# ── Failure modes ────────────────────────────────────────────────────────


def test_all_sources_down_returns_503(settings):
    app = create_app(settings, transport=provider_transport(fail=True))
    with TestClient(app) as client:
        resp = client.get("/api/businesses")
    assert resp.status_code == 503
    assert resp.headers["Retry-After"] == str(RETRY_AFTER_SECONDS)
    assert resp.json()["code"] == "SOURCE_UNAVAILABLE"


def test_offline_mode_serves_snapshot(settings_factory, tmp_path):
    settings = settings_factory(offline_mode=True)
    write_snapshot(tmp_path / "data", [{"id": "snap-1", "name": "Snapshot Deli", "category": "Food"}])
    calls = []
    app = create_app(settings, transport=provider_transport(YELP, OSM, calls=calls))
    with TestClient(app) as client:
        data = client.get("/api/businesses").json()
        status = client.get("/api/demo-status").json()
    assert [b["id"] for b in data] == ["snap-1"]
    assert data[0]["source"] == "offline"
    assert status["offlineMode"] is True
    assert status["businessCount"] == 1
    assert calls == []
