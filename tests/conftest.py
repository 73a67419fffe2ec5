from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest

from locallink.config import Settings
from locallink.database import build_engine, build_session_factory, create_tables
from locallink.schemas.business import Business
from locallink.schemas.review import Review
from locallink.services.review_store import ReviewStore

OVERPASS_URL = "https://overpass.test/api/interpreter"
YELP_BASE_URL = "https://yelp.test/v3"


def make_business(**overrides) -> Business:
    fields = {
        "id": "yelp-test",
        "source": "yelp",
        "name": "Test Business",
        "category": "Food",
        "google_maps_url": "https://www.google.com/maps/search/?api=1&query=34.2,-84.1",
    }
    fields.update(overrides)
    return Business(**fields)


def make_review(review_id: str, rating: int = 4, **overrides) -> Review:
    fields = {
        "id": review_id,
        "business_id": "yelp-test",
        "user_id": f"user-{review_id}",
        "author": "Tester",
        "rating": rating,
    }
    fields.update(overrides)
    return Review(**fields)


def yelp_item(yelp_id: str, name: str, aliases=("restaurants",), review_count: int = 30, **extra) -> dict:
    item = {
        "id": yelp_id,
        "name": name,
        "categories": [{"alias": a, "title": a.title()} for a in aliases],
        "rating": 4.5,
        "review_count": review_count,
        "display_phone": "(770) 555-0100",
        "url": f"https://www.yelp.com/biz/{yelp_id}",
        "coordinates": {"latitude": 34.2, "longitude": -84.14},
        "location": {"city": "Cumming", "display_address": ["100 Main St", "Cumming, GA 30040"]},
    }
    item.update(extra)
    return item


def osm_item(osm_id: int, name: Optional[str], **tags) -> dict:
    all_tags = dict(tags)
    if name is not None:
        all_tags["name"] = name
    return {"type": "node", "id": osm_id, "lat": 34.21, "lon": -84.13, "tags": all_tags}


def provider_transport(
    yelp_businesses: Optional[list[dict]] = None,
    osm_elements: Optional[list[dict]] = None,
    fail: bool = False,
    calls: Optional[list[httpx.Request]] = None,
) -> httpx.MockTransport:
    """MockTransport answering Yelp search/details and Overpass queries."""
    yelp_businesses = yelp_businesses or []
    osm_elements = osm_elements or []

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        if fail:
            return httpx.Response(503, json={"error": "down"})
        if request.url.host == "overpass.test":
            return httpx.Response(200, json={"elements": osm_elements})
        if request.url.path.endswith("/businesses/search"):
            offset = int(request.url.params.get("offset", 0))
            limit = int(request.url.params.get("limit", 50))
            return httpx.Response(
                200,
                json={"businesses": yelp_businesses[offset : offset + limit], "total": len(yelp_businesses)},
            )
        if "/businesses/" in request.url.path:
            return httpx.Response(
                200,
                json={
                    "id": request.url.path.rsplit("/", 1)[-1],
                    "photos": ["https://img.test/photo.jpg"],
                    "hours": [{"open": [{"day": 0, "start": "0900", "end": "1700"}]}],
                },
            )
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def write_snapshot(data_dir: Path, businesses: list[dict], metadata: Optional[dict] = None) -> None:
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "businesses.json").write_text(json.dumps(businesses), encoding="utf-8")
    if metadata is not None:
        (data_dir / "metadata.json").write_text(json.dumps(metadata), encoding="utf-8")


@pytest.fixture
def settings_factory(tmp_path: Path) -> Callable[..., Settings]:
    def _build(**overrides) -> Settings:
        fields = {
            "database_url": f"sqlite+aiosqlite:///{tmp_path / 'reviews.db'}",
            "yelp_api_key": "test-key",
            "yelp_api_base_url": YELP_BASE_URL,
            "overpass_url": OVERPASS_URL,
            "google_search_api_key": "",
            "google_search_engine_id": "",
            "offline_data_dir": str(tmp_path / "data"),
            "log_level": "WARNING",
        }
        fields.update(overrides)
        return Settings(_env_file=None, **fields)

    return _build


@pytest.fixture
def settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def review_store(settings: Settings):
    engine = build_engine(settings)
    asyncio.run(create_tables(engine))
    yield ReviewStore(build_session_factory(engine))
    asyncio.run(engine.dispose())
