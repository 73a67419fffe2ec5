"""
YelpConnector: commercial-directory provider (Yelp Fusion v3).

Search paginates /businesses/search 50 at a time up to 200 results and stops
early on a short page. Details (/businesses/{id}) enrich single-item reads
with hours and photos. Both paths are fail-soft: errors are logged and yield
an empty result or None.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from locallink.schemas.providers import (
    YelpBusiness,
    YelpBusinessDetails,
    YelpHoursBlock,
    YelpSearchResponse,
)

logger = logging.getLogger(__name__)

HOURS_NOT_AVAILABLE = "Hours not available"

# Yelp days are 0=Monday .. 6=Sunday
_DAY_NAMES: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def format_hours(hours: list[YelpHoursBlock]) -> str:
    """Render the first hours block as "Mon 09:00-17:00, Tue 09:00-17:00"."""
    if not hours or not hours[0].open:
        return HOURS_NOT_AVAILABLE

    def _clock(raw: str) -> str:
        return f"{raw[:2]}:{raw[2:4]}" if len(raw) == 4 else raw

    parts: list[str] = []
    for slot in hours[0].open:
        if not 0 <= slot.day < len(_DAY_NAMES):
            continue
        parts.append(f"{_DAY_NAMES[slot.day]} {_clock(slot.start)}-{_clock(slot.end)}")
    return ", ".join(parts) if parts else HOURS_NOT_AVAILABLE


class YelpConnector:
    """Fetches Yelp listings; returns validated YelpBusiness records."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://api.yelp.com/v3",
        timeout_seconds: float = 15.0,
        page_size: int = 50,
        max_results: int = 200,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._page_size = page_size
        self._max_results = max_results

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }

    async def fetch(self, center: tuple[float, float], radius_m: int) -> list[YelpBusiness]:
        if not self.enabled:
            logger.warning("[Yelp] partial source failure: no API key configured")
            return []

        lat, lon = center
        results: list[YelpBusiness] = []
        skipped = 0

        for offset in range(0, self._max_results, self._page_size):
            params: dict[str, Any] = {
                "latitude": lat,
                "longitude": lon,
                # Yelp caps the search radius at 40 km
                "radius": min(radius_m, 40_000),
                "limit": self._page_size,
                "offset": offset,
                "sort_by": "best_match",
            }
            page = await self._get_page(params)
            if page is None:
                # A failed first page is a total failure; a later one keeps what we have
                break

            for item in page.businesses:
                try:
                    results.append(YelpBusiness.model_validate(item))
                except ValidationError as exc:
                    logger.debug("[Yelp] skipping malformed business: %s", exc)
                    skipped += 1

            logger.debug("[Yelp] offset=%d returned %d", offset, len(page.businesses))
            if len(page.businesses) < self._page_size:
                break

        logger.info("[Yelp] %d businesses fetched (%d skipped)", len(results), skipped)
        return results

    async def _get_page(self, params: dict[str, Any]) -> Optional[YelpSearchResponse]:
        try:
            resp = await self._client.get(
                f"{self._base_url}/businesses/search",
                params=params,
                headers=self._headers(),
                timeout=self._timeout,
            )
            resp.raise_for_status()
            return YelpSearchResponse.model_validate(resp.json())
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "[Yelp] partial source failure at offset %s: HTTP %d",
                params.get("offset"),
                exc.response.status_code,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "[Yelp] partial source failure at offset %s: %s", params.get("offset"), exc
            )
        except (ValueError, ValidationError) as exc:
            logger.warning("[Yelp] partial source failure: bad envelope (%s)", exc)
        return None

    async def fetch_details(self, yelp_id: str) -> Optional[YelpBusinessDetails]:
        """Return hours, photos and canonical URL for one business, or None."""
        if not self.enabled:
            return None
        try:
            resp = await self._client.get(
                f"{self._base_url}/businesses/{yelp_id}",
                headers=self._headers(),
                timeout=self._timeout,
            )
            resp.raise_for_status()
            return YelpBusinessDetails.model_validate(resp.json())
        except httpx.HTTPError as exc:
            logger.warning("[Yelp] details lookup failed for %s: %s", yelp_id, exc)
        except (ValueError, ValidationError) as exc:
            logger.warning("[Yelp] details payload invalid for %s: %s", yelp_id, exc)
        return None
