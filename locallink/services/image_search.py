"""
ImageResolver: fills missing business images.

Looks up "<name> <address>" through the Google Custom Search JSON API
(image search, one result, safe search on). Positive results are cached for
24 h; misses and errors fall back to a stock image for the category.
At most max_concurrency searches are in flight at once per resolver.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from locallink.schemas.business import Business
from locallink.services.cache import ImageCache
from locallink.utils.taxonomy import CATEGORY_IMAGES

logger = logging.getLogger(__name__)

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"


def category_image(category: str) -> str:
    return CATEGORY_IMAGES.get(category) or CATEGORY_IMAGES["Services"]


class ImageResolver:
    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: ImageCache,
        api_key: str = "",
        engine_id: str = "",
        timeout_seconds: float = 10.0,
        max_concurrency: int = 5,
    ) -> None:
        self._client = client
        self._cache = cache
        self._api_key = api_key
        self._engine_id = engine_id
        self._timeout = timeout_seconds
        self._semaphore = asyncio.Semaphore(max_concurrency)

    @property
    def enabled(self) -> bool:
        return bool(self._api_key and self._engine_id)

    async def resolve(self, query: str) -> Optional[str]:
        """Return an image URL for the query, or None."""
        query = query.strip()
        if not self.enabled or not query:
            return None

        cached = self._cache.get(query)
        if cached:
            return cached

        try:
            async with self._semaphore:
                resp = await self._client.get(
                    GOOGLE_CSE_URL,
                    params={
                        "key": self._api_key,
                        "cx": self._engine_id,
                        "q": query,
                        "searchType": "image",
                        "num": 1,
                        "safe": "active",
                    },
                    timeout=self._timeout,
                )
            resp.raise_for_status()
            items = resp.json().get("items") or []
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Image search failed for %r: %s", query, exc)
            return None

        url = items[0].get("link") if items and isinstance(items[0], dict) else None
        self._cache.set(query, url)
        return url

    async def enrich(self, businesses: list[Business]) -> list[Business]:
        """
        Return copies with image filled: local snapshot image first, then a
        search hit, then the category stock image. Lookups run concurrently,
        bounded by the resolver semaphore.
        """

        async def _one(business: Business) -> Business:
            if business.local_image:
                return business.model_copy(update={"image": f"/api/images/{business.local_image}"})
            if business.image:
                return business
            found = await self.resolve(f"{business.name} {business.address}")
            return business.model_copy(update={"image": found or category_image(business.category)})

        return list(await asyncio.gather(*(_one(b) for b in businesses)))
