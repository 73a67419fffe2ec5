"""
OverpassConnector: geographic-tag provider (OpenStreetMap via Overpass QL).

One radius query per catalog build. Any transport, status or envelope
failure is logged and turned into an empty result; exceptions never leave
this module.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from locallink.schemas.providers import OsmElement, OverpassResponse
from locallink.utils.taxonomy import OSM_NON_BUSINESS_AMENITIES, OSM_TYPE_KEYS

logger = logging.getLogger(__name__)

# Overpass server-side query timeout; the client timeout is applied separately
_QUERY_TIMEOUT_SECONDS = 25


def build_query(lat: float, lon: float, radius_m: int) -> str:
    """Return the Overpass QL selecting named business features around a point."""
    around = f"around:{radius_m},{lat},{lon}"
    excluded = "|".join(OSM_NON_BUSINESS_AMENITIES)
    selectors: list[str] = []
    for element_type in ("node", "way"):
        for key in OSM_TYPE_KEYS:
            if key == "amenity":
                selectors.append(
                    f'  {element_type}["amenity"]["amenity"!~"^({excluded})$"]["name"]({around});'
                )
            else:
                selectors.append(f'  {element_type}["{key}"]["name"]({around});')
    body = "\n".join(selectors)
    return f"[out:json][timeout:{_QUERY_TIMEOUT_SECONDS}];\n(\n{body}\n);\nout center tags;"


class OverpassConnector:
    """Fetches raw map features; returns validated OsmElement records."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        timeout_seconds: float = 15.0,
        enabled: bool = True,
    ) -> None:
        self._client = client
        self._url = url
        self._timeout = timeout_seconds
        self.enabled = enabled

    async def fetch(self, center: tuple[float, float], radius_m: int) -> list[OsmElement]:
        if not self.enabled:
            logger.info("Overpass connector disabled, skipping")
            return []

        lat, lon = center
        query = build_query(lat, lon, radius_m)
        try:
            resp = await self._client.post(
                self._url,
                data={"data": query},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            envelope = OverpassResponse.model_validate(resp.json())
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "[Overpass] partial source failure: HTTP %d", exc.response.status_code
            )
            return []
        except httpx.HTTPError as exc:
            logger.warning("[Overpass] partial source failure: %s", exc)
            return []
        except (ValueError, ValidationError) as exc:
            # ValueError covers a body that is not JSON at all
            logger.warning("[Overpass] partial source failure: bad envelope (%s)", exc)
            return []

        elements: list[OsmElement] = []
        skipped = 0
        for item in envelope.elements:
            try:
                element = OsmElement.model_validate(item)
            except ValidationError as exc:
                logger.debug("[Overpass] skipping malformed element: %s", exc)
                skipped += 1
                continue
            if not self._is_candidate(element):
                skipped += 1
                continue
            elements.append(element)

        logger.info(
            "[Overpass] %d elements fetched (%d skipped at boundary)",
            len(elements),
            skipped,
        )
        return elements

    @staticmethod
    def _is_candidate(element: OsmElement) -> bool:
        """A feature needs a name, a type tag and a position to be worth normalizing."""
        tags = element.tags
        if not tags.get("name", "").strip():
            return False
        if not any(key in tags for key in OSM_TYPE_KEYS):
            return False
        return element.latitude is not None and element.longitude is not None
