"""
Normalizer: maps validated provider records onto the canonical Business.

Every record either becomes a Business or is rejected (None): nameless
records, denylisted categories and OSM features without a recognisable
business tag never reach the catalog. Chain and relevancy classification
happen afterwards in the classifier.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote

from locallink.schemas.business import Business
from locallink.schemas.providers import OsmElement, RawRecord, YelpBusiness, YelpCategory
from locallink.utils.taxonomy import (
    DEALS_BY_CATEGORY,
    FOOD_TITLE_KEYWORDS,
    OSM_EXCLUDED_TAGS,
    OSM_FOOD_AMENITIES,
    OSM_FOOD_SHOPS,
    OSM_SERVICE_AMENITIES,
    OSM_SERVICE_SHOPS,
    OSM_TYPE_KEYS,
    YELP_CATEGORY_ALIASES,
    YELP_EXCLUDED_ALIASES,
)

logger = logging.getLogger(__name__)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="
YELP_HOURS_PLACEHOLDER = "Hours available on business page"
MAX_TAGS = 5


@dataclass(frozen=True)
class CategoryTaxonomy:
    """Closed vocabularies mapping provider categories onto Food / Retail / Services."""

    yelp_aliases: dict[str, frozenset[str]] = field(default_factory=lambda: YELP_CATEGORY_ALIASES)
    yelp_excluded: frozenset[str] = YELP_EXCLUDED_ALIASES
    food_title_keywords: tuple[str, ...] = FOOD_TITLE_KEYWORDS
    osm_food_amenities: frozenset[str] = OSM_FOOD_AMENITIES
    osm_food_shops: frozenset[str] = OSM_FOOD_SHOPS
    osm_service_shops: frozenset[str] = OSM_SERVICE_SHOPS
    osm_service_amenities: frozenset[str] = OSM_SERVICE_AMENITIES
    osm_excluded: dict[str, frozenset[str]] = field(default_factory=lambda: OSM_EXCLUDED_TAGS)

    def classify_yelp(self, categories: list[YelpCategory]) -> Optional[str]:
        """Return the canonical category, or None when any alias is denylisted."""
        aliases = {c.alias for c in categories}
        if aliases & self.yelp_excluded:
            return None

        # Table order decides precedence: Food, then Retail, then Services
        for category, known in self.yelp_aliases.items():
            if aliases & known:
                return category

        titles = [c.title.lower() for c in categories]
        if any(kw in title for title in titles for kw in self.food_title_keywords):
            return "Food"
        return "Services"

    def classify_osm(self, tags: dict[str, str]) -> Optional[str]:
        """Return the canonical category, or None for excluded / non-business features."""
        for key, values in self.osm_excluded.items():
            if tags.get(key) in values:
                return None

        amenity = tags.get("amenity")
        shop = tags.get("shop")

        if amenity in self.osm_food_amenities or shop in self.osm_food_shops:
            return "Food"
        if shop:
            return "Services" if shop in self.osm_service_shops else "Retail"
        if amenity:
            # Unknown amenities are usually public infrastructure
            return "Services" if amenity in self.osm_service_amenities else None
        if any(k in tags for k in ("craft", "office", "healthcare")):
            return "Services"
        return None


def mock_deal(category: str, name: str) -> Optional[str]:
    """Deterministic promotional deal: one business in five gets one."""
    seed = hashlib.md5(f"{category}-{name}".encode("utf-8")).hexdigest()
    roll = int(seed[:2], 16)
    if roll % 5 != 0:
        return None
    options = DEALS_BY_CATEGORY.get(category) or DEALS_BY_CATEGORY["Services"]
    return options[roll % len(options)]


def google_maps_url(name: str, address: str, lat: Optional[float], lon: Optional[float]) -> str:
    if lat is not None and lon is not None:
        return f"{MAPS_SEARCH_URL}{lat},{lon}"
    return f"{MAPS_SEARCH_URL}{quote(f'{name} {address}'.strip(), safe='')}"


def _humanize(value: str) -> str:
    """'fast_food' → 'Fast Food'."""
    return value.replace("_", " ").replace(";", " ").strip().title()


def _unique(labels: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for label in labels:
        key = label.lower()
        if label and key not in seen:
            seen.add(key)
            out.append(label)
    return out


class Normalizer:
    """
    Converts raw provider records into canonical Business records.
    Stateless apart from the injected taxonomy and the default city name.
    """

    def __init__(self, taxonomy: Optional[CategoryTaxonomy] = None, city_name: str = "Cumming") -> None:
        self.taxonomy = taxonomy or CategoryTaxonomy()
        self.city_name = city_name

    def normalize(self, record: RawRecord) -> Optional[Business]:
        if isinstance(record, OsmElement):
            return self.normalize_osm(record)
        if isinstance(record, YelpBusiness):
            return self.normalize_yelp(record)
        raise TypeError(f"Unsupported record type: {type(record).__name__}")

    def normalize_many(self, records: list[RawRecord]) -> list[tuple[RawRecord, Business]]:
        """Normalize a batch in input order; each Business is paired with its source record."""
        pairs: list[tuple[RawRecord, Business]] = []
        for record in records:
            business = self.normalize(record)
            if business is not None:
                pairs.append((record, business))
        skipped = len(records) - len(pairs)
        if skipped:
            logger.info("Normalization skipped %d of %d records", skipped, len(records))
        return pairs

    def describe(self, category: str, titles: list[str], city: Optional[str] = None) -> str:
        """Synthesize "Local bakery & cafe in Cumming." from category titles."""
        city = city or self.city_name
        picked = [t.lower() for t in titles if t][:2]
        if picked:
            return f"Local {' & '.join(picked)} in {city}."
        return f"Local {category.lower()} business in {city}."

    # ── OpenStreetMap ─────────────────────────────────────────────────────────

    def normalize_osm(self, element: OsmElement) -> Optional[Business]:
        tags = element.tags
        name = tags.get("name", "").strip()
        if not name:
            logger.debug("NormalizationSkip: osm %s/%s has no name", element.type, element.id)
            return None

        category = self.taxonomy.classify_osm(tags)
        if category is None:
            logger.debug("NormalizationSkip: osm %r excluded by tags", name)
            return None

        labels = self._osm_labels(tags)
        address = self._osm_address(tags)
        lat, lon = element.latitude, element.longitude

        return Business(
            id=f"osm-{element.type}-{element.id}",
            source="osm",
            name=name,
            category=category,
            description=tags.get("description") or self.describe(category, labels, tags.get("addr:city")),
            tags=labels[:MAX_TAGS],
            address=address,
            phone=tags.get("phone") or tags.get("contact:phone") or "Phone not available",
            hours=tags.get("opening_hours") or "Hours not available",
            website=tags.get("website") or tags.get("contact:website"),
            lat=lat,
            lon=lon,
            google_maps_url=google_maps_url(name, address, lat, lon),
            deal=mock_deal(category, name),
        )

    @staticmethod
    def _osm_labels(tags: dict[str, str]) -> list[str]:
        labels: list[str] = []
        for key in OSM_TYPE_KEYS:
            value = tags.get(key)
            if value and value != "yes":
                labels.append(_humanize(value))
        for cuisine in tags.get("cuisine", "").split(";"):
            if cuisine.strip():
                labels.append(_humanize(cuisine))
        return _unique(labels)

    def _osm_address(self, tags: dict[str, str]) -> str:
        street = " ".join(
            p for p in (tags.get("addr:housenumber"), tags.get("addr:street")) if p
        )
        region = " ".join(p for p in (tags.get("addr:state"), tags.get("addr:postcode")) if p)
        parts = [p for p in (street, tags.get("addr:city"), region) if p]
        return ", ".join(parts) if parts else f"{self.city_name}, GA"

    # ── Yelp ──────────────────────────────────────────────────────────────────

    def normalize_yelp(self, raw: YelpBusiness) -> Optional[Business]:
        name = raw.name.strip()
        if not name:
            logger.debug("NormalizationSkip: yelp %s has no name", raw.id)
            return None

        category = self.taxonomy.classify_yelp(raw.categories)
        if category is None:
            logger.debug("NormalizationSkip: yelp %r in excluded category", name)
            return None

        titles = _unique([c.title for c in raw.categories if c.title])
        address = ", ".join(raw.location.display_address) or f"{self.city_name}, GA"
        lat, lon = raw.coordinates.latitude, raw.coordinates.longitude

        return Business(
            id=f"yelp-{raw.id}",
            source="yelp",
            yelp_id=raw.id,
            name=name,
            category=category,
            description=self.describe(category, titles, raw.location.city),
            tags=titles[:MAX_TAGS],
            address=address,
            phone=raw.display_phone or "Phone not available",
            hours=YELP_HOURS_PLACEHOLDER,
            website=raw.url,
            price_range=raw.price or "$$",
            lat=lat,
            lon=lon,
            google_maps_url=google_maps_url(name, address, lat, lon),
            image=raw.image_url or None,
            deal=mock_deal(category, name),
            is_open_now=True if raw.is_closed is False else None,
            external_rating=raw.rating,
            external_review_count=raw.review_count,
        )
