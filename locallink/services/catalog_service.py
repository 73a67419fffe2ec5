"""
CatalogService: the orchestrator behind every catalog endpoint.

Pipeline (live mode):
  1. Catalog cache lookup keyed by (lat, lon, radius)
  2. On miss: Overpass + Yelp concurrently → normalize → classify →
     rank by relevancy → cache (without review overlay)
  3. Chain dedup per request (skipped for free-text search)
  4. Review overlay on every record
  5. Sort, filter, limit
  6. Image enrichment for the returned page only

Offline mode, or a live build that yields nothing, serves the on-disk
snapshot instead of steps 1-3. No data at all raises SourceUnavailable.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Optional

from locallink.config import Settings
from locallink.exceptions import BusinessNotFound, ReviewStoreUnavailable, SourceUnavailable
from locallink.schemas.business import Business
from locallink.schemas.catalog import (
    AnalyticsSummary,
    CatalogQuery,
    CatalogStatus,
    RecommendationRequest,
    TagCount,
    TopRated,
)
from locallink.schemas.providers import RawRecord
from locallink.schemas.review import MyReview
from locallink.services.cache import CatalogCache, catalog_key
from locallink.services.classifier import BusinessClassifier
from locallink.services.connectors.overpass import OverpassConnector
from locallink.services.connectors.yelp import YelpConnector, format_hours
from locallink.services.image_search import ImageResolver
from locallink.services.normalizer import Normalizer
from locallink.services.offline import OfflineSnapshot
from locallink.services.overlay import ReviewOverlayMerger
from locallink.services.ranking import apply_filters, deduplicate_chains, rank
from locallink.services.recommendation_service import RecommendationResult, RecommendationScorer
from locallink.services.review_store import ReviewStore

logger = logging.getLogger(__name__)

TRENDING_COUNT = 3
TOP_RATED_COUNT = 3


class CatalogService:
    def __init__(
        self,
        settings: Settings,
        overpass: OverpassConnector,
        yelp: YelpConnector,
        catalog_cache: CatalogCache,
        review_store: ReviewStore,
        images: ImageResolver,
        snapshot: OfflineSnapshot,
        normalizer: Optional[Normalizer] = None,
        classifier: Optional[BusinessClassifier] = None,
        scorer: Optional[RecommendationScorer] = None,
    ) -> None:
        self.settings = settings
        self.overpass = overpass
        self.yelp = yelp
        self.catalog_cache = catalog_cache
        self.review_store = review_store
        self.images = images
        self.snapshot = snapshot
        self.normalizer = normalizer or Normalizer(city_name=settings.city_name)
        self.classifier = classifier or BusinessClassifier()
        self.scorer = scorer or RecommendationScorer()
        self.overlay = ReviewOverlayMerger(review_store)

        review_store.add_listener(self._on_reviews_changed)

    @property
    def offline(self) -> bool:
        return self.settings.offline_mode

    def _on_reviews_changed(self, business_id: str) -> None:
        logger.debug("Reviews changed for %s; flushing catalog cache", business_id)
        self.catalog_cache.flush()

    # ── Base catalog ──────────────────────────────────────────────────────────

    async def base_catalog(self) -> list[Business]:
        """Ranked, classified businesses without review overlay."""
        if self.offline:
            if not self.snapshot.available:
                raise SourceUnavailable("Offline mode is on but no snapshot is available")
            return list(self.snapshot.businesses)

        key = catalog_key(
            self.settings.center_lat,
            self.settings.center_lon,
            self.settings.search_radius_meters,
        )
        cached = self.catalog_cache.get(key)
        if cached is not None:
            return cached

        businesses = await self._build_live()
        if not businesses:
            if self.snapshot.available:
                logger.warning(
                    "All providers returned nothing; serving %d snapshot businesses",
                    len(self.snapshot.businesses),
                )
                return list(self.snapshot.businesses)
            raise SourceUnavailable("No provider returned data and no snapshot is available")

        self.catalog_cache.set(key, businesses)
        return businesses

    async def _build_live(self) -> list[Business]:
        center = (self.settings.center_lat, self.settings.center_lon)
        radius = self.settings.search_radius_meters

        yelp_records, osm_records = await asyncio.gather(
            self.yelp.fetch(center, radius),
            self.overpass.fetch(center, radius),
        )
        records: list[RawRecord] = [*yelp_records, *osm_records]

        businesses = [
            self.classifier.classify(business, record)
            for record, business in self.normalizer.normalize_many(records)
        ]

        logger.info(
            "Catalog built: %d yelp + %d osm records → %d businesses",
            len(yelp_records),
            len(osm_records),
            len(businesses),
        )
        return rank(businesses, "relevance")

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def get_catalog(self, query: CatalogQuery) -> list[Business]:
        businesses = await self.base_catalog()
        if not query.is_search:
            businesses = deduplicate_chains(businesses)

        businesses = await self.overlay.apply_many(businesses)
        businesses = apply_filters(rank(businesses, query.sort), query)
        return await self.images.enrich(businesses)

    async def get_business(self, business_id: str) -> Business:
        business = next((b for b in await self.base_catalog() if b.id == business_id), None)
        if business is None:
            raise BusinessNotFound(f"Business {business_id} not found")

        if business.yelp_id and not self.offline:
            details = await self.yelp.fetch_details(business.yelp_id)
            if details is not None:
                business = business.model_copy(
                    update={
                        "hours": format_hours(details.hours),
                        "image": details.photos[0] if details.photos else business.image,
                        "website": business.website or details.url,
                    }
                )

        business = await self.overlay.apply(business)
        enriched = await self.images.enrich([business])
        return enriched[0]

    async def recommend(self, request: RecommendationRequest) -> RecommendationResult:
        businesses = await self.overlay.apply_many(await self.base_catalog())
        result = self.scorer.recommend(
            businesses,
            request.favorite_ids,
            request.preferred_categories,
            limit=request.limit,
            debug=request.debug,
        )
        result.recommendations = await self.images.enrich(result.recommendations)
        return result

    async def tags(self) -> list[TagCount]:
        counts: Counter[str] = Counter()
        for business in await self.base_catalog():
            for tag in business.tags:
                normalized = tag.lower().strip()
                if len(normalized) > 1:
                    counts[normalized] += 1
        return [
            TagCount(tag=tag[:1].upper() + tag[1:], count=count)
            for tag, count in counts.most_common()
            if count >= 2
        ]

    async def trending(self) -> list[Business]:
        businesses = await self.base_catalog()
        picked: list[Business] = []
        for name in self.settings.trending_names_list:
            wanted = name.lower()
            match = next(
                (
                    b
                    for b in businesses
                    if wanted in b.name.lower() or b.name.lower() in wanted
                ),
                None,
            )
            if match is not None and all(p.id != match.id for p in picked):
                picked.append(match)

        if len(picked) < TRENDING_COUNT:
            chosen = {b.id for b in picked}
            fallback = rank(
                [b for b in businesses if not b.is_chain and b.id not in chosen],
                "relevance",
            )
            picked.extend(fallback[: TRENDING_COUNT - len(picked)])

        return await self.images.enrich(await self.overlay.apply_many(picked))

    async def analytics(self) -> AnalyticsSummary:
        businesses = await self.base_catalog()
        total = len(businesses)
        avg = sum(b.external_rating or 0.0 for b in businesses) / total if total else 0.0

        top_rated = sorted(businesses, key=lambda b: b.external_rating or 0.0, reverse=True)
        try:
            total_user_reviews = await self.review_store.count_reviews()
        except ReviewStoreUnavailable as exc:
            logger.warning("Analytics without review totals: %s", exc)
            total_user_reviews = 0

        return AnalyticsSummary(
            total_businesses=total,
            avg_rating=round(avg, 1),
            by_category=dict(Counter(b.category for b in businesses)),
            top_rated=[
                TopRated(id=b.id, name=b.name, rating=b.external_rating)
                for b in top_rated[:TOP_RATED_COUNT]
            ],
            deals_available=sum(1 for b in businesses if b.deal),
            total_user_reviews=total_user_reviews,
            top_rated_count=sum(1 for b in businesses if (b.external_rating or 0.0) >= 4.0),
        )

    async def my_reviews(self, user_id: str) -> list[MyReview]:
        pairs = await self.review_store.reviews_by_user(user_id)
        try:
            names = {b.id: b.name for b in await self.base_catalog()}
        except SourceUnavailable:
            names = {}
        return [
            MyReview(business_id=business_id, business_name=names.get(business_id), review=review.public())
            for business_id, review in pairs
        ]

    def status(self) -> CatalogStatus:
        return CatalogStatus(
            data_source="Local (Offline)" if self.offline else "Live (Yelp + OpenStreetMap)",
            offline_mode=self.offline,
            offline_data_available=self.snapshot.available,
            metadata=self.snapshot.metadata,
            location=f"{self.settings.city_name}, Georgia",
            radius_meters=self.settings.search_radius_meters,
            business_count=len(self.snapshot.businesses) if self.offline else None,
        )
