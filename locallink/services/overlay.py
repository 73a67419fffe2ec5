"""
Review overlay: merges Review Store aggregates onto Business copies.

Applied on every read, cached or not. Hidden reviews never count. Category
means are only published once a business has enough reviews for them to be
meaningful (CATEGORY_MIN_REVIEWS visible, CATEGORY_MIN_RATED carrying any
sub-rating).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from locallink.exceptions import ReviewStoreUnavailable
from locallink.schemas.business import Business, CategoryRatings
from locallink.schemas.review import CATEGORY_RATING_FIELDS, Review
from locallink.services.review_store import ReviewStore

logger = logging.getLogger(__name__)

CATEGORY_MIN_REVIEWS = 10
CATEGORY_MIN_RATED = 5


@dataclass
class ReviewSummary:
    review_count: int = 0
    rating: float = 0.0
    reviews: list[Review] = field(default_factory=list)
    category_ratings: Optional[CategoryRatings] = None


def summarize_reviews(reviews: list[Review]) -> ReviewSummary:
    visible = [r for r in reviews if not r.hidden]
    count = len(visible)
    if count == 0:
        return ReviewSummary()

    rating = sum(r.rating for r in visible) / count

    category_ratings: Optional[CategoryRatings] = None
    if count >= CATEGORY_MIN_REVIEWS:
        rated = [r for r in visible if r.has_category_ratings]
        if len(rated) >= CATEGORY_MIN_RATED:
            means: dict[str, Optional[float]] = {}
            for name in CATEGORY_RATING_FIELDS:
                values = [getattr(r, name) for r in rated if getattr(r, name)]
                means[name] = round(sum(values) / len(values), 1) if values else None
            category_ratings = CategoryRatings(**means, reviews_with_ratings=len(rated))

    return ReviewSummary(
        review_count=count,
        rating=rating,
        reviews=visible,
        category_ratings=category_ratings,
    )


def merge_summary(business: Business, summary: ReviewSummary) -> Business:
    """Return a copy of business carrying the summary; the input is untouched."""
    return business.model_copy(
        update={
            "rating": summary.rating,
            "review_count": summary.review_count,
            "reviews": [r.public() for r in summary.reviews],
            "category_ratings": summary.category_ratings,
        }
    )


class ReviewOverlayMerger:
    """Reads reviews from the store and overlays them; never fails the request."""

    def __init__(self, store: ReviewStore) -> None:
        self.store = store

    async def apply(self, business: Business) -> Business:
        try:
            reviews = await self.store.get(business.id)
        except ReviewStoreUnavailable as exc:
            logger.warning("Review overlay skipped for %s: %s", business.id, exc)
            reviews = []
        return merge_summary(business, summarize_reviews(reviews))

    async def apply_many(self, businesses: list[Business]) -> list[Business]:
        if not businesses:
            return []
        try:
            by_id = await self.store.get_many(b.id for b in businesses)
        except ReviewStoreUnavailable as exc:
            logger.warning("Review overlay skipped for %d businesses: %s", len(businesses), exc)
            by_id = {}
        return [merge_summary(b, summarize_reviews(by_id.get(b.id, []))) for b in businesses]
