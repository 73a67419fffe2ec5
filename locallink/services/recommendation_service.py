"""
RecommendationScorer: pure algorithmic personalised ranking.
No provider calls. No DB calls. Scores the catalog against a favorites set.

Scoring breakdown:
  Category affinity  (favorites in category + 2 per preference) × 10
  External rating    +15 (≥ 4.5) / +10 (≥ 4.0)
  Deal               +5
  Local (non-chain)  +3
  Review volume      + min(external review count × 0.01, 2)

Favorites themselves are never recommended. Ties keep catalog order.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from locallink.schemas.business import Business, RecommendedBusiness

CATEGORY_WEIGHT = 10
PREFERENCE_BOOST = 2
DEFAULT_LIMIT = 4
DEBUG_LIMIT = 20


@dataclass
class RecommendationResult:
    """Output of RecommendationScorer.recommend()."""

    category_scores: dict[str, int]
    recommendations: list[RecommendedBusiness] = field(default_factory=list)


class RecommendationScorer:
    """Receives the merged catalog and returns the top-N non-favorites."""

    def category_scores(
        self,
        businesses: list[Business],
        favorite_ids: Iterable[str],
        preferred_categories: Iterable[str] = (),
    ) -> dict[str, int]:
        by_id = {b.id: b for b in businesses}
        scores: Counter[str] = Counter()
        for fav_id in favorite_ids:
            business = by_id.get(fav_id)
            if business is not None:
                scores[business.category] += 1
        for category in preferred_categories:
            scores[category] += PREFERENCE_BOOST
        return dict(scores)

    def score(self, business: Business, category_scores: dict[str, int]) -> tuple[float, dict[str, float]]:
        """Return (total, breakdown); breakdown lists only non-zero components."""
        breakdown: dict[str, float] = {}

        category_pts = category_scores.get(business.category, 0) * CATEGORY_WEIGHT
        if category_pts:
            breakdown["category"] = category_pts

        rating = business.external_rating or 0.0
        if rating >= 4.5:
            breakdown["rating"] = 15
        elif rating >= 4.0:
            breakdown["rating"] = 10

        if business.deal:
            breakdown["deal"] = 5
        if not business.is_chain:
            breakdown["local"] = 3

        review_pts = min(business.external_review_count * 0.01, 2.0)
        if review_pts > 0:
            breakdown["reviews"] = round(review_pts, 2)

        total = category_pts + breakdown.get("rating", 0) + breakdown.get("deal", 0)
        total += breakdown.get("local", 0) + review_pts
        return round(total, 2), breakdown

    def recommend(
        self,
        businesses: list[Business],
        favorite_ids: Iterable[str],
        preferred_categories: Iterable[str] = (),
        limit: int = DEFAULT_LIMIT,
        debug: bool = False,
    ) -> RecommendationResult:
        favorites = list(favorite_ids)
        category_scores = self.category_scores(businesses, favorites, preferred_categories)
        excluded = set(favorites)

        scored: list[RecommendedBusiness] = []
        for business in businesses:
            if business.id in excluded:
                continue
            total, breakdown = self.score(business, category_scores)
            scored.append(
                RecommendedBusiness(
                    **business.model_dump(),
                    recommendation_score=total,
                    score_breakdown=breakdown if debug else None,
                )
            )

        # sorted() is stable: equal scores keep catalog order
        scored = sorted(scored, key=lambda r: r.recommendation_score, reverse=True)
        top_n = DEBUG_LIMIT if debug else limit
        return RecommendationResult(category_scores=category_scores, recommendations=scored[:top_n])
