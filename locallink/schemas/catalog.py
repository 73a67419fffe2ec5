"""Pydantic schemas for catalog queries, summaries and recommendations."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from locallink.schemas.business import RecommendedBusiness

SortOption = Literal["relevance", "local", "rating", "reviews", "name"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CatalogQuery(_CamelModel):
    """Filters and ordering for GET /api/businesses."""

    category: Optional[str] = None
    tag: Optional[str] = None
    search: Optional[str] = None
    min_rating: Optional[float] = Field(default=None, ge=0.0, le=5.0)
    has_deals: bool = False
    sort: SortOption = "relevance"
    limit: Optional[int] = Field(default=None, ge=1)

    @property
    def is_search(self) -> bool:
        return bool(self.search and self.search.strip())


class CacheStats(_CamelModel):
    size: int
    hits: int
    misses: int
    hit_rate: float


class TagCount(_CamelModel):
    tag: str
    count: int


class TopRated(_CamelModel):
    id: str
    name: str
    rating: Optional[float] = None


class AnalyticsSummary(_CamelModel):
    total_businesses: int
    avg_rating: float
    by_category: dict[str, int]
    top_rated: list[TopRated]
    deals_available: int
    total_user_reviews: int
    top_rated_count: int


class CatalogStatus(_CamelModel):
    """Data-source status for /api/health and /api/demo-status."""

    data_source: str
    offline_mode: bool
    offline_data_available: bool
    metadata: Optional[dict[str, Any]] = None
    location: str
    radius_meters: int
    business_count: Optional[int] = None


# ── Recommendations ───────────────────────────────────────────────────────────


class RecommendationRequest(_CamelModel):
    favorite_ids: list[str] = Field(default_factory=list)
    preferred_categories: list[str] = Field(default_factory=list)
    debug: bool = False
    limit: int = Field(default=4, ge=1, le=50)


class RecommendationDebug(_CamelModel):
    category_scores: dict[str, int]
    favorite_count: int
    recommendations: list[RecommendedBusiness]

