"""Pydantic schemas package."""

from locallink.schemas.business import (
    Business,
    Category,
    CategoryRatings,
    RecommendedBusiness,
)
from locallink.schemas.catalog import (
    AnalyticsSummary,
    CacheStats,
    CatalogQuery,
    CatalogStatus,
    RecommendationDebug,
    RecommendationRequest,
    TagCount,
)
from locallink.schemas.providers import (
    OsmElement,
    RawRecord,
    YelpBusiness,
    YelpBusinessDetails,
)
from locallink.schemas.review import (
    PublicReview,
    Review,
    ReviewCreate,
    ReviewReport,
    ReviewUpdate,
)

__all__ = [
    "Business", "Category", "CategoryRatings", "RecommendedBusiness",
    "AnalyticsSummary", "CacheStats", "CatalogQuery", "CatalogStatus",
    "RecommendationDebug", "RecommendationRequest", "TagCount",
    "OsmElement", "RawRecord", "YelpBusiness", "YelpBusinessDetails",
    "PublicReview", "Review", "ReviewCreate", "ReviewReport", "ReviewUpdate",
]
