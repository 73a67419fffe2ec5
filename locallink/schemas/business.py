"""Pydantic schemas for the canonical Business record."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from locallink.schemas.review import PublicReview

Category = Literal["Food", "Retail", "Services"]

BusinessSource = Literal["osm", "yelp", "offline"]


class CategoryRatings(BaseModel):
    """Per-category review means; only present with enough rated reviews."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    food_quality: Optional[float] = None
    service: Optional[float] = None
    cleanliness: Optional[float] = None
    atmosphere: Optional[float] = None
    reviews_with_ratings: int = 0


class Business(BaseModel):
    """
    Canonical business record every provider is normalized into.

    is_chain and relevancy_score are set once by the classifier and depend only
    on the source record. rating, review_count, reviews and category_ratings are
    overlay fields: recomputed from the Review Store on every read and never
    stored with the cached record.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    source: BusinessSource = "offline"
    name: str
    category: Category = "Services"
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    address: str = ""
    phone: str = "Phone not available"
    hours: str = "Hours not available"
    website: Optional[str] = None
    price_range: str = "$$"
    lat: Optional[float] = None
    lon: Optional[float] = None
    google_maps_url: str = ""
    image: Optional[str] = None
    local_image: Optional[str] = None
    deal: Optional[str] = None
    is_open_now: Optional[bool] = None

    # Provider-reported figures, used for ranking and recommendations only
    yelp_id: Optional[str] = None
    external_rating: Optional[float] = Field(
        None,
        validation_alias=AliasChoices("externalRating", "external_rating", "yelpRating"),
    )
    external_review_count: int = Field(
        0,
        validation_alias=AliasChoices(
            "externalReviewCount", "external_review_count", "yelpReviewCount"
        ),
    )

    # Classification
    is_chain: bool = False
    relevancy_score: int = 0

    # Overlay
    rating: float = 0.0
    review_count: int = 0
    reviews: list[PublicReview] = Field(default_factory=list)
    category_ratings: Optional[CategoryRatings] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _cap_tags(cls, value: object) -> object:
        if isinstance(value, list):
            return [t for t in value if t][:5]
        return value

    @field_validator("external_review_count", mode="before")
    @classmethod
    def _none_to_zero(cls, value: object) -> object:
        return 0 if value is None else value

    def without_overlay(self) -> "Business":
        """Return a copy with overlay fields reset, as stored in the cache."""
        return self.model_copy(
            update={
                "rating": 0.0,
                "review_count": 0,
                "reviews": [],
                "category_ratings": None,
            }
        )


class RecommendedBusiness(Business):
    """A Business annotated with its recommendation score."""

    recommendation_score: float = 0.0
    score_breakdown: Optional[dict[str, float]] = None
