"""Pydantic schemas for user reviews held in the Review Store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Sub-rating fields, in display order
CATEGORY_RATING_FIELDS: tuple[str, ...] = (
    "food_quality",
    "service",
    "cleanliness",
    "atmosphere",
)

# A review is hidden once it collects this many reports
HIDE_AFTER_REPORTS = 3


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReviewReport(_CamelModel):
    """A single moderation report against a review."""

    reason: str = "Inappropriate content"
    date: datetime = Field(default_factory=utcnow)


class PublicReview(_CamelModel):
    """
    A review as shown inside business payloads and "my reviews": voter ids
    and moderation reports are left out.
    """

    id: str
    business_id: str
    user_id: Optional[str] = None
    author: str = "Anonymous"
    is_anonymous: bool = False
    rating: int = Field(..., ge=1, le=5)

    # Category sub-ratings; older records may lack them. "quality" is the
    # legacy name of food_quality.
    food_quality: Optional[int] = Field(
        None,
        ge=1,
        le=5,
        validation_alias=AliasChoices("foodQuality", "food_quality", "quality"),
    )
    service: Optional[int] = Field(None, ge=1, le=5)
    cleanliness: Optional[int] = Field(None, ge=1, le=5)
    atmosphere: Optional[int] = Field(None, ge=1, le=5)

    comment: str = ""
    date: datetime = Field(default_factory=utcnow)
    edited_at: Optional[datetime] = None
    helpful: int = 0
    hidden: bool = False
    source: Literal["local", "seed"] = "local"

    @property
    def has_category_ratings(self) -> bool:
        return any(getattr(self, f) for f in CATEGORY_RATING_FIELDS)


class Review(PublicReview):
    """
    A user review as persisted. Keyed by business_id in the Review Store.
    helpful must always equal len(upvoted_by).
    """

    upvoted_by: list[str] = Field(default_factory=list)
    reports: list[ReviewReport] = Field(default_factory=list)

    def public(self) -> PublicReview:
        return PublicReview(**self.model_dump(exclude={"upvoted_by", "reports"}))


class ReviewCreate(_CamelModel):
    """Body for POST /api/businesses/{id}/reviews."""

    rating: int = Field(..., ge=1, le=5)
    food_quality: int = Field(
        ...,
        ge=1,
        le=5,
        validation_alias=AliasChoices("foodQuality", "food_quality", "quality"),
    )
    service: int = Field(..., ge=1, le=5)
    cleanliness: int = Field(..., ge=1, le=5)
    atmosphere: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    is_anonymous: bool = False


class ReviewUpdate(_CamelModel):
    """Body for PUT /api/businesses/{id}/reviews/{review_id}; every field optional."""

    rating: Optional[int] = Field(None, ge=1, le=5)
    food_quality: Optional[int] = Field(
        None,
        ge=1,
        le=5,
        validation_alias=AliasChoices("foodQuality", "food_quality", "quality"),
    )
    service: Optional[int] = Field(None, ge=1, le=5)
    cleanliness: Optional[int] = Field(None, ge=1, le=5)
    atmosphere: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = None
    is_anonymous: Optional[bool] = None


class ReportCreate(_CamelModel):
    reason: Optional[str] = None


class UpvoteResult(_CamelModel):
    message: str
    helpful: int


class ReportResult(_CamelModel):
    message: str
    report_count: int


class MyReview(_CamelModel):
    business_id: str
    business_name: Optional[str] = None
    review: PublicReview
