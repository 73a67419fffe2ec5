"""
Reviews router: read and mutate user reviews.

Endpoints:
  GET    /api/businesses/{id}/reviews                          visible reviews
  POST   /api/businesses/{id}/reviews                          submit (auth)
  PUT    /api/businesses/{id}/reviews/{review_id}              owner edit
  DELETE /api/businesses/{id}/reviews/{review_id}              owner delete
  POST   /api/businesses/{id}/reviews/{review_id}/upvote       idempotent upvote
  POST   /api/businesses/{id}/reviews/{review_id}/remove-upvote
  POST   /api/businesses/{id}/reviews/{review_id}/report       3 reports hide a review
  GET    /api/my-reviews                                       caller's reviews

Authentication: X-User-ID / X-Username headers, trusted as-is.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from locallink.dependencies import get_catalog_service, get_current_user, get_review_store, require_user
from locallink.schemas.review import (
    MyReview,
    ReportCreate,
    ReportResult,
    Review,
    ReviewCreate,
    ReviewUpdate,
    UpvoteResult,
)
from locallink.schemas.user import CurrentUser
from locallink.services.catalog_service import CatalogService
from locallink.services.review_store import ReviewStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["reviews"])

_REVIEW_PATH = "/businesses/{business_id}/reviews/{review_id}"


@router.get("/businesses/{business_id}/reviews")
async def list_reviews(
    business_id: str,
    user: Optional[CurrentUser] = Depends(get_current_user),
    store: ReviewStore = Depends(get_review_store),
) -> list[dict]:
    """Visible reviews in insertion order. Voter ids are only shown to signed-in callers."""
    reviews = [r for r in await store.get(business_id) if not r.hidden]
    exclude = {"reports"} if user else {"reports", "upvoted_by"}
    return [r.model_dump(mode="json", by_alias=True, exclude=exclude) for r in reviews]


@router.post(
    "/businesses/{business_id}/reviews",
    status_code=status.HTTP_201_CREATED,
)
async def submit_review(
    business_id: str,
    body: ReviewCreate,
    user: CurrentUser = Depends(require_user),
    store: ReviewStore = Depends(get_review_store),
) -> dict:
    review = await store.add_review(business_id, body, user)
    return {
        "message": "Review submitted successfully",
        "review": review.model_dump(mode="json", by_alias=True, exclude={"reports"}),
    }


@router.put(_REVIEW_PATH, response_model=Review, response_model_exclude={"reports"})
async def edit_review(
    business_id: str,
    review_id: str,
    body: ReviewUpdate,
    user: CurrentUser = Depends(require_user),
    store: ReviewStore = Depends(get_review_store),
) -> Review:
    return await store.update_review(business_id, review_id, body, user)


@router.delete(_REVIEW_PATH)
async def delete_review(
    business_id: str,
    review_id: str,
    user: CurrentUser = Depends(require_user),
    store: ReviewStore = Depends(get_review_store),
) -> dict:
    await store.delete_review(business_id, review_id, user)
    return {"message": "Review deleted successfully"}


@router.post(f"{_REVIEW_PATH}/upvote", response_model=UpvoteResult)
async def upvote_review(
    business_id: str,
    review_id: str,
    user: CurrentUser = Depends(require_user),
    store: ReviewStore = Depends(get_review_store),
) -> UpvoteResult:
    return await store.upvote(business_id, review_id, user.user_id)


@router.post(f"{_REVIEW_PATH}/remove-upvote", response_model=UpvoteResult)
async def remove_upvote(
    business_id: str,
    review_id: str,
    user: CurrentUser = Depends(require_user),
    store: ReviewStore = Depends(get_review_store),
) -> UpvoteResult:
    return await store.remove_upvote(business_id, review_id, user.user_id)


@router.post(f"{_REVIEW_PATH}/report", response_model=ReportResult)
async def report_review(
    business_id: str,
    review_id: str,
    body: Optional[ReportCreate] = None,
    store: ReviewStore = Depends(get_review_store),
) -> ReportResult:
    return await store.report(business_id, review_id, body.reason if body else None)


@router.get("/my-reviews", response_model=list[MyReview])
async def my_reviews(
    user: CurrentUser = Depends(require_user),
    service: CatalogService = Depends(get_catalog_service),
) -> list[MyReview]:
    return await service.my_reviews(user.user_id)
