"""
ReviewStore: persisted review lists keyed by business id.

One ReviewDocument row per business holds the whole review list as JSON.
Writes go through mutate(), which combines:
  1. a per-business asyncio.Lock (serializes writers inside this process)
  2. a version compare-and-swap (UPDATE ... WHERE version = :expected),
     retried up to MAX_WRITE_ATTEMPTS times across processes

Every completed mutation notifies the registered listeners; the catalog
cache uses this to flush stale aggregates.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Iterable, Optional, TypeVar

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from locallink.exceptions import (
    ReviewNotFound,
    ReviewPermissionError,
    ReviewPersistError,
    ReviewStoreUnavailable,
    ReviewValidationError,
    ReviewWriteConflict,
)
from locallink.models.review import ReviewDocument
from locallink.schemas.review import (
    HIDE_AFTER_REPORTS,
    Review,
    ReviewCreate,
    ReviewReport,
    ReviewUpdate,
    ReportResult,
    UpvoteResult,
    utcnow,
)
from locallink.schemas.user import CurrentUser

logger = logging.getLogger(__name__)

MAX_WRITE_ATTEMPTS = 3
REPORT_MESSAGE = "Report submitted. Thank you for helping keep our community safe."

T = TypeVar("T")


def _load(raw: Optional[list]) -> list[Review]:
    """Decode a stored review list, dropping entries that no longer validate."""
    reviews: list[Review] = []
    for item in raw or []:
        try:
            reviews.append(Review.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping unreadable stored review: %s", exc)
    return reviews


def _dump(reviews: list[Review]) -> list[dict]:
    return [r.model_dump(mode="json", by_alias=True) for r in reviews]


def _find(reviews: list[Review], review_id: str) -> Review:
    for review in reviews:
        if review.id == review_id:
            return review
    raise ReviewNotFound(f"Review {review_id} not found")


def _author_name(is_anonymous: bool, user: CurrentUser) -> str:
    if is_anonymous:
        return "Anonymous"
    author = user.username.strip()
    if len(author) < 2:
        raise ReviewValidationError("Valid author name is required (min 2 characters)")
    return author


class ReviewStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_attempts: int = MAX_WRITE_ATTEMPTS,
    ) -> None:
        self._session_factory = session_factory
        self._max_attempts = max_attempts
        # business_id -> (lock, number of writers holding or awaiting it)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}
        self._listeners: list[Callable[[str], None]] = []

    def add_listener(self, listener: Callable[[str], None]) -> None:
        """Register a callback run with the business id after every completed write."""
        self._listeners.append(listener)

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def get(self, business_id: str) -> list[Review]:
        try:
            async with self._session_factory() as session:
                doc = await session.get(ReviewDocument, business_id)
        except SQLAlchemyError as exc:
            raise ReviewStoreUnavailable(str(exc)) from exc
        return _load(doc.reviews) if doc else []

    async def get_many(self, business_ids: Iterable[str]) -> dict[str, list[Review]]:
        """Load several documents in one query; absent ids map to []."""
        ids = list(dict.fromkeys(business_ids))
        result: dict[str, list[Review]] = {bid: [] for bid in ids}
        if not ids:
            return result
        try:
            async with self._session_factory() as session:
                rows = await session.execute(
                    select(ReviewDocument.business_id, ReviewDocument.reviews).where(
                        ReviewDocument.business_id.in_(ids)
                    )
                )
                for business_id, raw in rows.all():
                    result[business_id] = _load(raw)
        except SQLAlchemyError as exc:
            raise ReviewStoreUnavailable(str(exc)) from exc
        return result

    async def reviews_by_user(self, user_id: str) -> list[tuple[str, Review]]:
        """Every review written by user_id as (business_id, review), newest first."""
        try:
            async with self._session_factory() as session:
                rows = await session.execute(
                    select(ReviewDocument.business_id, ReviewDocument.reviews)
                )
                pairs = [
                    (business_id, review)
                    for business_id, raw in rows.all()
                    for review in _load(raw)
                    if review.user_id == user_id
                ]
        except SQLAlchemyError as exc:
            raise ReviewStoreUnavailable(str(exc)) from exc
        pairs.sort(key=lambda pair: pair[1].date, reverse=True)
        return pairs

    async def count_reviews(self) -> int:
        """Total stored reviews across all businesses, hidden ones included."""
        try:
            async with self._session_factory() as session:
                rows = await session.execute(select(ReviewDocument.reviews))
                return sum(len(raw or []) for raw in rows.scalars().all())
        except SQLAlchemyError as exc:
            raise ReviewStoreUnavailable(str(exc)) from exc

    # ── Compare-and-swap write ────────────────────────────────────────────────

    @asynccontextmanager
    async def _business_lock(self, business_id: str) -> AsyncIterator[None]:
        """Hold the per-business lock; the entry is dropped once no writer needs it."""
        lock, users = self._locks.get(business_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[business_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[business_id]
            if users == 1:
                del self._locks[business_id]
            else:
                self._locks[business_id] = (lock, users - 1)

    async def mutate(
        self,
        business_id: str,
        fn: Callable[[list[Review]], T],
        create: bool = False,
    ) -> T:
        """
        Read the document, apply fn to its review list in place, write it back.

        fn returns the operation result and may raise a domain error to abort
        without writing. create=False turns a missing document into
        ReviewNotFound instead of creating one.
        """
        async with self._business_lock(business_id):
            for attempt in range(1, self._max_attempts + 1):
                try:
                    outcome = await self._attempt(business_id, fn, create)
                except SQLAlchemyError as exc:
                    logger.error("Review write for %s failed: %s", business_id, exc)
                    raise ReviewPersistError(
                        "Review could not be saved, please retry"
                    ) from exc
                if outcome is not None:
                    for listener in self._listeners:
                        listener(business_id)
                    return outcome[0]
                logger.info(
                    "Review write conflict on %s (attempt %d/%d)",
                    business_id,
                    attempt,
                    self._max_attempts,
                )
        raise ReviewWriteConflict(
            f"Concurrent updates to {business_id} kept conflicting, please retry"
        )

    async def _attempt(
        self,
        business_id: str,
        fn: Callable[[list[Review]], T],
        create: bool,
    ) -> Optional[tuple[T]]:
        """One read-modify-write; returns (result,) on success, None on conflict."""
        async with self._session_factory() as session:
            doc = await session.get(ReviewDocument, business_id)
            if doc is None and not create:
                raise ReviewNotFound(f"No reviews for business {business_id}")

            reviews = _load(doc.reviews) if doc else []
            expected = doc.version if doc else 0
            result = fn(reviews)

            if doc is None:
                session.add(
                    ReviewDocument(business_id=business_id, reviews=_dump(reviews), version=1)
                )
                try:
                    await session.commit()
                except IntegrityError:
                    # Another writer created the document first
                    await session.rollback()
                    return None
                return (result,)

            stmt = (
                update(ReviewDocument)
                .where(
                    ReviewDocument.business_id == business_id,
                    ReviewDocument.version == expected,
                )
                .values(reviews=_dump(reviews), version=expected + 1, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            res = await session.execute(stmt)
            if res.rowcount != 1:
                await session.rollback()
                return None
            await session.commit()
            return (result,)

    # ── Operations ────────────────────────────────────────────────────────────

    async def add_review(
        self,
        business_id: str,
        body: ReviewCreate,
        user: CurrentUser,
        review_id: Optional[str] = None,
    ) -> Review:
        author = _author_name(body.is_anonymous, user)

        review = Review(
            id=review_id or str(uuid.uuid4()),
            business_id=business_id,
            user_id=user.user_id,
            author=author,
            is_anonymous=body.is_anonymous,
            rating=body.rating,
            food_quality=body.food_quality,
            service=body.service,
            cleanliness=body.cleanliness,
            atmosphere=body.atmosphere,
            comment=(body.comment or "").strip(),
        )

        def _append(reviews: list[Review]) -> Review:
            reviews.append(review)
            return review

        created = await self.mutate(business_id, _append, create=True)
        logger.info("Review %s added to %s by %s", created.id, business_id, user.user_id)
        return created

    async def update_review(
        self,
        business_id: str,
        review_id: str,
        body: ReviewUpdate,
        user: CurrentUser,
    ) -> Review:
        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        if "comment" in changes:
            changes["comment"] = changes["comment"].strip()

        def _edit(reviews: list[Review]) -> Review:
            idx = next((i for i, r in enumerate(reviews) if r.id == review_id), None)
            if idx is None:
                raise ReviewNotFound(f"Review {review_id} not found")
            current = reviews[idx]
            if current.user_id != user.user_id:
                raise ReviewPermissionError("You can only edit your own reviews.")
            if "is_anonymous" in changes:
                changes["author"] = _author_name(changes["is_anonymous"], user)
            reviews[idx] = current.model_copy(update={**changes, "edited_at": utcnow()})
            return reviews[idx]

        return await self.mutate(business_id, _edit)

    async def delete_review(self, business_id: str, review_id: str, user: CurrentUser) -> None:
        def _remove(reviews: list[Review]) -> None:
            review = _find(reviews, review_id)
            if review.user_id != user.user_id:
                raise ReviewPermissionError("You can only delete your own reviews.")
            reviews.remove(review)

        await self.mutate(business_id, _remove)
        logger.info("Review %s deleted from %s by %s", review_id, business_id, user.user_id)

    async def upvote(self, business_id: str, review_id: str, user_id: str) -> UpvoteResult:
        """Idempotent per user: a repeat upvote leaves the count unchanged."""

        def _up(reviews: list[Review]) -> UpvoteResult:
            review = _find(reviews, review_id)
            if user_id not in review.upvoted_by:
                review.upvoted_by.append(user_id)
            review.helpful = len(review.upvoted_by)
            return UpvoteResult(message="Upvote recorded", helpful=review.helpful)

        return await self.mutate(business_id, _up)

    async def remove_upvote(self, business_id: str, review_id: str, user_id: str) -> UpvoteResult:
        def _down(reviews: list[Review]) -> UpvoteResult:
            review = _find(reviews, review_id)
            if user_id not in review.upvoted_by:
                raise ReviewValidationError("You have not upvoted this review")
            review.upvoted_by.remove(user_id)
            review.helpful = len(review.upvoted_by)
            return UpvoteResult(message="Upvote removed", helpful=review.helpful)

        return await self.mutate(business_id, _down)

    async def report(
        self,
        business_id: str,
        review_id: str,
        reason: Optional[str] = None,
    ) -> ReportResult:
        """Append a report; the review is hidden (never deleted) at HIDE_AFTER_REPORTS."""

        def _report(reviews: list[Review]) -> ReportResult:
            review = _find(reviews, review_id)
            review.reports.append(ReviewReport(reason=(reason or "").strip() or "Inappropriate content"))
            if len(review.reports) >= HIDE_AFTER_REPORTS:
                review.hidden = True
            return ReportResult(message=REPORT_MESSAGE, report_count=len(review.reports))

        result = await self.mutate(business_id, _report)
        if result.report_count >= HIDE_AFTER_REPORTS:
            logger.info("Review %s on %s hidden after %d reports", review_id, business_id, result.report_count)
        return result
