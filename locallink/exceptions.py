"""Domain exceptions raised by the catalog pipeline and the Review Store.

Provider failures never appear here: connectors convert them to empty
results at their own boundary.
"""

from __future__ import annotations


class LocalLinkError(Exception):
    """Base class for every error this service raises on purpose."""

    code = "LOCALLINK_ERROR"


class SourceUnavailable(LocalLinkError):
    """All connectors failed and neither cache nor offline snapshot has data.

    Retryable: callers should try again after the providers recover.
    """

    code = "SOURCE_UNAVAILABLE"


class BusinessNotFound(LocalLinkError):
    code = "BUSINESS_NOT_FOUND"


class ReviewStoreUnavailable(LocalLinkError):
    """The Review Store could not be read or written."""

    code = "REVIEW_STORE_UNAVAILABLE"


class ReviewNotFound(LocalLinkError):
    code = "REVIEW_NOT_FOUND"


class ReviewPermissionError(LocalLinkError):
    """The caller does not own the review it tried to change."""

    code = "REVIEW_FORBIDDEN"


class ReviewValidationError(LocalLinkError):
    code = "REVIEW_INVALID"


class ReviewWriteConflict(LocalLinkError):
    """Optimistic concurrency retries were exhausted."""

    code = "REVIEW_WRITE_CONFLICT"


class ReviewPersistError(LocalLinkError):
    """The mutation could not be persisted; in-memory state may already differ."""

    code = "REVIEW_PERSIST_FAILED"
