"""ReviewDocument ORM model: one JSON review list per business.

The whole list is read and rewritten as a unit; ``version`` is bumped on every
write and used as a compare-and-swap token so concurrent writers cannot
silently overwrite each other.
"""

from sqlalchemy import JSON, TIMESTAMP, Column, Integer, String, func

from locallink.database import Base


class ReviewDocument(Base):
    """All user reviews for a single business, in insertion order."""

    __tablename__ = "review_documents"

    business_id = Column(String(255), primary_key=True)
    reviews = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
