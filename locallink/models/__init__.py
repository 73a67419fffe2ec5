"""SQLAlchemy ORM models package."""

from locallink.database import Base
from locallink.models.review import ReviewDocument

__all__ = ["Base", "ReviewDocument"]
