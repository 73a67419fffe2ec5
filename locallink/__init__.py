"""LocalLink: local business catalog aggregation service."""

__version__ = "1.0.0"
