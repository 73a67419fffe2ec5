"""
Deduplicator & Ranker.

All functions are pure and return new lists. Python's sort is stable, so
businesses with equal keys keep their fetch order.
"""

from __future__ import annotations

import logging
import re

from locallink.schemas.business import Business
from locallink.schemas.catalog import CatalogQuery, SortOption

logger = logging.getLogger(__name__)

# Location suffixes: "Starbucks - Main St", "Publix #1234", "CVS No. 12", "Kroger Store 45"
_LOCATION_SUFFIX = re.compile(r"\s+[-–—]\s+.*$")
_STORE_NUMBER = re.compile(r"\s*(?:#\s*\d+|\bno\.?\s*\d+|\bstore\s*\d+|\d+)\s*$")


def chain_base_name(name: str) -> str:
    """Normalized name shared by every location of the same chain."""
    base = name.lower().strip()
    base = _LOCATION_SUFFIX.sub("", base)
    # Strip repeatedly: "Shell Store 12 #3"
    previous = None
    while previous != base:
        previous = base
        base = _STORE_NUMBER.sub("", base).strip()
    return re.sub(r"\s+", " ", base)


def deduplicate_chains(businesses: list[Business]) -> list[Business]:
    """
    Keep the first location of each chain; non-chains always pass through.
    Idempotent: running it on its own output changes nothing.
    """
    seen: set[str] = set()
    out: list[Business] = []
    for business in businesses:
        if not business.is_chain:
            out.append(business)
            continue
        key = chain_base_name(business.name)
        if key in seen:
            continue
        seen.add(key)
        out.append(business)

    if len(out) != len(businesses):
        logger.debug("Chain dedup collapsed %d → %d", len(businesses), len(out))
    return out


def rank(businesses: list[Business], sort: SortOption = "relevance") -> list[Business]:
    if sort == "rating":
        return sorted(businesses, key=lambda b: b.external_rating or 0.0, reverse=True)
    if sort == "reviews":
        return sorted(businesses, key=lambda b: b.external_review_count, reverse=True)
    if sort == "name":
        return sorted(businesses, key=lambda b: b.name.casefold())
    # "relevance" and "local" both favour independent businesses
    return sorted(businesses, key=lambda b: b.relevancy_score, reverse=True)


def matches_search(business: Business, term: str) -> bool:
    term = term.lower().strip()
    return (
        term in business.name.lower()
        or term in (business.description or "").lower()
        or any(term in t.lower() for t in business.tags)
        or term in business.category.lower()
    )


def apply_filters(businesses: list[Business], query: CatalogQuery) -> list[Business]:
    """
    Category, tag, overlay rating, deal and free-text filters, then limit.
    Sorting is left to rank(); call this on an already-ranked list.
    """
    result = businesses

    if query.category and query.category != "All":
        result = [b for b in result if b.category == query.category]

    if query.tag and query.tag != "All":
        tag = query.tag.lower()
        result = [b for b in result if any(t.lower() == tag for t in b.tags)]

    if query.min_rating is not None:
        result = [b for b in result if b.rating >= query.min_rating]

    if query.has_deals:
        result = [b for b in result if b.deal is not None]

    if query.is_search:
        result = [b for b in result if matches_search(b, query.search or "")]

    if query.limit:
        result = result[: query.limit]
    return result
