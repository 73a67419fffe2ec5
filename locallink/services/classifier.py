"""
Classifier & Scorer: chain detection and the "local relevance" score.

Pure Python, no I/O. Both results depend only on the source record, so they
are computed once per catalog build and never change afterwards.

Relevancy breakdown (base 50):
  Chain brand             -40
  External review count   +15 (<50) / +10 (<100) / -10 (>500)
  Family / local keyword  +25
  Possessive name         +20
  OSM tags only:
    craft trade           +40
    no brand tag          +20
    favored subtype       +15
    website tag           +10
    infrastructure        -200
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping, Optional

from locallink.schemas.business import Business
from locallink.schemas.providers import OsmElement, RawRecord
from locallink.utils.taxonomy import (
    CHAIN_BRANDS,
    FAVORED_SUBTYPES,
    INFRASTRUCTURE_AMENITIES,
    LOCAL_NAME_KEYWORDS,
    RELEVANCY_BASE,
)

# "Kim's Kitchen", "Joe’s" (curly apostrophe included)
_POSSESSIVE = re.compile(r"\w+['’]s\b")

# Trades that are always independently run even without a craft=* tag
_TRADE_SHOPS = frozenset({"electrician", "plumber", "trade"})


class ChainDetector:
    """
    Brand-list chain detection: a name is a chain when its lowercased form
    contains any brand. Substring matching accepts false positives such as
    "lowe" inside "Flowers"; inject WordBoundaryChainDetector to avoid them.
    """

    def __init__(self, brands: Iterable[str] = CHAIN_BRANDS) -> None:
        self.brands = tuple(b.lower() for b in brands if b)

    def matches(self, text: Optional[str]) -> bool:
        if not text:
            return False
        lowered = text.lower()
        return any(brand in lowered for brand in self.brands)

    def is_chain(self, name: str, attributes: Optional[Mapping[str, str]] = None) -> bool:
        if self.matches(name):
            return True
        attributes = attributes or {}
        # OSM records carry brand / brand:wikidata for franchise locations
        return self.matches(attributes.get("brand"))


class WordBoundaryChainDetector(ChainDetector):
    """Stricter variant: brands must stand as whole words ("lowe" matches "Lowe's", not "Flowers")."""

    def __init__(self, brands: Iterable[str] = CHAIN_BRANDS) -> None:
        super().__init__(brands)
        alternation = "|".join(re.escape(b) for b in self.brands)
        self._pattern = (
            re.compile(rf"(?<![a-z0-9])(?:{alternation})(?:['’]?s)?(?![a-z0-9])")
            if self.brands
            else None
        )

    def matches(self, text: Optional[str]) -> bool:
        if not text or self._pattern is None:
            return False
        return self._pattern.search(text.lower()) is not None


class RelevancyScorer:
    """Integer relevance score; higher means more likely to be an independent local business."""

    def __init__(self, chain_detector: Optional[ChainDetector] = None) -> None:
        self.chain_detector = chain_detector or ChainDetector()

    def score(
        self,
        name: str,
        attributes: Optional[Mapping[str, str]] = None,
        external_review_count: int = 0,
    ) -> int:
        score = RELEVANCY_BASE
        name_lower = (name or "").lower()

        if self.chain_detector.is_chain(name, attributes):
            score -= 40

        # Smaller businesses get a boost
        if external_review_count < 50:
            score += 15
        elif external_review_count < 100:
            score += 10
        elif external_review_count > 500:
            score -= 10

        if any(kw in name_lower for kw in LOCAL_NAME_KEYWORDS):
            score += 25
        if _POSSESSIVE.search(name_lower):
            score += 20

        if attributes:
            score += self._tag_adjustment(attributes)
        return score

    @staticmethod
    def _tag_adjustment(tags: Mapping[str, str]) -> int:
        """Adjustments only raw map tags can support."""
        pts = 0
        shop = tags.get("shop")
        amenity = tags.get("amenity")

        if "craft" in tags or shop in _TRADE_SHOPS:
            pts += 40
        if "brand" not in tags and "brand:wikidata" not in tags:
            pts += 20
        if shop in FAVORED_SUBTYPES or amenity in FAVORED_SUBTYPES:
            pts += 15
        if tags.get("website") or tags.get("contact:website"):
            pts += 10
        # Fuel pumps are infrastructure unless a shop is attached
        if amenity in INFRASTRUCTURE_AMENITIES or (amenity == "fuel" and not shop):
            pts -= 200
        return pts


class BusinessClassifier:
    """Applies ChainDetector and RelevancyScorer to a normalized Business."""

    def __init__(
        self,
        chain_detector: Optional[ChainDetector] = None,
        scorer: Optional[RelevancyScorer] = None,
    ) -> None:
        self.chain_detector = chain_detector or ChainDetector()
        self.scorer = scorer or RelevancyScorer(self.chain_detector)

    def classify(self, business: Business, record: Optional[RawRecord] = None) -> Business:
        """Return a copy of business with is_chain and relevancy_score set."""
        attributes: dict[str, str] = record.tags if isinstance(record, OsmElement) else {}
        return business.model_copy(
            update={
                "is_chain": self.chain_detector.is_chain(business.name, attributes),
                "relevancy_score": self.scorer.score(
                    business.name,
                    attributes,
                    business.external_review_count,
                ),
            }
        )
