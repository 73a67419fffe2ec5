from __future__ import annotations

from conftest import make_business, osm_item

from locallink.schemas.providers import OsmElement
from locallink.services.classifier import (
    BusinessClassifier,
    ChainDetector,
    RelevancyScorer,
    WordBoundaryChainDetector,
)

scorer = RelevancyScorer()
detector = ChainDetector()


# ── Chain detection ──────────────────────────────────────────────────────


class TestChainDetector:
    def test_known_brands(self):
        assert detector.is_chain("Starbucks Coffee")
        assert detector.is_chain("McDonald's")
        assert detector.is_chain("Publix Super Market #1234")
        assert detector.is_chain("Chick-fil-A")

    def test_independent_names(self):
        assert not detector.is_chain("Kim's Kitchen")
        assert not detector.is_chain("Sweet Crumbs Bakery")

    def test_brand_inside_a_longer_name(self):
        assert detector.is_chain("ExxonMobil")
        assert detector.is_chain("SuperTarget")
        # Substring matching accepts these false positives
        assert detector.is_chain("Main Street Flowers")  # "lowe"
        assert detector.is_chain("Mobile Pet Grooming")  # "mobil"

    def test_word_boundary_variant_is_pluggable(self):
        strict = WordBoundaryChainDetector()
        assert not strict.is_chain("Main Street Flowers")
        assert not strict.is_chain("Mobile Pet Grooming")
        assert strict.is_chain("McDonald's")
        assert strict.is_chain("Gas & Go", {"brand": "Shell"})
        assert RelevancyScorer(strict).score("Main Street Flowers", None, 200) == 50

    def test_brand_attribute(self):
        assert detector.is_chain("Gas & Go", {"brand": "Shell"})
        assert not detector.is_chain("Gas & Go", {"operator": "Shell"})

    def test_brand_list_is_injectable(self):
        custom = ChainDetector(brands=["corner mart"])
        assert custom.is_chain("Corner Mart 12")
        assert not custom.is_chain("Starbucks")


# ── Relevancy score ──────────────────────────────────────────────────────


class TestRelevancyScorer:
    def test_kims_kitchen_scores_85(self):
        # 50 base + 15 (<50 reviews) + 20 possessive
        assert scorer.score("Kim's Kitchen", None, 30) == 85

    def test_chain_scores_lower_than_identical_non_chain(self):
        for count in (0, 75, 250, 900):
            chain = scorer.score("Subway", None, count)
            local = scorer.score("Subside", None, count)
            assert chain < local
            assert local - chain == 40

    def test_review_count_bands(self):
        assert scorer.score("Plain Name", None, 49) == 65
        assert scorer.score("Plain Name", None, 50) == 60
        assert scorer.score("Plain Name", None, 100) == 50
        assert scorer.score("Plain Name", None, 501) == 40

    def test_local_keyword_bonus(self):
        assert scorer.score("Hometown Hardware", None, 200) == 75
        assert scorer.score("Smith & Sons Plumbing", None, 200) == 75

    def test_osm_tag_adjustments(self):
        # base 50 + 15 (no review count) + 40 craft + 20 no brand
        assert scorer.score("Bright Sparks", {"craft": "electrician", "name": "Bright Sparks"}) == 125
        # + 15 favored subtype + 10 website
        tags = {"shop": "bakery", "website": "https://x.test"}
        assert scorer.score("Sweet Crumbs", tags) == 50 + 15 + 20 + 15 + 10

    def test_infrastructure_penalty(self):
        assert scorer.score("Deck Parking", {"amenity": "parking"}) == 50 + 15 + 20 - 200
        assert scorer.score("Pump Stop", {"amenity": "fuel"}) < 0
        assert scorer.score("Pump Stop", {"amenity": "fuel", "shop": "convenience"}) > 0

    def test_branded_osm_feature(self):
        tags = {"amenity": "fast_food", "brand": "Subway", "brand:wikidata": "Q244457"}
        assert scorer.score("Sandwich Place", tags) == 50 - 40 + 15


# ── Classifier ───────────────────────────────────────────────────────────


def test_classifier_sets_flags_on_a_copy():
    business = make_business(name="Starbucks", external_review_count=80)
    classified = BusinessClassifier().classify(business)
    assert classified.is_chain is True
    assert classified.relevancy_score == 50 - 40 + 10
    assert business.relevancy_score == 0  # input untouched


def test_classifier_uses_osm_tags():
    element = OsmElement.model_validate(osm_item(1, "Bright Sparks", craft="electrician"))
    business = make_business(id="osm-node-1", source="osm", name="Bright Sparks", category="Services")
    classified = BusinessClassifier().classify(business, element)
    assert classified.is_chain is False
    # name tag present: 50 + 15 + 40 craft + 20 no brand
    assert classified.relevancy_score == 125
