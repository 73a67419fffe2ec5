from __future__ import annotations

from conftest import make_business

from locallink.services.recommendation_service import RecommendationScorer

scorer = RecommendationScorer()


def _catalog():
    return [
        make_business(id="fav-food", category="Food", external_rating=4.7),
        make_business(id="food-1", category="Food", external_rating=4.6, external_review_count=500),
        make_business(id="food-2", category="Food", external_rating=3.0, is_chain=True),
        make_business(id="retail-1", category="Retail", external_rating=4.9, deal="10% off"),
        make_business(id="svc-1", category="Services", external_rating=4.1),
        make_business(id="svc-2", category="Services", external_rating=4.1),
    ]


# ── Category affinity ────────────────────────────────────────────────────


class TestCategoryScores:
    def test_counts_favorites_by_category(self):
        scores = scorer.category_scores(_catalog(), ["fav-food", "food-1", "unknown"])
        assert scores == {"Food": 2}

    def test_preferences_count_double(self):
        scores = scorer.category_scores(_catalog(), ["fav-food"], ["Retail"])
        assert scores == {"Food": 1, "Retail": 2}


# ── Individual scores ────────────────────────────────────────────────────


class TestScore:
    def test_breakdown(self):
        business = make_business(category="Food", external_rating=4.6, external_review_count=500, deal="x")
        total, breakdown = scorer.score(business, {"Food": 1})
        assert breakdown == {"category": 10, "rating": 15, "deal": 5, "local": 3, "reviews": 2.0}
        assert total == 35.0

    def test_review_volume_is_capped_and_fractional(self):
        business = make_business(external_review_count=37, is_chain=True)
        total, breakdown = scorer.score(business, {})
        assert breakdown == {"reviews": 0.37}
        assert total == 0.37

    def test_rating_bands(self):
        assert scorer.score(make_business(external_rating=4.0, is_chain=True), {})[0] == 10
        assert scorer.score(make_business(external_rating=3.9, is_chain=True), {})[0] == 0


# ── Recommend ────────────────────────────────────────────────────────────


class TestRecommend:
    def test_favorites_are_excluded(self):
        result = scorer.recommend(_catalog(), ["fav-food"])
        assert "fav-food" not in [r.id for r in result.recommendations]

    def test_top_n_order(self):
        result = scorer.recommend(_catalog(), ["fav-food"])
        # food-1: 10 + 15 + 3 + 2 = 30; retail-1: 15 + 5 + 3 = 23; svc: 10 + 3 = 13
        assert [r.id for r in result.recommendations] == ["food-1", "retail-1", "svc-1", "svc-2"]
        assert result.recommendations[0].recommendation_score == 30.0
        assert result.recommendations[0].score_breakdown is None

    def test_preferred_category_lifts_business(self):
        result = scorer.recommend(_catalog(), ["fav-food"], ["Services"])
        assert [r.id for r in result.recommendations][:2] == ["svc-1", "svc-2"]
        assert result.category_scores == {"Food": 1, "Services": 2}

    def test_debug_includes_breakdown_and_more_results(self):
        catalog = [make_business(id=f"b{i}") for i in range(30)]
        result = scorer.recommend(catalog, [], debug=True)
        assert len(result.recommendations) == 20
        assert result.recommendations[0].score_breakdown == {"local": 3}

    def test_limit_and_empty_catalog(self):
        assert len(scorer.recommend(_catalog(), [], limit=2).recommendations) == 2
        assert scorer.recommend([], ["x"]).recommendations == []
