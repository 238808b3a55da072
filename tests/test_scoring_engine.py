"""
Unit tests for the scoring engine.

Tests the per-factor scorers, weight lookup, the clamped weighted aggregate
and the reasoning string.
"""

import pytest

from conftest import hotel
from tripfit.schemas.query import (
    CategoryPreference,
    Domain,
    OtherSoft,
    PricePreference,
    ProviderQuery,
    ScoringRules,
)
from tripfit.services.constraint_filter import FilterOutcome
from tripfit.services.heuristics import classify_brand, matches_location_preference
from tripfit.services.query_compiler import QueryCompiler, scoring_rules_for
from tripfit.services.scoring_engine import (
    ScoringEngine,
    describe_top_factors,
    score_cuisine,
    score_overlap,
    score_price,
    score_rating,
)


@pytest.fixture
def engine(normalizer):
    return ScoringEngine(normalizer, default_weight=0.1)


def soft_query(*soft, domain=Domain.ACCOMMODATION, currency="USD"):
    return ProviderQuery(
        domain=domain,
        parameters={"currency": currency},
        hard=(),
        soft=tuple(soft),
        filters=(),
        scoring=scoring_rules_for(domain),
    )


class TestFactorScorers:
    """Tests for the individual [0, 1] scorers."""

    @pytest.mark.parametrize("actual,expected", [(100, 1.0), (80, 1.0), (115, 0.8), (140, 0.5), (200, 0.2)])
    def test_price_tiers(self, actual, expected):
        assert score_price(actual, 100) == expected

    def test_price_without_data_is_neutral(self):
        assert score_price(None, 100) == 0.5
        assert score_price(100, None) == 0.5

    def test_rating(self):
        assert score_rating(4.5, 4.0) == 1.0
        assert score_rating(3.0, 4.0) == pytest.approx(0.7)
        assert score_rating(None, 4.0) == 0.3
        assert score_rating(1.0, 5.0) == 0.0

    def test_overlap_counts_wanted_items(self):
        assert score_overlap(["Free WiFi", "Pool"], ("wifi", "breakfast")) == 0.5
        assert score_overlap(["museums", "museum tours"], ("museum",)) == 1.0
        assert score_overlap([], ()) == 0.0

    def test_cuisine(self):
        assert score_cuisine("French bistro", ("french",), ()) == 1.0
        assert score_cuisine("Fast Food burgers", ("french",), ("fast food",)) == 0.0
        assert score_cuisine("Thai", ("french",), ("fast food",)) == 0.6


class TestHeuristics:
    """Brand and location matching."""

    def test_classify_brand(self):
        assert classify_brand("Hilton Paris Opera") == "Hilton"
        assert classify_brand("DoubleTree by Hilton") == "Hilton"
        assert classify_brand("Courtyard by Marriott") == "Marriott"
        assert classify_brand("Le Petit Hotel") is None
        assert classify_brand(None) is None

    @pytest.mark.parametrize(
        "candidate,preference,expected",
        [
            ({"location": "city-center"}, "city-center", 1.0),
            ({"address": "12 Downtown Ave"}, "city-center", 1.0),
            ({"location": {"neighborhood": "Suburbs"}}, "city-center", 0.3),
            ({"nearTransport": True}, "near-transport", 1.0),
            ({"location": "by the station"}, "near-transport", 1.0),
            ({}, "near-transport", 0.4),
            ({"location": "quiet street"}, "quiet", 1.0),
            ({}, "quiet", 0.5),
            ({"location": "anywhere"}, "beachfront", 0.5),
        ],
    )
    def test_location_preference(self, candidate, preference, expected):
        assert matches_location_preference(candidate, preference) == expected


class TestScoringEngine:
    """Tests for ScoringEngine.score and weight lookup."""

    def test_weight_lookup_order(self, engine):
        rules = ScoringRules(weights={"price": 0.3, "location": 0.25})
        assert engine.weight_for(rules, PricePreference(key="preferredPricePerNight", amount=100)) == 0.3
        assert engine.weight_for(rules, OtherSoft("location", "x")) == 0.25
        category = CategoryPreference(key="propertyTypes", preferred=("hotel",), factor="propertyType")
        assert engine.weight_for(rules, category) == 0.1

    def test_unknown_soft_constraint_scores_neutral(self, engine):
        result = engine.score(soft_query(OtherSoft("viewQuality", "sea")), hotel())
        assert result.scoring_breakdown == {"viewQuality": 0.5}
        assert result.constraint_satisfaction == {"soft_viewQuality": False}
        assert result.score == 5.0

    def test_weighted_aggregate(self, engine):
        query = soft_query(PricePreference(key="preferredPricePerNight", amount=100, currency="USD"))
        result = engine.score(query, hotel(price=115))
        assert result.scoring_breakdown == {"preferredPricePerNight": 0.8}
        assert result.score == 24.0
        assert result.constraint_satisfaction["soft_preferredPricePerNight"] is True

    def test_aggregate_is_clamped_to_100(self, engine, paris_brief):
        query = QueryCompiler().compile(paris_brief, "accommodation")
        candidate = hotel(
            price=160,
            type="hotel",
            amenities=["Free WiFi", "Breakfast included"],
            location="city center",
        )
        result = engine.score(query, candidate)
        assert all(v == 1.0 for v in result.scoring_breakdown.values())
        assert result.score == 100.0

    def test_no_soft_constraints(self, engine):
        result = engine.score(soft_query(), hotel())
        assert result.score == 0.0
        assert result.reasoning == "No soft preferences to score"

    def test_result_fields(self, engine):
        outcome = FilterOutcome(satisfaction={"hard_guests": True}, uncertainty=["checked"])
        result = engine.score(soft_query(), hotel(bookingUrl="https://book.example/h1"), outcome)
        assert result.id == "h1"
        assert result.domain == "accommodation"
        assert result.deep_link == "https://book.example/h1"
        assert result.constraint_violations == []
        assert result.constraint_satisfaction == {"hard_guests": True}
        assert result.uncertainty == ["checked"]

    def test_missing_id_gets_generated(self, engine):
        candidate = hotel()
        del candidate["id"]
        assert engine.score(soft_query(), candidate).id

    def test_missing_rating_is_flagged(self, engine, paris_brief):
        query = QueryCompiler().compile(paris_brief, "accommodation")
        candidate = hotel()
        del candidate["rating"]
        result = engine.score(query, candidate)
        assert result.scoring_breakdown["preferredRating"] == 0.3
        assert "rating not provided" in result.uncertainty

    def test_candidate_is_not_mutated(self, engine, paris_brief):
        query = QueryCompiler().compile(paris_brief, "accommodation")
        candidate = hotel()
        snapshot = dict(candidate)
        engine.score(query, candidate)
        assert candidate == snapshot

    def test_score_all_sorts_descending(self, engine):
        query = soft_query(PricePreference(key="preferredPricePerNight", amount=100, currency="USD"))
        survivors = [(hotel(id=str(p), price=p), FilterOutcome()) for p in (200, 90, 130)]
        scored = engine.score_all(query, survivors)
        assert [r.id for r in scored] == ["90", "130", "200"]


class TestReasoning:
    """Tests for describe_top_factors."""

    def test_top_three_by_score(self):
        breakdown = {"price": 1.0, "location": 0.3, "rating": 0.7, "amenities": 0.5}
        assert describe_top_factors(breakdown) == (
            "Top scoring factors: price: 100%, rating: 70%, amenities: 50%"
        )

    def test_ties_keep_insertion_order(self):
        assert describe_top_factors({"a": 0.5, "b": 0.5}) == "Top scoring factors: a: 50%, b: 50%"
