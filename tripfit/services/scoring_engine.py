"""Scoring engine — scores candidates against a query's soft constraints.

Each soft constraint yields a factor score in [0, 1]. The aggregate is
Σ factor × weight × 100, clamped to 0-100. Weights come from the domain's
ScoringRules (looked up by factor, then by constraint key, then a default).
"""

import logging
import uuid
from typing import Callable

from tripfit.config import settings
from tripfit.schemas.query import (
    CategoryPreference,
    CuisinePreference,
    LocationPreference,
    OtherSoft,
    OverlapPreference,
    PricePreference,
    ProviderQuery,
    RatingPreference,
    ScoringRules,
    SoftConstraint,
)
from tripfit.schemas.result import ScoredResult
from tripfit.services.candidate_fields import as_float, as_list, pick, pick_all
from tripfit.services.constraint_filter import FilterOutcome, PriceReader
from tripfit.services.currency_service import CurrencyNormalizer, currency_normalizer
from tripfit.services.heuristics import NEUTRAL_SCORE, matches_location_preference, normalize_token

logger = logging.getLogger(__name__)

# Candidate field read by each categorical preference
CATEGORY_FIELDS: dict[str, str] = {
    "propertyTypes": "property_type",
    "intensityLevel": "intensity",
    "groupType": "group_type",
    "atmosphere": "atmosphere",
    "preferredAirlines": "airline",
    "preferredAirports": "airports",
    "preferredCabin": "cabin",
    "preferredModes": "mode",
    "comfortLevel": "comfort",
}

OVERLAP_FIELDS: dict[str, str] = {
    "preferredThemes": "themes",
    "requiredAmenities": "amenities",
}


def score_price(actual: float | None, preferred: float | None) -> float:
    """Tiered fit of an actual price against the preferred one."""
    if not actual or not preferred:
        return NEUTRAL_SCORE
    ratio = actual / preferred
    if ratio <= 1:
        return 1.0
    if ratio <= 1.2:
        return 0.8
    if ratio <= 1.5:
        return 0.5
    return 0.2


def score_rating(actual: float | None, preferred: float) -> float:
    if not actual:
        return 0.3
    if actual >= preferred:
        return 1.0
    return max(0.0, 1 - 0.3 * (preferred - actual))


def _loosely_matches(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


def score_overlap(candidate_items: list[str], wanted: tuple[str, ...]) -> float:
    """Share of wanted items the candidate offers (substring match either way)."""
    matches = sum(
        1 for want in wanted if any(_loosely_matches(item, want) for item in candidate_items)
    )
    return matches / max(len(wanted), 1)


def score_cuisine(cuisine: str, preferred: tuple[str, ...], avoid: tuple[str, ...]) -> float:
    cuisine = cuisine.lower()
    if any(a.lower() in cuisine for a in avoid):
        return 0.0
    if any(p.lower() in cuisine for p in preferred):
        return 1.0
    return 0.6


SoftScorer = Callable[[SoftConstraint, dict, PriceReader, list[str]], float]


def _price(c: PricePreference, candidate: dict, prices: PriceReader, notes: list[str]) -> float:
    amount, note = prices.read(candidate, c.currency)
    if note:
        notes.append(note)
    return score_price(amount, c.amount)


def _rating(c: RatingPreference, candidate: dict, prices: PriceReader, notes: list[str]) -> float:
    rating = as_float(pick(candidate, "rating"))
    if rating is None:
        notes.append("rating not provided")
    return score_rating(rating, c.value)


def _category(c: CategoryPreference, candidate: dict, prices: PriceReader, notes: list[str]) -> float:
    field_name = CATEGORY_FIELDS.get(c.key)
    if field_name is None or not c.preferred:
        return c.fallback
    wanted = {normalize_token(p) for p in c.preferred}
    actual = [normalize_token(v) for value in pick_all(candidate, field_name) for v in as_list(value)]
    return 1.0 if any(v in wanted for v in actual) else c.fallback


def _cuisine(c: CuisinePreference, candidate: dict, prices: PriceReader, notes: list[str]) -> float:
    cuisine = " ".join(as_list(pick(candidate, "cuisine")))
    return score_cuisine(cuisine, c.preferred, c.avoid)


def _location(c: LocationPreference, candidate: dict, prices: PriceReader, notes: list[str]) -> float:
    return matches_location_preference(candidate, c.preference)


def _overlap(c: OverlapPreference, candidate: dict, prices: PriceReader, notes: list[str]) -> float:
    items = as_list(pick(candidate, OVERLAP_FIELDS.get(c.key, c.key)))
    return score_overlap(items, c.wanted)


SOFT_SCORERS: dict[type, SoftScorer] = {
    PricePreference: _price,
    RatingPreference: _rating,
    CategoryPreference: _category,
    CuisinePreference: _cuisine,
    LocationPreference: _location,
    OverlapPreference: _overlap,
}


def describe_top_factors(breakdown: dict[str, float], top_n: int = 3) -> str:
    """Short explanation naming the best-scoring factors."""
    if not breakdown:
        return "No soft preferences to score"
    # Stable sort: equal scores keep constraint order
    ranked = sorted(breakdown.items(), key=lambda kv: kv[1], reverse=True)[:top_n]
    return "Top scoring factors: " + ", ".join(f"{k}: {v * 100:.0f}%" for k, v in ranked)


class ScoringEngine:
    """Weighted, explainable soft-constraint scoring."""

    def __init__(self, normalizer: CurrencyNormalizer | None = None, default_weight: float | None = None):
        self._normalizer = normalizer or currency_normalizer
        self._default_weight = settings.default_soft_weight if default_weight is None else default_weight

    def weight_for(self, rules: ScoringRules, constraint: SoftConstraint) -> float:
        factor = getattr(constraint, "factor", None)
        if factor and factor in rules.weights:
            return rules.weights[factor]
        return rules.weights.get(constraint.key, self._default_weight)

    def score(self, query: ProviderQuery, candidate: dict, outcome: FilterOutcome | None = None) -> ScoredResult:
        """Score a candidate that already passed every hard constraint."""
        outcome = outcome or FilterOutcome()
        prices = PriceReader(self._normalizer, query.currency)
        satisfaction = dict(outcome.satisfaction)
        breakdown: dict[str, float] = {}
        notes: list[str] = list(outcome.uncertainty)
        total = 0.0

        for constraint in query.soft:
            scorer = None if isinstance(constraint, OtherSoft) else SOFT_SCORERS.get(type(constraint))
            if scorer is None:
                logger.debug(f"No scorer for soft constraint {constraint.key}, using neutral score")
                factor_score = NEUTRAL_SCORE
            else:
                factor_score = min(1.0, max(0.0, scorer(constraint, candidate, prices, notes)))

            breakdown[constraint.key] = factor_score
            satisfaction[f"soft_{constraint.key}"] = factor_score > 0.5
            total += factor_score * self.weight_for(query.scoring, constraint)

        final_score = round(min(100.0, max(0.0, total * 100)), 2)

        candidate_id = pick(candidate, "id")
        booking_url = pick(candidate, "booking_url")
        return ScoredResult(
            id=str(candidate_id) if candidate_id is not None else str(uuid.uuid4()),
            domain=query.domain.value,
            score=final_score,
            scoring_breakdown=breakdown,
            constraint_violations=[],
            constraint_satisfaction=satisfaction,
            reasoning=describe_top_factors(breakdown),
            deep_link=str(booking_url) if booking_url else None,
            uncertainty=list(dict.fromkeys(notes)),
            data=candidate,
        )

    def score_all(
        self, query: ProviderQuery, survivors: list[tuple[dict, FilterOutcome]]
    ) -> list[ScoredResult]:
        """Score filtered candidates, highest first."""
        scored = [self.score(query, candidate, outcome) for candidate, outcome in survivors]
        scored.sort(key=lambda r: r.score, reverse=True)
        return scored
