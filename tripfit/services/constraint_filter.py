"""Constraint filter — evaluates hard constraints; any violation excludes a candidate."""

import logging
from dataclasses import dataclass, field
from typing import Callable

from tripfit.schemas.query import (
    AvailableDuring,
    CheckInBy,
    CheckOutFrom,
    DietaryRequirement,
    Domain,
    Exclusion,
    HardConstraint,
    LocationMatch,
    MalformedHard,
    MealBudget,
    MinCapacity,
    OtherHard,
    PriceCeiling,
    ProviderQuery,
    RatingFloor,
    StopCeiling,
    TravelDate,
    WalkingCeiling,
)
from tripfit.services.candidate_fields import (
    as_date,
    as_float,
    as_list,
    candidate_price,
    pick,
    pick_all,
)
from tripfit.services.currency_service import CurrencyNormalizer, currency_normalizer
from tripfit.services.heuristics import normalize_token

logger = logging.getLogger(__name__)


@dataclass
class Verdict:
    passed: bool
    note: str | None = None  # uncertainty to surface on the result


@dataclass
class FilterOutcome:
    violations: list[str] = field(default_factory=list)
    satisfaction: dict[str, bool] = field(default_factory=dict)
    uncertainty: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.violations


class PriceReader:
    """Reads a candidate's price in the query currency."""

    def __init__(self, normalizer: CurrencyNormalizer, currency: str | None):
        self._normalizer = normalizer
        self._currency = currency

    def read(self, candidate: dict, currency: str | None = None) -> tuple[float | None, str | None]:
        amount, native = candidate_price(candidate)
        target = currency or self._currency
        if amount is None or not native or not target or native == target:
            return amount, None
        converted = self._normalizer.convert(amount, native, target)
        note = None
        if converted.approximate:
            note = f"price converted from {native} to {target} at an approximate rate"
        return converted.amount, note


Evaluator = Callable[[HardConstraint, dict, PriceReader], Verdict]


def _unverified(key: str) -> Verdict:
    return Verdict(True, f"could not verify {key}: not provided by the provider")


def check_location(c: LocationMatch, candidate: dict, prices: PriceReader) -> Verdict:
    field_name = "origin" if c.key == "origin" else ("city" if c.key == "city" else "destination")
    actual = pick(candidate, field_name)
    if isinstance(actual, dict):
        actual = actual.get("city") or actual.get("name")
    if actual is None and c.key == "origin":
        return _unverified(c.key)
    return Verdict(normalize_token(actual) == normalize_token(c.value))


def _availability(candidate: dict) -> tuple:
    window = pick(candidate, "availability") or {}
    if not isinstance(window, dict):
        return None, None
    opens = as_date(window.get("checkin") or window.get("start") or window.get("from"))
    closes = as_date(window.get("checkout") or window.get("end") or window.get("to"))
    return opens, closes


def check_checkin(c: CheckInBy, candidate: dict, prices: PriceReader) -> Verdict:
    opens, _ = _availability(candidate)
    return Verdict(opens is not None and opens <= c.on)


def check_checkout(c: CheckOutFrom, candidate: dict, prices: PriceReader) -> Verdict:
    _, closes = _availability(candidate)
    return Verdict(closes is not None and closes >= c.on)


def check_available_during(c: AvailableDuring, candidate: dict, prices: PriceReader) -> Verdict:
    opens, closes = _availability(candidate)
    if opens is None and closes is None:
        return _unverified(c.key)
    if opens is not None and opens > c.start:
        return Verdict(False)
    if closes is not None and closes < c.end:
        return Verdict(False)
    return Verdict(True)


def check_travel_date(c: TravelDate, candidate: dict, prices: PriceReader) -> Verdict:
    field_name = "departure_date" if c.key == "departureDate" else "return_date"
    actual = as_date(pick(candidate, field_name))
    if actual is None:
        return _unverified(c.key)
    return Verdict(actual == c.on)


def check_capacity(c: MinCapacity, candidate: dict, prices: PriceReader) -> Verdict:
    if c.key == "passengers":
        seats = as_float(pick(candidate, "seats"))
        if seats is None:
            return _unverified(c.key)
        return Verdict(seats >= c.count)
    capacity = as_float(pick(candidate, "capacity"))
    return Verdict(capacity is not None and capacity >= c.count)


def check_price_ceiling(c: PriceCeiling, candidate: dict, prices: PriceReader) -> Verdict:
    amount, note = prices.read(candidate, c.currency)
    if amount is None:
        if c.key == "maxPricePerActivity":
            return _unverified(c.key)
        return Verdict(False)
    return Verdict(amount <= c.amount, note)


def _unreadable(key: str, value) -> Verdict:
    return Verdict(False, f"could not read {key}: unexpected value {value!r}")


def check_rating_floor(c: RatingFloor, candidate: dict, prices: PriceReader) -> Verdict:
    raw = pick(candidate, "rating")
    if raw is None:
        return Verdict(c.value <= 0)
    rating = as_float(raw)
    if rating is None:
        return _unreadable("rating", raw)
    return Verdict(rating >= c.value)


def check_stop_ceiling(c: StopCeiling, candidate: dict, prices: PriceReader) -> Verdict:
    raw = pick(candidate, "stops")
    if raw is None:
        return Verdict(True)
    # Some providers list the layovers instead of counting them
    stops = len(raw) if isinstance(raw, (list, tuple)) else as_float(raw)
    if stops is None:
        return _unreadable("stops", raw)
    return Verdict(stops <= c.value)


EXCLUSION_FIELDS = {"avoidAirlines": "airline", "avoidModes": "mode"}


def check_exclusion(c: Exclusion, candidate: dict, prices: PriceReader) -> Verdict:
    excluded = {normalize_token(v) for v in c.values}
    actual = pick_all(candidate, EXCLUSION_FIELDS.get(c.key, c.key))
    return Verdict(not any(normalize_token(v) in excluded for v in actual))


def check_dietary(c: DietaryRequirement, candidate: dict, prices: PriceReader) -> Verdict:
    options = {normalize_token(o) for o in as_list(pick(candidate, "dietary"))}
    return Verdict(all(normalize_token(r) in options for r in c.restrictions))


def check_meal_budget(c: MealBudget, candidate: dict, prices: PriceReader) -> Verdict:
    caps = dict(c.caps)
    if not caps:
        return Verdict(True)
    amount, note = prices.read(candidate, c.currency)
    if amount is None:
        return _unverified(c.key)
    meal = str(pick(candidate, "meal") or "").lower()
    cap = caps.get(meal, max(caps.values()))
    return Verdict(amount <= cap, note)


def check_walking(c: WalkingCeiling, candidate: dict, prices: PriceReader) -> Verdict:
    minutes = as_float(pick(candidate, "walking"))
    if minutes is None:
        return _unverified(c.key)
    return Verdict(minutes <= c.minutes)


def check_malformed(c: MalformedHard, candidate: dict, prices: PriceReader) -> Verdict:
    logger.warning(f"Malformed hard constraint {c.key}: {c.value!r}")
    return Verdict(False)


BASE_EVALUATORS: dict[type, Evaluator] = {
    LocationMatch: check_location,
    CheckInBy: check_checkin,
    CheckOutFrom: check_checkout,
    AvailableDuring: check_available_during,
    TravelDate: check_travel_date,
    MinCapacity: check_capacity,
    PriceCeiling: check_price_ceiling,
    RatingFloor: check_rating_floor,
    StopCeiling: check_stop_ceiling,
    Exclusion: check_exclusion,
    DietaryRequirement: check_dietary,
    MealBudget: check_meal_budget,
    WalkingCeiling: check_walking,
    MalformedHard: check_malformed,
}

# Every domain shares the base predicates; a domain can override one here.
DOMAIN_EVALUATORS: dict[Domain, dict[type, Evaluator]] = {
    domain: dict(BASE_EVALUATORS) for domain in Domain
}


class ConstraintFilter:
    """Applies a query's hard constraints to raw candidates."""

    def __init__(self, normalizer: CurrencyNormalizer | None = None):
        self._normalizer = normalizer or currency_normalizer

    def evaluate(self, query: ProviderQuery, candidate: dict) -> FilterOutcome:
        outcome = FilterOutcome()
        table = DOMAIN_EVALUATORS[query.domain]
        prices = PriceReader(self._normalizer, query.currency)

        for constraint in query.hard:
            evaluator = None if isinstance(constraint, OtherHard) else table.get(type(constraint))
            if evaluator is None:
                # Fail-open: an unknown hard constraint never excludes a candidate
                logger.warning(f"Unknown hard constraint: {constraint.key}")
                verdict = Verdict(True)
            else:
                verdict = evaluator(constraint, candidate, prices)

            outcome.satisfaction[f"hard_{constraint.key}"] = verdict.passed
            if not verdict.passed:
                outcome.violations.append(f"Hard constraint violated: {constraint.key}")
            if verdict.note and verdict.note not in outcome.uncertainty:
                outcome.uncertainty.append(verdict.note)

        return outcome

    def passes(self, query: ProviderQuery, candidate: dict) -> bool:
        return self.evaluate(query, candidate).passed

    def apply(self, query: ProviderQuery, candidates: list[dict]) -> list[tuple[dict, FilterOutcome]]:
        """Candidates that satisfy every hard constraint, with their outcomes."""
        kept = []
        for candidate in candidates:
            outcome = self.evaluate(query, candidate)
            if outcome.passed:
                kept.append((candidate, outcome))
            else:
                logger.debug(
                    f"Excluded {pick(candidate, 'id') or pick(candidate, 'name')}: "
                    f"{', '.join(outcome.violations)}"
                )
        return kept
