"""Query compiler — turns a trip brief into one provider query per domain.

Each builder reads only the brief fields relevant to its domain and splits
them into hard constraints (must match), soft constraints (scored), and the
parameters a provider adapter needs to build its request.
"""

import logging
from typing import Callable

from tripfit.config import settings
from tripfit.data.scoring_rules import (
    BASE_FILTERS,
    SCORING_BONUSES,
    SCORING_PENALTIES,
    SCORING_WEIGHTS,
    STOP_TOLERANCE,
)
from tripfit.schemas.query import (
    AvailableDuring,
    CategoryPreference,
    CheckInBy,
    CheckOutFrom,
    CuisinePreference,
    DietaryRequirement,
    Domain,
    Exclusion,
    HardConstraint,
    LocationMatch,
    LocationPreference,
    MealBudget,
    MinCapacity,
    OverlapPreference,
    PriceCeiling,
    PricePreference,
    ProviderQuery,
    RatingFloor,
    RatingPreference,
    ScoringRules,
    SoftConstraint,
    StopCeiling,
    TravelDate,
    WalkingCeiling,
)
from tripfit.schemas.trip_brief import TripBrief

logger = logging.getLogger(__name__)


class UnknownDomainError(ValueError):
    """Raised when a query is requested for a domain the compiler doesn't know."""


def _value(tracked):
    return tracked.value if tracked is not None else None


def scoring_rules_for(domain: Domain) -> ScoringRules:
    return ScoringRules(
        weights=dict(SCORING_WEIGHTS[domain.value]),
        penalties=dict(SCORING_PENALTIES[domain.value]),
        bonuses=dict(SCORING_BONUSES[domain.value]),
    )


class _Draft:
    """Mutable accumulator used while building one query."""

    def __init__(self, currency: str):
        self.currency = currency
        self.parameters: dict = {}
        self.hard: list[HardConstraint] = []
        self.soft: list[SoftConstraint] = []
        self.filters: list[str] = []


class QueryCompiler:
    """Compiles a TripBrief snapshot into immutable ProviderQuery objects."""

    def __init__(self, default_currency: str | None = None):
        self._default_currency = default_currency or settings.default_currency
        self._builders: dict[Domain, Callable[[TripBrief, _Draft], None]] = {
            Domain.ACCOMMODATION: self._accommodation,
            Domain.ACTIVITIES: self._activities,
            Domain.DINING: self._dining,
            Domain.FLIGHTS: self._flights,
            Domain.TRANSPORT: self._transport,
        }

    def compile(self, brief: TripBrief, domain: Domain | str) -> ProviderQuery:
        try:
            domain = Domain(domain)
        except ValueError:
            raise UnknownDomainError(f"Unknown domain: {domain}") from None

        draft = _Draft(brief.currency or self._default_currency)
        draft.filters.extend(BASE_FILTERS[domain.value])
        self._builders[domain](brief, draft)

        query = ProviderQuery(
            domain=domain,
            parameters=draft.parameters,
            hard=tuple(draft.hard),
            soft=tuple(draft.soft),
            filters=tuple(draft.filters),
            scoring=scoring_rules_for(domain),
        )
        logger.debug(
            f"Compiled {domain.value} query: {len(query.hard)} hard, {len(query.soft)} soft constraints"
        )
        return query

    def compile_all(self, brief: TripBrief) -> dict[Domain, ProviderQuery]:
        return {domain: self.compile(brief, domain) for domain in Domain}

    # ─── Domain builders ───

    def _accommodation(self, brief: TripBrief, q: _Draft) -> None:
        destination = brief.destination
        if destination and destination.primary:
            q.hard.append(LocationMatch(key="destination", value=destination.primary.value))
            q.parameters["city"] = destination.primary.value
            if destination.coordinates:
                q.parameters["coordinates"] = destination.coordinates.value.model_dump()

        dates = brief.dates
        if dates and dates.start_date and dates.end_date:
            q.hard.append(CheckInBy(on=dates.start_date.value))
            q.hard.append(CheckOutFrom(on=dates.end_date.value))
            q.parameters["checkin"] = dates.start_date.value
            q.parameters["checkout"] = dates.end_date.value

        travelers = brief.travelers
        if travelers and travelers.adults:
            q.hard.append(MinCapacity(key="guests", count=travelers.adults.value))
            q.parameters["guests"] = travelers.adults.value
            if _value(travelers.children):
                q.parameters["children"] = travelers.children.value

        budget = self._budget_range(brief, "accommodation")
        if budget is not None:
            if budget.max is not None:
                q.hard.append(PriceCeiling(key="maxPricePerNight", amount=budget.max, currency=q.currency))
                q.parameters["maxPrice"] = budget.max
            if budget.preferred is not None:
                q.soft.append(PricePreference(key="preferredPricePerNight", amount=budget.preferred, currency=q.currency))
        q.parameters["currency"] = q.currency

        prefs = brief.preferences.accommodation if brief.preferences else None
        if prefs is None:
            return
        if prefs.types:
            q.soft.append(CategoryPreference(
                key="propertyTypes", preferred=tuple(prefs.types.value), factor="propertyType", fallback=0.3,
            ))
        if prefs.amenities:
            q.soft.append(OverlapPreference(
                key="requiredAmenities", wanted=tuple(prefs.amenities.value), factor="amenities",
            ))
        if prefs.location:
            q.soft.append(LocationPreference(preference=prefs.location.value))
        if prefs.rating:
            rating = prefs.rating.value
            if rating.min is not None:
                q.hard.append(RatingFloor(value=rating.min))
                q.filters.append("min-rating")
            if rating.preferred is not None:
                q.soft.append(RatingPreference(value=rating.preferred))

    def _activities(self, brief: TripBrief, q: _Draft) -> None:
        if brief.destination and brief.destination.primary:
            q.hard.append(LocationMatch(key="destination", value=brief.destination.primary.value))
            q.parameters["location"] = brief.destination.primary.value

        dates = brief.dates
        if dates and dates.start_date and dates.end_date:
            q.hard.append(AvailableDuring(start=dates.start_date.value, end=dates.end_date.value))
            q.parameters["dateRange"] = {"start": dates.start_date.value, "end": dates.end_date.value}

        budget = self._budget_range(brief, "activities")
        if budget is not None:
            if budget.max is not None:
                q.hard.append(PriceCeiling(key="maxPricePerActivity", amount=budget.max, currency=q.currency))
            if budget.preferred is not None:
                q.soft.append(PricePreference(key="preferredPricePerActivity", amount=budget.preferred, currency=q.currency))
        q.parameters["currency"] = q.currency

        prefs = brief.preferences.activities if brief.preferences else None
        if prefs is None:
            return
        if prefs.themes:
            q.soft.append(OverlapPreference(key="preferredThemes", wanted=tuple(prefs.themes.value), factor="themeMatch"))
        if prefs.intensity:
            q.soft.append(CategoryPreference(key="intensityLevel", preferred=(prefs.intensity.value,), factor="intensity"))
        if prefs.group:
            q.soft.append(CategoryPreference(key="groupType", preferred=(prefs.group.value,), factor="groupSize"))

    def _dining(self, brief: TripBrief, q: _Draft) -> None:
        if brief.destination and brief.destination.primary:
            q.hard.append(LocationMatch(key="location", value=brief.destination.primary.value))
            q.parameters["city"] = brief.destination.primary.value

        if brief.budget and brief.budget.per_meal_limits:
            caps = brief.budget.per_meal_limits.caps()
            if caps:
                q.hard.append(MealBudget(caps=tuple(caps.items()), currency=q.currency))
                q.filters.append("within-meal-budget")
        q.parameters["currency"] = q.currency

        prefs = brief.preferences.dining if brief.preferences else None
        if prefs is None:
            return
        if prefs.dietary:
            q.hard.append(DietaryRequirement(restrictions=tuple(prefs.dietary.value)))
        if prefs.cuisines:
            cuisines = prefs.cuisines.value
            q.soft.append(CuisinePreference(preferred=tuple(cuisines.preferred), avoid=tuple(cuisines.avoid)))
        if prefs.atmosphere:
            q.soft.append(CategoryPreference(key="atmosphere", preferred=(prefs.atmosphere.value,), factor="atmosphere"))

    def _flights(self, brief: TripBrief, q: _Draft) -> None:
        if brief.origin:
            q.hard.append(LocationMatch(key="origin", value=brief.origin.value))
            q.parameters["from"] = brief.origin.value

        if brief.destination and brief.destination.primary:
            q.hard.append(LocationMatch(key="destination", value=brief.destination.primary.value))
            q.parameters["to"] = brief.destination.primary.value

        dates = brief.dates
        if dates and dates.start_date:
            q.hard.append(TravelDate(key="departureDate", on=dates.start_date.value))
            q.parameters["departureDate"] = dates.start_date.value
        if dates and dates.end_date:
            q.hard.append(TravelDate(key="returnDate", on=dates.end_date.value))
            q.parameters["returnDate"] = dates.end_date.value

        if brief.travelers and brief.travelers.adults:
            q.hard.append(MinCapacity(key="passengers", count=brief.travelers.adults.value))
            q.parameters["passengers"] = brief.travelers.adults.value

        budget = self._budget_range(brief, "transport")
        if budget is not None:
            if budget.max is not None:
                q.hard.append(PriceCeiling(key="maxPrice", amount=budget.max, currency=q.currency))
            if budget.preferred is not None:
                q.soft.append(PricePreference(key="preferredPrice", amount=budget.preferred, currency=q.currency))
        q.parameters["currency"] = q.currency

        transport = brief.preferences.transport if brief.preferences else None
        flight = transport.flight_preferences if transport else None
        if flight is None:
            return
        if flight.airports:
            airports = flight.airports.value
            q.soft.append(CategoryPreference(
                key="preferredAirports", preferred=tuple(airports.origin + airports.destination), factor="airports",
            ))
        if flight.airlines:
            airlines = flight.airlines.value
            if airlines.preferred:
                q.soft.append(CategoryPreference(
                    key="preferredAirlines", preferred=tuple(airlines.preferred), factor="airline",
                ))
            q.hard.append(Exclusion(key="avoidAirlines", values=tuple(airlines.avoid)))
        if flight.stops and flight.stops.value in STOP_TOLERANCE:
            q.hard.append(StopCeiling(value=STOP_TOLERANCE[flight.stops.value]))
        if flight.cabin_class:
            q.soft.append(CategoryPreference(key="preferredCabin", preferred=(flight.cabin_class.value,), factor="cabin"))

    def _transport(self, brief: TripBrief, q: _Draft) -> None:
        if brief.destination and brief.destination.primary:
            q.hard.append(LocationMatch(key="city", value=brief.destination.primary.value))
            q.parameters["city"] = brief.destination.primary.value

        transport = brief.preferences.transport if brief.preferences else None
        local = transport.local_transport if transport else None
        if local is None:
            return
        if local.modes:
            q.soft.append(CategoryPreference(key="preferredModes", preferred=tuple(local.modes.value), factor="convenience"))
        if local.avoid:
            q.hard.append(Exclusion(key="avoidModes", values=tuple(local.avoid.value)))
        if local.walking_tolerance:
            q.hard.append(WalkingCeiling(minutes=local.walking_tolerance.value))
        if local.comfort_level:
            q.soft.append(CategoryPreference(key="comfortLevel", preferred=(local.comfort_level.value,), factor="comfort"))

    @staticmethod
    def _budget_range(brief: TripBrief, category: str):
        if not brief.budget or not brief.budget.breakdown:
            return None
        return _value(getattr(brief.budget.breakdown, category))


query_compiler = QueryCompiler()
