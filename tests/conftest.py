"""Shared fixtures: a fixed-clock currency normalizer and sample trip briefs."""

from datetime import datetime, timezone

import pytest

from tripfit.data.currency import DEFAULT_RATES
from tripfit.schemas.trip_brief import TripBrief
from tripfit.services.currency_service import CurrencyNormalizer, RateSnapshot

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeRateClient:
    """Stands in for ExchangeRateClient; returns queued results or raises."""

    def __init__(self, rates=None, error=None):
        self.rates = rates or []
        self.error = error
        self.calls = 0

    async def fetch_rates(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rates


@pytest.fixture
def clock():
    state = {"now": FIXED_NOW}

    def now():
        return state["now"]

    now.state = state
    return now


@pytest.fixture
def normalizer(clock):
    return CurrencyNormalizer(
        snapshot=RateSnapshot.from_pairs(DEFAULT_RATES, FIXED_NOW),
        client=FakeRateClient(),
        clock=clock,
    )


@pytest.fixture
def paris_brief():
    return TripBrief.model_validate({
        "destination": {"primary": "Paris"},
        "origin": "London",
        "dates": {"start_date": "2024-06-01", "end_date": "2024-06-05"},
        "travelers": {"adults": 2},
        "budget": {
            "total": 3000,
            "currency": "USD",
            "breakdown": {
                "accommodation": {"max": 200, "preferred": 160},
                "transport": {"max": 400, "preferred": 250},
                "activities": {"max": 80, "preferred": 40},
            },
            "per_meal_limits": {"lunch": 25, "dinner": 60},
        },
        "preferences": {
            "accommodation": {
                "types": ["hotel"],
                "amenities": ["wifi", "breakfast"],
                "location": "city-center",
                "rating": {"min": 2.5, "preferred": 4.0},
            },
            "activities": {"themes": ["museums", "food"], "intensity": "moderate", "group": "couple"},
            "dining": {
                "dietary": ["vegetarian"],
                "cuisines": {"preferred": ["french"], "avoid": ["fast food"]},
                "atmosphere": "casual",
            },
            "transport": {
                "flight_preferences": {
                    "airports": {"origin": ["LHR"], "destination": ["CDG"]},
                    "airlines": {"preferred": ["Air France"], "avoid": ["RyanAir"]},
                    "stops": "direct-only",
                    "cabin_class": "economy",
                },
                "local_transport": {
                    "modes": ["metro", "walk"],
                    "avoid": ["taxi"],
                    "walking_tolerance": 20,
                    "comfort_level": "standard",
                },
            },
        },
    })


def hotel(**overrides):
    """Accommodation candidate that satisfies the Paris brief unless overridden."""
    record = {
        "id": "h1",
        "name": "Hotel Lumiere",
        "city": "Paris",
        "price": 180,
        "currency": "USD",
        "rating": 4.5,
        "maxGuests": 2,
        "availability": {"checkin": "2024-05-30", "checkout": "2024-06-10"},
    }
    record.update(overrides)
    return record


def flight(**overrides):
    record = {
        "id": "f1",
        "airline": "Air France",
        "origin": "London",
        "destination": "Paris",
        "price": 220,
        "currency": "USD",
        "stops": 0,
        "departureDate": "2024-06-01",
        "returnDate": "2024-06-05",
        "seatsAvailable": 9,
    }
    record.update(overrides)
    return record
