"""Trip brief — the structured trip description produced by the conversation layer.

Every leaf is a ``Tracked`` value carrying provenance. Scoring only ever reads
``.value``; bare values are accepted and wrapped as explicit.
"""

from datetime import date
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, model_validator

T = TypeVar("T")


class Tracked(BaseModel, Generic[T]):
    value: T
    source: Literal["explicit", "inferred", "normalized"] = "explicit"
    confidence: int = 80

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_value(cls, data: Any) -> Any:
        if isinstance(data, dict) and "value" in data:
            return data
        if isinstance(data, BaseModel) and hasattr(data, "value"):
            return data
        return {"value": data}


class Coordinates(BaseModel):
    lat: float
    lng: float
    accuracy: Literal["exact", "approximate"] = "approximate"


class Destination(BaseModel):
    primary: Tracked[str] | None = None
    coordinates: Tracked[Coordinates] | None = None
    country: Tracked[str] | None = None


class TripDates(BaseModel):
    start_date: Tracked[date] | None = None
    end_date: Tracked[date] | None = None


class Travelers(BaseModel):
    adults: Tracked[int] | None = None
    children: Tracked[int] | None = None


class BudgetRange(BaseModel):
    min: float | None = None
    max: float | None = None
    preferred: float | None = None


class BudgetBreakdown(BaseModel):
    accommodation: Tracked[BudgetRange] | None = None
    transport: Tracked[BudgetRange] | None = None
    activities: Tracked[BudgetRange] | None = None
    food: Tracked[BudgetRange] | None = None


class MealLimits(BaseModel):
    breakfast: Tracked[float] | None = None
    lunch: Tracked[float] | None = None
    dinner: Tracked[float] | None = None

    def caps(self) -> dict[str, float]:
        """Meal -> cap for every meal that has one."""
        out = {}
        for meal in ("breakfast", "lunch", "dinner"):
            limit = getattr(self, meal)
            if limit is not None and limit.value is not None:
                out[meal] = limit.value
        return out


class Budget(BaseModel):
    total: Tracked[float] | None = None
    currency: Tracked[str] | None = None
    breakdown: BudgetBreakdown | None = None
    per_meal_limits: MealLimits | None = None


class RatingPreference(BaseModel):
    min: float | None = None
    preferred: float | None = None


class AccommodationPreferences(BaseModel):
    types: Tracked[list[str]] | None = None
    amenities: Tracked[list[str]] | None = None
    location: Tracked[str] | None = None
    rating: Tracked[RatingPreference] | None = None


class ActivityPreferences(BaseModel):
    themes: Tracked[list[str]] | None = None
    intensity: Tracked[str] | None = None
    group: Tracked[str] | None = None


class CuisinePreferences(BaseModel):
    preferred: list[str] = []
    avoid: list[str] = []


class DiningPreferences(BaseModel):
    dietary: Tracked[list[str]] | None = None
    cuisines: Tracked[CuisinePreferences] | None = None
    atmosphere: Tracked[str] | None = None


class AirportPreferences(BaseModel):
    origin: list[str] = []
    destination: list[str] = []


class AirlinePreferences(BaseModel):
    preferred: list[str] = []
    avoid: list[str] = []


class FlightPreferences(BaseModel):
    airports: Tracked[AirportPreferences] | None = None
    airlines: Tracked[AirlinePreferences] | None = None
    stops: Tracked[Literal["direct-only", "one-stop-ok", "any"]] | None = None
    cabin_class: Tracked[str] | None = None


class LocalTransportPreferences(BaseModel):
    modes: Tracked[list[str]] | None = None
    avoid: Tracked[list[str]] | None = None
    walking_tolerance: Tracked[int] | None = None
    comfort_level: Tracked[str] | None = None


class TransportPreferences(BaseModel):
    flight_preferences: FlightPreferences | None = None
    local_transport: LocalTransportPreferences | None = None


class Preferences(BaseModel):
    accommodation: AccommodationPreferences | None = None
    activities: ActivityPreferences | None = None
    dining: DiningPreferences | None = None
    transport: TransportPreferences | None = None


class TripBrief(BaseModel):
    id: str | None = None
    destination: Destination | None = None
    origin: Tracked[str] | None = None
    dates: TripDates | None = None
    travelers: Travelers | None = None
    budget: Budget | None = None
    preferences: Preferences | None = None

    @property
    def currency(self) -> str | None:
        if self.budget and self.budget.currency:
            return self.budget.currency.value
        return None
