"""Provider query — the compiled, per-domain request and its evaluation rules.

Constraints are a closed set of frozen variants. Each variant carries the wire
key it was compiled under (``maxPricePerNight``, ``avoidAirlines``, ...) so the
query can round-trip to the ``{hard: {...}, soft: {...}}`` form consumed by
provider adapters. Keys outside the vocabulary become ``OtherHard`` /
``OtherSoft`` instead of being dropped; a known hard key whose value cannot be
read becomes ``MalformedHard``, which no candidate satisfies.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class Domain(str, Enum):
    ACCOMMODATION = "accommodation"
    ACTIVITIES = "activities"
    DINING = "dining"
    FLIGHTS = "flights"
    TRANSPORT = "transport"


# ─── Hard constraints ───


@dataclass(frozen=True)
class LocationMatch:
    key: str  # destination | location | city | origin
    value: str


@dataclass(frozen=True)
class CheckInBy:
    """Candidate availability must open on or before ``on``."""
    on: date
    key: str = "checkinDate"


@dataclass(frozen=True)
class CheckOutFrom:
    """Candidate availability must extend to ``on`` or later."""
    on: date
    key: str = "checkoutDate"


@dataclass(frozen=True)
class AvailableDuring:
    start: date
    end: date
    key: str = "availableDates"


@dataclass(frozen=True)
class TravelDate:
    key: str  # departureDate | returnDate
    on: date


@dataclass(frozen=True)
class MinCapacity:
    key: str  # guests | passengers
    count: int


@dataclass(frozen=True)
class PriceCeiling:
    key: str  # maxPricePerNight | maxPrice | maxPricePerActivity
    amount: float
    currency: str | None = None


@dataclass(frozen=True)
class RatingFloor:
    value: float
    key: str = "minRating"


@dataclass(frozen=True)
class StopCeiling:
    value: int
    key: str = "maxStops"


@dataclass(frozen=True)
class Exclusion:
    key: str  # avoidAirlines | avoidModes
    values: tuple[str, ...]


@dataclass(frozen=True)
class DietaryRequirement:
    restrictions: tuple[str, ...]
    key: str = "dietaryRestrictions"


@dataclass(frozen=True)
class MealBudget:
    caps: tuple[tuple[str, float], ...]  # (meal, cap)
    currency: str | None = None
    key: str = "mealBudgets"


@dataclass(frozen=True)
class WalkingCeiling:
    minutes: int
    key: str = "maxWalkingMinutes"


@dataclass(frozen=True)
class OtherHard:
    """A hard constraint this engine has no predicate for."""
    key: str
    value: Any


@dataclass(frozen=True)
class MalformedHard:
    """A known hard key whose value could not be read; never satisfied."""
    key: str
    value: Any


HardConstraint = (
    LocationMatch | CheckInBy | CheckOutFrom | AvailableDuring | TravelDate
    | MinCapacity | PriceCeiling | RatingFloor | StopCeiling | Exclusion
    | DietaryRequirement | MealBudget | WalkingCeiling | MalformedHard | OtherHard
)


# ─── Soft constraints ───


@dataclass(frozen=True)
class PricePreference:
    key: str  # preferredPricePerNight | preferredPrice | preferredPricePerActivity
    amount: float
    currency: str | None = None
    factor: str = "price"


@dataclass(frozen=True)
class RatingPreference:
    value: float
    key: str = "preferredRating"
    factor: str = "rating"


@dataclass(frozen=True)
class CategoryPreference:
    """Candidate attribute should be one of ``preferred``."""
    key: str
    preferred: tuple[str, ...]
    factor: str
    fallback: float = 0.5


@dataclass(frozen=True)
class CuisinePreference:
    preferred: tuple[str, ...]
    avoid: tuple[str, ...]
    key: str = "cuisinePreferences"
    factor: str = "cuisine"


@dataclass(frozen=True)
class LocationPreference:
    preference: str  # city-center | near-transport | quiet | ...
    key: str = "locationPreference"
    factor: str = "location"


@dataclass(frozen=True)
class OverlapPreference:
    """Fraction of ``wanted`` items found on the candidate."""
    key: str  # preferredThemes | requiredAmenities
    wanted: tuple[str, ...]
    factor: str


@dataclass(frozen=True)
class OtherSoft:
    key: str
    value: Any
    factor: str | None = None


SoftConstraint = (
    PricePreference | RatingPreference | CategoryPreference | CuisinePreference
    | LocationPreference | OverlapPreference | OtherSoft
)


@dataclass(frozen=True)
class ScoringRules:
    weights: Mapping[str, float] = field(default_factory=dict)
    penalties: Mapping[str, float] = field(default_factory=dict)
    bonuses: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("weights", "penalties", "bonuses"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    def to_dict(self) -> dict:
        return {
            "weights": dict(self.weights),
            "penalties": dict(self.penalties),
            "bonuses": dict(self.bonuses),
        }


@dataclass(frozen=True)
class ProviderQuery:
    domain: Domain
    parameters: Mapping[str, Any]
    hard: tuple[HardConstraint, ...]
    soft: tuple[SoftConstraint, ...]
    filters: tuple[str, ...]
    scoring: ScoringRules

    def __post_init__(self):
        object.__setattr__(self, "parameters", _freeze(self.parameters or {}))

    @property
    def currency(self) -> str | None:
        return self.parameters.get("currency")

    def with_constraints(
        self,
        hard: tuple[HardConstraint, ...] = (),
        soft: tuple[SoftConstraint, ...] = (),
    ) -> "ProviderQuery":
        """Copy of this query with extra constraints appended."""
        return replace(self, hard=self.hard + tuple(hard), soft=self.soft + tuple(soft))

    def constraint_map(self) -> dict[str, dict[str, Any]]:
        return {
            "hard": {c.key: hard_wire_value(c) for c in self.hard},
            "soft": {c.key: soft_wire_value(c) for c in self.soft},
        }

    def to_dict(self) -> dict:
        return {
            "domain": self.domain.value,
            "parameters": _jsonable(self.parameters),
            "constraints": _jsonable(self.constraint_map()),
            "filters": list(self.filters),
            "scoring": self.scoring.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProviderQuery":
        domain = Domain(data["domain"])
        constraints = data.get("constraints") or {}
        currency = (data.get("parameters") or {}).get("currency")
        scoring = data.get("scoring") or {}
        return cls(
            domain=domain,
            parameters=dict(data.get("parameters") or {}),
            hard=tuple(
                parse_hard(key, value, currency)
                for key, value in (constraints.get("hard") or {}).items()
            ),
            soft=tuple(
                parse_soft(key, value, currency)
                for key, value in (constraints.get("soft") or {}).items()
            ),
            filters=tuple(data.get("filters") or ()),
            scoring=ScoringRules(
                weights=dict(scoring.get("weights") or {}),
                penalties=dict(scoring.get("penalties") or {}),
                bonuses=dict(scoring.get("bonuses") or {}),
            ),
        )


# ─── Wire form ───

# soft key -> (weighting factor, neutral fallback for categorical keys)
CATEGORY_KEYS: dict[str, tuple[str, float]] = {
    "propertyTypes": ("propertyType", 0.3),
    "intensityLevel": ("intensity", 0.5),
    "groupType": ("groupSize", 0.5),
    "atmosphere": ("atmosphere", 0.5),
    "preferredAirlines": ("airline", 0.5),
    "preferredAirports": ("airports", 0.5),
    "preferredCabin": ("cabin", 0.5),
    "preferredModes": ("convenience", 0.5),
    "comfortLevel": ("comfort", 0.5),
}

# categorical keys whose wire value is a single string
SCALAR_CATEGORY_KEYS = frozenset({"intensityLevel", "groupType", "atmosphere", "preferredCabin", "comfortLevel"})

OVERLAP_KEYS: dict[str, str] = {
    "preferredThemes": "themeMatch",
    "requiredAmenities": "amenities",
}

PRICE_CEILING_KEYS = ("maxPricePerNight", "maxPrice", "maxPricePerActivity")
PRICE_PREFERENCE_KEYS = ("preferredPricePerNight", "preferredPrice", "preferredPricePerActivity")
LOCATION_KEYS = ("destination", "location", "city", "origin")


def hard_wire_value(c: HardConstraint) -> Any:
    if isinstance(c, LocationMatch):
        return c.value
    if isinstance(c, (CheckInBy, CheckOutFrom, TravelDate)):
        return c.on
    if isinstance(c, AvailableDuring):
        return {"start": c.start, "end": c.end}
    if isinstance(c, MinCapacity):
        return c.count
    if isinstance(c, PriceCeiling):
        return c.amount
    if isinstance(c, (RatingFloor, StopCeiling)):
        return c.value
    if isinstance(c, Exclusion):
        return list(c.values)
    if isinstance(c, DietaryRequirement):
        return list(c.restrictions)
    if isinstance(c, MealBudget):
        return dict(c.caps)
    if isinstance(c, WalkingCeiling):
        return c.minutes
    return c.value


def soft_wire_value(c: SoftConstraint) -> Any:
    if isinstance(c, PricePreference):
        return c.amount
    if isinstance(c, RatingPreference):
        return c.value
    if isinstance(c, CategoryPreference):
        if c.key in SCALAR_CATEGORY_KEYS and c.preferred:
            return c.preferred[0]
        return list(c.preferred)
    if isinstance(c, CuisinePreference):
        return {"preferred": list(c.preferred), "avoid": list(c.avoid)}
    if isinstance(c, LocationPreference):
        return c.preference
    if isinstance(c, OverlapPreference):
        return list(c.wanted)
    return c.value


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, dict):
        items: list[str] = []
        for v in value.values():
            items.extend(_as_tuple(v))
        return tuple(items)
    return tuple(str(v) for v in value)


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def parse_hard(key: str, value: Any, currency: str | None = None) -> HardConstraint:
    """Map a wire key/value to its typed variant; unknown keys become ``OtherHard``."""
    try:
        if key in LOCATION_KEYS:
            return LocationMatch(key=key, value=str(value))
        if key == "checkinDate":
            return CheckInBy(on=_as_date(value))
        if key == "checkoutDate":
            return CheckOutFrom(on=_as_date(value))
        if key == "availableDates":
            return AvailableDuring(start=_as_date(value["start"]), end=_as_date(value["end"]))
        if key in ("departureDate", "returnDate"):
            return TravelDate(key=key, on=_as_date(value))
        if key in ("guests", "passengers"):
            return MinCapacity(key=key, count=int(value))
        if key in PRICE_CEILING_KEYS:
            return PriceCeiling(key=key, amount=float(value), currency=currency)
        if key == "minRating":
            return RatingFloor(value=float(value))
        if key == "maxStops":
            return StopCeiling(value=int(value))
        if key in ("avoidAirlines", "avoidModes"):
            return Exclusion(key=key, values=_as_tuple(value))
        if key == "dietaryRestrictions":
            return DietaryRequirement(restrictions=_as_tuple(value))
        if key == "mealBudgets":
            return MealBudget(
                caps=tuple((meal, float(cap)) for meal, cap in dict(value).items() if cap is not None),
                currency=currency,
            )
        if key == "maxWalkingMinutes":
            return WalkingCeiling(minutes=int(value))
    except (TypeError, ValueError, KeyError, AttributeError):
        return MalformedHard(key=key, value=value)
    return OtherHard(key=key, value=value)


def parse_soft(key: str, value: Any, currency: str | None = None) -> SoftConstraint:
    """Map a wire key/value to its typed variant; unknown keys become ``OtherSoft``."""
    try:
        if key in PRICE_PREFERENCE_KEYS:
            return PricePreference(key=key, amount=float(value), currency=currency)
        if key == "preferredRating":
            return RatingPreference(value=float(value))
        if key == "locationPreference":
            return LocationPreference(preference=str(value))
        if key == "cuisinePreferences":
            value = value or {}
            return CuisinePreference(
                preferred=_as_tuple(value.get("preferred")),
                avoid=_as_tuple(value.get("avoid")),
            )
        if key in OVERLAP_KEYS:
            return OverlapPreference(key=key, wanted=_as_tuple(value), factor=OVERLAP_KEYS[key])
        if key in CATEGORY_KEYS:
            factor, fallback = CATEGORY_KEYS[key]
            return CategoryPreference(
                key=key, preferred=_as_tuple(value), factor=factor, fallback=fallback
            )
    except (TypeError, ValueError, AttributeError):
        return OtherSoft(key=key, value=value)
    return OtherSoft(key=key, value=value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return value


def _freeze(value: Any) -> Any:
    """Read-only copy: mappings become proxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value
