"""Field access for raw provider records.

Providers disagree on naming (``maxGuests`` vs ``max_guests`` vs ``capacity``),
so every read goes through an alias list. Records are never mutated.
"""

from datetime import date, datetime
from typing import Any

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "offer_id", "offerId"),
    "name": ("name", "hotel_name", "hotelName", "title"),
    "price": ("price", "cost", "nightly_rate", "nightlyRate"),
    "currency": ("currency", "price_currency", "priceCurrency"),
    "rating": ("rating", "user_rating", "userRating", "star_rating"),
    "capacity": ("maxGuests", "max_guests", "capacity"),
    "seats": ("seatsAvailable", "seats_available", "seats_remaining", "seatsRemaining"),
    "stops": ("stops",),
    "airline": ("airline", "airline_name", "airlineName", "airline_code", "airlineCode"),
    "mode": ("mode", "type"),
    "dietary": ("dietaryOptions", "dietary_options", "dietary"),
    "availability": ("availability",),
    "walking": ("walkingMinutes", "walking_minutes"),
    "meal": ("mealType", "meal_type", "meal"),
    "booking_url": ("bookingUrl", "booking_url", "deepLink", "deep_link"),
    "destination": ("city", "destination", "location"),
    "city": ("city", "location"),
    "origin": ("origin", "from", "origin_city", "originCity"),
    "departure_date": ("departureDate", "departure_date", "departure_time", "departureTime"),
    "return_date": ("returnDate", "return_date", "return_time", "returnTime"),
    "property_type": ("type", "propertyType", "property_type"),
    "cuisine": ("cuisine", "type"),
    "themes": ("tags", "categories", "themes"),
    "amenities": ("amenities", "features"),
    "intensity": ("intensity", "intensityLevel", "intensity_level"),
    "group_type": ("groupType", "group_type", "group"),
    "atmosphere": ("atmosphere", "vibe"),
    "cabin": ("cabinClass", "cabin_class", "cabin"),
    "airports": ("origin_airport", "destination_airport", "originAirport", "destinationAirport",
                 "departureAirport", "arrivalAirport"),
    "comfort": ("comfortLevel", "comfort_level", "comfort"),
}


def pick(candidate: dict, field: str) -> Any:
    """First non-empty value among a field's aliases."""
    for key in FIELD_ALIASES.get(field, (field,)):
        value = candidate.get(key)
        if value is not None and value != "":
            return value
    return None


def pick_all(candidate: dict, field: str) -> list[Any]:
    """Every non-empty value among a field's aliases."""
    values = []
    for key in FIELD_ALIASES.get(field, (field,)):
        value = candidate.get(key)
        if value is not None and value != "":
            values.append(value)
    return values


def as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def as_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        return [str(k) for k, v in value.items() if v]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v) for v in value]
    return [str(value)]


def candidate_price(candidate: dict) -> tuple[float | None, str | None]:
    """(amount, currency); handles flat prices and ``{"amount", "currency"}`` objects."""
    raw = pick(candidate, "price")
    currency = pick(candidate, "currency")
    if isinstance(raw, dict):
        currency = raw.get("currency") or currency
        raw = raw.get("amount")
    return as_float(raw), currency
