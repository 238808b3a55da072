"""Trip brief completeness checks.

Returns human-readable messages for whatever is missing; never raises, so
the conversation layer can decide what to ask next.
"""

from dataclasses import dataclass
from typing import Callable

from tripfit.schemas.trip_brief import TripBrief


@dataclass(frozen=True)
class ValidationRule:
    field: str
    validate: Callable[[TripBrief], bool]
    message: str


def _has_destination(brief: TripBrief) -> bool:
    return bool(brief.destination and brief.destination.primary and brief.destination.primary.value)


def _has_dates(brief: TripBrief) -> bool:
    dates = brief.dates
    return bool(dates and dates.start_date and dates.end_date)


def _has_budget(brief: TripBrief) -> bool:
    total = brief.budget.total if brief.budget else None
    return bool(total is not None and total.value and total.value > 0)


VALIDATION_RULES: tuple[ValidationRule, ...] = (
    ValidationRule("destination.primary", _has_destination, "Destination is required"),
    ValidationRule("dates", _has_dates, "Travel dates are required"),
    ValidationRule("budget.total", _has_budget, "Budget is required"),
)


def validate_trip_brief(
    brief: TripBrief, rules: tuple[ValidationRule, ...] = VALIDATION_RULES
) -> list[str]:
    """Messages for every rule the brief fails, in rule order."""
    return [rule.message for rule in rules if not rule.validate(brief)]
