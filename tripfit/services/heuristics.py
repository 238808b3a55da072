"""Fuzzy matching heuristics shared by scoring and diversity re-ranking.

Substring and keyword rules live here, behind two narrow functions, so they
can be swapped for a better matcher without touching the ranking pipeline.
"""

import re
from typing import Any

from tripfit.data.brands import KNOWN_BRANDS

_NON_ALNUM = re.compile(r"[^a-z0-9]")

# preference -> (keywords found in location text, boolean flags on the record, hit, miss)
LOCATION_RULES: dict[str, tuple[tuple[str, ...], tuple[str, ...], float, float]] = {
    "city-center": (("center", "centre", "downtown"), ("cityCenter", "city_center", "central"), 1.0, 0.3),
    "near-transport": (("station",), ("nearTransport", "near_transport"), 1.0, 0.4),
    "quiet": (("quiet",), ("quiet",), 1.0, 0.5),
}

NEUTRAL_SCORE = 0.5


def normalize_token(value: Any) -> str:
    """Lowercase and strip everything but letters and digits."""
    if value is None:
        return ""
    return _NON_ALNUM.sub("", str(value).lower().strip())


def classify_brand(name: Any) -> str | None:
    """Brand token contained in a display name, if any."""
    if not name:
        return None
    lowered = str(name).lower()
    for brand in KNOWN_BRANDS:
        if brand.lower() in lowered:
            return brand
    return None


def location_text(candidate: dict) -> str:
    """Free-text location of a candidate, flattened and lowercased."""
    parts: list[str] = []
    for key in ("location", "neighborhood", "address", "area"):
        value = candidate.get(key)
        if isinstance(value, dict):
            parts.extend(str(v) for v in value.values() if isinstance(v, str))
        elif isinstance(value, str):
            parts.append(value)
    return " ".join(parts).lower()


def matches_location_preference(candidate: dict, preference: str) -> float:
    """Score in [0, 1] for how well a candidate's location fits ``preference``."""
    rule = LOCATION_RULES.get(preference)
    if rule is None:
        return NEUTRAL_SCORE

    keywords, flags, hit, miss = rule
    if any(candidate.get(flag) for flag in flags):
        return hit
    text = location_text(candidate)
    if any(word in text for word in keywords):
        return hit
    return miss


def neighborhood_of(candidate: dict) -> str | None:
    value = candidate.get("neighborhood")
    if value is None and isinstance(candidate.get("location"), dict):
        value = candidate["location"].get("neighborhood")
    if not value:
        return None
    return normalize_token(value) or None
