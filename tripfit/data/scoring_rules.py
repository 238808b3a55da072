"""Static per-domain scoring tables and display filter labels.

Weights are relative importances in 0-1 and are not normalized; a domain
whose weights sum past 1.0 can saturate the 0-100 scale before clamping.
"""

SCORING_WEIGHTS: dict[str, dict[str, float]] = {
    "accommodation": {
        "price": 0.30,
        "rating": 0.25,
        "location": 0.25,
        "amenities": 0.15,
        "policies": 0.05,
    },
    "activities": {
        "themeMatch": 0.40,
        "price": 0.25,
        "rating": 0.20,
        "availability": 0.10,
        "groupSize": 0.05,
    },
    "dining": {
        "cuisine": 0.30,
        "price": 0.25,
        "rating": 0.20,
        "location": 0.15,
        "atmosphere": 0.10,
    },
    "flights": {
        "price": 0.35,
        "duration": 0.25,
        "stops": 0.20,
        "timing": 0.15,
        "airline": 0.05,
    },
    "transport": {
        "duration": 0.30,
        "cost": 0.25,
        "convenience": 0.20,
        "comfort": 0.15,
        "reliability": 0.10,
    },
}

SCORING_PENALTIES: dict[str, dict[str, float]] = {
    "accommodation": {"noFreeCancellation": 0.10, "noBreakfast": 0.05},
    "activities": {"weatherDependent": 0.05, "bookingRequired": 0.03},
    "dining": {"noReservations": 0.05, "limitedDietary": 0.10},
    "flights": {"earlyDeparture": 0.05, "lateArrival": 0.05, "shortLayover": 0.10},
    "transport": {"walkingRequired": 0.05, "weatherDependent": 0.03},
}

SCORING_BONUSES: dict[str, dict[str, float]] = {
    "accommodation": {"freeUpgrade": 0.10, "exceptionalRating": 0.05},
    "activities": {"uniqueExperience": 0.10, "localRecommended": 0.05},
    "dining": {"localSpecialty": 0.10, "chefRecommended": 0.05},
    "flights": {"directFlight": 0.15, "preferredAirline": 0.05},
    "transport": {"doorToDoor": 0.10, "realTimeTracking": 0.02},
}

# Labels shown next to results; never used for evaluation
BASE_FILTERS: dict[str, tuple[str, ...]] = {
    "accommodation": ("available", "within-budget"),
    "activities": ("available-dates", "capacity", "weather-appropriate"),
    "dining": ("dietary-compatible",),
    "flights": ("available-dates", "correct-airports", "within-budget"),
    "transport": ("operating-hours", "accessible-routes"),
}

# Stop-tolerance enum -> max stops ("any" imposes no ceiling)
STOP_TOLERANCE: dict[str, int] = {
    "direct-only": 0,
    "one-stop-ok": 1,
}
