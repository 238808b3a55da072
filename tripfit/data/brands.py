"""Static brand tokens used to spot near-duplicate results.

Order matters: the first token found in a display name wins
("DoubleTree by Hilton" classifies as Hilton).
"""

KNOWN_BRANDS: tuple[str, ...] = (
    "Hilton",
    "Marriott",
    "Hyatt",
    "IHG",
    "Radisson",
    "Best Western",
    "Holiday Inn",
    "Sheraton",
    "Westin",
    "Doubletree",
    "Hampton",
    "Courtyard",
    "Residence Inn",
    "Fairfield",
    "AC Hotel",
)
