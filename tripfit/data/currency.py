"""Currency reference data — symbols, minor units, and the seed rate snapshot."""

# Quoted pairs (from, to) -> rate. Pairs are quoted independently, so a pair and
# its reverse are not exact reciprocals.
DEFAULT_RATES: dict[tuple[str, str], float] = {
    ("EUR", "USD"): 1.09,
    ("EUR", "GBP"): 0.85,
    ("USD", "EUR"): 0.92,
    ("USD", "GBP"): 0.78,
    ("GBP", "EUR"): 1.18,
    ("GBP", "USD"): 1.28,
    ("JPY", "USD"): 0.0067,
    ("JPY", "GBP"): 0.0052,
    ("CAD", "USD"): 0.74,
    ("CAD", "GBP"): 0.58,
    ("AUD", "USD"): 0.67,
    ("AUD", "GBP"): 0.52,
    ("CHF", "USD"): 1.11,
    ("CHF", "GBP"): 0.87,
}

# Served by the mock feed when no exchange-rate URL is configured
MOCK_FEED_RATES: dict[tuple[str, str], float] = {
    ("EUR", "USD"): 1.0845,
    ("EUR", "GBP"): 0.8532,
    ("USD", "GBP"): 0.7867,
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$", "GBP": "£", "EUR": "€", "JPY": "¥",
    "CAD": "C$", "AUD": "A$", "CHF": "CHF ", "KRW": "₩",
    "INR": "₹", "SGD": "S$", "HKD": "HK$",
}

# Currencies displayed without a fractional part
ZERO_DECIMAL_CURRENCIES: frozenset[str] = frozenset({"JPY", "KRW"})

# Pivot for triangulated conversions
PIVOT_CURRENCY = "USD"

# Display currencies shown next to every native price
DISPLAY_CURRENCIES: tuple[str, ...] = ("USD", "GBP")


def currency_symbol(currency: str) -> str:
    """Symbol for a currency code; unknown codes are shown as 'XXX '."""
    return CURRENCY_SYMBOLS.get(currency, currency + " ")


def minor_units(currency: str) -> int:
    return 0 if currency in ZERO_DECIMAL_CURRENCIES else 2
