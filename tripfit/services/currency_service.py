"""Currency normalizer — converts and formats prices against a rate snapshot.

The snapshot is immutable. ``refresh()`` builds a new one and swaps the
reference, so readers always see either the old or the new table in full.
Refreshes are serialized, and a fetched table older than the current one is
dropped.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

import httpx

from tripfit.config import settings
from tripfit.data.currency import (
    DEFAULT_RATES,
    DISPLAY_CURRENCIES,
    MOCK_FEED_RATES,
    PIVOT_CURRENCY,
    currency_symbol,
    minor_units,
)
from tripfit.schemas.currency import (
    ConvertedAmount,
    ConvertedPrice,
    NativePrice,
    PriceDisplay,
    RateInfo,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CurrencyRate:
    from_currency: str
    to_currency: str
    rate: float
    timestamp: datetime


@dataclass(frozen=True)
class RateSnapshot:
    rates: Mapping[tuple[str, str], CurrencyRate]
    timestamp: datetime

    @classmethod
    def from_pairs(
        cls, pairs: Mapping[tuple[str, str], float], timestamp: datetime | None = None
    ) -> "RateSnapshot":
        ts = timestamp or _utcnow()
        rates = {
            (src, dst): CurrencyRate(src, dst, rate, ts)
            for (src, dst), rate in pairs.items()
        }
        return cls(rates=MappingProxyType(rates), timestamp=ts)

    def get(self, from_currency: str, to_currency: str) -> CurrencyRate | None:
        return self.rates.get((from_currency, to_currency))

    def merged(self, fresh: Iterable[CurrencyRate], timestamp: datetime) -> "RateSnapshot":
        """New snapshot: this table overlaid with ``fresh`` quotes."""
        rates = dict(self.rates)
        for rate in fresh:
            rates[(rate.from_currency, rate.to_currency)] = rate
        return RateSnapshot(rates=MappingProxyType(rates), timestamp=timestamp)

    def currencies(self) -> list[str]:
        codes = set()
        for src, dst in self.rates:
            codes.add(src)
            codes.add(dst)
        return sorted(codes)


class ExchangeRateClient:
    """Fetches quotes from an HTTP rate feed, or a mock feed when none is configured.

    Accepted payloads: ``{"base": "USD", "rates": {"EUR": 0.92, ...}}`` or a
    list of ``{"from": ..., "to": ..., "rate": ...}`` objects.
    """

    def __init__(self, url: str | None = None, timeout: float | None = None):
        self._url = settings.exchange_rates_url if url is None else url
        self._timeout = timeout or settings.exchange_rates_timeout
        self._use_mock = not self._url

    async def fetch_rates(self) -> list[CurrencyRate]:
        now = _utcnow()
        if self._use_mock:
            return [
                CurrencyRate(src, dst, rate, now)
                for (src, dst), rate in MOCK_FEED_RATES.items()
            ]

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            for attempt in range(3):
                try:
                    resp = await client.get(self._url)
                    resp.raise_for_status()
                    return self._parse(resp.json(), now)
                except httpx.HTTPStatusError as e:
                    if e.response.status_code == 429 and attempt < 2:
                        await asyncio.sleep(2 ** attempt)
                        continue
                    raise
                except httpx.RequestError:
                    if attempt < 2:
                        await asyncio.sleep(2 ** attempt)
                        continue
                    raise
        return []

    @staticmethod
    def _parse(payload, now: datetime) -> list[CurrencyRate]:
        if isinstance(payload, dict) and isinstance(payload.get("rates"), dict):
            base = payload.get("base", PIVOT_CURRENCY)
            return [
                CurrencyRate(base, code, float(rate), now)
                for code, rate in payload["rates"].items()
                if code != base and rate
            ]
        if isinstance(payload, list):
            if not all(isinstance(item, dict) for item in payload):
                raise ValueError("Unrecognized exchange-rate payload")
            return [
                CurrencyRate(item["from"], item["to"], float(item["rate"]), now)
                for item in payload
                if item.get("rate")
            ]
        raise ValueError("Unrecognized exchange-rate payload")


class CurrencyNormalizer:
    """Converts and formats amounts against the current rate snapshot."""

    def __init__(
        self,
        snapshot: RateSnapshot | None = None,
        client: ExchangeRateClient | None = None,
        stale_after: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._clock = clock
        self._snapshot = snapshot or RateSnapshot.from_pairs(DEFAULT_RATES, clock())
        self._client = client or ExchangeRateClient()
        self._stale_after = stale_after or timedelta(minutes=settings.rates_stale_after_minutes)
        self._refresh_lock = asyncio.Lock()

    @property
    def snapshot(self) -> RateSnapshot:
        return self._snapshot

    @property
    def rate_timestamp(self) -> str:
        return self._snapshot.timestamp.isoformat()

    # Conversion

    def convert(self, amount: float, from_currency: str, to_currency: str) -> ConvertedAmount:
        """Convert via direct, inverse, then USD-pivot rates. Never raises."""
        return self._convert(amount, from_currency, to_currency, self._snapshot)

    def _convert(
        self, amount: float, from_currency: str, to_currency: str, snapshot: RateSnapshot
    ) -> ConvertedAmount:
        if from_currency == to_currency:
            return ConvertedAmount(amount=amount, approximate=False)

        direct = snapshot.get(from_currency, to_currency)
        if direct is not None:
            return ConvertedAmount(amount=round(amount * direct.rate, 2), approximate=False)

        reverse = snapshot.get(to_currency, from_currency)
        if reverse is not None and reverse.rate:
            return ConvertedAmount(amount=round(amount / reverse.rate, 2), approximate=True)

        if PIVOT_CURRENCY not in (from_currency, to_currency):
            to_pivot = self._convert(amount, from_currency, PIVOT_CURRENCY, snapshot)
            final = self._convert(to_pivot.amount, PIVOT_CURRENCY, to_currency, snapshot)
            return ConvertedAmount(amount=final.amount, approximate=True)

        logger.warning(f"No exchange rate found for {from_currency} to {to_currency}")
        return ConvertedAmount(amount=amount, approximate=True)

    def convert_many(
        self,
        prices: Iterable[dict],
        target_currencies: Iterable[str] = DISPLAY_CURRENCIES,
    ) -> list[dict]:
        """Convert ``{"amount", "currency"}`` items into every target currency."""
        snapshot = self._snapshot
        targets = list(target_currencies)
        return [
            {
                "original": price,
                "conversions": {
                    target: self._convert(price["amount"], price["currency"], target, snapshot)
                    for target in targets
                },
            }
            for price in prices
        ]

    # Formatting

    def format(self, amount: float, currency: str) -> str:
        decimals = minor_units(currency)
        return f"{currency_symbol(currency)}{amount:,.{decimals}f}"

    def create_display(
        self, amount: float, currency: str, taxes_included: bool = False
    ) -> PriceDisplay:
        snapshot = self._snapshot
        usd = self._convert(amount, currency, "USD", snapshot)
        gbp = self._convert(amount, currency, "GBP", snapshot)
        return PriceDisplay(
            native=NativePrice(
                amount=amount, currency=currency, formatted=self.format(amount, currency)
            ),
            usd=ConvertedPrice(
                amount=usd.amount,
                formatted=self.format(usd.amount, "USD"),
                approximate=usd.approximate or currency != "USD",
            ),
            gbp=ConvertedPrice(
                amount=gbp.amount,
                formatted=self.format(gbp.amount, "GBP"),
                approximate=gbp.approximate or currency != "GBP",
            ),
            taxes_included=taxes_included,
            rate_timestamp=snapshot.timestamp.isoformat(),
        )

    def format_for_display(
        self, display: PriceDisplay, per_night: bool = True, show_both: bool = True
    ) -> str:
        period = "/night" if per_night else ""
        tax_note = " (taxes incl.)" if display.taxes_included else " (taxes excl.)"
        if not show_both:
            return f"{display.native.formatted}{period}{tax_note}"
        approx = "Approx. " if (display.usd.approximate or display.gbp.approximate) else ""
        return (
            f"{display.native.formatted}{period} | {approx}{display.usd.formatted}"
            f" | {display.gbp.formatted}{tax_note}"
        )

    def format_range(
        self, min_amount: float, max_amount: float, currency: str, show_conversions: bool = True
    ) -> str:
        low = self.create_display(min_amount, currency)
        high = self.create_display(max_amount, currency)
        native = f"{low.native.formatted} - {high.native.formatted}"
        if not show_conversions:
            return native
        return (
            f"{native} | {low.usd.formatted} - {high.usd.formatted}"
            f" | {low.gbp.formatted} - {high.gbp.formatted}"
        )

    # Snapshot lifecycle

    def get_rate_info(self, from_currency: str, to_currency: str) -> RateInfo | None:
        rate = self._snapshot.get(from_currency, to_currency)
        if rate is None:
            return None
        return RateInfo(
            from_currency=rate.from_currency,
            to_currency=rate.to_currency,
            rate=rate.rate,
            timestamp=rate.timestamp.isoformat(),
        )

    def supported_currencies(self) -> list[str]:
        return self._snapshot.currencies()

    def is_stale(self) -> bool:
        return self._clock() - self._snapshot.timestamp > self._stale_after

    def replace_snapshot(self, snapshot: RateSnapshot) -> bool:
        """Swap in ``snapshot`` unless it is older than the current one."""
        if snapshot.timestamp < self._snapshot.timestamp:
            logger.info("Discarding exchange-rate snapshot older than the current one")
            return False
        self._snapshot = snapshot
        return True

    async def refresh(self) -> bool:
        """Fetch fresh quotes and swap the snapshot. Keeps the old one on failure."""
        async with self._refresh_lock:
            started = self._clock()
            try:
                fresh = await self._client.fetch_rates()
            except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to update currency rates, keeping previous snapshot: {e}")
                return False

            if not fresh:
                logger.warning("Exchange-rate feed returned no quotes, keeping previous snapshot")
                return False

            updated = self.replace_snapshot(self._snapshot.merged(fresh, started))
            if updated:
                logger.info(f"Exchange rates refreshed: {len(fresh)} quotes")
            return updated


currency_normalizer = CurrencyNormalizer()
