"""
Unit tests for the currency normalizer.

Covers the conversion fallback chain, formatting, price displays and the
rate snapshot lifecycle (staleness, refresh, out-of-order swaps).
"""

import asyncio
from datetime import timedelta

import httpx
import pytest

from conftest import FIXED_NOW, FakeRateClient
from tripfit.data.currency import DEFAULT_RATES
from tripfit.services.currency_service import (
    CurrencyNormalizer,
    CurrencyRate,
    ExchangeRateClient,
    RateSnapshot,
)


class TestConvert:
    """Tests for CurrencyNormalizer.convert."""

    def test_same_currency_is_identity(self, normalizer):
        result = normalizer.convert(123.45, "EUR", "EUR")
        assert result.amount == 123.45
        assert result.approximate is False

    def test_direct_rate(self, normalizer):
        result = normalizer.convert(100, "EUR", "USD")
        assert result.amount == 109.0
        assert result.approximate is False

    def test_inverse_rate_is_approximate(self, normalizer):
        """USD->JPY is only quoted as JPY->USD, so the reciprocal is used."""
        result = normalizer.convert(100, "USD", "JPY")
        assert result.amount == pytest.approx(100 / 0.0067, abs=0.01)
        assert result.approximate is True

    def test_triangulates_through_usd(self, normalizer):
        """CAD->EUR has no quote either way; goes CAD->USD->EUR."""
        result = normalizer.convert(100, "CAD", "EUR")
        assert result.amount == pytest.approx(74 * 0.92, abs=0.01)
        assert result.approximate is True

    def test_unknown_pair_returns_original_amount(self, normalizer):
        result = normalizer.convert(100, "XYZ", "ABC")
        assert result.amount == 100
        assert result.approximate is True

    def test_unknown_pair_with_usd_never_raises(self, normalizer):
        result = normalizer.convert(42, "USD", "XYZ")
        assert result.amount == 42
        assert result.approximate is True

    def test_round_trip_stays_close(self, normalizer):
        """Stored pairs are not exact reciprocals; the round trip only stays near."""
        usd = normalizer.convert(100, "EUR", "USD").amount
        back = normalizer.convert(usd, "USD", "EUR").amount
        assert abs(back - 100) / 100 < 0.02

    def test_convert_many_targets_display_currencies(self, normalizer):
        converted = normalizer.convert_many([{"amount": 100, "currency": "EUR"}])
        assert len(converted) == 1
        conversions = converted[0]["conversions"]
        assert set(conversions) == {"USD", "GBP"}
        assert conversions["USD"].amount == 109.0
        assert conversions["GBP"].amount == 85.0


class TestFormat:
    """Tests for amount formatting and price displays."""

    def test_two_decimals_with_grouping(self, normalizer):
        assert normalizer.format(1234.5, "USD") == "$1,234.50"

    def test_zero_decimal_currency(self, normalizer):
        assert normalizer.format(15000, "JPY") == "¥15,000"

    def test_unknown_currency_uses_code(self, normalizer):
        assert normalizer.format(10, "XYZ") == "XYZ 10.00"

    def test_create_display_from_foreign_currency(self, normalizer):
        display = normalizer.create_display(100, "EUR")
        assert display.native.formatted == "€100.00"
        assert display.usd.amount == 109.0
        assert display.usd.approximate is True
        assert display.gbp.formatted == "£85.00"
        assert display.taxes_included is False
        assert display.rate_timestamp == FIXED_NOW.isoformat()

    def test_create_display_native_usd_is_exact(self, normalizer):
        display = normalizer.create_display(50, "USD", taxes_included=True)
        assert display.usd.amount == 50
        assert display.usd.approximate is False
        assert display.gbp.approximate is True
        assert display.taxes_included is True

    def test_format_for_display(self, normalizer):
        display = normalizer.create_display(100, "EUR")
        assert normalizer.format_for_display(display) == (
            "€100.00/night | Approx. $109.00 | £85.00 (taxes excl.)"
        )
        assert normalizer.format_for_display(display, per_night=False, show_both=False) == (
            "€100.00 (taxes excl.)"
        )

    def test_format_range(self, normalizer):
        assert normalizer.format_range(100, 200, "USD", show_conversions=False) == "$100.00 - $200.00"
        assert normalizer.format_range(100, 200, "USD").startswith("$100.00 - $200.00 | $100.00 - $200.00 | £")


class TestSnapshotLifecycle:
    """Tests for staleness, refresh and snapshot replacement."""

    def test_fresh_snapshot_is_not_stale(self, normalizer, clock):
        clock.state["now"] = FIXED_NOW + timedelta(minutes=30)
        assert normalizer.is_stale() is False

    def test_snapshot_older_than_an_hour_is_stale(self, normalizer, clock):
        clock.state["now"] = FIXED_NOW + timedelta(minutes=61)
        assert normalizer.is_stale() is True

    def test_rate_info(self, normalizer):
        info = normalizer.get_rate_info("EUR", "USD")
        assert info.rate == 1.09
        assert info.timestamp == FIXED_NOW.isoformat()
        assert normalizer.get_rate_info("USD", "JPY") is None

    def test_supported_currencies(self, normalizer):
        assert normalizer.supported_currencies() == ["AUD", "CAD", "CHF", "EUR", "GBP", "JPY", "USD"]

    def test_refresh_merges_fresh_quotes(self, clock):
        later = FIXED_NOW + timedelta(hours=2)
        client = FakeRateClient(rates=[CurrencyRate("EUR", "USD", 1.10, later)])
        normalizer = CurrencyNormalizer(
            snapshot=RateSnapshot.from_pairs(DEFAULT_RATES, FIXED_NOW), client=client, clock=clock
        )
        clock.state["now"] = later

        assert asyncio.run(normalizer.refresh()) is True
        assert normalizer.convert(100, "EUR", "USD").amount == 110.0
        # Pairs missing from the feed carry over
        assert normalizer.convert(100, "GBP", "USD").amount == 128.0
        assert normalizer.is_stale() is False

    def test_refresh_failure_keeps_previous_snapshot(self, clock):
        client = FakeRateClient(error=httpx.ConnectError("feed down"))
        normalizer = CurrencyNormalizer(client=client, clock=clock)
        before = normalizer.snapshot

        assert asyncio.run(normalizer.refresh()) is False
        assert normalizer.snapshot is before
        assert client.calls == 1

    def test_refresh_with_empty_feed_keeps_previous_snapshot(self, clock):
        normalizer = CurrencyNormalizer(client=FakeRateClient(rates=[]), clock=clock)
        before = normalizer.snapshot
        assert asyncio.run(normalizer.refresh()) is False
        assert normalizer.snapshot is before

    def test_older_snapshot_is_discarded(self, normalizer):
        current = normalizer.snapshot
        older = RateSnapshot.from_pairs({("EUR", "USD"): 2.0}, FIXED_NOW - timedelta(hours=1))
        assert normalizer.replace_snapshot(older) is False
        assert normalizer.snapshot is current

    def test_newer_snapshot_replaces_whole_table(self, normalizer):
        newer = RateSnapshot.from_pairs({("EUR", "USD"): 2.0}, FIXED_NOW + timedelta(minutes=5))
        assert normalizer.replace_snapshot(newer) is True
        assert normalizer.convert(10, "EUR", "USD").amount == 20.0
        assert normalizer.get_rate_info("GBP", "USD") is None

    def test_snapshot_is_read_only(self, normalizer):
        with pytest.raises(TypeError):
            normalizer.snapshot.rates[("EUR", "USD")] = None


class TestExchangeRateClient:
    """Tests for the rate feed client."""

    def test_mock_feed_without_url(self):
        rates = asyncio.run(ExchangeRateClient(url="").fetch_rates())
        pairs = {(r.from_currency, r.to_currency) for r in rates}
        assert ("EUR", "USD") in pairs
        assert len(rates) == 3

    def test_parse_base_and_rates_payload(self):
        rates = ExchangeRateClient._parse({"base": "USD", "rates": {"EUR": 0.9, "USD": 1.0}}, FIXED_NOW)
        assert [(r.from_currency, r.to_currency, r.rate) for r in rates] == [("USD", "EUR", 0.9)]

    def test_parse_list_payload(self):
        rates = ExchangeRateClient._parse([{"from": "GBP", "to": "EUR", "rate": "1.17"}], FIXED_NOW)
        assert rates[0].rate == 1.17

    def test_parse_rejects_unknown_payload(self):
        with pytest.raises(ValueError):
            ExchangeRateClient._parse("nope", FIXED_NOW)

    def test_parse_rejects_list_of_non_objects(self):
        with pytest.raises(ValueError):
            ExchangeRateClient._parse(["EUR:USD:1.1"], FIXED_NOW)

    def test_refresh_survives_unreadable_feed(self, clock):
        class GarbledFeed(ExchangeRateClient):
            async def fetch_rates(self):
                return self._parse(["EUR:USD:1.1"], FIXED_NOW)

        normalizer = CurrencyNormalizer(client=GarbledFeed(url=""), clock=clock)
        before = normalizer.snapshot
        assert asyncio.run(normalizer.refresh()) is False
        assert normalizer.snapshot is before
