"""Currency router — conversion, formatting and rate status for the presentation layer."""

from fastapi import APIRouter, Query

from tripfit.schemas.currency import ConvertedAmount, PriceDisplay, RatesStatus
from tripfit.services.currency_service import currency_normalizer

router = APIRouter()


def _code(value: str) -> str:
    return value.strip().upper()


@router.get("/convert", response_model=ConvertedAmount)
async def convert(
    amount: float,
    from_currency: str = Query(..., alias="from", min_length=3, max_length=3),
    to_currency: str = Query(..., alias="to", min_length=3, max_length=3),
):
    return currency_normalizer.convert(amount, _code(from_currency), _code(to_currency))


@router.get("/format")
async def format_amount(amount: float, currency: str = Query(..., min_length=3, max_length=3)):
    return {"formatted": currency_normalizer.format(amount, _code(currency))}


@router.get("/display", response_model=PriceDisplay)
async def price_display(
    amount: float,
    currency: str = Query(..., min_length=3, max_length=3),
    taxes_included: bool = False,
):
    return currency_normalizer.create_display(amount, _code(currency), taxes_included)


@router.get("/rates", response_model=RatesStatus)
async def rates_status():
    """Snapshot age and the currencies it can convert."""
    return RatesStatus(
        rate_timestamp=currency_normalizer.rate_timestamp,
        stale=currency_normalizer.is_stale(),
        currencies=currency_normalizer.supported_currencies(),
    )
