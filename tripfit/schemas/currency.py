from pydantic import BaseModel


class ConvertedAmount(BaseModel):
    amount: float
    approximate: bool = False


class NativePrice(BaseModel):
    amount: float
    currency: str
    formatted: str


class ConvertedPrice(BaseModel):
    amount: float
    formatted: str
    approximate: bool


class PriceDisplay(BaseModel):
    native: NativePrice
    usd: ConvertedPrice
    gbp: ConvertedPrice
    taxes_included: bool
    rate_timestamp: str


class RateInfo(BaseModel):
    from_currency: str
    to_currency: str
    rate: float
    timestamp: str


class RatesStatus(BaseModel):
    rate_timestamp: str
    stale: bool
    currencies: list[str]
