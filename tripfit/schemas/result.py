from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tripfit.schemas.trip_brief import TripBrief


class ScoredResult(BaseModel):
    """One ranked candidate. Only candidates with no hard violations are emitted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    domain: str
    score: float = Field(ge=0, le=100)
    scoring_breakdown: dict[str, float] = {}
    constraint_violations: list[str] = []
    constraint_satisfaction: dict[str, bool] = {}
    reasoning: str = ""
    deep_link: str | None = None
    uncertainty: list[str] = []
    data: dict[str, Any] = {}


class RankRequest(BaseModel):
    brief: TripBrief
    candidates: list[dict[str, Any]] | None = None
    limit: int | None = Field(default=None, ge=1)


class RankResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    domain: str
    received: int
    excluded: int
    results: list[ScoredResult]


class BriefValidation(BaseModel):
    valid: bool
    missing: list[str]
