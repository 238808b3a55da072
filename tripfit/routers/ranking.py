"""Ranking router — filters and ranks provider candidates for a trip brief."""

import logging

from fastapi import APIRouter, HTTPException

from tripfit.config import settings
from tripfit.schemas.result import BriefValidation, RankRequest, RankResponse
from tripfit.schemas.trip_brief import TripBrief
from tripfit.services.brief_validator import validate_trip_brief
from tripfit.services.query_compiler import UnknownDomainError
from tripfit.services.result_ranker import result_ranker

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/rank/{domain}", response_model=RankResponse)
async def rank_candidates(domain: str, req: RankRequest):
    """Rank raw provider candidates for one domain."""
    candidates = req.candidates or []
    limit = min(req.limit or settings.max_results, settings.max_results)
    try:
        query = result_ranker.compiler.compile(req.brief, domain)
    except UnknownDomainError as e:
        raise HTTPException(status_code=400, detail=str(e))

    results = result_ranker.rank_query(query, candidates)
    return RankResponse(
        domain=query.domain.value,
        received=len(candidates),
        excluded=len(candidates) - len(results),
        results=results[:limit],
    )


@router.post("/briefs/validate", response_model=BriefValidation)
async def validate_brief(brief: TripBrief):
    """List what the brief still needs before searching."""
    missing = validate_trip_brief(brief)
    return BriefValidation(valid=not missing, missing=missing)
