"""Query router — compiles trip briefs into provider queries."""

from fastapi import APIRouter, HTTPException

from tripfit.schemas.trip_brief import TripBrief
from tripfit.services.query_compiler import UnknownDomainError, query_compiler

router = APIRouter()


@router.post("")
async def compile_all_queries(brief: TripBrief):
    """Provider queries for every domain."""
    return {
        domain.value: query.to_dict()
        for domain, query in query_compiler.compile_all(brief).items()
    }


@router.post("/{domain}")
async def compile_query(domain: str, brief: TripBrief):
    """Provider query for one domain."""
    try:
        return query_compiler.compile(brief, domain).to_dict()
    except UnknownDomainError as e:
        raise HTTPException(status_code=400, detail=str(e))
