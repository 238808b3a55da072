"""Result ranker — compile → filter → score → diversify → sort."""

import logging

from tripfit.schemas.query import Domain, ProviderQuery
from tripfit.schemas.result import ScoredResult
from tripfit.schemas.trip_brief import TripBrief
from tripfit.services.constraint_filter import ConstraintFilter
from tripfit.services.currency_service import CurrencyNormalizer, currency_normalizer
from tripfit.services.diversity import DiversityReranker
from tripfit.services.query_compiler import QueryCompiler
from tripfit.services.scoring_engine import ScoringEngine

logger = logging.getLogger(__name__)


class ResultRanker:
    """Runs the full ranking pipeline for one domain.

    Candidate lists may be partial or empty (providers fail independently);
    that only ever yields fewer results.
    """

    def __init__(
        self,
        normalizer: CurrencyNormalizer | None = None,
        compiler: QueryCompiler | None = None,
        constraint_filter: ConstraintFilter | None = None,
        engine: ScoringEngine | None = None,
        reranker: DiversityReranker | None = None,
    ):
        normalizer = normalizer or currency_normalizer
        self.compiler = compiler or QueryCompiler()
        self.constraint_filter = constraint_filter or ConstraintFilter(normalizer)
        self.engine = engine or ScoringEngine(normalizer)
        self.reranker = reranker or DiversityReranker()

    def rank(
        self,
        brief: TripBrief,
        domain: Domain | str,
        candidates: list[dict] | None,
        limit: int | None = None,
    ) -> list[ScoredResult]:
        query = self.compiler.compile(brief, domain)
        return self.rank_query(query, candidates, limit)

    def rank_query(
        self,
        query: ProviderQuery,
        candidates: list[dict] | None,
        limit: int | None = None,
    ) -> list[ScoredResult]:
        candidates = [c for c in (candidates or []) if isinstance(c, dict)]
        survivors = self.constraint_filter.apply(query, candidates)
        scored = self.engine.score_all(query, survivors)
        ranked = self.reranker.rerank(scored)

        logger.info(
            f"Ranked {query.domain.value}: {len(candidates)} candidates, "
            f"{len(candidates) - len(survivors)} excluded, {len(ranked)} returned"
        )
        if limit is not None:
            ranked = ranked[:limit]
        return ranked


result_ranker = ResultRanker()
