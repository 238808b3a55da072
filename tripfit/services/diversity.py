"""Diversity re-ranking — demotes near-duplicates so one brand or area can't fill the top."""

import logging

from tripfit.config import settings
from tripfit.schemas.result import ScoredResult
from tripfit.services.candidate_fields import pick
from tripfit.services.heuristics import classify_brand, neighborhood_of

logger = logging.getLogger(__name__)


class DiversityReranker:
    """Single left-to-right pass over score-sorted results.

    Each result loses ``brand_penalty`` per earlier result of the same brand,
    plus ``neighborhood_penalty`` once its neighborhood has already appeared
    ``neighborhood_threshold`` times. Scores floor at 0 and the list is
    re-sorted.
    """

    def __init__(
        self,
        brand_penalty: float | None = None,
        neighborhood_penalty: float | None = None,
        neighborhood_threshold: int | None = None,
    ):
        self.brand_penalty = settings.diversity_brand_penalty if brand_penalty is None else brand_penalty
        self.neighborhood_penalty = (
            settings.diversity_neighborhood_penalty if neighborhood_penalty is None else neighborhood_penalty
        )
        self.neighborhood_threshold = (
            settings.diversity_neighborhood_threshold
            if neighborhood_threshold is None
            else neighborhood_threshold
        )

    def penalty_for(self, brand_seen: int, neighborhood_seen: int) -> float:
        penalty = self.brand_penalty * brand_seen
        if neighborhood_seen >= self.neighborhood_threshold:
            penalty += self.neighborhood_penalty
        return penalty

    def rerank(self, results: list[ScoredResult]) -> list[ScoredResult]:
        seen_brands: dict[str, int] = {}
        seen_neighborhoods: dict[str, int] = {}
        adjusted: list[ScoredResult] = []

        for result in results:
            brand = classify_brand(pick(result.data, "name"))
            neighborhood = neighborhood_of(result.data)

            brand_count = seen_brands.get(brand, 0) if brand else 0
            area_count = seen_neighborhoods.get(neighborhood, 0) if neighborhood else 0
            penalty = self.penalty_for(brand_count, area_count)

            if brand:
                seen_brands[brand] = brand_count + 1
            if neighborhood:
                seen_neighborhoods[neighborhood] = area_count + 1

            if penalty:
                new_score = round(max(0.0, result.score - penalty), 2)
                result = result.model_copy(update={"score": new_score})
            adjusted.append(result)

        adjusted.sort(key=lambda r: r.score, reverse=True)
        if seen_brands:
            logger.debug(f"Diversity pass: brands seen {seen_brands}")
        return adjusted
