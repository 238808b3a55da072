"""Ranking engine — constraint-based multi-domain scoring and filtering.

Modules:
    query_compiler     TripBrief → per-domain ProviderQuery
    constraint_filter  Hard constraints as absolute filters
    scoring_engine     Weighted, explainable soft-constraint scoring
    diversity          Brand / neighborhood near-duplicate demotion
    heuristics         Brand and location-preference matching
    currency_service   Rate snapshot, conversion and price display
    result_ranker      Pipeline orchestration
    brief_validator    Trip brief completeness messages

Pipeline:
    QueryCompiler → ConstraintFilter → ScoringEngine → DiversityReranker → sort
"""
