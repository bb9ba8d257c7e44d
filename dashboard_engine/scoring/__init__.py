"""
scoring/ - Sales Dashboard Scoring Engine

Modules:
    utils.py            - Decimal, coercion and date utilities
    comparisons.py      - Shared operator semantics (rules and filters)
    priority_scorer.py  - Weighted priority score and tier (ScoringEngine)
    risk_rules.py       - Risk rule evaluation (RiskRuleEvaluator)
    dedup.py            - Domain-key dedup grouping (DedupGroupingEngine)
    deal_health.py      - MEDDPICC deal health (DealHealthScorer)
    forecast.py         - Quarter pipeline forecast (PipelineForecaster)
    renewals.py         - Renewal risk (RenewalAssessor)
"""
