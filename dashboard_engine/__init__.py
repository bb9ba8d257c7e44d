"""
Sales Dashboard Engine

Scoring, deduplication and risk aggregation for role-specific sales
dashboards.
"""

__version__ = "1.0.0"
