"""
pg-plan-insight: PostgreSQL EXPLAIN ANALYZE plan analysis.
"""
from .core import PlanAnalyzer, PlanReport, PlanInputError, ROOT

__version__ = '0.1.0'


def analyze_plan(plan_input) -> PlanReport:
    """Analyze a plan payload with default limits."""
    return PlanAnalyzer().analyze(plan_input)
