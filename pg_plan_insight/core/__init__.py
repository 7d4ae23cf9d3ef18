"""
Core functionality for PostgreSQL query plan analysis
"""
from .errors import PlanAnalysisError, PlanInputError, PlanLimitExceeded
from .models import (
    ROOT,
    AnalysisLimits,
    Issue,
    NodeAssessment,
    PlanNode,
    PlanReport,
    PlanStatistics,
    PlanTotals,
    QueryTiming,
    Range,
    Recommendation,
)
from .operators import OperatorKind
from .extractor import extract_plan
from .tree import PlanTreeBuilder
from .metrics import MetricsExtractor
from .rules import PerformanceAnalyzer
from .database import DatabaseManager, DatabaseConfig
from .analyzer import PlanAnalyzer
