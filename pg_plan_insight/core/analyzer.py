"""
Core plan analysis functionality.
Turns an EXPLAIN ANALYZE payload into a plan tree, timing breakdown,
whole-plan statistics, issues and recommendations.
"""
import json
import logging
from typing import Dict, Any, Optional, Tuple
from pathlib import Path

from .database import DatabaseManager
from .errors import PlanInputError, PlanLimitExceeded
from .extractor import extract_plan
from .metrics import MetricsExtractor
from .models import AnalysisLimits, PlanReport, PlanTotals
from .rules import PerformanceAnalyzer
from .tree import PlanTreeBuilder
from ..utils.report import ReportGenerator

logger = logging.getLogger(__name__)


class PlanAnalyzer:
    def __init__(self, limits: Optional[AnalysisLimits] = None,
                 db_manager: Optional[DatabaseManager] = None):
        self.limits = limits or AnalysisLimits()
        self.db_manager = db_manager
        self.tree_builder = PlanTreeBuilder(self.limits)
        self.performance_analyzer = PerformanceAnalyzer()

    def analyze(self, plan_input: Any) -> PlanReport:
        """
        Analyze a plan payload.

        ``plan_input`` is a mapping of ``QUERY PLAN_<n>`` fragments, raw
        EXPLAIN text, or a list of lines. Unrecognized lines are skipped and
        plans without operators produce an empty report. Raises
        PlanInputError when the input is missing or of an unsupported type.
        """
        extracted = extract_plan(plan_input)
        report = PlanReport(
            raw_lines=extracted.raw_lines,
            raw_text=extracted.raw_text,
            planning_time_ms=extracted.planning_time_ms,
            execution_time_ms=extracted.execution_time_ms
        )
        if extracted.raw_text is not None:
            return report

        try:
            nodes = self.tree_builder.build(extracted.lines)
        except PlanLimitExceeded as e:
            logger.warning("Skipping plan analysis: %s", e)
            return report

        if not nodes:
            logger.info("No plan operators recognized in %d lines", len(extracted.lines))
            return report

        total_time = MetricsExtractor.total_time(nodes, extracted.execution_time_ms)
        stats = MetricsExtractor.summarize(nodes)
        issues, recommendations = self.performance_analyzer.analyze(nodes)

        report.nodes = nodes
        report.timing_breakdown = MetricsExtractor.timing_breakdown(nodes, total_time)
        report.totals = PlanTotals(
            total_time_ms=total_time,
            slowest_node_id=stats.slowest_node_id,
            largest_node_id=stats.largest_node_id,
            costliest_node_id=stats.costliest_node_id
        )
        report.statistics = stats
        report.issues = issues
        report.recommendations = recommendations
        report.assessments = self.performance_analyzer.assess(nodes, stats)

        logger.info(
            "Analyzed %d plan nodes: %d issues, %d recommendations",
            len(nodes), len(issues), len(recommendations)
        )
        return report

    def analyze_explain_response(self, explain_data: Dict[str, Any]) -> Tuple[str, PlanReport]:
        """
        Analyze a plan retrieval payload (``query``, ``database``, ``status``, ``plan``).

        Returns the plain-text rendition of the plan and its report. Payloads
        whose plan cannot be read as fragments yield an empty report.
        """
        if not isinstance(explain_data, dict):
            raise PlanInputError(f"Unsupported explain payload type: {type(explain_data).__name__}")

        plan = explain_data.get('plan')
        if isinstance(plan, str) and plan.startswith('{'):
            try:
                plan_data = json.loads(plan)
            except json.JSONDecodeError:
                logger.warning("Plan payload is not valid JSON; showing it as raw text")
                return plan, PlanReport(raw_text=plan)
        elif isinstance(plan, dict):
            plan_data = plan
        else:
            return ReportGenerator.format_explain_fallback(explain_data), PlanReport()

        formatted = ReportGenerator.format_explain_plan(explain_data, plan_data)
        return formatted, self.analyze(plan_data)

    def analyze_query(self, query_path: Path) -> Dict[str, Any]:
        """Run EXPLAIN ANALYZE for a query file and analyze the resulting plan."""
        if self.db_manager is None:
            raise ValueError("A database connection is required to analyze a query")

        query_text = query_path.read_text().strip()
        explain_data = self.db_manager.fetch_explain(query_text)
        formatted, report = self.analyze_explain_response(explain_data)

        return {
            'query_path': query_path,
            'query_text': query_text,
            'status': explain_data.get('status'),
            'formatted_plan': formatted,
            'report': report
        }

    def analyze_file(self, plan_path: Path) -> Dict[str, Any]:
        """Analyze a saved plan: raw EXPLAIN text, or a JSON retrieval payload."""
        content = plan_path.read_text()
        if plan_path.suffix == '.json':
            explain_data = json.loads(content)
            if isinstance(explain_data, dict) and 'plan' in explain_data:
                formatted, report = self.analyze_explain_response(explain_data)
            else:
                formatted, report = content, self.analyze(explain_data)
        else:
            formatted, report = content, self.analyze(content)

        return {
            'plan_path': plan_path,
            'formatted_plan': formatted,
            'report': report
        }
