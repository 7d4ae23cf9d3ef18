"""
Report generation utilities for plan analysis.
"""
from typing import Dict, Any, List
from datetime import datetime
import json

from ..core.extractor import fragment_entries
from ..core.models import PlanReport
from ..core.tree import walk

SUMMARY_PROMPT = (
    "Can you analyze this PostgreSQL EXPLAIN ANALYZE output? Please provide insights about "
    "the performance and any improvement recommendations. Organize your response with "
    "sections for identified issues and specific recommendations.\n"
    "\n"
    "If there are performance problems, please suggest indexes that would improve the query "
    "using proper PostgreSQL CREATE INDEX syntax.\n"
    "\n"
    "EXPLAIN ANALYZE output:\n"
)


def _format_number(value: Any) -> str:
    """Render numbers the way the plan service does: 12.0 becomes 12."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_fragment(value: Any) -> str:
    """Render a fragment value as the plan service prints it: None becomes null."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return _format_number(value)


class ReportGenerator:
    @staticmethod
    def format_explain_plan(explain_data: Dict[str, Any], plan_data: Dict[str, Any]) -> str:
        """Plain-text rendition of a plan payload, as sent for summarization."""
        formatted = f"Query: {explain_data.get('query') or 'Unknown'}\n"

        if explain_data.get('database'):
            formatted += f"Database: {explain_data['database']}\n"

        if explain_data.get('status'):
            formatted += f"Status: {explain_data['status']}\n"

        if plan_data.get('duration_ms'):
            formatted += f"Execution Time: {_format_number(plan_data['duration_ms'])}ms\n"

        formatted += '\n--- EXPLAIN ANALYZE ---\n\n'

        entries = fragment_entries(plan_data)
        if entries:
            for _, line in entries:
                formatted += f"{_format_fragment(line)}\n"
        else:
            formatted += json.dumps(plan_data, indent=2, ensure_ascii=False)

        return formatted

    @staticmethod
    def format_explain_fallback(explain_data: Dict[str, Any]) -> str:
        """Plain-text rendition of a payload that carries no plan."""
        formatted = f"Query: {explain_data.get('query') or 'Unknown'}\n"

        if explain_data.get('database'):
            formatted += f"Database: {explain_data['database']}\n"

        if explain_data.get('status'):
            formatted += f"Status: {explain_data['status']}\n\n"

        formatted += json.dumps(explain_data, indent=2, ensure_ascii=False, default=str)
        return formatted

    @staticmethod
    def build_summary_prompt(formatted_plan: str) -> str:
        return SUMMARY_PROMPT + formatted_plan

    @staticmethod
    def format_time(ms: float) -> str:
        """Format milliseconds into human readable string"""
        if ms < 1:
            return f"{ms * 1000:.2f} μs"
        elif ms < 1000:
            return f"{ms:.2f} ms"
        else:
            return f"{ms / 1000:.2f} s"

    @staticmethod
    def generate_json_report(report: PlanReport) -> str:
        return json.dumps(report.as_dict(), indent=2, ensure_ascii=False)

    @staticmethod
    def generate_text_report(report: PlanReport, title: str = '') -> str:
        """Generate text report from analysis results."""
        lines = [
            "PostgreSQL Query Plan Analysis Report",
            "========================================",
            f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        ]
        if title:
            lines.append(f"Source: {title}")

        if report.is_empty:
            lines.extend(["", "No visualization data: the plan contained no recognizable operators."])
            if report.raw_text:
                lines.extend(["", "Raw Plan", "--------------------", report.raw_text])
            return "\n".join(lines)

        totals = report.totals
        nodes = report.nodes
        lines.extend([
            "",
            "Summary",
            "--------------------",
            f"Total Time:     {ReportGenerator.format_time(totals.total_time_ms)}",
        ])
        if report.planning_time_ms is not None:
            lines.append(f"Planning Time:  {ReportGenerator.format_time(report.planning_time_ms)}")
        lines.append(f"Plan Nodes:     {len(nodes)}")
        if totals.slowest_node_id is not None:
            lines.append(f"Slowest Node:   {nodes[totals.slowest_node_id].name}")
        if totals.largest_node_id is not None:
            lines.append(f"Largest Node:   {nodes[totals.largest_node_id].name}")
        if totals.costliest_node_id is not None:
            lines.append(f"Costliest Node: {nodes[totals.costliest_node_id].name}")

        buffer_stats = report.statistics.buffer_stats
        if buffer_stats.get('buffers_hit') or buffer_stats.get('buffers_read'):
            lines.extend([
                "",
                "Buffer Statistics:",
                f"  Buffers Hit:     {buffer_stats['buffers_hit']}",
                f"  Buffers Read:    {buffer_stats['buffers_read']}",
                f"  Buffer Hit Rate: {buffer_stats['buffers_hit_rate']:.1f}%",
            ])

        lines.extend(["", "Execution Plan", "--------------------"])
        lines.extend(ReportGenerator._format_plan_tree_text(report))

        if report.timing_breakdown:
            lines.extend(["", "Execution Time Breakdown", "--------------------"])
            for timing in report.timing_breakdown:
                lines.append(
                    f"- {timing.name}: {ReportGenerator.format_time(timing.time)} "
                    f"({timing.percentage:.1f}%, {timing.calls} calls)"
                )

        lines.extend([
            "",
            "Node Types:",
            *ReportGenerator._format_node_type_stats_text(report.statistics.node_type_stats),
            "",
            "Table Statistics:",
            *ReportGenerator._format_table_stats_text(report.statistics.table_stats),
        ])

        if report.issues:
            lines.extend([
                "",
                f"Performance Issues ({len(report.issues)}):",
                *[f"- [{i.severity.upper()}] {i.title}: {i.description}" for i in report.issues]
            ])
        else:
            lines.extend(["", "No issues found."])

        if report.recommendations:
            lines.extend(["", "Recommendations:"])
            for r in report.recommendations:
                lines.append(f"- {r.title}: {r.description}")
                if r.suggested_sql:
                    lines.append(f"    {r.suggested_sql}")

        return "\n".join(lines)

    @staticmethod
    def _format_plan_tree_text(report: PlanReport) -> List[str]:
        lines = []
        for node, depth in walk(report.nodes):
            indent = "  " * (depth - 1)
            assessment = report.assessments[node.id] if report.assessments else None
            details = []
            if node.time:
                details.append(f"time={ReportGenerator.format_time(node.time.end)}")
            if node.rows is not None:
                details.append(f"rows={node.rows:,}")
            if node.cost:
                details.append(f"cost={node.cost.end:.1f}")
            if assessment and assessment.badges:
                details.append(', '.join(assessment.badges))
            suffix = f" [{'; '.join(details)}]" if details else ""
            lines.append(f"{indent}→ {node.name}{suffix}")
        return lines

    @staticmethod
    def _format_node_type_stats_text(stats: Dict[str, Any]) -> List[str]:
        lines = []
        for node_type, data in sorted(stats.items(), key=lambda item: item[1]['total_time'], reverse=True):
            lines.append(
                f"  {node_type}: {data['count']} nodes, "
                f"{ReportGenerator.format_time(data['total_time'])}, "
                f"{data['total_rows']:,} rows, cost {data['total_cost']:.1f}"
            )
        return lines

    @staticmethod
    def _format_table_stats_text(stats: Dict[str, Any]) -> List[str]:
        lines = []
        for table, data in sorted(stats.items()):
            lines.append(f"  {table}: {data['scan_type']}, {data['rows']:,} rows, cost {data['cost']:.1f}")
        return lines
