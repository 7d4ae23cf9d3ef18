"""
Rule-based performance analysis of parsed plan nodes.
Detects common plan problems and suggests remediations.
"""
import re
from typing import List, Optional, Tuple

from .models import Issue, NodeAssessment, PlanNode, PlanStatistics, Recommendation

SEQ_SCAN_ROWS = 1000
HIGH_COST = 1000
ESTIMATE_RATIO_HIGH = 10
ESTIMATE_RATIO_LOW = 0.1
NESTED_LOOP_LOOPS = 100
SLOW_OPERATION_MS = 100
SLOW_QUERY_MS = 1000

HIGH_COST_FLAG = 100
HIGH_COST_AVERAGE_FACTOR = 3

TIMING_TIERS = (
    (1000, 'critical'),
    (500, 'high'),
    (100, 'medium'),
    (10, 'low'),
)


def is_high_cost(node: PlanNode, average_cost: float) -> bool:
    """Cost above 100, or above three times the plan's average cost."""
    if not node.cost:
        return False
    return node.cost.end > HIGH_COST_FLAG or node.cost.end > average_cost * HIGH_COST_AVERAGE_FACTOR


def has_row_mismatch(node: PlanNode) -> bool:
    if node.rows is None or node.planned_rows is None:
        return False
    if node.rows == 0 or node.planned_rows == 0:
        return True
    return abs(node.rows - node.planned_rows) / max(node.planned_rows, 1) * 100 > 10


def row_mismatch_severity(node: PlanNode) -> str:
    if node.rows is None or node.planned_rows is None:
        return 'none'
    if node.rows == 0 and node.planned_rows > 0:
        return 'severe'
    if node.planned_rows == 0:
        return 'severe' if node.rows > 0 else 'low'

    ratio = node.rows / node.planned_rows
    if ratio > 10 or ratio < 0.1:
        return 'severe'
    if ratio > 3 or ratio < 0.3:
        return 'moderate'
    return 'low'


def timing_tier(time_ms: Optional[float]) -> str:
    if time_ms is None:
        return 'minimal'
    for threshold, tier in TIMING_TIERS:
        if time_ms > threshold:
            return tier
    return 'minimal'


def node_badges(node: PlanNode, stats: PlanStatistics) -> List[str]:
    badges = []
    if node.id == stats.slowest_node_id and node.time and node.time.end > 10:
        badges.append('slowest')
    if node.id == stats.largest_node_id and node.rows and node.rows > 100:
        badges.append('largest')
    if node.id == stats.costliest_node_id and node.cost and node.cost.end > 100:
        badges.append('costliest')
    return badges


def extract_columns_from_condition(condition: str) -> List[str]:
    """Extract column names compared in a filter condition."""
    # Drop type casts such as ::text or ::character varying
    condition = re.sub(r'::[a-z ]+(\[\])?', '', condition)
    columns = []
    parts = re.split(r'\s+AND\s+|\s+OR\s+', condition)
    for part in parts:
        match = re.search(r'(\w+)\)*\s*(?:=|<>|!=|<|>|~~|LIKE\b|IS\b|IN\b)', part)
        if match and not match.group(1).isdigit() and match.group(1) not in columns:
            columns.append(match.group(1))
    return columns


def index_sql(table: Optional[str], columns: List[str]) -> Optional[str]:
    if not table:
        return None
    prefix = f"idx_{table.replace('.', '_')}"
    if not columns:
        return f"CREATE INDEX {prefix}_cols ON {table} (column_name);"
    return f"CREATE INDEX {prefix}_{'_'.join(columns)} ON {table} ({', '.join(columns)});"


class PerformanceAnalyzer:
    """Applies the plan rule set. Rules are independent; a node may trigger several."""

    def analyze(self, nodes: List[PlanNode]) -> Tuple[List[Issue], List[Recommendation]]:
        issues: List[Issue] = []
        recommendations: List[Recommendation] = []

        for node in nodes:
            self._check_sequential_scan(node, issues, recommendations)
            self._check_high_cost(node, issues)
            self._check_row_estimate(node, issues, recommendations)
            self._check_nested_loop(node, issues, recommendations)
            self._check_slow_operation(node, issues)

        total_time = sum(node.time.end for node in nodes if node.time)
        if total_time > SLOW_QUERY_MS:
            recommendations.append(Recommendation(
                category='config',
                title='Consider Query Optimization',
                description=f"Total execution time is {total_time:.1f}ms. Consider optimizing this query."
            ))

        return issues, recommendations

    def assess(self, nodes: List[PlanNode], stats: PlanStatistics) -> List[NodeAssessment]:
        """Display classifications for every node."""
        return [
            NodeAssessment(
                node_id=node.id,
                high_cost=is_high_cost(node, stats.average_cost),
                row_mismatch=has_row_mismatch(node),
                row_mismatch_severity=row_mismatch_severity(node),
                timing_tier=timing_tier(node.time.end if node.time else None),
                badges=node_badges(node, stats)
            )
            for node in nodes
        ]

    def _check_sequential_scan(self, node, issues, recommendations):
        if 'Seq Scan' not in node.operation or not node.rows or node.rows <= SEQ_SCAN_ROWS:
            return
        issues.append(Issue(
            severity='warning',
            title='Sequential Scan Detected',
            description=f"Sequential scan on {node.object_name or 'table'} with {node.rows} rows",
            impacted_operation=node.operation,
            impact='high'
        ))
        columns = extract_columns_from_condition(node.conditions.get('Filter', ''))
        recommendations.append(Recommendation(
            category='index',
            title='Consider Adding Index',
            description=f"Create an index on the filtered columns for {node.object_name or 'this table'}",
            suggested_sql=index_sql(node.object_name, columns)
        ))

    def _check_high_cost(self, node, issues):
        if not node.cost or node.cost.end <= HIGH_COST:
            return
        issues.append(Issue(
            severity='error',
            title='High Cost Operation',
            description=f"{node.name} has cost {node.cost.end:.0f}",
            impacted_operation=node.operation,
            impact='high'
        ))

    def _check_row_estimate(self, node, issues, recommendations):
        if node.rows is None or node.planned_rows is None:
            return
        ratio = node.rows / max(node.planned_rows, 1)
        if ESTIMATE_RATIO_LOW <= ratio <= ESTIMATE_RATIO_HIGH:
            return
        issues.append(Issue(
            severity='warning',
            title='Row Estimation Issue',
            description=f"Estimated {node.planned_rows} rows, actual {node.rows} rows",
            impacted_operation=node.operation
        ))
        recommendations.append(Recommendation(
            category='statistics',
            title='Update Table Statistics',
            description='Run ANALYZE to update table statistics for better planning',
            suggested_sql=f"ANALYZE {node.object_name};" if node.object_name else 'ANALYZE table_name;'
        ))

    def _check_nested_loop(self, node, issues, recommendations):
        if 'Nested Loop' not in node.operation or not node.loops or node.loops <= NESTED_LOOP_LOOPS:
            return
        issues.append(Issue(
            severity='error',
            title='Expensive Nested Loop',
            description=f"Nested loop with {node.loops} iterations",
            impacted_operation=node.operation,
            impact='high'
        ))
        recommendations.append(Recommendation(
            category='join',
            title='Consider Hash Join',
            description='Increase work_mem or add indexes to enable hash joins',
            suggested_sql="SET work_mem = '256MB';"
        ))

    def _check_slow_operation(self, node, issues):
        if not node.time or node.time.end <= SLOW_OPERATION_MS:
            return
        issues.append(Issue(
            severity='warning',
            title='Slow Operation',
            description=f"{node.name} took {node.time.end:.1f}ms",
            impacted_operation=node.operation
        ))
