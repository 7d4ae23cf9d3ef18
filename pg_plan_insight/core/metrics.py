"""
Timing and statistics aggregation over parsed plan nodes.
"""
from typing import Any, Dict, List, Optional

from .models import PlanNode, PlanStatistics, QueryTiming

# Operators faster than this never show up in the timing breakdown.
MIN_TIMING_MS = 0.1
SIGNIFICANT_PERCENTAGE = 1
SIGNIFICANT_TIME_MS = 10


def _scan_type(node: PlanNode) -> str:
    return node.name.split(' using ')[0].split(' on ')[0]


class MetricsExtractor:
    @staticmethod
    def node_time_sum(nodes: List[PlanNode]) -> float:
        return sum(node.time.end for node in nodes if node.time)

    @staticmethod
    def total_time(nodes: List[PlanNode], execution_time_ms: Optional[float] = None) -> float:
        """Explicit Execution Time when reported, else the sum of node times."""
        if execution_time_ms is not None:
            return execution_time_ms
        return MetricsExtractor.node_time_sum(nodes)

    @staticmethod
    def timing_breakdown(nodes: List[PlanNode], total_time: float) -> List[QueryTiming]:
        """Per-node share of total time, keeping only significant operators."""
        timings: List[QueryTiming] = []
        if total_time <= 0:
            return timings

        for node in nodes:
            if not node.time or node.time.end <= MIN_TIMING_MS:
                continue
            percentage = (node.time.end / total_time) * 100
            # Significant by share of the total or by absolute time
            if percentage > SIGNIFICANT_PERCENTAGE or node.time.end > SIGNIFICANT_TIME_MS:
                timings.append(QueryTiming(
                    name=node.name,
                    time=node.time.end,
                    percentage=percentage,
                    calls=node.loops or 1
                ))

        timings.sort(key=lambda timing: timing.time, reverse=True)
        return timings

    @staticmethod
    def summarize(nodes: List[PlanNode]) -> PlanStatistics:
        """Whole-plan aggregates in a single pass; ties keep the first node seen."""
        stats = PlanStatistics()
        slowest = largest = costliest = None
        total_cost = 0.0

        for node in nodes:
            if node.time:
                stats.total_node_time_ms += node.time.end
                if slowest is None or node.time.end > slowest.time.end:
                    slowest = node
            if node.rows:
                if largest is None or node.rows > largest.rows:
                    largest = node
            if node.cost:
                total_cost += node.cost.end
                if costliest is None or node.cost.end > costliest.cost.end:
                    costliest = node

        stats.average_cost = total_cost / len(nodes) if nodes else 0.0
        stats.slowest_node_id = slowest.id if slowest else None
        stats.largest_node_id = largest.id if largest else None
        stats.costliest_node_id = costliest.id if costliest else None
        stats.node_type_stats = MetricsExtractor.analyze_node_type_stats(nodes)
        stats.table_stats = MetricsExtractor.analyze_table_stats(nodes)
        stats.buffer_stats = MetricsExtractor.extract_buffer_stats(nodes)
        return stats

    @staticmethod
    def analyze_node_type_stats(nodes: List[PlanNode]) -> Dict[str, Any]:
        """Analyze statistics per operator type."""
        stats: Dict[str, Any] = {}
        for node in nodes:
            node_type = node.kind.value
            if node_type not in stats:
                stats[node_type] = {
                    'count': 0,
                    'total_time': 0.0,
                    'total_rows': 0,
                    'total_cost': 0.0
                }
            stats[node_type]['count'] += 1
            stats[node_type]['total_time'] += node.time.end if node.time else 0.0
            stats[node_type]['total_rows'] += node.rows or 0
            stats[node_type]['total_cost'] += node.cost.end if node.cost else 0.0
        return stats

    @staticmethod
    def analyze_table_stats(nodes: List[PlanNode]) -> Dict[str, Any]:
        """Analyze statistics per relation."""
        stats: Dict[str, Any] = {}
        for node in nodes:
            if not node.object_name:
                continue
            cost = node.cost.end if node.cost else 0.0
            if node.object_name not in stats:
                stats[node.object_name] = {
                    'scan_type': _scan_type(node),
                    'rows': node.rows or 0,
                    'cost': cost
                }
            else:
                table = stats[node.object_name]
                # Prefer reporting an index scan over a sequential one
                if 'Index' in node.kind.value and 'Seq' in table['scan_type']:
                    table['scan_type'] = _scan_type(node)
                table['rows'] += node.rows or 0
                table['cost'] += cost
        return stats

    @staticmethod
    def extract_buffer_stats(nodes: List[PlanNode]) -> Dict[str, Any]:
        """Buffer counters of the top-level nodes, which already include their children."""
        stats = {
            'buffers_hit': 0,
            'buffers_read': 0,
            'buffers_dirtied': 0,
            'buffers_written': 0,
            'temp_read': 0,
            'temp_written': 0,
            'buffers_hit_rate': 0.0
        }
        for node in nodes:
            if not node.is_root or not node.buffers:
                continue
            shared = node.buffers.shared
            if shared:
                stats['buffers_hit'] += shared.hit or 0
                stats['buffers_read'] += shared.read or 0
                stats['buffers_dirtied'] += shared.dirtied or 0
                stats['buffers_written'] += shared.written or 0
            temp = node.buffers.temp
            if temp:
                stats['temp_read'] += temp.read or 0
                stats['temp_written'] += temp.written or 0

        total_buffers = stats['buffers_hit'] + stats['buffers_read']
        if total_buffers > 0:
            stats['buffers_hit_rate'] = (stats['buffers_hit'] / total_buffers) * 100
        return stats
