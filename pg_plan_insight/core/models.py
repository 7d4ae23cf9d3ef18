"""
Data models for plan analysis.
"""
import re
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum

from .operators import OperatorKind

ROOT = -1


@dataclass(frozen=True)
class Range:
    """A start..end interval: planner cost, or actual time in milliseconds."""
    start: float
    end: float


@dataclass
class BufferCounts:
    hit: Optional[int] = None
    read: Optional[int] = None
    dirtied: Optional[int] = None
    written: Optional[int] = None


@dataclass
class Buffers:
    shared: Optional[BufferCounts] = None
    local: Optional[BufferCounts] = None
    temp: Optional[BufferCounts] = None


@dataclass
class PlanNode:
    """One operator of an execution plan, linked to its parent by id."""
    id: int
    parent_id: int
    operation: str
    kind: OperatorKind
    indentation: int = 0
    cost: Optional[Range] = None
    time: Optional[Range] = None
    # First `rows=` on the line, which PostgreSQL prints inside the cost clause.
    rows: Optional[int] = None
    # `plan_rows=` token; standard text output does not print it.
    planned_rows: Optional[int] = None
    estimated_rows: Optional[int] = None
    actual_rows: Optional[int] = None
    width: Optional[int] = None
    loops: Optional[int] = None
    workers: Optional[int] = None
    buffers: Optional[Buffers] = None
    object_name: Optional[str] = None
    index_name: Optional[str] = None
    never_executed: bool = False
    conditions: Dict[str, str] = field(default_factory=dict)
    sort_keys: List[str] = field(default_factory=list)
    rows_removed_by_filter: Optional[int] = None
    details: List[str] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.parent_id == ROOT

    @property
    def name(self) -> str:
        """Operation text without the metrics in parentheses."""
        return self.operation.split('(')[0].strip()


@dataclass
class QueryTiming:
    name: str
    time: float
    percentage: float
    calls: int = 1


@dataclass
class Issue:
    """Represents a problem identified in a query plan."""
    severity: str
    title: str
    description: str
    impacted_operation: str
    impact: str = 'medium'


@dataclass
class Recommendation:
    """Represents a suggested remediation for a plan issue."""
    category: str
    title: str
    description: str
    suggested_sql: Optional[str] = None


@dataclass
class PlanTotals:
    total_time_ms: float = 0.0
    slowest_node_id: Optional[int] = None
    largest_node_id: Optional[int] = None
    costliest_node_id: Optional[int] = None


@dataclass
class PlanStatistics:
    total_node_time_ms: float = 0.0
    average_cost: float = 0.0
    slowest_node_id: Optional[int] = None
    largest_node_id: Optional[int] = None
    costliest_node_id: Optional[int] = None
    node_type_stats: Dict[str, Any] = field(default_factory=dict)
    table_stats: Dict[str, Any] = field(default_factory=dict)
    buffer_stats: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NodeAssessment:
    """Display classifications derived for a single node."""
    node_id: int
    high_cost: bool
    row_mismatch: bool
    row_mismatch_severity: str
    timing_tier: str
    badges: List[str] = field(default_factory=list)


@dataclass
class AnalysisLimits:
    max_lines: int = 10000
    max_depth: int = 100


@dataclass
class PlanReport:
    nodes: List[PlanNode] = field(default_factory=list)
    timing_breakdown: List[QueryTiming] = field(default_factory=list)
    totals: PlanTotals = field(default_factory=PlanTotals)
    issues: List[Issue] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    statistics: PlanStatistics = field(default_factory=PlanStatistics)
    assessments: List[NodeAssessment] = field(default_factory=list)
    planning_time_ms: Optional[float] = None
    execution_time_ms: Optional[float] = None
    raw_lines: List[str] = field(default_factory=list)
    # Set when the payload could not be read as line fragments.
    raw_text: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def as_dict(self) -> Dict[str, Any]:
        """Serialize to plain JSON types with camelCase keys."""
        return _to_plain(self)


def _camel(name: str) -> str:
    return re.sub(r'_(\w)', lambda m: m.group(1).upper(), name)


def _to_plain(value: Any) -> Any:
    if is_dataclass(value):
        return {_camel(f.name): _to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value
