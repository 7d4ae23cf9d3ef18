"""
Per-line metric matching for EXPLAIN ANALYZE text output.
Each extractor is independent and yields None when its pattern is absent or
unparseable, so a missing metric is never reported as zero.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from .models import BufferCounts, Buffers, PlanNode, Range
from .operators import OperatorKind, match_operator

COST_RE = re.compile(r'cost=([\d.]+)\.\.([\d.]+)')
TIME_RE = re.compile(r'actual time=([\d.]+)\.\.([\d.]+)')
ROWS_RE = re.compile(r'rows=(\d+)')
PLAN_ROWS_RE = re.compile(r'plan_rows=(\d+)')
ESTIMATED_ROWS_RE = re.compile(r'cost=[\d.]+\.\.[\d.]+ rows=(\d+)')
ACTUAL_ROWS_RE = re.compile(r'actual(?: time=[\d.]+\.\.[\d.]+)? rows=(\d+)')
WIDTH_RE = re.compile(r'width=(\d+)')
LOOPS_RE = re.compile(r'loops=(\d+)')
OBJECT_RE = re.compile(r'\bon (\w+(?:\.\w+)?)')
INDEX_RE = re.compile(r'\busing (\w+)')

DETAIL_RE = re.compile(r'^([A-Za-z][A-Za-z /-]*?):\s*(.*)$')
BUFFER_GROUP_RE = re.compile(r'(shared|local|temp)((?:\s+(?:hit|read|dirtied|written)=\d+)+)')
BUFFER_COUNT_RE = re.compile(r'(hit|read|dirtied|written)=(\d+)')

CONDITION_LABELS = (
    'Filter',
    'Join Filter',
    'Index Cond',
    'Recheck Cond',
    'Hash Cond',
    'Merge Cond',
    'TID Cond',
    'One-Time Filter',
)


def _range(pattern: re.Pattern) -> Callable[[str], Optional[Range]]:
    def extract(line: str) -> Optional[Range]:
        match = pattern.search(line)
        if not match:
            return None
        try:
            return Range(float(match.group(1)), float(match.group(2)))
        except ValueError:
            return None
    return extract


def _integer(pattern: re.Pattern) -> Callable[[str], Optional[int]]:
    def extract(line: str) -> Optional[int]:
        match = pattern.search(line)
        return int(match.group(1)) if match else None
    return extract


def _word(pattern: re.Pattern) -> Callable[[str], Optional[str]]:
    def extract(line: str) -> Optional[str]:
        match = pattern.search(line)
        return match.group(1) if match else None
    return extract


EXTRACTORS: Tuple[Tuple[str, Callable[[str], Any]], ...] = (
    ('cost', _range(COST_RE)),
    ('time', _range(TIME_RE)),
    ('rows', _integer(ROWS_RE)),
    ('planned_rows', _integer(PLAN_ROWS_RE)),
    ('estimated_rows', _integer(ESTIMATED_ROWS_RE)),
    ('actual_rows', _integer(ACTUAL_ROWS_RE)),
    ('width', _integer(WIDTH_RE)),
    ('loops', _integer(LOOPS_RE)),
    ('object_name', _word(OBJECT_RE)),
    ('index_name', _word(INDEX_RE)),
)


@dataclass
class MatchedLine:
    indentation: int
    kind: OperatorKind
    operation: str
    metrics: Dict[str, Any]
    never_executed: bool = False


def indentation_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def match_line(line: str) -> Optional[MatchedLine]:
    """Match an operator line; detail and malformed lines return None."""
    trimmed = line.strip()
    operator = match_operator(trimmed)
    if operator is None:
        return None
    kind, operation = operator
    return MatchedLine(
        indentation=indentation_of(line),
        kind=kind,
        operation=operation,
        metrics={name: extract(trimmed) for name, extract in EXTRACTORS},
        never_executed='(never executed)' in trimmed,
    )


def parse_buffers(text: str) -> Buffers:
    """Parse the body of a ``Buffers:`` line, e.g. ``shared hit=12 read=3, temp written=8``."""
    buffers = Buffers()
    for group, counts in BUFFER_GROUP_RE.findall(text):
        values = {name: int(value) for name, value in BUFFER_COUNT_RE.findall(counts)}
        setattr(buffers, group, BufferCounts(**values))
    return buffers


def fold_detail(node: PlanNode, line: str) -> None:
    """Attach a continuation line (Filter, Buffers, Sort Key, ...) to its node."""
    trimmed = line.strip()
    match = DETAIL_RE.match(trimmed)
    if not match:
        node.details.append(trimmed)
        return

    label, value = match.group(1), match.group(2).strip()
    if label in CONDITION_LABELS:
        node.conditions[label] = value
    elif label == 'Buffers':
        node.buffers = parse_buffers(value)
    elif label == 'Sort Key':
        node.sort_keys = [key.strip() for key in value.split(',') if key.strip()]
    elif label == 'Rows Removed by Filter' and value.isdigit():
        node.rows_removed_by_filter = int(value)
    elif label == 'Workers Launched' and value.isdigit():
        node.workers = int(value)
    elif label == 'Workers Planned' and value.isdigit():
        if node.workers is None:
            node.workers = int(value)
    else:
        node.details.append(trimmed)
