"""
Operator keywords recognized at the start of an EXPLAIN plan line.
"""
import re
from enum import Enum
from typing import Dict, Optional, Tuple


class OperatorKind(Enum):
    SEQ_SCAN = 'Seq Scan'
    INDEX_SCAN = 'Index Scan'
    INDEX_ONLY_SCAN = 'Index Only Scan'
    BITMAP_HEAP_SCAN = 'Bitmap Heap Scan'
    BITMAP_INDEX_SCAN = 'Bitmap Index Scan'
    SORT = 'Sort'
    INCREMENTAL_SORT = 'Incremental Sort'
    HASH = 'Hash'
    HASH_JOIN = 'Hash Join'
    NESTED_LOOP = 'Nested Loop'
    MERGE_JOIN = 'Merge Join'
    AGGREGATE = 'Aggregate'
    HASH_AGGREGATE = 'HashAggregate'
    MIXED_AGGREGATE = 'MixedAggregate'
    GROUP = 'Group'
    GROUP_AGGREGATE = 'GroupAggregate'
    LIMIT = 'Limit'
    RESULT = 'Result'
    UNIQUE = 'Unique'
    SUBQUERY_SCAN = 'Subquery Scan'
    FUNCTION_SCAN = 'Function Scan'
    TABLE_FUNCTION_SCAN = 'Table Function Scan'
    VALUES_SCAN = 'Values Scan'
    CTE_SCAN = 'CTE Scan'
    WORK_TABLE_SCAN = 'WorkTable Scan'
    NAMED_TUPLESTORE_SCAN = 'Named Tuplestore Scan'
    FOREIGN_SCAN = 'Foreign Scan'
    CUSTOM_SCAN = 'Custom Scan'
    TID_SCAN = 'Tid Scan'
    TID_RANGE_SCAN = 'Tid Range Scan'
    SAMPLE_SCAN = 'Sample Scan'
    GATHER = 'Gather'
    GATHER_MERGE = 'Gather Merge'
    PARALLEL = 'Parallel'
    BITMAP_AND = 'BitmapAnd'
    BITMAP_OR = 'BitmapOr'
    WINDOW_AGG = 'WindowAgg'
    SET_OP = 'SetOp'
    RECURSIVE_UNION = 'Recursive Union'
    APPEND = 'Append'
    MERGE_APPEND = 'Merge Append'
    MATERIAL = 'Material'
    MEMOIZE = 'Memoize'
    PROJECT_SET = 'ProjectSet'
    LOCK_ROWS = 'LockRows'


# Join variants share the kind of their base join.
_ALIASES: Dict[str, OperatorKind] = {
    'Materialize': OperatorKind.MATERIAL,
    'Finalize': OperatorKind.AGGREGATE,
    'Partial': OperatorKind.AGGREGATE,
}
for _join in ('Left', 'Right', 'Full', 'Semi', 'Anti', 'Right Semi', 'Right Anti'):
    _ALIASES[f'Hash {_join} Join'] = OperatorKind.HASH_JOIN
    _ALIASES[f'Merge {_join} Join'] = OperatorKind.MERGE_JOIN

KEYWORDS: Dict[str, OperatorKind] = {kind.value: kind for kind in OperatorKind}
KEYWORDS.update(_ALIASES)

# Longest keyword first so "Hash Join" wins over "Hash".
# Labelled detail lines such as "Sort Key:" or "Hash Cond:" are not operators.
OPERATION_RE = re.compile(
    r'^(->)?\s*('
    + '|'.join(re.escape(k) for k in sorted(KEYWORDS, key=len, reverse=True))
    + r')(?!\w)(?![A-Za-z /-]*:)'
)


def match_operator(trimmed_line: str) -> Optional[Tuple[OperatorKind, str]]:
    """Return the operator kind and the operation text, or None for detail lines."""
    match = OPERATION_RE.match(trimmed_line)
    if not match:
        return None
    operation = trimmed_line[2:].strip() if trimmed_line.startswith('->') else trimmed_line
    return KEYWORDS[match.group(2)], operation
