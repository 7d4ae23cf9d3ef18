"""Test per-line metric matching."""

import pytest
from pg_plan_insight.core.matcher import fold_detail, match_line, parse_buffers
from pg_plan_insight.core.models import Range
from pg_plan_insight.core.operators import OperatorKind

SEQ_SCAN_LINE = (
    '  ->  Seq Scan on orders o  (cost=0.00..870.00 rows=50000 width=36) '
    '(actual time=0.010..120.500 rows=49000 loops=3)'
)


def test_extracts_metrics_from_operator_line():
    matched = match_line(SEQ_SCAN_LINE)

    assert matched.indentation == 2
    assert matched.kind == OperatorKind.SEQ_SCAN
    assert matched.operation.startswith('Seq Scan on orders o')
    assert matched.metrics['cost'] == Range(0.0, 870.0)
    assert matched.metrics['time'] == Range(0.010, 120.5)
    assert matched.metrics['object_name'] == 'orders'
    assert matched.metrics['loops'] == 3
    assert matched.metrics['width'] == 36


def test_rows_is_first_match_and_both_groups_surfaced():
    # The first rows= on a line is the planner estimate, not the actual count
    matched = match_line(SEQ_SCAN_LINE)
    assert matched.metrics['rows'] == 50000
    assert matched.metrics['estimated_rows'] == 50000
    assert matched.metrics['actual_rows'] == 49000
    assert matched.metrics['planned_rows'] is None


def test_index_name_and_object():
    matched = match_line('->  Index Scan using customers_pkey on customers c  (cost=0.28..8.30 rows=1 width=16)')
    assert matched.kind == OperatorKind.INDEX_SCAN
    assert matched.metrics['index_name'] == 'customers_pkey'
    assert matched.metrics['object_name'] == 'customers'
    assert matched.metrics['time'] is None


def test_unparseable_metric_left_absent():
    matched = match_line('Sort  (cost=1.2.3..4.00 rows=10 width=4)')
    assert matched.metrics['cost'] is None
    assert matched.metrics['rows'] == 10


@pytest.mark.parametrize('line,kind', [
    ('Hash Join  (cost=1.00..2.00 rows=1 width=4)', OperatorKind.HASH_JOIN),
    ('Hash  (cost=1.00..2.00 rows=1 width=4)', OperatorKind.HASH),
    ('HashAggregate  (cost=1.00..2.00 rows=1 width=4)', OperatorKind.HASH_AGGREGATE),
    ('->  Merge Left Join  (cost=1.00..2.00 rows=1 width=4)', OperatorKind.MERGE_JOIN),
    ('->  Gather Merge  (cost=1.00..2.00 rows=1 width=4)', OperatorKind.GATHER_MERGE),
    ('->  Materialize  (cost=1.00..2.00 rows=1 width=4)', OperatorKind.MATERIAL),
    ('->  Parallel Seq Scan on t  (cost=1.00..2.00 rows=1 width=4)', OperatorKind.PARALLEL),
    ('Nested Loop Left Join  (cost=1.00..2.00 rows=1 width=4)', OperatorKind.NESTED_LOOP),
])
def test_longest_operator_keyword_wins(line, kind):
    assert match_line(line).kind == kind


@pytest.mark.parametrize('line', [
    '        Filter: (status = 1)',
    '  Buffers: shared hit=3',
    'QUERY PLAN',
    'Sort Key: x',
    'Sort Method: quicksort  Memory: 25kB',
    '        Hash Cond: (a = b)',
    'Hash Buckets: 1024  Batches: 1',
    'Group Key: a',
    'Hash Key: a.x',
    'Planning:',
])
def test_detail_lines_are_not_operators(line):
    assert match_line(line) is None


def test_never_executed_flag():
    matched = match_line('->  Seq Scan on t  (cost=0.00..1.00 rows=1 width=4) (never executed)')
    assert matched.never_executed
    assert matched.metrics['time'] is None


def test_parse_buffers_groups():
    buffers = parse_buffers('shared hit=12 read=3 dirtied=1, temp read=5 written=8')
    assert buffers.shared.hit == 12
    assert buffers.shared.read == 3
    assert buffers.shared.dirtied == 1
    assert buffers.shared.written is None
    assert buffers.local is None
    assert buffers.temp.written == 8


def test_fold_detail_lines(make_node):
    node = make_node()
    fold_detail(node, '      Filter: (amount > 100)')
    fold_detail(node, '      Rows Removed by Filter: 42')
    fold_detail(node, '      Sort Key: a, b DESC')
    fold_detail(node, '      Workers Planned: 2')
    fold_detail(node, '      Workers Launched: 1')
    fold_detail(node, '      Buffers: shared hit=7')
    fold_detail(node, '      Worker 0:  actual time=0.1..0.2 rows=1 loops=1')

    assert node.conditions == {'Filter': '(amount > 100)'}
    assert node.rows_removed_by_filter == 42
    assert node.sort_keys == ['a', 'b DESC']
    assert node.workers == 1
    assert node.buffers.shared.hit == 7
    assert node.details == ['Worker 0:  actual time=0.1..0.2 rows=1 loops=1']
