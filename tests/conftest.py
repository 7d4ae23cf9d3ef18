"""Test configuration and fixtures for pg-plan-insight."""

import pytest
from pg_plan_insight.core.database import DatabaseConfig
from pg_plan_insight.core.extractor import split_fragments
from pg_plan_insight.core.models import PlanNode, ROOT, Range
from pg_plan_insight.core.operators import OperatorKind

SAMPLE_PLAN = """\
Limit  (cost=1250.42..1250.45 rows=10 width=44) (actual time=152.301..152.305 rows=10 loops=1)
  Buffers: shared hit=120 read=30
  ->  Sort  (cost=1250.42..1275.42 rows=10000 width=44) (actual time=152.299..152.301 rows=10 loops=1)
        Sort Key: o.created_at DESC
        Sort Method: top-N heapsort  Memory: 26kB
        Buffers: shared hit=120 read=30
        ->  Hash Join  (cost=35.50..1034.33 rows=10000 width=44) (actual time=1.201..140.120 rows=9800 loops=1)
              Hash Cond: (o.customer_id = c.id)
              Buffers: shared hit=120 read=30
              ->  Seq Scan on orders o  (cost=0.00..870.00 rows=50000 width=36) (actual time=0.010..120.500 rows=50000 loops=1)
                    Filter: ((status)::text = 'open'::text)
                    Rows Removed by Filter: 1200
                    Buffers: shared hit=100 read=30
              ->  Hash  (cost=23.00..23.00 rows=1000 width=16) (actual time=1.100..1.100 rows=1000 loops=1)
                    Buckets: 1024  Batches: 1  Memory Usage: 55kB
                    Buffers: shared hit=20
                    ->  Index Scan using customers_pkey on customers c  (cost=0.28..23.00 rows=1000 width=16) (actual time=0.020..0.800 rows=1000 loops=1)
                          Buffers: shared hit=20
Planning Time: 0.412 ms
Execution Time: 152.402 ms
"""


@pytest.fixture
def sample_db_config():
    return DatabaseConfig(
        host='localhost',
        port=5432,
        dbname='test_db',
        user='test_user',
        password='test_pass'
    )


@pytest.fixture
def sample_plan_text():
    return SAMPLE_PLAN


@pytest.fixture
def sample_fragments():
    return split_fragments(SAMPLE_PLAN)


@pytest.fixture
def simple_fragments():
    return {
        'QUERY PLAN_1': 'Seq Scan on orders  (cost=0.00..123.45 rows=1000 width=8) '
                        '(actual time=0.012..45.678 rows=950 loops=1)',
        'QUERY PLAN_2': 'Execution Time: 45.678 ms',
    }


@pytest.fixture
def make_node():
    def factory(node_id=0, operation='Seq Scan on orders', kind=OperatorKind.SEQ_SCAN,
                parent_id=ROOT, cost=None, time=None, **kwargs):
        return PlanNode(
            id=node_id,
            parent_id=parent_id,
            operation=operation,
            kind=kind,
            cost=Range(*cost) if cost else None,
            time=Range(*time) if time else None,
            **kwargs
        )
    return factory
