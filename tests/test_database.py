"""Test plan retrieval through psycopg2."""

import psycopg2
import pytest
from unittest.mock import MagicMock, patch
from pg_plan_insight.core.database import DatabaseManager


@pytest.fixture
def mock_connect():
    with patch('pg_plan_insight.core.database.psycopg2.connect') as connect:
        conn = MagicMock()
        cursor = MagicMock()
        cursor.fetchall.return_value = [
            ('Seq Scan on orders  (cost=0.00..1.00 rows=1 width=4) (actual time=0.01..0.02 rows=1 loops=1)',),
            ('Planning Time: 0.05 ms',),
            ('Execution Time: 0.03 ms',),
        ]
        conn.cursor.return_value.__enter__.return_value = cursor
        connect.return_value = conn
        yield connect, conn, cursor


def test_execute_explain_returns_fragments(sample_db_config, mock_connect):
    connect, conn, cursor = mock_connect
    result = DatabaseManager(sample_db_config).execute_explain('SELECT * FROM orders')

    connect.assert_called_once_with(
        host='localhost', port=5432, dbname='test_db', user='test_user', password='test_pass'
    )
    executed = cursor.execute.call_args[0][0]
    assert executed.startswith('EXPLAIN (ANALYZE true, BUFFERS true, FORMAT TEXT)')
    assert executed.endswith('SELECT * FROM orders')

    assert result['database'] == 'test_db'
    assert result['status'] == 'success'
    assert result['plan']['QUERY PLAN_1'].startswith('Seq Scan on orders')
    assert result['plan']['QUERY PLAN_3'] == 'Execution Time: 0.03 ms'
    assert 'duration_ms' in result['plan']

    conn.rollback.assert_called_once()
    conn.close.assert_called_once()


def test_fetch_explain_degrades_on_error(sample_db_config):
    with patch('pg_plan_insight.core.database.psycopg2.connect',
               side_effect=psycopg2.OperationalError('connection refused')):
        result = DatabaseManager(sample_db_config).fetch_explain('SELECT 1')

    assert result['status'] == 'error'
    assert result['plan'] == {}
