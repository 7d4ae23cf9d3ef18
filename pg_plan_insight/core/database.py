"""
Database connection and plan retrieval.
Runs EXPLAIN (ANALYZE, BUFFERS) in text format and returns the plan as an
ordered map of line fragments, the same shape a remote plan service delivers.
"""
import logging
import time
from dataclasses import dataclass
from typing import Dict, Any
import psycopg2
from psycopg2.extensions import connection
from contextlib import contextmanager

logger = logging.getLogger(__name__)

FRAGMENT_KEY = 'QUERY PLAN_{}'


@dataclass
class DatabaseConfig:
    host: str
    port: int
    dbname: str
    user: str
    password: str


class DatabaseManager:
    def __init__(self, config: DatabaseConfig):
        self.config = config

    @contextmanager
    def get_connection(self) -> connection:
        """Create a database connection using context manager."""
        conn = None
        try:
            conn = psycopg2.connect(
                host=self.config.host,
                port=self.config.port,
                dbname=self.config.dbname,
                user=self.config.user,
                password=self.config.password
            )
            yield conn
        finally:
            if conn:
                conn.close()

    def execute_explain(self, query: str) -> Dict[str, Any]:
        """Run EXPLAIN ANALYZE and return the plan as numbered text fragments."""
        explain_query = f"EXPLAIN (ANALYZE true, BUFFERS true, FORMAT TEXT) {query}"

        with self.get_connection() as conn:
            # EXPLAIN ANALYZE executes the statement; never keep its effects
            conn.autocommit = False
            try:
                with conn.cursor() as cursor:
                    started = time.perf_counter()
                    cursor.execute(explain_query)
                    rows = cursor.fetchall()
                    duration_ms = (time.perf_counter() - started) * 1000
            finally:
                conn.rollback()

        plan: Dict[str, Any] = {
            FRAGMENT_KEY.format(n): row[0] for n, row in enumerate(rows, start=1)
        }
        plan['duration_ms'] = round(duration_ms, 3)
        return {
            'query': query,
            'database': self.config.dbname,
            'status': 'success',
            'plan': plan
        }

    def fetch_explain(self, query: str) -> Dict[str, Any]:
        """Like execute_explain, but a failed retrieval yields a payload with no plan."""
        try:
            return self.execute_explain(query)
        except psycopg2.Error as e:
            logger.error("Failed to fetch plan from %s: %s", self.config.dbname, e)
            return {
                'query': query,
                'database': self.config.dbname,
                'status': 'error',
                'plan': {}
            }
