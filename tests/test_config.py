"""Test configuration loading and validation."""

import pytest
from pathlib import Path
from pg_plan_insight.utils.config import ConfigLoader


def test_config_loading_with_query(tmp_path):
    query = tmp_path / 'slow.sql'
    query.write_text('SELECT * FROM test;')

    config_path = tmp_path / 'test_config.yml'
    config_path.write_text(f"""
database:
    host: localhost
    port: 5432
    dbname: test_db
    user: test_user
    password: test_pass

query: {query}
output_dir: {tmp_path / 'out'}
log_level: debug
analysis:
    max_lines: 500
    max_depth: 20
""")

    config = ConfigLoader.load_config(config_path)

    assert config.database.host == 'localhost'
    assert config.database.port == 5432
    assert config.database.dbname == 'test_db'
    assert config.query == query
    assert config.plan_file is None
    assert config.output_dir == tmp_path / 'out'
    assert config.log_level == 'DEBUG'
    assert config.analysis.max_lines == 500
    assert config.analysis.max_depth == 20


def test_config_loading_with_plan_file(tmp_path):
    plan = tmp_path / 'plan.txt'
    plan.write_text('Result  (cost=0.00..0.01 rows=1 width=4)')
    config_path = tmp_path / 'config.yml'
    config_path.write_text(f"plan_file: {plan}\n")

    config = ConfigLoader.load_config(config_path)

    assert config.plan_file == plan
    assert config.database is None
    assert config.output_dir == Path('reports')
    assert config.analysis.max_lines == 10000
    assert config.analysis.max_depth == 100


def test_config_missing_required(tmp_path):
    config_path = tmp_path / 'invalid_config.yml'
    config_path.write_text("""
database:
    host: localhost
""")

    with pytest.raises(ValueError):
        ConfigLoader.load_config(config_path)


def test_config_query_without_database(tmp_path):
    query = tmp_path / 'q.sql'
    query.write_text('SELECT 1;')
    config_path = tmp_path / 'config.yml'
    config_path.write_text(f"query: {query}\n")

    with pytest.raises(ValueError):
        ConfigLoader.load_config(config_path)


def test_config_missing_plan_file(tmp_path):
    config_path = tmp_path / 'config.yml'
    config_path.write_text(f"plan_file: {tmp_path / 'missing.txt'}\n")

    with pytest.raises(FileNotFoundError):
        ConfigLoader.load_config(config_path)


def test_config_invalid_limits(tmp_path):
    plan = tmp_path / 'plan.txt'
    plan.write_text('')
    config_path = tmp_path / 'config.yml'
    config_path.write_text(f"plan_file: {plan}\nanalysis:\n    max_depth: 0\n")

    with pytest.raises(ValueError):
        ConfigLoader.load_config(config_path)


def test_config_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader.load_config(tmp_path / 'nope.yml')
