"""
Configuration loading utilities for pg-plan-insight.
"""
from typing import Optional
from pathlib import Path
import yaml
from dataclasses import dataclass, field

from ..core.database import DatabaseConfig
from ..core.models import AnalysisLimits


@dataclass
class AppConfig:
    """Application configuration."""
    plan_file: Optional[Path] = None
    query: Optional[Path] = None
    database: Optional[DatabaseConfig] = None
    output_dir: Path = Path('reports')
    log_level: str = 'INFO'
    analysis: AnalysisLimits = field(default_factory=AnalysisLimits)


class ConfigLoader:
    """Loads and validates configuration from YAML files."""

    @staticmethod
    def load_config(config_path: Path) -> AppConfig:
        """Load configuration from YAML file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")

        # Either a saved plan or a query plus connection details
        if 'plan_file' not in config_data and 'query' not in config_data:
            raise ValueError("Missing required field in config: plan_file or query")
        if 'query' in config_data and 'database' not in config_data:
            raise ValueError("Missing required field in config: database")

        config = AppConfig(
            output_dir=Path(config_data.get('output_dir', 'reports')),
            log_level=str(config_data.get('log_level', 'INFO')).upper()
        )

        if 'plan_file' in config_data:
            config.plan_file = Path(config_data['plan_file'])
            if not config.plan_file.exists():
                raise FileNotFoundError(f"Plan file not found: {config.plan_file}")

        if 'query' in config_data:
            config.query = Path(config_data['query'])
            if not config.query.exists():
                raise FileNotFoundError(f"Query file not found: {config.query}")

            db_data = config_data['database']
            for required in ('dbname', 'user'):
                if required not in db_data:
                    raise ValueError(f"Missing required field in database config: {required}")
            config.database = DatabaseConfig(
                host=db_data.get('host', 'localhost'),
                port=db_data.get('port', 5432),
                dbname=db_data['dbname'],
                user=db_data['user'],
                password=db_data.get('password', '')
            )

        analysis = config_data.get('analysis') or {}
        config.analysis = AnalysisLimits(
            max_lines=int(analysis.get('max_lines', AnalysisLimits.max_lines)),
            max_depth=int(analysis.get('max_depth', AnalysisLimits.max_depth))
        )
        if config.analysis.max_lines <= 0 or config.analysis.max_depth <= 0:
            raise ValueError("Analysis limits must be positive")

        return config
