#!/usr/bin/env python3
"""
pg-plan-insight

A command-line tool for PostgreSQL query plan analysis.
Parses EXPLAIN ANALYZE output into a plan tree and reports timing,
performance issues and recommendations.
"""

import sys
from datetime import datetime
from pathlib import Path

from .core.analyzer import PlanAnalyzer
from .core.database import DatabaseManager
from .core.errors import PlanInputError
from .utils.config import ConfigLoader
from .utils.logger import setup_logger
from .utils.report import ReportGenerator


def main(argv=None):
    """Main entry point"""
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 1:
        print("Usage: pg-plan-insight <config_file>")
        return 1

    config_file = Path(argv[0])
    try:
        config = ConfigLoader.load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    logger = setup_logger(config.output_dir, config.log_level)

    if config.plan_file:
        analyzer = PlanAnalyzer(config.analysis)
        source = str(config.plan_file)
        try:
            result = analyzer.analyze_file(config.plan_file)
        except (PlanInputError, ValueError) as e:
            logger.error("Could not read plan file %s: %s", config.plan_file, e)
            return 1
    else:
        analyzer = PlanAnalyzer(config.analysis, DatabaseManager(config.database))
        source = str(config.query)
        result = analyzer.analyze_query(config.query)

    report = result['report']

    # Generate reports
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    text_path = config.output_dir / f'report_{timestamp}.txt'
    json_path = config.output_dir / f'report_{timestamp}.json'
    config.output_dir.mkdir(parents=True, exist_ok=True)

    text_path.write_text(ReportGenerator.generate_text_report(report, source))
    json_path.write_text(ReportGenerator.generate_json_report(report))

    logger.info("\nReports generated:")
    logger.info("- Text report: %s", text_path)
    logger.info("- JSON report: %s", json_path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
