"""
Logging configuration for pg-plan-insight.
Sets up console and file logging with appropriate formatting.
"""
import logging
from pathlib import Path

LOGGER_NAME = 'pg_plan_insight'


def setup_logger(output_dir: Path, level: str = 'INFO') -> logging.Logger:
    """Configure logging with console and file handlers."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Reconfiguring replaces handlers from an earlier call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(getattr(logging, level.upper(), logging.INFO))
    console.setFormatter(logging.Formatter('%(message)s'))

    output_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(output_dir / 'analysis.log')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )

    logger.addHandler(console)
    logger.addHandler(file_handler)

    return logger
