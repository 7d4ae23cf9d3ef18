"""
Utility modules for PostgreSQL plan analysis
"""
from .config import ConfigLoader, AppConfig
from .logger import setup_logger
from .report import ReportGenerator
