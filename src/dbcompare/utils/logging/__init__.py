"""
Logging for db-compare

Two separate channels:

- diagnostic logging through the standard ``logging`` tree, formatted as
  text or JSON (``setup_logging`` / ``configure_from_env``)
- the run log, an append-only file recording each table's outcome
  (``create_run_log``)

Usage:
    from dbcompare.utils.logging import setup_logging, get_logger

    setup_logging(level="INFO")
    logger = get_logger(__name__)
    logger.info("Comparing table", extra={"table": "dbo.Customers"})
"""

from .config import configure_from_env, get_logger, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger, close_run_log, create_run_log, null_run_log

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
    "create_run_log",
    "close_run_log",
    "null_run_log",
]
