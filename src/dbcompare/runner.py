"""
Glue between settings and the comparison driver.

Both the ``run`` command and scheduled jobs go through ``run_comparison``:
it opens a fresh run log named after the start time, builds the driver from
the settings, runs it, and closes the run log.
"""

import logging
from typing import TextIO

from dbcompare.compare import ComparisonDriver, RunSummary, get_hasher
from dbcompare.config import CompareSettings
from dbcompare.utils.logging import close_run_log, create_run_log
from dbcompare.utils.metrics import ComparisonMetrics

logger = logging.getLogger(__name__)


def create_driver(
    settings: CompareSettings,
    run_log: logging.Logger | None = None,
    console: TextIO | None = None,
    metrics: ComparisonMetrics | None = None,
) -> ComparisonDriver:
    """Build a ComparisonDriver from validated settings."""
    return ComparisonDriver(
        settings.old_db,
        settings.new_db,
        exclusions=settings.exclusions,
        run_log=run_log,
        console=console,
        storage_dir=settings.storage_dir,
        hasher=get_hasher(settings.hash_mode),
        fetch_size=settings.fetch_size,
        max_workers=settings.max_workers,
        metrics=metrics,
    )


def run_comparison(
    settings: CompareSettings,
    console: TextIO | None = None,
    metrics: ComparisonMetrics | None = None,
) -> RunSummary:
    """
    Run one full comparison

    Args:
        settings: Validated settings
        console: Progress stream (default: sys.stdout)
        metrics: Prometheus metrics to update (optional)

    Returns:
        RunSummary of the run

    Raises:
        Exception: Top-level failures such as an unreachable new database
    """
    run_log_path = settings.run_log_path()
    logger.info(f"Writing run log to {run_log_path}")

    run_log = create_run_log(run_log_path)
    try:
        driver = create_driver(settings, run_log=run_log, console=console, metrics=metrics)
        return driver.run()
    finally:
        close_run_log(run_log)
