"""
Job wrapper for scheduled comparison runs.
"""

import logging
from datetime import UTC, datetime
from pathlib import Path

from dbcompare.config import CompareSettings
from dbcompare.report import export_report_json, generate_report
from dbcompare.runner import run_comparison
from dbcompare.utils.metrics import ComparisonMetrics

logger = logging.getLogger(__name__)


def compare_job_wrapper(
    settings: CompareSettings,
    output_dir: str | Path,
    metrics: ComparisonMetrics | None = None,
) -> Path | None:
    """
    Run one comparison and save its report

    Called by the scheduler. A failed run is logged and does not stop the
    schedule; the next fire time runs again.

    Args:
        settings: Validated settings
        output_dir: Directory for ``compare_<timestamp>.json`` reports
        metrics: Prometheus metrics to update (optional)

    Returns:
        Path of the written report, or None if the run failed
    """
    timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    output_path = Path(output_dir) / f"compare_{timestamp}.json"

    logger.info(f"Starting scheduled comparison at {timestamp}")

    try:
        summary = run_comparison(settings, metrics=metrics)
    except Exception as e:
        logger.error(f"Scheduled comparison failed: {e}", exc_info=True)
        return None

    report = generate_report(summary)
    export_report_json(report, output_path)

    logger.info(f"Comparison complete. Report saved to {output_path}")
    logger.info(
        f"Status: {report['status']}, total mismatches: {report['total_mismatches']}, "
        f"errored tables: {report['tables_errored']}"
    )
    return output_path
