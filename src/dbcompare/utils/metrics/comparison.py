"""
Metrics for table comparison runs.
"""

import logging
import time

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

logger = logging.getLogger(__name__)


class ComparisonMetrics:
    """
    Metrics for comparison runs

    Per-table outcomes and mismatch counts, plus fingerprints captured
    per side.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize comparison metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.tables_total = Counter(
            "dbcompare_tables_total",
            "Tables processed, by outcome",
            ["status"],
            registry=self.registry,
        )

        self.table_duration_seconds = Histogram(
            "dbcompare_table_duration_seconds",
            "Time spent comparing one table",
            ["table_name"],
            buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 300, 900, 3600),
            registry=self.registry,
        )

        self.table_mismatch_rows = Gauge(
            "dbcompare_table_mismatch_rows",
            "Old-side rows missing from the new side at the last comparison",
            ["table_name"],
            registry=self.registry,
        )

        self.fingerprints_total = Counter(
            "dbcompare_fingerprints_captured_total",
            "Row fingerprints captured",
            ["side"],
            registry=self.registry,
        )

        self.run_mismatch_rows = Gauge(
            "dbcompare_run_mismatch_rows",
            "Total mismatch count of the last completed run",
            registry=self.registry,
        )

        self.last_run_timestamp = Gauge(
            "dbcompare_last_run_timestamp",
            "Unix timestamp of the last completed run",
            registry=self.registry,
        )

    def record_table(
        self,
        table_name: str,
        status: str,
        duration: float,
        mismatch_count: int | None = None,
    ) -> None:
        """
        Record the outcome of one table

        Args:
            table_name: ``schema.table``
            status: MATCH, MISMATCH, ERROR, or EXCLUDED
            duration: Seconds spent on the table
            mismatch_count: Mismatch count, when the table was compared
        """
        self.tables_total.labels(status=status.lower()).inc()

        if status in ("MATCH", "MISMATCH"):
            self.table_duration_seconds.labels(table_name=table_name).observe(duration)

        if mismatch_count is not None:
            self.table_mismatch_rows.labels(table_name=table_name).set(mismatch_count)

    def record_fingerprints(self, side: str, count: int) -> None:
        """Count fingerprints captured from one side."""
        self.fingerprints_total.labels(side=side).inc(count)

    def record_run(self, total_mismatches: int) -> None:
        """Record the aggregate of a completed run."""
        self.run_mismatch_rows.set(total_mismatches)
        self.last_run_timestamp.set(time.time())
        logger.debug(f"Recorded run metrics: total_mismatches={total_mismatches}")
