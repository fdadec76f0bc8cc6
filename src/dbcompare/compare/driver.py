"""
Comparison orchestration.

The driver lists the user tables of the new database, skips excluded ones,
and compares the rest one at a time:

1. read the column list from the new side
2. fingerprint every row of the new side, then of the old side, into
   FingerprintStores
3. count old fingerprints missing from the new set
4. dispose both stores

Each table yields a TableResult; a failure on one table becomes an ERROR
result for that table and never stops the run. Progress goes to a console
stream and to the run log.

Console numbering ``[i/total]`` is the table's position among all
enumerated tables: excluded tables take a slot too, and ``total`` counts
them. Only compared tables get a ``comparison started`` run-log entry.
"""

import logging
import sys
import time
import uuid
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, TextIO

from dbcompare.utils.logging import ContextLogger, null_run_log
from dbcompare.utils.metrics import ComparisonMetrics
from dbcompare.utils.tracing import add_span_attributes, trace_operation

from .connection import open_connection
from .diff import count_missing_stores
from .fingerprint import DEFAULT_FETCH_SIZE, RowHasher, ServerRowHasher, fingerprint_rows
from .patterns import ExclusionPattern, is_excluded
from .schema import TableRef, list_columns, list_user_tables
from .store import SIDE_NEW, SIDE_OLD, FingerprintStore

logger = logging.getLogger(__name__)


class TableStatus(str, Enum):
    """Outcome of processing one table."""

    MATCH = "MATCH"
    MISMATCH = "MISMATCH"
    ERROR = "ERROR"
    EXCLUDED = "EXCLUDED"


@dataclass(frozen=True)
class TableResult:
    """
    Result of one table: either a mismatch count or an error

    Only MATCH and MISMATCH results contribute to the run total.
    """

    table: TableRef
    status: TableStatus
    mismatch_count: int = 0
    old_rows: int = 0
    new_rows: int = 0
    column_count: int = 0
    error_kind: str | None = None
    error: str | None = None
    duration_seconds: float = 0.0

    @classmethod
    def compared(
        cls,
        table: TableRef,
        mismatch_count: int,
        old_rows: int = 0,
        new_rows: int = 0,
        column_count: int = 0,
        duration_seconds: float = 0.0,
    ) -> "TableResult":
        status = TableStatus.MISMATCH if mismatch_count else TableStatus.MATCH
        return cls(
            table=table,
            status=status,
            mismatch_count=mismatch_count,
            old_rows=old_rows,
            new_rows=new_rows,
            column_count=column_count,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def failed(cls, table: TableRef, exc: BaseException, duration_seconds: float = 0.0) -> "TableResult":
        return cls(
            table=table,
            status=TableStatus.ERROR,
            error_kind=type(exc).__name__,
            error=str(exc),
            duration_seconds=duration_seconds,
        )

    @classmethod
    def excluded(cls, table: TableRef) -> "TableResult":
        return cls(table=table, status=TableStatus.EXCLUDED)

    @property
    def is_compared(self) -> bool:
        return self.status in (TableStatus.MATCH, TableStatus.MISMATCH)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table.full_name,
            "schema": self.table.schema,
            "name": self.table.name,
            "status": self.status.value,
            "mismatch_count": self.mismatch_count,
            "old_rows": self.old_rows,
            "new_rows": self.new_rows,
            "column_count": self.column_count,
            "error_kind": self.error_kind,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass
class RunSummary:
    """Aggregate of all table results of one run."""

    results: list[TableResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    run_log_path: str | None = None

    @property
    def total_mismatches(self) -> int:
        return sum(r.mismatch_count for r in self.results if r.is_compared)

    def count(self, status: TableStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def errors(self) -> list[TableResult]:
        return [r for r in self.results if r.status == TableStatus.ERROR]

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "run_log": self.run_log_path,
            "total_tables": len(self.results),
            "tables_matched": self.count(TableStatus.MATCH),
            "tables_mismatched": self.count(TableStatus.MISMATCH),
            "tables_errored": self.count(TableStatus.ERROR),
            "tables_excluded": self.count(TableStatus.EXCLUDED),
            "total_mismatches": self.total_mismatches,
            "results": [r.to_dict() for r in self.results],
        }


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class ComparisonDriver:
    """
    Compares every non-excluded user table of two SQL Server databases

    Usage:
        driver = ComparisonDriver(
            old_conn_str, new_conn_str,
            exclusions=compile_patterns(["staging.%"]),
            run_log=create_run_log("compare_log.txt"),
        )
        summary = driver.run()
        print(summary.total_mismatches)
    """

    def __init__(
        self,
        old_conn_str: str,
        new_conn_str: str,
        exclusions: Sequence[ExclusionPattern] = (),
        run_log: logging.Logger | None = None,
        console: TextIO | None = None,
        storage_dir: Path | str | None = None,
        hasher: RowHasher | None = None,
        fetch_size: int = DEFAULT_FETCH_SIZE,
        max_workers: int = 1,
        metrics: ComparisonMetrics | None = None,
        connect: Callable[..., Any] = open_connection,
    ):
        """
        Initialize the driver

        Args:
            old_conn_str: Connection string of the old database
            new_conn_str: Connection string of the new database (tables and
                columns are read from this side)
            exclusions: Compiled exclusion patterns
            run_log: Run-log logger (default: discard)
            console: Stream for progress output (default: sys.stdout)
            storage_dir: Directory for fingerprint files (default: temp dir)
            hasher: Row hashing strategy (default: server-side HASHBYTES)
            fetch_size: Rows fetched per round trip while streaming
            max_workers: Tables compared concurrently; 1 means sequential
            metrics: Prometheus metrics to update (optional)
            connect: Context manager factory ``connect(conn_str, side=...)``
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self.old_conn_str = old_conn_str
        self.new_conn_str = new_conn_str
        self.exclusions = list(exclusions)
        self.run_log = run_log or null_run_log()
        self.console = console
        self.storage_dir = storage_dir
        self.hasher = hasher or ServerRowHasher()
        self.fetch_size = fetch_size
        self.max_workers = max_workers
        self.metrics = metrics
        self._connect = connect

    def _print(self, line: str) -> None:
        print(line, file=self.console or sys.stdout, flush=True)

    def list_tables(self) -> list[TableRef]:
        """List user tables of the new database."""
        with self._connect(self.new_conn_str, side=SIDE_NEW) as conn:
            return list_user_tables(conn)

    def _capture(
        self,
        conn: Any,
        store: FingerprintStore,
        table: TableRef,
        columns: Sequence[str],
    ) -> int:
        with trace_operation("capture_fingerprints", table=table.full_name, side=store.side):
            count = store.capture(
                fingerprint_rows(conn, table, columns, self.hasher, self.fetch_size)
            )
            add_span_attributes(rows=count)

        if self.metrics:
            self.metrics.record_fingerprints(store.side, count)
        return count

    def compare_table(self, table: TableRef, run_id: str | None = None) -> TableResult:
        """
        Compare one table

        Never raises for ordinary failures: any exception while reading
        columns, fingerprinting, or diffing is returned as an ERROR result.

        Args:
            table: Table to compare
            run_id: Suffix for fingerprint file names (parallel runs)

        Returns:
            TableResult for the table
        """
        table_logger = ContextLogger(__name__, table=table.full_name)
        start = time.monotonic()

        try:
            with trace_operation("compare_table", table=table.full_name):
                with self._connect(self.new_conn_str, side=SIDE_NEW) as new_conn:
                    columns = list_columns(new_conn, table)

                    if not columns:
                        table_logger.info("No columns found, nothing to compare")
                        return TableResult.compared(
                            table, 0, duration_seconds=time.monotonic() - start
                        )

                    new_store = FingerprintStore(table, SIDE_NEW, self.storage_dir, run_id)
                    old_store = FingerprintStore(table, SIDE_OLD, self.storage_dir, run_id)

                    with new_store, old_store:
                        new_rows = self._capture(new_conn, new_store, table, columns)

                        with self._connect(self.old_conn_str, side=SIDE_OLD) as old_conn:
                            old_rows = self._capture(old_conn, old_store, table, columns)

                        mismatch_count = count_missing_stores(old_store, new_store)

                add_span_attributes(mismatch_count=mismatch_count)

        except Exception as e:
            table_logger.error(f"Comparison failed: {e}", error_kind=type(e).__name__)
            return TableResult.failed(table, e, duration_seconds=time.monotonic() - start)

        table_logger.info(
            f"Compared {old_rows} old / {new_rows} new row(s), {mismatch_count} missing",
            mismatch_count=mismatch_count,
        )
        return TableResult.compared(
            table,
            mismatch_count,
            old_rows=old_rows,
            new_rows=new_rows,
            column_count=len(columns),
            duration_seconds=time.monotonic() - start,
        )

    def _report_result(self, index: int, total: int, result: TableResult) -> None:
        name = result.table.full_name

        if result.status == TableStatus.ERROR:
            self._print(f"[{index}/{total}] ! {name} error: {result.error}")
            self.run_log.info(f"Error: {name} - {result.error}")
        else:
            self._print(f"[{index}/{total}] {name} -> mismatches: {result.mismatch_count:,}")
            self.run_log.info(f"Result: {name} {result.mismatch_count} mismatch(es)")

        self.run_log.info("")

        if self.metrics:
            self.metrics.record_table(
                name,
                result.status.value,
                result.duration_seconds,
                result.mismatch_count if result.is_compared else None,
            )

    def _start_table(self, index: int, total: int, table: TableRef) -> None:
        self._print(f"[{index}/{total}] {table.full_name} comparing...")
        self.run_log.info(f"[{index}] {table.full_name} comparison started: {_now()}")

    def run(self) -> RunSummary:
        """
        Run the comparison over all user tables

        Returns:
            RunSummary with one result per enumerated table

        Raises:
            Exception: If the table list cannot be read from the new side
        """
        summary = RunSummary()
        for handler in self.run_log.handlers:
            if hasattr(handler, "baseFilename"):
                summary.run_log_path = handler.baseFilename

        self.run_log.info(f"=== Run started {_now()} ===")

        try:
            tables = self.list_tables()
            total = len(tables)
            self._print(f"Comparing {total} table(s) ({len(self.exclusions)} exclusion pattern(s))")

            results: list[TableResult | None] = [None] * total
            pending: list[tuple[int, TableRef]] = []

            for position, table in enumerate(tables):
                if is_excluded(table.full_name, self.exclusions):
                    self._print(f"[{position + 1}/{total}] {table.full_name} -> excluded")
                    self.run_log.info(f"Excluded: {table.full_name}")
                    results[position] = TableResult.excluded(table)
                    if self.metrics:
                        self.metrics.record_table(table.full_name, TableStatus.EXCLUDED.value, 0.0)
                else:
                    pending.append((position, table))

            if self.max_workers > 1 and len(pending) > 1:
                self._run_parallel(pending, total, results)
            else:
                for position, table in pending:
                    self._start_table(position + 1, total, table)
                    result = self.compare_table(table)
                    results[position] = result
                    self._report_result(position + 1, total, result)

            summary.results = [r for r in results if r is not None]
            summary.finished_at = datetime.now(UTC)

            self._print(f"Total mismatches across all tables: {summary.total_mismatches:,}")
            self.run_log.info(f"Total mismatches: {summary.total_mismatches}")
            if summary.errors:
                self._print(f"Tables with errors: {len(summary.errors)}")

            if self.metrics:
                self.metrics.record_run(summary.total_mismatches)

            return summary

        except Exception as e:
            self.run_log.info(f"Fatal: {e}")
            raise

        finally:
            self.run_log.info(f"=== Run finished {_now()} ===")

    def _run_parallel(
        self,
        pending: list[tuple[int, TableRef]],
        total: int,
        results: list[TableResult | None],
    ) -> None:
        # Fingerprint files must not collide with another run comparing the same table
        run_id = uuid.uuid4().hex[:8]
        logger.info(
            f"Comparing {len(pending)} table(s) with {self.max_workers} workers (run {run_id})"
        )

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_position = {}
            for position, table in pending:
                self._start_table(position + 1, total, table)
                future = executor.submit(self.compare_table, table, run_id)
                future_to_position[future] = position

            for future in as_completed(future_to_position):
                position = future_to_position[future]
                result = future.result()
                results[position] = result
                self._report_result(position + 1, total, result)
