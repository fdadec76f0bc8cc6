"""
Report generation for comparison runs.

A report is a plain dictionary built from a RunSummary, so it can be
exported as JSON or CSV, reloaded later, and rendered for the console.
"""

from datetime import UTC, datetime
from typing import Any

from dbcompare.compare.driver import RunSummary, TableStatus


class ReportStatus:
    """Constants for overall report status."""

    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"
    NO_DATA = "NO_DATA"


def format_timestamp(timestamp: datetime) -> str:
    """
    Format timestamp for reports

    Args:
        timestamp: DateTime object

    Returns:
        ISO 8601 formatted timestamp string
    """
    return timestamp.isoformat()


def _overall_status(summary: RunSummary) -> str:
    compared = summary.count(TableStatus.MATCH) + summary.count(TableStatus.MISMATCH)

    if summary.count(TableStatus.MISMATCH):
        return ReportStatus.FAIL
    if summary.errors:
        return ReportStatus.ERROR
    if compared == 0:
        return ReportStatus.NO_DATA
    return ReportStatus.PASS


def generate_report(summary: RunSummary) -> dict[str, Any]:
    """
    Generate a comparison report from a run summary

    Args:
        summary: Completed RunSummary

    Returns:
        Dictionary containing:
        - status: PASS, FAIL (mismatches found), ERROR (only failures), or NO_DATA
        - total_tables / tables_matched / tables_mismatched / tables_errored / tables_excluded
        - total_mismatches: Sum of mismatch counts of compared tables
        - tables: One entry per table, in enumeration order
        - errors: ``{table, error_kind, error}`` for every failed table
        - summary: Human-readable summary
        - started_at / finished_at / timestamp: ISO 8601 timestamps
    """
    matched = summary.count(TableStatus.MATCH)
    mismatched = summary.count(TableStatus.MISMATCH)
    errored = summary.count(TableStatus.ERROR)
    excluded = summary.count(TableStatus.EXCLUDED)

    return {
        "status": _overall_status(summary),
        "total_tables": len(summary.results),
        "tables_matched": matched,
        "tables_mismatched": mismatched,
        "tables_errored": errored,
        "tables_excluded": excluded,
        "total_mismatches": summary.total_mismatches,
        "tables": [result.to_dict() for result in summary.results],
        "errors": [
            {
                "table": result.table.full_name,
                "error_kind": result.error_kind,
                "error": result.error,
            }
            for result in summary.errors
        ],
        "summary": _generate_summary(matched, mismatched, errored, excluded, summary.total_mismatches),
        "started_at": format_timestamp(summary.started_at),
        "finished_at": format_timestamp(summary.finished_at) if summary.finished_at else None,
        "run_log": summary.run_log_path,
        "timestamp": format_timestamp(datetime.now(UTC)),
    }


def _generate_summary(
    matched: int,
    mismatched: int,
    errored: int,
    excluded: int,
    total_mismatches: int,
) -> str:
    """
    Generate human-readable summary

    Args:
        matched: Tables without missing rows
        mismatched: Tables with missing rows
        errored: Tables that could not be compared
        excluded: Tables skipped by exclusion patterns
        total_mismatches: Total missing rows

    Returns:
        Summary string
    """
    compared = matched + mismatched

    if compared == 0 and errored == 0:
        text = "No tables were compared."
    elif mismatched == 0:
        text = f"All {compared} compared tables are consistent."
    else:
        text = (
            f"{total_mismatches:,} old row(s) missing from the new database "
            f"across {mismatched} of {compared} compared tables."
        )

    if errored:
        text += f" {errored} table(s) could not be compared."
    if excluded:
        text += f" {excluded} table(s) excluded."
    return text
