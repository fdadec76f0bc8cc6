"""
Report formatting and export utilities.

This module provides functions to export comparison reports
in various formats: JSON, CSV, and console/terminal output.
"""

import csv
import json
from pathlib import Path
from typing import Any

CSV_COLUMNS = [
    "table",
    "status",
    "mismatch_count",
    "old_rows",
    "new_rows",
    "column_count",
    "duration_seconds",
    "error_kind",
    "error",
]


def export_report_json(report: dict[str, Any], output_path: str | Path) -> None:
    """
    Export report to JSON file

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2)


def load_report_json(input_path: str | Path) -> dict[str, Any]:
    """
    Load a report previously written by ``export_report_json``

    Raises:
        ValueError: If the file does not hold a report
    """
    with open(input_path, encoding='utf-8') as f:
        report = json.load(f)

    if not isinstance(report, dict) or "tables" not in report:
        raise ValueError(f"{input_path} is not a comparison report")
    return report


def export_report_csv(report: dict[str, Any], output_path: str | Path) -> None:
    """
    Export the per-table rows of a report to CSV

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, extrasaction='ignore')
        writer.writeheader()

        for table in report.get("tables", []):
            writer.writerow({key: table.get(key, "") for key in CSV_COLUMNS})


def format_report_console(report: dict[str, Any]) -> str:
    """
    Format report for console output

    Args:
        report: Report dictionary

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 80)
    lines.append("DATABASE COMPARISON REPORT")
    lines.append("=" * 80)
    lines.append(f"Status: {report['status']}")
    lines.append(f"Started: {report.get('started_at')}")
    lines.append(f"Finished: {report.get('finished_at')}")
    lines.append(f"Total Tables: {report['total_tables']}")
    lines.append(f"Tables Matched: {report['tables_matched']}")
    lines.append(f"Tables Mismatched: {report['tables_mismatched']}")
    lines.append(f"Tables Errored: {report['tables_errored']}")
    lines.append(f"Tables Excluded: {report['tables_excluded']}")
    lines.append(f"Total Mismatches: {report['total_mismatches']:,}")
    lines.append("")

    lines.append("SUMMARY")
    lines.append("-" * 80)
    lines.append(report['summary'])
    lines.append("")

    mismatched = [t for t in report['tables'] if t['status'] == "MISMATCH"]
    if mismatched:
        lines.append("MISMATCHES")
        lines.append("-" * 80)
        for table in sorted(mismatched, key=lambda t: t['mismatch_count'], reverse=True):
            lines.append(
                f"{table['table']}: {table['mismatch_count']:,} missing "
                f"(old {table['old_rows']:,} / new {table['new_rows']:,} rows)"
            )
        lines.append("")

    if report['errors']:
        lines.append("ERRORS")
        lines.append("-" * 80)
        for error in report['errors']:
            lines.append(f"{error['table']}: [{error['error_kind']}] {error['error']}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)
