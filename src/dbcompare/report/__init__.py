"""
Comparison report generation and formatting.

Reports are built from a RunSummary and can be written as JSON or CSV,
reloaded from JSON, and rendered for the terminal.
"""

from .formatters import (
    export_report_csv,
    export_report_json,
    format_report_console,
    load_report_json,
)
from .generator import ReportStatus, format_timestamp, generate_report

__all__ = [
    'generate_report',
    'format_timestamp',
    'ReportStatus',
    'export_report_json',
    'export_report_csv',
    'load_report_json',
    'format_report_console',
]
