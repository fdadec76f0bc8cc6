"""
Command-line argument parser configuration.

This module sets up the argument parser for the db-compare CLI tool,
defining all commands and their options.
"""

import argparse

from dbcompare.compare.fingerprint import HASHERS
from dbcompare.utils.vault_client import DEFAULT_SECRET_PATH


def _add_settings_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by every command that talks to the databases."""
    parser.add_argument(
        '--config',
        help='YAML configuration file (default: dbcompare.yml if present)'
    )
    parser.add_argument('--old-db', help='Connection string of the old database')
    parser.add_argument('--new-db', help='Connection string of the new database')
    parser.add_argument(
        '--exclude',
        action='append',
        metavar='PATTERN',
        help='Exclude tables matching schema.table pattern (%% and _ wildcards); repeatable'
    )
    parser.add_argument(
        '--log-dir',
        help='Directory for compare_log_<timestamp>.txt run logs (default: .)'
    )
    parser.add_argument(
        '--storage-dir',
        help='Directory for fingerprint files (default: system temp directory)'
    )
    parser.add_argument(
        '--hash-mode',
        choices=sorted(HASHERS),
        help='Compute row fingerprints on the server or in this process (default: server)'
    )
    parser.add_argument(
        '--workers',
        type=int,
        help='Number of tables compared concurrently (default: 1)'
    )
    parser.add_argument(
        '--use-vault',
        action='store_true',
        help='Fetch connection strings from HashiCorp Vault'
    )
    parser.add_argument(
        '--vault-path',
        default=DEFAULT_SECRET_PATH,
        help=f'Vault secret holding oldDB / newDB (default: {DEFAULT_SECRET_PATH})'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='db-compare',
        description="Row-level comparison of two SQL Server databases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare every table using dbcompare.yml
  db-compare run

  # Skip staging tables and temp copies, save a JSON report
  db-compare run --exclude "staging.%" --exclude "%.tmp_%" --output report.json

  # Hash rows client-side with 4 tables in flight
  db-compare run --hash-mode client --workers 4

  # Show which tables would be compared
  db-compare tables

  # Compare every night at 02:00
  db-compare schedule --cron "0 2 * * *" --output-dir reports

  # Re-render a saved report
  db-compare report --input report.json
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: LOG_LEVEL env var, else INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        help='Emit diagnostic logs as JSON (default: LOG_JSON env var)'
    )
    parser.add_argument(
        '--log-file',
        help='Diagnostic log file, rotated (default: LOG_FILE env var)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Compare all tables once')
    _add_settings_options(run_parser)
    run_parser.add_argument(
        '--output',
        help='Output file path for report'
    )
    run_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        help='Report format (default: from --output suffix, json otherwise)'
    )
    run_parser.add_argument(
        '--fail-on-mismatch',
        action='store_true',
        help='Exit with status 1 when any mismatch is found'
    )
    run_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port while running'
    )
    run_parser.add_argument(
        '--pushgateway',
        help='Push Prometheus metrics to this Pushgateway (host:port) when done'
    )
    run_parser.add_argument(
        '--otlp-endpoint',
        help='Export traces to this OTLP collector (e.g., localhost:4317)'
    )
    run_parser.add_argument(
        '--trace-console',
        action='store_true',
        help='Print trace spans to stdout'
    )

    # ========== Tables command ==========
    tables_parser = subparsers.add_parser(
        'tables', help='List tables of the new database and whether they are excluded'
    )
    _add_settings_options(tables_parser)

    # ========== Schedule command ==========
    schedule_parser = subparsers.add_parser('schedule', help='Schedule periodic comparisons')
    _add_settings_options(schedule_parser)
    schedule_parser.add_argument(
        '--cron',
        help='Cron expression (e.g., "0 2 * * *" for daily at 02:00)'
    )
    schedule_parser.add_argument(
        '--interval',
        type=int,
        default=86400,
        help='Interval in seconds (default: 86400 = 1 day)'
    )
    schedule_parser.add_argument(
        '--output-dir',
        default='./comparison_reports',
        help='Directory to save comparison reports (default: ./comparison_reports)'
    )
    schedule_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port'
    )

    # ========== Report command ==========
    report_parser = subparsers.add_parser('report', help='Render a report from a previous run')
    report_parser.add_argument(
        '--input',
        required=True,
        help='Input JSON report file'
    )
    report_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )
    report_parser.add_argument(
        '--output',
        help='Output file path (required for json and csv formats)'
    )

    return parser
