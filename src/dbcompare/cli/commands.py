"""
CLI command implementations.

This module contains the implementation of the CLI commands:
- run: One-time comparison of all tables
- tables: Dry-run listing of the tables a run would compare
- schedule: Periodic scheduled comparison
- report: Report rendering from previous runs
"""

import argparse
import logging
import sys
from pathlib import Path

from prometheus_client import CollectorRegistry

from dbcompare.compare import is_excluded
from dbcompare.config import CompareSettings, load_settings
from dbcompare.errors import ConfigurationError
from dbcompare.report import (
    export_report_csv,
    export_report_json,
    format_report_console,
    generate_report,
    load_report_json,
)
from dbcompare.runner import create_driver, run_comparison
from dbcompare.scheduler import ComparisonScheduler, compare_job_wrapper
from dbcompare.utils.metrics import ComparisonMetrics, MetricsPublisher
from dbcompare.utils.tracing import initialize_tracing, shutdown_tracing

logger = logging.getLogger(__name__)


def settings_from_args(args: argparse.Namespace) -> CompareSettings:
    """
    Load settings, letting command-line flags win over file and environment

    Exits with status 1 on a configuration error, before any comparison runs.
    """
    overrides = {
        "old_db": args.old_db,
        "new_db": args.new_db,
        "exclude_tables": args.exclude,
        "log_dir": args.log_dir,
        "storage_dir": args.storage_dir,
        "hash_mode": args.hash_mode,
        "max_workers": args.workers,
    }

    try:
        return load_settings(
            config_file=args.config,
            overrides=overrides,
            use_vault=args.use_vault,
            vault_secret_path=args.vault_path,
        )
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"FATAL: configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _report_format(args: argparse.Namespace) -> str | None:
    if args.format:
        return args.format
    if args.output:
        return "csv" if Path(args.output).suffix.lower() == ".csv" else "json"
    return None


def _write_report(report: dict, report_format: str | None, output: str | None) -> None:
    if report_format == "console":
        print(format_report_console(report))
    elif report_format == "csv":
        export_report_csv(report, output)
        logger.info(f"Report saved to {output}")
    elif report_format == "json":
        export_report_json(report, output)
        logger.info(f"Report saved to {output}")


def cmd_run(args: argparse.Namespace) -> None:
    """
    Run a one-time comparison

    Args:
        args: Parsed command-line arguments
    """
    report_format = _report_format(args)
    if report_format in ("json", "csv") and not args.output:
        logger.error(f"Output file required for {report_format.upper()} format")
        sys.exit(1)

    settings = settings_from_args(args)
    logger.info("Starting comparison run")

    tracing = bool(args.otlp_endpoint or args.trace_console)
    if tracing:
        initialize_tracing(otlp_endpoint=args.otlp_endpoint, console_export=args.trace_console)

    metrics = None
    publisher = None
    if args.metrics_port or args.pushgateway:
        registry = CollectorRegistry()
        metrics = ComparisonMetrics(registry=registry)
        publisher = MetricsPublisher(port=args.metrics_port or 9091, registry=registry)
        if args.metrics_port:
            publisher.start()

    try:
        summary = run_comparison(settings, metrics=metrics)
    except Exception as e:
        logger.error(f"Comparison failed: {e}", exc_info=True)
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        if tracing:
            shutdown_tracing()

    report = generate_report(summary)
    _write_report(report, report_format, args.output)

    if publisher and args.pushgateway:
        publisher.push(args.pushgateway)

    if args.fail_on_mismatch and summary.total_mismatches > 0:
        logger.warning(f"Comparison found {summary.total_mismatches} mismatch(es)")
        sys.exit(1)

    logger.info("Comparison completed")


def cmd_tables(args: argparse.Namespace) -> None:
    """
    List the user tables of the new database and mark excluded ones

    Args:
        args: Parsed command-line arguments
    """
    settings = settings_from_args(args)

    try:
        tables = create_driver(settings).list_tables()
    except Exception as e:
        logger.error(f"Could not list tables: {e}")
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)

    excluded = 0
    for table in tables:
        if is_excluded(table.full_name, settings.exclusions):
            excluded += 1
            print(f"{table.full_name}  (excluded)")
        else:
            print(table.full_name)

    print(f"{len(tables)} table(s), {excluded} excluded, {len(tables) - excluded} to compare")


def cmd_schedule(args: argparse.Namespace) -> None:
    """
    Schedule periodic comparisons

    Args:
        args: Parsed command-line arguments
    """
    settings = settings_from_args(args)
    logger.info("Setting up comparison scheduler")

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    metrics = None
    if args.metrics_port:
        registry = CollectorRegistry()
        metrics = ComparisonMetrics(registry=registry)
        MetricsPublisher(port=args.metrics_port, registry=registry).start()

    scheduler = ComparisonScheduler()

    try:
        if args.cron:
            scheduler.add_cron_job(
                compare_job_wrapper,
                args.cron,
                "comparison_job",
                settings=settings,
                output_dir=output_dir,
                metrics=metrics,
            )
        else:
            scheduler.add_interval_job(
                compare_job_wrapper,
                args.interval,
                "comparison_job",
                settings=settings,
                output_dir=output_dir,
                metrics=metrics,
            )
    except ValueError as e:
        logger.error(f"Invalid schedule: {e}")
        sys.exit(1)

    logger.info("Starting scheduler (press Ctrl+C to stop)")
    scheduler.start()


def cmd_report(args: argparse.Namespace) -> None:
    """
    Render a report from a previous comparison JSON file

    Args:
        args: Parsed command-line arguments
    """
    logger.info(f"Loading comparison report from {args.input}")

    if args.format in ("json", "csv") and not args.output:
        logger.error(f"Output file required for {args.format.upper()} format")
        sys.exit(1)

    try:
        report = load_report_json(args.input)
        _write_report(report, args.format, args.output)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Failed to process report: {e}")
        sys.exit(1)
