"""
Command-line interface for db-compare.

Available commands:
- run: Compare all tables once
- tables: List tables and exclusions without comparing
- schedule: Set up periodic comparisons
- report: Render reports from previous runs
"""

import sys

from dbcompare.utils.logging import configure_from_env

from .commands import cmd_report, cmd_run, cmd_schedule, cmd_tables, settings_from_args
from .parser import create_parser

COMMANDS = {
    'run': cmd_run,
    'tables': cmd_tables,
    'schedule': cmd_schedule,
    'report': cmd_report,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the db-compare CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_from_env(level=args.log_level, log_file=args.log_file, json_format=args.log_json)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    command(args)


__all__ = [
    'main',
    'cmd_run',
    'cmd_tables',
    'cmd_schedule',
    'cmd_report',
    'create_parser',
    'settings_from_args',
]


if __name__ == '__main__':
    main()
