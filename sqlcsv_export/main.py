"""Command-line entry point for the SQL Server CSV export tool."""

import argparse
import logging
import sys
from typing import List, Optional

from sqlcsv_export.config import Config
from sqlcsv_export.core.period_exporter import PeriodExporter
from sqlcsv_export.core.range_exporter import RangeExporter
from sqlcsv_export.core.types import ExportJob, TableSource
from sqlcsv_export.exceptions import ConfigurationError, ExportValidationError
from sqlcsv_export.logger.logger import Logger
from sqlcsv_export.utils import ProgressTracker

EXIT_OK = 0
EXIT_EXPORT_FAILED = 1
EXIT_INVALID_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per export mode."""
    parser = argparse.ArgumentParser(
        prog="sqlcsv-export",
        description="Stream SQL Server tables, views or queries to RFC 4180 CSV files",
    )

    common = argparse.ArgumentParser(add_help=False)
    conn = common.add_argument_group("connection (defaults from SQLCSV_* environment variables)")
    conn.add_argument("--server", help="SQL Server host name")
    conn.add_argument("--port", type=int, help="TCP port (default 1433)")
    conn.add_argument("--database", help="Database name")
    conn.add_argument("--user", help="SQL login; leave out together with --password for integrated auth")
    conn.add_argument("--password", help="SQL login password")
    conn.add_argument("--connect-timeout", type=int, help="Login timeout in seconds (default 30)")
    conn.add_argument("--driver", help="ODBC driver name")

    output = common.add_argument_group("output")
    output.add_argument("--batch-size", type=int, help="Rows per batch (default 100000)")
    output.add_argument("--locale", help="Locale for decimal separators (default en-US)")
    output.add_argument("--verbose", action="store_true", help="Enable debug logging")
    output.add_argument("--log-file", help="Also write diagnostics to this file")

    commands = parser.add_subparsers(dest="command", required=True)

    table = commands.add_parser("table", parents=[common], help="Export a table or view")
    table.add_argument("--schema", help="Schema name (default dbo)")
    table.add_argument("--table", required=True, help="Table or view name")
    table.add_argument("--output", required=True, help="Output CSV path")

    query = commands.add_parser("query", parents=[common], help="Export a free-form query")
    source = query.add_mutually_exclusive_group(required=True)
    source.add_argument("--query", help="Query text")
    source.add_argument("--query-file", help="File containing the query text")
    query.add_argument("--output", required=True, help="Output CSV path")

    period = commands.add_parser(
        "period", parents=[common], help="Export a table or view split into monthly files"
    )
    period.add_argument("--schema", help="Schema name (default dbo)")
    period.add_argument("--table", required=True, help="Table or view name")
    period.add_argument("--date-column", required=True, help="Date column to filter on")
    period.add_argument("--start", required=True, help="Start period: yyyy, yyyy-MM or yyyy-MM-dd")
    period.add_argument("--end", required=True, help="End period, same format as --start")
    period.add_argument(
        "--output", required=True, help="Output path template; '{}' is replaced by the period"
    )

    return parser


def load_config(args: argparse.Namespace) -> Config:
    """Build configuration with command-line values taking precedence."""
    return Config(
        server=args.server,
        port=args.port,
        database=args.database,
        user=args.user,
        password=args.password,
        connect_timeout=args.connect_timeout,
        driver=args.driver,
        schema=getattr(args, "schema", None),
        batch_size=args.batch_size,
        locale=args.locale,
    )


def read_query(args: argparse.Namespace) -> str:
    if args.query_file:
        with open(args.query_file, 'r', encoding='utf-8') as f:
            return f.read()
    return args.query


def run(args: argparse.Namespace, tracker: ProgressTracker) -> int:
    """Run the selected export and return the process exit code."""
    config = load_config(args)
    connection = config.get_connection_settings()

    if args.command == "period":
        summary = PeriodExporter(tracker=tracker).export(
            source=TableSource(name=args.table, schema=config.schema),
            date_column=args.date_column,
            start_period=args.start,
            end_period=args.end,
            output_template=args.output,
            connection=connection,
            batch_size=config.batch_size,
            locale=config.locale,
        )
        return EXIT_OK if summary.success else EXIT_EXPORT_FAILED

    job = ExportJob.from_selector(
        output_path=args.output,
        connection=connection,
        table=args.table if args.command == "table" else None,
        query=read_query(args) if args.command == "query" else None,
        schema=config.schema,
        batch_size=config.batch_size,
        locale=config.locale,
    )
    result = RangeExporter(tracker=tracker).export(job)
    return EXIT_OK if result.success else EXIT_EXPORT_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)

    # Setup logging
    Logger.setup(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=args.log_file,
    )

    tracker = ProgressTracker()

    try:
        return run(args, tracker)

    except (ExportValidationError, ConfigurationError) as e:
        tracker.print_error(f"Invalid input: {e}")
        Logger.error(f"Invalid input: {e}")
        return EXIT_INVALID_INPUT
    except KeyboardInterrupt:
        tracker.print_warning("Process interrupted by user")
        Logger.warning("Process interrupted by user")
        return EXIT_EXPORT_FAILED
    except Exception as e:
        tracker.print_error(f"Export error: {e}")
        Logger.error(f"Export failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    sys.exit(main())
