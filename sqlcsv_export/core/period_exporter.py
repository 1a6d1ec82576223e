"""Period-partitioned export: one CSV file per calendar month."""

import time
from typing import Optional

from sqlcsv_export.config.settings import ConnectionSettings
from sqlcsv_export.core.range_exporter import RangeExporter
from sqlcsv_export.core.types import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_LOCALE,
    ExportJob,
    ExportResult,
    PeriodExportSummary,
    PeriodRange,
    QuerySource,
    TableSource,
    quote_identifier,
)
from sqlcsv_export.exceptions import ExportValidationError
from sqlcsv_export.exporters.csv_exporter import decimal_separator_for
from sqlcsv_export.logger.logger import Logger
from sqlcsv_export.utils.date_manager import DateManager, PeriodSequence, decompose
from sqlcsv_export.utils.progress_tracker import ProgressTracker

PERIOD_TOKEN = "{}"


def render_output_path(template: str, token: str) -> str:
    """Replace the single literal ``{}`` in a path template with ``token``."""
    return template.replace(PERIOD_TOKEN, token)


def validate_output_template(template: str):
    count = template.count(PERIOD_TOKEN) if template else 0
    if count != 1:
        raise ExportValidationError(
            f"Output path template must contain '{PERIOD_TOKEN}' exactly once, "
            f"found {count} in {template!r}"
        )


def build_period_query(table: TableSource, date_column: str, period: PeriodRange) -> QuerySource:
    """
    Build the range-filtered query for one period.

    Args:
        table: Base table or view
        date_column: Date-typed column the range applies to
        period: Half-open range ``[start, end)``

    Returns:
        Parameterised QuerySource
    """
    column = quote_identifier(date_column)
    return QuerySource(
        text=f"{table.to_sql()} WHERE {column} >= ? AND {column} < ?",
        parameters=(period.start, period.end),
    )


class PeriodExporter:
    """Runs one single-range export per period, sequentially."""

    def __init__(
            self,
            range_exporter: Optional[RangeExporter] = None,
            tracker: Optional[ProgressTracker] = None
    ):
        """Initialize period exporter with dependencies."""
        self.tracker = tracker or ProgressTracker()
        self.range_exporter = range_exporter or RangeExporter(tracker=self.tracker)
        self.date_manager = DateManager()

    def export(
            self,
            source,
            date_column: str,
            start_period: str,
            end_period: str,
            output_template: str,
            connection: ConnectionSettings,
            batch_size: int = DEFAULT_BATCH_SIZE,
            locale: str = DEFAULT_LOCALE
    ) -> PeriodExportSummary:
        """
        Export a table or view split into monthly files.

        All input is validated before the first connection is opened. A
        failed period is reported and the remaining periods still run.

        Args:
            source: TableSource to filter (free-form queries are rejected)
            date_column: Column compared against each range
            start_period: First period (yyyy, yyyy-MM or yyyy-MM-dd)
            end_period: Last period, same format as start_period
            output_template: Output path containing ``{}`` once
            connection: Connection parameters
            batch_size: Rows per batch
            locale: Locale for decimal separators

        Returns:
            PeriodExportSummary with one result per period
        """
        if not isinstance(source, TableSource):
            raise ExportValidationError(
                "Period export requires a table or view source, not a query"
            )
        if not date_column or not date_column.strip():
            raise ExportValidationError("Date column must not be empty")
        if batch_size < 1:
            raise ExportValidationError(f"Batch size must be at least 1, got {batch_size}")
        decimal_separator_for(locale)
        validate_output_template(output_template)
        periods = decompose(start_period, end_period)

        self.tracker.print_header(f"Period export of {source.qualified_name}")
        self._print_configuration(source, date_column, periods, output_template)

        summary = PeriodExportSummary()
        started = time.perf_counter()

        with self.tracker.create_progress_bar() as progress:
            main_task = progress.add_task(
                f"[bold blue]Exporting {source.qualified_name}",
                total=len(periods)
            )

            for period in periods:
                progress.update(main_task, description=f"[blue]Processing {period.label}")

                job = ExportJob(
                    source=build_period_query(source, date_column, period),
                    output_path=render_output_path(output_template, period.token),
                    connection=connection,
                    batch_size=batch_size,
                    locale=locale,
                )
                result = self.range_exporter.export(job)
                self._handle_period_result(period, result)
                summary.add(period, result)

                progress.advance(main_task)

        summary.elapsed_seconds = time.perf_counter() - started
        self._print_final_summary(summary)
        return summary

    def _handle_period_result(self, period: PeriodRange, result: ExportResult):
        month_name = self.date_manager.get_month_name(period.start.year, period.start.month)
        if result.success:
            self.tracker.print_success(f"{month_name} completed ({result.rows:,} rows)")
        else:
            Logger.error(
                f"Period {period.label} ({month_name}) failed at {result.last_stage.value}: "
                f"{result.error_message}"
            )

    def _print_configuration(self, source, date_column, periods: PeriodSequence, template):
        self.tracker.print_info("📊 Export Configuration:")
        self.tracker.print_info(f"   • Source: {source.qualified_name}")
        self.tracker.print_info(f"   • Date column: {date_column}")
        self.tracker.print_info(
            f"   • Period: {periods.start.isoformat()} to {periods.end.isoformat()} "
            f"({periods.granularity.label})"
        )
        self.tracker.print_info(f"   • Monthly ranges: {len(periods)}")
        self.tracker.print_info(f"   • Output: {template}")
        self.tracker.print_info("")

    def _print_final_summary(self, summary: PeriodExportSummary):
        failures = summary.failures
        total = len(summary.results)

        self.tracker.print_info("\n📊 Export Summary:")
        self.tracker.print_info(f"   • Successful periods: {total - len(failures)}/{total}")
        self.tracker.print_info(f"   • Total rows exported: {summary.total_rows:,}")
        self.tracker.print_info(f"   • Total time: {summary.elapsed_seconds:.1f}s")
        Logger.info(
            f"Period export finished: {summary.total_rows} rows, {total} periods, "
            f"{len(failures)} failed, {summary.elapsed_seconds:.1f}s"
        )

        if failures:
            self.tracker.print_warning(f"Failed periods: {len(failures)}")
            for period, result in failures:
                self.tracker.print_warning(
                    f"   • {period.label} → {result.output_path}: "
                    f"{result.last_stage.value} failure: {result.error_message}"
                )
