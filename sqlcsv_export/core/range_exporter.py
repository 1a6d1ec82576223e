"""Exports one query result to one CSV file in bounded-memory batches."""

import gc
from typing import Optional

from sqlcsv_export.core.connection import SqlServerConnection
from sqlcsv_export.core.row_batcher import RowBatcher
from sqlcsv_export.core.types import (
    ExportJob,
    ExportResult,
    ProcessingStage,
    ProgressCounters,
    TableSource,
)
from sqlcsv_export.exporters import CSVExporter
from sqlcsv_export.logger.logger import Logger
from sqlcsv_export.utils.progress_tracker import ProgressTracker


class RangeExporter:
    """Streams a cursor into a CSV file one batch at a time."""

    def __init__(
            self,
            tracker: Optional[ProgressTracker] = None,
            connection_factory=SqlServerConnection,
            exporter_factory=CSVExporter
    ):
        """
        Initialize range exporter with dependencies.

        Args:
            tracker: Console output helper
            connection_factory: Callable taking ConnectionSettings and
                returning a connection context manager
            exporter_factory: Callable taking a locale and returning a writer
        """
        self.tracker = tracker or ProgressTracker()
        self.connection_factory = connection_factory
        self.exporter_factory = exporter_factory

    def export(self, job: ExportJob) -> ExportResult:
        """
        Export a job's result set to its output path.

        Failures after validation are reported and recorded on the result
        rather than raised. A zero-row result creates no file.

        Args:
            job: Export request

        Returns:
            ExportResult with row/batch counts and the final stage
        """
        writer = self.exporter_factory(job.locale)
        result = ExportResult(output_path=job.output_path)
        counters = ProgressCounters()

        self.tracker.print_processing(f"{self._describe(job)} → {job.output_path}")

        try:
            with self.connection_factory(job.connection) as conn:
                result.last_stage = ProcessingStage.READ
                cursor = conn.connection.cursor()
                try:
                    self._stream(cursor, job, writer, result, counters)
                finally:
                    cursor.close()

        except Exception as e:
            result.error_message = str(e)
            self._report_failure(result)
            return result

        finally:
            result.elapsed_seconds = counters.elapsed
            gc.collect()

        self._report_success(result, counters)
        return result

    def _stream(self, cursor, job: ExportJob, writer, result: ExportResult, counters: ProgressCounters):
        """Read batches and write each one before reading the next."""
        parameters = job.source.parameters
        if parameters:
            cursor.execute(job.source.to_sql(), parameters)
        else:
            cursor.execute(job.source.to_sql())

        batcher = RowBatcher(cursor, job.batch_size)

        while True:
            result.last_stage = ProcessingStage.READ
            batch = batcher.next_batch()
            if batch is None:
                break

            result.last_stage = ProcessingStage.WRITE
            writer.write(batch, job.output_path, append=counters.batch_count > 0)
            rows = len(batch)
            del batch

            delta = counters.record_batch(rows)
            result.rows = counters.total_rows
            result.batches = counters.batch_count

            self.tracker.print_info(
                f"   • Batch {counters.batch_count}: {rows:,} rows "
                f"(total {counters.total_rows:,}) • elapsed {counters.elapsed:.1f}s "
                f"• delta {delta:.1f}s"
            )

        result.last_stage = ProcessingStage.COMPLETE

    def _report_success(self, result: ExportResult, counters: ProgressCounters):
        if not result.file_created:
            self.tracker.print_warning(f"No rows returned, {result.output_path} was not created")
            Logger.info(f"Export to {result.output_path} returned no rows")
            return

        self.tracker.print_success(
            f"Exported {result.rows:,} rows in {result.batches} batches to {result.output_path} "
            f"({result.elapsed_seconds:.1f}s total, {counters.average_batch_seconds:.2f}s per batch)"
        )
        Logger.info(
            f"Exported {result.rows} rows in {result.batches} batches to "
            f"{result.output_path} in {result.elapsed_seconds:.1f}s"
        )

    def _report_failure(self, result: ExportResult):
        stage = result.last_stage.value
        self.tracker.print_error(
            f"{stage.capitalize()} failure exporting to {result.output_path}: {result.error_message}"
        )
        Logger.error(f"Failed {stage} for {result.output_path}: {result.error_message}")

        if result.incomplete:
            message = (
                f"Output file {result.output_path} is incomplete: {result.rows:,} rows in "
                f"{result.batches} batches were written before the failure; "
                f"do not treat it as a complete export"
            )
            self.tracker.print_warning(message)
            Logger.warning(message)

    @staticmethod
    def _describe(job: ExportJob) -> str:
        if isinstance(job.source, TableSource):
            return job.source.qualified_name
        return "custom query"
