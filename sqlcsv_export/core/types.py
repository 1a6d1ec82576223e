"""Shared type definitions to avoid circular imports."""

import datetime
import decimal
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

import pandas as pd

from sqlcsv_export.config.settings import ConnectionSettings
from sqlcsv_export.exceptions import ExportValidationError

DEFAULT_BATCH_SIZE = 100_000
DEFAULT_SCHEMA = "dbo"
DEFAULT_LOCALE = "en-US"


class ProcessingStage(Enum):
    """Stages of a single export, reported as the error kind on failure."""
    CONNECTION = "connection"
    READ = "read"
    WRITE = "write"
    COMPLETE = "complete"


class ColumnType(Enum):
    """Declared data type of a result-set column."""
    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    BINARY = "binary"

    @classmethod
    def from_type_code(cls, type_code: Any) -> "ColumnType":
        """Map a DB-API ``description`` type code (a Python type) to a column type."""
        if not isinstance(type_code, type):
            return cls.TEXT
        # bool is a subclass of int, check it first
        if issubclass(type_code, bool):
            return cls.BOOLEAN
        if issubclass(type_code, int):
            return cls.INTEGER
        if issubclass(type_code, (float, decimal.Decimal)):
            return cls.DECIMAL
        if issubclass(type_code, (datetime.date, datetime.time)):
            return cls.DATETIME
        if issubclass(type_code, (bytes, bytearray, memoryview)):
            return cls.BINARY
        return cls.TEXT


@dataclass(frozen=True)
class ColumnDescriptor:
    """Name and declared type of one result-set column."""
    name: str
    column_type: ColumnType


@dataclass(frozen=True)
class Batch:
    """A bounded group of rows sharing one schema."""
    columns: Tuple[ColumnDescriptor, ...]
    frame: pd.DataFrame
    number: int

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def column_names(self) -> list:
        return [column.name for column in self.columns]


def quote_identifier(name: str) -> str:
    """Bracket-quote a SQL Server identifier."""
    return "[" + name.replace("]", "]]") + "]"


@dataclass(frozen=True)
class TableSource:
    """A table or view reference, exported with ``SELECT *``."""
    name: str
    schema: str = DEFAULT_SCHEMA

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ExportValidationError("Table name must not be empty")
        if not self.schema or not self.schema.strip():
            raise ExportValidationError("Schema name must not be empty")

    @property
    def qualified_name(self) -> str:
        return f"{quote_identifier(self.schema)}.{quote_identifier(self.name)}"

    @property
    def parameters(self) -> tuple:
        return ()

    def to_sql(self) -> str:
        return f"SELECT * FROM {self.qualified_name}"


@dataclass(frozen=True)
class QuerySource:
    """A free-form query, executed verbatim with optional ``?`` parameters."""
    text: str
    parameters: tuple = ()

    def __post_init__(self):
        if not self.text or not self.text.strip():
            raise ExportValidationError("Query text must not be empty")

    def to_sql(self) -> str:
        return self.text


@dataclass(frozen=True)
class ExportJob:
    """Request describing one single-range export."""
    source: Any
    output_path: str
    connection: ConnectionSettings
    batch_size: int = DEFAULT_BATCH_SIZE
    locale: str = DEFAULT_LOCALE

    def __post_init__(self):
        if not isinstance(self.source, (TableSource, QuerySource)):
            raise ExportValidationError(
                f"Unsupported export source: {type(self.source).__name__}"
            )
        if not self.output_path:
            raise ExportValidationError("Output path must not be empty")
        if self.batch_size < 1:
            raise ExportValidationError(
                f"Batch size must be at least 1, got {self.batch_size}"
            )

    @classmethod
    def from_selector(
            cls,
            output_path: str,
            connection: ConnectionSettings,
            table: Optional[str] = None,
            query: Optional[str] = None,
            schema: str = DEFAULT_SCHEMA,
            batch_size: int = DEFAULT_BATCH_SIZE,
            locale: str = DEFAULT_LOCALE
    ) -> "ExportJob":
        """
        Build a job from the table/query selector pair.

        Exactly one of ``table`` and ``query`` must be given.
        """
        if bool(table) == bool(query):
            raise ExportValidationError(
                "Exactly one of table name or query must be supplied"
            )
        source = TableSource(name=table, schema=schema) if table else QuerySource(text=query)
        return cls(
            source=source,
            output_path=output_path,
            connection=connection,
            batch_size=batch_size,
            locale=locale,
        )


class Granularity(Enum):
    """Precision of a period string."""
    YEAR = ("year", r"^\d{4}$", "%Y", "%Y", "%Y")
    MONTH = ("month", r"^\d{4}-\d{2}$", "%Y-%m", "%Y%m", "%Y-%m")
    DAY = ("day", r"^\d{4}-\d{2}-\d{2}$", "%Y-%m-%d", "%Y%m%d", "%Y-%m-%d")

    def __init__(self, label, pattern, parse_format, token_format, label_format):
        self.label = label
        self.pattern = re.compile(pattern)
        self.parse_format = parse_format
        self.token_format = token_format
        self.label_format = label_format

    @classmethod
    def detect(cls, period: str) -> Optional["Granularity"]:
        for granularity in cls:
            if granularity.pattern.fullmatch(period):
                return granularity
        return None


@dataclass(frozen=True)
class PeriodRange:
    """Half-open calendar interval ``[start, end)``."""
    start: datetime.date
    end: datetime.date
    granularity: Granularity

    @property
    def token(self) -> str:
        """File-name token, e.g. ``202201`` for a monthly range."""
        return self.start.strftime(self.granularity.token_format)

    @property
    def label(self) -> str:
        return self.start.strftime(self.granularity.label_format)


@dataclass
class ProgressCounters:
    """Row/batch counters and timers for one export."""
    total_rows: int = 0
    batch_count: int = 0
    started_at: float = field(default_factory=time.perf_counter)
    last_batch_at: Optional[float] = None

    def record_batch(self, rows: int) -> float:
        """Count a written batch and return seconds since the previous one."""
        now = time.perf_counter()
        delta = now - (self.last_batch_at if self.last_batch_at is not None else self.started_at)
        self.total_rows += rows
        self.batch_count += 1
        self.last_batch_at = now
        return delta

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started_at

    @property
    def average_batch_seconds(self) -> float:
        if not self.batch_count:
            return 0.0
        return self.elapsed / self.batch_count


@dataclass
class ExportResult:
    """Result of a single-range export."""
    output_path: str
    rows: int = 0
    batches: int = 0
    elapsed_seconds: float = 0.0
    last_stage: ProcessingStage = ProcessingStage.CONNECTION
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.last_stage == ProcessingStage.COMPLETE

    @property
    def file_created(self) -> bool:
        return self.batches > 0

    @property
    def incomplete(self) -> bool:
        """True when a failure left a partially written file behind."""
        return not self.success and self.batches > 0


@dataclass
class PeriodExportSummary:
    """Per-range results of a period-partitioned export."""
    results: list = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def add(self, period: PeriodRange, result: ExportResult):
        self.results.append((period, result))

    @property
    def total_rows(self) -> int:
        return sum(result.rows for _, result in self.results)

    @property
    def failures(self) -> Sequence[Tuple[PeriodRange, ExportResult]]:
        return [(period, result) for period, result in self.results if not result.success]

    @property
    def success(self) -> bool:
        return not self.failures
