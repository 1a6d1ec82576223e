"""Core extraction components."""

from .types import (
    Batch,
    ColumnDescriptor,
    ColumnType,
    ExportJob,
    ExportResult,
    Granularity,
    PeriodExportSummary,
    PeriodRange,
    ProcessingStage,
    ProgressCounters,
    QuerySource,
    TableSource,
)
from .connection import SqlServerConnection
from .row_batcher import RowBatcher

__all__ = [
    'Batch',
    'ColumnDescriptor',
    'ColumnType',
    'ExportJob',
    'ExportResult',
    'Granularity',
    'PeriodExportSummary',
    'PeriodRange',
    'ProcessingStage',
    'ProgressCounters',
    'QuerySource',
    'TableSource',
    'SqlServerConnection',
    'RowBatcher',
]
