"""SQL Server CSV Export - bounded-memory batched extraction to RFC 4180 CSV."""

__version__ = "1.0.0"
__description__ = "Stream SQL Server result sets to CSV files, optionally one file per month"

from .core.period_exporter import PeriodExporter
from .core.range_exporter import RangeExporter
from .core.types import ExportJob, QuerySource, TableSource
from .utils.date_manager import decompose

__all__ = [
    'ExportJob',
    'PeriodExporter',
    'QuerySource',
    'RangeExporter',
    'TableSource',
    'decompose',
]
