"""Utility modules for the SQL Server CSV export tool."""

from .date_manager import DateManager, PeriodSequence, decompose
from .progress_tracker import ProgressTracker

__all__ = [
    'DateManager',
    'PeriodSequence',
    'decompose',
    'ProgressTracker',
]
