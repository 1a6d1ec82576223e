"""Date range calculation utilities."""

import calendar
from datetime import date, datetime
from typing import Iterator, Tuple

from sqlcsv_export.core.types import Granularity, PeriodRange
from sqlcsv_export.exceptions import ExportValidationError
from sqlcsv_export.logger.logger import Logger


class DateManager:
    """Manages date calculations for period-partitioned extraction."""

    @staticmethod
    def parse_period(period: str) -> Tuple[date, Granularity]:
        """
        Parse a ``yyyy``, ``yyyy-MM`` or ``yyyy-MM-dd`` period string.

        Args:
            period: Period string

        Returns:
            Tuple of (first day of the period, granularity)
        """
        granularity = Granularity.detect(period or "")
        if granularity is None:
            raise ExportValidationError(
                f"Unrecognized period {period!r}; expected yyyy, yyyy-MM or yyyy-MM-dd"
            )
        try:
            parsed = datetime.strptime(period, granularity.parse_format).date()
        except ValueError as e:
            raise ExportValidationError(f"Invalid period {period!r}: {e}") from e
        return parsed, granularity

    @staticmethod
    def month_start(value: date) -> date:
        """Truncate a date to the first day of its month."""
        return value.replace(day=1)

    @staticmethod
    def add_months(value: date, months: int) -> date:
        """
        Shift a first-of-month date by a number of months.

        Args:
            value: Date on the first day of a month
            months: Months to add (may be negative)

        Returns:
            First day of the target month
        """
        index = value.year * 12 + value.month - 1 + months
        return date(index // 12, index % 12 + 1, 1)

    @staticmethod
    def get_month_name(year: int, month: int) -> str:
        """
        Get formatted month name.

        Args:
            year: Year
            month: Month (1-12)

        Returns:
            Formatted string like "January 2025"
        """
        return f"{calendar.month_name[month]} {year}"


class PeriodSequence:
    """Lazy, restartable sequence of one-month ranges between two periods."""

    def __init__(self, start: date, end: date, granularity: Granularity):
        self.start = DateManager.month_start(start)
        self.end = end
        self.granularity = granularity

    def __iter__(self) -> Iterator[PeriodRange]:
        current = self.start
        while current <= self.end:
            following = DateManager.add_months(current, 1)
            yield PeriodRange(start=current, end=following, granularity=self.granularity)
            current = following

    def __len__(self) -> int:
        return (self.end.year - self.start.year) * 12 + self.end.month - self.start.month + 1

    def __repr__(self):
        return (
            f"PeriodSequence(start={self.start.isoformat()}, end={self.end.isoformat()}, "
            f"granularity={self.granularity.label}, ranges={len(self)})"
        )


def decompose(start_period: str, end_period: str) -> PeriodSequence:
    """
    Split a start/end period pair into monthly sub-ranges.

    Both periods must use the same format and start must not be after end.
    Every range spans one calendar month whatever the input granularity; the
    granularity only selects the file token and label.

    Args:
        start_period: First period, e.g. ``2022-01``
        end_period: Last period, e.g. ``2022-04``

    Returns:
        PeriodSequence over ``[monthStart, monthStart + 1 month)`` ranges
    """
    start, start_granularity = DateManager.parse_period(start_period)
    end, end_granularity = DateManager.parse_period(end_period)

    if start_granularity != end_granularity:
        raise ExportValidationError(
            f"Start period {start_period!r} ({start_granularity.label}) and end period "
            f"{end_period!r} ({end_granularity.label}) must use the same format"
        )
    if start > end:
        raise ExportValidationError(
            f"Start period {start_period!r} is after end period {end_period!r}"
        )
    if (end.year, end.month) == (date.max.year, date.max.month):
        raise ExportValidationError(
            f"End period {end_period!r} is too late; the month after it is not a valid date"
        )

    sequence = PeriodSequence(start, end, start_granularity)
    if start_granularity == Granularity.YEAR and len(sequence) > 1:
        Logger.warning(
            f"Yearly periods are exported month by month; all {len(sequence)} "
            f"months of a year share one file token and overwrite each other"
        )
    return sequence
