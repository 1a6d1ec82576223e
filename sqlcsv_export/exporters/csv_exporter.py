"""CSV export implementation."""

import csv
import decimal

import numpy as np
import pandas as pd
from babel import Locale, UnknownLocaleError
from babel.numbers import get_decimal_symbol

from sqlcsv_export.core.types import Batch, ColumnType, DEFAULT_LOCALE
from sqlcsv_export.exceptions import ExportValidationError
from .base import BaseExporter


def decimal_separator_for(locale: str) -> str:
    """
    Resolve the decimal symbol of a locale identifier.

    Args:
        locale: Identifier such as ``en-US``, ``de_DE`` or ``fr``

    Returns:
        Decimal separator character
    """
    try:
        parsed = Locale.parse(locale.replace("-", "_"))
    except (UnknownLocaleError, ValueError, TypeError, AttributeError) as e:
        raise ExportValidationError(f"Unknown locale: {locale!r}") from e
    return get_decimal_symbol(parsed)


def format_number(value, separator: str):
    """Render a float or Decimal in fixed-point notation with ``separator``."""
    if value is None:
        return None
    if isinstance(value, decimal.Decimal):
        text = format(value, "f")
    elif isinstance(value, float):
        if np.isnan(value):
            return None
        text = np.format_float_positional(value, trim="-")
    else:
        return value
    return text.replace(".", separator) if separator != "." else text


class CSVExporter(BaseExporter):
    """Writes batches to RFC 4180 CSV, creating the file on the first batch."""

    delimiter = ","
    line_terminator = "\r\n"
    encoding = "utf-8"

    def __init__(self, locale: str = DEFAULT_LOCALE):
        """
        Initialize CSV exporter.

        Args:
            locale: Locale whose decimal separator is used for numbers
        """
        self.locale = locale
        self.decimal_separator = decimal_separator_for(locale)

    @property
    def file_extension(self) -> str:
        """CSV file extension."""
        return "csv"

    def write(self, batch: Batch, path: str, append: bool = False) -> str:
        """
        Write a batch as CSV.

        The first write (``append=False``) truncates the file and emits the
        header; later writes append rows only.

        Args:
            batch: Batch to write
            path: Target file path
            append: Append to an existing file

        Returns:
            Path written to
        """
        if append:
            self._require_existing(path)

        frame = self._format_numbers(batch)
        frame.to_csv(
            path,
            mode="a" if append else "w",
            header=False if append else batch.column_names,
            index=False,
            sep=self.delimiter,
            encoding=self.encoding,
            lineterminator=self.line_terminator,
            quoting=csv.QUOTE_MINIMAL,
            quotechar='"',
            doublequote=True,
            na_rep="",
        )
        return path

    def _format_numbers(self, batch: Batch) -> pd.DataFrame:
        """Render numeric columns as text with the configured decimal separator."""
        numeric = [
            j for j, column in enumerate(batch.columns)
            if column.column_type == ColumnType.DECIMAL
        ]
        if not numeric:
            return batch.frame

        frame = batch.frame.copy(deep=False)
        for j in numeric:
            frame.isetitem(
                j, frame.iloc[:, j].map(lambda v: format_number(v, self.decimal_separator))
            )
        return frame
