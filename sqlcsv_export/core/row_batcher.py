"""Fixed-size batch extraction from an open DB-API cursor."""

from typing import Optional, Tuple

import numpy as np
import pandas as pd

from sqlcsv_export.core.types import Batch, ColumnDescriptor, ColumnType
from sqlcsv_export.exceptions import ExportValidationError


class RowBatcher:
    """Reads an open cursor in batches of at most ``batch_size`` rows."""

    def __init__(self, cursor, batch_size: int):
        """
        Initialize batcher over a cursor.

        The cursor is borrowed: the caller opens and closes it.

        Args:
            cursor: DB-API cursor with a result set (``description`` and
                ``fetchmany``)
            batch_size: Maximum rows per batch
        """
        if batch_size < 1:
            raise ExportValidationError(f"Batch size must be at least 1, got {batch_size}")
        self.cursor = cursor
        self.batch_size = batch_size
        self.columns = self._read_schema(cursor)
        self.batches_read = 0

    @staticmethod
    def _read_schema(cursor) -> Tuple[ColumnDescriptor, ...]:
        """Build the column schema from cursor metadata."""
        if cursor.description is None:
            raise ExportValidationError("Query did not return a result set")

        return tuple(
            ColumnDescriptor(name=entry[0], column_type=ColumnType.from_type_code(entry[1]))
            for entry in cursor.description
        )

    @property
    def column_names(self) -> list:
        return [column.name for column in self.columns]

    def next_batch(self) -> Optional[Batch]:
        """
        Fetch the next batch.

        Returns:
            Batch with 1..batch_size rows, or None once the cursor is exhausted
        """
        rows = self.cursor.fetchmany(self.batch_size)
        if not rows:
            return None

        self.batches_read += 1
        return Batch(
            columns=self.columns,
            frame=self._to_dataframe(rows),
            number=self.batches_read,
        )

    def __iter__(self):
        while True:
            batch = self.next_batch()
            if batch is None:
                return
            yield batch

    def _to_dataframe(self, rows) -> pd.DataFrame:
        """Convert fetched rows to a DataFrame cast to the batch schema."""
        data = np.empty((len(rows), len(self.columns)), dtype=object)

        for i, row in enumerate(rows):
            for j, item in enumerate(row):
                data[i, j] = item

        frame = pd.DataFrame(data, columns=self.column_names, dtype=object)
        for j, column in enumerate(self.columns):
            frame.isetitem(j, self._cast(frame.iloc[:, j], column.column_type))
        return frame

    @staticmethod
    def _cast(values: pd.Series, column_type: ColumnType) -> pd.Series:
        if column_type == ColumnType.INTEGER:
            return values.astype("Int64")
        if column_type == ColumnType.BOOLEAN:
            return values.astype("boolean")
        if column_type == ColumnType.BINARY:
            return values.map(lambda v: None if v is None else "0x" + bytes(v).hex().upper())
        # Decimals, dates and text stay as Python objects so no precision is lost
        return values
