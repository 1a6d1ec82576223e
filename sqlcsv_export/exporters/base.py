"""Base exporter interface."""

import os
from abc import ABC, abstractmethod

from sqlcsv_export.core.types import Batch


class BaseExporter(ABC):
    """Abstract base class for batch writers."""

    @abstractmethod
    def write(self, batch: Batch, path: str, append: bool = False) -> str:
        """
        Write one batch to a file.

        Args:
            batch: Batch to write
            path: Target file path
            append: Append to an existing file instead of creating it

        Returns:
            Path written to
        """
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Get file extension for this exporter."""
        pass

    @staticmethod
    def _require_existing(path: str):
        """Appending never creates a file."""
        if not os.path.exists(path):
            raise FileNotFoundError(f"Cannot append to missing file: {path}")
