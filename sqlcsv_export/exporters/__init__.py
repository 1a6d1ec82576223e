"""Data export components."""

from .base import BaseExporter
from .csv_exporter import CSVExporter

__all__ = ["BaseExporter", "CSVExporter"]
