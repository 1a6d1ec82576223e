# logger.py
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Logger:
    """Static diagnostic logger, kept apart from progress output."""

    _logger = None

    @classmethod
    def setup(
            cls,
            name: str = "sqlcsv_export",
            level: int = logging.INFO,
            log_file: Optional[str] = None
    ) -> None:
        """
        Configure the export logger.

        Handlers are attached once; later calls only adjust the level and
        may add a log file.

        Args:
            name: Logger name
            level: Minimum level
            log_file: Optional path that also receives every record
        """
        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        if cls._logger is None:
            cls._logger = logging.getLogger(name)
            # stdout carries progress, diagnostics go to stderr
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(formatter)
            cls._logger.addHandler(handler)

        cls._logger.setLevel(level)

        if log_file and not cls._has_file_handler(log_file):
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            cls._logger.addHandler(file_handler)

    @classmethod
    def _has_file_handler(cls, log_file: str) -> bool:
        path = os.path.abspath(log_file)
        return any(
            isinstance(h, logging.FileHandler) and h.baseFilename == path
            for h in cls._logger.handlers
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Return singleton logger instance."""
        if cls._logger is None:
            cls.setup()
        return cls._logger

    @classmethod
    def info(cls, msg: str, *args, **kwargs) -> None:
        cls.get_logger().info(msg, *args, **kwargs)

    @classmethod
    def warning(cls, msg: str, *args, **kwargs) -> None:
        cls.get_logger().warning(msg, *args, **kwargs)

    @classmethod
    def error(cls, msg: str, *args, **kwargs) -> None:
        cls.get_logger().error(msg, *args, **kwargs)

    @classmethod
    def debug(cls, msg: str, *args, **kwargs) -> None:
        cls.get_logger().debug(msg, *args, **kwargs)
