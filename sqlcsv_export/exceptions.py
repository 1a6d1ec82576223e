"""Exceptions raised by the export pipeline."""


class ExportValidationError(ValueError):
    """Raised when export input is invalid, before any connection is opened."""
    pass


class DatabaseConnectionError(RuntimeError):
    """Raised when the database connection cannot be established."""
    pass


class ConfigurationError(RuntimeError):
    """Raised when required settings are missing."""
    pass
