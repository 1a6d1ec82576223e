"""SQL Server connection management."""

from sqlcsv_export.config.settings import ConnectionSettings
from sqlcsv_export.exceptions import DatabaseConnectionError


class SqlServerConnection:
    """Manages pyodbc connections to SQL Server."""

    def __init__(self, settings: ConnectionSettings):
        """
        Initialize connection manager.

        Args:
            settings: Resolved connection parameters
        """
        self.settings = settings
        self._connection = None

    def connect(self):
        """Establish connection to SQL Server."""
        import pyodbc

        try:
            self._connection = pyodbc.connect(
                self.settings.connection_string(),
                timeout=self.settings.connect_timeout,
            )
        except pyodbc.Error as e:
            raise DatabaseConnectionError(
                f"Could not connect to {self.settings.server}/{self.settings.database}: {e}"
            ) from e

        # The login timeout must not bound query execution
        self._connection.timeout = 0

    def disconnect(self):
        """Close SQL Server connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    @property
    def connection(self):
        """Get active connection instance."""
        if not self._connection:
            raise RuntimeError("Not connected to SQL Server")
        return self._connection

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
