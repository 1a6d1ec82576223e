"""Configuration management for the SQL Server CSV export tool."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from sqlcsv_export.exceptions import ConfigurationError, ExportValidationError

DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"
AZURE_SQL_SUFFIX = ".database.windows.net"


@dataclass(frozen=True)
class ConnectionSettings:
    """Resolved connection parameters for one SQL Server database."""
    server: str
    database: str
    port: int = 1433
    user: Optional[str] = None
    password: Optional[str] = None
    connect_timeout: int = 30
    driver: str = DEFAULT_DRIVER
    encrypt: Optional[bool] = None
    trust_server_certificate: bool = True

    def __post_init__(self):
        if bool(self.user) != bool(self.password):
            raise ExportValidationError(
                "User and password must be supplied together; "
                "omit both to use integrated authentication"
            )

    @property
    def integrated_auth(self) -> bool:
        """True when no credentials are given and Windows/Kerberos auth is used."""
        return not self.user and not self.password

    @property
    def is_azure(self) -> bool:
        return self.server.lower().endswith(AZURE_SQL_SUFFIX)

    def connection_string(self) -> str:
        """Build the ODBC connection string."""
        parts = [
            f"DRIVER={{{self.driver}}}",
            f"SERVER={self.server},{self.port}",
            f"DATABASE={self.database}",
        ]

        if self.integrated_auth:
            parts.append("Trusted_Connection=yes")
        else:
            parts.append(f"UID={self.user}")
            password = self.password.replace("}", "}}")
            parts.append(f"PWD={{{password}}}")

        # Azure SQL rejects unencrypted sessions
        if self.is_azure:
            parts.append("Encrypt=yes")
            parts.append("TrustServerCertificate=no")
        else:
            if self.encrypt is not None:
                parts.append(f"Encrypt={'yes' if self.encrypt else 'no'}")
            if self.trust_server_certificate:
                parts.append("TrustServerCertificate=yes")

        return ";".join(parts) + ";"


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Centralized configuration management."""

    def __init__(self, **overrides):
        """
        Initialize configuration by loading environment variables.

        Args:
            **overrides: Values that take precedence over the environment,
                keyed by property name (e.g. ``server="db01"``)
        """
        load_dotenv()
        self._overrides = {k: v for k, v in overrides.items() if v is not None}

    def _get(self, key: str, env_var: str, default: Optional[str] = None):
        if key in self._overrides:
            return self._overrides[key]
        return os.getenv(env_var, default)

    @property
    def server(self) -> Optional[str]:
        """SQL Server host name."""
        return self._get("server", "SQLCSV_SERVER")

    @property
    def port(self) -> int:
        """SQL Server TCP port."""
        return int(self._get("port", "SQLCSV_PORT", "1433"))

    @property
    def database(self) -> Optional[str]:
        """Database name."""
        return self._get("database", "SQLCSV_DATABASE")

    @property
    def user(self) -> Optional[str]:
        return self._get("user", "SQLCSV_USER") or None

    @property
    def password(self) -> Optional[str]:
        return self._get("password", "SQLCSV_PASSWORD") or None

    @property
    def connect_timeout(self) -> int:
        """Connection (login) timeout in seconds."""
        return int(self._get("connect_timeout", "SQLCSV_CONNECT_TIMEOUT", "30"))

    @property
    def driver(self) -> str:
        """ODBC driver name."""
        return self._get("driver", "SQLCSV_DRIVER", DEFAULT_DRIVER)

    @property
    def encrypt(self) -> Optional[bool]:
        value = self._get("encrypt", "SQLCSV_ENCRYPT")
        if isinstance(value, bool):
            return value
        return _parse_bool(value)

    @property
    def schema(self) -> str:
        """Default schema for table/view sources."""
        return self._get("schema", "SQLCSV_SCHEMA", "dbo")

    @property
    def batch_size(self) -> int:
        """Rows fetched and written per batch."""
        return int(self._get("batch_size", "SQLCSV_BATCH_SIZE", "100000"))

    @property
    def locale(self) -> str:
        """Locale used for decimal separators in CSV output."""
        return self._get("locale", "SQLCSV_LOCALE", "en-US")

    def get_connection_settings(self) -> ConnectionSettings:
        """Get SQL Server connection parameters."""
        self.validate()
        return ConnectionSettings(
            server=self.server,
            database=self.database,
            port=self.port,
            user=self.user,
            password=self.password,
            connect_timeout=self.connect_timeout,
            driver=self.driver,
            encrypt=self.encrypt,
        )

    def validate(self):
        """Validate required settings."""
        required = {"server": "SQLCSV_SERVER", "database": "SQLCSV_DATABASE"}
        missing = [env for key, env in required.items() if not getattr(self, key)]

        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
