"""Configuration management for the Loan Ledger server.

Settings come from (in order of precedence):
1. Explicit keyword arguments (tests, embedding applications)
2. ``LOAN_LEDGER_*`` environment variables
3. A local ``.env`` file
4. The defaults declared below
"""

from decimal import Decimal
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerConfig(BaseSettings):
    """Loan Ledger configuration.

    Covers server identity (used in the MCP handshake), the backing store,
    and the business constants of loan settlement.
    """

    model_config = SettingsConfigDict(
        # LOAN_LEDGER_ prefix keeps us clear of other services' variables
        env_prefix="LOAN_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Server Metadata ===

    server_name: str = Field(
        default="loan-ledger",
        description="MCP server name used in protocol handshake",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="0.1.0",
        description="Server version for capability negotiation",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    # === Database Configuration ===

    database_path: Path = Field(
        default=Path("data/loan_ledger.db"),
        description="SQLite database file path (used when database_url is not set)",
    )

    database_url: str | None = Field(
        default=None,
        description="Full SQLAlchemy URL, e.g. postgresql+psycopg://user@host/ledger",
    )

    lock_timeout_seconds: float = Field(
        default=5.0,
        description="How long a SQLite writer waits for the database lock",
        gt=0,
    )

    # === Settlement ===

    penalty_per_day: Decimal = Field(
        default=Decimal("5"),
        description="Late fee charged per whole day past the expected return date",
        ge=0,
        decimal_places=2,
    )

    # === Transport Configuration ===

    transport: str = Field(
        default="stdio",
        description="Primary transport mechanism",
        pattern=r"^(stdio|streamable_http)$",
    )

    http_host: str = Field(default="127.0.0.1", description="Host for Streamable HTTP")

    http_port: int = Field(
        default=8080,
        description="Port for Streamable HTTP",
        ge=1024,
        le=65535,
    )

    # === Development Configuration ===

    debug: bool = Field(default=False, description="Enable debug logging")

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, v: Path) -> Path:
        """Resolve the database path and make sure its directory exists."""
        abs_path = v.absolute()
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        if not abs_path.parent.is_dir():
            raise ValueError(f"Database directory {abs_path.parent} is not accessible")
        return abs_path

    @field_validator("server_name")
    @classmethod
    def validate_server_name(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Server name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Server name must not exceed 50 characters")
        return v

    @property
    def server_info(self) -> dict[str, str]:
        """Server information sent during the MCP initialize phase."""
        return {
            "name": self.server_name,
            "version": self.server_version,
            "transport": self.transport,
        }

    def get_database_url(self) -> str:
        """SQLAlchemy URL of the backing store."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.database_path}"


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: LedgerConfig | None = None


def get_config() -> LedgerConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = LedgerConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
