"""orphanscan configuration system using Pydantic Settings."""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

from .errors import ConfigurationError


class OrphanScanConfig(BaseSettings):
    """Scan configuration. Loads from .env file and environment variables.

    CLI flags are applied on top as keyword overrides (see ``get_config``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Source database (SQL Server)
    mssql_server: str = ""
    mssql_username: str = ""
    mssql_password: str = ""
    mssql_database: str = ""
    mssql_driver: str = "mssql+pymssql"
    source_database_url: Optional[str] = None  # overrides the four fields above

    # Results database (SQLite)
    results_db_path: str = "file_search_results.db"
    db_wal_mode: bool = True
    db_busy_timeout: int = 5000  # milliseconds
    db_synchronous: str = "NORMAL"
    commit_interval: int = 500  # rows per results commit

    # Scan
    root_folder: str = ""
    exclusion_patterns: list[str] = []
    link_lookup: str = "preload"  # preload / query

    # Matching policy
    min_prefix_length: int = 5
    parameter_marker: str = "${"
    settings_value_marker: str = "csdportal"
    settings_excluded_name_fragment: str = "path"
    settings_reserved_name: str = "uploadfolder"
    settings_excluded_value_prefixes: list[str] = ["http:", "jdbc:"]

    # Logging
    verbose: bool = False
    log_dir: Optional[str] = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("link_lookup")
    @classmethod
    def validate_link_lookup(cls, v: str) -> str:
        allowed = {"preload", "query"}
        if v not in allowed:
            raise ValueError(f"link_lookup must be one of {allowed}")
        return v

    @field_validator("min_prefix_length", "commit_interval")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return v

    @field_validator("parameter_marker")
    @classmethod
    def validate_parameter_marker(cls, v: str) -> str:
        if not v:
            raise ValueError("parameter_marker must not be empty")
        return v

    def source_url(self) -> URL:
        """Build the SQLAlchemy URL of the source database."""
        if self.source_database_url:
            return make_url(self.source_database_url)

        missing = [
            name
            for name in ("mssql_server", "mssql_username", "mssql_password", "mssql_database")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                "Source database connection is incomplete, missing: " + ", ".join(missing)
            )
        return URL.create(
            self.mssql_driver,
            username=self.mssql_username,
            password=self.mssql_password,
            host=self.mssql_server,
            database=self.mssql_database,
        )

    @property
    def results_url(self) -> str:
        return f"sqlite:///{self.results_db_path}"


def get_config(**overrides) -> OrphanScanConfig:
    """Factory function to create config instance.

    ``None`` overrides are dropped so unset CLI flags fall back to the
    environment.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    return OrphanScanConfig(**values)
