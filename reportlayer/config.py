"""Configuration file format for reportlayer."""

import json
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from reportlayer.core.formatting import DEFAULT_DATE_FORMAT
from reportlayer.core.identifiers import validate_table_prefix

CONFIG_NAMES = ["reportlayer.yaml", "reportlayer.yml", "reportlayer.json"]
CONFIG_ENV = "REPORTLAYER_CONFIG"


class DuckDBConnection(BaseModel):
    """DuckDB connection configuration."""

    type: Literal["duckdb"] = "duckdb"
    path: str = Field(..., description="Path to DuckDB database file or :memory:")


class DisplayConfig(BaseModel):
    """How formatted values are displayed."""

    date_format: str = Field(DEFAULT_DATE_FORMAT, description="strftime format for timestamps")
    timezone: str = Field("UTC", description="Default viewer timezone")
    wwwroot: str = Field("", description="Base URL used for icon markup")


class CleanupConfig(BaseModel):
    """Log cleanup task settings."""

    log_lifetime_days: int | None = Field(
        None, description="Delete cli/restore log records older than this many days (empty disables)"
    )
    time_limit: int = Field(1200, description="Seconds after which a run stops starting new batches")
    batch_size: int = Field(86400, description="Seconds of log history deleted per batch")


class ReportLayerConfig(BaseModel):
    """reportlayer configuration file format.

    Can be saved as reportlayer.yaml or reportlayer.json.

    Example YAML:
        connection:
          type: duckdb
          path: data/site.duckdb
        table_prefix: mdl_
        site_guest_id: 1
        display:
          timezone: Pacific/Auckland
        cleanup:
          log_lifetime_days: 30
    """

    connection: DuckDBConnection | None = Field(default=None, description="Database connection configuration")
    table_prefix: str = Field("mdl_", description="Prefix of the host application's tables")
    site_guest_id: int = Field(1, description="Id of the site guest user")
    display: DisplayConfig = Field(default_factory=DisplayConfig, description="Display settings")
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig, description="Log cleanup settings")

    @field_validator("table_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        return validate_table_prefix(v)

    def resolve_paths(self, base_dir: Path | None = None) -> "ReportLayerConfig":
        """Resolve relative paths to absolute paths.

        Args:
            base_dir: Base directory for resolving relative paths (defaults to cwd)

        Returns:
            New config with resolved paths
        """
        base = base_dir or Path.cwd()

        connection = self.connection
        if connection and connection.path != ":memory:":
            db_p = Path(connection.path)
            if not db_p.is_absolute():
                db_p = (base / db_p).resolve()
            connection = DuckDBConnection(type="duckdb", path=str(db_p))

        return self.model_copy(update={"connection": connection})


def load_config(config_path: Path) -> ReportLayerConfig:
    """Load a reportlayer.yaml, reportlayer.yml or reportlayer.json file.

    A relative DuckDB path is taken relative to the file's directory.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file extension is not a supported format
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in (".yaml", ".yml", ".json"):
        raise ValueError(f"Unsupported config format: {suffix}. Use .yaml, .yml, or .json")

    with open(config_path) as f:
        data = json.load(f) if suffix == ".json" else yaml.safe_load(f)

    return ReportLayerConfig(**(data or {})).resolve_paths(config_path.parent)


def find_config(start_dir: Path | None = None) -> Path | None:
    """Locate the config file for a working directory.

    ``REPORTLAYER_CONFIG`` wins when set. Otherwise the directory and each of
    its parents are searched for one of CONFIG_NAMES.

    Args:
        start_dir: Directory to start from (defaults to cwd)

    Returns:
        Path of the config file, or None
    """
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override)

    current = (start_dir or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        for name in CONFIG_NAMES:
            if (directory / name).exists():
                return directory / name
    return None


def build_connection_string(config: ReportLayerConfig) -> str:
    """Build database connection string from config."""
    if not config.connection:
        return "duckdb:///:memory:"
    return f"duckdb:///{config.connection.path}"
