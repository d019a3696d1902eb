"""Configuration Manager for the Document Store Connection.

This module provides the configuration manager for the document store the
export reads from. The connection string may carry credentials, so it is held
as a SecretStr and never logged.

Security Impact:
    - Credentials are never logged or exposed in error messages
    - Configuration is validated before use
    - Prevents credential leakage in stack traces

Architecture:
    - Follows Hexagonal Architecture: Infrastructure layer isolated from domain
    - Type-safe configuration using Pydantic models
    - Fail-fast validation prevents runtime errors
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_MONGO_URL = "mongodb://localhost/hearth-dev"
SUPPORTED_DB_TYPES = ["mongodb", "memory"]


def load_env_file() -> None:
    """Load the project-root ``.env`` file into the environment, if present.

    Variables already set in the environment take precedence.
    """
    env_path = Path(__file__).parent.parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded environment variables from {env_path}")


class DatabaseConfig(BaseModel):
    """Document store configuration with secure credential handling.

    Parameters:
        db_type: Type of store ('mongodb' or 'memory')
        db_path: Directory of ``<Collection>.json`` files (memory store)
        database: Database name (parsed from the connection string if omitted)
        connection_string: MongoDB connection string (SecretStr - never logged)
        max_retries: Attempts for each store query (>= 1)
        retry_backoff: Backoff factor in seconds between attempts
        server_selection_timeout_ms: Time allowed to reach the server at connect
    """

    db_type: str = Field("mongodb", description="Store type (mongodb, memory)")
    db_path: Optional[str] = Field(None, description="Directory of JSON collections (memory store)")
    database: Optional[str] = Field(None, description="Database name")
    connection_string: Optional[SecretStr] = Field(None, description="Connection string (secret)")
    max_retries: int = Field(default=3, ge=1, description="Attempts per store query")
    retry_backoff: float = Field(default=0.5, ge=0, description="Retry backoff factor (seconds)")
    server_selection_timeout_ms: int = Field(default=5000, ge=0)

    @field_validator("db_type")
    @classmethod
    def validate_db_type(cls, v: str) -> str:
        """Validate store type."""
        if v.lower() not in SUPPORTED_DB_TYPES:
            raise ValueError(f"Unsupported database type: {v}. Supported: {SUPPORTED_DB_TYPES}")
        return v.lower()

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v: Optional[str]) -> Optional[str]:
        """Validate the JSON collection directory exists (if provided)."""
        if v is None:
            return v
        path = Path(v)
        if not path.is_dir():
            raise ValueError(f"Database directory does not exist: {path}")
        return str(path)

    @staticmethod
    def _parse_database_name(conn_str: str) -> Optional[str]:
        """Parse the database name out of a ``mongodb://`` or ``mongodb+srv://`` URL."""
        parsed = urlparse(conn_str)
        if parsed.scheme not in ["mongodb", "mongodb+srv"]:
            raise ValueError(f"Unsupported connection string scheme: {parsed.scheme}")
        return parsed.path.lstrip("/") or None

    @model_validator(mode="after")
    def sync_database_name(self) -> "DatabaseConfig":
        """Fill the database name from the connection string when not given."""
        if self.db_type != "mongodb":
            return self
        if self.connection_string is None:
            self.connection_string = SecretStr(DEFAULT_MONGO_URL)
        if not self.database:
            conn_str = self.connection_string.get_secret_value()
            try:
                self.database = self._parse_database_name(conn_str)
            except ValueError as e:
                logger.warning(f"Failed to parse connection string, database name unknown: {str(e)}")
        return self

    def get_connection_string(self) -> str:
        """Get the connection string for the store.

        Security Impact:
            - The secret value is returned to the caller but never logged
        """
        if self.db_type == "memory":
            return self.db_path or ":memory:"
        return self.connection_string.get_secret_value()


class ConfigManager:
    """Configuration manager for the document store.

    Example Usage:
        ```python
        config = ConfigManager.from_environment()
        db_config = config.get_database_config()

        config = ConfigManager.from_file("config.json")
        db_config = config.get_database_config()
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        self._config_data = config_data
        self._database_config: Optional[DatabaseConfig] = None

    @classmethod
    def from_environment(cls) -> "ConfigManager":
        """Load configuration from environment variables.

        Environment Variables:
            - HEARTH_MONGO_URL: MongoDB connection string (secret)
            - VS_DB_TYPE: Store type (mongodb, memory)
            - VS_DB_PATH: Directory of JSON collections (memory store)
            - VS_DB_NAME: Database name (overrides the connection string's)
            - VS_STORE_RETRIES: Attempts per store query
            - VS_STORE_BACKOFF: Retry backoff factor in seconds

        Returns:
            ConfigManager instance
        """
        load_env_file()

        config_data = {
            "database": {
                "db_type": os.getenv("VS_DB_TYPE", "mongodb"),
                "db_path": os.getenv("VS_DB_PATH"),
                "database": os.getenv("VS_DB_NAME"),
                "connection_string": os.getenv("HEARTH_MONGO_URL", DEFAULT_MONGO_URL),
                "max_retries": int(os.getenv("VS_STORE_RETRIES", "3")),
                "retry_backoff": float(os.getenv("VS_STORE_BACKOFF", "0.5")),
            }
        }
        return cls(config_data)

    @classmethod
    def from_file(cls, config_path: str) -> "ConfigManager":
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        stat_info = config_file.stat()
        if stat_info.st_mode & 0o077 != 0:
            logger.warning(
                f"Configuration file has overly permissive permissions: {config_path}. "
                "Consider setting to 600 for credential files."
            )

        try:
            with open(config_file, "r") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")

        return cls(config_data)

    def get_database_config(self) -> DatabaseConfig:
        """Get the validated store configuration."""
        if self._database_config is None:
            db_config_data = dict(self._config_data.get("database", {}))
            if db_config_data.get("connection_string"):
                db_config_data["connection_string"] = SecretStr(db_config_data["connection_string"])
            self._database_config = DatabaseConfig(**db_config_data)
        return self._database_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dotted key (e.g. ``database.db_type``)."""
        value = self._config_data
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        return value if value is not None else default


def get_database_config() -> DatabaseConfig:
    """Load the store configuration from the environment."""
    return ConfigManager.from_environment().get_database_config()
