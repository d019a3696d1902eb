"""Application Settings and Configuration.

This module provides application-wide settings that combine configuration
from the configuration manager with application-specific defaults.

Security Impact:
    - Settings are loaded from secure configuration sources
    - Sensitive values are never logged
    - Defaults are provided for development convenience
"""

import os
from typing import Optional

from src.infrastructure.config_manager import ConfigManager, DatabaseConfig, load_env_file

# Application metadata
APP_NAME = "VS-Export"
APP_VERSION = "1.0.0"

DEFAULT_OUTPUT_DIR = "reports"
DEFAULT_USER_MANAGEMENT_URL = "http://localhost:3030/"
DEFAULT_COUNTRY_CONFIG_URL = "http://localhost:3040/"
DEFAULT_GATEWAY_URL = "http://localhost:7070/"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """Application settings loaded from configuration manager and environment.

    Security Impact:
        - Store credentials are managed securely via DatabaseConfig
        - Sensitive values are never exposed in logs
    """

    def __init__(self):
        """Initialize settings from configuration manager and environment."""
        load_env_file()

        self._db_config: Optional[DatabaseConfig] = None
        self._config_manager: Optional[ConfigManager] = None

        self.app_name = os.getenv("VS_APP_NAME", APP_NAME)

        # Output
        self.output_dir = os.getenv("VS_OUTPUT_DIR", DEFAULT_OUTPUT_DIR)
        self.checkpoint_path = os.getenv("VS_CHECKPOINT_PATH") or None

        # Logging
        self.log_level = os.getenv("VS_LOG_LEVEL", "INFO")
        self.log_json = _env_flag("VS_LOG_JSON", "false")

        # Run report settings
        self.save_export_report = _env_flag("VS_SAVE_EXPORT_REPORT", "true")
        self.export_report_dir = os.getenv("VS_EXPORT_REPORT_DIR", DEFAULT_OUTPUT_DIR)

        # Collaborating services
        self.user_management_url = os.getenv("USER_MANAGEMENT_URL", DEFAULT_USER_MANAGEMENT_URL)
        self.country_config_url = os.getenv("COUNTRY_CONFIG_URL", DEFAULT_COUNTRY_CONFIG_URL)
        self.gateway_url = os.getenv("GATEWAY_URL", DEFAULT_GATEWAY_URL)
        self.gateway_gql_host = os.getenv("GATEWAY_GQL_HOST", f"{self.gateway_url}graphql")

    @property
    def db_config(self) -> DatabaseConfig:
        """Get the store configuration (loaded lazily on first access)."""
        if self._db_config is None:
            self._db_config = self.config_manager.get_database_config()
        return self._db_config

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = ConfigManager.from_environment()
        return self._config_manager

    def get_connection_string(self) -> str:
        """Get the store connection string.

        Security Impact:
            - Secret is retrieved from SecretStr but not logged
        """
        return self.db_config.get_connection_string()


# Global settings instance
settings = Settings()
