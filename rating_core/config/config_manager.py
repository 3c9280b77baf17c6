"""
Centralized Configuration Management System

This module provides the configuration system for the rating service:
- Centralizes catalog, ledger and logging settings
- Supports environment-specific overrides
- Validates configuration on startup
- Provides type-safe access to configuration values
"""

import os
import re
import json
import yaml
import logging
from typing import Any, Dict, Optional, Union
from pathlib import Path
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlparse
import threading


# Table names end up in SQL text, so they must be plain identifiers
TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

LEDGER_BACKENDS = ("sqlite", "memory")


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _to_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


@dataclass
class CatalogConfig:
    """CKAN catalog API configuration"""

    api_endpoint: str = "http://localhost:5000"
    api_key: Optional[str] = None
    timeout: int = 30
    verify_ssl: bool = True


@dataclass
class SqliteLedgerConfig:
    """SQLite ledger configuration"""

    database_path: str = "./data/ratings.db"


@dataclass
class MemoryLedgerConfig:
    """In-process ledger configuration"""

    pass


@dataclass
class LedgerConfig:
    """Rating ledger configuration"""

    backend: str = "sqlite"  # Options: "sqlite", "memory"
    rating_table: str = "rating"
    sqlite: SqliteLedgerConfig = field(default_factory=SqliteLedgerConfig)
    memory: MemoryLedgerConfig = field(default_factory=MemoryLedgerConfig)


@dataclass
class LoggingConfig:
    """Logging configuration"""

    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json_format: bool = False


@dataclass
class AppConfig:
    """Main application configuration"""

    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""

    pass


class ConfigManager:
    """
    Centralized configuration manager with support for:
    - Environment-specific configurations
    - Configuration validation
    - Dynamic configuration updates
    """

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        """Singleton pattern implementation"""
        if not cls._instance:
            with cls._lock:
                if not cls._instance:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        # Avoid re-initialization in singleton
        if hasattr(self, "_initialized"):
            return

        self._initialized = True
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            # Look for config directory relative to project root
            project_root = Path(__file__).parent.parent.parent
            self.config_dir = project_root / "config"

        self.config: AppConfig = AppConfig()
        self.loaded_files: Dict[str, float] = {}
        self.logger = logging.getLogger(__name__)

        self._load_configuration()

    def _load_configuration(self):
        """Load configuration from multiple sources in priority order"""
        # 1. Load default configuration
        self.config = AppConfig()
        self.loaded_files = {}

        # 2. Load base configuration file
        self._load_from_file("config.yaml")
        self._load_from_file("config.json")

        # 3. Load environment-specific configuration
        env = os.getenv("ENVIRONMENT", "development").lower()
        self._load_from_file(f"environments/config.{env}.yaml")
        self._load_from_file(f"environments/config.{env}.json")

        # 4. Load from environment variables (highest priority)
        self._load_from_environment()

        # 5. Validate configuration
        self._validate_configuration()

    def _load_from_file(self, filename: str):
        """Load configuration from YAML/JSON file"""
        file_path = self.config_dir / filename
        if not file_path.exists():
            return

        try:
            with open(file_path, "r") as f:
                if filename.endswith(".yaml") or filename.endswith(".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)

            if data:
                self._update_config_from_dict(data)
                self.loaded_files[str(file_path)] = file_path.stat().st_mtime
                self.logger.info(f"Loaded configuration from {filename}")

        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            self.logger.warning(f"Failed to load configuration from {filename}: {e}")

    def _load_from_environment(self):
        """Load configuration from environment variables"""
        env_mappings = {
            # Environment
            "ENVIRONMENT": ("environment", lambda x: Environment(x.lower())),
            "DEBUG": ("debug", _to_bool),
            # Catalog
            "CKAN_API_ENDPOINT": ("catalog.api_endpoint", str),
            "CKAN_API_KEY": ("catalog.api_key", str),
            "CKAN_TIMEOUT": ("catalog.timeout", int),
            "CKAN_VERIFY_SSL": ("catalog.verify_ssl", _to_bool),
            # Ledger
            "LEDGER_BACKEND": ("ledger.backend", lambda x: x.lower()),
            "RATING_TABLE": ("ledger.rating_table", str),
            "LEDGER_DATABASE_PATH": ("ledger.sqlite.database_path", str),
            # Logging
            "LOG_LEVEL": ("logging.level", lambda x: LogLevel(x.upper())),
            "LOG_FORMAT": ("logging.format", str),
            "LOG_JSON": ("logging.json_format", _to_bool),
        }

        for env_var, (config_path, converter) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    self._set_nested_attr(self.config, config_path, converter(value))
                except (ValueError, TypeError) as e:
                    self.logger.warning(f"Invalid value for {env_var}: {value}, error: {e}")

    def _update_config_from_dict(self, data: Dict[str, Any], prefix: str = ""):
        """Update configuration from dictionary recursively"""
        for key, value in data.items():
            config_path = f"{prefix}.{key}" if prefix else key

            if isinstance(value, dict):
                self._update_config_from_dict(value, config_path)
            else:
                try:
                    # Handle enum conversions for file-based config
                    if config_path == "environment" and isinstance(value, str):
                        value = Environment(value.lower())
                    elif config_path == "logging.level" and isinstance(value, str):
                        value = LogLevel(value.upper())

                    self._set_nested_attr(self.config, config_path, value)

                except AttributeError:
                    self.logger.warning(f"Unknown configuration key: {config_path}")
                except ValueError as e:
                    self.logger.warning(f"Invalid value for {config_path}: {value}, error: {e}")

    def _set_nested_attr(self, obj: Any, path: str, value: Any):
        """Set nested attribute using dot notation"""
        parts = path.split(".")
        for part in parts[:-1]:
            obj = getattr(obj, part)
        if not hasattr(obj, parts[-1]):
            raise AttributeError(path)
        setattr(obj, parts[-1], value)

    def _validate_configuration(self):
        """Validate configuration settings"""
        errors = []

        # Validate catalog configuration
        endpoint = urlparse(self.config.catalog.api_endpoint or "")
        if endpoint.scheme not in ("http", "https") or not endpoint.netloc:
            errors.append(f"CKAN API endpoint is not a valid URL: {self.config.catalog.api_endpoint!r}")

        if self.config.catalog.timeout <= 0:
            errors.append("CKAN timeout must be positive")

        # Validate ledger configuration
        if self.config.ledger.backend not in LEDGER_BACKENDS:
            errors.append(
                f"Unsupported ledger backend '{self.config.ledger.backend}'. "
                f"Available backends: {list(LEDGER_BACKENDS)}"
            )

        if not TABLE_NAME_PATTERN.match(self.config.ledger.rating_table or ""):
            errors.append(f"Rating table is not a valid identifier: {self.config.ledger.rating_table!r}")

        if self.config.ledger.backend == "sqlite" and not self.config.ledger.sqlite.database_path:
            errors.append("LEDGER_DATABASE_PATH is required for the sqlite backend")

        if errors:
            raise ConfigValidationError(f"Configuration validation failed: {'; '.join(errors)}")

        if not self.config.catalog.api_key:
            self.logger.warning("CKAN_API_KEY is not set; dataset updates will be rejected")

        self.logger.info("Configuration validation passed")

    def reload_configuration(self):
        """Reload configuration from all sources"""
        try:
            self._load_configuration()
            self.logger.info("Configuration reloaded successfully")
        except ConfigValidationError as e:
            self.logger.error(f"Failed to reload configuration: {e}")
            raise

    def get(self, path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        try:
            obj = self.config
            for part in path.split("."):
                obj = getattr(obj, part)
            return obj
        except AttributeError:
            return default

    def set(self, path: str, value: Any):
        """Set configuration value using dot notation"""
        self._set_nested_attr(self.config, path, value)
        self._validate_configuration()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""

        def _asdict_recursive(obj):
            if hasattr(obj, "__dict__"):
                result = {}
                for key, value in obj.__dict__.items():
                    if isinstance(value, Enum):
                        result[key] = value.value
                    elif hasattr(value, "__dict__"):
                        result[key] = _asdict_recursive(value)
                    else:
                        result[key] = value
                return result
            return obj

        return _asdict_recursive(self.config)

    def save_to_file(self, filename: str, format: str = "yaml"):
        """Save current configuration to file"""
        file_path = self.config_dir / filename
        file_path.parent.mkdir(parents=True, exist_ok=True)
        config_dict = self.to_dict()

        with open(file_path, "w") as f:
            if format.lower() == "yaml":
                yaml.dump(config_dict, f, default_flow_style=False, indent=2)
            else:
                json.dump(config_dict, f, indent=2)

        self.logger.info(f"Configuration saved to {filename}")

    def get_ledger_config(self) -> Dict[str, Any]:
        """
        Get ledger configuration for the ledger store factory.

        Returns:
            Dictionary with backend, rating_table and backend_config keys
        """
        ledger_config = self.config.ledger
        backend_type = ledger_config.backend

        backend_config = {}
        if backend_type == "sqlite":
            backend_config = {"database_path": ledger_config.sqlite.database_path}

        return {
            "backend": backend_type,
            "rating_table": ledger_config.rating_table,
            "backend_config": backend_config,
        }

    def get_catalog_config(self) -> Dict[str, Any]:
        """Get keyword arguments for the CKAN API client."""
        catalog = self.config.catalog
        return {
            "api_endpoint": catalog.api_endpoint,
            "api_key": catalog.api_key,
            "timeout": catalog.timeout,
            "verify_ssl": catalog.verify_ssl,
        }


# Global configuration instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get the global configuration manager instance"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def init_config(config_dir: Optional[Union[str, Path]] = None) -> ConfigManager:
    """Initialize the global configuration manager"""
    global _config_manager
    _config_manager = ConfigManager(config_dir)
    return _config_manager
