"""
Storage factory for creating ledger backend instances.

This module provides a factory function to instantiate the appropriate
ledger backend based on configuration settings.
"""
import logging
from typing import Dict, Any, Optional, List

from rating_core.config.config_manager import ConfigManager
from rating_core.storage.interfaces.ledger_store_interface import LedgerStoreInterface
from rating_core.storage.backends.memory import MemoryLedgerStore
from rating_core.storage.backends.sqlite import SqliteLedgerStore


class LedgerStoreFactory:
    """
    Factory class for creating ledger backend instances.

    Backends are configured from an explicit ConfigManager when one is given;
    otherwise only the arguments passed in are used.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._backends = {
            "sqlite": SqliteLedgerStore,
            "memory": MemoryLedgerStore,
        }

    def create_ledger_store(
        self,
        backend_type: Optional[str] = None,
        config_override: Optional[Dict[str, Any]] = None,
        config: Optional[ConfigManager] = None,
    ) -> LedgerStoreInterface:
        """
        Create a ledger backend instance.

        Args:
            backend_type: Type of backend to create ('sqlite', 'memory').
                         If None, uses the configuration setting, or 'sqlite'.
            config_override: Optional configuration override for the backend.
            config: Optional configuration manager to read backend settings from.

        Returns:
            Configured ledger backend instance

        Raises:
            ValueError: If the backend type is not supported
        """
        ledger_config = config.get_ledger_config() if config else {}

        if backend_type is None:
            backend_type = ledger_config.get("backend", "sqlite")

        if backend_type not in self._backends:
            available_backends = list(self._backends.keys())
            raise ValueError(
                f"Unsupported backend type '{backend_type}'. "
                f"Available backends: {available_backends}"
            )

        backend_config = {}
        if ledger_config.get("backend") == backend_type:
            backend_config = dict(ledger_config.get("backend_config", {}))
        if config_override:
            backend_config.update(config_override)

        backend_class = self._backends[backend_type]
        self.logger.debug(f"Creating {backend_type} ledger store with {backend_config}")

        if backend_type == "sqlite":
            return backend_class(
                database_path=backend_config.get("database_path", "./data/ratings.db"),
                busy_timeout=backend_config.get("busy_timeout", 5.0),
            )
        return backend_class()

    def list_available_backends(self) -> List[str]:
        """
        List all available ledger backends.

        Returns:
            List of backend type names
        """
        return list(self._backends.keys())

    def is_backend_available(self, backend_type: str) -> bool:
        """
        Check if a specific backend is available.

        Args:
            backend_type: Type of backend to check

        Returns:
            True if backend is available, False otherwise
        """
        return backend_type in self._backends


# Global factory instance
_ledger_store_factory = LedgerStoreFactory()


def create_ledger_store(
    backend_type: Optional[str] = None,
    config_override: Optional[Dict[str, Any]] = None,
    config: Optional[ConfigManager] = None,
) -> LedgerStoreInterface:
    """
    Create a ledger backend instance using the global factory.

    Args:
        backend_type: Type of backend to create ('sqlite', 'memory').
        config_override: Optional configuration override for the backend.
        config: Optional configuration manager to read backend settings from.

    Returns:
        Configured ledger backend instance
    """
    return _ledger_store_factory.create_ledger_store(backend_type, config_override, config)


def list_available_backends() -> List[str]:
    """List all available ledger backends."""
    return _ledger_store_factory.list_available_backends()


def is_backend_available(backend_type: str) -> bool:
    """Check if a specific ledger backend is available."""
    return _ledger_store_factory.is_backend_available(backend_type)
