"""
Abstract interface for dataset catalog clients.

The rating engine reads a dataset's full metadata document, edits its
``extras`` and writes the whole document back, so a catalog client only has
to offer those two calls.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class CatalogApiError(Exception):
    """
    Exception raised by catalog clients.

    ``error`` holds the catalog's error payload; CKAN reports the error kind
    under ``__type`` (e.g. "Not Found Error", "Authorization Error").
    """

    def __init__(self, error: Dict[str, Any], status_code: Optional[int] = None):
        super().__init__(error.get("__type") or str(error))
        self.error = error
        self.status_code = status_code

    @property
    def error_type(self) -> Optional[str]:
        return self.error.get("__type")


class CatalogClientInterface(ABC):
    """Abstract base class for dataset catalog clients."""

    @abstractmethod
    def fetch_dataset(self, dataset_id: str) -> Dict[str, Any]:
        """
        Fetch a dataset's full metadata document.

        Args:
            dataset_id: Dataset id or name

        Returns:
            The dataset document, including its ``extras`` list

        Raises:
            CatalogApiError: If the dataset does not exist or the call fails
        """
        pass

    @abstractmethod
    def update_dataset(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace a dataset's metadata document.

        Args:
            document: Full dataset document

        Returns:
            The catalog's resulting view of the dataset

        Raises:
            CatalogApiError: If the update is rejected or the call fails
        """
        pass
