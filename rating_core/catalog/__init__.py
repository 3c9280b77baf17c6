"""
Dataset catalog clients.
"""

from .interfaces import CatalogClientInterface, CatalogApiError
from .ckan_client import CkanApiClient

__all__ = ["CatalogClientInterface", "CatalogApiError", "CkanApiClient"]
