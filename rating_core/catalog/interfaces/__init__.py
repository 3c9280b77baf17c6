"""
Abstract interfaces for dataset catalog clients.
"""

from .catalog_client_interface import CatalogClientInterface, CatalogApiError

__all__ = ["CatalogClientInterface", "CatalogApiError"]
