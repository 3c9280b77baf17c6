"""
Shared fixtures for the rating service tests.
"""
import copy

import pytest
from unittest.mock import MagicMock

from rating_core.catalog.interfaces import CatalogClientInterface, CatalogApiError
from rating_core.config import config_manager as config_module
from rating_core.storage.backends.memory import MemoryLedgerStore
from rating_core.storage.interfaces.ledger_store_interface import LedgerStoreInterface


@pytest.fixture
def sample_dataset():
    """A CKAN package document without rating extras."""
    return {
        "id": "b7a1c1de-0d0e-4f5b-9b53-3f2f1a0c9e11",
        "name": "air-quality-2014",
        "title": "Air quality 2014",
        "extras": [
            {"key": "frequency", "value": "monthly"},
            {
                "key": "spatial",
                "value": '{"type": "Point", "coordinates": [12.4964, 41.9028], "crs": "EPSG:4326"}',
            },
            {"key": "theme", "value": "environment"},
        ],
    }


@pytest.fixture
def rated_dataset():
    """A CKAN package document already carrying rating extras."""
    return {
        "id": "5d3e0c2a-8f51-4a43-9a3c-7e9b1c2d4f00",
        "name": "bus-stops",
        "extras": [
            {"key": "rating_count", "value": "2"},
            {"key": "publisher", "value": "city"},
            {"key": "rating_average_int", "value": "4"},
            {"key": "rating_average", "value": "3.5"},
            {"key": "language", "value": "it"},
        ],
    }


class CatalogStub:
    """Keeps dataset documents in memory behind a MagicMock catalog client."""

    def __init__(self, *documents):
        self.documents = {}
        for document in documents:
            self.documents[document["name"]] = copy.deepcopy(document)

        self.client = MagicMock(spec=CatalogClientInterface)
        self.client.fetch_dataset.side_effect = self._fetch
        self.client.update_dataset.side_effect = self._update

    def _fetch(self, dataset_id):
        if dataset_id not in self.documents:
            raise CatalogApiError({"__type": "Not Found Error", "message": "Not found"}, 404)
        return copy.deepcopy(self.documents[dataset_id])

    def _update(self, document):
        self.documents[document["name"]] = copy.deepcopy(document)
        return copy.deepcopy(document)


@pytest.fixture
def catalog_stub(sample_dataset, rated_dataset):
    return CatalogStub(sample_dataset, rated_dataset)


@pytest.fixture
def memory_ledger():
    return MemoryLedgerStore()


@pytest.fixture
def mock_ledger():
    """A ledger mock whose calls can be counted."""
    return MagicMock(spec=LedgerStoreInterface)


@pytest.fixture(autouse=True)
def reset_config_singleton():
    """Every test starts without a cached ConfigManager."""
    config_module.ConfigManager._instance = None
    config_module._config_manager = None
    yield
    config_module.ConfigManager._instance = None
    config_module._config_manager = None
