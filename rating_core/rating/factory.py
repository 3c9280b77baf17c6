"""
Factory for building a rating engine from configuration.
"""

import logging

from rating_core.catalog.ckan_client import CkanApiClient
from rating_core.config.config_manager import ConfigManager
from rating_core.rating.rating_engine import RatingEngine
from rating_core.storage.factory import create_ledger_store

logger = logging.getLogger(__name__)


def create_rating_engine(config: ConfigManager) -> RatingEngine:
    """
    Build a RatingEngine wired to the ledger and catalog described by ``config``.

    Args:
        config: Loaded configuration manager

    Returns:
        A ready-to-use RatingEngine
    """
    ledger_config = config.get_ledger_config()
    ledger_store = create_ledger_store(config=config)
    catalog_client = CkanApiClient(**config.get_catalog_config())

    logger.info(
        f"Created rating engine with {ledger_config['backend']} ledger "
        f"(table '{ledger_config['rating_table']}')"
    )
    return RatingEngine(
        ledger_store=ledger_store,
        catalog_client=catalog_client,
        rating_table=ledger_config["rating_table"],
    )
