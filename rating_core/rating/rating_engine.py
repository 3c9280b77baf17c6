"""
Rating engine for CKAN datasets.

Votes are kept in a rating ledger (one row per user and dataset). After each
vote the dataset's aggregate is recomputed from the ledger and mirrored onto
the dataset's extras as ``rating_count``, ``rating_average_int`` and
``rating_average``.

The ledger is the source of truth. The catalog document is synchronized on a
best-effort basis: a failed catalog update leaves the ledger write in place
and the next successful vote re-syncs the document.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from rating_core.catalog.interfaces import CatalogClientInterface, CatalogApiError
from rating_core.exceptions import (
    AggregationError,
    InvariantError,
    RemoteFetchError,
    RemoteUpdateError,
    ValidationError,
)
from rating_core.model.rating_summary import RatingSummary
from rating_core.monitoring.structured_logger import LoggingContext, OperationLogger, get_logger
from rating_core.rating.extras import (
    DatasetExtras,
    RATING_AVERAGE_INT_KEY,
    RATING_AVERAGE_KEY,
    RATING_COUNT_KEY,
    SPATIAL_KEY,
)
from rating_core.storage.interfaces.ledger_store_interface import LedgerStoreInterface

MIN_SCORE = 1
MAX_SCORE = 5

# Upper bounds of the half-open bins, paired with the integer rating they map to
ROUNDING_BINS = ((1.6, 1), (2.6, 2), (3.6, 3), (4.6, 4), (5.6, 5))

AVERAGE_DECIMALS = 4


def round_average_to_integer(rating_average: float) -> int:
    """
    Map a mean score to the integer rating shown on the dataset.

    0.0 means "no ratings". Otherwise the boundaries sit at .6:
    1.59 rounds to 1 while 1.6 rounds to 2.

    Raises:
        InvariantError: If the mean is outside [0, 5.6)
    """
    if math.isnan(rating_average) or rating_average < 0:
        raise InvariantError(rating_average)
    if rating_average == 0.0:
        return 0
    for upper_bound, rating in ROUNDING_BINS:
        if rating_average < upper_bound:
            return rating
    raise InvariantError(rating_average)


class RatingEngine:
    """
    Reads and writes dataset ratings.

    Stateless across calls: it only holds the ledger store, the catalog
    client and the name of the rating table.
    """

    def __init__(
        self,
        ledger_store: LedgerStoreInterface,
        catalog_client: CatalogClientInterface,
        rating_table: str,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the rating engine.

        Args:
            ledger_store: Durable rating ledger
            catalog_client: Client for the dataset catalog
            rating_table: Ledger table holding the ratings
            clock: Optional callable returning the current time (defaults to UTC now)
        """
        if ledger_store is None or catalog_client is None:
            raise ValueError("ledger_store and catalog_client are required")
        if not rating_table:
            raise ValueError("rating_table is required")

        self.ledger_store = ledger_store
        self.catalog_client = catalog_client
        self.rating_table = rating_table
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.logger = logging.getLogger(__name__)
        self.structured_logger = get_logger(__name__, component="rating_engine")

    def get_rating(self, dataset_id: str) -> RatingSummary:
        """
        Retrieve the rating currently published on a dataset.

        Args:
            dataset_id: Dataset id or name

        Returns:
            The summary read from the dataset's extras (0/0 when unrated)

        Raises:
            ValidationError: If dataset_id is empty
            RemoteFetchError: If the dataset cannot be fetched
        """
        if not dataset_id:
            raise ValidationError("Dataset is mandatory", {"dataset_id": dataset_id})

        document = self._fetch_dataset(dataset_id)
        extras = DatasetExtras.from_document(document)

        rating_count = extras.get_int(RATING_COUNT_KEY, 0)
        if rating_count < 0:
            rating_count = 0
        rating_average_int = extras.get_int(RATING_AVERAGE_INT_KEY, 0)
        if not 0 <= rating_average_int <= MAX_SCORE:
            rating_average_int = 0
        rating_average = extras.get_float(RATING_AVERAGE_KEY, 0.0)

        self.logger.debug(
            f"current count: {rating_count} average: {rating_average_int} [{dataset_id}]"
        )
        return RatingSummary(
            dataset_id=dataset_id,
            count=rating_count,
            rating=rating_average_int,
            average=rating_average,
        )

    def post_rating(self, dataset_id: str, user_id: str, score: int) -> RatingSummary:
        """
        Register a user's vote on a dataset and publish the new aggregate.

        A second vote by the same user replaces the first one.

        Args:
            dataset_id: Dataset id or name
            user_id: Voting user
            score: Integer score in [1, 5]

        Returns:
            The recomputed summary

        Raises:
            ValidationError: Bad input; nothing was read or written
            RemoteFetchError: The dataset could not be fetched
            LedgerError: The ledger rejected the upsert or the aggregate query
            AggregationError: The ledger has no rows for the dataset after the upsert
            InvariantError: The ledger mean is outside the rating domain
            RemoteUpdateError: The ledger was updated but the catalog was not
        """
        self._validate_vote(dataset_id, user_id, score)

        with LoggingContext(user_id=user_id):
            operation = OperationLogger(self.structured_logger, "post_rating")
            operation.start(dataset_id=dataset_id, score=score)
            with operation:
                summary = self._post_rating(dataset_id, user_id, score)
            operation.success(count=summary.count, rating=summary.rating)
            return summary

    def _post_rating(self, dataset_id: str, user_id: str, score: int) -> RatingSummary:
        document = self._fetch_dataset(dataset_id)

        extras = DatasetExtras.from_document(document)
        normalized_spatial = extras.normalize_spatial()

        self._upsert_vote(dataset_id, user_id, score)

        rating_count, rating_average = self._aggregate(dataset_id)
        rating_average_int = round_average_to_integer(rating_average)

        extras.set(RATING_COUNT_KEY, str(rating_count))
        extras.set(RATING_AVERAGE_INT_KEY, str(rating_average_int))
        extras.set(RATING_AVERAGE_KEY, str(round(rating_average, AVERAGE_DECIMALS)))
        document["extras"] = extras.to_list()
        if normalized_spatial is not None:
            document[SPATIAL_KEY] = normalized_spatial

        self._update_dataset(dataset_id, user_id, document)
        self.logger.info(
            f"Rating updated on catalog: avg {rating_average_int} count {rating_count} [{dataset_id}]"
        )

        return RatingSummary(
            dataset_id=dataset_id,
            count=rating_count,
            rating=rating_average_int,
            average=rating_average,
        )

    def _validate_vote(self, dataset_id: str, user_id: str, score: Any):
        context = {"dataset_id": dataset_id, "user_id": user_id, "value": score}
        if isinstance(score, bool) or not isinstance(score, int) or not MIN_SCORE <= score <= MAX_SCORE:
            raise ValidationError("Rating must be in [1,2,3,4,5]", context)
        if not user_id or not isinstance(user_id, str):
            raise ValidationError("User is mandatory", context)
        if not dataset_id or not isinstance(dataset_id, str):
            raise ValidationError("Dataset is mandatory", context)

    def _fetch_dataset(self, dataset_id: str) -> Dict[str, Any]:
        try:
            document = self.catalog_client.fetch_dataset(dataset_id)
        except CatalogApiError as e:
            raise RemoteFetchError(
                f"Cannot fetch dataset '{dataset_id}': {e}",
                {"dataset_id": dataset_id, "catalog_error": e.error},
            ) from e

        if not isinstance(document, dict):
            raise RemoteFetchError(
                f"Catalog returned no document for dataset '{dataset_id}'",
                {"dataset_id": dataset_id},
            )
        return document

    def _upsert_vote(self, dataset_id: str, user_id: str, score: int):
        now = self.clock()
        updated = self.ledger_store.update_rating_sync(
            self.rating_table, score, now, user_id, dataset_id
        )
        if updated == 0:
            self.logger.debug(
                f"No existing rating found for user '{user_id}' on dataset '{dataset_id}'. "
                "Need to create a new one"
            )
            self.ledger_store.insert_rating_sync(
                self.rating_table, user_id, dataset_id, score, now, now
            )

    def _aggregate(self, dataset_id: str):
        aggregate = self.ledger_store.aggregate_rating_sync(self.rating_table, dataset_id)
        if aggregate is None:
            raise AggregationError(
                f"No ratings found for dataset '{dataset_id}' after registering a vote",
                {"dataset_id": dataset_id, "table": self.rating_table},
            )
        return int(aggregate.count), float(aggregate.mean)

    def _update_dataset(self, dataset_id: str, user_id: str, document: Dict[str, Any]):
        try:
            result = self.catalog_client.update_dataset(document)
        except CatalogApiError as e:
            raise RemoteUpdateError(
                f"Cannot update dataset '{dataset_id}': {e}",
                {"dataset_id": dataset_id, "user_id": user_id, "catalog_error": e.error},
            ) from e
        self.logger.debug(f"Catalog returned {result}")
