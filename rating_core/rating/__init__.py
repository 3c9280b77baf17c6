"""
Rating package for CKAN datasets.

This package provides the rating engine that keeps the rating ledger and the
rating extras of each dataset in step.
"""

from rating_core.rating.rating_engine import RatingEngine, round_average_to_integer
from rating_core.rating.extras import DatasetExtras
from rating_core.rating.factory import create_rating_engine

__all__ = ["RatingEngine", "round_average_to_integer", "DatasetExtras", "create_rating_engine"]
