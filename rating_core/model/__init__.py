from .rating_record import RatingRecord, LedgerAggregate
from .rating_summary import RatingSummary

__all__ = ["RatingRecord", "LedgerAggregate", "RatingSummary"]
