"""
Rating summary returned by the rating engine.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class RatingSummary:
    """
    Derived rating of a dataset.

    Never stored on its own: the ledger is the source of truth and the
    summary is recomputed on every write.
    """

    dataset_id: str
    count: int
    rating: int
    average: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Summary document as returned to hosts."""
        return {"dataset": self.dataset_id, "count": self.count, "rating": self.rating}
