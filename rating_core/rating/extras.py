"""
Ordered key/value view over a dataset's ``extras`` list.

CKAN keeps free-form metadata as a list of ``{"key": ..., "value": ...}``
entries. Keys are not guaranteed unique in the source document; this view
treats the first entry with a key as the one that counts and appends new keys
at the end, leaving every other entry where it was.
"""

import json
import logging
import math
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

RATING_COUNT_KEY = "rating_count"
RATING_AVERAGE_INT_KEY = "rating_average_int"
RATING_AVERAGE_KEY = "rating_average"
SPATIAL_KEY = "spatial"

_MISSING = object()

# Largest decimal exponent accepted from a stored value
MAX_EXPONENT = 18

logger = logging.getLogger(__name__)


class DatasetExtras:
    """
    Ordered mapping over an extras list with find-or-append writes.

    Entries keep any fields besides ``key`` and ``value`` (such as ``state``).
    Entries that are not mappings are carried through untouched and never
    match a key.
    """

    def __init__(self, extras: Optional[List[Any]] = None):
        self._entries: List[Any] = [
            dict(entry) if isinstance(entry, dict) else entry for entry in (extras or [])
        ]

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "DatasetExtras":
        """Build a view over a dataset document's extras."""
        extras = document.get("extras")
        return cls(extras if isinstance(extras, list) else [])

    def _index(self, key: str) -> Optional[int]:
        for i, entry in enumerate(self._entries):
            if isinstance(entry, dict) and entry.get("key") == key:
                return i
        return None

    def __contains__(self, key: str) -> bool:
        return self._index(key) is not None

    def __getitem__(self, key: str) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def keys(self) -> List[str]:
        """Distinct keys in first-occurrence order."""
        seen = []
        for entry in self._entries:
            if isinstance(entry, dict) and "key" in entry and entry["key"] not in seen:
                seen.append(entry["key"])
        return seen

    def get(self, key: str, default: Any = None) -> Any:
        """Value of the first entry with ``key``, or ``default``."""
        index = self._index(key)
        if index is None:
            return default
        return self._entries[index].get("value", default)

    def set(self, key: str, value: Any) -> None:
        """Overwrite the first entry with ``key`` in place, or append a new one."""
        index = self._index(key)
        if index is None:
            self._entries.append({"key": key, "value": value})
        else:
            self._entries[index]["value"] = value

    def get_int(self, key: str, default: int = 0) -> int:
        """Integer value of ``key``; missing or malformed values give ``default``."""
        number = _to_decimal(self.get(key))
        if number is None or number != number.to_integral_value():
            return default
        return int(number)

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Float value of ``key``; missing or malformed values give ``default``."""
        number = _to_decimal(self.get(key))
        if number is None:
            return default
        return float(number)

    def normalize_spatial(self) -> Optional[str]:
        """
        Rewrite the ``spatial`` extra as compact GeoJSON holding only its
        ``type`` and ``coordinates``.

        CKAN re-parses the spatial value on ``package_update`` and chokes on
        some of the shapes it hands out on ``package_show``.

        Returns:
            The normalized value, or None if the extra is absent, unparsable or
            lacks either field (in which case it is left exactly as it was)
        """
        raw = self.get(SPATIAL_KEY)
        if raw is None:
            return None

        parsed = raw
        if isinstance(raw, str):
            try:
                parsed = json.loads(raw)
            except ValueError:
                logger.debug(f"Leaving unparsable spatial extra untouched: {raw[:100]!r}")
                return None

        if not isinstance(parsed, dict):
            return None

        geometry_type = parsed.get("type")
        coordinates = parsed.get("coordinates")
        if not isinstance(geometry_type, str) or not isinstance(coordinates, list):
            return None

        normalized = json.dumps(
            {"type": geometry_type, "coordinates": coordinates}, separators=(",", ":")
        )
        self.set(SPATIAL_KEY, normalized)
        return normalized

    def to_list(self) -> List[Any]:
        """Extras list in order, ready to be written back onto a document."""
        return [dict(entry) if isinstance(entry, dict) else entry for entry in self._entries]


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a stored extra value as a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        number = Decimal(str(value).strip())
    except ArithmeticError:
        return None
    if not number.is_finite() or number.adjusted() > MAX_EXPONENT:
        return None
    return number
