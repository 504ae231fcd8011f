"""
Prefix index over the sorted city store.

For every 1- and 2-character lowercase name prefix the index records the
highest store position reached by that prefix. Brackets derived from it are
approximate: they may include unrelated names, so callers must re-score
everything they enumerate.
"""

from typing import Dict, Optional, Tuple

from citycoder.store.city_store import CityStore


class NameIndex:
    """Maps name prefixes to their last position in a CityStore."""

    def __init__(self, bounds: Optional[Dict[str, int]] = None):
        self._bounds: Dict[str, int] = dict(bounds or {})

    @classmethod
    def build(cls, store: CityStore) -> "NameIndex":
        """Scan the store once, recording the highest position per prefix."""
        bounds: Dict[str, int] = {}
        for position, city in enumerate(store):
            key = city.name_lower
            if not key:
                continue
            bounds[key[0]] = position
            if len(key) >= 2:
                bounds[key[:2]] = position
        return cls(bounds)

    def __len__(self) -> int:
        return len(self._bounds)

    def __contains__(self, prefix: str) -> bool:
        return prefix in self._bounds

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NameIndex):
            return NotImplemented
        return self._bounds == other._bounds

    def get(self, prefix: str) -> Optional[int]:
        """Highest recorded position for a prefix, or None if unset."""
        return self._bounds.get(prefix)

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary."""
        return dict(self._bounds)

    def bracket(self, token: str, size: int) -> Tuple[int, int]:
        """Half-open store range worth scanning for a query token.

        The range starts at the bound of the alphabetically previous first
        character and ends just past the bound of the token's own first
        character. Unset bounds widen the range (start 0, end ``size``).

        Args:
            token: Query word (non-empty)
            size: Length of the store the index was built over

        Returns:
            (start, end) with 0 <= start <= end <= size
        """
        if not token or size <= 0:
            return 0, 0

        first = token.lower()[0]
        start = 0
        if ord(first) > 0:
            start = self._bounds.get(chr(ord(first) - 1), 0)

        upper = self._bounds.get(first)
        end = size if upper is None else upper + 1

        end = min(end, size)
        start = min(start, end)
        return start, end
