"""
Sorted city corpus.

Cities are kept in ascending order of their case-folded name, which is the
ordering the name index brackets rely on. A second ordering by geohash is
kept alongside so that reverse lookups can jump straight to the cities
sharing a grid cell prefix.
"""

from bisect import bisect_left
from collections import Counter
from operator import attrgetter
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from citycoder.models import City


class CityStore:
    """Immutable, name-sorted sequence of City records."""

    def __init__(self, cities: Iterable[City], geohash_order: Optional[List[int]] = None):
        """Wrap an already sorted sequence of cities.

        Use ``CityStore.build`` to sort raw records.

        Args:
            cities: Cities sorted by ``name_lower``
            geohash_order: Store positions sorted by geohash (computed if omitted)
        """
        self._cities: Tuple[City, ...] = tuple(cities)
        if geohash_order is None:
            geohash_order = self._compute_geohash_order(self._cities)
        self._geohash_order: Tuple[int, ...] = tuple(geohash_order)
        self._geohash_keys: Tuple[str, ...] = tuple(
            self._cities[pos].geohash for pos in self._geohash_order
        )

    @classmethod
    def build(cls, cities: Iterable[City]) -> "CityStore":
        """Sort cities by case-folded name (stable) and wrap them."""
        return cls(sorted(cities, key=attrgetter("name_lower")))

    @staticmethod
    def _compute_geohash_order(cities: Tuple[City, ...]) -> List[int]:
        positions = [pos for pos, city in enumerate(cities) if city.geohash]
        positions.sort(key=lambda pos: cities[pos].geohash)
        return positions

    def __len__(self) -> int:
        return len(self._cities)

    def __getitem__(self, position: int) -> City:
        return self._cities[position]

    def __iter__(self) -> Iterator[City]:
        return iter(self._cities)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CityStore):
            return NotImplemented
        return self._cities == other._cities

    @property
    def geohash_order(self) -> Tuple[int, ...]:
        return self._geohash_order

    def with_geohash_prefix(self, prefix: str) -> Iterator[Tuple[int, City]]:
        """Yield (position, city) for every city whose geohash starts with prefix.

        Args:
            prefix: Non-empty geohash prefix

        Yields:
            Tuples of store position and City, in geohash order
        """
        if not prefix:
            raise ValueError("prefix must be non-empty")

        # '~' sorts after every base-32 geohash character
        lo = bisect_left(self._geohash_keys, prefix)
        hi = bisect_left(self._geohash_keys, prefix + "~", lo)
        for i in range(lo, hi):
            pos = self._geohash_order[i]
            yield pos, self._cities[pos]

    def count_by_country(self) -> Dict[str, int]:
        """Number of cities per country code."""
        return dict(Counter(city.country for city in self._cities))
