"""
Reverse geocoding: coordinates to the nearest known city.

Proximity is approximated by the length of the geohash prefix a city shares
with the query point. Only cities sharing the first two characters are
considered; the geohash-sorted view of the store hands those over directly.
"""

import logging
from typing import Optional, Tuple

from citycoder.geohash import ORIGIN_SENTINEL, encode, shared_prefix_length
from citycoder.models import City
from citycoder.store import CityStore

logger = logging.getLogger(__name__)

CELL_PREFIX = 2


class ReverseGeocoder:
    """Finds the city whose geohash best matches a coordinate."""

    def __init__(self, store: CityStore):
        self.store = store

    def reverse_geocode(self, latitude: float, longitude: float) -> City:
        """Nearest known city to a coordinate pair.

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees

        Returns:
            Best matching City, or the empty City for the origin point or
            when no city shares the query's two-character cell
        """
        best = self.nearest(latitude, longitude)
        if best is None:
            return City.empty()
        return best[1]

    def nearest(self, latitude: float, longitude: float) -> Optional[Tuple[int, City, int]]:
        """Best (position, city, shared prefix length), or None.

        Ties on prefix length go to the larger population, then to the
        earlier store position.
        """
        target = encode(latitude, longitude)
        if target == ORIGIN_SENTINEL:
            return None

        best_key = None
        best = None
        for position, city in self.store.with_geohash_prefix(target[:CELL_PREFIX]):
            matched = shared_prefix_length(city.geohash, target)
            key = (matched, city.population, -position)
            if best_key is None or key > best_key:
                best_key = key
                best = (position, city, matched)

        if best is None:
            logger.debug(f"No city near ({latitude}, {longitude})")
        return best
