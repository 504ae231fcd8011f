"""
Geocoder engine.

The engine owns the city store, country table and name index. They are
restored from snapshots when possible, otherwise built from the raw feeds
(downloading any that are missing) and snapshotted for the next start.
Nothing mutates them afterwards, so one engine can serve concurrent readers.

Build one engine per process; each holds the whole corpus in memory.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from citycoder.cache import Snapshot, SnapshotCache
from citycoder.config_manager import ConfigManager, GeocoderConfig
from citycoder.data import DatasetDownloader, DatasetLoader
from citycoder.forward import ForwardGeocoder
from citycoder.models import City, Country, Match
from citycoder.reverse import ReverseGeocoder
from citycoder.store import CityStore, NameIndex

logger = logging.getLogger(__name__)


class CityGeocoder:
    """Offline forward and reverse city geocoder."""

    def __init__(
        self,
        config: Optional[GeocoderConfig] = None,
        force_rebuild: bool = False,
        downloader: Optional[DatasetDownloader] = None,
        loader: Optional[DatasetLoader] = None,
    ):
        """Restore or build the engine's data structures.

        Args:
            config: Geocoder configuration (defaults if omitted)
            force_rebuild: Ignore existing snapshots
            downloader: Downloader for missing feeds
            loader: Raw feed loader

        Raises:
            DatasetError: If a rebuild is needed and a required feed is unreadable
        """
        self.config = config or GeocoderConfig()
        self.snapshot_cache = SnapshotCache(self.config.snapshot_dir)
        self._downloader = downloader or DatasetDownloader(timeout=self.config.download_timeout)
        self._loader = loader or DatasetLoader()

        start_time = time.time()
        snapshot = None if force_rebuild else self.snapshot_cache.restore()
        self.restored = snapshot is not None
        if snapshot is None:
            snapshot = self._build()
            self.snapshot_cache.save(snapshot)

        self._store: CityStore = snapshot.store
        self._countries: List[Country] = list(snapshot.countries)
        self._index: NameIndex = snapshot.index
        self.load_time_ms = int((time.time() - start_time) * 1000)

        self._forward = ForwardGeocoder(
            self._store,
            self._index,
            self._countries,
            min_score=self.config.min_score,
        )
        self._reverse = ReverseGeocoder(self._store)

        logger.info(
            f"Geocoder ready with {len(self._store)} cities "
            f"({'restored' if self.restored else 'built'} in {self.load_time_ms}ms)"
        )

    @classmethod
    def from_config_file(cls, config_path: Union[str, Path], **kwargs) -> "CityGeocoder":
        """Create an engine from a YAML configuration file."""
        config = ConfigManager(Path(config_path)).load()
        return cls(config, **kwargs)

    def _build(self) -> Snapshot:
        """Run the download, load, sort and index steps."""
        if self.config.download_enabled:
            self._downloader.ensure_local(self.config.datasets)

        result = self._loader.load_all(self.config.datasets)

        store = CityStore.build(result.cities)
        index = NameIndex.build(store)
        logger.info(f"Built city store ({len(store)} cities) and name index ({len(index)} keys)")

        return Snapshot(store=store, countries=result.countries, index=index)

    @property
    def store(self) -> CityStore:
        return self._store

    @property
    def countries(self) -> List[Country]:
        return list(self._countries)

    @property
    def index(self) -> NameIndex:
        return self._index

    def geocode(self, text: str) -> City:
        """Forward geocode a location string.

        Args:
            text: Free-text location such as "Austin, TX" or "Paris"

        Returns:
            Best matching City; the empty City when nothing matches
        """
        return self._forward.geocode(text)

    def geocode_match(self, text: str) -> Match:
        """Forward geocode, also returning the winning score."""
        return self._forward.match(text)

    def reverse_geocode(self, latitude: float, longitude: float) -> City:
        """Reverse geocode a coordinate pair to the nearest known city.

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees

        Returns:
            Best matching City; the empty City for the origin point
        """
        return self._reverse.reverse_geocode(latitude, longitude)

    def get_statistics(self) -> Dict[str, Any]:
        """Summary counts for the loaded corpus."""
        by_country = self._store.count_by_country()
        return {
            "total_cities": len(self._store),
            "total_countries": len(self._countries),
            "index_keys": len(self._index),
            "cities_with_geohash": len(self._store.geohash_order),
            "cities_by_country": dict(
                sorted(by_country.items(), key=lambda kv: (-kv[1], kv[0]))
            ),
            "restored_from_snapshot": self.restored,
            "load_time_ms": self.load_time_ms,
        }
