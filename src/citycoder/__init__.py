"""
citycoder - offline city geocoder.

Forward geocoding turns a free-text location ("Austin, TX") into the best
matching city; reverse geocoding turns a coordinate pair into the nearest
known city. Both run against an in-memory corpus built from the Geonames
and MaxMind city feeds.
"""

from citycoder.config_manager import ConfigManager, DatasetSource, GeocoderConfig
from citycoder.engine import CityGeocoder
from citycoder.exceptions import CitycoderError, DatasetError, SnapshotError
from citycoder.models import City, Country, Match

__version__ = "1.0.0"

__all__ = [
    "CityGeocoder",
    "City",
    "Country",
    "Match",
    "ConfigManager",
    "DatasetSource",
    "GeocoderConfig",
    "CitycoderError",
    "DatasetError",
    "SnapshotError",
]
