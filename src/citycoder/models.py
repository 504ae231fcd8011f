"""
Record types for the city corpus and country reference table.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict

from pydantic import BaseModel, Field


@dataclass(frozen=True, slots=True)
class City:
    """A normalized city record from any of the source feeds.

    ``name_lower`` is the search key the store is sorted on. ``alt_names``
    is kept as the raw comma-delimited blob from the feed.
    """
    name: str = ""
    name_lower: str = ""
    alt_names: str = ""
    country: str = ""
    region: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    population: int = 0
    geohash: str = ""

    @classmethod
    def empty(cls) -> "City":
        """Sentinel returned for degenerate or unmatched queries."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.name == ""

    def __bool__(self) -> bool:
        return not self.is_empty

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


class Country(BaseModel):
    """Country reference data from the Geonames country-info feed."""

    iso: str = Field(..., min_length=1)
    iso3: str = ""
    iso_numeric: int = 0
    fips: str = ""
    name: str = ""
    capital: str = ""
    area: int = 0
    population: int = 0
    continent: str = ""
    tld: str = ""
    currency_code: str = ""
    currency_name: str = ""
    phone: str = ""
    postal_code_format: str = ""
    postal_code_regex: str = ""
    languages: str = ""
    geoname_id: int = 0
    neighbours: str = ""
    equivalent_fips_code: str = ""


@dataclass
class Match:
    """Best forward-geocoding candidate with its accumulated score."""
    city: City = field(default_factory=City.empty)
    score: int = 0
    candidates: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "city": self.city.to_dict(),
            "score": self.score,
            "candidates": self.candidates,
        }
