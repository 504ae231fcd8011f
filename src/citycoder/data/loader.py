"""
Dataset loader for the raw city and country feeds.

Supports loading:
- Geonames cities feed (zip archive of tab-separated files, 19 columns)
- MaxMind world-cities feed (gzip, comma-separated, 7 columns)
- Geonames country-info feed (plain text, tab-separated, 19 columns)

Every feed is normalized into City / Country records. Malformed rows are
skipped and unparseable numbers become 0; only a feed that cannot be
opened at all is treated as an error.
"""

import gzip
import io
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Union

import pandas as pd

from citycoder.config_manager import (
    DatasetSource,
    GEONAMES_CITIES,
    GEONAMES_COUNTRY_INFO,
    MAXMIND_WORLD_CITIES,
)
from citycoder.exceptions import DatasetError
from citycoder.geohash import encode_or_blank
from citycoder.models import City, Country

logger = logging.getLogger(__name__)

GEONAMES_CITY_COLUMNS = [
    "geonameid", "name", "asciiname", "alternatenames", "latitude", "longitude",
    "feature_class", "feature_code", "country_code", "cc2",
    "admin1", "admin2", "admin3", "admin4", "population",
    "elevation", "dem", "timezone", "moddate",
]

MAXMIND_CITY_COLUMNS = [
    "country", "city", "accent_city", "region", "population", "latitude", "longitude",
]

COUNTRY_INFO_COLUMNS = [
    "iso", "iso3", "iso_numeric", "fips", "name", "capital", "area", "population",
    "continent", "tld", "currency_code", "currency_name", "phone",
    "postal_code_format", "postal_code_regex", "languages", "geoname_id",
    "neighbours", "equivalent_fips_code",
]

MAXMIND_DEDUPE_KEY = ["country", "city", "population"]

# City names carrying these characters are junk rows in the MaxMind feed.
DISALLOWED_NAME_CHARS = ("!", "@")

INT64_LIMIT = float(2 ** 63)


@dataclass
class LoadResult:
    """Unordered output of a full ingestion run."""
    cities: List[City] = field(default_factory=list)
    countries: List[Country] = field(default_factory=list)


def _split_rows(lines: Iterable[str], sep: str, expected: int) -> Iterator[List[str]]:
    """Yield rows that split into exactly ``expected`` fields."""
    for line in lines:
        fields = line.rstrip("\r\n").split(sep)
        if len(fields) == expected:
            yield fields


def _to_float(series: pd.Series) -> pd.Series:
    values = pd.to_numeric(series, errors="coerce").astype(float)
    # NaN and +/-inf both fail the comparison
    return values.where(values.abs() < float("inf"), 0.0)


def _to_int(series: pd.Series) -> pd.Series:
    values = pd.to_numeric(series, errors="coerce").astype(float)
    # also rejects values outside the int64 range
    return values.where(values.abs() < INT64_LIMIT, 0).astype("int64")


def _parse_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


class DatasetLoader:
    """Loads city and country records from the raw source feeds."""

    def load_all(self, sources: List[DatasetSource]) -> LoadResult:
        """Load every enabled source in order.

        Args:
            sources: Configured dataset sources

        Returns:
            LoadResult with all cities and countries

        Raises:
            DatasetError: If the Geonames cities archive or the country-info
                file cannot be read
        """
        result = LoadResult()

        for source in sources:
            if not source.enabled:
                logger.info(f"Skipping disabled dataset {source.id}")
                continue

            if source.id == GEONAMES_CITIES:
                result.cities.extend(self.load_geonames_cities(source.path))
            elif source.id == MAXMIND_WORLD_CITIES:
                try:
                    result.cities.extend(self.load_maxmind_cities(source.path))
                except DatasetError as e:
                    logger.warning(f"MaxMind cities not loaded: {e}")
            elif source.id == GEONAMES_COUNTRY_INFO:
                result.countries.extend(self.load_country_info(source.path))
            else:
                logger.warning(f"Unknown dataset id {source.id}, ignoring")

        logger.info(
            f"Loaded {len(result.cities)} cities and {len(result.countries)} countries"
        )
        return result

    def load_geonames_cities(self, path: Union[str, Path]) -> List[City]:
        """Load cities from a zipped Geonames cities dump.

        Args:
            path: Path to the zip archive (e.g. cities1000.zip)

        Returns:
            List of City records, in file order

        Raises:
            DatasetError: If the archive cannot be opened
        """
        path = Path(path)
        try:
            archive = zipfile.ZipFile(path)
        except (OSError, zipfile.BadZipFile) as e:
            raise DatasetError(f"Cannot open Geonames cities archive {path}: {e}") from e

        cities: List[City] = []
        with archive:
            for member in archive.infolist():
                if member.is_dir():
                    continue
                try:
                    with archive.open(member) as raw:
                        text = io.TextIOWrapper(raw, encoding="utf-8", errors="replace")
                        rows = list(_split_rows(text, "\t", len(GEONAMES_CITY_COLUMNS)))
                except (OSError, EOFError, zipfile.BadZipFile) as e:
                    raise DatasetError(
                        f"Cannot read {member.filename} from {path}: {e}"
                    ) from e
                df = pd.DataFrame(rows, columns=GEONAMES_CITY_COLUMNS)
                loaded = self._geonames_frame_to_cities(df)
                logger.info(f"  ✓ Loaded {len(loaded)} cities from {member.filename}")
                cities.extend(loaded)

        return cities

    def _geonames_frame_to_cities(self, df: pd.DataFrame) -> List[City]:
        if df.empty:
            return []

        names = df["name"].str.strip(" ")
        latitudes = _to_float(df["latitude"])
        longitudes = _to_float(df["longitude"])
        populations = _to_int(df["population"])

        cities = []
        for name, alt, country, region, lat, lng, pop in zip(
            names, df["alternatenames"], df["country_code"], df["admin1"],
            latitudes, longitudes, populations,
        ):
            if not name:
                continue
            cities.append(City(
                name=name,
                name_lower=name.lower(),
                alt_names=alt,
                country=country,
                region=region,
                latitude=lat,
                longitude=lng,
                population=int(pop),
                geohash=encode_or_blank(lat, lng),
            ))
        return cities

    def load_maxmind_cities(self, path: Union[str, Path]) -> List[City]:
        """Load cities from the gzipped MaxMind world-cities feed.

        Rows are deduplicated on (country, city, population) before being
        converted; the dedup frame is discarded when this returns.

        Args:
            path: Path to worldcitiespop.txt.gz

        Returns:
            List of City records

        Raises:
            DatasetError: If the file cannot be opened or decompressed
        """
        path = Path(path)
        try:
            with gzip.open(path, "rt", encoding="latin-1", newline="") as fh:
                rows = list(_split_rows(fh, ",", len(MAXMIND_CITY_COLUMNS)))
        except (OSError, EOFError) as e:
            raise DatasetError(f"Cannot read MaxMind cities feed {path}: {e}") from e

        df = pd.DataFrame(rows, columns=MAXMIND_CITY_COLUMNS)
        del rows
        if df.empty:
            return []

        before = len(df)
        df = df.drop_duplicates(subset=MAXMIND_DEDUPE_KEY, keep="last")
        logger.info(f"MaxMind dedupe kept {len(df)} of {before} rows")

        df = df[(df["country"] != "") & (df["country"] != "0")]
        df = df[df["accent_city"] != "AccentCity"]

        names = df["accent_city"].str.strip(" ").str.strip("( )")
        keep = names != ""
        for ch in DISALLOWED_NAME_CHARS:
            keep &= ~names.str.contains(ch, regex=False)
        df = df[keep]
        names = names[keep]

        latitudes = _to_float(df["latitude"])
        longitudes = _to_float(df["longitude"])
        populations = _to_int(df["population"])

        cities = [
            City(
                name=name,
                name_lower=name.lower(),
                country=country.upper(),
                region=region,
                latitude=lat,
                longitude=lng,
                population=int(pop),
                geohash=encode_or_blank(lat, lng),
            )
            for name, country, region, lat, lng, pop in zip(
                names, df["country"], df["region"], latitudes, longitudes, populations,
            )
        ]
        logger.info(f"  ✓ Loaded {len(cities)} cities from {path.name}")
        return cities

    def load_country_info(self, path: Union[str, Path]) -> List[Country]:
        """Load the Geonames country-info table.

        Args:
            path: Path to countryInfo.txt

        Returns:
            List of Country records, in file order

        Raises:
            DatasetError: If the file cannot be read
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                lines = [line for line in fh if line.strip() and not line.startswith("#")]
        except OSError as e:
            raise DatasetError(f"Cannot read country info {path}: {e}") from e

        countries = []
        for fields in _split_rows(lines, "\t", len(COUNTRY_INFO_COLUMNS)):
            row = dict(zip(COUNTRY_INFO_COLUMNS, fields))
            if row["iso"] in ("", "0"):
                continue
            for numeric in ("iso_numeric", "area", "population", "geoname_id"):
                row[numeric] = _parse_int(row[numeric])
            countries.append(Country(**row))

        logger.info(f"  ✓ Loaded {len(countries)} countries from {path.name}")
        return countries
