"""
Shared fixtures: tiny synthetic Geonames, MaxMind and country-info feeds.
"""

import gzip
import zipfile
from pathlib import Path

import pytest

from citycoder.config_manager import (
    DatasetSource,
    GeocoderConfig,
    GEONAMES_CITIES,
    GEONAMES_COUNTRY_INFO,
    MAXMIND_WORLD_CITIES,
)
from citycoder.data import DatasetLoader
from citycoder.geohash import encode_or_blank
from citycoder.models import City
from citycoder.store import CityStore, NameIndex


def geonames_row(name, alt, lat, lng, country, admin1, population):
    """One 19-column Geonames cities row."""
    fields = [
        "1000", name, name, alt, str(lat), str(lng), "P", "PPL", country, "",
        admin1, "", "", "", str(population), "", "10", "UTC", "2020-01-01",
    ]
    return "\t".join(fields)


GEONAMES_ROWS = [
    geonames_row("New York", "NYC,Nueva York", 40.71427, -74.00597, "US", "NY", 8175133),
    geonames_row("Austin", "Austin,Остин", 30.26715, -97.74306, "US", "TX", 931830),
    geonames_row("Austin", "", 43.66663, -92.97464, "US", "MN", 24718),
    geonames_row("Paris", "Paris,Parigi,ਪੈਰਿਸ,巴黎", 48.85341, 2.3488, "FR", "11", 2138551),
    geonames_row("Paris", "", 33.66094, -95.55551, "US", "TX", 24782),
    geonames_row("New Paris", "", 39.857, -84.79329, "US", "OH", 1194),
    geonames_row("London", "Londres,Londra", 51.50853, -0.12574, "GB", "ENG", 7556900),
    geonames_row("Nowhere", "", 0, 0, "US", "", 0),
    geonames_row("Smallville", "", 39.0, -98.0, "US", "KS", "abc"),
    # malformed: too few fields
    "2000\tBroken\tBroken\t\t1.0\t1.0",
    # blank display name
    geonames_row("   ", "", 10.0, 10.0, "US", "TX", 5),
]

MAXMIND_LINES = [
    "Country,City,AccentCity,Region,Population,Latitude,Longitude",
    "us,dallas,Dallas,TX,1197816,32.78306,-96.80667",
    "us,dallas,Dallas,TX,1197816,32.78300,-96.80600",
    "0,zero,Zero,00,,1.0,1.0",
    "us,bang,Bang!,TX,,31.0,-97.0",
    "us,at,At@Home,TX,,31.1,-97.1",
    "us,parenville, (Parenville) ,TX,,31.5,-97.5",
    "gb,oxford,Oxford,K2,,51.75222,-1.25596",
    "fr,sevres,Sèvres,A8,,48.82,2.21",
    "us,short,Short,TX",
]

COUNTRY_INFO_LINES = [
    "# GeoNames country info",
    "#ISO\tISO3\tISO-Numeric\tfips\tCountry\tCapital\tArea(in sq km)\tPopulation",
    "US\tUSA\t840\tUS\tUnited States\tWashington\t9629091\t310232863\tNA\t.us\tUSD\tDollar\t1"
    "\t#####-####\t^\\d{5}(-\\d{4})?$\ten-US,es-US,haw,fr\t6252001\tCA,MX,CU\t",
    "FR\tFRA\t250\tFR\tFrance\tParis\t547030\t64768389\tEU\t.fr\tEUR\tEuro\t33"
    "\t#####\t^(\\d{5})$\tfr-FR,frp,br,co,ca,eu,oc\t3017382\tCH,DE,BE,LU,IT,AD,MC,ES\t",
    "",
    "GB\tGBR\t826\tUK\tUnited Kingdom\tLondon\tunknown\t62348447\tEU\t.uk\tGBP\tPound\t44"
    "\t@# #@@|@## #@@\t^(GIR 0AA)$\ten-GB,cy-GB,gd\t2635167\tIE\t",
    "\t".join(["0", "XXX", "0", "", "Nowhere Land"] + [""] * 14),
    "ZZ\ttoo\tfew\tfields",
]


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Directory populated with the three synthetic feeds."""
    directory = tmp_path / "data"
    directory.mkdir()

    with zipfile.ZipFile(directory / "cities1000.zip", "w") as archive:
        archive.writestr("cities1000.txt", "\n".join(GEONAMES_ROWS) + "\n")

    with gzip.open(directory / "worldcitiespop.txt.gz", "wt", encoding="latin-1") as fh:
        fh.write("\n".join(MAXMIND_LINES) + "\n")

    (directory / "countryInfo.txt").write_text(
        "\n".join(COUNTRY_INFO_LINES) + "\n", encoding="utf-8"
    )
    return directory


@pytest.fixture
def sources(data_dir):
    """Dataset sources pointing at the synthetic feeds."""
    return [
        DatasetSource(GEONAMES_CITIES, "http://example.invalid/cities1000.zip",
                      data_dir / "cities1000.zip"),
        DatasetSource(GEONAMES_COUNTRY_INFO, "http://example.invalid/countryInfo.txt",
                      data_dir / "countryInfo.txt"),
        DatasetSource(MAXMIND_WORLD_CITIES, "http://example.invalid/worldcitiespop.txt.gz",
                      data_dir / "worldcitiespop.txt.gz"),
    ]


@pytest.fixture
def config(data_dir, sources, tmp_path):
    """Offline geocoder config over the synthetic feeds."""
    return GeocoderConfig(
        data_dir=data_dir,
        snapshot_dir=tmp_path / "snapshots",
        datasets=sources,
        download_enabled=False,
    )


@pytest.fixture
def make_city():
    """Factory for City records in hand-built stores."""
    def factory(name, country="US", region="", latitude=0.0, longitude=0.0,
                population=0, alt_names="", geohash=None):
        if geohash is None:
            geohash = encode_or_blank(latitude, longitude)
        return City(
            name=name,
            name_lower=name.lower(),
            alt_names=alt_names,
            country=country,
            region=region,
            latitude=latitude,
            longitude=longitude,
            population=population,
            geohash=geohash,
        )
    return factory


@pytest.fixture
def corpus(sources):
    """Loaded, sorted and indexed synthetic corpus: (store, index, countries)."""
    result = DatasetLoader().load_all(sources)
    store = CityStore.build(result.cities)
    return store, NameIndex.build(store), result.countries
