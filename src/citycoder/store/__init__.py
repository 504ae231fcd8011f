"""
In-memory city corpus and its name index.
"""

from .city_store import CityStore
from .name_index import NameIndex

__all__ = [
    "CityStore",
    "NameIndex",
]
