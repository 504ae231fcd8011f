"""
Raw feed acquisition and parsing.
"""

from .downloader import DatasetDownloader
from .loader import DatasetLoader, LoadResult

__all__ = [
    "DatasetDownloader",
    "DatasetLoader",
    "LoadResult",
]
