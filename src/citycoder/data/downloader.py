"""
Fetch raw dataset files to local disk.

Each configured source is downloaded once, only when its local file is
missing. A failed transfer removes the partial file so that the next start
retries from scratch.
"""

import logging
from pathlib import Path
from typing import List

import requests
from tqdm import tqdm

from citycoder.config_manager import DatasetSource

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 256


class DatasetDownloader:
    """Downloads missing dataset files."""

    def __init__(self, timeout: int = 300, show_progress: bool = True):
        """Initialize downloader.

        Args:
            timeout: Per-request timeout in seconds
            show_progress: Whether to display a tqdm progress bar
        """
        self.timeout = timeout
        self.show_progress = show_progress

    def ensure_local(self, sources: List[DatasetSource]) -> List[Path]:
        """Download every enabled source whose local file is absent.

        Args:
            sources: Dataset sources to check

        Returns:
            Paths that were downloaded successfully
        """
        downloaded = []
        for source in sources:
            if not source.enabled or source.path.exists():
                continue
            if not source.url:
                logger.warning(f"{source.path} does not exist and {source.id} has no URL")
                continue
            logger.info(f"{source.path} does not exist, downloading...")
            if self.download(source.url, source.path):
                downloaded.append(source.path)
        return downloaded

    def download(self, url: str, path: Path) -> bool:
        """Stream a URL to a local file.

        Args:
            url: Source URL
            path: Destination file

        Returns:
            True on success, False if the transfer failed
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with requests.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                total = int(response.headers.get("content-length", 0)) or None
                with open(path, "wb") as out, tqdm(
                    total=total,
                    unit="B",
                    unit_scale=True,
                    desc=path.name,
                    disable=not self.show_progress,
                ) as progress:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        out.write(chunk)
                        progress.update(len(chunk))
        except (requests.exceptions.RequestException, OSError) as e:
            logger.error(f"Failed to download {url}: {e}")
            logger.error("It will be tried again on next application start.")
            path.unlink(missing_ok=True)
            return False

        logger.info(f"Saved {url} to {path}")
        return True
