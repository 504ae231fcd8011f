"""
Snapshot cache for the built city store, country table and name index.

Each structure is written to its own file as a pickled (header, payload)
pair. The header names the snapshot format and version; a snapshot from
any other version is rejected and the caller rebuilds from the raw feeds.
"""

import logging
import os
import pickle
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from citycoder.exceptions import SnapshotError
from citycoder.models import Country
from citycoder.store import CityStore, NameIndex

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT = "citycoder-snapshot"
SNAPSHOT_VERSION = 1


@dataclass
class Snapshot:
    """The three structures an engine is built from."""
    store: CityStore
    countries: List[Country]
    index: NameIndex


class SnapshotCache:
    """Reads and writes engine snapshots under a directory."""

    CITIES_FILE = "cities.snapshot"
    COUNTRIES_FILE = "countries.snapshot"
    INDEX_FILE = "name_index.snapshot"

    def __init__(self, snapshot_dir: Union[str, Path]):
        """Initialize snapshot cache.

        Args:
            snapshot_dir: Directory holding the snapshot files
        """
        self.snapshot_dir = Path(snapshot_dir)

    @property
    def paths(self) -> Dict[str, Path]:
        return {
            "cities": self.snapshot_dir / self.CITIES_FILE,
            "countries": self.snapshot_dir / self.COUNTRIES_FILE,
            "index": self.snapshot_dir / self.INDEX_FILE,
        }

    def exists(self) -> bool:
        """True if all three snapshot files are present."""
        return all(path.exists() for path in self.paths.values())

    def restore(self) -> Optional[Snapshot]:
        """Load all three structures.

        Returns:
            Snapshot, or None if any file is missing, unreadable, from another
            snapshot version, or holds an empty city store
        """
        if not self.exists():
            logger.info(f"No snapshot found in {self.snapshot_dir}")
            return None

        paths = self.paths
        try:
            store = self._read(paths["cities"], "cities", CityStore)
            countries = self._read(paths["countries"], "countries", list)
            index = self._read(paths["index"], "index", NameIndex)
        except SnapshotError as e:
            logger.warning(f"Snapshot restore failed, rebuilding: {e}")
            return None

        if len(store) == 0:
            logger.warning("Snapshot city store is empty, rebuilding")
            return None

        logger.info(
            f"Restored {len(store)} cities, {len(countries)} countries "
            f"and {len(index)} index keys from {self.snapshot_dir}"
        )
        return Snapshot(store=store, countries=countries, index=index)

    def save(self, snapshot: Snapshot) -> None:
        """Overwrite all three snapshot files.

        Args:
            snapshot: Structures to persist
        """
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)
        paths = self.paths
        self._write(paths["cities"], "cities", snapshot.store)
        self._write(paths["countries"], "countries", list(snapshot.countries))
        self._write(paths["index"], "index", snapshot.index)

    def clear(self) -> None:
        """Delete any snapshot files."""
        for path in self.paths.values():
            path.unlink(missing_ok=True)

    def _write(self, path: Path, kind: str, payload: Any) -> None:
        header = {
            "format": SNAPSHOT_FORMAT,
            "version": SNAPSHOT_VERSION,
            "kind": kind,
            "created_at": datetime.now().isoformat(),
        }
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                pickle.dump((header, payload), f, protocol=pickle.HIGHEST_PROTOCOL)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"{path.stat().st_size} bytes successfully written to {path}")

    def _read(self, path: Path, kind: str, expected_type: type) -> Any:
        """Load one snapshot file.

        Raises:
            SnapshotError: If the file is missing, corrupt or of the wrong version
        """
        if not path.exists():
            raise SnapshotError(f"{path} does not exist")

        try:
            with open(path, "rb") as f:
                loaded = pickle.load(f)
        except (OSError, EOFError, pickle.UnpicklingError,
                AttributeError, ImportError, IndexError, TypeError, ValueError) as e:
            raise SnapshotError(f"Cannot decode {path}: {e}") from e

        if not (isinstance(loaded, tuple) and len(loaded) == 2 and isinstance(loaded[0], dict)):
            raise SnapshotError(f"{path} is not a {SNAPSHOT_FORMAT} file")

        header, payload = loaded
        if header.get("format") != SNAPSHOT_FORMAT or header.get("kind") != kind:
            raise SnapshotError(f"{path} holds {header.get('format')}/{header.get('kind')}")
        if header.get("version") != SNAPSHOT_VERSION:
            raise SnapshotError(
                f"{path} is snapshot version {header.get('version')}, "
                f"expected {SNAPSHOT_VERSION}"
            )
        if not isinstance(payload, expected_type):
            raise SnapshotError(f"{path} payload is {type(payload).__name__}")

        return payload
