"""
On-disk snapshots of built engine structures.
"""

from .snapshot_cache import SNAPSHOT_VERSION, Snapshot, SnapshotCache

__all__ = [
    "SNAPSHOT_VERSION",
    "Snapshot",
    "SnapshotCache",
]
