"""Sense Layer - Page scanning into immutable snapshots."""

from resight.layers.sense.scanner import SnapshotScanner
from resight.layers.sense.snapshot import Element, Snapshot
from resight.layers.sense.watcher import SnapshotWatcher

__all__ = ["Element", "Snapshot", "SnapshotScanner", "SnapshotWatcher"]
