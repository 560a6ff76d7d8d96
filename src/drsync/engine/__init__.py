"""Engine module for submission sync coordination."""

from drsync.engine.coordinator import DrainReport, SyncCoordinator

__all__ = ["DrainReport", "SyncCoordinator"]
