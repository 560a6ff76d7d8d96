"""Monitor module for network reachability."""

from drsync.monitor.connectivity import ConnectivityMonitor

__all__ = ["ConnectivityMonitor"]
