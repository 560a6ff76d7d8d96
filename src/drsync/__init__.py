"""drsync - offline-first DR form submission agent."""

__version__ = "0.1.0"
