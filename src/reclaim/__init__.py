"""Reclaim: find reclaimable disk space and remove it with an undo path."""

__version__ = "0.1.0"
