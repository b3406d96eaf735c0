"""sdrsweep - reclaim orphaned sidecar metadata directories."""

__version__ = "0.1.0"
