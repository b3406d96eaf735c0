"""Exceptions raised by the sidecar reclamation core.

Only configuration-level failures propagate out of the engine. Every
per-entry problem (unreadable directory, unreadable metadata, failed
removal) is captured as a value and reflected in the report counters.
"""


class SweepError(Exception):
    """Base exception for sidecar sweep errors."""


class ConfigurationError(SweepError):
    """Raised when a run cannot start because of a caller/config problem."""


class UnknownTopologyError(ConfigurationError):
    """Raised when a topology identifier is not registered."""

    def __init__(self, topology_id: str, known: tuple[str, ...] = ()) -> None:
        self.topology_id = topology_id
        self.known = known
        message = f"Unknown metadata storage mode: {topology_id}"
        if known:
            message += f" (expected one of: {', '.join(known)})"
        super().__init__(message)


class UnusableRootError(ConfigurationError):
    """Raised when the scan root is missing, not a directory or unreadable."""

    def __init__(self, root: str | None, reason: str) -> None:
        self.root = root
        self.reason = reason
        super().__init__(f"Cannot scan {root or '<unset>'}: {reason}")


class MetadataError(SweepError):
    """Raised when a sidecar metadata record cannot be read or parsed."""
