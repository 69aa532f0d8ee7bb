"""Error types raised by the archive and pinning pipeline."""

from __future__ import annotations


class WaybackError(Exception):
    """Base class for every wayback_pinner failure."""


class ConfigurationError(WaybackError):
    """Unknown pinning service or pin mode. Raised before any network call."""


class WorkspaceError(WaybackError):
    """The temporary workspace could not be created."""


class ArchiveError(WaybackError):
    """Fetching or bundling the page failed."""


class PinError(WaybackError):
    """A pinning backend rejected the content or was unreachable."""


class EmptyCIDError(PinError):
    """The backend reported success but returned no content identifier."""

    def __init__(self, message: str = "cid empty") -> None:
        super().__init__(message)


class AuthenticationError(PinError):
    """The pinning service refused the supplied credentials."""


class WaybackTimeout(WaybackError, TimeoutError):
    """The per-request deadline elapsed before the flow completed."""
