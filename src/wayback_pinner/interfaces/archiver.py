"""Archiver protocol - captures a webpage into bytes or a directory."""

from __future__ import annotations

from typing import Protocol

from wayback_pinner.models.records import ArchiveRequest, ArchiveResult


class Archiver(Protocol):
    """Fetches a URL and produces a self-contained bundle of its content.

    In directory mode subresources are written under
    ``request.output_dir`` and the returned content references them by
    relative path. In single-file mode everything is inlined into the
    returned content.
    """

    async def archive(self, request: ArchiveRequest) -> ArchiveResult:
        """Archive ``request.url``. Raises ArchiveError on total failure."""
        ...
