"""Pinner protocol - stores bytes or a directory and returns a CID."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class Pinner(Protocol):
    """Transfers data to a local IPFS node or a remote pinning service."""

    async def pin(self, buf: bytes) -> str:
        """Pin a single buffer. Returns the content identifier."""
        ...

    async def pin_dir(self, path: str | Path) -> str:
        """Pin a directory tree. Returns the root content identifier."""
        ...
