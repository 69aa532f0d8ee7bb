"""Wayback - archive a webpage and pin the result to IPFS.

One call runs a strict pipeline::

    workspace -> archive -> index.html -> pin -> gateway URL

The workspace is a fresh temporary directory owned by the call and removed
on every exit path, including failures and cancellation.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import tempfile
import time
from pathlib import Path
from urllib.parse import urlparse

from wayback_pinner.errors import (
    ArchiveError,
    ConfigurationError,
    EmptyCIDError,
    WaybackError,
    WaybackTimeout,
    WorkspaceError,
)
from wayback_pinner.interfaces.archiver import Archiver
from wayback_pinner.interfaces.pinner import Pinner
from wayback_pinner.ipfs.fallback import FallbackChain
from wayback_pinner.models.config import DEFAULT_GATEWAY, PinningConfig
from wayback_pinner.models.records import ArchiveRequest, ArchiveResult
from wayback_pinner.policy.scripts import ScriptPolicy

log = logging.getLogger(__name__)

WORKSPACE_PREFIX = "wayback-"
INDEX_FILE = "index.html"  # auto-indexed by IPFS gateways
MAX_NAME = 255
# mkdtemp appends this many random characters to the prefix
RANDOM_CHARS = 8

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]+")


def sanitize(part: str) -> str:
    """Make a URL component safe for use in a file name."""
    return _UNSAFE.sub("-", part).strip("-")


def page_name(url: str) -> str:
    """File-name stem for a URL, built from its host and path."""
    parsed = urlparse(url)
    return "-".join(p for p in (sanitize(parsed.netloc), sanitize(parsed.path)) if p)


def workspace_name(url: str) -> str:
    """Workspace directory prefix, leaving room for the mkdtemp suffix."""
    name = WORKSPACE_PREFIX + page_name(url)
    return name[:MAX_NAME - 1 - RANDOM_CHARS]


def archive_file_name(url: str) -> str:
    stem = (page_name(url) or "index")[:MAX_NAME - len(".html")]
    return f"{stem}.html"


class Wayback:
    """Archives webpages and pins them through a fallback chain.

    ``hold`` is any Pinner, usually a FallbackChain; a bare PinningConfig
    is treated as a chain without a secondary. With ``archive_only`` nothing
    is pinned and the archived page is written to ``output_dir``.
    """

    def __init__(
        self,
        hold: Pinner | PinningConfig | None,
        archiver: Archiver,
        archive_only: bool = False,
        single_file: bool = False,
        disable_js_uris: str = "",
        output_dir: str | Path = ".",
        gateway: str = DEFAULT_GATEWAY,
    ) -> None:
        if isinstance(hold, PinningConfig):
            hold = FallbackChain(hold)
        if hold is None and not archive_only:
            raise ConfigurationError("a pinning configuration is required unless archiving only")
        self.hold = hold
        self.archiver = archiver
        self.archive_only = archive_only
        self.single_file = single_file
        self.scripts = ScriptPolicy(disable_js_uris)
        self.output_dir = Path(output_dir)
        self.gateway = gateway

    async def wayback(
        self,
        url: str,
        *,
        input: bytes | None = None,
        timeout: float | None = None,
    ) -> str:
        """Archive ``url`` and return its gateway URL (or local path).

        ``input`` replaces the live fetch of the primary document.
        ``timeout`` bounds the whole call; on expiry in-flight requests
        are cancelled and WaybackTimeout is raised.
        """
        if timeout is None:
            return await self._wayback(url, input)
        try:
            return await asyncio.wait_for(self._wayback(url, input), timeout)
        except asyncio.TimeoutError as exc:
            raise WaybackTimeout(f"wayback timed out after {timeout}s") from exc

    async def _wayback(self, url: str, input: bytes | None) -> str:
        start = time.monotonic()
        try:
            workspace = Path(tempfile.mkdtemp(prefix=workspace_name(url) + "-"))
        except OSError as exc:
            raise WorkspaceError(f"create temp directory failed: {exc}") from exc

        try:
            result = await self._archive(url, workspace, input)
            dest = await self._store(url, workspace, result)
        finally:
            shutil.rmtree(workspace, ignore_errors=True)

        duration = int((time.monotonic() - start) * 1000)
        log.info("Wayback %s -> %s in %dms", url, dest, duration)
        return dest

    async def _archive(self, url: str, workspace: Path, input: bytes | None) -> ArchiveResult:
        request = ArchiveRequest(
            url=url,
            output_dir=workspace,
            input=input,
            disable_js=self.scripts.disable_js(url),
            single_file=self.archive_only or self.single_file,
            skip_resource_errors=True,
        )
        try:
            result = await self.archiver.archive(request)
        except Exception as exc:
            raise ArchiveError(f"archive failed: {exc}") from exc

        for err in result.errors:
            log.debug("Resource %s not captured: %s", err.url, err.reason)
        return result

    async def _store(self, url: str, workspace: Path, result: ArchiveResult) -> str:
        index = workspace / INDEX_FILE
        if self.archive_only:
            index = self.output_dir / archive_file_name(url)

        try:
            index.write_bytes(result.content)
        except OSError as exc:
            raise WaybackError(f"create index file failed: {exc}") from exc

        if self.archive_only:
            return str(index)

        if self.single_file:
            cid = await self.hold.pin(result.content)
        else:
            cid = await self.hold.pin_dir(workspace)
        if not cid:
            raise EmptyCIDError()

        return self.gateway + cid
