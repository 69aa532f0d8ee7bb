"""Kubo IPFS node client - adds and pins content via the Kubo HTTP RPC."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator
from urllib.parse import quote

import httpx

log = logging.getLogger(__name__)

DIRECTORY_CONTENT_TYPE = "application/x-directory"


def directory_parts(root: Path) -> list[tuple[str, tuple[str, bytes, str]]]:
    """Build multipart parts for every entry under ``root``.

    Names are relative to the parent of ``root`` so the first path
    segment is the directory itself, and are query-escaped the way the
    Kubo multipart reader expects. Directories are sent as empty parts
    with the x-directory content type, ahead of their children.
    """
    parts = [("file", (quote(root.name, safe=""), b"", DIRECTORY_CONTENT_TYPE))]
    for entry in sorted(root.rglob("*")):
        name = quote(entry.relative_to(root.parent).as_posix(), safe="")
        if entry.is_dir():
            parts.append(("file", (name, b"", DIRECTORY_CONTENT_TYPE)))
        elif entry.is_file():
            parts.append(("file", (name, entry.read_bytes(), "application/octet-stream")))
    return parts


def root_hash(body: str, name: str) -> str:
    """Pick the root CID out of an NDJSON add response.

    Kubo streams one object per added entry; the directory itself is the
    entry named ``name``, and it comes last.
    """
    last = ""
    for line in body.strip().splitlines():
        if not line.strip():
            continue
        entry = json.loads(line)
        if entry.get("Name") == name:
            return entry.get("Hash", "")
        last = entry.get("Hash", "") or last
    return last


class KuboClient:
    """Handle to a local Kubo node at ``host:port``.

    Constructing the handle performs no I/O. Calls use the injected
    ``httpx.AsyncClient`` when one is supplied (connection reuse), and a
    short-lived client otherwise.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5001,
        client: httpx.AsyncClient | None = None,
        timeout: float = 60,
    ) -> None:
        self._base_url = f"http://{host}:{port}"
        self._client = client
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, endpoint: str) -> str:
        return f"{self._base_url}/api/v0/{endpoint}"

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def add(self, buf: bytes, pin: bool = True) -> str:
        """Add a single buffer. Returns the CID reported by the node."""
        start = time.monotonic()
        async with self._session() as client:
            resp = await client.post(
                self._url("add"),
                params={"pin": str(pin).lower()},
                files={"file": ("file", buf)},
            )
            resp.raise_for_status()
        cid = root_hash(resp.text, "file")
        duration = int((time.monotonic() - start) * 1000)
        log.info("Added %d bytes to %s as %s in %dms", len(buf), self._base_url, cid or "?", duration)
        return cid

    async def add_dir(self, path: str | Path, pin: bool = True) -> str:
        """Add a directory tree recursively. Returns the root CID."""
        root = Path(path)
        if not root.is_dir():
            raise NotADirectoryError(str(root))

        start = time.monotonic()
        # File reads run off the event loop
        parts = await asyncio.to_thread(directory_parts, root)
        async with self._session() as client:
            resp = await client.post(
                self._url("add"),
                params={"pin": str(pin).lower(), "wrap-with-directory": "false"},
                files=parts,
            )
            resp.raise_for_status()
        cid = root_hash(resp.text, root.name)
        duration = int((time.monotonic() - start) * 1000)
        log.info(
            "Added directory %s (%d entries) to %s as %s in %dms",
            root.name, len(parts), self._base_url, cid or "?", duration,
        )
        return cid

    async def verify_pinned(self, cid: str) -> bool:
        """Check if a CID is pinned on the node."""
        try:
            async with self._session() as client:
                resp = await client.post(
                    self._url("pin/ls"),
                    params={"arg": cid, "type": "recursive"},
                )
                if resp.status_code == 200:
                    return cid in resp.json().get("Keys", {})
                return False
        except httpx.HTTPError as exc:
            log.warning("verify_pinned(%s) failed: %s", cid, exc)
            return False
