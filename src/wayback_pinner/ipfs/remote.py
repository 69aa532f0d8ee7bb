"""Remote pinning-service client - uploads content to a third-party pinner."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import httpx

from wayback_pinner.errors import AuthenticationError, ConfigurationError
from wayback_pinner.ipfs.kubo import directory_parts, root_hash

log = logging.getLogger(__name__)

INFURA = "infura"
PINATA = "pinata"
NFTSTORAGE = "nftstorage"
WEB3STORAGE = "web3storage"

KNOWN_PINNERS = (INFURA, PINATA, NFTSTORAGE, WEB3STORAGE)

ENDPOINTS = {
    INFURA: "https://ipfs.infura.io:5001/api/v0/add",
    PINATA: "https://api.pinata.cloud/pinning/pinFileToIPFS",
    NFTSTORAGE: "https://api.nft.storage/upload",
    WEB3STORAGE: "https://api.web3.storage/upload",
}


def file_parts(root: Path) -> list[tuple[str, tuple[str, bytes, str]]]:
    """Plain file parts named by path relative to the parent of ``root``.

    HTTP pinning services rebuild the directory from these names.
    """
    return [
        ("file", (entry.relative_to(root.parent).as_posix(), entry.read_bytes(),
                  "application/octet-stream"))
        for entry in sorted(root.rglob("*"))
        if entry.is_file()
    ]


class RemotePinner:
    """One-shot client for a pinning service.

    Built per call from the pinner name and credentials, never cached.
    Raises ConfigurationError for an unknown pinner name before any
    request is made.
    """

    def __init__(
        self,
        pinner: str,
        apikey: str = "",
        secret: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 120,
    ) -> None:
        if pinner not in KNOWN_PINNERS:
            raise ConfigurationError(f"unknown pinner: {pinner!r}")
        self._pinner = pinner
        self._apikey = apikey
        self._secret = secret
        self._client = client
        self._timeout = timeout

    @property
    def name(self) -> str:
        return self._pinner

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    def _auth(self) -> tuple[dict[str, str], httpx.BasicAuth | None]:
        if self._pinner == INFURA:
            return {}, httpx.BasicAuth(self._apikey, self._secret)
        if self._pinner == PINATA and self._secret:
            return {
                "pinata_api_key": self._apikey,
                "pinata_secret_api_key": self._secret,
            }, None
        # Pinata JWT, nft.storage and web3.storage use bearer tokens
        return {"Authorization": f"Bearer {self._apikey}"}, None

    def _extract_cid(self, resp: httpx.Response, root_name: str) -> str:
        if self._pinner == INFURA:
            return root_hash(resp.text, root_name)
        data = resp.json()
        if self._pinner == PINATA:
            return data.get("IpfsHash", "")
        if self._pinner == NFTSTORAGE:
            return (data.get("value") or {}).get("cid", "")
        return data.get("cid", "")

    async def _upload(
        self,
        files: list[tuple[str, tuple[str, bytes, str]]],
        root_name: str,
        params: dict[str, str] | None = None,
    ) -> str:
        headers, auth = self._auth()
        start = time.monotonic()
        async with self._session() as client:
            kwargs = {"auth": auth} if auth is not None else {}
            resp = await client.post(
                ENDPOINTS[self._pinner],
                params=params,
                headers=headers,
                files=files,
                **kwargs,
            )
            if resp.status_code in (401, 403):
                raise AuthenticationError(
                    f"{self._pinner} rejected credentials: HTTP {resp.status_code}"
                )
            resp.raise_for_status()
        cid = self._extract_cid(resp, root_name)
        duration = int((time.monotonic() - start) * 1000)
        log.info("Pinned to %s as %s in %dms", self._pinner, cid or "?", duration)
        return cid

    async def pin(self, buf: bytes) -> str:
        """Upload a single buffer. Returns the CID reported by the service."""
        params = {"pin": "true"} if self._pinner == INFURA else None
        return await self._upload(
            [("file", ("file", buf, "application/octet-stream"))], "file", params,
        )

    async def pin_dir(self, path: str | Path) -> str:
        """Upload every file under ``path``. Returns the root CID."""
        root = Path(path)
        if not root.is_dir():
            raise NotADirectoryError(str(root))
        if self._pinner == INFURA:
            parts = await asyncio.to_thread(directory_parts, root)
            return await self._upload(
                parts, root.name,
                {"pin": "true", "wrap-with-directory": "false"},
            )
        files = await asyncio.to_thread(file_parts, root)
        return await self._upload(files, root.name)
