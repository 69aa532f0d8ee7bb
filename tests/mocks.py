"""Mock implementations of external-facing components."""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from urllib.parse import unquote

import httpx

from wayback_pinner.errors import ArchiveError
from wayback_pinner.models.records import ArchiveRequest, ArchiveResult, ResourceError
from tests.factories import IPFS_CID

PAGE = b"""<html>
<head>
    <title>Example Domain</title>
</head>
<body>
<div>
    <h1>Example Domain</h1>
    <p>This domain is for use in illustrative examples in documents.</p>
    <p><img src="/image.png"></p>
</div>
</body>
</html>
"""

_FILENAME_RE = re.compile(rb'filename="([^"]*)"')


class KuboHandler:
    """httpx MockTransport handler emulating the Kubo /api/v0/add endpoint.

    Answers with one NDJSON line per multipart part, the root entry last.
    """

    def __init__(
        self,
        cid: str = IPFS_CID,
        fail_times: int = 0,
        status: int = 500,
        empty: bool = False,
    ) -> None:
        self.cid = cid
        self.fail_times = fail_times
        self.status = status
        self.empty = empty
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path != "/api/v0/add":
            return httpx.Response(404)
        if self.fail_times > 0:
            self.fail_times -= 1
            return httpx.Response(self.status, text="mock kubo failure")

        names = [unquote(n.decode()) for n in _FILENAME_RE.findall(request.content)]
        root = names[0] if names else "file"
        lines = [json.dumps({"Name": n, "Hash": "QmChild", "Size": "1"}) for n in names[1:]]
        lines.append(json.dumps({"Name": root, "Hash": "" if self.empty else self.cid, "Size": "1"}))
        return httpx.Response(200, text="\n".join(lines) + "\n")

    def filenames(self, index: int = -1) -> list[str]:
        return [unquote(n.decode()) for n in _FILENAME_RE.findall(self.requests[index].content)]


class PinataHandler:
    """httpx MockTransport handler emulating api.pinata.cloud."""

    def __init__(self, cid: str = IPFS_CID, fail_times: int = 0, status: int = 500) -> None:
        self.cid = cid
        self.fail_times = fail_times
        self.status = status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host != "api.pinata.cloud":
            return httpx.Response(404)
        api_key = request.headers.get("pinata_api_key")
        api_secret = request.headers.get("pinata_secret_api_key")
        authorization = request.headers.get("authorization", "")
        if (api_key, api_secret) != ("1234", "abcd") and authorization != "Bearer jwt-token":
            return httpx.Response(401, json={})
        if self.fail_times > 0:
            self.fail_times -= 1
            return httpx.Response(self.status, json={"error": "mock pinata failure"})
        if request.url.path != "/pinning/pinFileToIPFS":
            return httpx.Response(404)
        return httpx.Response(200, json={
            "IpfsHash": self.cid,
            "PinSize": 1234,
            "Timestamp": "1979-01-01 00:00:00Z",
        })


class MockArchiver:
    """Implements Archiver protocol.

    In directory mode it writes an asset under the output directory the
    way a real archiver would, so tests can see what gets pinned.
    """

    def __init__(
        self,
        content: bytes = PAGE,
        fail: bool = False,
        errors: list[ResourceError] | None = None,
        delay: float = 0,
    ) -> None:
        self.content = content
        self.fail = fail
        self.errors = errors or []
        self.delay = delay
        self.requests: list[ArchiveRequest] = []
        self.workspace_existed: list[bool] = []

    async def archive(self, request: ArchiveRequest) -> ArchiveResult:
        self.requests.append(request)
        self.workspace_existed.append(Path(request.output_dir).is_dir())
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ArchiveError("mock archive failure")
        if not request.single_file:
            assets = Path(request.output_dir) / "assets"
            assets.mkdir(exist_ok=True)
            (assets / "image.png").write_bytes(b"\x89PNG mock")
        content = request.input if request.input is not None else self.content
        return ArchiveResult(content=content, errors=list(self.errors), resources=1)

    @property
    def last_workspace(self) -> Path:
        return Path(self.requests[-1].output_dir)


class MockPinner:
    """Implements Pinner protocol. Fails ``fail_times`` times, then succeeds."""

    def __init__(self, cid: str = IPFS_CID, fail_times: int = 0, error: Exception | None = None) -> None:
        self.cid = cid
        self.fail_times = fail_times
        self.error = error or httpx.ConnectError("mock pinner unreachable")
        self.pin_calls: list[bytes] = []
        self.pin_dir_calls: list[Path] = []
        self.dir_contents: list[list[str]] = []

    def _attempt(self) -> str:
        if self.fail_times > 0:
            self.fail_times -= 1
            raise self.error
        return self.cid

    async def pin(self, buf: bytes) -> str:
        self.pin_calls.append(buf)
        return self._attempt()

    async def pin_dir(self, path) -> str:
        root = Path(path)
        self.pin_dir_calls.append(root)
        self.dir_contents.append(
            sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())
        )
        return self._attempt()


class FlakyOperation:
    """Zero-argument coroutine factory failing ``fail_times`` times."""

    def __init__(self, fail_times: int, result: str = IPFS_CID, error: Exception | None = None) -> None:
        self.fail_times = fail_times
        self.result = result
        self.error = error or RuntimeError("transient failure")
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.fail_times:
            raise self.error
        return self.result
