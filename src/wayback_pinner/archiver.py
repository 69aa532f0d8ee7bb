"""Page archiver - fetches a webpage and bundles it with its subresources."""

from __future__ import annotations

import base64
import hashlib
import logging
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from wayback_pinner.errors import ArchiveError
from wayback_pinner.models.records import ArchiveRequest, ArchiveResult, ResourceError

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0 Safari/537.36"
)
ASSETS_DIR = "assets"
SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _asset_name(url: str) -> str:
    path = urlparse(url).path
    base = SAFE_NAME_RE.sub("_", Path(path).name)[-64:] or "resource"
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
    return f"{digest}-{base}"


class PageArchiver:
    """Captures a page into one HTML document.

    Collects images, stylesheets and (unless scripts are disabled)
    external scripts. Directory mode stores them under ``assets/`` in the
    output directory and rewrites references to relative paths; single-file
    mode inlines them as data URIs.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._headers = {"User-Agent": user_agent or DEFAULT_USER_AGENT}

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            yield client

    async def archive(self, request: ArchiveRequest) -> ArchiveResult:
        async with self._session() as client:
            if request.input is not None:
                log.debug("Using supplied input for %s (%d bytes)", request.url, len(request.input))
                page = request.input
            else:
                page = await self._fetch_page(client, request.url)

            soup = BeautifulSoup(page, "html.parser")
            if request.disable_js:
                _strip_scripts(soup)

            errors: list[ResourceError] = []
            captured = 0
            cache: dict[str, str] = {}
            for tag, attr in _resource_refs(soup, include_scripts=not request.disable_js):
                ref = tag.get(attr)
                resource_url = urljoin(request.url, ref)
                if urlparse(resource_url).scheme not in ("http", "https"):
                    continue
                if resource_url not in cache:
                    try:
                        cache[resource_url] = await self._capture(client, resource_url, request)
                        captured += 1
                    except (httpx.HTTPError, OSError) as exc:
                        if not request.skip_resource_errors:
                            raise ArchiveError(f"fetch resource {resource_url} failed") from exc
                        log.debug("Skipping resource %s: %s", resource_url, exc)
                        errors.append(ResourceError(url=resource_url, reason=str(exc)))
                        cache[resource_url] = ref
                tag[attr] = cache[resource_url]

        return ArchiveResult(content=str(soup).encode("utf-8"), errors=errors, resources=captured)

    async def _fetch_page(self, client: httpx.AsyncClient, url: str) -> bytes:
        try:
            resp = await client.get(url, headers=self._headers, follow_redirects=True)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ArchiveError(f"fetch {url} failed: {exc}") from exc

        content_type = resp.headers.get("content-type", "")
        if content_type and "html" not in content_type.lower():
            raise ArchiveError(f"unsupported content type {content_type!r} for {url}")
        return resp.content

    async def _capture(self, client: httpx.AsyncClient, url: str, request: ArchiveRequest) -> str:
        """Fetch one resource; return the reference that replaces it."""
        resp = await client.get(url, headers=self._headers, follow_redirects=True)
        resp.raise_for_status()

        if request.single_file:
            mime = resp.headers.get("content-type", "application/octet-stream").split(";")[0]
            encoded = base64.b64encode(resp.content).decode("ascii")
            return f"data:{mime};base64,{encoded}"

        name = _asset_name(url)
        target = Path(request.output_dir) / ASSETS_DIR / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(resp.content)
        return f"{ASSETS_DIR}/{name}"


def _strip_scripts(soup: BeautifulSoup) -> None:
    for script in soup.find_all("script"):
        script.decompose()
    for tag in soup.find_all(True):
        for attr in [a for a in tag.attrs if a.lower().startswith("on")]:
            del tag[attr]


def _resource_refs(soup: BeautifulSoup, include_scripts: bool) -> list[tuple]:
    refs = []
    for img in soup.find_all("img", src=True):
        if not img["src"].startswith("data:"):
            refs.append((img, "src"))
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if "stylesheet" in rel or "icon" in rel:
            refs.append((link, "href"))
    if include_scripts:
        for script in soup.find_all("script", src=True):
            refs.append((script, "src"))
    return refs
