"""Tier 2 fixtures: real Kubo + local web server."""

from __future__ import annotations

import pytest
import httpx
from aiohttp import web

from wayback_pinner.ipfs.kubo import KuboClient

KUBO_API = "http://127.0.0.1:5001/api/v0"


@pytest.fixture(scope="session")
def kubo_available():
    """Check if local Kubo daemon is running. Skip tier2 tests if not."""
    try:
        r = httpx.post(f"{KUBO_API}/id", timeout=3)
        if r.status_code == 200:
            return True
        pytest.skip("Kubo daemon not available at localhost:5001")
    except (httpx.ConnectError, httpx.TimeoutException):
        pytest.skip("Kubo daemon not available at localhost:5001")


@pytest.fixture
def pins():
    """CIDs a test pinned, removed again on teardown."""
    return []


@pytest.fixture
async def real_node(kubo_available, pins):
    """KuboClient for the local daemon."""
    async with httpx.AsyncClient(timeout=60) as client:
        yield KuboClient("127.0.0.1", 5001, client)
        # Teardown: clean up pins made by the test
        for cid in pins:
            await client.post(f"{KUBO_API}/pin/rm", params={"arg": cid})


@pytest.fixture
async def web_server():
    """Local HTTP server with a page and one image at 127.0.0.1:9199."""

    async def handle_page(request):
        return web.Response(
            text='<html><body><h1>tier2</h1><img src="/pixel.png"></body></html>',
            content_type="text/html",
        )

    async def handle_pixel(request):
        return web.Response(body=b"\x89PNG tier2 pixel", content_type="image/png")

    app = web.Application()
    app.router.add_get("/page", handle_page)
    app.router.add_get("/pixel.png", handle_pixel)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 9199)
    await site.start()
    yield "http://127.0.0.1:9199"
    await runner.cleanup()
