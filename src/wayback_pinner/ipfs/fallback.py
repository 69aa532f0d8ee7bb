"""Fallback chain - retries a failed pin against a secondary backend."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable

import httpx

from wayback_pinner.errors import PinError, WaybackError
from wayback_pinner.interfaces.pinner import Pinner
from wayback_pinner.ipfs.retry import RetryPolicy
from wayback_pinner.ipfs.targets import pinning_target
from wayback_pinner.models.config import PinningConfig

log = logging.getLogger(__name__)

# Failures that trigger the secondary; anything else propagates as-is
PIN_FAILURES = (WaybackError, httpx.HTTPError, OSError)


class FallbackChain:
    """Primary pinning backend with an optional secondary.

    The secondary runs only after the primary (including its own retries)
    has failed outright. A secondary pointing at the same backend as the
    primary is dropped.
    """

    def __init__(
        self,
        primary: PinningConfig,
        secondary: PinningConfig | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        if secondary is not None and secondary.backend == primary.backend:
            log.warning("Secondary pinner duplicates the primary (%s); ignoring it", primary.mode.value)
            secondary = None
        self.primary = primary
        self.secondary = secondary
        # Dispatch now so a bad pinner name fails before any request
        self._primary = pinning_target(primary, retry)
        self._secondary = pinning_target(secondary, retry) if secondary is not None else None

    async def pin(self, buf: bytes) -> str:
        return await self._run(lambda target: target.pin(buf))

    async def pin_dir(self, path: str | Path) -> str:
        return await self._run(lambda target: target.pin_dir(path))

    async def _run(self, call: Callable[[Pinner], Awaitable[str]]) -> str:
        try:
            return await call(self._primary)
        except PIN_FAILURES as exc:
            if self._secondary is None:
                raise PinError(f"pin failed: {exc}") from exc
            log.warning(
                "Primary pinner (%s) failed: %s; trying secondary (%s)",
                _describe(self.primary), exc, _describe(self.secondary),
            )

        try:
            return await call(self._secondary)
        except PIN_FAILURES as exc:
            raise PinError(f"pin failed: {exc}") from exc


def _describe(cfg: PinningConfig) -> str:
    if cfg.node is not None:
        return cfg.node.base_url
    return cfg.pinner
