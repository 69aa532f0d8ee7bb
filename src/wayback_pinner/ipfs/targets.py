"""Pinning targets - the Local and Remote variants of the Pinner protocol."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from wayback_pinner.errors import ConfigurationError, EmptyCIDError, PinError
from wayback_pinner.interfaces.pinner import Pinner
from wayback_pinner.ipfs.remote import RemotePinner
from wayback_pinner.ipfs.retry import RetryPolicy, with_backoff
from wayback_pinner.models.config import PinMode, PinningConfig

log = logging.getLogger(__name__)


def _require_cid(cid: str | None) -> str:
    if not cid:
        raise EmptyCIDError()
    return cid


class LocalTarget:
    """Pins to a local Kubo node through the config's node handle."""

    def __init__(self, cfg: PinningConfig, retry: RetryPolicy | None = None) -> None:
        if cfg.node is None:
            raise ConfigurationError("local pinning requires host and port")
        self._cfg = cfg
        self._node = cfg.node
        self._retry = retry

    async def pin(self, buf: bytes) -> str:
        async def op() -> str:
            try:
                cid = await self._node.add(buf, pin=True)
            except (httpx.HTTPError, OSError, ValueError) as exc:
                raise PinError(f"add file to IPFS failed: {exc}") from exc
            return _require_cid(cid)

        return await with_backoff(self._cfg.backoff, op, self._retry)

    async def pin_dir(self, path: str | Path) -> str:
        async def op() -> str:
            try:
                cid = await self._node.add_dir(path, pin=True)
            except (httpx.HTTPError, OSError, ValueError) as exc:
                raise PinError(f"add directory to IPFS failed: {exc}") from exc
            return _require_cid(cid)

        return await with_backoff(self._cfg.backoff, op, self._retry)


class RemoteTarget:
    """Pins to a third-party pinning service.

    A fresh RemotePinner is built for every call since credentials may
    differ between configurations sharing a transport.
    """

    def __init__(self, cfg: PinningConfig, retry: RetryPolicy | None = None) -> None:
        self._cfg = cfg
        self._retry = retry
        # Surface an unknown pinner name now, before any request
        self._service()

    def _service(self) -> RemotePinner:
        cfg = self._cfg
        return RemotePinner(cfg.pinner, cfg.apikey, cfg.secret, client=cfg.client)

    async def pin(self, buf: bytes) -> str:
        async def op() -> str:
            service = self._service()
            try:
                cid = await service.pin(buf)
            except PinError:
                raise
            except (httpx.HTTPError, OSError, ValueError) as exc:
                raise PinError(f"pin to {service.name} failed: {exc}") from exc
            return _require_cid(cid)

        return await with_backoff(self._cfg.backoff, op, self._retry)

    async def pin_dir(self, path: str | Path) -> str:
        async def op() -> str:
            service = self._service()
            try:
                cid = await service.pin_dir(path)
            except PinError:
                raise
            except (httpx.HTTPError, OSError, ValueError) as exc:
                raise PinError(f"pin directory to {service.name} failed: {exc}") from exc
            return _require_cid(cid)

        return await with_backoff(self._cfg.backoff, op, self._retry)


def pinning_target(cfg: PinningConfig, retry: RetryPolicy | None = None) -> Pinner:
    """Dispatch a configuration to its pinning target."""
    if cfg.mode == PinMode.LOCAL:
        return LocalTarget(cfg, retry)
    if cfg.mode == PinMode.REMOTE:
        return RemoteTarget(cfg, retry)
    raise ConfigurationError(f"unknown pin mode: {cfg.mode!r}")
