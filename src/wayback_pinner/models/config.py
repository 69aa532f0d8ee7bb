"""Configuration models for pinning and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import httpx

from wayback_pinner.ipfs.kubo import KuboClient

DEFAULT_PINNER = "infura"
DEFAULT_GATEWAY = "https://ipfs.io/ipfs/"


class PinMode(str, Enum):
    """Where pinned content is stored."""

    REMOTE = "remote"  # Third-party pinning service
    LOCAL = "local"  # Local IPFS (Kubo) node


@dataclass(frozen=True)
class PinningConfig:
    """Immutable pinning configuration.

    Every field defaults to its zero value so callers may set any subset
    in any order. ``__post_init__`` finalizes the record: local mode gets
    a node client handle for ``host:port``, remote mode without a pinner
    name falls back to ``DEFAULT_PINNER``. Nothing is validated here;
    an unreachable endpoint only fails on the first pin call.
    """

    mode: PinMode = PinMode.REMOTE

    # Local mode
    host: str = ""
    port: int = 0

    # Remote mode, normally the apikey and secret of the pinning service
    pinner: str = ""
    apikey: str = ""
    secret: str = field(default="", repr=False)

    client: httpx.AsyncClient | None = field(default=None, compare=False, repr=False)
    backoff: bool = False

    node: KuboClient | None = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.mode == PinMode.LOCAL:
            object.__setattr__(self, "node", KuboClient(self.host, self.port, self.client))
        if self.mode == PinMode.REMOTE and not self.pinner:
            object.__setattr__(self, "pinner", DEFAULT_PINNER)

    @property
    def backend(self) -> tuple:
        """Identity of the backend this config points at."""
        if self.mode == PinMode.LOCAL:
            return (self.mode, self.host, self.port)
        return (self.mode, self.pinner, self.apikey, self.secret)


@dataclass
class AppConfig:
    """Complete CLI configuration."""

    # Wayback
    mode: str = "remote"  # local, remote or archive
    timeout: int = 30  # seconds per URL
    single_file: bool = False
    output_dir: str = "."
    gateway: str = DEFAULT_GATEWAY
    log_level: str = "info"

    # Local IPFS node
    host: str = "localhost"
    port: int = 5001

    # Pinning service
    target: str = DEFAULT_PINNER
    apikey: str = ""
    secret: str = ""
    backoff: bool = False

    # Secondary pinning service, tried when the primary fails
    fallback_target: str = ""
    fallback_apikey: str = ""
    fallback_secret: str = ""

    # Archive
    disable_js_uris: str = ""  # e.g. wikipedia.org|eff.org/tags
    user_agent: str = ""
