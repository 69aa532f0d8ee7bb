"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

import httpx

from wayback_pinner.errors import ConfigurationError
from wayback_pinner.ipfs.fallback import FallbackChain
from wayback_pinner.ipfs.remote import KNOWN_PINNERS
from wayback_pinner.models.config import AppConfig, PinMode, PinningConfig

MODES = ("local", "remote", "archive")

# Read without prefix for compatibility with existing deployments
DISABLEJS_ENV = "DISABLEJS_URIS"


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "WAYBACK_PINNER_",
) -> AppConfig:
    """Load configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (WAYBACK_PINNER_APIKEY, DISABLEJS_URIS, etc.)
        2. TOML config file
        3. Defaults from AppConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = AppConfig()

    # ── Wayback section ────────────────────────────────────
    wayback = raw.get("wayback", {})
    if v := wayback.get("mode"):
        cfg.mode = str(v)
    if v := wayback.get("timeout"):
        cfg.timeout = int(v)
    if v := wayback.get("output_dir"):
        cfg.output_dir = str(v)
    if v := wayback.get("gateway"):
        cfg.gateway = str(v)
    if v := wayback.get("log_level"):
        cfg.log_level = str(v)
    cfg.single_file = bool(wayback.get("single_file", cfg.single_file))

    # ── IPFS section ───────────────────────────────────────
    ipfs = raw.get("ipfs", {})
    if v := ipfs.get("host"):
        cfg.host = str(v)
    if v := ipfs.get("port"):
        cfg.port = int(v)

    # ── Pinner section ─────────────────────────────────────
    pinner = raw.get("pinner", {})
    if v := pinner.get("target"):
        cfg.target = str(v)
    if v := pinner.get("apikey"):
        cfg.apikey = str(v)
    if v := pinner.get("secret"):
        cfg.secret = str(v)
    cfg.backoff = bool(pinner.get("backoff", cfg.backoff))

    # ── Fallback section ───────────────────────────────────
    fallback = raw.get("fallback", {})
    if v := fallback.get("target"):
        cfg.fallback_target = str(v)
    if v := fallback.get("apikey"):
        cfg.fallback_apikey = str(v)
    if v := fallback.get("secret"):
        cfg.fallback_secret = str(v)

    # ── Archive section ────────────────────────────────────
    archive = raw.get("archive", {})
    if v := archive.get("disable_js_uris"):
        cfg.disable_js_uris = str(v)
    if v := archive.get("user_agent"):
        cfg.user_agent = str(v)

    # ── Environment variable overrides (highest priority) ──
    if v := os.environ.get(f"{env_prefix}MODE"):
        cfg.mode = v
    if v := os.environ.get(f"{env_prefix}TARGET"):
        cfg.target = v
    if v := os.environ.get(f"{env_prefix}APIKEY"):
        cfg.apikey = v
    if v := os.environ.get(f"{env_prefix}SECRET"):
        cfg.secret = v
    if v := os.environ.get(f"{env_prefix}HOST"):
        cfg.host = v
    if v := os.environ.get(f"{env_prefix}PORT"):
        cfg.port = int(v)
    if v := os.environ.get(f"{env_prefix}TIMEOUT"):
        cfg.timeout = int(v)
    if v := os.environ.get(DISABLEJS_ENV):
        cfg.disable_js_uris = v

    cfg.output_dir = str(Path(cfg.output_dir).expanduser())

    return cfg


def validate(cfg: AppConfig) -> None:
    """Reject unknown modes and pinner names before anything runs."""
    if cfg.mode not in MODES:
        raise ConfigurationError(f"unknown mode: {cfg.mode!r}")
    if cfg.target not in KNOWN_PINNERS:
        raise ConfigurationError(f"unknown target: {cfg.target!r}")
    if cfg.fallback_target and cfg.fallback_target not in KNOWN_PINNERS:
        raise ConfigurationError(f"unknown fallback target: {cfg.fallback_target!r}")


def build_hold(cfg: AppConfig, client: httpx.AsyncClient | None = None) -> FallbackChain:
    """Build the primary and optional secondary pinning configurations."""
    validate(cfg)
    if cfg.mode == "local":
        primary = PinningConfig(
            mode=PinMode.LOCAL,
            host=cfg.host,
            port=cfg.port,
            client=client,
            backoff=cfg.backoff,
        )
    else:
        primary = PinningConfig(
            mode=PinMode.REMOTE,
            pinner=cfg.target,
            apikey=cfg.apikey,
            secret=cfg.secret,
            client=client,
            backoff=cfg.backoff,
        )

    secondary = None
    if cfg.fallback_target:
        secondary = PinningConfig(
            mode=PinMode.REMOTE,
            pinner=cfg.fallback_target,
            apikey=cfg.fallback_apikey,
            secret=cfg.fallback_secret,
            client=client,
            backoff=cfg.backoff,
        )
    return FallbackChain(primary, secondary)
