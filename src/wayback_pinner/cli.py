"""CLI entry point for wayback_pinner."""

from __future__ import annotations

import asyncio
import logging
import sys
from urllib.parse import urlparse

import click
import httpx

from wayback_pinner.archiver import PageArchiver
from wayback_pinner.config import build_hold, load_config, validate
from wayback_pinner.errors import ConfigurationError
from wayback_pinner.models.config import AppConfig
from wayback_pinner.wayback import Wayback

log = logging.getLogger(__name__)


def _usage_error(ctx: click.Context, message: str) -> None:
    click.echo("A toolkit makes it easier to archive webpages to IPFS.\n")
    click.echo(ctx.get_help())
    click.echo(message, err=True)
    sys.exit(1)


async def _wayback_one(wayback: Wayback, link: str, timeout: int) -> bool:
    """Archive one URL, reporting on stdout/stderr. Never raises."""
    parsed = urlparse(link)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        click.echo(f"wayback-pinner: {link}: invalid URL", err=True)
        return False
    try:
        dest = await wayback.wayback(link, timeout=timeout or None)
    except Exception as exc:
        log.debug("Wayback %s failed", link, exc_info=True)
        click.echo(f"wayback-pinner: {link}: {exc}", err=True)
        return False
    click.echo(f"{dest}  {link}")
    return True


async def run_batch(cfg: AppConfig, links: list[str]) -> list[bool]:
    """Archive every link concurrently with one shared HTTP client."""
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(60, connect=10),
        follow_redirects=True,
    ) as client:
        archive_only = cfg.mode == "archive"
        hold = None if archive_only else build_hold(cfg, client)
        wayback = Wayback(
            hold,
            PageArchiver(client=client, timeout=cfg.timeout, user_agent=cfg.user_agent),
            archive_only=archive_only,
            single_file=cfg.single_file,
            disable_js_uris=cfg.disable_js_uris,
            output_dir=cfg.output_dir,
            gateway=cfg.gateway,
        )
        return await asyncio.gather(
            *(_wayback_one(wayback, link, cfg.timeout) for link in links)
        )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-m", "--mode", default=None, help="Pin mode, supports mode: local, remote, archive")
@click.option("--timeout", type=int, default=None, help="Timeout for every input URL (seconds)")
@click.option("--host", default=None, help="IPFS node address")
@click.option("--port", type=int, default=None, help="IPFS node port")
@click.option("-t", "--target", default=None,
              help="IPFS pinner, supports pinners: infura, pinata, nftstorage, web3storage")
@click.option("-u", "--apikey", default=None, help="Pinner apikey or username")
@click.option("-p", "--secret", default=None, help="Pinner secret or password")
@click.option("--backoff/--no-backoff", default=None, help="Retry failed pins with exponential backoff")
@click.option("--fallback", "fallback_target", default=None, help="Secondary pinner tried when the first fails")
@click.option("--fallback-apikey", default=None, help="Secondary pinner apikey")
@click.option("--fallback-secret", default=None, help="Secondary pinner secret")
@click.option("--single-file/--directory", default=None,
              help="Pin one self-contained HTML file instead of a directory")
@click.argument("links", nargs=-1)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    verbose: bool,
    links: tuple[str, ...],
    **overrides,
) -> None:
    """Archive webpages and pin them to IPFS.

    Prints one line per URL: the gateway URL (or local file in archive
    mode) followed by the original URL.
    """
    cfg = load_config(config_path)
    for key, value in overrides.items():
        if value is not None:
            setattr(cfg, key, value)

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        validate(cfg)
    except ConfigurationError as exc:
        _usage_error(ctx, str(exc))

    if not links:
        _usage_error(ctx, "link is missing")

    results = asyncio.run(run_batch(cfg, list(links)))
    log.debug("Archived %d/%d links", sum(results), len(results))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
