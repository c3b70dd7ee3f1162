"""CLI interface for Pagestage.

Command-line tool for serving, rendering and publishing tenant sites.
"""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
import httpx

from pagestage.config import Config


@click.group()
def cli() -> None:
    """Pagestage - pages built from JSON element trees."""


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover pagestage.toml)",
)
@click.option(
    "--sites-dir",
    "-s",
    type=click.Path(exists=True, path_type=Path, file_okay=False),
    default=None,
    help="Directory with one subdirectory per tenant domain (overrides config)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--default-domain",
    default=None,
    help="Domain served for localhost requests (overrides config)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (debug logging)",
)
@click.option(
    "--live-reload/--no-live-reload",
    default=None,
    help="Enable/disable live reload (overrides config, default: enabled)",
)
def serve(
    config_path: Path | None,
    sites_dir: Path | None,
    host: str | None,
    port: int | None,
    default_domain: str | None,
    verbose: bool,
    live_reload: bool | None,
) -> None:
    """Start the page server."""
    from pagestage.server import run_server

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = _load_config(config_path).with_overrides(
        host=host,
        port=port,
        sites_dir=sites_dir,
        default_domain=default_domain,
        live_reload_enabled=live_reload,
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Sites directory: {config.sites.sites_dir}")
    if config.sites.default_domain:
        click.echo(f"Default domain: {config.sites.default_domain}")
    if config.live_reload.enabled:
        click.echo("Live reload: enabled")
    else:
        click.echo("Live reload: disabled")

    run_server(config)


@cli.command()
@click.argument("domain")
@click.argument("page_name", default="home")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write HTML to this file instead of stdout",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover pagestage.toml)",
)
@click.option(
    "--sites-dir",
    "-s",
    type=click.Path(exists=True, path_type=Path, file_okay=False),
    default=None,
    help="Directory with one subdirectory per tenant domain (overrides config)",
)
def render(
    domain: str,
    page_name: str,
    output: Path | None,
    config_path: Path | None,
    sites_dir: Path | None,
) -> None:
    """Render a published page of DOMAIN to HTML."""
    from pagestage.core.cache import MemoryCache
    from pagestage.core.engine import PageEngine
    from pagestage.core.internal import create_internal_router
    from pagestage.core.resolver import ComponentResolutionError, RequestContext
    from pagestage.core.store import FileSiteStore

    config = _load_config(config_path).with_overrides(sites_dir=sites_dir)
    store = FileSiteStore(config.sites.sites_dir, MemoryCache())

    try:
        site = store.fetch(domain)
        page = site.pages.get(page_name)
        if page is None:
            _fail(f"Page not found: {page_name}")

        with httpx.Client(
            timeout=config.components.fetch_timeout,
            follow_redirects=True,
        ) as http_client:
            engine = PageEngine(
                dict(site.components),
                RequestContext(domain=domain, site=site),
                internal_router=create_internal_router(),
                http_client=http_client,
            )
            html = engine.render_page_to_string(page)
    except (FileNotFoundError, ValueError, ComponentResolutionError) as e:
        _fail(str(e))

    if output is None:
        click.echo(html)
    else:
        output.write_text(html, encoding="utf-8")
        click.echo(click.style(f"Rendered {domain}/{page_name} to {output}", fg="green"))


@cli.command()
@click.argument("domain")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover pagestage.toml)",
)
@click.option(
    "--sites-dir",
    "-s",
    type=click.Path(exists=True, path_type=Path, file_okay=False),
    default=None,
    help="Directory with one subdirectory per tenant domain (overrides config)",
)
def publish(domain: str, config_path: Path | None, sites_dir: Path | None) -> None:
    """Promote the saved draft of DOMAIN to its published site."""
    from pagestage.core.cache import MemoryCache
    from pagestage.core.store import FileSiteStore

    config = _load_config(config_path).with_overrides(sites_dir=sites_dir)
    store = FileSiteStore(config.sites.sites_dir, MemoryCache())

    try:
        store.publish(domain)
    except FileNotFoundError as e:
        _fail(str(e))

    click.echo(click.style(f"Published draft for {domain}", fg="green", bold=True))


def _load_config(config_path: Path | None) -> Config:
    """Load configuration or exit with error.

    Raises:
        SystemExit: If the configuration cannot be loaded
    """
    try:
        return Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
