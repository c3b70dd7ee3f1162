"""aiohttp server for Pagestage.

Application factory and route registration for standalone server mode.
"""

import logging

import httpx
from aiohttp import web

from pagestage.api.components import create_components_routes
from pagestage.api.data import create_data_routes
from pagestage.api.pages import create_pages_routes
from pagestage.api.preview import create_preview_routes
from pagestage.app_keys import (
    config_key,
    http_client_key,
    internal_router_key,
    preview_cache_key,
    store_key,
)
from pagestage.assets import get_static_dir
from pagestage.config import Config
from pagestage.core.cache import MemoryCache
from pagestage.core.internal import create_internal_router
from pagestage.core.store import FileSiteStore

logger = logging.getLogger(__name__)


def create_app(config: Config) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration

    Returns:
        Configured aiohttp application
    """
    app = web.Application()

    store = FileSiteStore(config.sites.sites_dir, MemoryCache())

    app[config_key] = config
    app[store_key] = store
    app[preview_cache_key] = MemoryCache()
    app[internal_router_key] = create_internal_router()
    app[http_client_key] = httpx.Client(
        timeout=config.components.fetch_timeout,
        follow_redirects=True,
    )
    app.on_cleanup.append(_close_http_client)

    # API routes (must be registered before the catch-all page route)
    app.router.add_routes(create_preview_routes())
    app.router.add_routes(create_components_routes())
    app.router.add_routes(create_data_routes())

    # Live reload WebSocket endpoint
    if config.live_reload.enabled:
        from pagestage.live import LiveReloadManager
        from pagestage.live.reload import create_live_reload_routes

        manager = LiveReloadManager(
            config.sites.sites_dir,
            watch_patterns=config.live_reload.watch_patterns,
            store=store,
        )
        app["live_reload_manager"] = manager
        app.router.add_routes(create_live_reload_routes(manager))
        app.on_startup.append(_start_live_reload)
        app.on_cleanup.append(_stop_live_reload)

    # Editor assets for preview mode
    static_dir = get_static_dir()
    app["static_dir"] = static_dir
    app.router.add_static("/static", static_dir)

    # Tenant pages - must be last to catch all remaining paths
    app.router.add_routes(create_pages_routes())

    return app


async def _start_live_reload(app: web.Application) -> None:
    """Start live reload on application startup."""
    from pagestage.live import LiveReloadManager

    manager: LiveReloadManager = app["live_reload_manager"]
    await manager.start()


async def _stop_live_reload(app: web.Application) -> None:
    """Stop live reload on application cleanup."""
    from pagestage.live import LiveReloadManager

    manager: LiveReloadManager = app["live_reload_manager"]
    await manager.stop()


async def _close_http_client(app: web.Application) -> None:
    app[http_client_key].close()


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    logger.info(f"Serving sites from {config.sites.sites_dir}")
    web.run_app(app, host=config.server.host, port=config.server.port)
