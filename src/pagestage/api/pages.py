"""Page rendering endpoint.

Renders a tenant page to HTML. Published pages render from the shared
site cache; in preview mode the user's own copy of the draft is rendered
and instrumented for the editor.
"""

import asyncio
import logging
import secrets
from functools import partial
from html import escape

from aiohttp import web

from pagestage.api.context import (
    build_context,
    load_preview_session,
    preview_enabled,
    request_domain,
    request_handle,
)
from pagestage.app_keys import config_key, http_client_key, internal_router_key, store_key
from pagestage.core.engine import PageEngine
from pagestage.core.preview import PreviewSession
from pagestage.core.resolver import ComponentResolutionError
from pagestage.core.site import Page, SiteData
from pagestage.core.store import SiteNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_PAGE = "home"


def create_pages_routes() -> list[web.RouteDef]:
    return [
        web.get("/", render_page),
        web.get("/{page_name}", render_page),
    ]


async def render_page(request: web.Request) -> web.StreamResponse:
    page_name = request.match_info.get("page_name") or DEFAULT_PAGE
    domain = request_domain(request)
    handle = request_handle(request)
    previewing = handle is not None and preview_enabled(request)

    session: PreviewSession | None = None
    try:
        if handle is not None and previewing:
            session = load_preview_session(request, handle)
            site = session.site
        else:
            site = request.app[store_key].fetch(domain)
    except SiteNotFoundError:
        return web.Response(status=404, text="Site not found")
    except ValueError as e:
        logger.error(f"Invalid site data for {domain}: {e}")
        return web.Response(status=500, text="Site data is invalid")

    page = site.pages.get(page_name)
    if page is None:
        return web.Response(status=404, text="Page not found")

    if not previewing:
        if page.redirect_for_login and handle is not None:
            raise web.HTTPFound(page.redirect_for_login)
        if page.redirect_for_logout and handle is None:
            raise web.HTTPFound(page.redirect_for_logout)

    nonce = secrets.token_urlsafe(16)
    engine = _create_engine(request, site, nonce)
    loop = asyncio.get_running_loop()

    logger.info(f"Rendering {domain}/{page_name} (preview={previewing})")
    try:
        if session is not None:
            html = await loop.run_in_executor(
                None, partial(_render_preview, engine, page, session)
            )
        else:
            html = await loop.run_in_executor(None, partial(engine.render_page_to_string, page))
    except ComponentResolutionError as e:
        logger.error(f"Unable to render {domain}/{page_name}: {e}")
        return web.Response(
            status=500,
            text=_error_page(str(e)),
            content_type="text/html",
        )

    return web.Response(
        text=html,
        content_type="text/html",
        headers={"Content-Security-Policy": _content_security_policy(nonce)},
    )


def _create_engine(request: web.Request, site: SiteData, nonce: str) -> PageEngine:
    config = request.app[config_key]
    # Each render gets its own table; private imports and fetched
    # components must not leak into the shared site cache.
    return PageEngine(
        dict(site.components),
        build_context(request, site),
        internal_router=request.app[internal_router_key],
        http_client=request.app[http_client_key],
        nonce=nonce,
        fetch_timeout=config.components.fetch_timeout,
    )


def _render_preview(engine: PageEngine, page: Page, session: PreviewSession) -> str:
    with session.lock:
        return engine.render_page_to_string(page, session.elements)


def _content_security_policy(nonce: str) -> str:
    return f"script-src 'self' 'nonce-{nonce}'; style-src 'self' 'nonce-{nonce}'"


def _error_page(message: str) -> str:
    return (
        "<!DOCTYPE html><html><head><title>Render failed</title></head>"
        f"<body><h1>Unable to render page</h1><p>{escape(message)}</p></body></html>"
    )
