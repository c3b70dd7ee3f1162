"""Request helpers shared by the API handlers.

Resolves the tenant domain, the user handle set by the authenticating
proxy, the preview flag and the user's preview session.
"""

import logging

from aiohttp import web

from pagestage.app_keys import config_key, preview_cache_key, store_key
from pagestage.core.preview import PreviewSession
from pagestage.core.resolver import RequestContext
from pagestage.core.site import SiteData

logger = logging.getLogger(__name__)

PREVIEW_COOKIE = "preview"

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


def request_domain(request: web.Request) -> str:
    """Tenant domain for a request.

    The port is dropped; local hosts map to the configured default domain.
    """
    host = request.host
    if host.startswith("["):
        domain = host[1 : host.find("]")] if "]" in host else host
    else:
        domain = host.rsplit(":", 1)[0]

    default_domain = request.app[config_key].sites.default_domain
    if default_domain and domain in _LOCAL_HOSTS:
        return default_domain
    return domain


def request_handle(request: web.Request) -> str | None:
    """Logged-in user handle, as forwarded by the authenticating proxy."""
    header = request.app[config_key].preview.handle_header
    handle = request.headers.get(header, "").strip()
    return handle or None


def preview_enabled(request: web.Request) -> bool:
    return request.cookies.get(PREVIEW_COOKIE) == "1"


def require_handle(request: web.Request) -> str:
    """Return the user handle or reject the request.

    Raises:
        web.HTTPUnauthorized: If no handle is present
    """
    handle = request_handle(request)
    if handle is None:
        raise web.HTTPUnauthorized(text="You need to be logged in to use preview mode")
    return handle


def build_context(request: web.Request, site: SiteData | None) -> RequestContext:
    return RequestContext(
        domain=request_domain(request),
        handle=request_handle(request),
        headers=dict(request.headers),
        site=site,
    )


def _session_key(domain: str, handle: str) -> str:
    return f"{domain}:{handle}"


def get_preview_session(request: web.Request, handle: str) -> PreviewSession | None:
    """Active preview session of a user for the request's domain, if any."""
    domain = request_domain(request)
    session = request.app[preview_cache_key].get(_session_key(domain, handle))
    if isinstance(session, PreviewSession):
        return session
    return None


def load_preview_session(request: web.Request, handle: str) -> PreviewSession:
    """Return the user's preview session, creating it from the draft.

    Raises:
        SiteNotFoundError: If the domain has no site data
        ValueError: If the site data is invalid
    """
    session = get_preview_session(request, handle)
    if session is not None:
        return session

    domain = request_domain(request)
    draft = request.app[store_key].fetch_preview(domain)
    session = PreviewSession(site=draft.copy())
    request.app[preview_cache_key].set(_session_key(domain, handle), session)
    logger.info(f"Started preview session for {handle} on {domain}")
    return session


def drop_preview_session(request: web.Request, handle: str) -> None:
    domain = request_domain(request)
    request.app[preview_cache_key].delete(_session_key(domain, handle))
    logger.info(f"Dropped preview session for {handle} on {domain}")
