"""Component export endpoints.

Serves a tenant's reusable components as element JSON so other sites can
import them by URL. Components marked private are never exported.
"""

from aiohttp import web

from pagestage.api.context import load_preview_session, request_domain, require_handle
from pagestage.app_keys import store_key
from pagestage.core.site import SiteData
from pagestage.core.store import SiteNotFoundError


def create_components_routes() -> list[web.RouteDef]:
    return [
        web.get("/components", get_components),
        web.get("/component/{name}", get_component),
        web.get("/preview/components", get_preview_components),
        web.get("/preview/component/{name}", get_preview_component),
    ]


async def get_components(request: web.Request) -> web.Response:
    site = _published_site(request)
    if site is None:
        return web.json_response({"error": "Components not found"}, status=404)
    return _components_response(site)


async def get_component(request: web.Request) -> web.Response:
    site = _published_site(request)
    if site is None:
        return web.json_response({"error": "Component not found"}, status=404)
    return _component_response(site, request.match_info["name"])


async def get_preview_components(request: web.Request) -> web.Response:
    site = _preview_site(request)
    if site is None:
        return web.json_response({"error": "Components not found"}, status=404)
    return _components_response(site)


async def get_preview_component(request: web.Request) -> web.Response:
    site = _preview_site(request)
    if site is None:
        return web.json_response({"error": "Component not found"}, status=404)
    return _component_response(site, request.match_info["name"])


def _published_site(request: web.Request) -> SiteData | None:
    try:
        return request.app[store_key].fetch(request_domain(request))
    except (SiteNotFoundError, ValueError):
        return None


def _preview_site(request: web.Request) -> SiteData | None:
    handle = require_handle(request)
    try:
        return load_preview_session(request, handle).site
    except (SiteNotFoundError, ValueError):
        return None


def _components_response(site: SiteData) -> web.Response:
    components = site.public_components()
    return web.json_response(
        {name: component.to_dict() for name, component in components.items()}
    )


def _component_response(site: SiteData, name: str) -> web.Response:
    component = site.public_components().get(name)
    if component is None:
        return web.json_response({"error": "Component not found", "name": name}, status=404)
    return web.json_response(component.to_dict())
