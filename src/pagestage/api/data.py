"""Site data endpoints.

Expose the published site of the request's domain, or one of its pages,
as the same JSON the site is authored in.
"""

from aiohttp import web

from pagestage.api.context import request_domain
from pagestage.app_keys import store_key
from pagestage.core.site import SiteData
from pagestage.core.store import SiteNotFoundError


def create_data_routes() -> list[web.RouteDef]:
    return [
        web.get("/json", get_site_data),
        web.get("/page/{page_name}", get_page_data),
    ]


async def get_site_data(request: web.Request) -> web.Response:
    site = _published_site(request)
    if site is None:
        return web.json_response({"error": "Site data not found"}, status=404)
    return web.json_response(site.to_dict())


async def get_page_data(request: web.Request) -> web.Response:
    page_name = request.match_info["page_name"]
    site = _published_site(request)
    page = site.pages.get(page_name) if site is not None else None
    if page is None:
        return web.json_response(
            {"error": "Page not found", "page": page_name}, status=404
        )
    return web.json_response(page.to_dict())


def _published_site(request: web.Request) -> SiteData | None:
    try:
        return request.app[store_key].fetch(request_domain(request))
    except (SiteNotFoundError, ValueError):
        return None
