"""Preview mode endpoints.

Toggles preview mode, accepts drafts and lets the in-page editor read and
replace single elements of the rendered preview by pid.
"""

import asyncio
import logging
from functools import partial
from json import JSONDecodeError
from typing import Any

from aiohttp import web

from pagestage.api.context import (
    PREVIEW_COOKIE,
    drop_preview_session,
    get_preview_session,
    preview_enabled,
    request_domain,
    require_handle,
)
from pagestage.app_keys import store_key
from pagestage.core.element import Element
from pagestage.core.preview import PreviewSession
from pagestage.core.store import SiteNotFoundError

logger = logging.getLogger(__name__)

PREVIEW_DATA_FIELD = "previewData"


def create_preview_routes() -> list[web.RouteDef]:
    return [
        web.get("/preview", toggle_preview),
        web.post("/preview", save_preview),
        web.get("/preview/element/{pid}", get_element),
        web.put("/preview/element/{pid}", put_element),
    ]


async def toggle_preview(request: web.Request) -> web.Response:
    """Switch preview mode on or off and go back to the referring page."""
    handle = require_handle(request)
    enable = not preview_enabled(request)

    response = web.HTTPFound(request.headers.get("Referer") or "/")
    response.set_cookie(PREVIEW_COOKIE, "1" if enable else "0", path="/", httponly=True)
    if not enable:
        drop_preview_session(request, handle)

    logger.info(f"Preview {'enabled' if enable else 'disabled'} for {handle}")
    raise response


async def save_preview(request: web.Request) -> web.Response:
    """Store a draft for the request's domain.

    Accepts the draft as the ``previewData`` form field or as the raw JSON
    request body. The user's preview session is dropped so the next preview
    render starts from the new draft.
    """
    handle = require_handle(request)
    domain = request_domain(request)

    if request.content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
        form = await request.post()
        text = form.get(PREVIEW_DATA_FIELD)
        if not isinstance(text, str):
            return web.json_response(
                {"error": f"Missing form field: {PREVIEW_DATA_FIELD}"}, status=400
            )
    else:
        text = await request.text()

    store = request.app[store_key]
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, partial(store.save_preview, domain, text))
    except SiteNotFoundError as e:
        return web.json_response({"error": str(e)}, status=404)
    except ValueError as e:
        return web.json_response({"error": f"Invalid site data: {e}"}, status=400)

    drop_preview_session(request, handle)
    return web.json_response({"status": "unpublished", "message": "Draft saved"})


async def get_element(request: web.Request) -> web.Response:
    """Return the current JSON of a rendered preview element."""
    pid = request.match_info["pid"]
    session = _require_session(request)

    loop = asyncio.get_running_loop()
    data = await loop.run_in_executor(None, partial(_read_element, session, pid))

    if data is None:
        return web.json_response({"error": "Element not found", "pid": pid}, status=404)
    return web.json_response(data)


async def put_element(request: web.Request) -> web.Response:
    """Replace a rendered preview element with the JSON in the request body."""
    pid = request.match_info["pid"]
    session = _require_session(request)

    try:
        replacement = Element.from_dict(await request.json())
    except (JSONDecodeError, ValueError) as e:
        return web.json_response({"error": f"Invalid element: {e}"}, status=400)

    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, partial(_update_element, session, pid, replacement))
    except KeyError:
        return web.json_response({"error": "Element not found", "pid": pid}, status=404)
    except ValueError as e:
        return web.json_response({"error": f"Invalid element: {e}", "pid": pid}, status=400)

    logger.info(f"Updated preview element {pid}")
    return web.json_response({"status": "updated", "pid": pid})


def _require_session(request: web.Request) -> PreviewSession:
    handle = require_handle(request)
    session = get_preview_session(request, handle)
    if session is None:
        raise web.HTTPNotFound(
            text='{"error": "No active preview data"}', content_type="application/json"
        )
    return session


def _read_element(session: PreviewSession, pid: str) -> dict[str, Any] | None:
    with session.lock:
        element = session.elements.get(pid)
        return element.to_dict() if element is not None else None


def _update_element(session: PreviewSession, pid: str, replacement: Element) -> None:
    with session.lock:
        session.elements.update(pid, replacement)
