"""Internal component routes.

Imports starting with ``/`` are answered in-process: each route builds an
element from the request context, so engine data (the current domain, the
site's pages) can be used like any other component without a network hop.
"""

import logging

from pagestage.core.element import Element
from pagestage.core.resolver import InternalRouterFunc, RequestContext

logger = logging.getLogger(__name__)


class InternalRouter:
    """Dispatches internal component paths to handlers."""

    def __init__(self) -> None:
        self._routes: dict[str, InternalRouterFunc] = {}

    def add(self, path: str, handler: InternalRouterFunc) -> None:
        if not path.startswith("/"):
            raise ValueError(f"internal route must start with '/': {path}")
        self._routes[path] = handler

    def __call__(self, path: str, context: RequestContext) -> Element:
        """Build the element for an internal path.

        Raises:
            LookupError: If no route is registered for path
        """
        handler = self._routes.get(path)
        if handler is None:
            raise LookupError(f"unknown internal route: {path}")
        logger.debug(f"Internal route {path} for {context.domain}")
        return handler(path, context)


def current_domain(path: str, context: RequestContext) -> Element:
    return Element(type="h1", text=context.domain)


def current_handle(path: str, context: RequestContext) -> Element:
    return Element(type="span", text=context.handle or "")


def page_links(path: str, context: RequestContext) -> Element:
    """List of links to every page of the current site."""
    pages = sorted(context.site.pages) if context.site is not None else []
    return Element(
        type="ul",
        elements=[
            Element(
                type="li",
                elements=[Element(type="a", attributes={"href": f"/{name}"}, text=name)],
            )
            for name in pages
        ],
    )


def create_internal_router() -> InternalRouter:
    """Router with the built-in internal components."""
    router = InternalRouter()
    router.add("/domain", current_domain)
    router.add("/handle", current_handle)
    router.add("/pages", page_links)
    return router
