"""Component resolution.

Turns an ``import`` reference into a concrete element. References are
looked up in the component table first; bare names that are missing are an
error, ``/``-prefixed references go to the internal router and anything
else is fetched over HTTP. Fetched components are kept in the table for
the rest of the render.
"""

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import httpx

from pagestage.core.element import Element
from pagestage.core.site import ComponentTable, SiteData

logger = logging.getLogger(__name__)

# Headers that describe the inbound connection rather than the user agent
_SKIPPED_HEADERS = frozenset(
    {
        "accept-encoding",
        "connection",
        "content-length",
        "cookie",
        "host",
        "keep-alive",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

DEFAULT_FETCH_TIMEOUT = 10.0


@dataclass
class RequestContext:
    """Who is rendering, and for which tenant."""

    domain: str
    handle: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    site: SiteData | None = None


InternalRouterFunc = Callable[[str, RequestContext], Element]


class ComponentResolutionError(Exception):
    """A component reference could not be turned into an element."""

    def __init__(self, reference: str, message: str) -> None:
        super().__init__(message)
        self.reference = reference


class ComponentNotFoundError(ComponentResolutionError):
    """No component with the given name exists in the table."""

    def __init__(self, reference: str) -> None:
        super().__init__(reference, f"Component not found: {reference}")


class ComponentFetchError(ComponentResolutionError):
    """Fetching a component from an internal route or URL failed."""

    def __init__(self, reference: str, url: str, reason: str) -> None:
        super().__init__(reference, f"Failed to fetch component {url}: {reason}")
        self.url = url


class CycleGuard:
    """Visited set for one render pass.

    Keys pair the importing element with its reference, so one component
    may be imported from many places but never from inside itself.
    """

    def __init__(self) -> None:
        self._visited: set[tuple[Element, str]] = set()

    def enter(self, instance: Element, reference: str) -> bool:
        """Mark an import as in progress.

        Returns:
            False if the same instance is already resolving this reference
        """
        key = (instance, reference)
        if key in self._visited:
            return False
        self._visited.add(key)
        return True

    def leave(self, instance: Element, reference: str) -> None:
        self._visited.discard((instance, reference))


class ComponentResolver:
    """Resolves component references against a per-render component table."""

    def __init__(
        self,
        components: ComponentTable,
        context: RequestContext,
        *,
        internal_router: InternalRouterFunc | None = None,
        http_client: httpx.Client | None = None,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        """Initialize resolver.

        Args:
            components: Component table owned by this render; fetched
                        components are added and private ones removed
            context: Request context passed to internal routes
            internal_router: Handler for ``/``-prefixed references
            http_client: Client for external references. A short-lived
                         client is created per fetch when omitted.
            fetch_timeout: Timeout for the short-lived client
        """
        self._components = components
        self._context = context
        self._internal_router = internal_router
        self._http_client = http_client
        self._fetch_timeout = fetch_timeout

    @property
    def components(self) -> ComponentTable:
        return self._components

    @property
    def context(self) -> RequestContext:
        return self._context

    def resolve(self, reference: str) -> Element:
        """Resolve a reference to a component element.

        Args:
            reference: Component name, internal path or URL

        Returns:
            The component definition (never a copy)

        Raises:
            ComponentNotFoundError: If a bare name is not in the table
            ComponentFetchError: If an internal route or URL fetch fails
        """
        component = self._components.get(reference)
        if component is not None:
            return component

        if "/" not in reference:
            raise ComponentNotFoundError(reference)

        if reference.startswith("/"):
            component = self._route_internal(reference)
        else:
            component = self._fetch_external(reference)

        self._components[reference] = component
        return component

    def discard(self, reference: str) -> None:
        """Drop a component so later references fail to resolve."""
        if self._components.pop(reference, None) is not None:
            logger.debug(f"Discarded private component {reference}")

    def _route_internal(self, path: str) -> Element:
        if self._internal_router is None:
            raise ComponentFetchError(path, path, "no internal router configured")

        logger.debug(f"Resolving internal component {path}")
        try:
            return self._internal_router(path, self._context)
        except LookupError as e:
            raise ComponentFetchError(path, path, str(e)) from e

    def _fetch_external(self, url: str) -> Element:
        logger.info(f"Fetching external component {url}")
        headers = {
            key: value
            for key, value in self._context.headers.items()
            if key.lower() not in _SKIPPED_HEADERS
        }

        try:
            if self._http_client is not None:
                response = self._http_client.get(url, headers=headers)
            else:
                with httpx.Client(timeout=self._fetch_timeout) as client:
                    response = client.get(url, headers=headers)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Component fetch failed for {url}: {e}")
            raise ComponentFetchError(url, url, str(e)) from e

        try:
            component = Element.from_dict(response.json())
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Invalid component JSON from {url}: {e}")
            raise ComponentFetchError(url, url, f"invalid component JSON: {e}") from e

        logger.debug(f"Fetched component {url}")
        return component
