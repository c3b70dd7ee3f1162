"""Page orchestration.

Sequences one render: head elements, CSS collection over the body, HTML
over the body, closing markup. Each phase finishes before the next begins.
Component failures during CSS collection become comments in the style
block; during HTML rendering they abort the render.
"""

import io
import logging
from typing import TextIO

import httpx

from pagestage.core.css import ClassMap, CSSCollector
from pagestage.core.html import HTMLRenderer
from pagestage.core.identifiers import IdentifierGenerator, RandomIdentifierGenerator
from pagestage.core.preview import PreviewElementMap
from pagestage.core.resolver import (
    DEFAULT_FETCH_TIMEOUT,
    ComponentResolver,
    InternalRouterFunc,
    RequestContext,
)
from pagestage.core.site import ComponentTable, Page

logger = logging.getLogger(__name__)

EDITOR_SCRIPT_URL = "/static/editor.js"

EDITOR_STYLE = (
    "[pid]:hover { outline: 1px dashed #e0a800; cursor: pointer; }"
    " #pagestage-preview { position: fixed; bottom: 0; left: 0; z-index: 1000;"
    " display: flex; gap: 10px; padding: 5px; font-size: 16px;"
    " background-color: #f8d7da; }"
)


class PageEngine:
    """Renders pages of one tenant for one request.

    The component table is mutated during the render (fetched components
    are added, private ones removed), so each render needs its own table.
    """

    def __init__(
        self,
        components: ComponentTable,
        context: RequestContext,
        *,
        internal_router: InternalRouterFunc | None = None,
        http_client: httpx.Client | None = None,
        ids: IdentifierGenerator | None = None,
        nonce: str | None = None,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        """Initialize engine.

        Args:
            components: Component table for this render
            context: Request context for component resolution
            internal_router: Handler for ``/``-prefixed imports
            http_client: Client for external imports
            ids: Generator for class names and pids
            nonce: Content security policy nonce for inline style and script
            fetch_timeout: Timeout for external imports without a client
        """
        self._resolver = ComponentResolver(
            components,
            context,
            internal_router=internal_router,
            http_client=http_client,
            fetch_timeout=fetch_timeout,
        )
        self._ids = ids or RandomIdentifierGenerator()
        self._nonce = nonce

    @property
    def components(self) -> ComponentTable:
        return self._resolver.components

    def render_page(
        self,
        page: Page,
        sink: TextIO,
        preview: PreviewElementMap | None = None,
    ) -> None:
        """Write a complete HTML document for a page.

        Args:
            page: Page with head and body trees
            sink: Output receiving the document as it is produced
            preview: Preview element map; enables editor instrumentation

        Raises:
            ComponentResolutionError: If a body or head import fails to
                resolve during HTML rendering
        """
        logger.debug(f"Rendering page (preview={preview is not None})")
        nonce_attr = f' nonce="{self._nonce}"' if self._nonce else ""

        sink.write("<!DOCTYPE html><html><head>")

        if preview is not None:
            sink.write(f"<style{nonce_attr}>{EDITOR_STYLE}</style>")
            sink.write(f'<script src="{EDITOR_SCRIPT_URL}" defer{nonce_attr}></script>')

        head_renderer = HTMLRenderer(
            self._resolver, sink, {}, ids=self._ids, preview=preview, nonce=self._nonce
        )
        for element in page.head:
            head_renderer.render(element)

        sink.write(f"<style{nonce_attr}>")
        class_map: ClassMap = {}
        collector = CSSCollector(self._resolver, sink, class_map, self._ids)
        for element in page.body:
            collector.collect(element)
        sink.write("</style></head><body>")

        body_renderer = HTMLRenderer(
            self._resolver,
            sink,
            class_map,
            ids=self._ids,
            preview=preview,
            nonce=self._nonce,
        )
        for element in page.body:
            body_renderer.render(element)

        sink.write("</body></html>")

        if preview is not None:
            logger.debug(f"Preview element map holds {len(preview)} elements")

    def render_page_to_string(
        self,
        page: Page,
        preview: PreviewElementMap | None = None,
    ) -> str:
        """Render a page into a string.

        A failed render produces no partial output.
        """
        buffer = io.StringIO()
        self.render_page(page, buffer, preview)
        return buffer.getvalue()
