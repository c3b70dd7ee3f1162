"""HTML rendering pass.

Streams markup for a tree using the class names assigned by the CSS pass.
Imports render a shallow clone of the component with the importer's
attributes, text and class laid over it; the shared definition is never
touched. In preview mode each emitted element carries a ``pid`` attribute
and is registered in the preview element map.
"""

import logging
from html import escape
from typing import TextIO

from pagestage.core.css import ClassMap
from pagestage.core.element import SELF_CLOSING_TAGS, Element
from pagestage.core.identifiers import IdentifierGenerator
from pagestage.core.preview import PreviewElementMap
from pagestage.core.resolver import ComponentResolver, CycleGuard

logger = logging.getLogger(__name__)

NONCE_TAGS = frozenset({"script", "style"})


class HTMLRenderer:
    """Writes HTML for element trees."""

    def __init__(
        self,
        resolver: ComponentResolver,
        sink: TextIO,
        class_map: ClassMap,
        *,
        ids: IdentifierGenerator,
        preview: PreviewElementMap | None = None,
        nonce: str | None = None,
    ) -> None:
        """Initialize renderer.

        Args:
            resolver: Component resolver for the current render
            sink: Output receiving HTML text
            class_map: Class names from the CSS pass (may be empty)
            ids: Generator for fresh preview identifiers
            preview: Preview element map; enables pid instrumentation
            nonce: Content security policy nonce for style and script tags
        """
        self._resolver = resolver
        self._sink = sink
        self._class_map = class_map
        self._ids = ids
        self._preview = preview
        self._nonce = nonce
        self._guard = CycleGuard()

    def render(self, element: Element) -> None:
        """Render an element and its subtree.

        Raises:
            ComponentResolutionError: If an imported component cannot be
                resolved. Output written so far is not retracted.
        """
        if element.is_import:
            self._render_import(element)
            return

        if self._preview is not None:
            self._preview.register(self._assign_pid(element, self._preview), element)

        self._render_tag(element)

    def _render_import(
        self,
        element: Element,
        instance: Element | None = None,
        origin: Element | None = None,
    ) -> None:
        reference = element.import_
        # Aliases are guarded by their definition since their clones are new objects
        is_alias = instance is not None
        instance = instance or element
        origin = origin or element
        if not self._guard.enter(instance, reference):
            logger.debug(f"Import cycle stopped at {reference}")
            return

        try:
            component = self._resolver.resolve(reference)

            clone = component.clone()
            clone.attributes.update(element.attributes)
            clone.style.update(element.style)
            if element.text:
                clone.text = element.text

            class_name = self._class_map.get(element)
            if class_name is not None:
                self._class_map[clone] = class_name

            if self._preview is not None:
                clone.pid = self._assign_pid(element, self._preview)
                self._preview.register(clone.pid, clone, origin=origin)

            if clone.is_import:
                self._render_import(clone, instance=component, origin=origin)
            else:
                self._render_tag(clone)
        finally:
            self._guard.leave(instance, reference)

        if element.private and not is_alias:
            self._resolver.discard(reference)

    def _render_tag(self, element: Element) -> None:
        write = self._sink.write
        tag = element.type

        write(f"<{tag}")

        if self._preview is not None:
            write(f' pid="{escape(element.pid)}"')

        custom_class = ""
        for key, value in element.attributes.items():
            if key == "class":
                custom_class = value
                continue
            write(f' {key}="{escape(value)}"')

        classes = " ".join(
            name for name in (self._class_map.get(element), custom_class) if name
        )
        if classes:
            write(f' class="{escape(classes)}"')

        if self._nonce and tag in NONCE_TAGS:
            write(f' nonce="{escape(self._nonce)}"')

        if tag in SELF_CLOSING_TAGS:
            write(" />")
            return

        write(">")
        if element.text:
            write(element.text)

        for child in element.elements:
            self.render(child)

        write(f"</{tag}>")

    def _assign_pid(self, element: Element, preview: PreviewElementMap) -> str:
        """Give an element a pid unless it already has one.

        The element's class name is reused when no other element holds it.
        """
        if element.pid:
            return element.pid

        candidate = self._class_map.get(element, "")
        if not candidate or candidate in preview:
            candidate = self._ids.next()
            while candidate in preview:
                candidate = self._ids.next()

        element.pid = candidate
        return candidate
