"""CSS collection pass.

Walks the body tree before any HTML is written, gives every element a
class name and streams one rule per styled element. Imported components
are collected through a clone carrying the importer's style overrides, so
each distinct override set gets its own class.
"""

import logging
from typing import TextIO

from pagestage.core.element import SELF_CLOSING_TAGS, Element
from pagestage.core.identifiers import IdentifierGenerator
from pagestage.core.resolver import ComponentResolutionError, ComponentResolver, CycleGuard

logger = logging.getLogger(__name__)

# Element -> generated class name, shared by the CSS and HTML passes
ClassMap = dict[Element, str]


def format_rule(class_name: str, style: dict[str, str]) -> str:
    """Format a CSS rule for a class selector.

    Properties keep the style map's own order.

    Args:
        class_name: Class selector without the leading dot
        style: Property -> value map

    Returns:
        Rule text, or "" for an empty style map
    """
    if not style:
        return ""
    declarations = "".join(f" {prop}: {value};" for prop, value in style.items())
    return f".{class_name} {{{declarations} }}"


def format_error_comment(error: Exception) -> str:
    message = str(error).replace("*/", "* /")
    return f"/* Error: {message} */"


class CSSCollector:
    """Assigns class names and writes CSS rules for a tree."""

    def __init__(
        self,
        resolver: ComponentResolver,
        sink: TextIO,
        class_map: ClassMap,
        ids: IdentifierGenerator,
    ) -> None:
        """Initialize collector.

        Args:
            resolver: Component resolver for the current render
            sink: Output receiving CSS text
            class_map: Map populated with one class per element
            ids: Generator for class name suffixes
        """
        self._resolver = resolver
        self._sink = sink
        self._class_map = class_map
        self._ids = ids
        self._guard = CycleGuard()
        # (component, sorted merged style items) -> class of the clone collected for it
        self._import_classes: dict[tuple[Element, tuple[tuple[str, str], ...]], str] = {}

    def collect(self, element: Element) -> None:
        """Collect CSS for an element and its subtree."""
        if element.is_import:
            self._collect_import(element)
            return

        # Component children are shared between import sites
        if element in self._class_map:
            return

        class_name = f"{element.type}_{self._ids.next()}"
        self._class_map[element] = class_name
        if element.style:
            self._sink.write(format_rule(class_name, element.style))

        if element.type in SELF_CLOSING_TAGS:
            return

        for child in element.elements:
            self.collect(child)

    def _collect_import(self, element: Element, instance: Element | None = None) -> None:
        reference = element.import_
        instance = instance or element
        if not self._guard.enter(instance, reference):
            logger.debug(f"Import cycle stopped at {reference}")
            return

        try:
            try:
                component = self._resolver.resolve(reference)
            except ComponentResolutionError as e:
                logger.warning(f"CSS collection skipped {reference}: {e}")
                self._sink.write(format_error_comment(e))
                return

            merged_style = {**component.style, **element.style}
            key = (component, tuple(sorted(merged_style.items())))
            class_name = self._import_classes.get(key)
            if class_name is None:
                clone = component.clone()
                clone.style = merged_style
                if clone.is_import:
                    self._collect_import(clone, instance=component)
                else:
                    self.collect(clone)
                class_name = self._class_map.get(clone)
                if class_name is None:
                    return
                self._import_classes[key] = class_name

            self._class_map[element] = class_name
        finally:
            self._guard.leave(instance, reference)
