"""Preview instrumentation.

During a preview render every emitted element gets a ``pid`` and is
registered here, so the editor API can read or overwrite exactly the node
that was rendered. For imported components that node is the page-local
clone; the importing element is kept as its origin so edits can be written
back as local overrides and survive the next render.
"""

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field

from pagestage.core.element import Element
from pagestage.core.site import SiteData


class PreviewElementMap:
    """Map from preview identifier to the rendered element."""

    def __init__(self) -> None:
        self._elements: dict[str, Element] = {}
        self._origins: dict[str, Element] = {}

    def register(self, pid: str, element: Element, origin: Element | None = None) -> None:
        """Point a pid at a rendered element.

        Args:
            pid: Preview identifier
            element: Element that was rendered
            origin: Importing element when ``element`` is a component clone
        """
        self._elements[pid] = element
        if origin is not None:
            self._origins[pid] = origin
        else:
            self._origins.pop(pid, None)

    def get(self, pid: str) -> Element | None:
        return self._elements.get(pid)

    def pids(self) -> Iterator[str]:
        return iter(self._elements)

    def update(self, pid: str, replacement: Element) -> Element:
        """Overwrite a rendered element in place.

        Edits of an import clone are kept as overrides on the importing
        element, which carries attributes, style and text only. Changing the
        clone's type, children or reference is rejected.

        Args:
            pid: Preview identifier of the element
            replacement: New content for the element

        Returns:
            The updated element

        Raises:
            KeyError: If no element is registered under pid
            ValueError: If an import clone edit changes more than its overrides
        """
        element = self._elements[pid]
        origin = self._origins.get(pid)
        if origin is not None and not _same_structure(element, replacement):
            raise ValueError(
                "only attributes, style and text of an imported component can be edited"
            )

        element.overwrite(replacement)

        if origin is not None:
            # Clones are rebuilt every render; keep the edit on the importer
            origin.attributes = dict(replacement.attributes)
            origin.style = dict(replacement.style)
            origin.text = replacement.text

        return element

    def clear(self) -> None:
        self._elements.clear()
        self._origins.clear()

    def __contains__(self, pid: object) -> bool:
        return pid in self._elements

    def __len__(self) -> int:
        return len(self._elements)


def _same_structure(element: Element, replacement: Element) -> bool:
    return (
        element.type == replacement.type
        and element.import_ == replacement.import_
        and [child.to_dict() for child in element.elements]
        == [child.to_dict() for child in replacement.elements]
    )


@dataclass
class PreviewSession:
    """Live preview state for one user.

    Holds a private copy of the draft site, whose trees carry the pids
    assigned by earlier renders. Callers hold ``lock`` for each render or
    update since both mutate the tree.
    """

    site: SiteData
    elements: PreviewElementMap = field(default_factory=PreviewElementMap)
    lock: threading.Lock = field(default_factory=threading.Lock)
