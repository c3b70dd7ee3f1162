"""Page element tree model.

An Element is one node of a page: a tag type with attributes, inline style,
text, ordered children and an optional reference to a reusable component.
Elements compare and hash by identity so they can key per-render maps
(class names, cycle guards, preview identifiers) directly.
"""

import re
from dataclasses import dataclass, field
from typing import Any

# Attribute names may not contain characters HTML reserves for markup
_ATTRIBUTE_NAME_RE = re.compile(r"[^\s\"'>/=\x00-\x1f\x7f]+")

# Void elements: rendered without children or a closing tag
SELF_CLOSING_TAGS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)


@dataclass(eq=False)
class Element:
    """A node in a page tree."""

    type: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    style: dict[str, str] = field(default_factory=dict)
    text: str = ""
    elements: list["Element"] = field(default_factory=list)
    import_: str = ""
    private: bool = False
    pid: str = ""

    @property
    def is_import(self) -> bool:
        """Whether this element stands in for a reusable component."""
        return bool(self.import_)

    @classmethod
    def from_dict(cls, data: object) -> "Element":
        """Build an element tree from decoded JSON.

        Args:
            data: Decoded JSON object

        Returns:
            Element with all children converted recursively

        Raises:
            ValueError: If the data does not have the element shape
        """
        if not isinstance(data, dict):
            raise ValueError("element must be an object")

        element_type = data.get("type", "")
        if not isinstance(element_type, str):
            raise ValueError("element.type must be a string")

        children_raw = data.get("elements") or []
        if not isinstance(children_raw, list):
            raise ValueError("element.elements must be a list")

        import_ = data.get("import", "")
        if not isinstance(import_, str):
            raise ValueError("element.import must be a string")

        private = data.get("private", False)
        if not isinstance(private, bool):
            raise ValueError("element.private must be a boolean")

        return cls(
            type=element_type,
            attributes=_parse_attributes(data.get("attributes")),
            style=_parse_string_map(data.get("style"), "style"),
            text=_parse_string(data.get("text"), "text"),
            elements=[cls.from_dict(child) for child in children_raw],
            import_=import_,
            private=private,
            pid=_parse_string(data.get("pid"), "pid"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Empty fields are omitted; ``type`` is always present.
        """
        result: dict[str, Any] = {"type": self.type}
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        if self.elements:
            result["elements"] = [child.to_dict() for child in self.elements]
        if self.text:
            result["text"] = self.text
        if self.style:
            result["style"] = dict(self.style)
        if self.import_:
            result["import"] = self.import_
        if self.private:
            result["private"] = True
        if self.pid:
            result["pid"] = self.pid
        return result

    def clone(self) -> "Element":
        """Shallow clone.

        Attribute and style maps are copied so overlays on the clone never
        reach the original. Children are shared with the original.
        """
        return Element(
            type=self.type,
            attributes=dict(self.attributes),
            style=dict(self.style),
            text=self.text,
            elements=list(self.elements),
            import_=self.import_,
            private=self.private,
            pid=self.pid,
        )

    def overwrite(self, other: "Element") -> None:
        """Replace this element's content with another's, in place.

        The pid is kept so that open editor references stay valid.
        """
        self.type = other.type
        self.attributes = dict(other.attributes)
        self.style = dict(other.style)
        self.text = other.text
        self.elements = list(other.elements)
        self.import_ = other.import_
        self.private = other.private

    def deep_copy(self) -> "Element":
        """Copy the whole subtree, children included."""
        copied = self.clone()
        copied.elements = [child.deep_copy() for child in self.elements]
        return copied


def elements_from_list(data: object, field_name: str) -> list[Element]:
    """Convert a JSON list into elements.

    Args:
        data: Decoded JSON value (None is treated as empty)
        field_name: Name used in error messages

    Returns:
        List of elements

    Raises:
        ValueError: If data is not a list of element objects
    """
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"{field_name} must be a list")
    return [Element.from_dict(item) for item in data]


def _parse_string_map(data: object, field_name: str) -> dict[str, str]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"element.{field_name} must be an object")
    result: dict[str, str] = {}
    for key, value in data.items():
        if not isinstance(value, str):
            raise ValueError(f"element.{field_name}.{key} must be a string")
        result[key] = value
    return result


def _parse_string(data: object, field_name: str) -> str:
    if data is None:
        return ""
    if not isinstance(data, str):
        raise ValueError(f"element.{field_name} must be a string")
    return data


def _parse_attributes(data: object) -> dict[str, str]:
    attributes = _parse_string_map(data, "attributes")
    for name in attributes:
        if not _ATTRIBUTE_NAME_RE.fullmatch(name):
            raise ValueError(f"element.attributes has an invalid name: {name!r}")
    return attributes
