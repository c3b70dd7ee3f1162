"""Tenant site data: named pages plus the component table they share."""

import json
from dataclasses import dataclass, field
from typing import Any

from pagestage.core.element import Element, elements_from_list

# Component name (or fetched reference) -> component definition
ComponentTable = dict[str, Element]


@dataclass
class Page:
    """A page with head and body element trees."""

    head: list[Element] = field(default_factory=list)
    body: list[Element] = field(default_factory=list)
    redirect_for_login: str = ""
    redirect_for_logout: str = ""

    @classmethod
    def from_dict(cls, data: object) -> "Page":
        """Build a page from decoded JSON.

        Raises:
            ValueError: If the data does not have the page shape
        """
        if not isinstance(data, dict):
            raise ValueError("page must be an object")

        return cls(
            head=_section_elements(data.get("head"), "head"),
            body=_section_elements(data.get("body"), "body"),
            redirect_for_login=_optional_string(data, "redirectForLogin"),
            redirect_for_logout=_optional_string(data, "redirectForLogout"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "head": {"elements": [e.to_dict() for e in self.head]},
            "body": {"elements": [e.to_dict() for e in self.body]},
        }
        if self.redirect_for_login:
            result["redirectForLogin"] = self.redirect_for_login
        if self.redirect_for_logout:
            result["redirectForLogout"] = self.redirect_for_logout
        return result

    def copy(self) -> "Page":
        return Page(
            head=[e.deep_copy() for e in self.head],
            body=[e.deep_copy() for e in self.body],
            redirect_for_login=self.redirect_for_login,
            redirect_for_logout=self.redirect_for_logout,
        )


@dataclass
class SiteData:
    """All pages and components of one tenant."""

    pages: dict[str, Page] = field(default_factory=dict)
    components: ComponentTable = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: object) -> "SiteData":
        """Build site data from decoded JSON.

        Args:
            data: Decoded JSON object with ``pages`` and ``components``

        Returns:
            SiteData instance

        Raises:
            ValueError: If the data does not have the site shape
        """
        if not isinstance(data, dict):
            raise ValueError("site data must be an object")

        pages_raw = data.get("pages") or {}
        if not isinstance(pages_raw, dict):
            raise ValueError("pages must be an object")

        components_raw = data.get("components") or {}
        if not isinstance(components_raw, dict):
            raise ValueError("components must be an object")

        return cls(
            pages={name: Page.from_dict(page) for name, page in pages_raw.items()},
            components={
                name: Element.from_dict(component)
                for name, component in components_raw.items()
            },
        )

    @classmethod
    def from_json(cls, text: str) -> "SiteData":
        """Parse site data from a JSON document.

        Raises:
            ValueError: If the text is not valid JSON or not site-shaped
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pages": {name: page.to_dict() for name, page in self.pages.items()},
            "components": {
                name: component.to_dict() for name, component in self.components.items()
            },
        }

    def copy(self) -> "SiteData":
        """Deep copy, so the copy's trees can be mutated independently."""
        return SiteData(
            pages={name: page.copy() for name, page in self.pages.items()},
            components={
                name: component.deep_copy() for name, component in self.components.items()
            },
        )

    def public_components(self) -> ComponentTable:
        """Components that may be exported, i.e. not marked private."""
        return {
            name: component
            for name, component in self.components.items()
            if not component.private
        }


def _section_elements(data: object, name: str) -> list[Element]:
    if data is None:
        return []
    if not isinstance(data, dict):
        raise ValueError(f"page.{name} must be an object")
    return elements_from_list(data.get("elements"), f"page.{name}.elements")


def _optional_string(data: dict[str, Any], key: str) -> str:
    value = data.get(key, "")
    if not isinstance(value, str):
        raise ValueError(f"page.{key} must be a string")
    return value
