"""Tests for the HTML rendering pass."""

import io

import pytest

from pagestage.core.css import ClassMap
from pagestage.core.element import Element
from pagestage.core.html import HTMLRenderer
from pagestage.core.preview import PreviewElementMap
from pagestage.core.resolver import ComponentNotFoundError, ComponentResolver, RequestContext

from tests.conftest import SequentialIds


def _render(
    elements: list[Element],
    components: dict[str, Element] | None = None,
    *,
    class_map: ClassMap | None = None,
    preview: PreviewElementMap | None = None,
    nonce: str | None = None,
) -> str:
    sink = io.StringIO()
    resolver = ComponentResolver(
        components if components is not None else {},
        RequestContext(domain="example.com"),
    )
    renderer = HTMLRenderer(
        resolver,
        sink,
        class_map if class_map is not None else {},
        ids=SequentialIds("pid"),
        preview=preview,
        nonce=nonce,
    )
    for element in elements:
        renderer.render(element)
    return sink.getvalue()


class TestRenderTag:
    """Tests for plain element rendering."""

    def test__nested_elements__render_in_order(self) -> None:
        root = Element.from_dict(
            {
                "type": "ul",
                "elements": [{"type": "li", "text": "One"}, {"type": "li", "text": "Two"}],
            }
        )

        assert _render([root]) == "<ul><li>One</li><li>Two</li></ul>"

    def test__attributes__are_escaped_in_order(self) -> None:
        element = Element(type="a", attributes={"href": "/x?a=1&b=2", "title": 'say "hi"'})

        html = _render([element])

        assert html == '<a href="/x?a=1&amp;b=2" title="say &quot;hi&quot;"></a>'

    def test__text__is_written_verbatim(self) -> None:
        """Authors may embed markup in text."""
        assert _render([Element(type="p", text="<b>bold</b>")]) == "<p><b>bold</b></p>"

    def test__generated_and_author_class__are_merged(self) -> None:
        element = Element(type="div", attributes={"class": "card", "id": "main"})

        html = _render([element], class_map={element: "div_id1"})

        assert html == '<div id="main" class="div_id1 card"></div>'

    def test__author_class_only__is_kept(self) -> None:
        element = Element(type="div", attributes={"class": "card"})

        assert _render([element]) == '<div class="card"></div>'

    @pytest.mark.parametrize("tag", ["br", "img", "input", "meta", "link", "hr"])
    def test__self_closing_tag__has_no_children_or_closing_tag(self, tag: str) -> None:
        element = Element(type=tag, text="ignored", elements=[Element(type="p")])

        assert _render([element]) == f"<{tag} />"

    @pytest.mark.parametrize("tag", ["script", "style"])
    def test__script_and_style__carry_nonce(self, tag: str) -> None:
        html = _render([Element(type=tag)], nonce="abc123")

        assert html == f'<{tag} nonce="abc123"></{tag}>'

    def test__other_tags__have_no_nonce(self) -> None:
        assert _render([Element(type="div")], nonce="abc123") == "<div></div>"


class TestRenderImport:
    """Tests for import rendering."""

    @pytest.fixture
    def components(self) -> dict[str, Element]:
        return {
            "button": Element(
                type="button",
                attributes={"type": "button", "class": "btn"},
                text="Click",
                elements=[Element(type="span", text="!")],
            )
        }

    def test__import__renders_component(self, components: dict[str, Element]) -> None:
        html = _render([Element(import_="button")], components)

        assert html == '<button type="button" class="btn">Click<span>!</span></button>'

    def test__importer_overlays__win_on_clone(self, components: dict[str, Element]) -> None:
        """Attributes and non-empty text of the importer replace the component's."""
        importer = Element(import_="button", attributes={"type": "submit"}, text="Send")

        html = _render([importer], components, class_map={importer: "button_id1"})

        assert html == (
            '<button type="submit" class="button_id1 btn">Send<span>!</span></button>'
        )

    def test__import__leaves_component_untouched(self, components: dict[str, Element]) -> None:
        """Overlays never reach the shared definition."""
        importer = Element(import_="button", attributes={"type": "submit"}, text="Send")

        _render([importer], components)

        assert components["button"].attributes == {"type": "button", "class": "btn"}
        assert components["button"].text == "Click"

    def test__sibling_imports__render_independently(
        self, components: dict[str, Element]
    ) -> None:
        first = Element(import_="button", text="One")
        second = Element(import_="button", text="Two")

        html = _render([first, second], components)

        assert ">One<" in html
        assert ">Two<" in html
        assert html.count("<button") == 2

    def test__missing_component__raises(self) -> None:
        with pytest.raises(ComponentNotFoundError):
            _render([Element(import_="missing")])

    def test__private_import__is_removed_after_use(
        self, components: dict[str, Element]
    ) -> None:
        """A later reference to a private component fails to resolve."""
        first = Element(import_="button", private=True)

        html = _render([first], components)

        assert "<button" in html
        assert "button" not in components

    def test__private_then_public_reference__fails_in_same_render(self) -> None:
        components = {"secret": Element(type="span", text="hidden")}

        with pytest.raises(ComponentNotFoundError, match="secret"):
            _render(
                [Element(import_="secret", private=True), Element(import_="secret")],
                components,
            )

    def test__self_import__renders_empty_at_cycle_point(self) -> None:
        """Recursion stops at the cycle; a sibling import still renders fully."""
        components = {
            "loop": Element.from_dict({"type": "div", "elements": [{"import": "loop"}]}),
            "leaf": Element(type="p", text="leaf"),
        }

        html = _render(
            [Element(import_="loop"), Element(import_="loop"), Element(import_="leaf")],
            components,
        )

        assert html == "<div><div></div></div><div><div></div></div><p>leaf</p>"

    def test__mutual_aliases__render_nothing(self) -> None:
        components = {"a": Element(import_="b"), "b": Element(import_="a")}

        assert _render([Element(import_="a")], components) == ""

    def test__alias__renders_target_with_overlays(self) -> None:
        components = {
            "base": Element(type="button", text="Base"),
            "primary": Element(import_="base", attributes={"class": "primary"}),
        }

        html = _render([Element(import_="primary", text="Go")], components)

        assert html == '<button class="primary">Go</button>'


class TestRenderPreview:
    """Tests for pid instrumentation in preview mode."""

    def test__pid__reuses_free_class_name(self) -> None:
        """An element's class becomes its pid when no other element holds it."""
        element = Element(type="div")
        preview = PreviewElementMap()

        html = _render([element], class_map={element: "div_id1"}, preview=preview)

        assert html == '<div pid="div_id1" class="div_id1"></div>'
        assert element.pid == "div_id1"
        assert preview.get("div_id1") is element

    def test__pid__is_fresh_when_class_is_taken(self) -> None:
        """Elements sharing a class get distinct pids."""
        first, second = Element(type="p"), Element(type="p")
        class_map = {first: "p_id1", second: "p_id1"}
        preview = PreviewElementMap()

        _render([first, second], class_map=class_map, preview=preview)

        assert first.pid == "p_id1"
        assert second.pid == "pid1"
        assert len(preview) == 2

    def test__element_without_class__gets_generated_pid(self) -> None:
        element = Element(type="span")
        preview = PreviewElementMap()

        html = _render([element], preview=preview)

        assert html == '<span pid="pid1"></span>'

    def test__existing_pid__is_kept(self) -> None:
        element = Element(type="p", pid="fixed")
        preview = PreviewElementMap()

        html = _render([element], class_map={element: "p_id1"}, preview=preview)

        assert html == '<p pid="fixed" class="p_id1"></p>'
        assert preview.get("fixed") is element

    def test__import__registers_clone_with_importer_pid(self) -> None:
        """The map points at the rendered clone, never the component."""
        component = Element(type="button", text="Click")
        importer = Element(import_="button")
        preview = PreviewElementMap()

        html = _render(
            [importer],
            {"button": component},
            class_map={importer: "button_id1"},
            preview=preview,
        )

        assert html == '<button pid="button_id1" class="button_id1">Click</button>'
        assert importer.pid == "button_id1"
        rendered = preview.get("button_id1")
        assert rendered is not component
        assert rendered is not importer
        assert rendered is not None and rendered.text == "Click"
        assert component.pid == ""

    def test__every_emitted_element__is_registered(self) -> None:
        root = Element.from_dict(
            {"type": "div", "elements": [{"type": "p"}, {"type": "br"}]}
        )
        preview = PreviewElementMap()

        _render([root], preview=preview)

        registered = {id(preview.get(pid)) for pid in preview.pids()}
        assert registered == {id(root), id(root.elements[0]), id(root.elements[1])}
