from __future__ import annotations

from dataclasses import dataclass, field
from html import escape


@dataclass(eq=False)
class Element:
    """A rendered node. `html` is the node's inner markup."""

    tag: str = "li"
    html: str = ""
    classes: list[str] = field(default_factory=list)
    element_id: str | None = None
    parent: Container | None = field(default=None, repr=False)

    def add_class(self, name: str) -> None:
        if name not in self.classes:
            self.classes.append(name)

    def remove_class(self, name: str) -> None:
        if name in self.classes:
            self.classes.remove(name)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    @property
    def attached(self) -> bool:
        return self.parent is not None

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.detach(self)

    def outer_html(self) -> str:
        attrs = ""
        if self.element_id:
            attrs += f' id="{escape(self.element_id)}"'
        if self.classes:
            attrs += f' class="{escape(" ".join(self.classes))}"'
        return f"<{self.tag}{attrs}>{self.html}</{self.tag}>"


@dataclass(eq=False)
class Container:
    """Ordered list of child elements, e.g. the board's `<ul>`."""

    tag: str = "ul"
    element_id: str | None = None
    children: list[Element] = field(default_factory=list)

    def append(self, element: Element) -> Element:
        if element.parent is not None:
            element.parent.detach(element)
        element.parent = self
        self.children.append(element)
        return element

    def detach(self, element: Element) -> None:
        self.children = [child for child in self.children if child is not element]
        element.parent = None

    def empty(self) -> None:
        for child in list(self.children):
            self.detach(child)

    def __len__(self) -> int:
        return len(self.children)

    def outer_html(self) -> str:
        attrs = f' id="{escape(self.element_id)}"' if self.element_id else ""
        inner = "".join(child.outer_html() for child in self.children)
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"


@dataclass(eq=False)
class Document:
    """The board page: a list container plus a stats/header block."""

    title: str
    list_container: Container
    stats: Element
    note: Element = field(default_factory=lambda: Element(tag="p", element_id="funny-note"))
    debug: Container = field(default_factory=lambda: Container(element_id="debug"))

    def log_error(self, message: str) -> None:
        self.debug.append(Element(html=escape(message)))

    def to_html(self) -> str:
        return (
            "<!doctype html>\n"
            '<html lang="en"><head><meta charset="utf-8">'
            f"<title>{escape(self.title)}</title></head><body>"
            f"<h1>{escape(self.title)}</h1>"
            f"{self.note.outer_html()}"
            f"{self.list_container.outer_html()}"
            f"{self.stats.outer_html()}"
            f"{self.debug.outer_html()}"
            "</body></html>\n"
        )
