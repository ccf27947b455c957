"""Minimal markup tree: parsing with lxml, serialization by hand."""
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Union

from lxml import etree, html

from pyenhance.engine.exceptions import MalformedMarkupError

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# Children of these are emitted without escaping
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

# Written without a value when present: <input disabled>
BOOLEAN_ATTRIBUTES = frozenset({
    "allowfullscreen", "async", "autofocus", "autoplay", "checked", "controls",
    "default", "defer", "disabled", "formnovalidate", "hidden", "inert", "ismap",
    "itemscope", "loop", "multiple", "muted", "nomodule", "novalidate", "open",
    "playsinline", "readonly", "required", "reversed", "selected",
})

_FULL_DOCUMENT_RE = re.compile(r"^\s*<(?:!doctype|html)", re.IGNORECASE)


@dataclass
class Text:
    """A run of character data."""
    content: str

    def __str__(self) -> str:
        return f"Text({self.content[:30]!r})"


@dataclass
class Comment:
    content: str


@dataclass
class Element:
    """An element with ordered attributes and children."""
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Element(tag={self.tag}, attrs={len(self.attributes)}, children={len(self.children)})"

    def find(self, tag: str) -> Optional["Element"]:
        """First descendant element with the given tag (document order)."""
        return find_first(self.children, lambda el: el.tag == tag)


Node = Union[Element, Text, Comment]


def looks_like_document(markup: str) -> bool:
    return bool(_FULL_DOCUMENT_RE.match(markup))


def parse_fragment(markup: str) -> List[Node]:
    """Parse an HTML fragment into a list of top-level nodes."""
    if not isinstance(markup, str):
        raise MalformedMarkupError(f"Expected markup as str, got {type(markup).__name__}")
    if not markup:
        return []
    if not markup.strip():
        return [Text(markup)]

    # Wrap so lxml keeps leading text and does not hoist <style> into <head>
    body = _parse_root(f"<html><body>{markup}</body></html>", markup).find("body")
    if body is None:
        raise MalformedMarkupError("Could not locate fragment body", markup)
    return _map_children(body)


def parse_document(markup: str) -> Element:
    """Parse a full HTML document; the returned root is the <html> element."""
    if not isinstance(markup, str):
        raise MalformedMarkupError(f"Expected markup as str, got {type(markup).__name__}")
    if not markup.strip():
        raise MalformedMarkupError("Document is empty")
    root = _parse_root(markup, markup)
    return _map_element(root)


def _parse_root(source: str, original: str) -> html.HtmlElement:
    try:
        root = html.document_fromstring(source)
    except (etree.ParserError, ValueError) as e:
        raise MalformedMarkupError(str(e) or "Could not parse markup", original) from e
    if root is None or not isinstance(root.tag, str):
        raise MalformedMarkupError("Could not parse markup", original)
    return root


def _map_element(element: html.HtmlElement) -> Element:
    attributes = {str(k): _attribute_value(str(k), v) for k, v in element.attrib.items()}
    return Element(tag=element.tag.lower(), attributes=attributes, children=_map_children(element))


def _attribute_value(name: str, value: Optional[str]) -> str:
    # lxml fills in bare boolean attributes as disabled="disabled"
    if value is None or (name in BOOLEAN_ATTRIBUTES and value == name):
        return ""
    return str(value)


def _map_children(element: html.HtmlElement) -> List[Node]:
    nodes: List[Node] = []
    if element.text:
        nodes.append(Text(element.text))
    for child in element:
        if child.tag is etree.Comment:
            nodes.append(Comment(child.text or ""))
        # Processing instructions have non-string tags too; only their tail survives
        elif isinstance(child.tag, str):
            nodes.append(_map_element(child))
        if child.tail:
            nodes.append(Text(child.tail))
    return _merge_text(nodes)


def _merge_text(nodes: List[Node]) -> List[Node]:
    merged: List[Node] = []
    for node in nodes:
        if isinstance(node, Text) and merged and isinstance(merged[-1], Text):
            merged[-1] = Text(merged[-1].content + node.content)
        else:
            merged.append(node)
    return merged


def escape_text(value: str) -> str:
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def escape_attribute(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;")


def render_attributes(attributes: Dict[str, str]) -> str:
    parts = []
    for name, value in attributes.items():
        if not value and name in BOOLEAN_ATTRIBUTES:
            parts.append(f" {name}")
        else:
            parts.append(f' {name}="{escape_attribute(value)}"')
    return "".join(parts)


def serialize(nodes: Sequence[Node], raw_text: bool = False) -> str:
    """Serialize nodes back to markup."""
    parts: List[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.content if raw_text else escape_text(node.content))
            continue
        if isinstance(node, Comment):
            parts.append(f"<!--{node.content}-->")
            continue

        parts.append(f"<{node.tag}{render_attributes(node.attributes)}>")
        if node.tag in VOID_ELEMENTS:
            continue
        parts.append(serialize(node.children, raw_text=node.tag in RAW_TEXT_ELEMENTS))
        parts.append(f"</{node.tag}>")
    return "".join(parts)


def text_content(nodes: Sequence[Node]) -> str:
    return "".join(
        node.content if isinstance(node, Text) else text_content(node.children)
        for node in nodes
        if not isinstance(node, Comment)
    )


def iter_elements(nodes: Sequence[Node]) -> Iterator[Element]:
    """Yield every element in document order."""
    for node in nodes:
        if isinstance(node, Element):
            yield node
            yield from iter_elements(node.children)


def find_first(nodes: Sequence[Node], predicate: Callable[[Element], bool]) -> Optional[Element]:
    for element in iter_elements(nodes):
        if predicate(element):
            return element
    return None
