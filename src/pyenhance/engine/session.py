"""Render session: markup in, expanded document/body/styles out."""
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from pyenhance.engine.expansion import (
    DEFAULT_MAX_DEPTH,
    MARKER_ATTRIBUTE,
    MARKER_VALUE,
    ExpansionEngine,
)
from pyenhance.engine.markup import (
    Element,
    Node,
    Text,
    looks_like_document,
    parse_document,
    parse_fragment,
    serialize,
)
from pyenhance.engine.registry import ComponentRegistry
from pyenhance.engine.styles import join_distinct, render_style_block
from pyenhance.engine.template import TemplateComposer

DOCTYPE = "<!DOCTYPE html>"


@dataclass(frozen=True)
class EnhanceInput:
    """A render request: markup plus the state handed to top-level components."""
    markup: str
    initial_state: Any = None


@dataclass(frozen=True)
class RenderResult:
    document: str
    body: str
    styles: str


class Renderer:
    """Shared entry point for rendering markup with registered components."""

    def __init__(
        self,
        registry: ComponentRegistry,
        max_depth: int = DEFAULT_MAX_DEPTH,
        propagate_state: bool = False,
        composer: Optional[TemplateComposer] = None,
    ):
        self.registry = registry
        self.engine = ExpansionEngine(
            registry,
            max_depth=max_depth,
            propagate_state=propagate_state,
            composer=composer,
        )

    def process(self, markup: str, initial_state: Any = None) -> RenderResult:
        """Expand every registered custom element in markup.

        Fragments come back as-is in `body` and wrapped in a minimal page in
        `document`. Full documents (starting with a doctype or <html>) keep
        their structure; `body` is then the inner markup of <body> and the
        style block is appended to <head>.
        """
        if isinstance(markup, str) and looks_like_document(markup):
            return self._process_document(markup, initial_state)

        expansion = self.engine.expand(parse_fragment(markup), initial_state)
        styles = join_distinct(expansion.styles)
        body = serialize(expansion.nodes)
        document = (
            f"{DOCTYPE}<html><head>{render_style_block([styles])}</head>"
            f"<body>{body}</body></html>"
        )
        return RenderResult(document=document, body=body, styles=styles)

    def process_input(self, enhance_input: EnhanceInput) -> RenderResult:
        return self.process(enhance_input.markup, enhance_input.initial_state)

    def process_many(self, items: Iterable[Tuple[str, Any]]) -> List[RenderResult]:
        return [self.process(markup, state) for markup, state in items]

    def _process_document(self, markup: str, initial_state: Any) -> RenderResult:
        root = parse_document(markup)
        # <html> is never a component; expand its children and keep the root
        expansion = self.engine.expand(root.children, initial_state)
        expanded = Element(root.tag, dict(root.attributes), expansion.nodes)
        styles = join_distinct(expansion.styles)

        body_element = _child(expanded, "body")
        body_nodes: List[Node] = body_element.children if body_element else expanded.children
        body = serialize(body_nodes)

        if styles:
            head = _child(expanded, "head")
            if head is None:
                head = Element("head")
                expanded.children.insert(0, head)
            head.children.append(
                Element("style", {MARKER_ATTRIBUTE: MARKER_VALUE}, [Text(f"\n{styles}\n")])
            )

        document = DOCTYPE + serialize([expanded])
        return RenderResult(document=document, body=body, styles=styles)


def _child(element: Element, tag: str) -> Optional[Element]:
    for child in element.children:
        if isinstance(child, Element) and child.tag == tag:
            return child
    return None
