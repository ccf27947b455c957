"""Recursive expansion of custom elements."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from markupsafe import Markup

from pyenhance.engine.exceptions import MalformedMarkupError, RenderDepthExceededError, RenderError
from pyenhance.engine.markup import (
    Comment,
    Element,
    Node,
    Text,
    parse_fragment,
    serialize,
    text_content,
)
from pyenhance.engine.registry import ComponentDefinition, ComponentRegistry
from pyenhance.engine.scoping import scope_css
from pyenhance.engine.template import RenderContext, StateView, TemplateComposer

MARKER_ATTRIBUTE = "enhanced"
MARKER_VALUE = "✨"

# Attributes owned by the engine and its integrations, never shown to render definitions
RESERVED_ATTRIBUTES = frozenset({MARKER_ATTRIBUTE, "enhance-ssr"})

DEFAULT_MAX_DEPTH = 100


@dataclass(frozen=True)
class StyleFragment:
    """CSS lifted out of a component's output, still unscoped."""
    raw_css: str
    host_tag: str

    def scoped(self) -> str:
        return scope_css(self.raw_css, self.host_tag)


@dataclass
class Expansion:
    """Result of expanding a tree."""
    nodes: List[Node] = field(default_factory=list)
    fragments: List[StyleFragment] = field(default_factory=list)

    @property
    def styles(self) -> List[str]:
        return [fragment.scoped() for fragment in self.fragments]


def filter_attributes(attributes: Dict[str, str]) -> Dict[str, str]:
    return {k: v for k, v in attributes.items() if k not in RESERVED_ATTRIBUTES}


def is_enhanced(element: Element) -> bool:
    return MARKER_ATTRIBUTE in element.attributes


def project_slot(nodes: Sequence[Node], content: Sequence[Node]) -> List[Node]:
    """Replace the first unnamed <slot> in nodes with content.

    An empty content list keeps the slot's fallback children. Named slots are
    left as they are.
    """
    projected = False

    def visit(siblings: Sequence[Node]) -> List[Node]:
        nonlocal projected
        result: List[Node] = []
        for node in siblings:
            if not isinstance(node, Element):
                result.append(node)
                continue
            if not projected and node.tag == "slot" and "name" not in node.attributes:
                projected = True
                result.extend(content if content else node.children)
                continue
            result.append(Element(node.tag, dict(node.attributes), visit(node.children)))
        return result

    return visit(nodes)


class ExpansionEngine:
    """Walks a markup tree and expands every registered custom element.

    Traversal is depth-first and pre-order. A registered element's original
    children become its slot: they are serialized for the render definition,
    projected into the returned markup's <slot>, and the projected subtree is
    then walked again one level deeper. Top-level <style> blocks in returned
    markup are lifted out as StyleFragments, one per block, in output order.

    The engine keeps no per-call state, so one instance can serve concurrent
    render sessions.
    """

    def __init__(
        self,
        registry: ComponentRegistry,
        max_depth: int = DEFAULT_MAX_DEPTH,
        propagate_state: bool = False,
        composer: Optional[TemplateComposer] = None,
    ):
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.registry = registry
        self.max_depth = max_depth
        self.propagate_state = propagate_state
        self.composer = composer or TemplateComposer()

    def expand(self, nodes: Sequence[Node], initial_state: Any = None) -> Expansion:
        fragments: List[StyleFragment] = []
        expanded = self._expand_nodes(nodes, initial_state, 0, fragments)
        return Expansion(nodes=expanded, fragments=fragments)

    def _expand_nodes(
        self, nodes: Sequence[Node], state: Any, depth: int, fragments: List[StyleFragment]
    ) -> List[Node]:
        return [self._expand_node(node, state, depth, fragments) for node in nodes]

    def _expand_node(
        self, node: Node, state: Any, depth: int, fragments: List[StyleFragment]
    ) -> Node:
        if isinstance(node, Text):
            return Text(node.content)
        if isinstance(node, Comment):
            return Comment(node.content)

        definition = None if is_enhanced(node) else self.registry.lookup(node.tag)
        if definition is None:
            # Standard tags, unknown custom tags and already expanded elements pass through
            children = self._expand_nodes(node.children, state, depth, fragments)
            return Element(node.tag, dict(node.attributes), children)

        return self._render(definition, node, state, depth, fragments)

    def _render(
        self,
        definition: ComponentDefinition,
        element: Element,
        state: Any,
        depth: int,
        fragments: List[StyleFragment],
    ) -> Element:
        tag = definition.tag_name
        if depth >= self.max_depth:
            raise RenderDepthExceededError(tag, depth)

        attributes = filter_attributes(element.attributes)
        context = RenderContext(
            html=self.composer,
            state=StateView(store=state),
            attributes=attributes,
            slot=Markup(serialize(element.children)),
        )

        try:
            output = definition.render(context)
        except Exception as e:
            raise RenderError(tag, e) from e
        if not isinstance(output, str):
            raise RenderError(
                tag, TypeError(f"render returned {type(output).__name__}, expected str")
            )

        try:
            rendered = parse_fragment(output)
        except MalformedMarkupError as e:
            raise RenderError(tag, e) from e

        rendered = self._extract_styles(rendered, tag, fragments)
        rendered = project_slot(rendered, element.children)

        nested_state = state if self.propagate_state else None
        children = self._expand_nodes(rendered, nested_state, depth + 1, fragments)

        attributes[MARKER_ATTRIBUTE] = MARKER_VALUE
        return Element(element.tag, attributes, children)

    def _extract_styles(
        self, nodes: List[Node], tag: str, fragments: List[StyleFragment]
    ) -> List[Node]:
        remaining: List[Node] = []
        for node in nodes:
            if isinstance(node, Element) and node.tag == "style":
                css = text_content(node.children)
                if css.strip():
                    fragments.append(StyleFragment(raw_css=css, host_tag=tag))
                continue
            remaining.append(node)
        return remaining
