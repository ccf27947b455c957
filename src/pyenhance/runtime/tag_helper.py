"""Attribute-driven post-processing of rendered pages."""
import re
from typing import Any, Iterator, List, Optional, Tuple

from pyenhance.engine.markup import VOID_ELEMENTS
from pyenhance.engine.session import Renderer
from pyenhance.engine.styles import RequestStyleAggregator
from pyenhance.runtime.context import add_result

ENHANCE_ATTRIBUTE = "enhance-ssr"

# Comments, raw-text elements (skipped whole) and start/end tags
_TOKEN_RE = re.compile(
    r"<!--.*?(?:-->|\Z)"
    r"|<(?P<raw>script|style|textarea|title)(?=[\s/>])[^>]*>.*?(?:</(?P=raw)\s*>|\Z)"
    r"|<(?P<close>/)?(?P<tag>[a-zA-Z][\w:.-]*)(?P<attrs>(?:\"[^\"]*\"|'[^']*'|[^'\">])*)>",
    re.DOTALL | re.IGNORECASE,
)
_ATTRIBUTE_RE = re.compile(r"\s*([^\s=/>\"']+)(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>\"']*))?")


class EnhanceTagHelper:
    """Server-renders the elements of a page marked with `enhance-ssr`.

        <my-header enhance-ssr class="big">Hello</my-header>

    Each marked element is rendered on its own and its markup in the page
    is replaced by the resulting body; its styles go to the request's
    aggregator. Everything outside marked elements is left byte for byte.
    """

    def __init__(self, renderer: Renderer, attribute: str = ENHANCE_ATTRIBUTE):
        self.renderer = renderer
        self.attribute = attribute

    def process(
        self,
        page_html: str,
        aggregator: Optional[RequestStyleAggregator] = None,
        initial_state: Any = None,
    ) -> str:
        if self.attribute not in page_html:
            return page_html

        parts = []
        pos = 0
        for start, end in self.marked_spans(page_html):
            result = self.renderer.process(self._unmark(page_html[start:end]), initial_state)
            add_result(result, aggregator)
            parts.append(page_html[pos:start])
            parts.append(result.body)
            pos = end
        parts.append(page_html[pos:])
        return "".join(parts)

    def marked_spans(self, page_html: str) -> Iterator[Tuple[int, int]]:
        """(start, end) offsets of the outermost marked elements."""
        tokens = _TOKEN_RE.finditer(page_html)
        for match in tokens:
            if match.group("tag") is None or match.group("close"):
                continue
            if self.attribute in _attribute_names(match.group("attrs")):
                # Shares the iterator, so elements nested in this one are skipped
                yield match.start(), _element_end(match, tokens, len(page_html))

    def _unmark(self, markup: str) -> str:
        """Drop the marker attribute from the element's start tag."""
        match = _TOKEN_RE.match(markup)
        kept = "".join(
            m.group(0) for m in _ATTRIBUTE_RE.finditer(match.group("attrs"))
            if m.group(1).lower() != self.attribute
        )
        return f"<{match.group('tag')}{kept}>" + markup[match.end():]


def _attribute_names(attrs: str) -> List[str]:
    return [m.group(1).lower() for m in _ATTRIBUTE_RE.finditer(attrs)]


def _element_end(start: re.Match, tokens: Iterator[re.Match], default: int) -> int:
    tag = start.group("tag").lower()
    if tag in VOID_ELEMENTS or start.group("attrs").rstrip().endswith("/"):
        return start.end()

    depth = 0
    for match in tokens:
        if (match.group("tag") or "").lower() != tag:
            continue
        if match.group("close"):
            if depth == 0:
                return match.end()
            depth -= 1
        elif not match.group("attrs").rstrip().endswith("/"):
            depth += 1
    # Unclosed: the element runs to the end of the page
    return default
