"""Selector-level CSS scoping.

Rewrites a stylesheet fragment so every rule only applies inside a host
element::

    >>> print(scope_css("h1{color:red;}", "my-header"))
    my-header h1 {
      color: red;
    }

This is a tokenizer for the subset of CSS that component styles use (plain
rules, selector lists and nesting at-rules), not a conforming CSS parser.
"""
import re
from dataclasses import dataclass, field
from typing import List, Union

INDENT = "  "

# At-rules whose block holds ordinary rules that should be scoped too
NESTING_AT_RULES = frozenset({"media", "supports", "container", "layer", "document"})

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_HOST_CONTEXT_RE = re.compile(r":host-context\(([^)]*)\)")
_HOST_RE = re.compile(r":host(?![\w-])(?:\(([^)]*)\))?")


@dataclass
class Rule:
    selectors: List[str]
    declarations: List[str]


@dataclass
class AtRule:
    prelude: str  # "@media (max-width: 600px)"
    children: List[Union["Rule", "AtRule"]] = field(default_factory=list)
    declarations: List[str] = field(default_factory=list)
    has_block: bool = True


Block = Union[Rule, AtRule]


def scope_css(raw_css: str, host_tag: str) -> str:
    """Prefix every selector in raw_css with host_tag."""
    blocks = parse_css(raw_css)
    return "\n\n".join(_format_block(block, host_tag, "") for block in blocks)


def scope_selector(selector: str, host_tag: str) -> str:
    selector = selector.strip()
    if not selector or not host_tag:
        return selector

    # :host-context(.dark) h1 -> .dark my-header h1
    context = _HOST_CONTEXT_RE.search(selector)
    if context:
        inner = selector[:context.start()] + host_tag + selector[context.end():]
        return _normalize_space(f"{context.group(1)} {scope_selector(inner, host_tag)}")

    if _HOST_RE.search(selector):
        return _HOST_RE.sub(lambda m: host_tag + (m.group(1) or "").strip(), selector)

    if _already_scoped(selector, host_tag):
        return selector
    return f"{host_tag} {selector}"


def _already_scoped(selector: str, host_tag: str) -> bool:
    """True if host_tag is one of the selector's compound selectors.

    `my-header-title` is a different element; `my-header.x`, `my-header > p`
    and `.dark my-header p` already match inside the host.
    """
    pattern = r"(?:^|[\s>+~])" + re.escape(host_tag) + r"(?![\w-])"
    return re.search(pattern, selector) is not None


# --- formatting ---

def _format_block(block: Block, host_tag: str, indent: str) -> str:
    if isinstance(block, Rule):
        selectors = ", ".join(scope_selector(s, host_tag) for s in block.selectors)
        return _format_rule(selectors, block.declarations, indent)

    if not block.has_block:
        return f"{indent}{block.prelude};"

    name = _at_rule_name(block.prelude)
    if name in NESTING_AT_RULES:
        inner = "\n\n".join(
            _format_block(child, host_tag, indent + INDENT) for child in block.children
        )
        return f"{indent}{block.prelude} {{\n{inner}\n{indent}}}"

    # @font-face, @keyframes, @page ... are global by nature
    if block.children:
        inner = "\n\n".join(_format_unscoped(child, indent + INDENT) for child in block.children)
        return f"{indent}{block.prelude} {{\n{inner}\n{indent}}}"
    return _format_rule(block.prelude, block.declarations, indent)


def _format_unscoped(block: Block, indent: str) -> str:
    if isinstance(block, Rule):
        return _format_rule(", ".join(block.selectors), block.declarations, indent)
    return _format_block(block, "", indent)


def _format_rule(selector: str, declarations: List[str], indent: str) -> str:
    lines = [f"{indent}{selector} {{"]
    for declaration in declarations:
        lines.append(f"{indent}{INDENT}{declaration};")
    lines.append(f"{indent}}}")
    return "\n".join(lines)


def _at_rule_name(prelude: str) -> str:
    match = re.match(r"@(-[a-z]+-)?([a-zA-Z-]+)", prelude)
    return match.group(2).lower() if match else ""


# --- parsing ---

def parse_css(raw_css: str) -> List[Block]:
    """Split a stylesheet into rules and at-rules."""
    source = _COMMENT_RE.sub("", raw_css)
    blocks, _ = _parse_blocks(source, 0)
    return blocks


def _parse_blocks(source: str, pos: int) -> "tuple[List[Block], int]":
    blocks: List[Block] = []
    length = len(source)

    while pos < length:
        stop = _scan(source, pos, "{;}")
        prelude = source[pos:stop].strip()

        if stop >= length:
            if prelude:
                # Dangling text without a block, e.g. a declaration list
                blocks.append(AtRule(prelude=prelude.rstrip(";"), has_block=False))
            return blocks, length

        char = source[stop]
        if char == "}":
            return blocks, stop + 1

        if char == ";":
            if prelude:
                blocks.append(AtRule(prelude=prelude, has_block=False))
            pos = stop + 1
            continue

        # char == "{"
        if prelude.startswith("@") and _has_nested_rules(source, stop + 1):
            children, pos = _parse_blocks(source, stop + 1)
            blocks.append(AtRule(prelude=_normalize_space(prelude), children=children))
            continue

        end = _scan(source, stop + 1, "}")
        declarations = _split_declarations(source[stop + 1:end])
        if prelude.startswith("@"):
            blocks.append(AtRule(prelude=_normalize_space(prelude), declarations=declarations))
        elif prelude:
            blocks.append(Rule(selectors=_split_selectors(prelude), declarations=declarations))
        pos = end + 1

    return blocks, pos


def _has_nested_rules(source: str, pos: int) -> bool:
    """True if the block starting at pos opens another block before it closes."""
    stop = _scan(source, pos, "{}")
    return stop < len(source) and source[stop] == "{"


def _scan(source: str, pos: int, stops: str) -> int:
    """Index of the next char in stops, ignoring quoted strings and parentheses."""
    depth = 0
    quote = ""
    length = len(source)
    while pos < length:
        char = source[pos]
        if quote:
            if char == "\\":
                pos += 1
            elif char == quote:
                quote = ""
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif depth == 0 and char in stops:
            return pos
        pos += 1
    return length


def _split_top_level(source: str, separator: str) -> List[str]:
    parts = []
    pos = 0
    while pos <= len(source):
        stop = _scan(source, pos, separator)
        parts.append(source[pos:stop])
        pos = stop + 1
    return parts


def _split_selectors(prelude: str) -> List[str]:
    return [_normalize_space(s) for s in _split_top_level(prelude, ",") if s.strip()]


def _split_declarations(body: str) -> List[str]:
    declarations = []
    for part in _split_top_level(body, ";"):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition(":")
        if not sep:
            declarations.append(part)
            continue
        declarations.append(f"{name.strip()}: {value.strip()}")
    return declarations


def _normalize_space(text: str) -> str:
    return re.sub(r"\s+", " ", text.strip())
