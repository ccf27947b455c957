"""Render context handed to component render definitions."""
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from jinja2 import Environment, Template
from markupsafe import Markup


class TemplateComposer:
    """The `html` helper: renders a Jinja2 template string with keyword values.

        html("<span>{{ name }}</span>", name=store["name"])

    Values are autoescaped; pass `Markup` (the slot already is) to insert raw
    markup. Compiled templates are cached per source string.
    """

    def __init__(self, environment: Optional[Environment] = None, cache_size: int = 256):
        self.environment = environment or Environment(autoescape=True)
        self._compile: Callable[[str], Template] = lru_cache(maxsize=cache_size)(
            self.environment.from_string
        )

    def __call__(self, source: str, /, **values: Any) -> str:
        return self._compile(source).render(**values)

    @staticmethod
    def safe(markup: str) -> Markup:
        """Mark a string as trusted markup."""
        return Markup(markup)


@dataclass(frozen=True)
class StateView:
    """What a render definition sees of the application state."""
    store: Any = None


@dataclass(frozen=True)
class RenderContext:
    """Arguments of one render definition invocation."""
    html: TemplateComposer
    state: StateView
    attributes: Mapping[str, str] = field(default_factory=dict)
    slot: Markup = field(default_factory=Markup)

    def __post_init__(self) -> None:
        # Freeze the attribute mapping so contexts can't leak writes between invocations
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        if not isinstance(self.slot, Markup):
            object.__setattr__(self, "slot", Markup(self.slot))
