"""Component registry: tag name -> render definition."""
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Mapping, Optional

from pyenhance.engine.exceptions import DuplicateComponentError

if TYPE_CHECKING:
    from pyenhance.engine.template import RenderContext

RenderFn = Callable[["RenderContext"], str]


def is_custom_tag(tag: str) -> bool:
    """Custom elements are the ones with a hyphen in their name."""
    return isinstance(tag, str) and "-" in tag


@dataclass(frozen=True)
class ComponentDefinition:
    """A render definition bound to its tag."""
    tag_name: str
    render: RenderFn

    def __str__(self) -> str:
        return f"ComponentDefinition(tag={self.tag_name})"


class ComponentRegistry:
    """Maps custom tag names to render definitions.

    Registration is expected at startup and fails on duplicates; lookups are
    plain dict reads and safe to share between concurrent render sessions.
    """

    def __init__(self):
        self._components: Dict[str, ComponentDefinition] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_mapping(cls, components: Mapping[str, RenderFn]) -> "ComponentRegistry":
        registry = cls()
        for tag, render in components.items():
            registry.register(tag, render)
        return registry

    def register(self, tag_name: str, render: RenderFn) -> ComponentDefinition:
        """Register a render definition for tag_name."""
        if not is_custom_tag(tag_name):
            raise ValueError(
                f"'{tag_name}' is not a valid custom element name (it must contain a hyphen)"
            )
        if not callable(render):
            raise TypeError(f"Render definition for <{tag_name}> must be callable")

        key = tag_name.lower()
        definition = ComponentDefinition(tag_name=key, render=render)
        with self._lock:
            if key in self._components:
                raise DuplicateComponentError(key)
            self._components[key] = definition
        return definition

    def lookup(self, tag_name: str) -> Optional[ComponentDefinition]:
        if not is_custom_tag(tag_name):
            return None
        return self._components.get(tag_name.lower())

    def tags(self) -> List[str]:
        return sorted(self._components)

    def __contains__(self, tag_name: object) -> bool:
        return isinstance(tag_name, str) and self.lookup(tag_name) is not None

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[str]:
        return iter(self.tags())
