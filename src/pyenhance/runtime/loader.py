"""Component loader - compiles component source files into render definitions."""

import importlib.util
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from pyenhance.engine.registry import ComponentRegistry, RenderFn, is_custom_tag
from pyenhance.engine.template import RenderContext

logger = logging.getLogger(__name__)


class ComponentLoader:
    """Loads render definitions from a directory, one component per file.

    The tag name is the file name without its suffix:

    - ``my-header.html`` is a Jinja2 template rendered with ``html``,
      ``state``, ``store``, ``attrs`` and ``slot``.
    - ``my-header.py`` is a module exposing ``render(ctx)``.
    """

    SUFFIXES = (".html", ".py")

    def __init__(self, directory: Path | str, environment: Optional[Environment] = None):
        self.directory = Path(directory)
        self.environment = environment or Environment(
            loader=FileSystemLoader(str(self.directory)), autoescape=True
        )

    def discover(self) -> List[Tuple[str, Path]]:
        """(tag, path) pairs, sorted by path for a deterministic load order."""
        found: List[Tuple[str, Path]] = []
        if not self.directory.is_dir():
            logger.warning("Components directory %s does not exist", self.directory)
            return found

        for path in sorted(self.directory.rglob("*")):
            if not path.is_file() or path.suffix not in self.SUFFIXES:
                continue
            if path.name.startswith(("_", ".")):
                continue
            tag = path.stem.lower()
            if not is_custom_tag(tag):
                logger.warning("Skipping %s: '%s' is not a custom element name", path, tag)
                continue
            found.append((tag, path))
        return found

    def load(self, registry: Optional[ComponentRegistry] = None) -> ComponentRegistry:
        """Compile every component file and register it."""
        registry = registry if registry is not None else ComponentRegistry()
        for tag, path in self.discover():
            registry.register(tag, self.load_file(path))
            logger.debug("Registered <%s> from %s", tag, path)
        return registry

    def load_file(self, path: Path) -> RenderFn:
        if path.suffix == ".html":
            return self._load_template(path)
        if path.suffix == ".py":
            return self._load_module(path)
        raise ValueError(f"Unsupported component file {path}")

    def _load_template(self, path: Path) -> RenderFn:
        name = path.relative_to(self.directory).as_posix()
        template = self.environment.get_template(name)

        def render(ctx: RenderContext) -> str:
            return template.render(
                html=ctx.html,
                state=ctx.state,
                store=ctx.state.store,
                attrs=ctx.attributes,
                slot=ctx.slot,
            )

        render.__name__ = f"render_{path.stem.replace('-', '_')}"
        return render

    def _load_module(self, path: Path) -> RenderFn:
        module_name = f"pyenhance_component_{path.stem.replace('-', '_')}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ValueError(f"Cannot import component module {path}")

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        render = getattr(module, "render", None)
        if not callable(render):
            raise ValueError(f"No render(ctx) function found in {path}")
        return render


def load_components(directory: Path | str, registry: Optional[ComponentRegistry] = None) -> ComponentRegistry:
    """Helper: load a components directory into a (new) registry."""
    return ComponentLoader(directory).load(registry)
