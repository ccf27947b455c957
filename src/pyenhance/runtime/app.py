"""Main ASGI application."""
import logging
import re
import traceback
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from pyenhance.engine.exceptions import EnhanceError
from pyenhance.engine.expansion import DEFAULT_MAX_DEPTH
from pyenhance.engine.registry import ComponentRegistry
from pyenhance.engine.session import Renderer
from pyenhance.runtime.context import EnhanceMiddleware
from pyenhance.runtime.error_page import render_error_page
from pyenhance.runtime.loader import ComponentLoader
from pyenhance.runtime.templates import EnhanceTemplates

logger = logging.getLogger(__name__)

PAGE_SUFFIX = ".html"

StateProvider = Callable[[Request], Any]


def _discover_dir(name: str) -> Path:
    cwd = Path.cwd()
    for path in (cwd / name, cwd / "src" / name):
        if path.is_dir():
            return path
    # Default and let it warn later if missing
    return Path(name)


class EnhanceApp:
    """Serves Jinja2 pages with server-rendered custom elements.

    Pages are routed by file name: ``pages/index.html`` is ``/``,
    ``pages/blog/[slug].html`` is ``/blog/{slug}``. Files and directories
    starting with ``_`` or ``.`` are not routed (use them for layouts).
    """

    def __init__(
        self,
        components_dir: Optional[str] = None,
        pages_dir: Optional[str] = None,
        static_dir: Optional[str] = None,
        static_path: str = "/static",
        debug: bool = False,
        max_depth: int = DEFAULT_MAX_DEPTH,
        propagate_state: bool = False,
        registry: Optional[ComponentRegistry] = None,
        state_provider: Optional[StateProvider] = None,
    ):
        self.components_dir = Path(components_dir) if components_dir else _discover_dir("components")
        self.pages_dir = Path(pages_dir) if pages_dir else _discover_dir("pages")
        self.static_dir = Path(static_dir) if static_dir else None
        self.static_path = static_path
        self.debug = debug
        self.state_provider = state_provider

        if registry is None:
            registry = ComponentLoader(self.components_dir).load()
        self.registry = registry
        self.renderer = Renderer(registry, max_depth=max_depth, propagate_state=propagate_state)
        self.templates = EnhanceTemplates(self.pages_dir, self.renderer)

        # route path -> template name
        self.pages: Dict[str, str] = {}
        self._scan_directory(self.pages_dir)

        routes = [
            Route(path, self._page_endpoint(name), methods=["GET"], name=name)
            # Static paths before parameterised ones
            for path, name in sorted(self.pages.items(), key=lambda item: "{" in item[0])
        ]
        if self.static_dir:
            if not self.static_dir.exists():
                logger.warning("Configured static directory '%s' does not exist", self.static_dir)
            else:
                routes.append(
                    Mount(self.static_path, app=StaticFiles(directory=str(self.static_dir)), name="static")
                )

        self.app = Starlette(
            debug=False,
            routes=routes,
            middleware=[Middleware(EnhanceMiddleware)],
            exception_handlers={EnhanceError: self._handle_render_error},
        )
        self.app.state.enhance = self
        logger.info(
            "Loaded %d component(s) and %d page(s)", len(self.registry), len(self.pages)
        )

    def _scan_directory(self, dir_path: Path, url_prefix: str = "") -> None:
        """Recursively register page templates."""
        try:
            entries = sorted(dir_path.iterdir())
        except FileNotFoundError:
            logger.warning("Pages directory '%s' does not exist", dir_path)
            return

        for entry in entries:
            if entry.name.startswith(("_", ".")):
                continue

            if entry.is_dir():
                new_prefix = f"{url_prefix}/{_route_segment(entry.name)}"
                self._scan_directory(entry, new_prefix)
            elif entry.is_file() and entry.suffix == PAGE_SUFFIX:
                segment = "" if entry.stem == "index" else _route_segment(entry.stem)
                route_path = f"{url_prefix}/{segment}".replace("//", "/")
                if route_path != "/" and route_path.endswith("/"):
                    route_path = route_path.rstrip("/")
                name = entry.relative_to(self.pages_dir).as_posix()
                self.pages[route_path or "/"] = name

    def _page_endpoint(self, name: str) -> Callable[[Request], Any]:
        async def endpoint(request: Request) -> Response:
            state = self.state_provider(request) if self.state_provider else None
            context = {"params": dict(request.path_params), "query": dict(request.query_params)}
            return self.templates.TemplateResponse(request, name, context, initial_state=state)

        return endpoint

    async def _handle_render_error(self, request: Request, exc: Exception) -> Response:
        logger.error("Failed to render %s", request.url.path, exc_info=exc)
        title = type(exc).__name__
        trace = None
        if self.debug:
            trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return render_error_page(title, str(exc), trace=trace)

    async def __call__(self, scope, receive, send) -> None:
        await self.app(scope, receive, send)


def _route_segment(name: str) -> str:
    """`[param]` file and directory names become `{param}` route segments."""
    match = re.match(r"^\[(.*?)\]$", name)
    if match:
        return f"{{{match.group(1)}}}"
    return name
