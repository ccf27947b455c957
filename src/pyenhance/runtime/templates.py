"""Jinja2 page templates with server-rendered custom elements."""
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import HTMLResponse

from pyenhance.engine.session import Renderer
from pyenhance.engine.styles import RequestStyleAggregator
from pyenhance.runtime.context import STATE_KEY, add_result
from pyenhance.runtime.tag_helper import EnhanceTagHelper

# Emitted by enhance_styles(); must survive a parse/serialize round trip unchanged
STYLES_PLACEHOLDER = '<meta name="pyenhance-styles">'


class EnhanceTemplates:
    """Renders page templates and expands the custom elements they contain.

    Templates get two helpers:

    - ``{{ enhance('<my-header>Hi</my-header>', state) }}`` renders markup inline.
    - ``{{ enhance_styles() }}`` marks where the request's scoped styles go.

    Elements marked with ``enhance-ssr`` are rendered after the template.
    When a page never calls ``enhance_styles()`` the styles are injected
    before ``</head>`` (or prepended when there is no head).
    """

    def __init__(
        self,
        directory: Path | str,
        renderer: Renderer,
        environment: Optional[Environment] = None,
    ):
        self.directory = Path(directory)
        self.renderer = renderer
        self.environment = environment or Environment(
            loader=FileSystemLoader(str(self.directory)),
            autoescape=select_autoescape(["html", "htm", "xml"]),
        )
        self.tag_helper = EnhanceTagHelper(renderer)

    def render(
        self,
        name: str,
        context: Optional[Dict[str, Any]] = None,
        aggregator: Optional[RequestStyleAggregator] = None,
        initial_state: Any = None,
    ) -> str:
        """Render template `name` to a complete page."""
        styles = aggregator if aggregator is not None else RequestStyleAggregator()

        def enhance(markup: str, state: Any = None) -> Markup:
            result = self.renderer.process(markup, state if state is not None else initial_state)
            add_result(result, styles)
            return Markup(result.body)

        def enhance_styles() -> Markup:
            return Markup(STYLES_PLACEHOLDER)

        values = dict(context or {})
        values.update(enhance=enhance, enhance_styles=enhance_styles)
        page = self.environment.get_template(name).render(values)

        page = self.tag_helper.process(page, styles, initial_state)
        return inject_styles(page, styles.render())

    def TemplateResponse(
        self,
        request: Request,
        name: str,
        context: Optional[Dict[str, Any]] = None,
        status_code: int = 200,
        initial_state: Any = None,
        background: Optional[BackgroundTask] = None,
    ) -> HTMLResponse:
        values = {"request": request}
        values.update(context or {})
        aggregator = getattr(request.state, STATE_KEY, None)
        content = self.render(name, values, aggregator=aggregator, initial_state=initial_state)
        return HTMLResponse(content, status_code=status_code, background=background)


def inject_styles(page: str, style_block: str) -> str:
    if STYLES_PLACEHOLDER in page:
        return page.replace(STYLES_PLACEHOLDER, style_block, 1).replace(STYLES_PLACEHOLDER, "")
    if not style_block:
        return page
    if "</head>" in page:
        return page.replace("</head>", f"{style_block}</head>", 1)
    return f"{style_block}{page}"
