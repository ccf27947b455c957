"""Per-request style collection."""
import contextlib
import contextvars
from typing import Iterator, Optional

from starlette.types import ASGIApp, Receive, Scope, Send

from pyenhance.engine.session import RenderResult
from pyenhance.engine.styles import RequestStyleAggregator

STATE_KEY = "enhance_styles"

# Aggregator of the request currently being handled
_request_styles: contextvars.ContextVar[Optional[RequestStyleAggregator]] = contextvars.ContextVar(
    "pyenhance_request_styles", default=None
)


def current_styles() -> RequestStyleAggregator:
    """The style aggregator of the active request."""
    aggregator = _request_styles.get()
    if aggregator is None:
        raise LookupError("No request styles are active (is EnhanceMiddleware installed?)")
    return aggregator


def add_result(result: RenderResult, aggregator: Optional[RequestStyleAggregator] = None) -> None:
    """Forward the styles of a render to the request's aggregator."""
    target = aggregator if aggregator is not None else current_styles()
    target.add(result.styles)


@contextlib.contextmanager
def request_styles(
    aggregator: Optional[RequestStyleAggregator] = None,
) -> Iterator[RequestStyleAggregator]:
    """Activate an aggregator for the duration of a request."""
    active = aggregator if aggregator is not None else RequestStyleAggregator()
    token = _request_styles.set(active)
    try:
        yield active
    finally:
        _request_styles.reset(token)


class EnhanceMiddleware:
    """ASGI middleware giving every HTTP request its own style aggregator.

    The aggregator is reachable through `current_styles()` and as
    `request.state.enhance_styles`; it is dropped when the response is sent.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        with request_styles() as aggregator:
            scope.setdefault("state", {})[STATE_KEY] = aggregator
            await self.app(scope, receive, send)
