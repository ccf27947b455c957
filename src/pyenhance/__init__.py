"""Server-side rendering of custom elements."""

from pyenhance.engine import (
    ComponentRegistry,
    EnhanceError,
    EnhanceInput,
    RenderContext,
    Renderer,
    RenderResult,
    RequestStyleAggregator,
)

__version__ = "0.1.0"

__all__ = [
    "ComponentRegistry",
    "EnhanceError",
    "EnhanceInput",
    "RenderContext",
    "RenderResult",
    "Renderer",
    "RequestStyleAggregator",
]
