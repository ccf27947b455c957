"""Rendering engine."""

from pyenhance.engine.exceptions import (
    DuplicateComponentError,
    EnhanceError,
    MalformedMarkupError,
    RenderDepthExceededError,
    RenderError,
)
from pyenhance.engine.expansion import ExpansionEngine, StyleFragment
from pyenhance.engine.registry import ComponentDefinition, ComponentRegistry, is_custom_tag
from pyenhance.engine.scoping import scope_css
from pyenhance.engine.session import EnhanceInput, Renderer, RenderResult
from pyenhance.engine.styles import RequestStyleAggregator
from pyenhance.engine.template import RenderContext, StateView, TemplateComposer

__all__ = [
    "ComponentDefinition",
    "ComponentRegistry",
    "DuplicateComponentError",
    "EnhanceError",
    "EnhanceInput",
    "ExpansionEngine",
    "MalformedMarkupError",
    "RenderContext",
    "RenderDepthExceededError",
    "RenderError",
    "RenderResult",
    "Renderer",
    "RequestStyleAggregator",
    "StateView",
    "StyleFragment",
    "TemplateComposer",
    "is_custom_tag",
    "scope_css",
]
