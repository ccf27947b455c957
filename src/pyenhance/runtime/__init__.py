"""Runtime components."""

from pyenhance.runtime.app import EnhanceApp
from pyenhance.runtime.context import EnhanceMiddleware, current_styles, request_styles
from pyenhance.runtime.loader import ComponentLoader, load_components
from pyenhance.runtime.tag_helper import EnhanceTagHelper
from pyenhance.runtime.templates import EnhanceTemplates

__all__ = [
    "ComponentLoader",
    "EnhanceApp",
    "EnhanceMiddleware",
    "EnhanceTagHelper",
    "EnhanceTemplates",
    "current_styles",
    "load_components",
    "request_styles",
]
