"""Rendering exceptions."""
from typing import Optional


class EnhanceError(Exception):
    """Base class for all pyenhance errors."""


class RenderError(EnhanceError):
    """Raised when a component's render definition fails."""

    def __init__(self, tag: str, cause: Optional[BaseException] = None):
        self.tag = tag
        self.cause = cause
        super().__init__(tag, cause)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"<{self.tag}> failed to render: {self.cause!r}"
        return f"<{self.tag}> failed to render"


class RenderDepthExceededError(EnhanceError):
    """Raised when component expansion nests deeper than the configured limit."""

    def __init__(self, tag: str, depth: int):
        self.tag = tag
        self.depth = depth
        super().__init__(tag, depth)

    def __str__(self) -> str:
        return (
            f"<{self.tag}> exceeded the maximum render depth ({self.depth}). "
            f"Does the component render itself?"
        )


class DuplicateComponentError(EnhanceError):
    """Raised when two render definitions claim the same tag."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(tag)

    def __str__(self) -> str:
        return f"A component is already registered for <{self.tag}>"


class MalformedMarkupError(EnhanceError):
    """Raised when markup cannot be parsed into a tree."""

    def __init__(self, message: str, markup: str = ""):
        self.message = message
        self.markup = markup
        super().__init__(message)

    def __str__(self) -> str:
        if self.markup:
            snippet = self.markup[:60]
            return f"{self.message} (in {snippet!r})"
        return self.message
