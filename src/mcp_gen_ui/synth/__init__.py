"""UI synthesis from tool definitions."""

from .generator import (
    DEFAULT_TIMEOUT,
    UISynthesizer,
    build_user_prompt,
    clean_output,
    render_refinements,
)

__all__ = [
    "DEFAULT_TIMEOUT",
    "UISynthesizer",
    "build_user_prompt",
    "clean_output",
    "render_refinements",
]
