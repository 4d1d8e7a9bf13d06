"""Configuration package."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .paths import PromptPaths
    from .settings import PromptOptions, get_config, set_config

__all__ = ["PromptOptions", "PromptPaths", "get_config", "set_config"]


def __getattr__(name: str) -> Any:
    if name in {"PromptOptions", "get_config", "set_config"}:
        from . import settings

        return getattr(settings, name)
    if name == "PromptPaths":
        from .paths import PromptPaths

        return PromptPaths
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
