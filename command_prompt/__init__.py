"""Line prompt with per-context history, tab completion and multi-line input."""

from importlib.metadata import PackageNotFoundError, version

from .cli.controller import InteractionController
from .cli.keys import KeyPress
from .cli.prompt import CommandPrompt, command_prompt
from .config.settings import PromptOptions, get_config, set_config
from .core.completion import CompletionOptions, CompletionResult, complete
from .core.history import HistoryStore

__all__ = [
    "CommandPrompt",
    "CompletionOptions",
    "CompletionResult",
    "HistoryStore",
    "InteractionController",
    "KeyPress",
    "PromptOptions",
    "command_prompt",
    "complete",
    "get_config",
    "set_config",
]

# Single source of truth comes from package metadata defined in pyproject.toml
try:
    __version__ = version("command-prompt")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"
