"""prompt_toolkit front end: key handling, formatting and the prompt itself."""

from .controller import InteractionController, LineHost
from .keys import KeyAction, KeyPress, classify_key
from .prompt import CommandPrompt, PromptToolkitHost, command_prompt

__all__ = [
    "CommandPrompt",
    "InteractionController",
    "KeyAction",
    "KeyPress",
    "LineHost",
    "PromptToolkitHost",
    "classify_key",
    "command_prompt",
]
