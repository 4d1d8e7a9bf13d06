from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from rich.console import Console

from .paths import DEFAULT_HISTORY_FILE_NAME

ELLIPSIS = "…"
DEFAULT_CONTEXT = "_default"
DEFAULT_LIMIT = 100

DEFAULT_HISTORY_CONFIG: Dict[str, Any] = {
    "save": True,
    "folder": ".",
    "limit": DEFAULT_LIMIT,
    "blacklist": [],
    "file_name": DEFAULT_HISTORY_FILE_NAME,
}

HISTORY_KEY_ALIASES = {
    "persist": "save",
    "directory": "folder",
    "fileName": "file_name",
}

_GLOBAL_CONFIG: Dict[str, Any] = {}


def merge_dicts(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Shallow merge; later layers win on conflicts."""
    merged: Dict[str, Any] = {}
    for layer in layers:
        if isinstance(layer, Mapping):
            merged.update(layer)
    return merged


def normalize_history_config(raw: Any) -> Dict[str, Any]:
    """Map option aliases to canonical keys and coerce their values.

    Only keys that are present in ``raw`` are returned, so the result can be
    merged over another config without resetting unrelated options.
    """
    if not isinstance(raw, Mapping):
        return {}
    cleaned: Dict[str, Any] = {}
    for key, value in raw.items():
        key = HISTORY_KEY_ALIASES.get(key, key)
        if key not in DEFAULT_HISTORY_CONFIG:
            continue
        if key == "save":
            cleaned[key] = bool(value)
        elif key == "limit":
            cleaned[key] = _coerce_limit(value)
        elif key == "blacklist":
            cleaned[key] = _coerce_blacklist(value)
        elif key in {"folder", "file_name"}:
            if value is None or str(value) == "":
                continue
            cleaned[key] = str(value)
    return cleaned


def _coerce_limit(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return None
    return limit if limit > 0 else None


def _coerce_blacklist(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


def set_config(config: Any) -> None:
    """Install the process-wide config that prompt-level options merge over."""
    global _GLOBAL_CONFIG
    if isinstance(config, Mapping):
        _GLOBAL_CONFIG = dict(config)


def get_config() -> Dict[str, Any]:
    return _GLOBAL_CONFIG


def reset_config() -> None:
    global _GLOBAL_CONFIG
    _GLOBAL_CONFIG = {}


def history_config_for(prompt_history: Any = None) -> Dict[str, Any]:
    """Resolve the history config for one prompt: defaults < global < prompt."""
    global_history = normalize_history_config(_GLOBAL_CONFIG.get("history"))
    return merge_dicts(
        DEFAULT_HISTORY_CONFIG,
        global_history,
        normalize_history_config(prompt_history),
    )


def load_config_file(path: Path, console: Optional[Console] = None) -> Dict[str, Any]:
    """Read a JSON config object; problems are reported and yield ``{}``."""
    console = console or Console(stderr=True)
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        console.print(f"[yellow]Ignoring config file {path}: {exc}[/yellow]")
        return {}
    if not isinstance(data, dict):
        console.print(f"[yellow]Ignoring config file {path}: expected an object.[/yellow]")
        return {}
    history = data.get("history")
    if history is not None and not isinstance(history, dict):
        console.print(f"[yellow]Ignoring history in {path}: expected an object.[/yellow]")
        data.pop("history", None)
    return data


@dataclass
class PromptOptions:
    message: str = ">"
    context: str = DEFAULT_CONTEXT
    auto_completion: Any = None
    history: Dict[str, Any] = field(default_factory=dict)
    history_handler: Any = None
    short: bool | Callable[[str, list[str]], list[str]] = False
    max_size: int = 32
    ellipsize: bool = False
    ellipsis: str = ELLIPSIS
    autocomplete_prompt: Optional[str] = None
    on_before_key_press: Optional[Callable[[Any], Any]] = None
    on_before_rewrite: Optional[Callable[[str], str]] = None
    on_ctrl_end: Optional[Callable[[str], str]] = None
    transformer: Optional[Callable[..., str]] = None
    on_close: Optional[Callable[[], Any]] = None
    validate: Optional[Callable[[str], Any]] = None
    default: str = ""
    color_on_answered: str = "cyan"
    no_color_on_answered: bool = False
    multiline_toggle_key: str = "alt+enter"
    multiline_cancel_key: str = "ctrl+c"

    @classmethod
    def from_kwargs(cls, **kwargs: Any) -> "PromptOptions":
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in kwargs.items() if key in known}
        if values.get("context") is None or values.get("context") == "":
            values.pop("context", None)
        else:
            values["context"] = str(values["context"])
        return cls(**values)
