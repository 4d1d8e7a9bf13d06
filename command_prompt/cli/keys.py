from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

_MODIFIER_ALIASES = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "c": "ctrl",
    "shift": "shift",
    "s": "shift",
    "alt": "alt",
    "meta": "alt",
    "option": "alt",
    "m": "alt",
}
_NAME_ALIASES = {
    "return": "enter",
    "c-m": "enter",
    "c-i": "tab",
    "esc": "escape",
}


@dataclass(frozen=True)
class KeyPress:
    name: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False

    @classmethod
    def parse(cls, spec: str) -> "KeyPress":
        """Parse ``"ctrl+shift+right"`` style key specs."""
        parts = [part.strip().lower() for part in spec.split("+") if part.strip()]
        if not parts:
            raise ValueError(f"empty key spec: {spec!r}")
        *modifiers, name = parts
        flags = {"ctrl": False, "shift": False, "alt": False}
        for modifier in modifiers:
            canonical = _MODIFIER_ALIASES.get(modifier)
            if canonical is None:
                raise ValueError(f"unknown key modifier {modifier!r} in {spec!r}")
            flags[canonical] = True
        return cls(_NAME_ALIASES.get(name, name), **flags)

    @classmethod
    def coerce(cls, value: Any) -> "KeyPress":
        if isinstance(value, KeyPress):
            return value
        return cls.parse(str(value))

    def prompt_toolkit_keys(self) -> tuple[str, ...]:
        """Key sequence understood by prompt_toolkit's ``KeyBindings.add``."""
        prefix = ""
        if self.ctrl:
            prefix += "c-"
        if self.shift:
            prefix += "s-"
        keys = (prefix + self.name,)
        if self.alt:
            keys = ("escape",) + keys
        return keys

    def __str__(self) -> str:
        parts = [flag for flag in ("ctrl", "shift", "alt") if getattr(self, flag)]
        return "+".join(parts + [self.name])


ENTER = KeyPress("enter")


class KeyAction(Enum):
    MULTILINE_TOGGLE = "multiline.toggle"
    MULTILINE_CANCEL = "multiline.cancel"
    HISTORY_PREVIOUS = "history.previous"
    HISTORY_NEXT = "history.next"
    COMPLETE = "complete"
    HISTORY_SHOW = "history.show"
    HISTORY_RECALL = "history.recall"
    CTRL_END = "ctrl_end"
    PASS = "pass"


def classify_key(
    key: KeyPress,
    *,
    composing: bool,
    toggle_key: KeyPress,
    cancel_key: KeyPress,
) -> KeyAction:
    """Map a keypress to the action it triggers, by fixed precedence."""
    if key == toggle_key:
        return KeyAction.MULTILINE_TOGGLE
    if composing:
        if key == cancel_key:
            return KeyAction.MULTILINE_CANCEL
        return KeyAction.PASS
    if key.name == "up":
        return KeyAction.HISTORY_PREVIOUS
    if key.name == "down":
        return KeyAction.HISTORY_NEXT
    if key.name == "tab":
        return KeyAction.COMPLETE
    if key.name == "right" and key.shift:
        return KeyAction.HISTORY_RECALL if key.ctrl else KeyAction.HISTORY_SHOW
    if key.name == "end" and key.ctrl:
        return KeyAction.CTRL_END
    return KeyAction.PASS
