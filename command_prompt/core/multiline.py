from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

LINE_SEPARATOR = "\n"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass
class Composing:
    buffer: list[str] = field(default_factory=list)


ComposerState = Union[Idle, Composing]


class MultilineComposer:
    """Two-state machine that collects lines into one multi-line value."""

    def __init__(self) -> None:
        self.state: ComposerState = Idle()

    @property
    def active(self) -> bool:
        return isinstance(self.state, Composing)

    @property
    def buffered(self) -> list[str]:
        if isinstance(self.state, Composing):
            return list(self.state.buffer)
        return []

    def toggle(self, line: str) -> Optional[str]:
        """Enter or leave composing mode.

        Entering returns ``None``; leaving returns the joined value, which
        always includes ``line`` as its last line.
        """
        if isinstance(self.state, Composing):
            lines = self.state.buffer + [line]
            self.state = Idle()
            return LINE_SEPARATOR.join(lines)
        self.state = Composing([line] if line else [])
        return None

    def line_complete(self, line: str) -> None:
        if not isinstance(self.state, Composing):
            raise RuntimeError("line_complete() called while not composing")
        self.state.buffer.append(line)

    def cancel(self) -> str:
        self.state = Idle()
        return ""
