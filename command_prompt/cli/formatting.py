from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence

from ..config.settings import DEFAULT_LIMIT, ELLIPSIS

_ANSI_SGR_RE = re.compile(r"\x1b\[[0-9;]*m")
_LAST_TOKEN_RE = re.compile(r" [^ ]+$")


def decolorize(text: str) -> str:
    return _ANSI_SGR_RE.sub("", text)


def format_index(index: int, limit: Optional[int] = DEFAULT_LIMIT) -> str:
    width = len(str(limit or DEFAULT_LIMIT))
    return str(index).rjust(width)


def short(line: str, matches: Iterable[str]) -> list[str]:
    """Drop the already typed leading words from each suggestion.

    Suggestions identical to the typed line are removed. When the line ends
    in the middle of a word, only the words before it are dropped.
    """
    shortened = list(matches)
    if not line:
        return shortened
    if line.endswith(" "):
        line = line[:-1]
    head = _LAST_TOKEN_RE.sub("", line)
    result = []
    for match in shortened:
        if match == line:
            continue
        if match[len(line) : len(line) + 1] == " ":
            result.append(match.replace(line + " ", "", 1))
        else:
            result.append(match.replace(head + " ", "", 1))
    return result


def ellipsize(text: str, length: int, ellipsis: str = ELLIPSIS) -> str:
    if len(text) > length:
        keep = length - (len(decolorize(ellipsis)) + 1)
        return text[: max(keep, 0)] + ellipsis
    return text


def set_spaces(text: str, length: int, ellipsized: bool = False, ellipsis: str = ELLIPSIS) -> str:
    if ellipsized and len(text) > length - 1:
        text = ellipsize(text, length - 1, ellipsis)
    return text + " " * (length - len(decolorize(text)))


def format_list(
    elems: Sequence[str],
    max_size: int = 32,
    ellipsized: bool = False,
    ellipsis: str = ELLIPSIS,
    *,
    width: int = 80,
) -> str:
    """Lay suggestions out in columns that fit a terminal ``width`` wide."""
    if not elems:
        return ""
    max_size = max(int(max_size or 32), 1)
    ratio = max((width - 1) // max_size, 1)
    max_size += ((width - 1) % max_size) // ratio
    column = max(len(decolorize(elem)) + 4 for elem in elems)
    if ellipsized and column > max_size:
        column = max_size
    columns = max(width // column, 1)
    rows = []
    for start in range(0, len(elems), columns):
        cells = [set_spaces(elem, column, ellipsized, ellipsis) for elem in elems[start : start + columns]]
        rows.append("".join(cells).rstrip())
    return "\n".join(rows)
