"""Host editor boundary.

The paste pipeline only talks to an editor through the small :class:`Editor`
protocol below, addressed in (line, ch) coordinates where ``ch`` counts Python
characters. :class:`TextBuffer` is an in-memory implementation used by the
command line and the tests; the Qt widget provides its own adapter.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from .settings import LINE_REGEX, LINK_LINE_REGEX

_LINK_IN_LINE = re.compile(LINK_LINE_REGEX, re.IGNORECASE)
_URL_IN_LINE = re.compile(LINE_REGEX, re.IGNORECASE)


@dataclass(frozen=True)
class EditorPosition:
    line: int
    ch: int


class Editor(Protocol):
    def get_value(self) -> str: ...

    def get_selection(self) -> str: ...

    def something_selected(self) -> bool: ...

    def replace_selection(self, text: str) -> None: ...

    def replace_range(self, text: str, start: EditorPosition, end: EditorPosition) -> None: ...

    def get_cursor(self) -> EditorPosition: ...

    def get_line(self, line: int) -> str: ...

    def get_range(self, start: EditorPosition, end: EditorPosition) -> str: ...

    def set_selection(self, start: EditorPosition, end: EditorPosition) -> None: ...


def get_editor_position_from_index(text: str, index: int) -> EditorPosition:
    """Convert a flat offset into ``text`` to a line/column position."""
    prefix = text[:index]
    line = prefix.count("\n")
    line_start = prefix.rfind("\n") + 1
    return EditorPosition(line, index - line_start)


def get_index_from_editor_position(text: str, pos: EditorPosition) -> int:
    """Inverse of :func:`get_editor_position_from_index`, clamped to the line."""
    lines = text.split("\n")
    line = min(max(pos.line, 0), len(lines) - 1)
    offset = sum(len(part) + 1 for part in lines[:line])
    return offset + min(max(pos.ch, 0), len(lines[line]))


def _word_boundaries(editor: Editor) -> tuple[EditorPosition, EditorPosition]:
    cursor = editor.get_cursor()
    line_text = editor.get_line(cursor.line)
    # A Markdown link wins over the bare URL inside it
    for pattern in (_LINK_IN_LINE, _URL_IN_LINE):
        for match in pattern.finditer(line_text):
            if match.start() <= cursor.ch <= match.end():
                return (
                    EditorPosition(cursor.line, match.start()),
                    EditorPosition(cursor.line, match.end()),
                )
    return cursor, cursor


def get_selected_text(editor: Editor) -> str:
    """Return the selection, first selecting the link or URL under the cursor if empty."""
    if not editor.something_selected():
        start, end = _word_boundaries(editor)
        editor.set_selection(start, end)
    return editor.get_selection()


class TextBuffer:
    """Plain-string :class:`Editor` with a single selection."""

    def __init__(self, text: str = "", cursor: int | None = None) -> None:
        self._text = text
        position = len(text) if cursor is None else cursor
        self._anchor = position
        self._head = position

    def __repr__(self) -> str:
        return f"TextBuffer({self._text!r})"

    def _span(self) -> tuple[int, int]:
        return min(self._anchor, self._head), max(self._anchor, self._head)

    def _index(self, pos: EditorPosition) -> int:
        return get_index_from_editor_position(self._text, pos)

    def get_value(self) -> str:
        return self._text

    def set_value(self, text: str) -> None:
        self._text = text
        self._anchor = self._head = len(text)

    def get_selection(self) -> str:
        start, end = self._span()
        return self._text[start:end]

    def something_selected(self) -> bool:
        return self._anchor != self._head

    def replace_selection(self, text: str) -> None:
        start, end = self._span()
        self._text = self._text[:start] + text + self._text[end:]
        self._anchor = self._head = start + len(text)

    def replace_range(self, text: str, start: EditorPosition, end: EditorPosition) -> None:
        begin, finish = sorted((self._index(start), self._index(end)))
        self._text = self._text[:begin] + text + self._text[finish:]
        delta = len(text) - (finish - begin)

        def _shift(offset: int) -> int:
            if offset >= finish:
                return offset + delta
            if offset > begin:
                return begin + len(text)
            return offset

        self._anchor = _shift(self._anchor)
        self._head = _shift(self._head)

    def get_cursor(self) -> EditorPosition:
        return get_editor_position_from_index(self._text, self._span()[0])

    def get_line(self, line: int) -> str:
        lines = self._text.split("\n")
        return lines[line] if 0 <= line < len(lines) else ""

    def get_range(self, start: EditorPosition, end: EditorPosition) -> str:
        begin, finish = sorted((self._index(start), self._index(end)))
        return self._text[begin:finish]

    def set_selection(self, start: EditorPosition, end: EditorPosition) -> None:
        self._anchor = self._index(start)
        self._head = self._index(end)

    def select(self, start: int, end: int) -> None:
        """Select by flat offsets."""
        self._anchor = start
        self._head = end
