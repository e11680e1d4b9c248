from __future__ import annotations

import re

_ESCAPED_CHAR = re.compile(r"\\([*_`~\\\[\]])")
_SPECIAL_CHAR = re.compile(r"([*_`~\\\[\]])")
_LINE_BREAK = re.compile(r"\r\n|\n|\r")


def unescape_markdown(text: str) -> str:
    """Drop the backslash in front of any already-escaped Markdown character."""
    return _ESCAPED_CHAR.sub(r"\1", text)


def strip_line_breaks(text: str) -> str:
    return _LINE_BREAK.sub("", text)


def collapse_line_breaks(text: str) -> str:
    """Turn line breaks into spaces, then fold the first double space and trim.

    Only the first pair of spaces is folded; longer runs survive a single call.
    """
    return _LINE_BREAK.sub(" ", text).replace("  ", " ", 1).strip()


def escape_markdown(text: str) -> str:
    """Normalize ``text`` into a single-line, Markdown-safe link label.

    Existing escapes are removed first so that a title which already carries
    ``\\*`` is not escaped twice.
    """
    escaped = _SPECIAL_CHAR.sub(r"\\\1", unescape_markdown(text))
    return collapse_line_breaks(escaped)
