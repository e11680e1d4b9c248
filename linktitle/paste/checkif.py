from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Optional

from .editor import Editor, EditorPosition
from .settings import ANCHOR_REGEX, IMAGE_REGEX, LINK_REGEX, URL_REGEX

logger = logging.getLogger(__name__)

_URL = re.compile(URL_REGEX, re.IGNORECASE)
_IMAGE = re.compile(IMAGE_REGEX, re.IGNORECASE)
_ANCHOR = re.compile(ANCHOR_REGEX, re.IGNORECASE | re.DOTALL)

QUOTE_CHARS = ('"', "'")


@lru_cache(maxsize=8)
def _link_pattern(link_regex: str) -> re.Pattern[str]:
    try:
        return re.compile(link_regex, re.IGNORECASE)
    except re.error as exc:
        logger.warning("Invalid link regex %r (%s); using the default", link_regex, exc)
        return re.compile(LINK_REGEX, re.IGNORECASE)


def is_url(text: str) -> bool:
    return bool(_URL.search((text or "").strip()))


def is_image(text: str) -> bool:
    """True for URLs pointing at an image file (they have no useful page title)."""
    return bool(_IMAGE.search((text or "").strip()))


def is_linked_url(text: str, link_regex: str = LINK_REGEX) -> bool:
    """True for ``[label](url)`` or an ``<a href="url">`` anchor."""
    candidate = (text or "").strip()
    return bool(_link_pattern(link_regex).search(candidate) or _ANCHOR.search(candidate))


def get_url_from_link(text: str, link_regex: str = LINK_REGEX) -> Optional[str]:
    """Return the URL of a Markdown link or HTML anchor, or None if ``text`` is neither.

    The URL is the second capture group of either pattern.
    """
    candidate = (text or "").strip()
    match = _link_pattern(link_regex).search(candidate) or _ANCHOR.search(candidate)
    if match is None:
        return None
    try:
        return match.group(2)
    except IndexError:
        return None


def _text_before_cursor(editor: Editor, length: int) -> str:
    cursor = editor.get_cursor()
    start = EditorPosition(cursor.line, max(cursor.ch - length, 0))
    return editor.get_range(start, cursor)


def is_markdown_link_already(editor: Editor) -> bool:
    """True when the cursor sits right after ``](``, i.e. inside a link's URL slot."""
    return _text_before_cursor(editor, 2) == "]("


def is_after_quote(editor: Editor) -> bool:
    """True when the cursor follows a quote, e.g. inside ``href="..."``."""
    return _text_before_cursor(editor, 1) in QUOTE_CHARS
