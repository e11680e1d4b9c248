"""Placeholder tokens and their later replacement.

A pending title is marked in the document by a short hashed token. The token is
found again by searching the *current* text when the title arrives, so edits
made in the meantime never leave a stale offset behind. Four characters over a
36 symbol alphabet keep collisions unlikely, not impossible.
"""
from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass

from .editor import Editor, get_editor_position_from_index

logger = logging.getLogger(__name__)

HASH_ALPHABET = string.ascii_lowercase + string.digits
HASH_LENGTH = 4

TITLE_KIND = "title"
ARXIV_KIND = "arxiv"


def create_block_hash(length: int = HASH_LENGTH) -> str:
    return "".join(random.choice(HASH_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class Placeholder:
    kind: str
    block_hash: str
    url: str

    @property
    def token(self) -> str:
        if self.kind == ARXIV_KIND:
            return f"Fetching arXiv data #{self.block_hash} :"
        return f"Fetching Title#{self.block_hash}"

    @property
    def insertion(self) -> str:
        """Text written into the document while the fetch is outstanding."""
        if self.kind == ARXIV_KIND:
            return self.token
        return f"[{self.token}]({self.url})"


def replace_placeholder(editor: Editor, token: str, replacement: str) -> bool:
    """Replace the first occurrence of ``token`` in the editor with ``replacement``.

    Returns False, without touching the document, if the token is gone.
    """
    text = editor.get_value()
    start = text.find(token)
    if start < 0:
        logger.info("Unable to find text %r in current editor, bailing out", token)
        return False
    end = start + len(token)
    editor.replace_range(
        replacement,
        get_editor_position_from_index(text, start),
        get_editor_position_from_index(text, end),
    )
    return True
