"""Paste interception and the URL-to-titled-link state machine.

Every entry point comes in two halves. The synchronous ``handle_*`` methods run
the guards and write the placeholder into the editor; they return a
:class:`PendingTitle` when a fetch is needed. :meth:`AutoLinkTitle.resolve` does
the network work and :meth:`AutoLinkTitle.finish_conversion` swaps the
placeholder for the result. The ``async`` methods chain the three for callers
that live on an event loop; the Qt editor resolves in a worker thread instead.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from . import checkif
from .blacklist import blacklisted_link, is_blacklisted
from .editor import Editor, get_selected_text
from .escape import escape_markdown
from .placeholder import ARXIV_KIND, TITLE_KIND, Placeholder, create_block_hash, replace_placeholder
from .resolvers import ArxivResolver, TitleFetcher, fetch_url_title, is_arxiv_url
from .scraper import get_page_title
from .settings import LinkTitleSettings

logger = logging.getLogger(__name__)

ClipboardReader = Callable[[], Awaitable[str]]


class PasteState(enum.Enum):
    IDLE = "idle"
    INTERCEPTED = "intercepted"
    PLACEHOLDER_INSERTED = "placeholder_inserted"
    RESOLVING = "resolving"
    REPLACED = "replaced"
    ABANDONED = "abandoned"


@dataclass
class PasteEvent:
    """A native paste the host offers to us before handling it itself."""

    clipboard_text: str
    online: bool = True
    propagation_stopped: bool = False
    default_prevented: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass
class PendingTitle:
    url: str
    placeholder: Placeholder
    settings: LinkTitleSettings
    state: PasteState = PasteState.PLACEHOLDER_INSERTED


async def _no_clipboard() -> str:
    return ""


class AutoLinkTitle:
    """Wires the classifier, blacklist, resolvers and placeholder engine together."""

    def __init__(
        self,
        load_settings: Callable[[], LinkTitleSettings] = LinkTitleSettings,
        *,
        fetch_title: Optional[TitleFetcher] = None,
        arxiv: Optional[ArxivResolver] = None,
        is_online: Callable[[], bool] = lambda: True,
        read_clipboard: ClipboardReader = _no_clipboard,
        hash_factory: Callable[[], str] = create_block_hash,
    ) -> None:
        self.load_settings = load_settings
        self._fetch_title = fetch_title
        self.arxiv = arxiv or ArxivResolver()
        self.is_online = is_online
        self.read_clipboard = read_clipboard
        self._hash_factory = hash_factory

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------
    def _selection_blocks(self, editor: Editor, settings: LinkTitleSettings) -> bool:
        return bool(editor.get_selection().strip()) and not settings.should_replace_selection

    @staticmethod
    def _in_link_context(editor: Editor) -> bool:
        return checkif.is_markdown_link_already(editor) or checkif.is_after_quote(editor)

    @staticmethod
    def _is_fetchable(text: str) -> bool:
        return checkif.is_url(text) and not checkif.is_image(text)

    # ------------------------------------------------------------------
    # Synchronous halves
    # ------------------------------------------------------------------
    def handle_paste(self, event: PasteEvent, editor: Editor) -> Optional[PendingTitle]:
        """Ambient paste. Suppresses ``event`` only when it takes the paste over."""
        settings = self.load_settings()
        if not settings.enhance_default_paste or not event.online:
            return None
        text = event.clipboard_text or ""
        if not text:
            return None
        if not self._is_fetchable(text):
            logger.debug("Leaving non-URL paste to the host")
            return None
        if self._selection_blocks(editor, settings):
            return None

        event.stop_propagation()
        event.prevent_default()

        if self._in_link_context(editor):
            editor.replace_selection(text)
            return None
        return self.begin_conversion(editor, text.strip())

    def handle_manual_paste(self, editor: Editor, clipboard_text: str) -> Optional[PendingTitle]:
        """Command paste: unlike the ambient handler every abstention pastes the raw text."""
        settings = self.load_settings()
        if not clipboard_text:
            return None
        if not self.is_online():
            editor.replace_selection(clipboard_text)
            return None
        if not self._is_fetchable(clipboard_text) or self._selection_blocks(editor, settings):
            editor.replace_selection(clipboard_text)
            return None
        if self._in_link_context(editor):
            editor.replace_selection(clipboard_text)
            return None
        return self.begin_conversion(editor, clipboard_text.strip())

    def handle_normal_paste(self, editor: Editor, clipboard_text: str) -> None:
        if clipboard_text:
            editor.replace_selection(clipboard_text)

    def handle_enhance(self, editor: Editor) -> Optional[PendingTitle]:
        """Upgrade the URL or Markdown link under the cursor to a titled link."""
        if not self.is_online():
            return None
        settings = self.load_settings()
        selected = (get_selected_text(editor) or "").strip()
        if checkif.is_url(selected):
            return self.begin_conversion(editor, selected)
        if checkif.is_linked_url(selected, settings.link_regex):
            url = checkif.get_url_from_link(selected, settings.link_regex)
            if url:
                return self.begin_conversion(editor, url)
            logger.debug("Selection %r looks like a link but has no extractable URL", selected)
        return None

    def begin_conversion(self, editor: Editor, url: str) -> Optional[PendingTitle]:
        """Write ``[host](url)`` for blacklisted URLs, otherwise a placeholder.

        Settings are reloaded here so blacklist edits apply immediately.
        """
        settings = self.load_settings()
        if is_blacklisted(url, settings):
            logger.debug("Blacklisted URL %s, skipping title fetch", url)
            editor.replace_selection(blacklisted_link(url))
            return None
        kind = ARXIV_KIND if is_arxiv_url(url) else TITLE_KIND
        placeholder = Placeholder(kind=kind, block_hash=self._hash_factory(), url=url)
        editor.replace_selection(placeholder.insertion)
        return PendingTitle(url=url, placeholder=placeholder, settings=settings)

    async def resolve(self, pending: PendingTitle) -> str:
        """Fetch and format the replacement text. Never raises."""
        pending.state = PasteState.RESOLVING
        settings = pending.settings
        if pending.placeholder.kind == ARXIV_KIND:
            resolution = await self.arxiv.resolve(pending.url, settings.template, timeout=settings.fetch_timeout)
            return resolution.text
        resolution = await fetch_url_title(pending.url, self._title_fetcher(settings))
        if not resolution.succeeded:
            logger.info("Using fallback title for %s (%s)", pending.url, resolution.error)
        return escape_markdown(resolution.text)

    def _title_fetcher(self, settings: LinkTitleSettings) -> TitleFetcher:
        if self._fetch_title is not None:
            return self._fetch_title

        async def _fetch(url: str) -> str:
            return await get_page_title(url, timeout=settings.fetch_timeout)

        return _fetch

    def finish_conversion(self, editor: Editor, pending: PendingTitle, text: str) -> PasteState:
        if replace_placeholder(editor, pending.placeholder.token, text):
            pending.state = PasteState.REPLACED
        else:
            logger.info("Placeholder for %s was removed before its title arrived", pending.url)
            pending.state = PasteState.ABANDONED
        return pending.state

    # ------------------------------------------------------------------
    # Async entry points
    # ------------------------------------------------------------------
    async def complete(self, editor: Editor, pending: Optional[PendingTitle]) -> PasteState:
        if pending is None:
            return PasteState.IDLE
        text = await self.resolve(pending)
        return self.finish_conversion(editor, pending, text)

    async def convert_url_to_titled_link(self, editor: Editor, url: str) -> PasteState:
        pending = self.begin_conversion(editor, url)
        if pending is None:
            return PasteState.REPLACED
        return await self.complete(editor, pending)

    async def paste_url_with_title(self, event: PasteEvent, editor: Editor) -> PasteState:
        return await self.complete(editor, self.handle_paste(event, editor))

    async def manual_paste_url_with_title(self, editor: Editor) -> PasteState:
        clipboard_text = await self.read_clipboard()
        return await self.complete(editor, self.handle_manual_paste(editor, clipboard_text))

    async def normal_paste(self, editor: Editor) -> None:
        self.handle_normal_paste(editor, await self.read_clipboard())

    async def add_title_to_link(self, editor: Editor) -> PasteState:
        return await self.complete(editor, self.handle_enhance(editor))
