from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

from PySide6.QtCore import QMimeData, Qt, Signal
from PySide6.QtGui import QAction, QGuiApplication, QKeySequence, QShortcut, QTextCursor
from PySide6.QtNetwork import QNetworkInformation
from PySide6.QtWidgets import QTextEdit
from shiboken6 import Shiboken

from linktitle.app import config
from linktitle.paste.editor import EditorPosition
from linktitle.paste.orchestrator import AutoLinkTitle, PasteEvent, PendingTitle

logger = logging.getLogger(__name__)

NORMAL_PASTE_SHORTCUT = "Ctrl+Shift+V"
ENHANCE_LINK_SHORTCUT = "Ctrl+Shift+E"
PASTE_WITH_TITLE_LABEL = "Paste URL and auto fetch title"


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def _index_from_utf16(text: str, offset: int) -> int:
    """Python index of the character at UTF-16 ``offset`` in ``text``."""
    units = 0
    for index, ch in enumerate(text):
        if units >= offset:
            return index
        units += 2 if ord(ch) > 0xFFFF else 1
    return len(text)


def network_online() -> bool:
    """Reachability from QNetworkInformation; unknown or no backend counts as online."""
    info = QNetworkInformation.instance()
    if info is None:
        return True
    return info.reachability() != QNetworkInformation.Reachability.Disconnected


class QtEditorAdapter:
    """Exposes a QTextEdit through the line/ch editor interface.

    Qt addresses the document in UTF-16 units, the paste pipeline in Python
    characters; conversion happens per block.
    """

    def __init__(self, widget: QTextEdit) -> None:
        self.widget = widget

    def _document(self):
        return self.widget.document()

    def _to_qt(self, pos: EditorPosition) -> int:
        doc = self._document()
        line = min(max(pos.line, 0), doc.blockCount() - 1)
        block = doc.findBlockByNumber(line)
        text = block.text()
        ch = min(max(pos.ch, 0), len(text))
        return block.position() + _utf16_len(text[:ch])

    def _from_qt(self, position: int) -> EditorPosition:
        block = self._document().findBlock(position)
        return EditorPosition(block.blockNumber(), _index_from_utf16(block.text(), position - block.position()))

    def _span_cursor(self, start: EditorPosition, end: EditorPosition) -> QTextCursor:
        cursor = QTextCursor(self._document())
        cursor.setPosition(self._to_qt(start))
        cursor.setPosition(self._to_qt(end), QTextCursor.MoveMode.KeepAnchor)
        return cursor

    def get_value(self) -> str:
        return self.widget.toPlainText()

    def get_selection(self) -> str:
        return self.widget.textCursor().selectedText().replace("\u2029", "\n")

    def something_selected(self) -> bool:
        return self.widget.textCursor().hasSelection()

    def replace_selection(self, text: str) -> None:
        cursor = self.widget.textCursor()
        cursor.beginEditBlock()
        cursor.insertText(text)
        cursor.endEditBlock()
        self.widget.setTextCursor(cursor)

    def replace_range(self, text: str, start: EditorPosition, end: EditorPosition) -> None:
        # A detached cursor leaves the user's cursor where it is
        cursor = self._span_cursor(start, end)
        cursor.beginEditBlock()
        cursor.insertText(text)
        cursor.endEditBlock()

    def get_cursor(self) -> EditorPosition:
        return self._from_qt(self.widget.textCursor().selectionStart())

    def get_line(self, line: int) -> str:
        block = self._document().findBlockByNumber(line)
        return block.text() if block.isValid() else ""

    def get_range(self, start: EditorPosition, end: EditorPosition) -> str:
        return self._span_cursor(start, end).selectedText().replace("\u2029", "\n")

    def set_selection(self, start: EditorPosition, end: EditorPosition) -> None:
        self.widget.setTextCursor(self._span_cursor(start, end))


class LinkTitleEditor(QTextEdit):
    """Plain-text Markdown editor that turns pasted URLs into titled links."""

    titleResolved = Signal(object, str)  # PendingTitle, replacement text

    def __init__(self, parent=None, auto_link: Optional[AutoLinkTitle] = None) -> None:
        super().__init__(parent)
        self.setAcceptRichText(False)
        self.setPlaceholderText("Paste a URL…")
        self.adapter = QtEditorAdapter(self)
        self.auto_link = auto_link or AutoLinkTitle(
            config.load_link_title_settings,
            is_online=network_online,
        )
        self._workers: set[threading.Thread] = set()
        self.titleResolved.connect(self._apply_resolved_title)

        self._normal_paste_shortcut = QShortcut(QKeySequence(NORMAL_PASTE_SHORTCUT), self)
        self._normal_paste_shortcut.setContext(Qt.ShortcutContext.WidgetShortcut)
        self._normal_paste_shortcut.activated.connect(self.normal_paste)
        self._enhance_shortcut = QShortcut(QKeySequence(ENHANCE_LINK_SHORTCUT), self)
        self._enhance_shortcut.setContext(Qt.ShortcutContext.WidgetShortcut)
        self._enhance_shortcut.activated.connect(self.enhance_link)
        # No default key; offered from the context menu
        self.paste_with_title_action = QAction(PASTE_WITH_TITLE_LABEL, self)
        self.paste_with_title_action.triggered.connect(self.paste_with_title)
        self.addAction(self.paste_with_title_action)

    def contextMenuEvent(self, event) -> None:  # type: ignore[override]
        menu = self.createStandardContextMenu()
        menu.addSeparator()
        menu.addAction(self.paste_with_title_action)
        self.paste_with_title_action.setEnabled(bool(self._clipboard_text()))
        menu.exec(event.globalPos())

    def insertFromMimeData(self, source: QMimeData) -> None:  # type: ignore[override]
        if source.hasText():
            event = PasteEvent(clipboard_text=source.text(), online=self.auto_link.is_online())
            pending = self.auto_link.handle_paste(event, self.adapter)
            if event.default_prevented:
                self._dispatch(pending)
                return
        super().insertFromMimeData(source)

    @staticmethod
    def _clipboard_text() -> str:
        return QGuiApplication.clipboard().text() or ""

    def paste_with_title(self) -> None:
        """Paste the clipboard, fetching a title if it holds a URL."""
        self._dispatch(self.auto_link.handle_manual_paste(self.adapter, self._clipboard_text()))

    def normal_paste(self) -> None:
        self.auto_link.handle_normal_paste(self.adapter, self._clipboard_text())

    def enhance_link(self) -> None:
        """Replace the URL or link under the cursor with a titled link."""
        self._dispatch(self.auto_link.handle_enhance(self.adapter))

    def pending_fetches(self) -> int:
        return sum(1 for worker in self._workers if worker.is_alive())

    def _dispatch(self, pending: Optional[PendingTitle]) -> None:
        if pending is None:
            return
        worker = threading.Thread(target=self._resolve_threadsafe, args=(pending,), daemon=True)
        self._workers = {w for w in self._workers if w.is_alive()}
        self._workers.add(worker)
        worker.start()

    def _resolve_threadsafe(self, pending: PendingTitle) -> None:
        """Worker thread: run the fetch on a private event loop, hand the text to the GUI thread."""
        try:
            text = asyncio.run(self.auto_link.resolve(pending))
        except Exception:
            logger.exception("Title resolution crashed for %s", pending.url)
            return
        if not Shiboken.isValid(self):
            logger.info("Editor closed before the title for %s arrived", pending.url)
            return
        try:
            self.titleResolved.emit(pending, text)
        except RuntimeError as exc:
            # Deleted between the check and the emit
            logger.info("Editor closed before the title for %s arrived: %s", pending.url, exc)

    def _apply_resolved_title(self, pending: PendingTitle, text: str) -> None:
        self.auto_link.finish_conversion(self.adapter, pending, text)
