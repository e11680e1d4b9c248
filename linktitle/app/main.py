from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from PySide6.QtCore import QtMsgType, qInstallMessageHandler
from PySide6.QtNetwork import QNetworkInformation
from PySide6.QtWidgets import QApplication

from linktitle.app import config
from linktitle.app.ui.link_title_editor import LinkTitleEditor
from linktitle.paste.editor import TextBuffer
from linktitle.paste.orchestrator import AutoLinkTitle

logger = logging.getLogger(__name__)


# LINKTITLE_DEBUG - set to "1"/"true" for DEBUG logging (same as --debug)
def _debug_enabled(var_name: str) -> bool:
    """Check if a debug flag is enabled."""
    return os.getenv(var_name, "0") not in ("0", "false", "False", "", None)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


def _qt_message_handler(mode: QtMsgType, context, message: str) -> None:
    """Route Qt diagnostics into logging."""
    if mode == QtMsgType.QtDebugMsg:
        logger.debug("Qt: %s", message)
    elif mode == QtMsgType.QtInfoMsg:
        logger.info("Qt: %s", message)
    elif mode == QtMsgType.QtWarningMsg:
        logger.warning("Qt: %s", message)
    else:
        logger.error("Qt: %s", message)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Paste URLs as Markdown links titled with the page's title.")
    parser.add_argument("url", nargs="?", help="Convert a single URL and print the Markdown link instead of opening the editor.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def convert_url(url: str) -> str:
    """Run the full paste pipeline for ``url`` against an empty buffer."""
    buffer = TextBuffer()
    auto_link = AutoLinkTitle(config.load_link_title_settings)
    asyncio.run(auto_link.convert_url_to_titled_link(buffer, url))
    return buffer.get_value()


def _run_gui() -> int:
    qInstallMessageHandler(_qt_message_handler)
    app = QApplication.instance() or QApplication(sys.argv[:1])
    if not QNetworkInformation.loadDefaultBackend():
        logger.info("No network information backend; assuming online")
    editor = LinkTitleEditor()
    editor.setWindowTitle("Link Title")
    editor.resize(720, 480)
    editor.show()
    return app.exec()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    _configure_logging(args.debug or _debug_enabled("LINKTITLE_DEBUG"))
    config.init_settings()
    if args.url:
        print(convert_url(args.url))
        return 0
    return _run_gui()


if __name__ == "__main__":
    sys.exit(main())
