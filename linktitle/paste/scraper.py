from __future__ import annotations

import logging
from html.parser import HTMLParser
from typing import Optional

import httpx

from .settings import DEFAULT_FETCH_TIMEOUT

logger = logging.getLogger(__name__)

USER_AGENT = "linktitle/0.1 (+https://pypi.org/project/linktitle/)"
MAX_PAGE_BYTES = 100 * 1024  # the title sits in <head>; stop reading after 100 KB


class TitleNotFoundError(Exception):
    """Raised when a fetched page carries no usable title."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No title found for {url}")
        self.url = url


class _TitleParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.title: Optional[str] = None
        self.og_title: Optional[str] = None
        self._in_title = False
        self._parts: list[str] = []

    def handle_starttag(self, tag: str, attrs) -> None:
        tag = tag.lower()
        if tag == "title" and self.title is None:
            self._in_title = True
            self._parts = []
            return
        if tag == "meta" and self.og_title is None:
            values = {key.lower(): (value or "") for key, value in attrs}
            if values.get("property", "").lower() == "og:title":
                self.og_title = values.get("content") or None

    def handle_endtag(self, tag: str) -> None:
        if tag.lower() == "title" and self._in_title:
            self._in_title = False
            self.title = "".join(self._parts)

    def handle_data(self, data: str) -> None:
        if self._in_title:
            self._parts.append(data)


def extract_title(html: str) -> Optional[str]:
    """Return the ``<title>`` of an HTML page, falling back to ``og:title``."""
    parser = _TitleParser()
    parser.feed(html)
    parser.close()
    for candidate in (parser.title, parser.og_title):
        if candidate and candidate.strip():
            return candidate.strip()
    return None


async def get_page_title(url: str, *, timeout: float = DEFAULT_FETCH_TIMEOUT, transport=None) -> str:
    """Fetch ``url`` and return its human-readable title.

    ``httpx`` errors propagate; a page without a title raises TitleNotFoundError.
    """
    target = url if "://" in url else f"https://{url}"
    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    ) as client:
        async with client.stream("GET", target) as resp:
            resp.raise_for_status()
            raw = b""
            async for chunk in resp.aiter_bytes():
                raw += chunk
                if len(raw) >= MAX_PAGE_BYTES:
                    break
            encoding = resp.encoding or "utf-8"
    title = extract_title(raw[:MAX_PAGE_BYTES].decode(encoding, errors="replace"))
    if title is None:
        raise TitleNotFoundError(url)
    logger.debug("Fetched title %r for %s", title, url)
    return title
