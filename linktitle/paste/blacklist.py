from __future__ import annotations

import re
from urllib.parse import urlsplit

from .settings import LinkTitleSettings

_SEPARATORS = re.compile(r",|\n")


def parse_blacklist(raw: str) -> list[str]:
    """Split a comma/newline separated blacklist, trimming and dropping blanks."""
    entries: list[str] = []
    for token in _SEPARATORS.split(raw or ""):
        cleaned = token.strip()
        if cleaned:
            entries.append(cleaned)
    return entries


def get_hostname(url: str) -> str:
    """Host part of ``url``; bare ``example.com/page`` style URLs are treated as http."""
    try:
        host = urlsplit(url).hostname or urlsplit(f"http://{url}").hostname
    except ValueError:
        # Unbalanced "[" or "]" in the netloc
        return url
    return host or url


def is_blacklisted(url: str, settings: LinkTitleSettings) -> bool:
    """True if any blacklist entry occurs anywhere in the URL (case-sensitive)."""
    entries = parse_blacklist(settings.website_blacklist)
    if not entries:
        return False
    host = get_hostname(url)
    return any(entry in url or entry in host for entry in entries)


def blacklisted_link(url: str) -> str:
    return f"[{get_hostname(url)}]({url})"
