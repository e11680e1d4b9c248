from __future__ import annotations

from dataclasses import dataclass

_URL_ALTERNATIVES = (
    r"https?:\/\/(?:www\.|(?!www))[a-zA-Z0-9][a-zA-Z0-9-]+[a-zA-Z0-9]\.[^\s]{2,}"
    r"|www\.[a-zA-Z0-9][a-zA-Z0-9-]+[a-zA-Z0-9]\.[^\s]{2,}"
    r"|https?:\/\/(?:www\.|(?!www))[a-zA-Z0-9]+\.[^\s]{2,}"
    r"|www\.[a-zA-Z0-9]+\.[^\s]{2,}"
)

# All patterns are compiled case-insensitive.
URL_REGEX = (
    r"^(http:\/\/www\.|https:\/\/www\.|http:\/\/|https:\/\/)?"
    r"[a-z0-9]+([\-.]{1}[a-z0-9]+)*\.[a-z]{2,5}(:[0-9]{1,5})?(\/.*)?$"
)
LINE_REGEX = rf"({_URL_ALTERNATIVES})"
LINK_REGEX = rf"^\[([^\[\]]*)\]\(({_URL_ALTERNATIVES})\)$"
LINK_LINE_REGEX = rf"\[([^\[\]]*)\]\(({_URL_ALTERNATIVES})\)"
ANCHOR_REGEX = r"""^<a\s+[^>]*?href=(["'])(https?:\/\/[^\s"'<>]+)\1[^>]*>.*?<\/a>$"""
IMAGE_REGEX = r"\.(gif|jpe?g|tiff?|png|webp|bmp|tga|psd|ai)$"

DEFAULT_TEMPLATE = "[{{TITLE}}]({{URL}})"
DEFAULT_FETCH_TIMEOUT = 10.0


@dataclass(frozen=True)
class LinkTitleSettings:
    """Read-only snapshot of the user's link-title preferences."""

    enhance_default_paste: bool = True
    should_replace_selection: bool = True
    website_blacklist: str = ""
    template: str = DEFAULT_TEMPLATE
    link_regex: str = LINK_REGEX
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
