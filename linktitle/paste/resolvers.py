"""Turn a URL into the text that replaces its placeholder.

Both resolvers are total: whatever happens on the network they return a
:class:`Resolution` whose ``text`` can be written into the document.
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterator, Optional

import httpx

from .escape import collapse_line_breaks, escape_markdown, strip_line_breaks
from .settings import DEFAULT_FETCH_TIMEOUT

logger = logging.getLogger(__name__)

SITE_UNREACHABLE = "Site Unreachable"
ARXIV_UNREACHABLE = "arXiv unreachable or error"
ARXIV_API_URL = "https://export.arxiv.org/api/query"
ARXIV_MARKER = "arxiv.org"

TitleFetcher = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class Resolution:
    text: str
    succeeded: bool = True
    error: Optional[str] = None

    @classmethod
    def fallback(cls, text: str, error: BaseException) -> "Resolution":
        return cls(text=text, succeeded=False, error=f"{type(error).__name__}: {error}")


async def fetch_url_title(url: str, fetch_title: TitleFetcher) -> Resolution:
    """Resolve a page title through ``fetch_title``; any failure yields "Site Unreachable"."""
    try:
        title = await fetch_title(url)
    except Exception as exc:
        logger.exception("Title fetch failed for %s", url)
        return Resolution.fallback(SITE_UNREACHABLE, exc)
    return Resolution(strip_line_breaks(title or "").strip())


def is_arxiv_url(url: str) -> bool:
    return ARXIV_MARKER in url


def get_identifier_from_url(url: str) -> str:
    """``https://arxiv.org/abs/1234.5678/`` -> ``1234.5678``"""
    if url.endswith("/"):
        url = url[:-1]
    return url.split("/")[-1]


class ArxivParseError(ValueError):
    """The arXiv feed lacks an element the template needs."""


@dataclass
class ArxivEntry:
    title: str
    abstract: str
    published: str
    authors: list[str] = field(default_factory=list)

    @property
    def author_string(self) -> str:
        return ", ".join(self.authors)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _elements(root: ET.Element, name: str) -> Iterator[ET.Element]:
    """Document-order elements named ``name`` in any namespace."""
    return (el for el in root.iter() if _local_name(el.tag) == name)


def _first(root: ET.Element, name: str) -> ET.Element:
    element = next(_elements(root, name), None)
    if element is None:
        raise ArxivParseError(f"missing <{name}> element")
    return element


def parse_arxiv_entry(payload: bytes | str) -> ArxivEntry:
    """Extract the first entry of an arXiv Atom feed.

    The feed's own ``<title>`` comes first, so the entry title is the second
    one. A missing entry title becomes ``"undefined"``; a missing summary or
    publication date raises ArxivParseError.
    """
    root = ET.fromstring(payload)
    titles = list(_elements(root, "title"))
    title = titles[1].text if len(titles) > 1 else None
    abstract = _first(root, "summary").text or ""
    authors = []
    for author in _elements(root, "author"):
        authors.append(_first(author, "name").text or "")
    published = (_first(root, "published").text or "").split("T")[0]
    return ArxivEntry(
        title=title if title is not None else "undefined",
        abstract=abstract,
        published=published,
        authors=authors,
    )


def render_template(template: str, entry: ArxivEntry, url: str, identifier: str) -> str:
    """Fill each ``{{TOKEN}}`` once; a repeated token keeps its later occurrences."""
    values = (
        ("{{TITLE}}", escape_markdown(entry.title)),
        ("{{AUTHOR}}", escape_markdown(entry.author_string)),
        ("{{ABSTRACT}}", collapse_line_breaks(entry.abstract)),
        ("{{DATEPUBLISHED}}", entry.published),
        ("{{URL}}", url),
        ("{{ARXIVID}}", identifier),
    )
    content = template
    for token, value in values:
        content = content.replace(token, value, 1)
    return content


class ArxivResolver:
    """Queries the arXiv export API and renders the result through a template."""

    def __init__(
        self,
        api_url: str = ARXIV_API_URL,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    async def fetch_feed(self, identifier: str, timeout: Optional[float] = None) -> bytes:
        async with httpx.AsyncClient(
            timeout=timeout or self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            resp = await client.get(self.api_url, params={"id_list": identifier})
            resp.raise_for_status()
            return resp.content

    async def resolve(self, url: str, template: str, *, timeout: Optional[float] = None) -> Resolution:
        identifier = get_identifier_from_url(url)
        try:
            entry = parse_arxiv_entry(await self.fetch_feed(identifier, timeout))
        except httpx.HTTPError as exc:
            logger.warning("arXiv request failed for %s: %s", identifier, exc)
            return Resolution.fallback(ARXIV_UNREACHABLE, exc)
        except (ET.ParseError, ArxivParseError) as exc:
            logger.warning("arXiv response for %s could not be parsed: %s", identifier, exc)
            return Resolution.fallback(ARXIV_UNREACHABLE, exc)
        except Exception as exc:
            logger.exception("arXiv lookup failed for %s", identifier)
            return Resolution.fallback(ARXIV_UNREACHABLE, exc)
        return Resolution(render_template(template, entry, url, identifier))
