"""Tests for the generic and arXiv title resolvers."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from linktitle.paste.resolvers import (
    ARXIV_UNREACHABLE,
    SITE_UNREACHABLE,
    ArxivEntry,
    ArxivParseError,
    ArxivResolver,
    fetch_url_title,
    get_identifier_from_url,
    parse_arxiv_entry,
    render_template,
)
from linktitle.paste.scraper import MAX_PAGE_BYTES, TitleNotFoundError, extract_title, get_page_title

ATOM_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <link href="http://arxiv.org/api/query?id_list=1706.03762" rel="self" type="application/atom+xml"/>
  <title type="html">ArXiv Query: search_query=&amp;id_list=1706.03762</title>
  <id>http://arxiv.org/api/abc</id>
  <entry>
    <id>http://arxiv.org/abs/1706.03762v7</id>
    <published>2017-06-12T17:57:34Z</published>
    <title>Attention Is All
 You Need</title>
    <summary>  The dominant sequence transduction models
are based on complex recurrent networks.
</summary>
    <author><name>Ashish Vaswani</name></author>
    <author><name>Noam Shazeer</name></author>
  </entry>
</feed>
"""


def _arxiv(handler) -> ArxivResolver:
    return ArxivResolver(transport=httpx.MockTransport(handler))


def test_identifier_from_url():
    assert get_identifier_from_url("https://arxiv.org/abs/1234.5678") == "1234.5678"


def test_identifier_from_url_with_trailing_slash():
    assert get_identifier_from_url("https://arxiv.org/abs/1234.5678/") == "1234.5678"


def test_parse_arxiv_entry_uses_entry_title_not_feed_title():
    entry = parse_arxiv_entry(ATOM_FEED)
    assert entry.title == "Attention Is All\n You Need"
    assert entry.authors == ["Ashish Vaswani", "Noam Shazeer"]
    assert entry.author_string == "Ashish Vaswani, Noam Shazeer"
    assert entry.published == "2017-06-12"
    assert entry.abstract.startswith("  The dominant")


def test_parse_arxiv_entry_without_entry_title():
    feed = ATOM_FEED.replace("<title>Attention Is All\n You Need</title>", "")
    assert parse_arxiv_entry(feed).title == "undefined"


def test_parse_arxiv_entry_without_summary_fails():
    feed = ATOM_FEED.replace("<summary>", "<note>").replace("</summary>", "</note>")
    with pytest.raises(ArxivParseError):
        parse_arxiv_entry(feed)


def test_render_template_fills_every_token():
    entry = ArxivEntry(title="A *bold* idea", abstract="Line\nbreaks", published="2020-01-02", authors=["A", "B"])
    template = "{{TITLE}}|{{AUTHOR}}|{{ABSTRACT}}|{{DATEPUBLISHED}}|{{URL}}|{{ARXIVID}}"
    rendered = render_template(template, entry, "https://arxiv.org/abs/2001.1", "2001.1")
    assert rendered == "A \\*bold\\* idea|A, B|Line breaks|2020-01-02|https://arxiv.org/abs/2001.1|2001.1"


def test_render_template_replaces_first_occurrence_only():
    entry = ArxivEntry(title="T", abstract="", published="")
    assert render_template("{{TITLE}} and {{TITLE}}", entry, "u", "i") == "T and {{TITLE}}"


def test_arxiv_resolver_renders_template():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, text=ATOM_FEED)

    template = "[{{TITLE}}]({{URL}}) by {{AUTHOR}}, {{DATEPUBLISHED}} ({{ARXIVID}})"
    resolution = asyncio.run(_arxiv(handler).resolve("https://arxiv.org/abs/1706.03762", template))
    assert resolution.succeeded
    assert resolution.text == (
        "[Attention Is All You Need](https://arxiv.org/abs/1706.03762) "
        "by Ashish Vaswani, Noam Shazeer, 2017-06-12 (1706.03762)"
    )
    assert requests[0].url.params["id_list"] == "1706.03762"
    assert requests[0].url.host == "export.arxiv.org"


def test_arxiv_resolver_follows_redirects():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.scheme == "http":
            return httpx.Response(301, headers={"Location": str(request.url.copy_with(scheme="https"))})
        return httpx.Response(200, text=ATOM_FEED)

    resolver = ArxivResolver("http://export.arxiv.org/api/query", transport=httpx.MockTransport(handler))
    resolution = asyncio.run(resolver.resolve("https://arxiv.org/abs/1706.03762", "{{TITLE}}"))
    assert resolution.succeeded
    assert resolution.text == "Attention Is All You Need"


def test_arxiv_resolver_http_error_falls_back():
    resolution = asyncio.run(
        _arxiv(lambda request: httpx.Response(503)).resolve("https://arxiv.org/abs/1", "{{TITLE}}")
    )
    assert not resolution.succeeded
    assert resolution.text == ARXIV_UNREACHABLE
    assert "HTTPStatusError" in resolution.error


def test_arxiv_resolver_bad_xml_falls_back():
    resolution = asyncio.run(
        _arxiv(lambda request: httpx.Response(200, text="<feed><unclosed>")).resolve(
            "https://arxiv.org/abs/1", "{{TITLE}}"
        )
    )
    assert resolution.text == ARXIV_UNREACHABLE


def test_arxiv_resolver_network_error_falls_back():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    resolution = asyncio.run(_arxiv(handler).resolve("https://arxiv.org/abs/1", "{{TITLE}}"))
    assert resolution.text == ARXIV_UNREACHABLE


def test_fetch_url_title_strips_line_breaks():
    async def fetch(url: str) -> str:
        return "Example  Title\n"

    resolution = asyncio.run(fetch_url_title("https://example.com", fetch))
    assert resolution.succeeded
    assert resolution.text == "Example  Title"


def test_fetch_url_title_failure_is_site_unreachable():
    async def fetch(url: str) -> str:
        raise httpx.ConnectTimeout("timed out")

    resolution = asyncio.run(fetch_url_title("https://example.com", fetch))
    assert not resolution.succeeded
    assert resolution.text == SITE_UNREACHABLE
    assert resolution.error.startswith("ConnectTimeout")


def test_extract_title_prefers_title_tag():
    html = '<html><head><meta property="og:title" content="OG"><title> Hello &amp; World </title></head></html>'
    assert extract_title(html) == "Hello & World"


def test_extract_title_falls_back_to_og_title():
    assert extract_title('<head><meta property="og:title" content="Open Graph"></head>') == "Open Graph"
    assert extract_title("<p>no title</p>") is None


def test_get_page_title_follows_redirects():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(200, text="<title>New Page</title>")

    title = asyncio.run(get_page_title("https://example.com/old", transport=httpx.MockTransport(handler)))
    assert title == "New Page"


def test_get_page_title_without_title_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<p>nothing</p>"))
    with pytest.raises(TitleNotFoundError):
        asyncio.run(get_page_title("https://example.com", transport=transport))


def test_get_page_title_http_error_propagates():
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(get_page_title("example.com/missing", transport=transport))


def test_get_page_title_reads_only_the_head_of_large_pages():
    head = "<html><head><title>Big Page</title></head><body>"
    body = "x" * (MAX_PAGE_BYTES * 3)
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=head + body))
    assert asyncio.run(get_page_title("https://example.com", transport=transport)) == "Big Page"


def test_get_page_title_ignores_title_past_the_read_limit():
    html = "<p>" + "x" * MAX_PAGE_BYTES + "</p><title>Too Late</title>"
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=html))
    with pytest.raises(TitleNotFoundError):
        asyncio.run(get_page_title("https://example.com", transport=transport))
