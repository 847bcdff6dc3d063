"""Tests for the scraper stage — fetcher, page extractor and PDF extractor.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made during ``Fetcher`` tests.
- Retry back-off is configured to zero in ``test_settings`` so retries are
  instantaneous.
- PDFs are generated in-memory with ``pypdf.PdfWriter``.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import respx

from docpipe.errors import NetworkError, ParseError, PdfParseError
from docpipe.scraper.extractor import extract_page
from docpipe.scraper.fetcher import Fetcher
from docpipe.scraper.models import FetchResult, Heading, Image, Link
from docpipe.scraper.pdf import (
    extract_pdf,
    extract_pdf_file,
    is_section_title,
    segment_pdf_text,
)


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_DOC_HTML = """\
<!DOCTYPE html>
<html>
<head><title>  Experience Builder Guide  </title></head>
<body>
  <h1>Guide</h1>
  <p>First paragraph.</p>
  <p>   </p>
  <h2>Widgets</h2>
  <p>Second paragraph.</p>
  <pre>npm install</pre>
  <code></code>
  <h3>Map widget</h3>
  <h5>Too deep</h5>
  <h4>Details</h4>
  <a href="/a">Absolute from root</a>
  <a>No href</a>
  <a href="">Empty href</a>
  <a href="sibling">Relative</a>
  <a href="https://other.org/x.pdf">Manual</a>
  <img src="img/logo.png" alt="Logo">
  <img src="https://cdn.example.com/b.png">
  <img alt="no source">
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

class TestFetcher:
    async def test_successful_text_fetch(self, test_settings) -> None:
        with respx.mock:
            route = respx.get("https://example.com/doc").mock(
                return_value=httpx.Response(200, text=_DOC_HTML)
            )
            async with Fetcher(test_settings) as fetcher:
                result = await fetcher.fetch("https://example.com/doc")

        assert route.call_count == 1
        assert result.ok
        assert result.status == "success"
        assert "<title>" in result.body

    async def test_sends_user_agent(self, test_settings) -> None:
        with respx.mock:
            route = respx.get("https://example.com/").mock(return_value=httpx.Response(200))
            async with Fetcher(test_settings) as fetcher:
                await fetcher.fetch("https://example.com/")

        sent = route.calls.last.request
        assert sent.headers["User-Agent"] == test_settings.user_agent

    async def test_retries_then_succeeds(self, test_settings) -> None:
        with respx.mock:
            route = respx.get("https://example.com/flaky").mock(
                side_effect=[httpx.ConnectError("boom"), httpx.Response(200, text="ok")]
            )
            async with Fetcher(test_settings) as fetcher:
                result = await fetcher.fetch("https://example.com/flaky")

        assert route.call_count == 2
        assert result.ok
        assert result.body == "ok"

    async def test_exhausted_retries_yield_failed_result(self, test_settings) -> None:
        """max_retries=2 means three attempts in total, then a failed result."""
        with respx.mock:
            route = respx.get("https://example.com/down").mock(
                return_value=httpx.Response(503)
            )
            async with Fetcher(test_settings) as fetcher:
                result = await fetcher.fetch("https://example.com/down")

        assert route.call_count == 3
        assert result.status == "failed"
        assert "503" in result.error

    async def test_binary_fetch_returns_bytes(self, test_settings) -> None:
        with respx.mock:
            respx.get("https://example.com/blob").mock(
                return_value=httpx.Response(200, content=b"\x00\x01binary")
            )
            async with Fetcher(test_settings) as fetcher:
                result = await fetcher.fetch("https://example.com/blob", kind="binary")

        assert result.body == b"\x00\x01binary"

    async def test_binary_fetch_streams_to_destination(self, test_settings, tmp_path) -> None:
        dest = tmp_path / "nested" / "file.pdf"
        payload = b"%PDF-1.4 " + b"x" * 200_000
        with respx.mock:
            respx.get("https://example.com/file.pdf").mock(
                return_value=httpx.Response(200, content=payload)
            )
            async with Fetcher(test_settings) as fetcher:
                result = await fetcher.fetch("https://example.com/file.pdf", kind="binary", dest=dest)

        assert result.body == dest
        assert dest.read_bytes() == payload
        assert [p.name for p in dest.parent.iterdir()] == ["file.pdf"]

    async def test_failed_download_leaves_no_file(self, test_settings, tmp_path) -> None:
        dest = tmp_path / "missing.pdf"
        with respx.mock:
            respx.get("https://example.com/missing.pdf").mock(return_value=httpx.Response(404))
            async with Fetcher(test_settings) as fetcher:
                result = await fetcher.fetch("https://example.com/missing.pdf", kind="binary", dest=dest)

        assert not result.ok
        assert list(tmp_path.iterdir()) == []

    async def test_invalid_url_fails_without_retry(self, test_settings, tmp_path) -> None:
        dest = tmp_path / "a.pdf"
        with respx.mock:
            async with Fetcher(test_settings) as fetcher:
                text = await fetcher.fetch("https://docs.example.com:abc/a")
                binary = await fetcher.fetch(
                    "https://docs.example.com:abc/a.pdf", kind="binary", dest=dest
                )

        assert text.status == binary.status == "failed"
        assert "port" in binary.error.lower()
        assert list(tmp_path.iterdir()) == []


class TestFetchResult:
    def test_raise_for_failure_raises_network_error(self) -> None:
        result = FetchResult(url="https://x.com", status="failed", error="timed out")
        with pytest.raises(NetworkError, match="timed out"):
            result.raise_for_failure()

    def test_raise_for_failure_noop_on_success(self) -> None:
        FetchResult(url="https://x.com", status="success", body="").raise_for_failure()


# ---------------------------------------------------------------------------
# Page extractor
# ---------------------------------------------------------------------------

class TestExtractPage:
    def test_title_prefers_title_element(self) -> None:
        doc = extract_page(_DOC_HTML, "https://example.com/docs/guide")
        assert doc.title == "Experience Builder Guide"

    def test_title_falls_back_to_first_h1(self) -> None:
        doc = extract_page("<html><body><h1> Hello </h1><h1>Later</h1></body></html>", "https://x.com")
        assert doc.title == "Hello"

    def test_title_empty_when_missing(self) -> None:
        assert extract_page("<html><body><p>x</p></body></html>", "https://x.com").title == ""

    def test_headings_levels_and_order(self) -> None:
        doc = extract_page(_DOC_HTML, "https://example.com/docs/guide")
        assert doc.headings == (
            Heading(1, "Guide"),
            Heading(2, "Widgets"),
            Heading(3, "Map widget"),
            Heading(4, "Details"),
        )

    def test_empty_paragraphs_dropped(self) -> None:
        doc = extract_page(_DOC_HTML, "https://example.com/docs/guide")
        assert doc.paragraphs == ("First paragraph.", "Second paragraph.")

    def test_code_blocks_non_empty(self) -> None:
        doc = extract_page(_DOC_HTML, "https://example.com/docs/guide")
        assert doc.code_blocks == ("npm install",)

    def test_links_resolved_and_filtered(self) -> None:
        doc = extract_page(_DOC_HTML, "https://example.com/docs/guide")
        assert doc.links == (
            Link("https://example.com/a", "Absolute from root"),
            Link("https://example.com/docs/sibling", "Relative"),
            Link("https://other.org/x.pdf", "Manual"),
        )

    def test_root_relative_link_against_nested_page(self) -> None:
        doc = extract_page('<a href="/a">a</a>', "https://x.com/b/c")
        assert doc.links[0].href == "https://x.com/a"

    def test_every_url_is_absolute(self) -> None:
        doc = extract_page(_DOC_HTML, "https://example.com/docs/guide")
        for url in [lnk.href for lnk in doc.links] + [img.src for img in doc.images]:
            assert url.startswith(("http://", "https://"))

    def test_images_resolved_with_default_alt(self) -> None:
        doc = extract_page(_DOC_HTML, "https://example.com/docs/guide")
        assert doc.images == (
            Image("https://example.com/docs/img/logo.png", "Logo"),
            Image("https://cdn.example.com/b.png", ""),
        )

    def test_malformed_markup_does_not_raise(self) -> None:
        doc = extract_page("<html><body><p>unclosed <div><a href='/x'>x", "https://x.com/")
        assert doc.paragraphs
        assert doc.links[0].href == "https://x.com/x"

    def test_empty_document_yields_empty_lists(self) -> None:
        doc = extract_page("", "https://x.com/")
        assert doc.headings == doc.paragraphs == doc.code_blocks == doc.links == doc.images == ()

    def test_non_markup_input_raises_parse_error(self) -> None:
        with pytest.raises(ParseError):
            extract_page(None, "https://x.com/")  # type: ignore[arg-type]

    def test_metadata_populated(self) -> None:
        doc = extract_page(_DOC_HTML, "https://example.com/", source_label="esri-community")
        assert doc.source_label == "esri-community"
        assert doc.scraped_at
        assert doc.to_dict()["metadata"]["source"] == "esri-community"

    def test_empty_headings_dropped(self) -> None:
        doc = extract_page("<h1>A</h1><h2>  </h2><h3></h3>", "https://x.com/")
        assert doc.headings == (Heading(1, "A"),)

    def test_unparseable_urls_skipped(self) -> None:
        html = (
            '<p>ok</p><a href="http://[::1/x">bad</a><a href="/fine">fine</a>'
            '<img src="http://[cdn.example.com/a.png"><img src="b.png">'
        )
        doc = extract_page(html, "https://x.com/docs/")
        assert doc.paragraphs == ("ok",)
        assert doc.links == (Link("https://x.com/fine", "fine"),)
        assert doc.images == (Image("https://x.com/docs/b.png", ""),)


# ---------------------------------------------------------------------------
# PDF extractor
# ---------------------------------------------------------------------------

class TestExtractPdf:
    def test_valid_pdf(self, blank_pdf: bytes) -> None:
        extraction = extract_pdf(blank_pdf)
        assert extraction.page_count == 1
        assert extraction.text == ""
        assert extraction.metadata["encrypted"] is False

    def test_invalid_bytes_raise(self) -> None:
        with pytest.raises(PdfParseError):
            extract_pdf(b"this is not a pdf at all")

    def test_empty_bytes_raise(self) -> None:
        with pytest.raises(PdfParseError):
            extract_pdf(b"")

    def test_extract_file(self, tmp_path: Path, blank_pdf: bytes) -> None:
        path = tmp_path / "doc.pdf"
        path.write_bytes(blank_pdf)
        assert extract_pdf_file(path).page_count == 1

    def test_extract_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            extract_pdf_file(tmp_path / "nope.pdf")

    def test_unexpected_reader_error_wrapped(self, monkeypatch, blank_pdf: bytes) -> None:
        """Damaged files can make pypdf fail with arbitrary exception types."""
        def _broken_reader(stream):
            raise AttributeError("'NumberObject' object has no attribute 'items'")

        monkeypatch.setattr("docpipe.scraper.pdf.pypdf.PdfReader", _broken_reader)
        with pytest.raises(PdfParseError, match="NumberObject"):
            extract_pdf(blank_pdf)


class TestSegmentPdfText:
    def test_two_sections(self) -> None:
        sections = segment_pdf_text("TITLE ONE\nfoo\nbar\nTITLE TWO\nbaz")
        assert [(s.title, s.content) for s in sections] == [
            ("TITLE ONE", ["foo", "bar"]),
            ("TITLE TWO", ["baz"]),
        ]

    def test_three_char_line_is_content(self) -> None:
        sections = segment_pdf_text("INTRO\nABC\nmore")
        assert sections[0].title == "INTRO"
        assert sections[0].content == ["ABC", "more"]

    def test_fifty_char_line_is_content(self) -> None:
        long_line = "A" * 50
        assert not is_section_title(long_line)
        assert is_section_title("A" * 49)
        sections = segment_pdf_text(f"HEADER\n{long_line}")
        assert sections[0].content == [long_line]

    def test_title_without_content_is_not_emitted(self) -> None:
        sections = segment_pdf_text("COVER PAGE\nCHAPTER ONE\ntext")
        assert len(sections) == 1
        assert sections[0].title == "CHAPTER ONE"

    def test_leading_content_gets_empty_title(self) -> None:
        sections = segment_pdf_text("preamble line\nSECTION\nbody")
        assert sections[0].title == ""
        assert sections[0].content == ["preamble line"]

    def test_blank_lines_and_whitespace_trimmed(self) -> None:
        sections = segment_pdf_text("  OVERVIEW  \n\n   first  \n\n")
        assert sections[0].title == "OVERVIEW"
        assert sections[0].content == ["first"]

    def test_trailing_title_dropped(self) -> None:
        assert len(segment_pdf_text("ONE ONE\nx\nDANGLING")) == 1

    def test_empty_text(self) -> None:
        assert segment_pdf_text("") == []
