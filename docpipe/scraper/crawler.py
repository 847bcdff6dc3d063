"""Crawl orchestration: main page → PDFs → related pages → manifest.

``Crawler.run`` drives one complete scrape:

    fetch main page (fatal on failure) → extract → save main-page.json →
    download + extract each linked PDF → scrape up to N related pages →
    write manifest.json

Everything runs strictly one request at a time; a fixed pacing delay is
awaited before every secondary fetch.  Failures on a PDF or a related page are
recorded and skipped.  The manifest is written once, last, so an aborted run
never leaves one behind.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import unquote, urlparse

from docpipe.config import Settings
from docpipe.errors import DocpipeError
from docpipe.scraper.extractor import extract_page
from docpipe.scraper.fetcher import Fetcher
from docpipe.scraper.models import (
    Link,
    Manifest,
    PageDocument,
    PageReference,
    ResourceRecord,
)
from docpipe.scraper.pdf import extract_pdf
from docpipe.storage import write_json

logger = logging.getLogger(__name__)

MAIN_PAGE_FILE = "main-page.json"
MANIFEST_FILE = "manifest.json"


# ---------------------------------------------------------------------------
# Link discovery
# ---------------------------------------------------------------------------

def discover_pdf_links(links: tuple[Link, ...] | list[Link]) -> list[Link]:
    """Every link whose absolute URL ends in ``.pdf``."""
    return [lnk for lnk in links if lnk.href.endswith(".pdf")]


def discover_related_links(
    links: tuple[Link, ...] | list[Link],
    domain: str,
    limit: int,
) -> list[Link]:
    """Links on *domain* that are neither PDFs nor fragment links, capped at *limit*."""
    related = [
        lnk
        for lnk in links
        if domain in lnk.href and not lnk.href.endswith(".pdf") and "#" not in lnk.href
    ]
    return related[:limit]


def pdf_name(url: str) -> str:
    """Local file name for a PDF URL: the decoded basename of its path."""
    name = unquote(Path(urlparse(url).path).name)
    return name or "document.pdf"


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

@dataclass
class CrawlReport:
    manifest: Manifest
    manifest_path: Path
    pages_scraped: int
    pdfs_processed: int
    pdfs_failed: int
    pages_failed: int


class Crawler:
    """Run one scrape of a documentation page and its linked resources."""

    def __init__(self, settings: Settings, fetcher: Fetcher | None = None) -> None:
        self._settings = settings
        self._fetcher = fetcher or Fetcher(settings)
        self._out_dir = Path(settings.raw_dir)

    async def run(self, url: str) -> CrawlReport:
        """Scrape *url* and everything it links to.

        Raises:
            NetworkError: If the main page cannot be fetched.
            ParseError: If the main page cannot be parsed.
            OSError: If the main page or manifest cannot be written.
        """
        self._out_dir.mkdir(parents=True, exist_ok=True)
        manifest = Manifest(main_url=url, started_at=datetime.now(timezone.utc).isoformat())
        pages_failed = 0

        try:
            # ----------------------------------------------------------
            # 1 — Main page (fatal on failure)
            # ----------------------------------------------------------
            main_page = await self._scrape(url)
            manifest.content.append(main_page)
            main_path = write_json(self._out_dir / MAIN_PAGE_FILE, main_page.to_dict())
            logger.info("Saved main page content to %s", main_path)

            # ----------------------------------------------------------
            # 2 — PDFs
            # ----------------------------------------------------------
            pdf_links = discover_pdf_links(main_page.links)
            logger.info("Found %d PDF files", len(pdf_links))
            for link in pdf_links:
                await self._pace()
                manifest.resources.append(await self._process_pdf(link))

            # ----------------------------------------------------------
            # 3 — Related pages
            # ----------------------------------------------------------
            domain = self._settings.related_domain or urlparse(url).netloc
            related = discover_related_links(
                main_page.links, domain, self._settings.max_related_pages
            )
            logger.info("Found %d related pages to scrape", len(related))
            for link in related:
                await self._pace()
                reference = await self._process_related(link)
                if reference is None:
                    pages_failed += 1
                else:
                    manifest.content.append(reference)

            # ----------------------------------------------------------
            # 4 — Manifest, written last
            # ----------------------------------------------------------
            manifest_path = write_json(self._out_dir / MANIFEST_FILE, manifest.to_dict())
            logger.info("Scraping complete! Manifest saved to %s", manifest_path)
        finally:
            await self._fetcher.aclose()

        processed = sum(1 for r in manifest.resources if r.processed)
        return CrawlReport(
            manifest=manifest,
            manifest_path=manifest_path,
            pages_scraped=len(manifest.content),
            pdfs_processed=processed,
            pdfs_failed=len(manifest.resources) - processed,
            pages_failed=pages_failed,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _pace(self) -> None:
        if self._settings.request_delay > 0:
            await asyncio.sleep(self._settings.request_delay)

    async def _scrape(self, url: str) -> PageDocument:
        logger.info("Scraping: %s", url)
        result = await self._fetcher.fetch(url, kind="text")
        result.raise_for_failure()
        return extract_page(result.body, url, source_label=self._settings.source_label)

    async def _process_pdf(self, link: Link) -> ResourceRecord:
        name = pdf_name(link.href)
        record = ResourceRecord(type="pdf", name=name, url=link.href)
        pdf_path = self._out_dir / name

        try:
            logger.info("Downloading: %s", link.href)
            result = await self._fetcher.fetch(link.href, kind="binary", dest=pdf_path)
            result.raise_for_failure()
            data = await asyncio.to_thread(pdf_path.read_bytes)
            extraction = await asyncio.to_thread(extract_pdf, data)
            write_json(self._out_dir / f"{name}.json", extraction.to_dict())
        except (DocpipeError, OSError) as exc:
            logger.warning("Failed to process PDF %s: %s", name, exc)
            record.mark_failed(str(exc))
        else:
            logger.info("Downloaded PDF: %s (%d pages)", name, extraction.page_count)
            record.mark_processed(pdf_path)
        return record

    async def _process_related(self, link: Link) -> PageReference | None:
        try:
            page = await self._scrape(link.href)
            path = self._unique_page_path()
            write_json(path, page.to_dict())
        except (DocpipeError, OSError) as exc:
            logger.warning("Failed to scrape %s: %s", link.href, exc)
            return None
        return PageReference(url=link.href, file=path.name)

    def _unique_page_path(self) -> Path:
        stamp = int(time.time() * 1000)
        path = self._out_dir / f"page-{stamp}.json"
        while path.exists():
            stamp += 1
            path = self._out_dir / f"page-{stamp}.json"
        return path
