"""Scraper package — fetch, page/PDF extraction and crawl orchestration."""

from docpipe.scraper.crawler import Crawler, CrawlReport
from docpipe.scraper.extractor import extract_page
from docpipe.scraper.fetcher import Fetcher
from docpipe.scraper.models import FetchResult, Manifest, PageDocument, PdfSection, ResourceRecord
from docpipe.scraper.pdf import extract_pdf, extract_pdf_file, segment_pdf_text

__all__ = [
    "Crawler",
    "CrawlReport",
    "Fetcher",
    "FetchResult",
    "Manifest",
    "PageDocument",
    "PdfSection",
    "ResourceRecord",
    "extract_page",
    "extract_pdf",
    "extract_pdf_file",
    "segment_pdf_text",
]
