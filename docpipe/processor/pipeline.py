"""Processing pipeline: raw scrape output → ``content.json`` + ``index.json``.

``process_documentation`` reads what :class:`~docpipe.scraper.crawler.Crawler`
left in ``settings.raw_dir``:

    manifest.json → main-page.json → normalise →
    each processed PDF's JSON → segment → normalise first N sections →
    build structure → write content.json (processed + web dirs) + index.json
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from docpipe.config import Settings
from docpipe.processor.llm import TextGenerator
from docpipe.processor.normalizer import NormalizedItem, Normalizer
from docpipe.processor.structure import build_index, build_structure
from docpipe.scraper.crawler import MAIN_PAGE_FILE, MANIFEST_FILE
from docpipe.scraper.models import Manifest, PageDocument, PdfExtraction
from docpipe.scraper.pdf import segment_pdf_text
from docpipe.storage import read_json, write_json

logger = logging.getLogger(__name__)

CONTENT_FILE = "content.json"
INDEX_FILE = "index.json"


@dataclass
class ProcessReport:
    items: int
    sections: int
    content_path: Path
    web_content_path: Path
    index_path: Path


async def process_documentation(
    settings: Settings,
    generator: TextGenerator | None = None,
) -> ProcessReport:
    """Normalise scraped content and write the viewer artifacts.

    Args:
        settings: Supplies the raw, processed and web content directories.
        generator: Language-model collaborator; ``None`` means every item is
            rendered by the deterministic fallback.

    Raises:
        FileNotFoundError: If ``manifest.json`` or ``main-page.json`` is missing.
        ManifestError: If either file does not have the expected shape.
    """
    raw_dir = Path(settings.raw_dir)
    manifest_path = raw_dir / MANIFEST_FILE
    if not manifest_path.exists():
        raise FileNotFoundError(
            f"No manifest found at {manifest_path}. Please run the scraper first."
        )

    manifest = Manifest.from_dict(read_json(manifest_path))
    normalizer = Normalizer(generator, max_links=settings.max_resource_links)
    items: list[NormalizedItem] = []

    # ------------------------------------------------------------------
    # 1 — Main page
    # ------------------------------------------------------------------
    logger.info("Processing main page content...")
    main_page = PageDocument.from_dict(read_json(raw_dir / MAIN_PAGE_FILE))
    items.append(await normalizer.normalize(main_page, f"section-{len(items)}"))

    # ------------------------------------------------------------------
    # 2 — PDF sections, capped per PDF
    # ------------------------------------------------------------------
    pdfs = [r for r in manifest.resources if r.type == "pdf" and r.processed]
    logger.info("Processing %d PDF files...", len(pdfs))
    for resource in pdfs:
        pdf_json = raw_dir / f"{resource.name}.json"
        if not pdf_json.exists():
            logger.warning("Missing extraction for %s, skipping", resource.name)
            continue
        extraction = PdfExtraction.from_dict(read_json(pdf_json))
        sections = segment_pdf_text(extraction.text)
        logger.info("%s: %d sections, normalising %d",
                    resource.name, len(sections), min(len(sections), settings.max_pdf_sections))
        for section in sections[: settings.max_pdf_sections]:
            items.append(await normalizer.normalize(section, f"section-{len(items)}"))

    # ------------------------------------------------------------------
    # 3 — Structure and artifacts
    # ------------------------------------------------------------------
    logger.info("Creating website structure...")
    structure = build_structure(items)
    rendered = [item.content for item in items]

    content_path = write_json(
        Path(settings.processed_dir) / CONTENT_FILE,
        {"manifest": manifest.to_dict(), "content": rendered, "structure": structure},
    )
    web_dir = Path(settings.web_content_dir)
    web_dir.mkdir(parents=True, exist_ok=True)
    web_content_path = Path(shutil.copyfile(content_path, web_dir / CONTENT_FILE))
    index_path = write_json(web_dir / INDEX_FILE, build_index(structure, settings))

    logger.info("Processed %d content pieces into %d sections",
                len(rendered), len(structure["sections"]))
    return ProcessReport(
        items=len(rendered),
        sections=len(structure["sections"]),
        content_path=content_path,
        web_content_path=web_content_path,
        index_path=index_path,
    )
