"""docpipe CLI — entry-point for scraping and processing runs.

Usage:
    python cli/main.py --help

Commands:
    scrape   → crawl a documentation page, its PDFs and related pages
    pdf      → print the extraction record for one local PDF
    process  → normalise scraped content into the viewer's content.json
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from docpipe.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import dataclasses
import json
import logging
from typing import Optional

import typer

from docpipe.config import settings
from docpipe.errors import DocpipeError
from docpipe.logging_setup import setup_logging

logger = logging.getLogger("docpipe.cli")

DEFAULT_URL = (
    "https://community.esri.com/t5/esri-training-documents/"
    "arcgis-experience-builder-advanced-techniques/ta-p/1651520"
)

app = typer.Typer(
    name="docpipe",
    help="Scrape documentation and turn it into simplified viewer content.",
    no_args_is_help=True,
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging.")) -> None:
    setup_logging(logging.DEBUG if verbose else logging.INFO)


# ---------------------------------------------------------------------------
# scrape
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Argument(DEFAULT_URL, help="Documentation page to scrape."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory."),
) -> None:
    """Scrape a page, download its PDFs and related pages, and write a manifest."""
    from docpipe.scraper import Crawler

    run_settings = dataclasses.replace(settings, raw_dir=output) if output else settings
    typer.echo(f"[scrape] Starting documentation scrape of {url!r} …")
    try:
        run_settings.ensure_dirs()
        report = asyncio.run(Crawler(run_settings).run(url))
    except (DocpipeError, OSError) as exc:
        logger.error("Scraping failed: %s", exc)
        raise typer.Exit(1)

    typer.echo("")
    typer.echo("=== Scraping Summary ===")
    typer.echo(f"Pages scraped   : {report.pages_scraped}")
    typer.echo(f"Pages failed    : {report.pages_failed}")
    typer.echo(f"PDFs downloaded : {report.pdfs_processed}")
    typer.echo(f"PDFs failed     : {report.pdfs_failed}")
    typer.echo(f"Output directory: {run_settings.raw_dir}")


# ---------------------------------------------------------------------------
# pdf
# ---------------------------------------------------------------------------
@app.command("pdf")
def pdf(
    file: Path = typer.Argument(..., help="Local path to a PDF file."),
) -> None:
    """Process a single PDF file and print its extraction record."""
    from docpipe.scraper import extract_pdf_file

    try:
        extraction = extract_pdf_file(file)
    except (DocpipeError, OSError) as exc:
        logger.error("Error processing PDF %s: %s", file, exc)
        raise typer.Exit(1)
    typer.echo(json.dumps(extraction.to_dict(), indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# process
# ---------------------------------------------------------------------------
@app.command("process")
def process() -> None:
    """Normalise scraped content and write content.json and index.json."""
    from docpipe.processor import build_generator, process_documentation

    typer.echo("[process] Starting documentation processing …")
    try:
        settings.ensure_dirs()
        generator = build_generator(settings)
        report = asyncio.run(process_documentation(settings, generator))
    except (DocpipeError, OSError, ValueError) as exc:
        logger.error("Processing failed: %s", exc)
        raise typer.Exit(1)

    typer.echo("")
    typer.echo("=== Processing Complete ===")
    typer.echo(f"Processed {report.items} content pieces")
    typer.echo(f"Created {report.sections} website sections")
    typer.echo(f"Output saved to: {report.content_path}")
    typer.echo(f"Web content copied to: {report.web_content_path}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
