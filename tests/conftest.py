"""Shared fixtures: isolated settings with zero delays and temp directories."""

from __future__ import annotations

import io
from pathlib import Path

import pypdf
import pytest

from docpipe.config import Settings


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        raw_dir=tmp_path / "raw",
        processed_dir=tmp_path / "processed",
        web_content_dir=tmp_path / "web",
        request_delay=0.0,
        max_retries=2,
        retry_backoff=0.0,
        request_timeout=5.0,
        llm_provider="none",
    )


@pytest.fixture()
def blank_pdf() -> bytes:
    """A valid one-page PDF with no text."""
    writer = pypdf.PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()
