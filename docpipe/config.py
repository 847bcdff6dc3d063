"""Centralised settings for the docpipe pipeline.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Components never read the module-level ``settings`` themselves; they are
handed a :class:`Settings` instance when constructed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _optional(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Output directories
    # ------------------------------------------------------------------
    raw_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("DOCPIPE_RAW_DIR", "data/raw"))
    )
    processed_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("DOCPIPE_PROCESSED_DIR", "data/processed")
        )
    )
    web_content_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("DOCPIPE_WEB_CONTENT_DIR", "web/public/content")
        )
    )

    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "DOCPIPE_USER_AGENT", "Mozilla/5.0 (compatible; DocpipeScraper/1.0)"
        )
    )
    request_delay: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_DELAY", "1.0"))
    )
    max_retries: int = field(
        default_factory=lambda: int(os.environ.get("MAX_RETRIES", "3"))
    )
    retry_backoff: float = field(
        default_factory=lambda: float(os.environ.get("RETRY_BACKOFF", "2.0"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Crawl / extraction
    # ------------------------------------------------------------------
    max_related_pages: int = field(
        default_factory=lambda: int(os.environ.get("MAX_RELATED_PAGES", "10"))
    )
    related_domain: str | None = field(
        default_factory=lambda: _optional("DOCPIPE_RELATED_DOMAIN")
    )
    source_label: str = field(
        default_factory=lambda: os.environ.get("DOCPIPE_SOURCE_LABEL", "docs")
    )

    # ------------------------------------------------------------------
    # Normalisation
    # ------------------------------------------------------------------
    max_pdf_sections: int = field(
        default_factory=lambda: int(os.environ.get("MAX_PDF_SECTIONS", "5"))
    )
    max_resource_links: int = 10
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "openai")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    llm_max_tokens: int = field(
        default_factory=lambda: int(os.environ.get("LLM_MAX_TOKENS", "2000"))
    )
    llm_temperature: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TEMPERATURE", "0.7"))
    )

    # ------------------------------------------------------------------
    # Viewer index
    # ------------------------------------------------------------------
    site_title: str = field(
        default_factory=lambda: os.environ.get(
            "DOCPIPE_SITE_TITLE", "Esri Experience Builder - Simplified"
        )
    )
    site_description: str = field(
        default_factory=lambda: os.environ.get(
            "DOCPIPE_SITE_DESCRIPTION",
            "Clear, flowing documentation for ArcGIS Experience Builder",
        )
    )

    def ensure_dirs(self) -> None:
        """Create every output directory if it does not exist."""
        for path in (self.raw_dir, self.processed_dir, self.web_content_dir):
            path.mkdir(parents=True, exist_ok=True)


# Module-level default used by the CLI:
#   from docpipe.config import settings
settings = Settings()
