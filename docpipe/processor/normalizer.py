"""Content normalisation: one document or PDF section → one markdown item.

Two strategies:

* the primary one sends a fixed-shape instruction to a
  :class:`~docpipe.processor.llm.TextGenerator` and uses its answer verbatim;
* the deterministic fallback renders the record as markdown and is used when
  no generator is configured or the generator fails.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Union

from docpipe.errors import CollaboratorError
from docpipe.processor.llm import TextGenerator
from docpipe.scraper.models import Heading, Link, PageDocument, PdfSection

logger = logging.getLogger(__name__)

Record = Union[PageDocument, PdfSection]


@dataclass(frozen=True)
class NormalizedItem:
    id: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "content": self.content}


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

_PROMPT_TEMPLATE = """
You are helping transform complex Esri/ArcGIS documentation into clear, flowing prose for humanitarian workers.

Transform this technical content into plain English that's easy to understand:
- Replace developer jargon with simple explanations
- Explain the "why" not just the "how"
- Use real-world examples (especially humanitarian/Red Cross contexts)
- Create a narrative flow that builds understanding
- Keep technical accuracy while improving clarity

Original content:
{content}

Please provide:
1. A clear title
2. A brief overview (2-3 sentences)
3. Main concepts explained simply
4. Step-by-step instructions where applicable
5. Real-world use cases
6. Links to source materials

Format as clean markdown."""


def build_prompt(record: Record) -> str:
    """Embed *record*, serialised as indented JSON, in the rewrite instruction."""
    serialized = json.dumps(record.to_dict(), indent=2, ensure_ascii=False)
    return _PROMPT_TEMPLATE.format(content=serialized)


# ---------------------------------------------------------------------------
# Deterministic fallback
# ---------------------------------------------------------------------------

def fallback_transform(
    record: Record,
    max_links: int = 10,
    code_language: str = "javascript",
) -> str:
    """Render *record* as markdown without any external service.

    Sections, each only when non-empty: title, source quote, Key Topics
    (headings one level deeper), Content, Code Examples, Resources (at most
    *max_links* links).
    """
    if isinstance(record, PdfSection):
        url = ""
        headings: tuple[Heading, ...] = ()
        paragraphs: tuple[str, ...] = tuple(record.content)
        code_blocks: tuple[str, ...] = ()
        links: tuple[Link, ...] = ()
    else:
        url = record.url
        headings = record.headings
        paragraphs = record.paragraphs
        code_blocks = record.code_blocks
        links = record.links

    parts = [f"# {record.title or 'Documentation'}\n\n"]

    if url:
        parts.append(f"> Source: [{url}]({url})\n\n")

    if headings:
        parts.append("## Key Topics\n\n")
        for heading in headings:
            parts.append(f"{'#' * (heading.level + 1)} {heading.text}\n\n")

    if paragraphs:
        parts.append("## Content\n\n")
        for paragraph in paragraphs:
            parts.append(f"{paragraph}\n\n")

    if code_blocks:
        parts.append("## Code Examples\n\n")
        for code in code_blocks:
            parts.append(f"```{code_language}\n{code}\n```\n\n")

    if links:
        parts.append("## Resources\n\n")
        for link in links[:max_links]:
            parts.append(f"- [{link.text or link.href}]({link.href})\n")

    return "".join(parts)


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------

class Normalizer:
    """Rewrite records through *generator*, falling back to markdown rendering."""

    def __init__(self, generator: TextGenerator | None = None, max_links: int = 10) -> None:
        self._generator = generator
        self._max_links = max_links

    async def render(self, record: Record) -> str:
        if self._generator is not None:
            try:
                return await self._generator.generate(build_prompt(record))
            except CollaboratorError as exc:
                logger.warning("Language model unavailable for %r, using fallback: %s",
                               record.title, exc)
        return fallback_transform(record, max_links=self._max_links)

    async def normalize(self, record: Record, item_id: str) -> NormalizedItem:
        return NormalizedItem(id=item_id, content=await self.render(record))
