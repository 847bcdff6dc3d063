"""Data models for the scrape → extract → normalise pipeline.

These are plain dataclasses.  ``to_dict`` produces the camelCase shape that is
persisted to disk and consumed by the viewer; ``from_dict`` validates that
shape when previously-written JSON is read back in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Union

from docpipe.errors import ManifestError, NetworkError

FetchKind = Literal["text", "binary"]


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _require(data: Any, key: str, kind: type | tuple[type, ...], entity: str) -> Any:
    if not isinstance(data, dict):
        raise ManifestError(f"{entity} must be a JSON object, got {type(data).__name__}")
    if key not in data:
        raise ManifestError(f"{entity} is missing required key {key!r}")
    value = data[key]
    if not isinstance(value, kind):
        raise ManifestError(f"{entity}.{key} has unexpected type {type(value).__name__}")
    return value


def _optional(data: dict, key: str, kind: type | tuple[type, ...], entity: str) -> Any:
    value = data.get(key)
    if value is not None and not isinstance(value, kind):
        raise ManifestError(f"{entity}.{key} has unexpected type {type(value).__name__}")
    return value


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch, retries included.

    ``body`` is text for ``kind="text"``, bytes for ``kind="binary"``, or the
    destination :class:`~pathlib.Path` when the bytes were streamed to disk.
    """

    url: str
    status: Literal["success", "failed"]
    body: str | bytes | Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def raise_for_failure(self) -> None:
        if not self.ok:
            raise NetworkError(self.url, self.error or "unknown error")


# ---------------------------------------------------------------------------
# HTML pages
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class Link:
    href: str
    text: str


@dataclass(frozen=True)
class Image:
    src: str
    alt: str = ""


@dataclass(frozen=True)
class PageDocument:
    """Structured content extracted from one HTML page."""

    url: str
    title: str
    headings: tuple[Heading, ...] = ()
    paragraphs: tuple[str, ...] = ()
    code_blocks: tuple[str, ...] = ()
    links: tuple[Link, ...] = ()
    images: tuple[Image, ...] = ()
    scraped_at: str = ""
    source_label: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "headings": [{"level": h.level, "text": h.text} for h in self.headings],
            "paragraphs": list(self.paragraphs),
            "codeBlocks": list(self.code_blocks),
            "links": [{"href": lnk.href, "text": lnk.text} for lnk in self.links],
            "images": [{"src": img.src, "alt": img.alt} for img in self.images],
            "metadata": {"scraped": self.scraped_at, "source": self.source_label},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PageDocument":
        entity = "PageDocument"
        url = _require(data, "url", str, entity)
        title = _require(data, "title", str, entity)
        headings = tuple(
            Heading(
                level=_require(h, "level", int, f"{entity}.headings[]"),
                text=_require(h, "text", str, f"{entity}.headings[]"),
            )
            for h in _require(data, "headings", list, entity)
        )
        paragraphs = _require(data, "paragraphs", list, entity)
        code_blocks = _require(data, "codeBlocks", list, entity)
        if not all(isinstance(p, str) for p in paragraphs + code_blocks):
            raise ManifestError(f"{entity} paragraphs and codeBlocks must be strings")
        links = tuple(
            Link(
                href=_require(lnk, "href", str, f"{entity}.links[]"),
                text=_require(lnk, "text", str, f"{entity}.links[]"),
            )
            for lnk in _require(data, "links", list, entity)
        )
        images = tuple(
            Image(
                src=_require(img, "src", str, f"{entity}.images[]"),
                alt=_optional(img, "alt", str, f"{entity}.images[]") or "",
            )
            for img in _require(data, "images", list, entity)
        )
        metadata = _optional(data, "metadata", dict, entity) or {}
        return cls(
            url=url,
            title=title,
            headings=headings,
            paragraphs=tuple(paragraphs),
            code_blocks=tuple(code_blocks),
            links=links,
            images=images,
            scraped_at=str(metadata.get("scraped", "")),
            source_label=str(metadata.get("source", "")),
        )


@dataclass(frozen=True)
class PageReference:
    """Manifest pointer to a related page persisted in its own JSON file."""

    url: str
    file: str

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "file": self.file}

    @classmethod
    def from_dict(cls, data: Any) -> "PageReference":
        return cls(
            url=_require(data, "url", str, "PageReference"),
            file=_require(data, "file", str, "PageReference"),
        )


# ---------------------------------------------------------------------------
# PDFs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PdfExtraction:
    """Library-level text extraction result for one PDF."""

    text: str
    page_count: int
    metadata: dict[str, Any] = field(default_factory=dict)
    info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "pageCount": self.page_count,
            "metadata": self.metadata,
            "info": self.info,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PdfExtraction":
        entity = "PdfExtraction"
        return cls(
            text=_require(data, "text", str, entity),
            page_count=_require(data, "pageCount", int, entity),
            metadata=_optional(data, "metadata", dict, entity) or {},
            info=_optional(data, "info", dict, entity) or {},
        )


@dataclass
class PdfSection:
    """One heuristically delimited region of a PDF's text."""

    title: str
    content: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "paragraphs": list(self.content)}


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------

@dataclass
class ResourceRecord:
    """A downloaded non-HTML asset and its processing outcome."""

    type: str
    name: str
    url: str
    local_path: str | None = None
    processed: bool = False
    error: str | None = None
    _settled: bool = field(default=False, init=False, repr=False, compare=False)

    def mark_processed(self, local_path: str | Path) -> None:
        self._settle()
        self.local_path = str(local_path)
        self.processed = True

    def mark_failed(self, error: str) -> None:
        self._settle()
        self.error = error
        self.processed = False

    def _settle(self) -> None:
        if self._settled:
            raise RuntimeError(f"Resource {self.name!r} outcome already recorded")
        self._settled = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "name": self.name, "url": self.url}
        if self.local_path is not None:
            data["localPath"] = self.local_path
        if self.error is not None:
            data["error"] = self.error
        data["processed"] = self.processed
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "ResourceRecord":
        entity = "ResourceRecord"
        record = cls(
            type=_require(data, "type", str, entity),
            name=_require(data, "name", str, entity),
            url=_require(data, "url", str, entity),
            local_path=_optional(data, "localPath", str, entity),
            processed=_require(data, "processed", bool, entity),
            error=_optional(data, "error", str, entity),
        )
        record._settled = True
        return record


ContentEntry = Union[PageDocument, PageReference]


@dataclass
class Manifest:
    """Run-level record of every resource processed and its outcome."""

    main_url: str
    started_at: str
    content: list[ContentEntry] = field(default_factory=list)
    resources: list[ResourceRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mainUrl": self.main_url,
            "scraped": self.started_at,
            "content": [entry.to_dict() for entry in self.content],
            "resources": [r.to_dict() for r in self.resources],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Manifest":
        entity = "Manifest"
        content: list[ContentEntry] = []
        for entry in _require(data, "content", list, entity):
            if isinstance(entry, dict) and "file" in entry:
                content.append(PageReference.from_dict(entry))
            else:
                content.append(PageDocument.from_dict(entry))
        return cls(
            main_url=_require(data, "mainUrl", str, entity),
            started_at=_require(data, "scraped", str, entity),
            content=content,
            resources=[
                ResourceRecord.from_dict(r)
                for r in _require(data, "resources", list, entity)
            ],
        )
