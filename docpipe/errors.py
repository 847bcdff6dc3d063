"""Exception hierarchy for the docpipe pipeline."""

from __future__ import annotations


class DocpipeError(Exception):
    """Base class for every error raised by docpipe."""


class NetworkError(DocpipeError):
    """A fetch failed after exhausting its retries."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url


class ParseError(DocpipeError):
    """Input could not be parsed as markup."""


class PdfParseError(ParseError):
    """Input bytes are not a readable PDF."""


class CollaboratorError(DocpipeError):
    """The external text-generation service failed."""


class ManifestError(DocpipeError):
    """A persisted JSON artifact does not have the expected shape."""
