"""Async HTTP fetcher with bounded retries and streamed binary downloads.

The fetcher never raises for network failures: every call yields a
:class:`~docpipe.scraper.models.FetchResult` and the caller decides whether a
failure is fatal.  Pacing between requests is the crawler's job, not this
module's.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path

import httpx

from docpipe.config import Settings
from docpipe.scraper.models import FetchKind, FetchResult

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 65536


class Fetcher:
    """Retrieve URLs over HTTP(S) using one shared :class:`httpx.AsyncClient`.

    Use as an async context manager so the client is closed when the run ends::

        async with Fetcher(settings) as fetcher:
            result = await fetcher.fetch(url)
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self._settings.user_agent},
                timeout=self._settings.request_timeout,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(
        self,
        url: str,
        kind: FetchKind = "text",
        dest: Path | None = None,
    ) -> FetchResult:
        """Fetch *url*, retrying up to ``settings.max_retries`` times.

        Args:
            url: Absolute URL to GET.
            kind: ``"text"`` decodes the body, ``"binary"`` keeps raw bytes.
            dest: For binary fetches, stream the bytes to this path instead of
                holding them in memory.  ``body`` is then the path.

        Returns:
            A ``success`` result, or a ``failed`` one carrying the last error.
        """
        attempts = self._settings.max_retries + 1
        last_error = ""

        for attempt in range(attempts):
            try:
                if kind == "binary" and dest is not None:
                    body: str | bytes | Path = await self._download(url, Path(dest))
                else:
                    response = await self.client.get(url)
                    response.raise_for_status()
                    body = response.text if kind == "text" else response.content
                return FetchResult(url=url, status="success", body=body)
            except httpx.InvalidURL as exc:
                # A malformed URL fails the same way on every attempt.
                logger.warning("Invalid URL %s: %s", url, exc)
                return FetchResult(url=url, status="failed", error=str(exc) or "invalid URL")
            except (httpx.HTTPError, OSError) as exc:
                last_error = str(exc) or type(exc).__name__
                if attempt + 1 >= attempts:
                    break
                wait = self._settings.retry_backoff * (2**attempt)
                logger.warning(
                    "Retry %d/%d for %s: %s (wait %.1fs)",
                    attempt + 1,
                    self._settings.max_retries,
                    url,
                    last_error,
                    wait,
                )
                await asyncio.sleep(wait)

        logger.warning("Giving up on %s after %d attempts: %s", url, attempts, last_error)
        return FetchResult(url=url, status="failed", error=last_error)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _download(self, url: str, dest: Path) -> Path:
        """Stream *url* to *dest*; the file only appears once fully flushed."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                async with self.client.stream("GET", url) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes(_CHUNK_SIZE):
                        f.write(chunk)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, dest)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return dest
