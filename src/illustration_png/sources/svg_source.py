"""SVG sources the conversion pipeline fetches illustration markup from."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx

from illustration_png.core.errors import ConversionFailed, SourceNotFound

logger = logging.getLogger(__name__)


class HttpSvgSource:
    """Fetches SVG markup over HTTP.

    Relative paths such as ``/illustrations/work/laptop.svg`` are resolved
    against ``base_url``; absolute URLs are fetched as-is.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy init)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpSvgSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def fetch(self, svg_path: str) -> str:
        client = await self._get_client()
        try:
            response = await client.get(svg_path)
        except httpx.HTTPError as e:
            raise ConversionFailed(f"Failed to fetch {svg_path}: {e}") from e

        if not response.is_success:
            logger.debug("Fetch %s returned %d", svg_path, response.status_code)
            raise SourceNotFound(svg_path)
        return response.text


class StaticSvgSource:
    """Reads SVG markup from a local static directory (e.g. ``public/``)."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()

    def _resolve(self, svg_path: str) -> Path:
        try:
            candidate = (self.root / svg_path.lstrip("/")).resolve()
            # Keep lookups inside the static root
            found = candidate.is_relative_to(self.root) and candidate.is_file()
        except (ValueError, OSError) as e:
            # Embedded NUL bytes and over-long names are not paths on disk
            raise SourceNotFound(svg_path) from e
        if not found:
            raise SourceNotFound(svg_path)
        return candidate

    async def fetch(self, svg_path: str) -> str:
        path = self._resolve(svg_path)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConversionFailed(f"Failed to read {svg_path}: {e}") from e

    async def close(self) -> None:
        return None


def create_source(
    base_url: Optional[str] = None,
    static_dir: Optional[Path] = None,
    timeout: Optional[float] = 10.0,
) -> HttpSvgSource | StaticSvgSource:
    if base_url:
        return HttpSvgSource(base_url, timeout=timeout)
    if static_dir is not None:
        return StaticSvgSource(static_dir)
    raise ValueError("Either a source base URL or a static directory is required")
