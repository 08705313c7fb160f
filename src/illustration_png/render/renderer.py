from __future__ import annotations

import asyncio
import importlib
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable

from illustration_png.core.dimensions import parse_natural_dimensions
from illustration_png.core.errors import ConversionFailed

logger = logging.getLogger(__name__)


class RuntimeLatch:
    """One-shot initialization guard.

    Concurrent first callers may both reach the lock; only one runs the
    initializer. Once set the latch is never cleared.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._is_set = False

    @property
    def is_set(self) -> bool:
        return self._is_set

    def ensure(self, initializer: Callable[[], None]) -> None:
        if self._is_set:
            return
        with self._lock:
            if not self._is_set:
                initializer()
                self._is_set = True


class SVGRenderer(ABC):
    artifact_media_type = "image/png"
    runtime_module: str

    def __init__(self) -> None:
        self._latch = RuntimeLatch()

    @property
    def initialized(self) -> bool:
        return self._latch.is_set

    def _initialize_runtime(self) -> None:
        importlib.import_module(self.runtime_module)
        logger.info("Renderer runtime %s initialized", self.runtime_module)

    def ensure_initialized(self) -> None:
        self._latch.ensure(self._initialize_runtime)

    @abstractmethod
    async def render(
        self,
        svg_code: str,
        width: int,
        height: int | None = None,
        transparent: bool = True,
    ) -> bytes:
        """Render SVG code to PNG bytes.

        With ``height=None`` the output is fit to ``width`` and the height
        follows the SVG's own aspect ratio.
        """
        ...


class ResvgRenderer(SVGRenderer):
    runtime_module = "resvg_py"

    async def render(
        self,
        svg_code: str,
        width: int,
        height: int | None = None,
        transparent: bool = True,
    ) -> bytes:
        return await asyncio.to_thread(
            self._render_sync, svg_code, width, height, transparent
        )

    def _render_sync(
        self, svg_code: str, width: int, height: int | None, transparent: bool
    ) -> bytes:
        try:
            self.ensure_initialized()
            from resvg_py import svg_to_bytes

            png = svg_to_bytes(
                svg_string=svg_code,
                width=width,
                height=height,
                background=None if transparent else "white",
            )
        except Exception as e:
            raise ConversionFailed(f"Conversion failed: {e}") from e
        return bytes(png)


class PlaywrightRenderer(SVGRenderer):
    runtime_module = "playwright.async_api"

    async def render(
        self,
        svg_code: str,
        width: int,
        height: int | None = None,
        transparent: bool = True,
    ) -> bytes:
        if height is None:
            natural = parse_natural_dimensions(svg_code)
            height = max(1, round(width * natural.height / natural.width))

        background = "transparent" if transparent else "white"
        html = f"""<!DOCTYPE html>
<html><head><style>
html, body {{ margin:0; padding:0; background:{background}; }}
svg {{ display:block; width:{width}px; height:{height}px; }}
</style></head><body>
{svg_code}
</body></html>"""

        try:
            self.ensure_initialized()
            from playwright.async_api import async_playwright

            async with async_playwright() as p:
                browser = await p.chromium.launch()
                page = await browser.new_page(viewport={"width": width, "height": height})
                await page.set_content(html)
                png = await page.screenshot(type="png", omit_background=transparent)
                await browser.close()
        except Exception as e:
            raise ConversionFailed(f"Conversion failed: {e}") from e
        return png


RENDERERS: dict[str, type[SVGRenderer]] = {
    "resvg": ResvgRenderer,
    "playwright": PlaywrightRenderer,
}


def create_renderer(name: str = "resvg") -> SVGRenderer:
    if name not in RENDERERS:
        raise ValueError(f"Unknown renderer: {name!r}. Choose from: {list(RENDERERS)}")
    return RENDERERS[name]()
