from __future__ import annotations

import asyncio
import logging
import struct
from typing import TYPE_CHECKING

from illustration_png.core.digest import generate_etag
from illustration_png.core.dimensions import parse_natural_dimensions, resolve_within_bounds
from illustration_png.core.errors import ConversionError, ConversionFailed
from illustration_png.core.types import (
    BatchItemResult,
    ConversionOptions,
    ConversionRequest,
    RasterResult,
    ResolvedDimensions,
)

if TYPE_CHECKING:
    from illustration_png.core.protocols import Renderer, SvgSource

logger = logging.getLogger(__name__)

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def read_png_size(png: bytes) -> tuple[int, int] | None:
    """Width and height from the IHDR chunk, or None for non-PNG data."""
    if len(png) < 24 or not png.startswith(_PNG_SIGNATURE):
        return None
    return struct.unpack(">II", png[16:24])


class ConversionPipeline:
    """Fetch, resolve, render and tag one or many conversion requests."""

    def __init__(self, source: SvgSource, renderer: Renderer) -> None:
        self.source = source
        self.renderer = renderer

    async def render_svg(
        self, svg_content: str, options: ConversionOptions
    ) -> tuple[bytes, ResolvedDimensions]:
        natural = parse_natural_dimensions(svg_content)
        target = resolve_within_bounds(
            natural.width, natural.height, options.width, options.height
        )
        logger.debug(
            "Resolved %gx%g within %dx%d -> %dx%d",
            natural.width, natural.height, options.width, options.height,
            target.width, target.height,
        )

        try:
            png = await self.renderer.render(
                svg_content, target.width, target.height, options.transparent
            )
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionFailed(f"Conversion failed: {e}") from e

        actual = read_png_size(png)
        if actual is not None and (
            abs(actual[0] - target.width) > 1 or abs(actual[1] - target.height) > 1
        ):
            logger.warning(
                "Renderer produced %dx%d, expected %dx%d",
                actual[0], actual[1], target.width, target.height,
            )
        return png, target

    async def convert(self, request: ConversionRequest) -> RasterResult:
        """Convert the SVG at ``request.svg_path``.

        Raises SourceNotFound when the path cannot be fetched and
        ConversionFailed for transport or render faults. Nothing is retried.
        """
        logger.debug("Fetching %s", request.svg_path)
        svg_content = await self.source.fetch(request.svg_path)

        png, target = await self.render_svg(svg_content, request.options)
        digest = generate_etag(request.svg_path, request.width, request.height)
        return RasterResult(png=png, digest=digest, dimensions=target)

    async def convert_many(
        self, requests: list[ConversionRequest]
    ) -> list[BatchItemResult]:
        """Convert every request independently; results keep request order."""
        outcomes = await asyncio.gather(
            *(self.convert(request) for request in requests),
            return_exceptions=True,
        )

        results: list[BatchItemResult] = []
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, RasterResult):
                results.append(
                    BatchItemResult(success=True, data=outcome.png, digest=outcome.digest)
                )
            elif isinstance(outcome, Exception):
                if not isinstance(outcome, ConversionError):
                    logger.error(
                        "Unexpected failure converting %s", request.svg_path,
                        exc_info=outcome,
                    )
                results.append(BatchItemResult(success=False, error=str(outcome)))
            else:
                raise outcome
        return results
