from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SvgSource(Protocol):
    async def fetch(self, svg_path: str) -> str: ...


@runtime_checkable
class Renderer(Protocol):
    artifact_media_type: str  # e.g. "image/png"

    @property
    def initialized(self) -> bool: ...

    async def render(
        self,
        svg_code: str,
        width: int,
        height: int | None = None,
        transparent: bool = True,
    ) -> bytes: ...
