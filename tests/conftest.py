from __future__ import annotations

from pathlib import Path

import pytest

LAPTOP_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="512" height="512" viewBox="0 0 512 512">'
    '<rect x="128" y="128" width="256" height="256" fill="#3366ff"/>'
    "</svg>"
)

WIDE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 1024 512">'
    '<circle cx="512" cy="256" r="200" fill="coral"/>'
    "</svg>"
)


class FakeRenderer:
    """Records render calls and returns fixed bytes, or raises on cue."""

    artifact_media_type = "image/png"

    def __init__(self, png: bytes = b"fake-png-bytes", error: Exception | None = None) -> None:
        self.png = png
        self.error = error
        self.calls: list[tuple[str, int, int | None, bool]] = []

    @property
    def initialized(self) -> bool:
        return bool(self.calls)

    async def render(
        self,
        svg_code: str,
        width: int,
        height: int | None = None,
        transparent: bool = True,
    ) -> bytes:
        self.calls.append((svg_code, width, height, transparent))
        if self.error is not None:
            raise self.error
        return self.png


@pytest.fixture
def static_root(tmp_path: Path) -> Path:
    work = tmp_path / "illustrations" / "work"
    work.mkdir(parents=True)
    (work / "laptop.svg").write_text(LAPTOP_SVG)
    (work / "banner.svg").write_text(WIDE_SVG)
    return tmp_path


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()
