from __future__ import annotations

import io
import threading

import pytest

from conftest import LAPTOP_SVG
from illustration_png.core.errors import ConversionFailed
from illustration_png.render.renderer import (
    PlaywrightRenderer,
    ResvgRenderer,
    RuntimeLatch,
    create_renderer,
)


class TestRuntimeLatch:
    def test_runs_initializer_once(self):
        latch = RuntimeLatch()
        calls = []

        latch.ensure(lambda: calls.append(1))
        latch.ensure(lambda: calls.append(2))

        assert calls == [1]
        assert latch.is_set

    def test_failed_initializer_leaves_latch_unset(self):
        latch = RuntimeLatch()

        def fail() -> None:
            raise ImportError("no runtime")

        with pytest.raises(ImportError):
            latch.ensure(fail)
        assert not latch.is_set

        latch.ensure(lambda: None)
        assert latch.is_set

    def test_concurrent_first_calls_initialize_once(self):
        latch = RuntimeLatch()
        counter = []
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            latch.ensure(lambda: counter.append(1))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counter == [1]
        assert latch.is_set


class TestCreateRenderer:
    def test_known_renderers(self):
        assert isinstance(create_renderer("resvg"), ResvgRenderer)
        assert isinstance(create_renderer("playwright"), PlaywrightRenderer)
        assert isinstance(create_renderer(), ResvgRenderer)

    def test_unknown_renderer_raises(self):
        with pytest.raises(ValueError, match="Unknown renderer"):
            create_renderer("cairo")

    def test_new_renderer_is_not_initialized(self):
        assert create_renderer("resvg").initialized is False


@pytest.mark.asyncio
async def test_missing_runtime_surfaces_as_conversion_failed(monkeypatch):
    monkeypatch.setattr(ResvgRenderer, "runtime_module", "illustration_png_missing_runtime")
    renderer = ResvgRenderer()

    with pytest.raises(ConversionFailed, match="Conversion failed") as exc_info:
        await renderer.render(LAPTOP_SVG, 64, 64)

    assert isinstance(exc_info.value.__cause__, ModuleNotFoundError)
    assert renderer.initialized is False


class TestResvgRoundTrip:
    @pytest.fixture(autouse=True)
    def _require_backend(self):
        pytest.importorskip("resvg_py")
        pytest.importorskip("PIL")

    @staticmethod
    def decode(png: bytes):
        from PIL import Image

        return Image.open(io.BytesIO(png)).convert("RGBA")

    @pytest.mark.asyncio
    async def test_transparent_corner(self):
        renderer = ResvgRenderer()
        png = await renderer.render(LAPTOP_SVG, 512, 512, transparent=True)

        image = self.decode(png)
        assert image.size == (512, 512)
        assert image.getpixel((0, 0))[3] == 0
        assert renderer.initialized is True

    @pytest.mark.asyncio
    async def test_opaque_corner_is_white(self):
        png = await ResvgRenderer().render(LAPTOP_SVG, 512, 512, transparent=False)

        image = self.decode(png)
        assert image.size == (512, 512)
        assert image.getpixel((0, 0)) == (255, 255, 255, 255)

    @pytest.mark.asyncio
    async def test_content_is_drawn(self):
        png = await ResvgRenderer().render(LAPTOP_SVG, 512, 512, transparent=True)

        center = self.decode(png).getpixel((256, 256))
        assert center == (0x33, 0x66, 0xFF, 255)

    @pytest.mark.asyncio
    async def test_scales_to_requested_size(self):
        png = await ResvgRenderer().render(LAPTOP_SVG, 256, 256)

        assert self.decode(png).size == (256, 256)

    @pytest.mark.asyncio
    async def test_same_input_same_bytes(self):
        renderer = ResvgRenderer()
        first = await renderer.render(LAPTOP_SVG, 128, 128)
        second = await renderer.render(LAPTOP_SVG, 128, 128)

        assert first == second
