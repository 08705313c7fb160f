from __future__ import annotations

import math
import re

from illustration_png.core.types import (
    DEFAULT_NATURAL_SIZE,
    MAX_DIMENSION,
    NaturalDimensions,
    ResolvedDimensions,
)

SIZE_PRESETS: dict[str, dict] = {
    "icon": {"width": 256, "height": 256, "label": "Icon (256x256)"},
    "standard": {"width": 512, "height": 512, "label": "Standard (512x512)"},
    "large": {"width": 1024, "height": 1024, "label": "Large (1024x1024)"},
}

_SVG_TAG_RE = re.compile(r"<svg\b[^>]*>", flags=re.IGNORECASE | re.DOTALL)
_LENGTH_RE = re.compile(r"^\s*([0-9]+(?:\.[0-9]+)?)\s*([a-zA-Z%]*)\s*$")

# CSS pixels per unit
_UNIT_TO_PX = {
    "": 1.0,
    "px": 1.0,
    "in": 96.0,
    "pt": 96.0 / 72.0,
    "pc": 16.0,
    "mm": 96.0 / 25.4,
    "cm": 96.0 / 2.54,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _natural_or_default(value: float | None) -> float:
    if not value or value <= 0:
        return float(DEFAULT_NATURAL_SIZE)
    return float(value)


def resolve_within_bounds(
    natural_width: float | None,
    natural_height: float | None,
    bound_width: int,
    bound_height: int,
) -> ResolvedDimensions:
    """Scale the natural size to fit inside an explicit width x height box.

    Used by the size presets. The result keeps the source aspect ratio and
    fills the box on at least one axis.
    """
    nw = _natural_or_default(natural_width)
    nh = _natural_or_default(natural_height)
    scale = min(bound_width / nw, bound_height / nh)
    return ResolvedDimensions(
        width=max(1, _round_half_up(nw * scale)),
        height=max(1, _round_half_up(nh * scale)),
    )


def resolve_within_ceiling(
    natural_width: float | None,
    natural_height: float | None,
    ceiling: int = MAX_DIMENSION,
) -> ResolvedDimensions:
    """Shrink oversized sources so the longest side equals the ceiling.

    Sources already within the ceiling keep their natural size.
    """
    nw = _natural_or_default(natural_width)
    nh = _natural_or_default(natural_height)
    largest_side = max(nw, nh)
    scale = ceiling / largest_side if largest_side > ceiling else 1.0
    return ResolvedDimensions(
        width=max(1, _round_half_up(nw * scale)),
        height=max(1, _round_half_up(nh * scale)),
    )


def resolve_preset(
    preset: str, natural_width: float | None, natural_height: float | None
) -> ResolvedDimensions:
    if preset not in SIZE_PRESETS:
        raise ValueError(f"Unknown preset: {preset!r}. Choose from: {list(SIZE_PRESETS)}")
    bound = SIZE_PRESETS[preset]
    return resolve_within_bounds(
        natural_width, natural_height, bound["width"], bound["height"]
    )


def _extract_attr(tag: str, name: str) -> str | None:
    m = re.search(rf'(?<![\w:-]){name}\s*=\s*["\']([^"\']+)["\']', tag, flags=re.IGNORECASE)
    if not m:
        return None
    return m.group(1).strip()


def _length_to_px(value: str) -> float | None:
    m = _LENGTH_RE.match(value)
    if not m:
        return None
    factor = _UNIT_TO_PX.get(m.group(2).lower())
    # Relative units (%, em, vw...) need a viewport and are ignored
    if factor is None:
        return None
    return float(m.group(1)) * factor


def _parse_viewbox(value: str) -> tuple[float, float] | None:
    parts = re.split(r"[,\s]+", value.strip())
    if len(parts) != 4:
        return None
    try:
        w = float(parts[2])
        h = float(parts[3])
    except ValueError:
        return None
    if w <= 0 or h <= 0:
        return None
    return w, h


def parse_natural_dimensions(svg_text: str) -> NaturalDimensions:
    """Best-effort intrinsic size of an SVG document.

    Reads width/height on the root element, falls back to the viewBox size
    and finally to 512x512.
    """
    tag_m = _SVG_TAG_RE.search(svg_text)
    if not tag_m:
        return NaturalDimensions()
    tag = tag_m.group(0)

    width_raw = _extract_attr(tag, "width")
    height_raw = _extract_attr(tag, "height")
    w = _length_to_px(width_raw) if width_raw else None
    h = _length_to_px(height_raw) if height_raw else None
    if w and h:
        return NaturalDimensions(width=w, height=h)

    viewbox_raw = _extract_attr(tag, "viewBox")
    if viewbox_raw:
        vb = _parse_viewbox(viewbox_raw)
        if vb is not None:
            vw, vh = vb
            # A single explicit side scales the viewBox proportionally
            if w:
                return NaturalDimensions(width=w, height=w * vh / vw)
            if h:
                return NaturalDimensions(width=h * vw / vh, height=h)
            return NaturalDimensions(width=vw, height=vh)

    return NaturalDimensions()
