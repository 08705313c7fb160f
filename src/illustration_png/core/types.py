from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_NATURAL_SIZE = 512
MAX_DIMENSION = 2048
DEFAULT_QUALITY = 90
CACHE_MAX_AGE = 31536000


@dataclass(frozen=True)
class ConversionOptions:
    width: int
    height: int
    transparent: bool = True
    quality: int = DEFAULT_QUALITY  # accepted and carried, not used by any renderer


@dataclass(frozen=True)
class ConversionRequest:
    svg_path: str
    width: int
    height: int
    transparent: bool = True
    quality: int = DEFAULT_QUALITY

    @property
    def options(self) -> ConversionOptions:
        return ConversionOptions(
            width=self.width,
            height=self.height,
            transparent=self.transparent,
            quality=self.quality,
        )


@dataclass(frozen=True)
class NaturalDimensions:
    width: float = DEFAULT_NATURAL_SIZE
    height: float = DEFAULT_NATURAL_SIZE


@dataclass(frozen=True)
class ResolvedDimensions:
    width: int
    height: int


@dataclass
class RasterResult:
    png: bytes
    digest: str
    dimensions: ResolvedDimensions


@dataclass
class BatchItemResult:
    success: bool
    data: bytes | None = None
    digest: str | None = None
    error: str | None = None


@dataclass
class ServiceConfig:
    host: str = "127.0.0.1"
    port: int = 8787
    renderer: str = "resvg"
    source_base_url: str | None = None
    static_dir: Path | None = field(default_factory=lambda: Path("public"))
    max_dimension: int = MAX_DIMENSION
    cache_max_age: int = CACHE_MAX_AGE
    fetch_timeout: float = 10.0
