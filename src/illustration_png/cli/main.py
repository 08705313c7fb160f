from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from illustration_png.config.loader import build_service_config
from illustration_png.core.digest import generate_etag, quote_etag
from illustration_png.core.dimensions import (
    SIZE_PRESETS,
    parse_natural_dimensions,
    resolve_preset,
    resolve_within_bounds,
    resolve_within_ceiling,
)
from illustration_png.core.errors import ConversionFailed
from illustration_png.core.types import MAX_DIMENSION
from illustration_png.render.renderer import RENDERERS, create_renderer

console = Console()

_DIMENSION = click.IntRange(1, MAX_DIMENSION)
_RENDERER = click.Choice(sorted(RENDERERS))


def _configure_logging(verbose: bool, log_file: Path | None) -> None:
    pkg_logger = logging.getLogger("illustration_png")
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        pkg_logger.addHandler(RichHandler(console=console, show_path=False))
    if log_file is not None:
        fh = logging.FileHandler(log_file)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s %(message)s"))
        pkg_logger.addHandler(fh)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output")
@click.option("--log-file", type=click.Path(path_type=Path), default=None, help="Also write logs to this file")
def cli(verbose: bool, log_file: Path | None) -> None:
    """Illustration PNG: rasterize catalog SVGs to PNG."""
    load_dotenv()
    _configure_logging(verbose, log_file)


@cli.command("serve")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None,
              help="YAML config file")
@click.option("--host", default=None, help="Bind address")
@click.option("--port", default=None, type=int, help="Bind port")
@click.option("--renderer", type=_RENDERER, default=None, help="SVG renderer (resvg or playwright)")
@click.option("--source-base-url", default=None, help="Fetch SVGs from this origin")
@click.option("--static-dir", default=None, type=click.Path(file_okay=False, path_type=Path),
              help="Serve SVGs from this directory")
def serve_cmd(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    renderer: str | None,
    source_base_url: str | None,
    static_dir: Path | None,
) -> None:
    """Run the conversion HTTP service."""
    import uvicorn

    from illustration_png.api.app import create_app

    config = build_service_config(
        config_path,
        host=host,
        port=port,
        renderer=renderer,
        source_base_url=source_base_url,
        static_dir=static_dir,
    )

    console.print(f"[bold]Renderer:[/bold] {config.renderer}")
    if config.source_base_url:
        console.print(f"[bold]Source:[/bold] {config.source_base_url}")
    else:
        console.print(f"[bold]Source:[/bold] {config.static_dir}")

    uvicorn.run(create_app(config), host=config.host, port=config.port, log_config=None)


@cli.command("convert")
@click.argument("svg_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--width", type=_DIMENSION, default=None, help="Bounding box width")
@click.option("--height", type=_DIMENSION, default=None, help="Bounding box height")
@click.option("--preset", type=click.Choice(sorted(SIZE_PRESETS)), default=None, help="Size preset")
@click.option("--opaque", is_flag=True, help="Fill the background white instead of transparent")
@click.option("--renderer", type=_RENDERER, default="resvg", help="SVG renderer (resvg or playwright)")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Output PNG path (default: next to the SVG)")
def convert_cmd(
    svg_file: Path,
    width: int | None,
    height: int | None,
    preset: str | None,
    opaque: bool,
    renderer: str,
    output: Path | None,
) -> None:
    """Render a local SVG file to PNG.

    Without a size the natural size is kept, shrunk to fit 2048 pixels.
    """
    if (width is None) != (height is None):
        raise click.UsageError("--width and --height must be given together")
    if preset and width is not None:
        raise click.UsageError("--preset cannot be combined with --width/--height")

    svg_code = svg_file.read_text(encoding="utf-8")
    natural = parse_natural_dimensions(svg_code)
    if preset:
        target = resolve_preset(preset, natural.width, natural.height)
    elif width is not None:
        target = resolve_within_bounds(natural.width, natural.height, width, height)
    else:
        target = resolve_within_ceiling(natural.width, natural.height)

    svg_renderer = create_renderer(renderer)
    try:
        png = asyncio.run(
            svg_renderer.render(svg_code, target.width, target.height, transparent=not opaque)
        )
    except ConversionFailed as e:
        raise click.ClickException(str(e)) from e

    output = output or svg_file.with_suffix(".png")
    output.write_bytes(png)
    console.print(
        f"[green]Wrote[/green] {output} ({target.width}x{target.height}, {len(png)} bytes)"
    )


@cli.command("resolve")
@click.option("--natural-width", type=float, default=None, help="Source width (default 512)")
@click.option("--natural-height", type=float, default=None, help="Source height (default 512)")
@click.option("--width", type=_DIMENSION, default=None, help="Bounding box width")
@click.option("--height", type=_DIMENSION, default=None, help="Bounding box height")
@click.option("--ceiling", type=int, default=MAX_DIMENSION, help="Longest side limit without a box")
def resolve_cmd(
    natural_width: float | None,
    natural_height: float | None,
    width: int | None,
    height: int | None,
    ceiling: int,
) -> None:
    """Show output dimensions for a natural size, for every preset and the given bound."""
    table = Table(title="Resolved Dimensions")
    table.add_column("Mode", style="cyan")
    table.add_column("Bound")
    table.add_column("Output")

    for name, bound in SIZE_PRESETS.items():
        target = resolve_preset(name, natural_width, natural_height)
        table.add_row(name, f"{bound['width']}x{bound['height']}", f"{target.width}x{target.height}")

    if width is not None and height is not None:
        target = resolve_within_bounds(natural_width, natural_height, width, height)
        table.add_row("explicit", f"{width}x{height}", f"{target.width}x{target.height}")

    target = resolve_within_ceiling(natural_width, natural_height, ceiling)
    table.add_row("ceiling", str(ceiling), f"{target.width}x{target.height}")

    console.print(table)


@cli.command("etag")
@click.argument("svg_path")
@click.option("--width", type=_DIMENSION, required=True)
@click.option("--height", type=_DIMENSION, required=True)
def etag_cmd(svg_path: str, width: int, height: int) -> None:
    """Print the ETag the service sends for a request."""
    click.echo(quote_etag(generate_etag(svg_path, width, height)))


@cli.command("list-presets")
def list_presets_cmd() -> None:
    """List available size presets."""
    table = Table(title="Size Presets")
    table.add_column("Name", style="cyan")
    table.add_column("Label")

    for name, preset in SIZE_PRESETS.items():
        table.add_row(name, preset["label"])

    console.print(table)


if __name__ == "__main__":
    cli()
