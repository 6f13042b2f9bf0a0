"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
import typer
from PIL import Image
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from tile_mosaic.color_utils import mosaic_psnr
from tile_mosaic.composer import MosaicComposer
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import MosaicError
from tile_mosaic.image_io import (
    collect_images,
    load_raster,
    load_tiles,
    make_comparison_grid,
    save_image,
)

app = typer.Typer(
    name="tile-mosaic",
    help="Build photo mosaics out of a folder of tile images.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _quality_metric(source: np.ndarray, mosaic: np.ndarray, cfg: MosaicConfig) -> float:
    h, w = mosaic.shape[:2]
    covered_h = h // cfg.scale_multiplier
    covered_w = w // cfg.scale_multiplier
    reference = Image.fromarray(source[:covered_h, :covered_w]).resize(
        (w, h), Image.LANCZOS,
    )
    return mosaic_psnr(np.array(reference, dtype=np.uint8), mosaic)


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


def _run(
    cfg: MosaicConfig,
    source_path: Path,
    tiles: list[tuple[str, np.ndarray]],
    output: Path,
) -> None:
    """Compose one mosaic and write it (plus comparison) to *output*."""
    t_total = time.perf_counter()
    source = load_raster(source_path)
    names = [name for name, _ in tiles]

    result = MosaicComposer(cfg).compose(
        source, [raster for _, raster in tiles], names=names,
    )
    save_image(result.image, output, quality=cfg.jpeg_quality)

    if cfg.save_comparison:
        comp_path = output.with_name(f"{output.stem}_comparison.png")
        make_comparison_grid(source, result.image, comp_path)

    h, w = result.image.shape[:2]
    psnr = _quality_metric(source, result.image, cfg)
    elapsed = time.perf_counter() - t_total
    console.print(
        f"  [green]✓[/green] {output.name}  "
        f"[dim]{result.x_tile_count}x{result.y_tile_count} cells  {w}x{h} px  "
        f"tiles={result.tiles_used}  psnr={psnr:.1f} dB  time={elapsed:.1f}s[/dim]"
    )


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with source images",
    ),
    tiles_dir: Path = typer.Option(
        _DEFAULTS.tiles_dir, "--tiles", "-t", help="Folder with tile images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    tile_width: int = typer.Option(
        _DEFAULTS.tile_width, "--tile-width", "-W", help="Source cell width (px)",
    ),
    tile_height: int = typer.Option(
        _DEFAULTS.tile_height, "--tile-height", "-H", help="Source cell height (px)",
    ),
    scale: int = typer.Option(
        _DEFAULTS.scale_multiplier, "--scale", "-x",
        help="Render each tile at cell size x SCALE",
    ),
    quadrants: int = typer.Option(
        _DEFAULTS.quadrant_division_count, "--quadrants", "-q",
        help="Colour signature is a QUADRANTS x QUADRANTS grid",
    ),
    dither_radius: int | None = typer.Option(
        _DEFAULTS.dithering_radius, "--dither-radius",
        help="Avoid repeating tiles within this many cells (default: off)",
    ),
    seed: int | None = typer.Option(
        _DEFAULTS.seed, "--seed", "-s", help="Random seed (None = random)",
    ),
    workers: int = typer.Option(
        _DEFAULTS.workers, "--workers", "-w", help="Matching threads",
    ),
    quality: int = typer.Option(
        _DEFAULTS.jpeg_quality, "--quality", help="JPEG quality",
    ),
    output_format: str = typer.Option(
        _DEFAULTS.output_format, "--format", "-f", help="Output image format",
    ),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
        help="Save a source/mosaic comparison image",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Build a mosaic for every image in INPUT_DIR from the tiles in TILES_DIR."""
    _setup_logging(verbose)
    logger = logging.getLogger("tile_mosaic")

    cfg = MosaicConfig(
        tile_width=tile_width,
        tile_height=tile_height,
        scale_multiplier=scale,
        quadrant_division_count=quadrants,
        dithering_radius=dither_radius,
        seed=seed,
        workers=workers,
        jpeg_quality=quality,
        output_format=output_format,
        save_comparison=comparison,
        input_dir=input_dir,
        tiles_dir=tiles_dir,
        output_dir=output_dir,
    )
    try:
        cfg.validate()
    except MosaicError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    input_dir.mkdir(exist_ok=True)
    output_dir.mkdir(exist_ok=True)

    images = collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS, recursive=False)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    tiles = load_tiles(tiles_dir, cfg.SUPPORTED_EXTENSIONS)
    if not tiles:
        console.print(f"\n[red]No usable tile images in {tiles_dir}/[/red]\n")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold]TILE MOSAIC GENERATOR[/bold]\n"
        f"Cell: {cfg.tile_width}x{cfg.tile_height}  |  Scale: {cfg.scale_multiplier}\n"
        f"Quadrants: {cfg.quadrant_division_count}  |  Dither radius: {cfg.dithering_radius}\n"
        f"Tiles: {len(tiles)}  |  Images: {len(images)}",
        border_style="cyan",
    ))

    failed = 0
    for idx, img_path in enumerate(images, 1):
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        output = output_dir / f"{img_path.stem}_mosaic.{cfg.output_format}"
        try:
            _run(cfg, img_path, tiles, output)
        except MosaicError as exc:
            failed += 1
            logger.error("Failed %s: %s", img_path.name, exc)

    style = "green" if not failed else "yellow"
    console.print(Panel.fit(
        f"[bold {style}]ALL DONE[/bold {style}] - "
        f"{len(images) - failed}/{len(images)} mosaics in [bold]{output_dir}/[/bold]",
        border_style=style,
    ))


# -- single-image command ----------------------------------------------

@app.command()
def single(
    source: Path = typer.Argument(..., help="Path to the source image"),
    tiles_dir: Path = typer.Argument(..., help="Folder with tile images"),
    output: Path = typer.Option(Path("output/mosaic.jpg"), "--output", "-o"),
    tile_width: int = typer.Option(_DEFAULTS.tile_width, "--tile-width", "-W"),
    tile_height: int = typer.Option(_DEFAULTS.tile_height, "--tile-height", "-H"),
    scale: int = typer.Option(_DEFAULTS.scale_multiplier, "--scale", "-x"),
    quadrants: int = typer.Option(_DEFAULTS.quadrant_division_count, "--quadrants", "-q"),
    dither_radius: int | None = typer.Option(_DEFAULTS.dithering_radius, "--dither-radius"),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s"),
    workers: int = typer.Option(_DEFAULTS.workers, "--workers", "-w"),
    quality: int = typer.Option(_DEFAULTS.jpeg_quality, "--quality"),
    comparison: bool = typer.Option(_DEFAULTS.save_comparison, "--comparison/--no-comparison"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Build one mosaic of SOURCE from the tiles in TILES_DIR."""
    _setup_logging(verbose)

    cfg = MosaicConfig(
        tile_width=tile_width,
        tile_height=tile_height,
        scale_multiplier=scale,
        quadrant_division_count=quadrants,
        dithering_radius=dither_radius,
        seed=seed,
        workers=workers,
        jpeg_quality=quality,
        save_comparison=comparison,
    )

    output.parent.mkdir(parents=True, exist_ok=True)
    try:
        cfg.validate()
        tiles = load_tiles(tiles_dir, cfg.SUPPORTED_EXTENSIONS)
        _run(cfg, source, tiles, output)
    except MosaicError as exc:
        console.print(f"[red]✗ {exc}[/red]")
        raise typer.Exit(1) from exc


if __name__ == "__main__":
    app()
