"""Image decoding, saving, and comparison-grid generation."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO

import numpy as np
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from tile_mosaic.errors import DecodeError

logger = logging.getLogger(__name__)

# Anything the engine accepts where it needs pixels
ImageLike = np.ndarray | Image.Image | str | Path | BinaryIO


def load_raster(path: str | Path | BinaryIO) -> np.ndarray:
    """Decode an image file or binary stream to an (H, W, 3) uint8 RGB array.

    Raises:
        DecodeError: the file is missing or not a readable image.
    """
    try:
        with Image.open(path) as img:
            return np.array(img.convert("RGB"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as exc:
        msg = f"Cannot decode image {path}: {exc}"
        raise DecodeError(msg) from exc


def to_raster(image: ImageLike) -> np.ndarray:
    """Normalise a path, stream, PIL image or array to (H, W, 3) uint8 RGB.

    Raises:
        DecodeError: a path, stream or lazily loaded PIL image cannot be decoded.
        ValueError: an array is not uint8 or has the wrong shape.
    """
    if isinstance(image, (str, Path)) or hasattr(image, "read"):
        return load_raster(image)
    if isinstance(image, Image.Image):
        try:
            return np.array(image.convert("RGB"), dtype=np.uint8)
        except (UnidentifiedImageError, OSError) as exc:
            msg = f"Cannot decode image {image_name(image, 'in memory')}: {exc}"
            raise DecodeError(msg) from exc

    arr = np.asarray(image)
    if arr.dtype != np.uint8:
        msg = f"Expected a uint8 raster, got dtype {arr.dtype}"
        raise ValueError(msg)
    if arr.ndim == 2:
        arr = np.stack([arr] * 3, axis=-1)
    if arr.ndim != 3 or arr.shape[2] < 3:
        msg = f"Expected an (H, W, 3) raster, got shape {arr.shape}"
        raise ValueError(msg)
    return np.ascontiguousarray(arr[:, :, :3])


def image_name(image: ImageLike, fallback: str) -> str:
    """Readable label for a tile: file name for paths, *fallback* otherwise."""
    if isinstance(image, (str, Path)):
        return Path(image).name
    filename = getattr(image, "filename", "")
    return Path(filename).name if filename else fallback


def collect_images(
    folder: str | Path,
    extensions: Iterable[str],
    recursive: bool = True,
) -> list[Path]:
    """Image files in *folder* (and its subfolders if *recursive*), sorted."""
    root = Path(folder)
    if not root.exists():
        return []
    exts = {e.lower() for e in extensions}
    return sorted(
        f for f in (root.rglob("*") if recursive else root.iterdir())
        if f.is_file() and f.suffix.lower() in exts
    )


def load_tiles(
    folder: str | Path,
    extensions: Iterable[str],
) -> list[tuple[str, np.ndarray]]:
    """Decode every tile image in *folder*, skipping unreadable files.

    Returns:
        ``(file name, raster)`` pairs in path order.
    """
    tiles: list[tuple[str, np.ndarray]] = []
    for path in collect_images(folder, extensions):
        try:
            tiles.append((path.name, load_raster(path)))
        except DecodeError as exc:
            logger.warning("Skipping tile: %s", exc)
    logger.info("Loaded %d tile images from %s", len(tiles), folder)
    return tiles


def save_image(
    raster: np.ndarray,
    path: str | Path,
    quality: int = 80,
) -> None:
    """Encode a raster to *path*; JPEG output uses *quality*."""
    path = Path(path)
    img = Image.fromarray(raster.astype(np.uint8))
    if path.suffix.lower() in {".jpg", ".jpeg", ".jfif"}:
        img.save(path, quality=quality)
    else:
        img.save(path)


def make_comparison_grid(
    source: np.ndarray,
    mosaic: np.ndarray,
    output_path: str | Path,
    panel_height: int = 480,
) -> None:
    """Create a 2-panel comparison: Source | Mosaic.

    Both panels are scaled to *panel_height* keeping the mosaic's
    aspect ratio.
    """
    mh, mw = mosaic.shape[:2]
    panel_w = max(1, round(mw * panel_height / mh))
    label_height = 36

    panels = [
        Image.fromarray(source).resize((panel_w, panel_height), Image.LANCZOS),
        Image.fromarray(mosaic).resize((panel_w, panel_height), Image.LANCZOS),
    ]
    labels = ["Source", f"Mosaic {mw}x{mh}"]

    gap = 8
    total_w = len(panels) * panel_w + (len(panels) - 1) * gap
    total_h = panel_height + label_height

    canvas = Image.new("RGB", (total_w, total_h), (30, 30, 30))
    draw = ImageDraw.Draw(canvas)

    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 18,
        )
    except OSError:
        font = ImageFont.load_default()

    for i, (panel, label) in enumerate(zip(panels, labels, strict=False)):
        x = i * (panel_w + gap)
        canvas.paste(panel, (x, label_height))

        bbox = draw.textbbox((0, 0), label, font=font)
        text_w = bbox[2] - bbox[0]
        tx = x + (panel_w - text_w) // 2
        draw.text((tx, 6), label, fill=(220, 220, 220), font=font)

    canvas.save(output_path)
