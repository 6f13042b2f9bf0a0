"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from tile_mosaic.errors import ConfigurationError

# Environment variable -> MosaicConfig field
ENV_VARS: dict[str, str] = {
    "MOSAIC_TILE_WIDTH": "tile_width",
    "MOSAIC_TILE_HEIGHT": "tile_height",
    "MOSAIC_SCALE_MULTIPLIER": "scale_multiplier",
    "MOSAIC_QUADRANT_DIVISIONS": "quadrant_division_count",
    "MOSAIC_DITHERING_RADIUS": "dithering_radius",
    "MOSAIC_SEED": "seed",
}


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for a mosaic run.

    Attributes:
        tile_width:      Width of one source cell in pixels.
        tile_height:     Height of one source cell in pixels.
        scale_multiplier: Each tile is rendered at cell size x this factor.
        quadrant_division_count: Cells and tiles are summarised as an
                         S x S grid of average colours (S=1 is one colour).
        dithering_radius: Skip tiles already placed within this Chebyshev
                         radius of a cell (None = reuse freely).
        seed:            Random seed for the draw order (None = non-deterministic).
        overlay_alpha:   Opacity (0-255) of the source drawn under the tiles.
        background:      Canvas colour behind the source overlay.
        workers:         Threads used for tile matching.
        jpeg_quality:    Encoder quality for JPEG output.
        output_format:   Image format for saved files.
        save_comparison: Generate a side-by-side comparison image.
        input_dir:       Folder to scan for source images.
        tiles_dir:       Folder to scan for tile images.
        output_dir:      Folder for results.
    """

    # Grid
    tile_width: int = 16
    tile_height: int = 16
    scale_multiplier: int = 1

    # Matching
    quadrant_division_count: int = 1
    dithering_radius: int | None = None  # None keeps exclusion off
    seed: int | None = None

    # Rendering
    overlay_alpha: int = 200  # ~78% opacity
    background: tuple[int, int, int] = (255, 255, 255)
    workers: int = 1

    # Output
    jpeg_quality: int = 80
    output_format: str = "jpg"
    save_comparison: bool = False

    # Paths
    input_dir: Path = field(default_factory=lambda: Path("images"))
    tiles_dir: Path = field(default_factory=lambda: Path("tiles"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".jfif"}
    )

    @property
    def final_tile_size(self) -> tuple[int, int]:
        """Rendered (width, height) of one tile in the output image."""
        return (
            self.tile_width * self.scale_multiplier,
            self.tile_height * self.scale_multiplier,
        )

    def validate(self) -> MosaicConfig:
        """Raise :class:`ConfigurationError` on any out-of-range value."""
        for name in ("tile_width", "tile_height", "scale_multiplier",
                     "quadrant_division_count", "workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                msg = f"{name} must be a positive integer, got {value!r}"
                raise ConfigurationError(msg)

        s = self.quadrant_division_count
        if s > self.tile_width or s > self.tile_height:
            msg = (
                f"quadrant_division_count={s} exceeds the "
                f"{self.tile_width}x{self.tile_height} tile size"
            )
            raise ConfigurationError(msg)

        if self.dithering_radius is not None and self.dithering_radius < 0:
            msg = f"dithering_radius must be >= 0, got {self.dithering_radius}"
            raise ConfigurationError(msg)

        if not 0 <= self.overlay_alpha <= 255:
            msg = f"overlay_alpha must be within 0-255, got {self.overlay_alpha}"
            raise ConfigurationError(msg)

        if not 1 <= self.jpeg_quality <= 100:
            msg = f"jpeg_quality must be within 1-100, got {self.jpeg_quality}"
            raise ConfigurationError(msg)
        return self

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: object,
    ) -> MosaicConfig:
        """Build a config from ``MOSAIC_*`` environment variables.

        Unset or empty variables keep their defaults; keyword *overrides*
        win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for var, name in ENV_VARS.items():
            raw = env.get(var, "").strip()
            if not raw:
                continue
            try:
                values[name] = int(raw)
            except ValueError:
                msg = f"{var} must be an integer, got {raw!r}"
                raise ConfigurationError(msg) from None

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            msg = f"Unknown configuration fields: {', '.join(sorted(unknown))}"
            raise ConfigurationError(msg)
        values.update(overrides)
        return replace(cls(), **values)
