"""
Tile Mosaic Generator
=====================

Rebuild any source image out of a pool of smaller tile images. The
source is cut into a grid of cells, each cell is replaced by the tile
whose average colours are closest, and the tiles are darken-blended over
a washed-out copy of the source so its tones carry through.

- **Quadrant matching**: cells and tiles are compared as S x S grids of
  average colours (S=1 by default).
- **Seeded draw order**: reproducible output for a fixed seed.
"""

__version__ = "1.0.0"

from tile_mosaic.color_utils import average_color_grid, mosaic_psnr, quadrant_distances
from tile_mosaic.composer import MosaicComposer, MosaicResult, build_mosaic
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import ConfigurationError, DecodeError, InputError, MosaicError
from tile_mosaic.image_io import (
    load_raster,
    load_tiles,
    make_comparison_grid,
    save_image,
)
from tile_mosaic.matcher import TileMatcher
from tile_mosaic.source_grid import SourceColorGrid, compute_grid_size
from tile_mosaic.tile_index import TileColorIndex, TileSignature

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "InputError",
    "MosaicComposer",
    "MosaicConfig",
    "MosaicError",
    "MosaicResult",
    "SourceColorGrid",
    "TileColorIndex",
    "TileMatcher",
    "TileSignature",
    "average_color_grid",
    "build_mosaic",
    "compute_grid_size",
    "load_raster",
    "load_tiles",
    "make_comparison_grid",
    "mosaic_psnr",
    "quadrant_distances",
    "save_image",
]
