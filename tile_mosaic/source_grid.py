"""Cell grid of the source image and its per-cell colour signatures."""

from __future__ import annotations

import logging
import time

import numpy as np

from tile_mosaic.color_utils import average_color_grid
from tile_mosaic.errors import InputError

logger = logging.getLogger(__name__)


def compute_grid_size(
    width: int,
    height: int,
    tile_width: int,
    tile_height: int,
) -> tuple[int, int]:
    """Number of whole cells (x, y) that fit in a width x height image.

    Remainder pixels on the right and bottom edges are not part of the grid.
    """
    return width // tile_width, height // tile_height


class SourceColorGrid:
    """One (S, S, 3) colour signature per source cell.

    ``grid[cx, cy]`` returns the signature of column *cx*, row *cy*.
    """

    def __init__(self, colors: np.ndarray, tile_width: int, tile_height: int) -> None:
        # (y_count, x_count, S, S, 3)
        colors.setflags(write=False)
        self.colors = colors
        self.tile_width = tile_width
        self.tile_height = tile_height

    @classmethod
    def build(
        cls,
        source: np.ndarray,
        tile_width: int,
        tile_height: int,
        divisions: int = 1,
    ) -> SourceColorGrid:
        """Average every tile_width x tile_height cell of *source*.

        Raises:
            InputError: the source is empty or smaller than one cell.
        """
        h, w = source.shape[:2]
        if w == 0 or h == 0:
            msg = "Source image is empty"
            raise InputError(msg)

        x_count, y_count = compute_grid_size(w, h, tile_width, tile_height)
        if x_count == 0 or y_count == 0:
            msg = (
                f"Source image {w}x{h} is smaller than one "
                f"{tile_width}x{tile_height} cell"
            )
            raise InputError(msg)

        t0 = time.perf_counter()
        colors = np.empty((y_count, x_count, divisions, divisions, 3), dtype=np.int64)
        for cy in range(y_count):
            for cx in range(x_count):
                bounds = (cx * tile_width, cy * tile_height, tile_width, tile_height)
                colors[cy, cx] = average_color_grid(source, bounds, divisions)

        logger.info(
            "Source grid ready: %dx%d cells of %dx%d px  (%.2f s)",
            x_count, y_count, tile_width, tile_height, time.perf_counter() - t0,
        )
        return cls(colors, tile_width, tile_height)

    @property
    def x_tile_count(self) -> int:
        return self.colors.shape[1]

    @property
    def y_tile_count(self) -> int:
        return self.colors.shape[0]

    def __getitem__(self, cell: tuple[int, int]) -> np.ndarray:
        cx, cy = cell
        return self.colors[cy, cx]

    def cells(self) -> list[tuple[int, int]]:
        """Every (cell_x, cell_y) coordinate, row by row."""
        return [
            (cx, cy)
            for cy in range(self.y_tile_count)
            for cx in range(self.x_tile_count)
        ]
