"""Nearest-tile search over a :class:`TileColorIndex`."""

from __future__ import annotations

import logging
from collections.abc import Collection

import numpy as np

from tile_mosaic.color_utils import quadrant_distances
from tile_mosaic.errors import InputError
from tile_mosaic.tile_index import TileColorIndex, TileSignature

logger = logging.getLogger(__name__)


def neighbourhood_tiles(
    grid: np.ndarray,
    cell: tuple[int, int],
    radius: int,
) -> set[int]:
    """Tile indices already placed within Chebyshev *radius* of *cell*.

    Args:
        grid:   (y_count, x_count) tile indices, ``-1`` where empty.
        cell:   ``(cell_x, cell_y)``.
        radius: Neighbourhood half-width in cells.
    """
    cx, cy = cell
    y_count, x_count = grid.shape
    window = grid[
        max(0, cy - radius):min(y_count, cy + radius + 1),
        max(0, cx - radius):min(x_count, cx + radius + 1),
    ]
    return {int(i) for i in np.unique(window) if i >= 0}


class TileMatcher:
    """Pick the tile whose colour signature is closest to a cell's.

    Only reads the index, so one matcher can serve many threads.
    """

    def __init__(self, index: TileColorIndex) -> None:
        self.index = index

    def distances(self, cell_colors: np.ndarray) -> np.ndarray:
        """(N,) summed quadrant distance from *cell_colors* to every tile."""
        if len(self.index) == 0:
            msg = "Cannot match against an empty tile index"
            raise InputError(msg)
        return quadrant_distances(self.index.colors, cell_colors)

    def best_index(
        self,
        cell_colors: np.ndarray,
        excluded: Collection[int] = (),
    ) -> int:
        """Index of the closest tile; ties go to the earliest tile.

        Tiles in *excluded* are passed over unless that would leave
        nothing to choose from.
        """
        dist = self.distances(cell_colors)
        if excluded:
            masked = dist.copy()
            masked[list(excluded)] = np.inf
            if np.isfinite(masked).any():
                dist = masked
            else:
                logger.debug("All %d tiles excluded, ignoring exclusion", len(dist))
        # argmin returns the first minimum
        return int(np.argmin(dist))

    def match(
        self,
        cell_colors: np.ndarray,
        excluded: Collection[int] = (),
    ) -> TileSignature:
        """The closest :class:`TileSignature` for one cell."""
        return self.index[self.best_index(cell_colors, excluded)]
