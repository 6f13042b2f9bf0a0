"""Mosaic composition: grid sizing, draw order, matching and rendering."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace

import numpy as np
from PIL import Image

from tile_mosaic.config import MosaicConfig
from tile_mosaic.image_io import ImageLike, to_raster
from tile_mosaic.matcher import TileMatcher, neighbourhood_tiles
from tile_mosaic.source_grid import SourceColorGrid
from tile_mosaic.tile_index import TileColorIndex

logger = logging.getLogger(__name__)

Cell = tuple[int, int]


@dataclass(frozen=True)
class MosaicResult:
    """Everything a finished job produced.

    Attributes:
        image:        (H, W, 3) uint8 composed raster.
        grid:         (y_count, x_count) index of the tile used per cell.
        draw_order:   Cells in the order they were matched and drawn.
        tile_names:   Name of each tile index in ``grid``.
        final_tile_size: Rendered (width, height) of one tile.
    """

    image: np.ndarray
    grid: np.ndarray
    draw_order: list[Cell]
    tile_names: list[str]
    final_tile_size: tuple[int, int]

    @property
    def x_tile_count(self) -> int:
        return self.grid.shape[1]

    @property
    def y_tile_count(self) -> int:
        return self.grid.shape[0]

    @property
    def tiles_used(self) -> int:
        return len(np.unique(self.grid))


def make_draw_order(cells: Sequence[Cell], rng: np.random.Generator) -> list[Cell]:
    """Uniformly random permutation of *cells*, each exactly once."""
    return [cells[i] for i in rng.permutation(len(cells))]


def overlay_source(
    source: np.ndarray,
    size: tuple[int, int],
    alpha: int,
    background: tuple[int, int, int],
) -> np.ndarray:
    """Canvas of *size* = *source* drawn at ``alpha/255`` over *background*."""
    width, height = size
    if source.shape[1] != width or source.shape[0] != height:
        source = np.array(
            Image.fromarray(source).resize((width, height), Image.LANCZOS),
            dtype=np.uint8,
        )
    a = alpha / 255.0
    bg = np.asarray(background, dtype=np.float64)
    blended = source.astype(np.float64) * a + bg * (1.0 - a)
    return np.clip(np.rint(blended), 0, 255).astype(np.uint8)


def darken_into(canvas: np.ndarray, tile: np.ndarray, x: int, y: int) -> None:
    """Darken-blend *tile* into *canvas* at (x, y): per-channel minimum."""
    h, w = tile.shape[:2]
    region = canvas[y:y + h, x:x + w]
    np.minimum(region, tile, out=region)


class MosaicComposer:
    """Build one mosaic.

    Every :meth:`compose` call builds its own tile index, source grid and
    matcher, and with ``config.seed`` set it draws its order from a new
    generator seeded the same way, so repeated calls give identical output.
    An injected *rng* is used as is: one job per generator.
    """

    def __init__(
        self,
        config: MosaicConfig | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.config = (config or MosaicConfig()).validate()
        self._rng = rng

    def compose(
        self,
        source: ImageLike,
        tiles: Iterable[ImageLike],
        names: Sequence[str] | None = None,
    ) -> MosaicResult:
        """Match and render every cell of *source* with the best tile.

        Raises:
            InputError: empty source or no usable tile.
            DecodeError: *source* is a path, stream or image that cannot be decoded.
        """
        cfg = self.config
        t_total = time.perf_counter()

        src = to_raster(source)
        s = cfg.quadrant_division_count

        source_grid = SourceColorGrid.build(src, cfg.tile_width, cfg.tile_height, s)
        index = TileColorIndex.build(tiles, s, names=names)
        matcher = TileMatcher(index)

        x_count = source_grid.x_tile_count
        y_count = source_grid.y_tile_count
        fw, fh = cfg.final_tile_size
        target_w, target_h = x_count * fw, y_count * fh
        logger.info(
            "Mosaic: %dx%d cells -> %dx%d px (tile %dx%d, scale %d)",
            x_count, y_count, target_w, target_h, fw, fh, cfg.scale_multiplier,
        )

        # Only the gridded part of the source shows through
        covered = src[:y_count * cfg.tile_height, :x_count * cfg.tile_width]
        canvas = overlay_source(
            covered, (target_w, target_h), cfg.overlay_alpha, cfg.background,
        )

        rng = self._rng if self._rng is not None else np.random.default_rng(cfg.seed)
        order = make_draw_order(source_grid.cells(), rng)
        grid = np.full((y_count, x_count), -1, dtype=np.int64)

        t0 = time.perf_counter()
        chosen = self._match_cells(order, source_grid, matcher, grid)
        logger.info(
            "Matched %d cells against %d tiles  (%.2f s)",
            len(order), len(index), time.perf_counter() - t0,
        )

        t0 = time.perf_counter()
        resized: dict[int, np.ndarray] = {}
        for (cx, cy), tile_idx in zip(order, chosen, strict=True):
            grid[cy, cx] = tile_idx
            tile = resized.get(tile_idx)
            if tile is None:
                tile = self._fit_tile(index[tile_idx].raster, fw, fh)
                resized[tile_idx] = tile
            darken_into(canvas, tile, cx * fw, cy * fh)
        logger.info(
            "Rendered %d cells with %d distinct tiles  (%.2f s)",
            len(order), len(resized), time.perf_counter() - t0,
        )

        logger.info("Mosaic done  (%.2f s)", time.perf_counter() - t_total)
        return MosaicResult(
            image=canvas,
            grid=grid,
            draw_order=order,
            tile_names=index.names,
            final_tile_size=(fw, fh),
        )

    def _match_cells(
        self,
        order: list[Cell],
        source_grid: SourceColorGrid,
        matcher: TileMatcher,
        grid: np.ndarray,
    ) -> list[int]:
        radius = self.config.dithering_radius

        if radius is not None:
            # Each choice depends on the ones before it: stay in draw order
            chosen = []
            for cell in order:
                excluded = neighbourhood_tiles(grid, cell, radius)
                idx = matcher.best_index(source_grid[cell], excluded)
                grid[cell[1], cell[0]] = idx
                chosen.append(idx)
                logger.debug("Cell %s -> tile %d (%d excluded)", cell, idx, len(excluded))
            return chosen

        if self.config.workers > 1 and len(order) > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                return list(pool.map(
                    lambda cell: matcher.best_index(source_grid[cell]), order,
                ))

        return [matcher.best_index(source_grid[cell]) for cell in order]

    @staticmethod
    def _fit_tile(raster: np.ndarray, width: int, height: int) -> np.ndarray:
        if raster.shape[1] == width and raster.shape[0] == height:
            return raster
        img = Image.fromarray(raster).resize((width, height), Image.LANCZOS)
        return np.array(img, dtype=np.uint8)


def build_mosaic(
    source: ImageLike,
    tiles: Iterable[ImageLike],
    config: MosaicConfig | None = None,
    seed: int | None = None,
) -> np.ndarray:
    """One-shot helper: compose and return just the output raster."""
    cfg = config or MosaicConfig()
    if seed is not None:
        cfg = replace(cfg, seed=seed)
    return MosaicComposer(cfg).compose(source, tiles).image
