"""Per-tile colour signatures, computed once per mosaic job."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

import numpy as np

from tile_mosaic.color_utils import average_color_grid
from tile_mosaic.errors import DecodeError, InputError
from tile_mosaic.image_io import ImageLike, image_name, to_raster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileSignature:
    """A tile raster paired with its (S, S, 3) average-colour grid."""

    index: int
    raster: np.ndarray
    colors: np.ndarray
    name: str


class TileColorIndex:
    """Ordered, read-only collection of :class:`TileSignature`.

    Build with :meth:`build`; the stacked ``colors`` array is what the
    matcher scans.
    """

    def __init__(self, signatures: Sequence[TileSignature], divisions: int) -> None:
        self._signatures = tuple(signatures)
        self.divisions = divisions
        if self._signatures:
            colors = np.stack([s.colors for s in self._signatures])
        else:
            colors = np.empty((0, divisions, divisions, 3), dtype=np.int64)
        colors.setflags(write=False)
        self.colors = colors

    @classmethod
    def build(
        cls,
        tiles: Iterable[ImageLike],
        divisions: int = 1,
        names: Sequence[str] | None = None,
    ) -> TileColorIndex:
        """Decode (if needed) and summarise every tile.

        Tiles that fail to decode, or are smaller than *divisions* on a
        side, are skipped with a warning.

        Raises:
            InputError: no usable tile remains.
        """
        t0 = time.perf_counter()
        signatures: list[TileSignature] = []
        skipped = 0

        for position, tile in enumerate(tiles):
            if names is not None and position < len(names):
                name = names[position]
            else:
                name = image_name(tile, f"tile-{position}")

            try:
                raster = to_raster(tile)
            except (DecodeError, ValueError) as exc:
                logger.warning("Skipping tile %s: %s", name, exc)
                skipped += 1
                continue

            h, w = raster.shape[:2]
            if w < divisions or h < divisions:
                logger.warning(
                    "Skipping tile %s: %dx%d is smaller than %d quadrants per side",
                    name, w, h, divisions,
                )
                skipped += 1
                continue

            raster.setflags(write=False)
            colors = average_color_grid(raster, (0, 0, w, h), divisions)
            signatures.append(TileSignature(len(signatures), raster, colors, name))

        if not signatures:
            msg = "No usable tile images supplied"
            raise InputError(msg)

        logger.info(
            "Tile index ready: %d tiles, %d skipped, %dx%d quadrants  (%.2f s)",
            len(signatures), skipped, divisions, divisions,
            time.perf_counter() - t0,
        )
        return cls(signatures, divisions)

    def __len__(self) -> int:
        return len(self._signatures)

    def __iter__(self) -> Iterator[TileSignature]:
        return iter(self._signatures)

    def __getitem__(self, index: int) -> TileSignature:
        return self._signatures[index]

    @property
    def names(self) -> list[str]:
        return [s.name for s in self._signatures]
