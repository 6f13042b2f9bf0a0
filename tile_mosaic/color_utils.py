"""Average-colour grids, the tile distance metric and output quality."""

from __future__ import annotations

import numpy as np
from skimage.metrics import peak_signal_noise_ratio


def average_color_grid(
    raster: np.ndarray,
    bounds: tuple[int, int, int, int],
    divisions: int = 1,
) -> np.ndarray:
    """Reduce a rectangular region to a grid of average colours.

    The region is split into ``divisions x divisions`` sub-rectangles of
    ``width // divisions`` by ``height // divisions`` pixels; remainder
    pixels on the right/bottom of the region are not sampled.

    Args:
        raster:    (H, W, 3) uint8 RGB.
        bounds:    ``(x, y, width, height)`` of the region.
        divisions: Sub-divisions per side (S).

    Returns:
        (S, S, 3) int64 - per-channel means, truncated, indexed
        ``[row, col, channel]``.
    """
    x, y, width, height = bounds
    if divisions < 1:
        msg = f"divisions must be >= 1, got {divisions}"
        raise ValueError(msg)
    if x < 0 or y < 0 or x + width > raster.shape[1] or y + height > raster.shape[0]:
        msg = f"bounds {bounds} fall outside the {raster.shape[1]}x{raster.shape[0]} raster"
        raise ValueError(msg)

    dw = width // divisions
    dh = height // divisions
    if dw == 0 or dh == 0:
        msg = f"a {width}x{height} region cannot be split into {divisions}x{divisions}"
        raise ValueError(msg)

    region = raster[y:y + dh * divisions, x:x + dw * divisions, :3]
    blocks = region.astype(np.int64).reshape(divisions, dh, divisions, dw, 3)
    totals = blocks.sum(axis=(1, 3))
    return totals // (dw * dh)


def quadrant_distances(tile_colors: np.ndarray, cell_colors: np.ndarray) -> np.ndarray:
    """Distance from one cell signature to every tile signature.

    For each sub-quadrant the channels are squared *before* differencing::

        d_q = sqrt(|R_t^2 - R_c^2| + |G_t^2 - G_c^2| + |B_t^2 - B_c^2|)

    and the per-quadrant values are summed.  This is not a Euclidean
    colour distance; the ranking it produces is what the mosaic looks like.

    Args:
        tile_colors: (N, S, S, 3) integer tile signatures.
        cell_colors: (S, S, 3) integer cell signature.

    Returns:
        (N,) float64 total distance per tile.
    """
    t2 = tile_colors.astype(np.int64) ** 2
    c2 = cell_colors.astype(np.int64) ** 2
    per_quadrant = np.sqrt(np.abs(t2 - c2[np.newaxis]).sum(axis=-1))
    return per_quadrant.reshape(len(tile_colors), -1).sum(axis=1)


def mosaic_psnr(reference: np.ndarray, mosaic: np.ndarray) -> float:
    """Peak signal-to-noise ratio (dB) of the mosaic against its source.

    Both arrays must share the same (H, W, 3) shape.
    """
    if reference.shape != mosaic.shape:
        msg = f"shape mismatch: {reference.shape} vs {mosaic.shape}"
        raise ValueError(msg)
    return float(peak_signal_noise_ratio(reference, mosaic, data_range=255))
