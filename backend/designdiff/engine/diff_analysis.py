"""Whole-image analyses of a finished diff: density heatmap and colour transitions.

Both read the counted-diff mask, so anti-aliased pixels excluded by the diff
never show up here either.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from designdiff.engine.raster import DiffMask, RasterImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Heatmap:
    """Diff-pixel counts per ``cell_size`` square, normalised to the busiest cell.

    Edge cells that overhang the image only count the pixels they cover.
    """

    cell_size: int
    width: int
    height: int
    max_count: int
    cells: tuple[tuple[float, ...], ...]


@dataclass(frozen=True)
class ColorTransition:
    expected: tuple[int, int, int]
    actual: tuple[int, int, int]
    pixel_count: int


def diff_heatmap(mask: DiffMask, cell_size: int = 10) -> Heatmap:
    height, width = mask.height, mask.width
    grid_w = -(-width // cell_size)
    grid_h = -(-height // cell_size)

    padded = np.zeros((grid_h * cell_size, grid_w * cell_size), dtype=np.int64)
    padded[:height, :width] = mask.cells
    counts = padded.reshape(grid_h, cell_size, grid_w, cell_size).sum(axis=(1, 3))

    max_count = int(counts.max()) if counts.size else 0
    normalised = counts / max_count if max_count else counts.astype(np.float64)
    return Heatmap(
        cell_size=cell_size,
        width=grid_w,
        height=grid_h,
        max_count=max_count,
        cells=tuple(tuple(row) for row in normalised.tolist()),
    )


def _pack_rgb(pixels: np.ndarray) -> np.ndarray:
    rgb = pixels[..., :3].astype(np.uint64)
    return (rgb[..., 0] << np.uint64(16)) | (rgb[..., 1] << np.uint64(8)) | rgb[..., 2]


def _unpack_rgb(value: int) -> tuple[int, int, int]:
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def color_transitions(
    expected: RasterImage,
    actual: RasterImage,
    mask: DiffMask,
    limit: int = 20,
) -> list[ColorTransition]:
    """Most frequent expected→actual RGB pairs among differing pixels.

    Ordered by pixel count descending; ties go to the lower packed colour pair
    so the order is reproducible.
    """
    cells = mask.cells
    if not cells.any():
        return []
    pairs = (_pack_rgb(expected.pixels[cells]) << np.uint64(24)) | _pack_rgb(actual.pixels[cells])
    keys, counts = np.unique(pairs, return_counts=True)
    order = np.argsort(-counts, kind="stable")[:limit]

    transitions = []
    for idx in order.tolist():
        key = int(keys[idx])
        transitions.append(ColorTransition(
            expected=_unpack_rgb(key >> 24),
            actual=_unpack_rgb(key & 0xFFFFFF),
            pixel_count=int(counts[idx]),
        ))
    logger.debug("Colour transitions: %d distinct, kept %d", len(keys), len(transitions))
    return transitions
