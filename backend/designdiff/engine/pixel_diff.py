"""Stage 2 — Pixel Diff Engine.

Per-pixel YIQ comparison of two equal-sized RGBA buffers, with optional
suppression of anti-aliased edge pixels. Produces the boolean diff mask, the
counts behind the match percentage, and a visual overlay for humans.

Anti-aliasing test (Vyšniauskas, "Anti-aliased Pixel and Intensity Slope
Detector", 2009): a pixel is an anti-aliased edge when its 3×3 neighbourhood
shows a brightness slope (a darker and a brighter neighbour, few equal ones)
and the extreme neighbour sits inside a flat area in both images.

All neighbourhood work is done on the gathered coordinates of pixels that
already exceed the threshold, so memory stays O(diff pixels) instead of
O(8 × image).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from designdiff.engine.errors import CorruptImageData, Stage
from designdiff.engine.raster import DiffMask, RasterImage
from designdiff.utils.color import MAX_YIQ_DELTA, brightness, rgb_to_y, yiq_delta

logger = logging.getLogger(__name__)

# 8-neighbourhood in scan order: x outer, y inner. The order decides which
# neighbour wins a tie for darkest/brightest.
_NEIGHBOURS = tuple((dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if dx or dy)

# More than this many identical neighbours (image edge counts as one) means
# the pixel sits in a flat area.
_FLAT_NEIGHBOURS = 2

DIFF_COLOR = (255, 0, 0, 255)
AA_COLOR = (255, 255, 0, 255)


@dataclass(frozen=True)
class PixelDiffResult:
    mask: DiffMask
    diff_pixel_count: int
    anti_aliased_count: int
    total_pixels: int
    overlay: RasterImage

    @property
    def match_percentage(self) -> float:
        if self.total_pixels == 0:
            return 100.0
        return (self.total_pixels - self.diff_pixel_count) / self.total_pixels * 100

    @property
    def is_empty(self) -> bool:
        return self.diff_pixel_count == 0


def max_delta_for(threshold: float) -> float:
    """Squared YIQ distance a pixel must exceed to count as different."""
    return MAX_YIQ_DELTA * threshold * threshold


def _on_edge(ys: NDArray[np.intp], xs: NDArray[np.intp], height: int, width: int) -> NDArray[np.bool_]:
    return (xs == 0) | (xs == width - 1) | (ys == 0) | (ys == height - 1)


def _neighbour_coords(
    ys: NDArray[np.intp], xs: NDArray[np.intp], dx: int, dy: int, height: int, width: int,
) -> tuple[NDArray[np.intp], NDArray[np.intp], NDArray[np.bool_]]:
    ny = ys + dy
    nx = xs + dx
    valid = (ny >= 0) & (ny < height) & (nx >= 0) & (nx < width)
    return np.clip(ny, 0, height - 1), np.clip(nx, 0, width - 1), valid


def has_many_siblings(pixels: NDArray[np.uint8], ys: NDArray[np.intp], xs: NDArray[np.intp]) -> NDArray[np.bool_]:
    """True where more than two neighbours carry exactly the same RGBA value."""
    height, width = pixels.shape[:2]
    count = _on_edge(ys, xs, height, width).astype(np.int64)
    centre = pixels[ys, xs]
    for dx, dy in _NEIGHBOURS:
        ny, nx, valid = _neighbour_coords(ys, xs, dx, dy, height, width)
        same = np.all(pixels[ny, nx] == centre, axis=-1)
        count += valid & same
    return count > _FLAT_NEIGHBOURS


def anti_aliased(
    image: NDArray[np.uint8],
    other: NDArray[np.uint8],
    ys: NDArray[np.intp],
    xs: NDArray[np.intp],
) -> NDArray[np.bool_]:
    """Anti-aliasing test for the given coordinates of ``image``, cross-checked in ``other``."""
    height, width = image.shape[:2]
    n = len(ys)
    zeroes = _on_edge(ys, xs, height, width).astype(np.int64)
    min_delta = np.zeros(n)
    max_delta = np.zeros(n)
    min_y, min_x = ys.copy(), xs.copy()
    max_y, max_x = ys.copy(), xs.copy()

    centre = brightness(image[ys, xs])
    for dx, dy in _NEIGHBOURS:
        ny, nx, valid = _neighbour_coords(ys, xs, dx, dy, height, width)
        delta = centre - brightness(image[ny, nx])
        zero = valid & (delta == 0)
        zeroes += zero
        darker = valid & ~zero & (delta < min_delta)
        brighter = valid & ~zero & ~darker & (delta > max_delta)
        min_delta = np.where(darker, delta, min_delta)
        max_delta = np.where(brighter, delta, max_delta)
        min_y = np.where(darker, ny, min_y)
        min_x = np.where(darker, nx, min_x)
        max_y = np.where(brighter, ny, max_y)
        max_x = np.where(brighter, nx, max_x)

    sloped = (zeroes <= _FLAT_NEIGHBOURS) & (min_delta != 0) & (max_delta != 0)
    flat_min = has_many_siblings(image, min_y, min_x) & has_many_siblings(other, min_y, min_x)
    flat_max = has_many_siblings(image, max_y, max_x) & has_many_siblings(other, max_y, max_x)
    return sloped & (flat_min | flat_max)


def render_overlay(
    actual: NDArray[np.uint8],
    diff_cells: NDArray[np.bool_],
    aa_cells: NDArray[np.bool_],
    alpha: float,
) -> NDArray[np.uint8]:
    """Faded greyscale of ``actual`` with red diffs and yellow anti-aliased pixels."""
    luma = rgb_to_y(actual[..., :3].astype(np.float64))
    weight = alpha * actual[..., 3].astype(np.float64) / 255.0
    grey = np.clip(255.0 + (luma - 255.0) * weight, 0, 255).astype(np.uint8)

    overlay = np.empty(actual.shape, dtype=np.uint8)
    overlay[..., 0] = grey
    overlay[..., 1] = grey
    overlay[..., 2] = grey
    overlay[..., 3] = 255
    overlay[aa_cells] = AA_COLOR
    overlay[diff_cells] = DIFF_COLOR
    return overlay


def compute_diff(
    expected: RasterImage,
    actual: RasterImage,
    threshold: float = 0.1,
    include_anti_aliasing: bool = False,
    alpha: float = 0.1,
) -> PixelDiffResult:
    """Compare two equal-sized images pixel by pixel."""
    if expected.size != actual.size:
        raise CorruptImageData(
            f"Diff needs equal sizes, got {expected.width}x{expected.height} "
            f"and {actual.width}x{actual.height}",
            stage=Stage.DIFF,
        )

    height, width = actual.height, actual.width
    total = width * height
    a = expected.pixels
    b = actual.pixels

    if np.array_equal(a, b):
        empty = np.zeros((height, width), dtype=bool)
        return PixelDiffResult(
            mask=DiffMask.from_array(empty),
            diff_pixel_count=0,
            anti_aliased_count=0,
            total_pixels=total,
            overlay=RasterImage.from_array(render_overlay(b, empty, empty, alpha)),
        )

    exceeds = yiq_delta(a, b) > max_delta_for(threshold)
    ys, xs = np.nonzero(exceeds)

    aa_cells = np.zeros((height, width), dtype=bool)
    if not include_anti_aliasing and len(ys):
        aa = anti_aliased(a, b, ys, xs) | anti_aliased(b, a, ys, xs)
        aa_cells[ys[aa], xs[aa]] = True

    diff_cells = exceeds & ~aa_cells
    diff_count = int(np.count_nonzero(diff_cells))
    aa_count = int(np.count_nonzero(aa_cells))
    logger.debug(
        "Pixel diff: %d differing, %d anti-aliased excluded, %d total",
        diff_count, aa_count, total,
    )
    return PixelDiffResult(
        mask=DiffMask.from_array(diff_cells),
        diff_pixel_count=diff_count,
        anti_aliased_count=aa_count,
        total_pixels=total,
        overlay=RasterImage.from_array(render_overlay(b, diff_cells, aa_cells, alpha)),
    )
