"""Tests for the YIQ pixel diff and anti-aliasing suppression."""

import numpy as np
import pytest

from designdiff.engine.errors import CorruptImageData
from designdiff.engine.pixel_diff import AA_COLOR, DIFF_COLOR, compute_diff, max_delta_for
from designdiff.engine.raster import RasterImage
from tests.conftest import BLACK, GREY, WHITE, solid, with_block


def _aa_edge_pair() -> tuple[RasterImage, RasterImage]:
    """Hard black/white edge vs the same edge with a grey anti-aliased column."""
    expected = with_block(solid(10, 10, WHITE), 0, 0, 5, 10, BLACK)
    actual = with_block(expected, 5, 0, 1, 10, GREY)
    return expected, actual


def _noise_pair(seed: int = 7) -> tuple[RasterImage, RasterImage]:
    rng = np.random.default_rng(seed)
    base = rng.integers(0, 256, size=(40, 40, 4), dtype=np.uint8)
    base[..., 3] = 255
    jitter = rng.integers(-60, 61, size=(40, 40, 3))
    other = base.copy()
    other[..., :3] = np.clip(base[..., :3].astype(int) + jitter, 0, 255).astype(np.uint8)
    return RasterImage.from_array(base), RasterImage.from_array(other)


def test_identical_images(white_100):
    result = compute_diff(white_100, solid(100, 100))
    assert result.diff_pixel_count == 0
    assert result.match_percentage == 100.0
    assert result.is_empty
    assert result.mask.count == 0


def test_red_block(white_100, red_block_100):
    result = compute_diff(white_100, red_block_100)
    assert result.diff_pixel_count == 400
    assert result.total_pixels == 10_000
    assert result.match_percentage == pytest.approx(96.0)
    assert result.mask.cells[10:30, 10:30].all()
    assert result.mask.count == 400


def test_overlay_marks_diffs_red(white_100, red_block_100):
    overlay = compute_diff(white_100, red_block_100).overlay
    assert overlay.size == (100, 100)
    assert overlay.pixels[15, 15].tolist() == list(DIFF_COLOR)
    assert overlay.pixels[50, 50].tolist() == [255, 255, 255, 255]


def test_overlay_fades_unchanged_pixels():
    dark = solid(4, 4, BLACK)
    overlay = compute_diff(dark, dark, alpha=0.1).overlay
    assert overlay.pixels[0, 0].tolist() == [229, 229, 229, 255]


def test_size_mismatch_is_rejected():
    with pytest.raises(CorruptImageData):
        compute_diff(solid(10, 10), solid(11, 10))


def test_anti_aliased_edge_is_excluded():
    expected, actual = _aa_edge_pair()
    result = compute_diff(expected, actual)
    assert result.diff_pixel_count == 0
    assert result.anti_aliased_count == 10
    assert result.mask.count == 0
    assert result.overlay.pixels[4, 5].tolist() == list(AA_COLOR)


def test_anti_aliased_edge_counted_when_included():
    expected, actual = _aa_edge_pair()
    result = compute_diff(expected, actual, include_anti_aliasing=True)
    assert result.diff_pixel_count == 10
    assert result.anti_aliased_count == 0


def test_zero_threshold_counts_any_change():
    base = solid(3, 3, GREY)
    nudged = with_block(base, 1, 1, 1, 1, (129, 128, 128, 255))
    assert compute_diff(base, nudged, threshold=0.0, include_anti_aliasing=True).diff_pixel_count == 1
    assert compute_diff(base, nudged, threshold=0.1).diff_pixel_count == 0


def test_full_threshold_counts_nothing(white_100):
    assert compute_diff(white_100, solid(100, 100, BLACK), threshold=1.0).diff_pixel_count == 0


@pytest.mark.parametrize("include_aa", [False, True])
def test_threshold_is_monotonic(include_aa):
    expected, actual = _noise_pair()
    counts = [
        compute_diff(expected, actual, threshold=t, include_anti_aliasing=include_aa).diff_pixel_count
        for t in (0.0, 0.05, 0.1, 0.2, 0.4, 0.8)
    ]
    assert counts == sorted(counts, reverse=True)
    assert counts[0] > 0


def test_diff_is_deterministic():
    expected, actual = _noise_pair(seed=3)
    a = compute_diff(expected, actual)
    b = compute_diff(expected, actual)
    assert np.array_equal(a.mask.cells, b.mask.cells)
    assert np.array_equal(a.overlay.pixels, b.overlay.pixels)


def test_max_delta_scales_quadratically():
    assert max_delta_for(0.1) == pytest.approx(352.15)
    assert max_delta_for(0.2) == pytest.approx(4 * max_delta_for(0.1))
