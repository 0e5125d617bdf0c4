"""Stage 1 — Image Preprocessor.

Brings the design export (expected) to the screenshot's (actual) dimensions.
The actual image defines the coordinate system of every later stage, so it is
never resampled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image

from designdiff.engine.config import DiffConfig
from designdiff.engine.errors import ExtremeDimensionMismatch, PipelineWarning, Stage
from designdiff.engine.raster import RasterImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreprocessResult:
    expected: RasterImage
    actual: RasterImage
    resize_applied: bool = False
    warnings: tuple[PipelineWarning, ...] = ()


def scale_ratios(expected: RasterImage, actual: RasterImage) -> tuple[float, float]:
    """Per-axis ratio of the larger to the smaller dimension (always >= 1)."""
    rx = max(expected.width, actual.width) / min(expected.width, actual.width)
    ry = max(expected.height, actual.height) / min(expected.height, actual.height)
    return rx, ry


def resize_nearest(image: RasterImage, width: int, height: int) -> RasterImage:
    """Nearest-neighbour resample, so no new colours are invented."""
    src = Image.fromarray(np.ascontiguousarray(image.pixels))
    try:
        resized = src.resize((width, height), Image.Resampling.NEAREST)
        try:
            return RasterImage.from_array(np.asarray(resized))
        finally:
            resized.close()
    finally:
        src.close()


def normalize_pair(
    expected: RasterImage,
    actual: RasterImage,
    config: DiffConfig | None = None,
) -> PreprocessResult:
    """Return both images at the actual image's size.

    Raises ``ExtremeDimensionMismatch`` when either axis differs by
    ``config.max_scale_ratio`` or more.
    """
    config = config or DiffConfig()
    if expected.size == actual.size:
        return PreprocessResult(expected=expected, actual=actual)

    rx, ry = scale_ratios(expected, actual)
    if rx >= config.max_scale_ratio or ry >= config.max_scale_ratio:
        raise ExtremeDimensionMismatch(expected.size, actual.size, config.max_scale_ratio)

    logger.warning(
        "Dimension mismatch: resizing expected %dx%d to %dx%d",
        expected.width, expected.height, actual.width, actual.height,
    )
    resized = resize_nearest(expected, actual.width, actual.height)
    warning = PipelineWarning(
        code="dimension_mismatch",
        message=(
            f"Expected image resized from {expected.width}x{expected.height} "
            f"to {actual.width}x{actual.height}"
        ),
        stage=Stage.PREPROCESS,
        details={
            "resize_applied": True,
            "original": {"width": expected.width, "height": expected.height},
            "target": {"width": actual.width, "height": actual.height},
            "scale_ratio": {"x": round(rx, 4), "y": round(ry, 4)},
        },
    )
    return PreprocessResult(expected=resized, actual=actual, resize_applied=True, warnings=(warning,))
