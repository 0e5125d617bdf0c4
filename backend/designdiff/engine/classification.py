"""Stage 4 — Region Classifier.

Samples expected/actual colours inside each segment, then labels the segment
with a coarse region type and a severity bucket. Sampling walks the segment's
pixels in flood-fill order, so identical inputs always see identical samples.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

import numpy as np

from designdiff.engine.config import DiffConfig
from designdiff.engine.raster import RasterImage
from designdiff.engine.segmentation import Segment
from designdiff.utils.color import rgb_distance
from designdiff.utils.geometry import Box

logger = logging.getLogger(__name__)


class RegionType(str, enum.Enum):
    SMALL_DETAIL = "small_detail"
    LARGE_AREA = "large_area"
    HORIZONTAL_ELEMENT = "horizontal_element"
    VERTICAL_ELEMENT = "vertical_element"
    COLOR_MISMATCH = "color_mismatch"
    GENERAL_DIFFERENCE = "general_difference"


class Severity(str, enum.Enum):
    TRIVIAL = "trivial"
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ColorStats:
    """Euclidean RGB distance between expected and actual at sampled pixels."""

    average: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    sample_size: int = 0


@dataclass(frozen=True, eq=False)
class Region:
    """A segment together with its classification. Immutable once built."""

    segment: Segment
    color_stats: ColorStats
    region_type: RegionType
    severity: Severity
    severity_score: float

    @property
    def id(self) -> str:
        return self.segment.id

    @property
    def bounds(self) -> Box:
        return self.segment.bounds

    @property
    def padded_box(self) -> Box:
        return self.segment.padded_box

    @property
    def center(self) -> tuple[float, float]:
        return self.segment.center

    @property
    def pixel_count(self) -> int:
        return self.segment.pixel_count

    @property
    def density(self) -> float:
        return self.segment.density


def sample_color_stats(
    segment: Segment,
    expected: RasterImage,
    actual: RasterImage,
    sample_size: int = 100,
) -> ColorStats:
    xs = segment.xs[:sample_size]
    ys = segment.ys[:sample_size]
    if len(xs) == 0:
        return ColorStats()
    distances = rgb_distance(expected.pixels[ys, xs], actual.pixels[ys, xs])
    return ColorStats(
        average=float(np.mean(distances)),
        minimum=float(np.min(distances)),
        maximum=float(np.max(distances)),
        sample_size=int(len(distances)),
    )


def classify_type(pixel_count: int, bounds: Box, stats: ColorStats, config: DiffConfig) -> RegionType:
    """First matching rule wins."""
    aspect = bounds.aspect_ratio
    if pixel_count < config.small_detail_area:
        return RegionType.SMALL_DETAIL
    if pixel_count > config.large_area:
        return RegionType.LARGE_AREA
    if aspect > config.horizontal_aspect:
        return RegionType.HORIZONTAL_ELEMENT
    if aspect < config.vertical_aspect:
        return RegionType.VERTICAL_ELEMENT
    if stats.average > config.color_mismatch_distance:
        return RegionType.COLOR_MISMATCH
    return RegionType.GENERAL_DIFFERENCE


def severity_score(pixel_count: int, stats: ColorStats, config: DiffConfig) -> float:
    """Weighted blend of area and colour scores, both capped at ``severity_score_cap``."""
    area_score = min(pixel_count / config.severity_area_norm, config.severity_score_cap)
    color_score = min(stats.average / config.severity_color_norm, config.severity_score_cap)
    return config.severity_area_weight * area_score + config.severity_color_weight * color_score


def bucket_severity(score: float, config: DiffConfig) -> Severity:
    if score > config.severity_critical:
        return Severity.CRITICAL
    if score > config.severity_major:
        return Severity.MAJOR
    if score > config.severity_minor:
        return Severity.MINOR
    return Severity.TRIVIAL


def classify_region(
    segment: Segment,
    expected: RasterImage,
    actual: RasterImage,
    config: DiffConfig | None = None,
) -> Region:
    config = config or DiffConfig()
    stats = sample_color_stats(segment, expected, actual, config.color_sample_size)
    score = severity_score(segment.pixel_count, stats, config)
    return Region(
        segment=segment,
        color_stats=stats,
        region_type=classify_type(segment.pixel_count, segment.bounds, stats, config),
        severity=bucket_severity(score, config),
        severity_score=score,
    )


def classify_regions(
    segments: list[Segment],
    expected: RasterImage,
    actual: RasterImage,
    config: DiffConfig | None = None,
) -> list[Region]:
    config = config or DiffConfig()
    regions = [classify_region(s, expected, actual, config) for s in segments]
    logger.debug("Classified %d regions", len(regions))
    return regions
