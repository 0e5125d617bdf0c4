"""Leaf-node bounding-box helpers. No engine imports.

Boxes are half-open pixel rectangles: a box at (x, y) with width w covers
columns x .. x + w - 1. Centres are geometric, so a 20 px box starting at 10
has its centre at 20.0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle in pixel or design-space units."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def aspect_ratio(self) -> float:
        if self.height <= 0:
            return float("inf")
        return self.width / self.height

    def scaled(self, factor: float) -> Box:
        return Box(self.x * factor, self.y * factor, self.width * factor, self.height * factor)


def box_from_extent(min_x: int, min_y: int, max_x: int, max_y: int) -> Box:
    """Tight box around inclusive pixel extents."""
    return Box(min_x, min_y, max_x - min_x + 1, max_y - min_y + 1)


def pad_box(box: Box, padding: int, width: int, height: int) -> Box:
    """Grow a box by ``padding`` on every side, clamped to the image."""
    x0 = max(0, box.x - padding)
    y0 = max(0, box.y - padding)
    x1 = min(width, box.right + padding)
    y1 = min(height, box.bottom + padding)
    return Box(x0, y0, x1 - x0, y1 - y0)


def intersection_area(a: Box, b: Box) -> float:
    """Overlap area of two boxes, 0 when disjoint."""
    x_overlap = max(0.0, min(a.right, b.right) - max(a.x, b.x))
    y_overlap = max(0.0, min(a.bottom, b.bottom) - max(a.y, b.y))
    return x_overlap * y_overlap


def overlap_percentage(region: Box, other: Box) -> float:
    """Share of ``region`` covered by ``other``, in percent."""
    area = region.area
    if area <= 0:
        return 0.0
    return intersection_area(region, other) * 100 / area


def center_distance(a: Box, b: Box) -> float:
    ax, ay = a.center
    bx, by = b.center
    return math.hypot(ax - bx, ay - by)
