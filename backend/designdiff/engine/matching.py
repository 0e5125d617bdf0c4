"""Stage 5 — Semantic Matcher.

Cross-references each region's tight box (actual-image pixels) with every
design node box scaled from design units into pixels. A node qualifies when
it covers more than ``min_overlap_percentage`` of the region; qualifying
nodes are ranked by a blended confidence:

    confidence = w_o * overlap/100 + w_p * max(0, 1 - distance/distance_norm)
                 + w_d * min(1, pixels/density_norm)

reported as a percentage. A region with no qualifying node is unmatched,
which usually means a missing or extra element rather than a shifted one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from designdiff.engine.classification import Region
from designdiff.engine.config import DiffConfig
from designdiff.engine.design_tree import DesignNode, walk
from designdiff.utils.geometry import Box, center_distance, overlap_percentage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    node_id: str
    node_name: str
    node_type: str
    design_box: Box
    pixel_box: Box
    overlap_percentage: float
    distance: float
    confidence: float


@dataclass(frozen=True)
class Match:
    region_id: str
    candidates: tuple[Candidate, ...] = ()

    @property
    def best(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None

    @property
    def unmatched(self) -> bool:
        return not self.candidates


@dataclass(frozen=True)
class _PlacedNode:
    node: DesignNode
    design_box: Box
    pixel_box: Box


def confidence_score(overlap_pct: float, distance: float, pixel_count: int, config: DiffConfig) -> float:
    overlap = min(1.0, max(0.0, overlap_pct / 100))
    proximity = max(0.0, 1 - distance / config.distance_norm)
    density = min(1.0, pixel_count / config.density_norm)
    score = (
        config.overlap_weight * overlap
        + config.proximity_weight * proximity
        + config.density_weight * density
    )
    return min(100.0, max(0.0, score * 100))


def place_nodes(roots: list[DesignNode], scale_factor: float) -> list[_PlacedNode]:
    """Nodes with a bounding box, in walk order, with their pixel-space box."""
    placed = []
    for node, _depth in walk(roots):
        if node.bounding_box is None:
            continue
        design_box = node.bounding_box.to_box()
        placed.append(_PlacedNode(node, design_box, design_box.scaled(scale_factor)))
    return placed


def match_region(region: Region, placed: list[_PlacedNode], config: DiffConfig) -> Match:
    candidates = []
    for entry in placed:
        overlap = overlap_percentage(region.bounds, entry.pixel_box)
        if overlap <= config.min_overlap_percentage:
            continue
        distance = center_distance(region.bounds, entry.pixel_box)
        candidates.append(Candidate(
            node_id=entry.node.id,
            node_name=entry.node.name,
            node_type=entry.node.type,
            design_box=entry.design_box,
            pixel_box=entry.pixel_box,
            overlap_percentage=overlap,
            distance=distance,
            confidence=confidence_score(overlap, distance, region.pixel_count, config),
        ))
    # Stable sort keeps walk order among equal confidences.
    candidates.sort(key=lambda c: -c.confidence)
    return Match(region_id=region.id, candidates=tuple(candidates[: config.max_candidates]))


def match_regions(
    regions: list[Region],
    roots: list[DesignNode] | None,
    config: DiffConfig | None = None,
) -> list[Match]:
    """One ``Match`` per region, in region order. No tree means every region is unmatched."""
    config = config or DiffConfig()
    if roots is None:
        return [Match(region_id=r.id) for r in regions]

    placed = place_nodes(roots, config.scale_factor)
    matches = [match_region(r, placed, config) for r in regions]
    logger.debug(
        "Matched %d/%d regions against %d placed nodes",
        sum(1 for m in matches if not m.unmatched), len(matches), len(placed),
    )
    return matches


def to_design_space(box: Box, scale_factor: float) -> Box:
    """Inverse of the design-to-pixel scale, for callers that need design units."""
    return box.scaled(1 / scale_factor)
