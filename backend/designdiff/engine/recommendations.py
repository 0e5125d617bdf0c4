"""Stage 6 — Recommendation Generator.

Turns regions and their design matches into prioritized fix suggestions,
grouped report-level recommendations and a summary with a quality grade.
Everything here is derived; inputs are never modified.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from designdiff.engine.classification import Region, RegionType, Severity
from designdiff.engine.config import DiffConfig
from designdiff.engine.matching import Candidate, Match

# Quality grades by match percentage, best first.
QUALITY_GRADES = (
    (99.0, "excellent"),
    (95.0, "good"),
    (90.0, "fair"),
    (80.0, "poor"),
)
_LOWEST_GRADE = "very_poor"

# Match percentage considered ready to ship.
_SHIP_THRESHOLD = 95.0

# Rough match-percentage gain per fixed suggestion, and the overall cap.
_IMPROVEMENT_PER_PRIORITY = {"high": 3.0, "medium": 1.5, "low": 0.5}
_IMPROVEMENT_CAP = 15.0

_ASSET_TYPES = {"IMAGE-SVG", "IMAGE", "INSTANCE", "COMPONENT", "VECTOR", "BOOLEAN_OPERATION"}
_TEXT_TYPES = {"TEXT"}
_SHAPE_TYPES = {"RECTANGLE", "FRAME", "GROUP", "SECTION"}
_ELLIPSE_TYPES = {"ELLIPSE"}

_ASSET_FIXES = (
    "Verify the asset (SVG icon or image) is loaded and positioned correctly",
    "Check the asset's colour and opacity",
    "Check object-fit and the asset's intrinsic size",
)
_TEXT_FIXES = (
    "Check font family, size and weight",
    "Check text colour and line-height",
    "Check text-align and letter-spacing",
)
_SHAPE_FIXES = (
    "Check background colour or gradient",
    "Check border-radius and border style",
    "Check box-shadow",
)
_ELLIPSE_FIXES = (
    "Check border-radius on the circular element",
    "Check background colour and border style",
)
_GENERIC_FIXES = (
    "Compare the element's CSS with the design",
    "Check the element's visibility and stacking order",
)
_UNMATCHED_FIXES = (
    "Unmatched region: check for a missing or extraneous element",
    "Confirm whether this area should contain content at all",
    "Check z-index stacking of overlapping elements",
)


class Priority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


@dataclass(frozen=True)
class Issue:
    type: str
    description: str
    suggestion: str


@dataclass(frozen=True)
class Suggestion:
    priority: Priority
    region_id: str
    node_id: str | None
    node_name: str | None
    node_type: str | None
    message: str
    positional_delta: tuple[float, float] | None
    size_delta: tuple[float, float] | None
    fixes: tuple[str, ...]


@dataclass(frozen=True)
class Recommendation:
    priority: Priority
    type: str
    description: str
    region_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Summary:
    grade: str
    total_regions: int
    unmatched_regions: int
    critical_issues: int
    priority_counts: dict[str, int]
    estimated_improvement: float
    recommendation: str
    next_steps: tuple[str, ...]


def priority_for(region: Region, config: DiffConfig) -> Priority:
    """Size/density rule; independent of whether the region matched a node."""
    if region.pixel_count > config.high_priority_pixels or region.density > config.high_priority_density:
        return Priority.HIGH
    if region.pixel_count > config.medium_priority_pixels or region.density > config.medium_priority_density:
        return Priority.MEDIUM
    return Priority.LOW


def type_fixes(node_type: str) -> tuple[str, ...]:
    kind = node_type.upper()
    if kind in _ASSET_TYPES:
        return _ASSET_FIXES
    if kind in _TEXT_TYPES:
        return _TEXT_FIXES
    if kind in _SHAPE_TYPES:
        return _SHAPE_FIXES
    if kind in _ELLIPSE_TYPES:
        return _ELLIPSE_FIXES
    return _GENERIC_FIXES


def _region_type_fixes(region: Region) -> tuple[str, ...]:
    if region.region_type is RegionType.COLOR_MISMATCH:
        return ("Check CSS colour values, gradients or background images",)
    if region.region_type is RegionType.LARGE_AREA:
        return ("Large difference: check element position, size or display state",)
    return ()


def _deltas(region: Region, best: Candidate) -> tuple[tuple[float, float], tuple[float, float]]:
    rx, ry = region.center
    cx, cy = best.pixel_box.center
    positional = (rx - cx, ry - cy)
    size = (region.bounds.width - best.pixel_box.width, region.bounds.height - best.pixel_box.height)
    return positional, size


def suggest(region: Region, match: Match, config: DiffConfig) -> Suggestion:
    priority = priority_for(region, config)
    best = match.best
    if best is None:
        return Suggestion(
            priority=priority,
            region_id=region.id,
            node_id=None,
            node_name=None,
            node_type=None,
            message=f"{region.id}: unmatched region, check for a missing or extraneous element",
            positional_delta=None,
            size_delta=None,
            fixes=_UNMATCHED_FIXES + _region_type_fixes(region),
        )

    positional, size = _deltas(region, best)
    fixes: list[str] = []
    dx, dy = positional
    if abs(dx) > config.position_tolerance or abs(dy) > config.position_tolerance:
        box = best.design_box
        fixes.append(
            f"Position offset ({dx:+.1f}px, {dy:+.1f}px) from '{best.node_name}': "
            f"expected left {box.x:g}px, top {box.y:g}px"
        )
    dw, dh = size
    if abs(dw) > config.size_tolerance or abs(dh) > config.size_tolerance:
        box = best.design_box
        fixes.append(
            f"Size differs by ({dw:+.1f}px, {dh:+.1f}px): "
            f"expected width {box.width:g}px, height {box.height:g}px"
        )
    fixes.extend(type_fixes(best.node_type))
    fixes.extend(_region_type_fixes(region))

    return Suggestion(
        priority=priority,
        region_id=region.id,
        node_id=best.node_id,
        node_name=best.node_name,
        node_type=best.node_type,
        message=f"{region.id}: {best.node_name or best.node_id} ({best.node_type or 'UNKNOWN'})",
        positional_delta=positional,
        size_delta=size,
        fixes=tuple(fixes),
    )


def generate_suggestions(
    regions: list[Region],
    matches: list[Match],
    config: DiffConfig | None = None,
) -> list[Suggestion]:
    """One suggestion per region, high priority first (region order within a priority)."""
    config = config or DiffConfig()
    by_region = {m.region_id: m for m in matches}
    suggestions = [suggest(r, by_region.get(r.id, Match(region_id=r.id)), config) for r in regions]
    suggestions.sort(key=lambda s: _PRIORITY_RANK[s.priority])
    return suggestions


def region_issues(region: Region, match: Match | None) -> list[Issue]:
    issues = []
    if match is None or match.unmatched:
        issues.append(Issue(
            type="unmatched_element",
            description="No design element matches this difference region",
            suggestion="Check for a missing element or a position offset",
        ))
    if region.region_type is RegionType.COLOR_MISMATCH:
        issues.append(Issue(
            type="color_difference",
            description="Large colour difference",
            suggestion="Check CSS colour values, gradients or background images",
        ))
    if region.region_type is RegionType.LARGE_AREA:
        issues.append(Issue(
            type="layout_issue",
            description="Large-area difference, probably a layout problem",
            suggestion="Check element position, size or display state",
        ))
    if region.severity is Severity.CRITICAL:
        issues.append(Issue(
            type="critical_difference",
            description="Critical difference, fix first",
            suggestion="Review the implementation of this area immediately",
        ))
    return issues


def grouped_recommendations(regions: list[Region], matches: list[Match]) -> list[Recommendation]:
    recommendations = []
    critical = tuple(r.id for r in regions if r.severity is Severity.CRITICAL)
    if critical:
        recommendations.append(Recommendation(
            priority=Priority.HIGH,
            type="critical_fixes",
            description=f"{len(critical)} critical difference region(s) need immediate fixes",
            region_ids=critical,
        ))
    colour = tuple(r.id for r in regions if r.region_type is RegionType.COLOR_MISMATCH)
    if colour:
        recommendations.append(Recommendation(
            priority=Priority.MEDIUM,
            type="color_adjustments",
            description=f"{len(colour)} region(s) differ in colour; check CSS colour values",
            region_ids=colour,
        ))
    layout = tuple(r.id for r in regions if r.region_type is RegionType.LARGE_AREA)
    if layout:
        recommendations.append(Recommendation(
            priority=Priority.HIGH,
            type="layout_fixes",
            description=f"{len(layout)} large-area difference(s), probably layout problems",
            region_ids=layout,
        ))
    unmatched = tuple(m.region_id for m in matches if m.unmatched)
    if unmatched:
        recommendations.append(Recommendation(
            priority=Priority.MEDIUM,
            type="element_mapping",
            description=f"{len(unmatched)} region(s) match no design element; check for omissions",
            region_ids=unmatched,
        ))
    recommendations.sort(key=lambda r: _PRIORITY_RANK[r.priority])
    return recommendations


def quality_grade(match_percentage: float) -> str:
    for floor, grade in QUALITY_GRADES:
        if match_percentage >= floor:
            return grade
    return _LOWEST_GRADE


def priority_counts(suggestions: list[Suggestion]) -> dict[str, int]:
    counts = {p.value: 0 for p in Priority}
    for s in suggestions:
        counts[s.priority.value] += 1
    return counts


def estimate_improvement(counts: dict[str, int]) -> float:
    gain = sum(_IMPROVEMENT_PER_PRIORITY[p] * n for p, n in counts.items())
    return min(gain, _IMPROVEMENT_CAP)


def _recommendation_text(match_percentage: float, counts: dict[str, int]) -> str:
    if match_percentage >= _SHIP_THRESHOLD:
        return "Implementation meets the quality bar and is ready to use"
    if counts["high"]:
        return f"Fix the {counts['high']} high-priority issue(s) first; expect a 5-10% gain"
    if counts["medium"]:
        return f"Fix the {counts['medium']} medium-priority issue(s); expect a 3-5% gain"
    return "Keep refining details to raise the match percentage"


def _next_steps(match_percentage: float, counts: dict[str, int]) -> tuple[str, ...]:
    steps = []
    if counts["high"]:
        steps.append("Fix all high-priority issues")
        steps.append("Re-capture the screenshot and compare again")
    if counts["medium"]:
        steps.append("Fix medium-priority issues")
    if match_percentage < _SHIP_THRESHOLD:
        steps.append(f"Iterate until the match reaches {_SHIP_THRESHOLD:g}% or better")
    return tuple(steps)


def summarize(
    match_percentage: float,
    regions: list[Region],
    matches: list[Match],
    suggestions: list[Suggestion],
) -> Summary:
    counts = priority_counts(suggestions)
    return Summary(
        grade=quality_grade(match_percentage),
        total_regions=len(regions),
        unmatched_regions=sum(1 for m in matches if m.unmatched),
        critical_issues=sum(1 for r in regions if r.severity is Severity.CRITICAL),
        priority_counts=counts,
        estimated_improvement=estimate_improvement(counts),
        recommendation=_recommendation_text(match_percentage, counts),
        next_steps=_next_steps(match_percentage, counts),
    )


def css_class_name(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "element"


def css_hints(suggestions: list[Suggestion], matches: list[Match]) -> str:
    """CSS rule blocks placing each matched node where the design has it."""
    by_region = {m.region_id: m for m in matches}
    blocks = []
    for s in suggestions:
        match = by_region.get(s.region_id)
        best = match.best if match else None
        if best is None:
            continue
        box = best.design_box
        lines = [
            f"/* {s.region_id}: {best.node_name or best.node_id} ({best.node_type}), priority {s.priority.value} */",
            f".{css_class_name(best.node_name or best.node_id)} {{",
            "  position: absolute;",
            f"  left: {box.x:g}px;",
            f"  top: {box.y:g}px;",
            f"  width: {box.width:g}px;",
            f"  height: {box.height:g}px;",
        ]
        if best.node_type.upper() in _ASSET_TYPES:
            lines.append("  object-fit: contain;")
        lines.append("}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
