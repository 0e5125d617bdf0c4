"""Engine results → DiffReport model, plus a plain-text rendering.

Floats are rounded here, once, so repeated runs serialize byte-identically.
"""

from __future__ import annotations

from designdiff.engine.classification import Region
from designdiff.engine.diff_analysis import ColorTransition, Heatmap
from designdiff.engine.errors import PipelineWarning
from designdiff.engine.matching import Candidate, Match
from designdiff.engine.pixel_diff import PixelDiffResult
from designdiff.engine.recommendations import (
    Recommendation,
    Suggestion,
    Summary,
    region_issues,
)
from designdiff.models.report import (
    BoxInfo,
    CandidateInfo,
    ColorStatsInfo,
    ColorTransitionInfo,
    DiffReport,
    HeatmapInfo,
    IssueInfo,
    MatchInfo,
    PointInfo,
    PriorityCounts,
    RecommendationInfo,
    RegionInfo,
    SizeInfo,
    SuggestionInfo,
    SummaryInfo,
    WarningInfo,
)
from designdiff.utils.geometry import Box

# Decimal places kept in the report.
_PRECISION = 2
_RATIO_PRECISION = 4


def _r(value: float, digits: int = _PRECISION) -> float:
    return round(float(value), digits)


def _box(box: Box) -> BoxInfo:
    return BoxInfo(x=_r(box.x), y=_r(box.y), width=_r(box.width), height=_r(box.height))


def _region_info(region: Region, match: Match | None, width: int, height: int) -> RegionInfo:
    cx, cy = region.center
    stats = region.color_stats
    return RegionInfo(
        id=region.id,
        bounding_box=_box(region.bounds),
        padded_box=_box(region.padded_box),
        center=PointInfo(x=_r(cx), y=_r(cy)),
        relative_position=PointInfo(x=_r(cx / width, _RATIO_PRECISION), y=_r(cy / height, _RATIO_PRECISION)),
        pixel_count=region.pixel_count,
        density=_r(region.density, _RATIO_PRECISION),
        color_stats=ColorStatsInfo(
            avg=_r(stats.average),
            min=_r(stats.minimum),
            max=_r(stats.maximum),
            sample_size=stats.sample_size,
        ),
        region_type=region.region_type.value,
        severity=region.severity.value,
        severity_score=_r(region.severity_score),
        split_from=region.segment.split_from,
        issues=[
            IssueInfo(type=i.type, description=i.description, suggestion=i.suggestion)
            for i in region_issues(region, match)
        ],
    )


def _candidate_info(candidate: Candidate) -> CandidateInfo:
    return CandidateInfo(
        node_id=candidate.node_id,
        node_name=candidate.node_name,
        node_type=candidate.node_type,
        bounding_box=_box(candidate.pixel_box),
        design_bounding_box=_box(candidate.design_box),
        overlap_percentage=_r(candidate.overlap_percentage),
        distance=_r(candidate.distance),
        confidence=_r(candidate.confidence),
    )


def _match_info(match: Match) -> MatchInfo:
    candidates = [_candidate_info(c) for c in match.candidates]
    return MatchInfo(
        region_id=match.region_id,
        candidates=candidates,
        best_candidate=candidates[0] if candidates else None,
        unmatched=match.unmatched,
    )


def _suggestion_info(s: Suggestion) -> SuggestionInfo:
    return SuggestionInfo(
        priority=s.priority.value,
        region_id=s.region_id,
        node_id=s.node_id,
        node_name=s.node_name,
        node_type=s.node_type,
        message=s.message,
        positional_delta=(
            PointInfo(x=_r(s.positional_delta[0]), y=_r(s.positional_delta[1]))
            if s.positional_delta is not None else None
        ),
        size_delta=(
            SizeInfo(width=_r(s.size_delta[0]), height=_r(s.size_delta[1]))
            if s.size_delta is not None else None
        ),
        fixes=list(s.fixes),
    )


def _recommendation_info(r: Recommendation) -> RecommendationInfo:
    return RecommendationInfo(
        priority=r.priority.value,
        type=r.type,
        description=r.description,
        region_ids=list(r.region_ids),
    )


def _summary_info(summary: Summary) -> SummaryInfo:
    return SummaryInfo(
        grade=summary.grade,
        total_regions=summary.total_regions,
        unmatched_regions=summary.unmatched_regions,
        critical_issues=summary.critical_issues,
        priority_counts=PriorityCounts(**summary.priority_counts),
        estimated_improvement=_r(summary.estimated_improvement),
        recommendation=summary.recommendation,
        next_steps=list(summary.next_steps),
    )


def _warning_info(w: PipelineWarning) -> WarningInfo:
    return WarningInfo(code=w.code, stage=w.stage.name.lower(), message=w.message, details=w.details)


def _hex(rgb: tuple[int, int, int]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


def _heatmap_info(heatmap: Heatmap) -> HeatmapInfo:
    return HeatmapInfo(
        cell_size=heatmap.cell_size,
        width=heatmap.width,
        height=heatmap.height,
        max_count=heatmap.max_count,
        cells=[[_r(v, _RATIO_PRECISION) for v in row] for row in heatmap.cells],
    )


def build_report(
    diff: PixelDiffResult,
    regions: list[Region],
    matches: list[Match],
    suggestions: list[Suggestion],
    recommendations: list[Recommendation],
    summary: Summary,
    warnings: list[PipelineWarning],
    css_hints: str = "",
    resize_applied: bool = False,
    design_tree_provided: bool = False,
    heatmap: Heatmap | None = None,
    color_transitions: list[ColorTransition] | None = None,
) -> DiffReport:
    width, height = diff.mask.width, diff.mask.height
    by_region = {m.region_id: m for m in matches}
    return DiffReport(
        match_percentage=_r(diff.match_percentage),
        diff_pixels=diff.diff_pixel_count,
        total_pixels=diff.total_pixels,
        anti_aliased_pixels=diff.anti_aliased_count,
        dimensions=SizeInfo(width=width, height=height),
        resize_applied=resize_applied,
        design_tree_provided=design_tree_provided,
        regions=[_region_info(r, by_region.get(r.id), width, height) for r in regions],
        matches=[_match_info(m) for m in matches],
        suggestions=[_suggestion_info(s) for s in suggestions],
        recommendations=[_recommendation_info(r) for r in recommendations],
        summary=_summary_info(summary),
        warnings=[_warning_info(w) for w in warnings],
        css_hints=css_hints,
        heatmap=_heatmap_info(heatmap) if heatmap is not None else None,
        color_transitions=[
            ColorTransitionInfo(expected_color=_hex(t.expected), actual_color=_hex(t.actual), pixel_count=t.pixel_count)
            for t in color_transitions or []
        ],
    )


def format_report_text(report: DiffReport) -> str:
    """Compact human-readable rendering for CLI and log consumers."""
    s = report.summary
    lines = [
        "=== DESIGN DIFF REPORT ===",
        f"Match: {report.match_percentage:.2f}% ({s.grade})",
        f"Diff pixels: {report.diff_pixels}/{report.total_pixels}"
        f" @ {report.dimensions.width:g}x{report.dimensions.height:g}",
        f"Regions: {s.total_regions} ({s.unmatched_regions} unmatched, {s.critical_issues} critical)",
        f"Priorities: high={s.priority_counts.high} medium={s.priority_counts.medium} low={s.priority_counts.low}",
        f"Estimated improvement: +{s.estimated_improvement:g}%",
    ]
    for w in report.warnings:
        lines.append(f"WARNING [{w.stage}] {w.message}")
    if report.color_transitions:
        top = report.color_transitions[0]
        lines.append(f"Top colour change: {top.expected_color} -> {top.actual_color} ({top.pixel_count} px)")

    if report.suggestions:
        lines.append("")
        lines.append("Suggestions:")
    for i, sug in enumerate(report.suggestions, start=1):
        lines.append(f"{i}. [{sug.priority.upper()}] {sug.message}")
        for fix in sug.fixes:
            lines.append(f"   - {fix}")

    lines.append("")
    lines.append(s.recommendation)
    for i, step in enumerate(s.next_steps, start=1):
        lines.append(f"  {i}. {step}")
    return "\n".join(lines)
