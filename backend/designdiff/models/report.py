"""DiffReport — the structured, JSON-serializable output of one comparison."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class BoxInfo(ReportModel):
    x: float
    y: float
    width: float
    height: float


class PointInfo(ReportModel):
    x: float
    y: float


class SizeInfo(ReportModel):
    width: float
    height: float


class ColorStatsInfo(ReportModel):
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0
    sample_size: int = 0


class IssueInfo(ReportModel):
    type: str
    description: str
    suggestion: str


class RegionInfo(ReportModel):
    id: str
    bounding_box: BoxInfo  # tight box, actual-image pixels
    padded_box: BoxInfo
    center: PointInfo
    relative_position: PointInfo
    pixel_count: int
    density: float
    color_stats: ColorStatsInfo
    region_type: str
    severity: str
    severity_score: float
    split_from: str | None = None
    issues: list[IssueInfo] = Field(default_factory=list)


class CandidateInfo(ReportModel):
    node_id: str
    node_name: str = ""
    node_type: str = ""
    bounding_box: BoxInfo  # pixel space
    design_bounding_box: BoxInfo  # design units
    overlap_percentage: float
    distance: float
    confidence: float


class MatchInfo(ReportModel):
    region_id: str
    candidates: list[CandidateInfo] = Field(default_factory=list)
    best_candidate: CandidateInfo | None = None
    unmatched: bool = True


class SuggestionInfo(ReportModel):
    priority: str
    region_id: str
    node_id: str | None = None
    node_name: str | None = None
    node_type: str | None = None
    message: str = ""
    positional_delta: PointInfo | None = None
    size_delta: SizeInfo | None = None
    fixes: list[str] = Field(default_factory=list)


class RecommendationInfo(ReportModel):
    priority: str
    type: str
    description: str
    region_ids: list[str] = Field(default_factory=list)


class WarningInfo(ReportModel):
    code: str
    stage: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class HeatmapInfo(ReportModel):
    cell_size: int
    width: int
    height: int
    max_count: int
    cells: list[list[float]] = Field(default_factory=list)


class ColorTransitionInfo(ReportModel):
    expected_color: str
    actual_color: str
    pixel_count: int


class PriorityCounts(ReportModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class SummaryInfo(ReportModel):
    grade: str
    total_regions: int = 0
    unmatched_regions: int = 0
    critical_issues: int = 0
    priority_counts: PriorityCounts = Field(default_factory=PriorityCounts)
    estimated_improvement: float = 0.0
    recommendation: str = ""
    next_steps: list[str] = Field(default_factory=list)


class DiffReport(ReportModel):
    """Complete result of one expected/actual comparison."""

    match_percentage: float
    diff_pixels: int
    total_pixels: int
    anti_aliased_pixels: int = 0
    dimensions: SizeInfo
    resize_applied: bool = False
    design_tree_provided: bool = False
    regions: list[RegionInfo] = Field(default_factory=list)
    matches: list[MatchInfo] = Field(default_factory=list)
    suggestions: list[SuggestionInfo] = Field(default_factory=list)
    recommendations: list[RecommendationInfo] = Field(default_factory=list)
    summary: SummaryInfo
    warnings: list[WarningInfo] = Field(default_factory=list)
    css_hints: str = ""
    heatmap: HeatmapInfo | None = None
    color_transitions: list[ColorTransitionInfo] = Field(default_factory=list)

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
