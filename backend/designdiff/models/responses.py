"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from designdiff.models.report import DiffReport, ReportModel
from designdiff.models.requests import ImagePayload


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    stages: list[str] = Field(default_factory=list)


class CompareResponse(ReportModel):
    report: DiffReport
    overlay: ImagePayload | None = None
    processing_time_ms: float = 0.0


class ErrorInfo(ReportModel):
    error: str
    stage: str
    message: str


class BatchItem(ReportModel):
    name: str
    ok: bool
    report: DiffReport | None = None
    error: ErrorInfo | None = None


class RankingInfo(ReportModel):
    name: str
    match_percentage: float
    grade: str
    suggestions: int


class BatchSummaryInfo(ReportModel):
    total: int
    succeeded: int
    failed: int
    average_match_percentage: float
    ranking: list[RankingInfo] = Field(default_factory=list)


class BatchCompareResponse(ReportModel):
    results: list[BatchItem]
    summary: BatchSummaryInfo
    processing_time_ms: float = 0.0
