"""Concurrent comparison of many independent expected/actual pairs.

Comparisons share nothing mutable, so they fan out over a thread pool; numpy
releases the GIL for the heavy array work. A failed job never aborts the
batch: its typed error is kept on the outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from designdiff.engine.config import DiffConfig
from designdiff.engine.errors import DesignDiffError
from designdiff.engine.pipeline import ComparisonPipeline, ComparisonResult
from designdiff.engine.raster import RasterImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchJob:
    name: str
    expected: RasterImage
    actual: RasterImage
    design_tree: Any = None


@dataclass(frozen=True)
class BatchOutcome:
    name: str
    result: ComparisonResult | None = None
    error: DesignDiffError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class RankingEntry:
    name: str
    match_percentage: float
    grade: str
    suggestions: int


@dataclass(frozen=True)
class BatchSummary:
    total: int
    succeeded: int
    failed: int
    average_match_percentage: float
    ranking: tuple[RankingEntry, ...]


def _run_job(pipeline: ComparisonPipeline, job: BatchJob) -> BatchOutcome:
    try:
        return BatchOutcome(name=job.name, result=pipeline.run(job.expected, job.actual, job.design_tree))
    except DesignDiffError as e:
        logger.warning("Comparison %s failed at %s: %s", job.name, e.stage.name, e)
        return BatchOutcome(name=job.name, error=e)


def summarize_batch(outcomes: Sequence[BatchOutcome]) -> BatchSummary:
    done = [o for o in outcomes if o.result is not None]
    ranking = sorted(
        (
            RankingEntry(
                name=o.name,
                match_percentage=o.result.report.match_percentage,
                grade=o.result.report.summary.grade,
                suggestions=len(o.result.report.suggestions),
            )
            for o in done
        ),
        key=lambda e: (-e.match_percentage, e.name),
    )
    average = sum(e.match_percentage for e in ranking) / len(ranking) if ranking else 0.0
    return BatchSummary(
        total=len(outcomes),
        succeeded=len(done),
        failed=len(outcomes) - len(done),
        average_match_percentage=round(average, 2),
        ranking=tuple(ranking),
    )


def compare_batch(
    jobs: Sequence[BatchJob],
    config: DiffConfig | None = None,
    max_workers: int | None = None,
) -> tuple[list[BatchOutcome], BatchSummary]:
    """Run every job; outcomes come back in job order."""
    pipeline = ComparisonPipeline(config)
    if not jobs:
        return [], summarize_batch([])
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        outcomes = list(pool.map(lambda job: _run_job(pipeline, job), jobs))
    summary = summarize_batch(outcomes)
    logger.info(
        "Batch complete: %d/%d succeeded, average match %.2f%%",
        summary.succeeded, summary.total, summary.average_match_percentage,
    )
    return outcomes, summary
