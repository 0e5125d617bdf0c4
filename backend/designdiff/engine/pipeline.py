"""Pipeline orchestrator — one linear pass per comparison.

Preprocess → Diff → Segment → Classify → Match → Recommend. Stages are pure
functions over immutable inputs; the pipeline object only holds its frozen
config, so one instance can serve concurrent comparisons.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from designdiff.engine.classification import classify_regions
from designdiff.engine.config import DiffConfig
from designdiff.engine.diff_analysis import color_transitions, diff_heatmap
from designdiff.engine.design_tree import parse_design_tree
from designdiff.engine.errors import DesignDiffError, PipelineStageError, PipelineWarning, Stage
from designdiff.engine.matching import match_regions
from designdiff.engine.pixel_diff import compute_diff
from designdiff.engine.preprocess import normalize_pair
from designdiff.engine.raster import RasterImage
from designdiff.engine.recommendations import (
    css_hints,
    generate_suggestions,
    grouped_recommendations,
    summarize,
)
from designdiff.engine.report import build_report
from designdiff.engine.segmentation import segment_mask
from designdiff.models.report import DiffReport

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ComparisonResult:
    report: DiffReport
    overlay: RasterImage
    timings_ms: dict[str, float] = field(default_factory=dict)


class ComparisonPipeline:
    """Runs the six comparison stages in order."""

    def __init__(self, config: DiffConfig | None = None) -> None:
        self.config = (config or DiffConfig()).validate()

    def run(
        self,
        expected: RasterImage,
        actual: RasterImage,
        design_tree: Any = None,
    ) -> ComparisonResult:
        """Compare ``actual`` against ``expected`` and attribute differences to ``design_tree``.

        ``design_tree`` may be ``None``, decoded JSON, a JSON string or a list
        of ``DesignNode``. Fatal problems raise a ``DesignDiffError`` naming
        the stage; recoverable ones become report warnings.
        """
        start = time.perf_counter()
        cfg = self.config
        timings: dict[str, float] = {}
        warnings: list[PipelineWarning] = []

        # An empty tree carries no nodes to match against
        roots = parse_design_tree(design_tree) or None

        prep = self._run_stage(Stage.PREPROCESS, timings, normalize_pair, expected, actual, cfg)
        warnings.extend(prep.warnings)

        diff = self._run_stage(
            Stage.DIFF, timings, compute_diff,
            prep.expected, prep.actual,
            threshold=cfg.threshold,
            include_anti_aliasing=cfg.include_anti_aliasing,
            alpha=cfg.alpha,
        )
        heatmap, transitions = self._run_stage(
            Stage.DIFF, timings, lambda: (
                diff_heatmap(diff.mask, cfg.heatmap_cell_size),
                color_transitions(prep.expected, prep.actual, diff.mask, cfg.color_transition_limit),
            ),
        )

        if diff.is_empty:
            regions, matches, suggestions, recommendations = [], [], [], []
            summary = summarize(diff.match_percentage, [], [], [])
            hints = ""
        else:
            segmentation = self._run_stage(
                Stage.SEGMENT, timings, segment_mask,
                diff.mask,
                min_region_size=cfg.min_region_size,
                padding=cfg.padding,
                max_region_dimension=cfg.max_region_dimension,
            )
            regions = self._run_stage(
                Stage.CLASSIFY, timings, classify_regions,
                segmentation.segments, prep.expected, prep.actual, cfg,
            )
            if roots is None and regions:
                logger.warning("No design tree supplied: %d regions left unmatched", len(regions))
                warnings.append(PipelineWarning(
                    code="missing_design_tree",
                    message="No design tree supplied; semantic matching skipped",
                    stage=Stage.MATCH,
                    details={"unmatched_regions": len(regions)},
                ))
            matches = self._run_stage(Stage.MATCH, timings, match_regions, regions, roots, cfg)

            def _recommend():
                sugg = generate_suggestions(regions, matches, cfg)
                return (
                    sugg,
                    grouped_recommendations(regions, matches),
                    summarize(diff.match_percentage, regions, matches, sugg),
                    css_hints(sugg, matches),
                )

            suggestions, recommendations, summary, hints = self._run_stage(
                Stage.RECOMMEND, timings, _recommend,
            )

        report = build_report(
            diff=diff,
            regions=regions,
            matches=matches,
            suggestions=suggestions,
            recommendations=recommendations,
            summary=summary,
            warnings=warnings,
            css_hints=hints,
            resize_applied=prep.resize_applied,
            design_tree_provided=roots is not None,
            heatmap=heatmap,
            color_transitions=transitions,
        )

        total = (time.perf_counter() - start) * 1000
        timings["total"] = round(total, 1)
        logger.info(
            "Pipeline complete: %d regions, %.2f%% match in %.0fms",
            len(regions), report.match_percentage, total,
        )
        return ComparisonResult(report=report, overlay=diff.overlay, timings_ms=timings)

    def _run_stage(
        self,
        stage: Stage,
        timings: dict[str, float],
        fn: Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        t0 = time.perf_counter()
        try:
            result = fn(*args, **kwargs)
        except DesignDiffError as e:
            logger.warning("  %s FAILED: %s", stage.name, e)
            raise
        except Exception as e:
            logger.warning("  %s FAILED: %s", stage.name, e)
            raise PipelineStageError(f"{stage.name.lower()} stage failed: {e}", stage=stage) from e
        elapsed = (time.perf_counter() - t0) * 1000
        key = stage.name.lower()
        timings[key] = round(timings.get(key, 0.0) + elapsed, 1)
        logger.debug("  %s completed in %.1fms", stage.name, elapsed)
        return result


def create_pipeline(config: DiffConfig | None = None) -> ComparisonPipeline:
    """Factory function for creating a pipeline instance."""
    return ComparisonPipeline(config=config)


def compare(
    expected: RasterImage,
    actual: RasterImage,
    design_tree: Any = None,
    config: DiffConfig | None = None,
) -> ComparisonResult:
    return create_pipeline(config).run(expected, actual, design_tree)
