"""Tests for the comparison pipeline orchestrator."""

import logging

import pytest

from designdiff.engine import pipeline as pipeline_module
from designdiff.engine.config import DiffConfig
from designdiff.engine.errors import (
    ExtremeDimensionMismatch,
    InvalidConfig,
    InvalidDesignTree,
    PipelineStageError,
    Stage,
)
from designdiff.engine.pipeline import ComparisonPipeline, compare, create_pipeline
from tests.conftest import BLOCK_NODE, DESIGN_DOC, solid, with_block


def test_identical_images_give_empty_report(white_100):
    report = compare(white_100, solid(100, 100)).report
    assert report.diff_pixels == 0
    assert report.match_percentage == 100.0
    assert report.regions == []
    assert report.matches == []
    assert report.suggestions == []
    assert report.warnings == []
    assert report.summary.grade == "excellent"


def test_red_block_single_region(white_100, red_block_100):
    report = compare(white_100, red_block_100).report
    assert report.match_percentage == 96.0
    assert report.diff_pixels == 400
    (region,) = report.regions
    box = region.bounding_box
    assert (box.x, box.y, box.width, box.height) == (10, 10, 20, 20)
    assert region.pixel_count == 400


def test_red_block_matches_design_node(white_100, red_block_100):
    report = compare(white_100, red_block_100, DESIGN_DOC).report
    (match,) = report.matches
    assert match.best_candidate.node_id == "1:2"
    assert match.best_candidate.overlap_percentage == 100.0
    assert match.best_candidate.confidence == 82.0
    assert match.unmatched is False
    assert report.design_tree_provided is True
    assert report.warnings == []
    assert ".hero-badge {" in report.css_hints


def test_three_times_mismatch_aborts():
    with pytest.raises(ExtremeDimensionMismatch):
        compare(solid(100, 100), solid(300, 100))


def test_unmatched_region_gets_generic_suggestion(white_100, red_block_100):
    far = {"id": "far", "type": "TEXT", "boundingBox": {"x": 70, "y": 70, "width": 20, "height": 20}}
    report = compare(white_100, red_block_100, far).report
    (match,) = report.matches
    assert match.best_candidate is None
    (suggestion,) = report.suggestions
    assert suggestion.node_id is None
    assert suggestion.priority == "high"
    assert suggestion.fixes[0].startswith("Unmatched region")
    assert [r.type for r in report.recommendations] == ["element_mapping"]


def test_missing_design_tree_warns(white_100, red_block_100):
    report = compare(white_100, red_block_100).report
    (warning,) = report.warnings
    assert warning.code == "missing_design_tree"
    assert warning.stage == "match"
    assert report.matches[0].unmatched is True
    assert report.design_tree_provided is False


@pytest.mark.parametrize("tree", [[], {"nodes": []}], ids=["empty-list", "empty-document"])
def test_empty_design_tree_treated_as_missing(white_100, red_block_100, tree):
    report = compare(white_100, red_block_100, tree).report
    assert [w.code for w in report.warnings] == ["missing_design_tree"]
    assert report.design_tree_provided is False
    assert report.matches[0].unmatched is True


def test_diff_stage_reports_heatmap_and_transitions(white_100, red_block_100):
    report = compare(white_100, red_block_100).report
    assert (report.heatmap.width, report.heatmap.height) == (10, 10)
    assert report.heatmap.max_count == 100
    (transition,) = report.color_transitions
    assert (transition.expected_color, transition.actual_color) == ("#ffffff", "#ff0000")
    assert transition.pixel_count == 400


def test_resize_is_reported():
    actual = with_block(solid(120, 100), 10, 10, 20, 20)
    report = compare(solid(100, 100), actual, DESIGN_DOC).report
    assert report.resize_applied is True
    assert report.dimensions.width == 120
    assert [w.code for w in report.warnings] == ["dimension_mismatch"]


def test_report_is_byte_identical_across_runs(white_100, red_block_100):
    first = compare(white_100, red_block_100, DESIGN_DOC).report.to_json()
    second = compare(white_100, red_block_100, DESIGN_DOC).report.to_json()
    assert first == second


def test_pipeline_instance_is_reusable(white_100, red_block_100):
    pipe = create_pipeline()
    a = pipe.run(white_100, red_block_100, DESIGN_DOC)
    pipe.run(white_100, solid(100, 100))
    b = pipe.run(white_100, red_block_100, DESIGN_DOC)
    assert a.report == b.report


def test_invalid_tree_raises(white_100, red_block_100):
    with pytest.raises(InvalidDesignTree):
        compare(white_100, red_block_100, [{"name": "missing id"}])


def test_invalid_config_rejected():
    with pytest.raises(InvalidConfig):
        ComparisonPipeline(DiffConfig(threshold=2.0))


def test_unexpected_failure_names_stage(monkeypatch, white_100, red_block_100):
    def boom(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(pipeline_module, "segment_mask", boom)
    with pytest.raises(PipelineStageError) as exc:
        compare(white_100, red_block_100)
    assert exc.value.stage is Stage.SEGMENT
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_overlay_returned_beside_report(white_100, red_block_100):
    result = compare(white_100, red_block_100)
    assert result.overlay.size == (100, 100)
    assert result.overlay.pixels[20, 20].tolist() == [255, 0, 0, 255]
    assert "total" in result.timings_ms


def test_config_threshold_applies(white_100):
    faint = with_block(white_100, 0, 0, 30, 30, (250, 250, 250, 255))
    assert compare(white_100, faint).report.diff_pixels == 0
    assert compare(white_100, faint, config=DiffConfig(threshold=0.0)).report.diff_pixels == 900


def test_completion_logged(caplog, white_100, red_block_100):
    with caplog.at_level(logging.INFO, logger="designdiff.engine.pipeline"):
        compare(white_100, red_block_100, BLOCK_NODE)
    assert "Pipeline complete: 1 regions, 96.00% match" in caplog.text
