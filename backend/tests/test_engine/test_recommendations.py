"""Tests for suggestions, grouped recommendations and the summary."""

import numpy as np
import pytest

from designdiff.engine.classification import ColorStats, Region, RegionType, Severity
from designdiff.engine.config import DiffConfig
from designdiff.engine.design_tree import parse_design_tree
from designdiff.engine.matching import Match, match_regions
from designdiff.engine.recommendations import (
    Priority,
    css_class_name,
    css_hints,
    estimate_improvement,
    generate_suggestions,
    grouped_recommendations,
    priority_for,
    quality_grade,
    region_issues,
    summarize,
    type_fixes,
)
from designdiff.engine.segmentation import Segment
from designdiff.utils.geometry import Box
from tests.conftest import BLOCK_NODE

CFG = DiffConfig()


def _region(
    region_id: str = "region_1",
    bounds: Box = Box(10, 10, 20, 20),
    pixel_count: int | None = None,
    region_type: RegionType = RegionType.SMALL_DETAIL,
    severity: Severity = Severity.MINOR,
) -> Region:
    """Region over ``bounds`` holding the first ``pixel_count`` pixels in row-major order."""
    xs, ys = np.meshgrid(
        np.arange(bounds.x, bounds.right, dtype=np.intp),
        np.arange(bounds.y, bounds.bottom, dtype=np.intp),
    )
    xs, ys = xs.ravel(), ys.ravel()
    if pixel_count is not None:
        xs, ys = xs[:pixel_count], ys[:pixel_count]
    segment = Segment(id=region_id, xs=xs, ys=ys, bounds=bounds, padded_box=bounds)
    return Region(segment, ColorStats(), region_type, severity, 3.0)


def _matches(regions, tree):
    return match_regions(regions, parse_design_tree(tree), CFG)


class TestPriority:
    def test_dense_region_is_high(self):
        assert priority_for(_region(), CFG) is Priority.HIGH

    def test_large_region_is_high(self):
        assert priority_for(_region(bounds=Box(0, 0, 100, 100), pixel_count=1500), CFG) is Priority.HIGH

    def test_medium_by_pixels(self):
        assert priority_for(_region(bounds=Box(0, 0, 50, 50), pixel_count=300), CFG) is Priority.MEDIUM

    def test_sparse_small_region_is_low(self):
        assert priority_for(_region(bounds=Box(0, 0, 100, 100), pixel_count=150), CFG) is Priority.LOW

    def test_priority_ignores_match(self):
        region = _region()
        matched = generate_suggestions([region], _matches([region], BLOCK_NODE), CFG)
        unmatched = generate_suggestions([region], [Match(region_id=region.id)], CFG)
        assert matched[0].priority is unmatched[0].priority


class TestSuggestions:
    def test_unmatched_region_gets_generic_suggestion(self):
        region = _region()
        (s,) = generate_suggestions([region], [Match(region_id=region.id)], CFG)
        assert s.node_id is None
        assert "unmatched region" in s.message
        assert s.fixes[0].startswith("Unmatched region")
        assert s.positional_delta is None

    def test_exact_match_has_no_offset_fix(self):
        region = _region()
        (s,) = generate_suggestions([region], _matches([region], BLOCK_NODE), CFG)
        assert s.node_id == "1:2"
        assert s.node_name == "Hero Badge"
        assert s.positional_delta == (0.0, 0.0)
        assert s.size_delta == (0.0, 0.0)
        assert not any(f.startswith("Position") for f in s.fixes)
        assert s.fixes == type_fixes("RECTANGLE")

    def test_offset_beyond_tolerance(self):
        region = _region()
        node = {"id": "n", "name": "Card", "type": "TEXT", "boundingBox": {"x": 16, "y": 10, "width": 20, "height": 20}}
        (s,) = generate_suggestions([region], _matches([region], node), CFG)
        assert s.positional_delta == (-6.0, 0.0)
        assert s.fixes[0].startswith("Position offset (-6.0px, +0.0px) from 'Card'")
        assert "Check font family, size and weight" in s.fixes

    def test_size_difference(self):
        region = _region()
        node = {"id": "n", "type": "ELLIPSE", "boundingBox": {"x": 10, "y": 10, "width": 30, "height": 20}}
        (s,) = generate_suggestions([region], _matches([region], node), CFG)
        assert s.size_delta == (-10.0, 0.0)
        assert any(f.startswith("Size differs") for f in s.fixes)

    def test_high_priority_first(self):
        sparse = _region("region_1", Box(0, 0, 100, 100), pixel_count=150)
        dense = _region("region_2", Box(200, 200, 10, 10))
        suggestions = generate_suggestions([sparse, dense], [Match("region_1"), Match("region_2")], CFG)
        assert [s.region_id for s in suggestions] == ["region_2", "region_1"]

    @pytest.mark.parametrize("node_type, first_fix", [
        ("IMAGE-SVG", "Verify the asset"),
        ("text", "Check font family"),
        ("FRAME", "Check background colour or gradient"),
        ("ELLIPSE", "Check border-radius on the circular element"),
        ("", "Compare the element's CSS"),
    ])
    def test_type_fixes(self, node_type, first_fix):
        assert type_fixes(node_type)[0].startswith(first_fix)


class TestReportLevel:
    def test_region_issues(self):
        region = _region(region_type=RegionType.COLOR_MISMATCH, severity=Severity.CRITICAL)
        kinds = [i.type for i in region_issues(region, Match(region.id))]
        assert kinds == ["unmatched_element", "color_difference", "critical_difference"]

    def test_grouped_recommendations(self):
        critical = _region("region_1", severity=Severity.CRITICAL)
        layout = _region("region_2", Box(40, 40, 20, 20), region_type=RegionType.LARGE_AREA)
        regions = [critical, layout]
        recs = grouped_recommendations(regions, [Match("region_1"), Match("region_2")])
        assert [(r.type, r.priority) for r in recs] == [
            ("critical_fixes", Priority.HIGH),
            ("layout_fixes", Priority.HIGH),
            ("element_mapping", Priority.MEDIUM),
        ]
        assert recs[2].region_ids == ("region_1", "region_2")

    def test_no_regions_no_recommendations(self):
        assert grouped_recommendations([], []) == []

    @pytest.mark.parametrize("pct, grade", [
        (100.0, "excellent"),
        (99.0, "excellent"),
        (98.99, "good"),
        (95.0, "good"),
        (90.0, "fair"),
        (80.0, "poor"),
        (79.9, "very_poor"),
    ])
    def test_quality_grade(self, pct, grade):
        assert quality_grade(pct) == grade

    def test_improvement_is_capped(self):
        assert estimate_improvement({"high": 1, "medium": 2, "low": 2}) == 7.0
        assert estimate_improvement({"high": 10, "medium": 0, "low": 0}) == 15.0

    def test_summary(self):
        region = _region(severity=Severity.CRITICAL)
        matches = [Match(region.id)]
        suggestions = generate_suggestions([region], matches, CFG)
        summary = summarize(96.0, [region], matches, suggestions)
        assert summary.grade == "good"
        assert summary.total_regions == 1
        assert summary.unmatched_regions == 1
        assert summary.critical_issues == 1
        assert summary.priority_counts == {"high": 1, "medium": 0, "low": 0}
        assert summary.estimated_improvement == 3.0
        assert summary.next_steps[0] == "Fix all high-priority issues"

    def test_empty_summary(self):
        summary = summarize(100.0, [], [], [])
        assert summary.grade == "excellent"
        assert summary.next_steps == ()
        assert summary.estimated_improvement == 0.0


class TestCssHints:
    def test_class_name_slug(self):
        assert css_class_name("Hero Badge / Primary") == "hero-badge-primary"
        assert css_class_name("***") == "element"

    def test_hint_for_matched_node(self):
        region = _region()
        matches = _matches([region], BLOCK_NODE)
        hints = css_hints(generate_suggestions([region], matches, CFG), matches)
        assert ".hero-badge {" in hints
        assert "left: 10px;" in hints
        assert "width: 20px;" in hints
        assert "object-fit" not in hints

    def test_asset_gets_object_fit(self):
        region = _region()
        node = {**BLOCK_NODE, "type": "IMAGE-SVG"}
        matches = _matches([region], node)
        hints = css_hints(generate_suggestions([region], matches, CFG), matches)
        assert "object-fit: contain;" in hints

    def test_unmatched_gets_no_hint(self):
        region = _region()
        assert css_hints(generate_suggestions([region], [Match(region.id)], CFG), [Match(region.id)]) == ""
