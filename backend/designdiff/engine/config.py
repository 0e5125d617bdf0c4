"""Comparison configuration — every tunable heuristic lives here.

The thresholds below are empirically chosen; algorithm modules read them from
a ``DiffConfig`` instance and never inline the literals.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any

from designdiff.engine.errors import InvalidConfig, Stage


@dataclass(frozen=True)
class DiffConfig:
    """Controls every stage of the comparison pipeline."""

    # Preprocessing: expected/actual ratios at or beyond this are refused
    max_scale_ratio: float = 3.0

    # Pixel diff
    threshold: float = 0.1  # YIQ tolerance, fraction of the max delta
    include_anti_aliasing: bool = False
    alpha: float = 0.1  # overlay fade for unchanged pixels

    # Segmentation
    min_region_size: int = 100
    padding: int = 10
    max_region_dimension: int = 300

    # Classification
    color_sample_size: int = 100
    small_detail_area: int = 500
    large_area: int = 10_000
    horizontal_aspect: float = 3.0
    vertical_aspect: float = 1 / 3
    color_mismatch_distance: float = 100.0

    # Severity: score = w_area * min(area / area_norm, cap) + w_color * min(color / color_norm, cap)
    severity_area_norm: float = 1000.0
    severity_color_norm: float = 25.5
    severity_score_cap: float = 10.0
    severity_area_weight: float = 0.5
    severity_color_weight: float = 0.5
    severity_critical: float = 7.0
    severity_major: float = 4.0
    severity_minor: float = 2.0

    # Semantic matching
    scale_factor: float = 1.0  # design units -> pixels
    min_overlap_percentage: float = 30.0
    max_candidates: int = 5
    distance_norm: float = 200.0
    density_norm: float = 1000.0
    overlap_weight: float = 0.4
    proximity_weight: float = 0.3
    density_weight: float = 0.3

    # Recommendations
    high_priority_pixels: int = 1000
    high_priority_density: float = 0.5
    medium_priority_pixels: int = 200
    medium_priority_density: float = 0.2
    position_tolerance: float = 5.0
    size_tolerance: float = 5.0

    # Diff analyses
    heatmap_cell_size: int = 10
    color_transition_limit: int = 20

    def _check_types(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type == "bool":
                ok = isinstance(value, bool)
            elif f.type == "int":
                ok = isinstance(value, int) and not isinstance(value, bool)
            else:
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            if not ok:
                raise InvalidConfig(f"{f.name} must be of type {f.type}, got {value!r}")

    def validate(self) -> DiffConfig:
        """Raise ``InvalidConfig`` for values no stage can work with."""
        self._check_types()
        if not 0.0 <= self.threshold <= 1.0:
            raise InvalidConfig(f"threshold must be within [0, 1], got {self.threshold}")
        if not 0.0 <= self.alpha <= 1.0:
            raise InvalidConfig(f"alpha must be within [0, 1], got {self.alpha}")
        if self.max_scale_ratio <= 1.0:
            raise InvalidConfig(f"max_scale_ratio must exceed 1, got {self.max_scale_ratio}")
        for name in (
            "min_region_size", "color_sample_size", "max_candidates", "max_region_dimension",
            "heatmap_cell_size", "color_transition_limit",
        ):
            if getattr(self, name) < 1:
                raise InvalidConfig(f"{name} must be at least 1")
        if self.padding < 0:
            raise InvalidConfig("padding must not be negative")
        if self.scale_factor <= 0:
            raise InvalidConfig(f"scale_factor must be positive, got {self.scale_factor}")
        if self.distance_norm <= 0 or self.density_norm <= 0:
            raise InvalidConfig("distance_norm and density_norm must be positive")
        weights = self.overlap_weight + self.proximity_weight + self.density_weight
        if not math.isclose(weights, 1.0, abs_tol=1e-9):
            raise InvalidConfig(f"confidence weights must sum to 1, got {weights}")
        return self

    def with_overrides(self, overrides: dict[str, Any] | None) -> DiffConfig:
        """Copy with selected fields replaced; unknown keys are rejected."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidConfig(f"Unknown config option(s): {', '.join(unknown)}", stage=Stage.PREPROCESS)
        int_fields = {f.name for f in fields(self) if f.type == "int"}
        # JSON clients may send whole numbers as 3.0
        cleaned = {
            name: int(value) if name in int_fields and isinstance(value, float) and value.is_integer() else value
            for name, value in overrides.items()
        }
        return replace(self, **cleaned).validate()
