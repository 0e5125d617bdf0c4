"""Typed failures of the comparison pipeline.

Fatal conditions are exceptions carrying the ``Stage`` that raised them.
Recoverable conditions never raise; they become ``warnings`` on the report.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class Stage(enum.IntEnum):
    PREPROCESS = 0
    DIFF = 1
    SEGMENT = 2
    CLASSIFY = 3
    MATCH = 4
    RECOMMEND = 5


class DesignDiffError(Exception):
    """Base class for every fatal pipeline error."""

    code = "designdiff_error"
    default_stage = Stage.PREPROCESS

    def __init__(self, message: str, stage: Stage | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage if stage is not None else self.default_stage

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "stage": self.stage.name.lower(), "message": self.message}


class CorruptImageData(DesignDiffError):
    code = "corrupt_image_data"


class ExtremeDimensionMismatch(DesignDiffError):
    code = "extreme_dimension_mismatch"

    def __init__(
        self,
        expected_size: tuple[int, int],
        actual_size: tuple[int, int],
        max_ratio: float,
    ) -> None:
        super().__init__(
            f"Cannot compare {expected_size[0]}x{expected_size[1]} against "
            f"{actual_size[0]}x{actual_size[1]}: scale delta reaches the {max_ratio:g}x limit",
            stage=Stage.PREPROCESS,
        )
        self.expected_size = expected_size
        self.actual_size = actual_size
        self.max_ratio = max_ratio


class InvalidConfig(DesignDiffError):
    code = "invalid_config"


class InvalidDesignTree(DesignDiffError):
    code = "invalid_design_tree"
    default_stage = Stage.MATCH


class PipelineStageError(DesignDiffError):
    """Unexpected failure inside a stage, wrapped with the stage it came from."""

    code = "pipeline_stage_error"


@dataclass(frozen=True)
class PipelineWarning:
    """A recoverable condition recorded on the report instead of raised."""

    code: str
    message: str
    stage: Stage
    details: dict[str, Any] = field(default_factory=dict)
