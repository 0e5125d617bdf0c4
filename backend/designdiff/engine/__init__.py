"""Design-vs-implementation screenshot comparison engine."""

from designdiff.engine.config import DiffConfig
from designdiff.engine.design_tree import DesignNode, parse_design_tree
from designdiff.engine.errors import DesignDiffError, Stage
from designdiff.engine.pipeline import ComparisonPipeline, ComparisonResult, compare, create_pipeline
from designdiff.engine.raster import RasterImage

__all__ = [
    "DiffConfig",
    "DesignNode",
    "parse_design_tree",
    "DesignDiffError",
    "Stage",
    "ComparisonPipeline",
    "ComparisonResult",
    "compare",
    "create_pipeline",
    "RasterImage",
]
