"""Flood-fill optimizer for Litematica schematics."""

from .analyzer import AnalyzerState, ReachabilityAnalyzer, ReachabilityResult, analyze
from .blocks import BlockClassifier, BlockState, Passability
from .errors import (
    MarkerNotFound,
    MultipleMarkers,
    OptimizerError,
    OutOfBounds,
    SchematicError,
    SeedNotFound,
    TargetNotReached,
)
from .grid import GridView, Region
from .litematic import Schematic, read_litematic, write_litematic
from .optimizer import OptimizeReport, optimize
from .settings import OptimizeSettings

__version__ = "0.1.0"

__all__ = [
    "AnalyzerState",
    "BlockClassifier",
    "BlockState",
    "GridView",
    "MarkerNotFound",
    "MultipleMarkers",
    "OptimizeReport",
    "OptimizeSettings",
    "OptimizerError",
    "OutOfBounds",
    "Passability",
    "ReachabilityAnalyzer",
    "ReachabilityResult",
    "Region",
    "Schematic",
    "SchematicError",
    "SeedNotFound",
    "TargetNotReached",
    "analyze",
    "optimize",
    "read_litematic",
    "write_litematic",
]
