"""Core contracts and interfaces."""

from .errors import (
    RelBioavError,
    ConfigError,
    ValidationError,
    InvalidArgumentError,
    DataShapeError,
    FittingError,
    ReportingError,
)
from .types import (
    Design,
    ModelType,
    DatasetType,
    SimulatedStudy,
    ModelResult,
    BackTransformed,
    DiagnosticsResult,
    AnalysisResult,
    RunResult,
)

__all__ = [
    "RelBioavError",
    "ConfigError",
    "ValidationError",
    "InvalidArgumentError",
    "DataShapeError",
    "FittingError",
    "ReportingError",
    "Design",
    "ModelType",
    "DatasetType",
    "SimulatedStudy",
    "ModelResult",
    "BackTransformed",
    "DiagnosticsResult",
    "AnalysisResult",
    "RunResult",
]
