"""Relative bioavailability of Phase 1 PK studies.

Simulates crossover, fixed-sequence and parallel-group datasets, fits
fixed, mixed and GLS models per PK parameter, back-transforms the results
and reports adjusted geometric means, T/R ratios and 90% confidence
intervals.
"""

__version__ = "0.1.0"

from .contracts import (
    RelBioavError,
    Design,
    ModelType,
    DatasetType,
    ModelResult,
)
from .config import AppConfig, load_config

__all__ = [
    "__version__",
    "RelBioavError",
    "Design",
    "ModelType",
    "DatasetType",
    "ModelResult",
    "AppConfig",
    "load_config",
]
