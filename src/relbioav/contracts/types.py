"""Enumerations and result containers shared across pipeline stages."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar, Union

import pandas as pd

from .errors import InvalidArgumentError

_E = TypeVar("_E", bound="_Choice")


class _Choice(str, Enum):
    """String enumeration with strict parsing."""

    @classmethod
    def parse(cls: Type[_E], value: Union[str, "_Choice"]) -> _E:
        """Return the member for ``value`` or raise InvalidArgumentError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(repr(m.value) for m in cls)
            raise InvalidArgumentError(
                f"'{value}' is not a valid {cls.__name__}; expected one of {choices}",
                {"argument": cls.__name__, "value": value},
            ) from None


class Design(_Choice):
    """Phase 1 study design."""

    CROSSOVER = "crossover"
    FIXED_SEQUENCE = "fixed_sequence"
    PARALLEL = "parallel"

    @property
    def has_periods(self) -> bool:
        return self is not Design.PARALLEL


class ModelType(_Choice):
    """Treatment of the subject effect."""

    FIXED = "fixed"
    MIXED = "mixed"


class DatasetType(_Choice):
    """Balanced dataset or its counterpart with observations removed."""

    BALANCED = "balanced"
    UNBALANCED = "unbalanced"


@dataclass(frozen=True)
class SimulatedStudy:
    """Balanced dataset and its unbalanced counterpart."""

    balanced: pd.DataFrame
    unbalanced: pd.DataFrame
    design: Design = Design.CROSSOVER

    def get(self, dataset_type: Union[str, DatasetType]) -> pd.DataFrame:
        """Select a dataset by type."""
        if DatasetType.parse(dataset_type) is DatasetType.BALANCED:
            return self.balanced
        return self.unbalanced


@dataclass(frozen=True)
class ModelResult:
    """Log-scale results of one model fit for a single PK parameter."""

    emmeans: pd.DataFrame
    """Marginal means by treatment: Treatment, emmean, SE, df, lower_CL, upper_CL"""

    contrast: pd.DataFrame
    """Test vs reference: contrast, estimate, SE, df, lower_CL, upper_CL, t_ratio, p_value"""

    sigma: float
    """Residual standard deviation (pooled across groups for parallel designs)"""

    parameter: str = ""
    design: Design = Design.CROSSOVER
    model_type: ModelType = ModelType.FIXED
    level: float = 0.90
    nobs: int = 0
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BackTransformed:
    """Geometric-scale counterpart of a ModelResult."""

    adjusted: pd.DataFrame
    """Marginal means with adj_gmean and adj_gse columns added"""

    ratio: pd.DataFrame
    """Contrast with ratio, gse, lower and upper columns (fractions, not %)"""

    gcv: float
    """Geometric coefficient of variation as a fraction"""


@dataclass(frozen=True)
class DiagnosticsResult:
    """Residual diagnostics for one fitted model."""

    parameter: str
    residuals: pd.Series
    fitted: pd.Series
    shapiro_statistic: float
    shapiro_pvalue: float
    model_label: str = ""
    figure: Optional[Any] = None


@dataclass(frozen=True)
class AnalysisResult:
    """Models, final table and conclusion of one analysis of one dataset."""

    models: Mapping[str, ModelResult]
    """Model results keyed by PK parameter"""

    final_table: pd.DataFrame
    """Formatted table (Parameter, Treatment, Group, n, adj_gmean, ... gCV)"""

    conclusion: pd.DataFrame
    """Per-parameter ratio, CI and bioequivalence flag"""

    design: Design = Design.CROSSOVER
    model_type: ModelType = ModelType.FIXED
    dataset_type: DatasetType = DatasetType.BALANCED
    failures: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RunResult:
    """Complete pipeline run: simulated data, analysis and written artifacts."""

    run_id: str
    """Unique identifier for this run"""

    config: dict
    """Configuration used for this run"""

    analysis: AnalysisResult
    artifacts: Mapping[str, str] = field(default_factory=dict)
    runtime_seconds: float = 0.0
    metadata: Optional[Mapping[str, Any]] = None
