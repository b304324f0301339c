"""Configuration data models."""

from __future__ import annotations
from typing import Dict, List, Optional, Tuple, Union
from pathlib import Path
from pydantic import BaseModel, Field, field_validator

from ..contracts.types import DatasetType, Design, ModelType
from . import constants as C


class EndpointSpec(BaseModel):
    """PK parameter and the display group it is reported under."""

    parameter: str
    group: str = C.OTHER_GROUP


def _default_endpoints() -> List[EndpointSpec]:
    return [EndpointSpec(parameter=p, group=g) for p, g in C.DEFAULT_ENDPOINT_MAP]


class RunConfig(BaseModel):
    """Run execution configuration."""

    run_id: Optional[str] = Field(default=None, description="Custom run identifier")
    artifact_dir: str = "results"


class SimulationConfig(BaseModel):
    """Study simulation settings."""

    design: Design = Design.CROSSOVER
    n_subjects: int = Field(C.DEFAULT_N_SUBJECTS_PERIOD, gt=0, description="Number of subjects")
    seed: int = C.DEFAULT_SEED
    sequences: List[str] = Field(default_factory=lambda: list(C.DEFAULT_CROSSOVER_SEQUENCES))
    sequence: List[str] = Field(default_factory=lambda: list(C.DEFAULT_FIXED_SEQUENCE))
    allocation: Dict[str, int] = Field(default_factory=lambda: {"R": 1, "T": 1})
    drop_subjects: List[int] = Field(default_factory=lambda: list(C.DEFAULT_DROP_SUBJECTS))
    drop_period: int = Field(C.DEFAULT_DROP_PERIOD, gt=0)

    @field_validator("design", mode="before")
    @classmethod
    def validate_design(cls, v):
        return Design.parse(v)

    @field_validator("sequences")
    @classmethod
    def validate_sequences(cls, v: List[str]) -> List[str]:
        if len(v) < 2 or len({len(s) for s in v}) != 1:
            raise ValueError("sequences must contain at least two labels of equal length")
        for seq in v:
            if set(seq) != set(C.TREATMENT_LEVELS):
                raise ValueError(f"sequence {seq!r} must contain each of {C.TREATMENT_LEVELS}")
        return v

    @field_validator("sequence")
    @classmethod
    def validate_sequence(cls, v: List[str]) -> List[str]:
        if not set(v) <= set(C.TREATMENT_LEVELS) or len(set(v)) < 2:
            raise ValueError(f"sequence must use both treatments {C.TREATMENT_LEVELS}")
        return v

    @field_validator("allocation")
    @classmethod
    def validate_allocation(cls, v: Dict[str, int]) -> Dict[str, int]:
        if set(v) != set(C.TREATMENT_LEVELS) or any(x <= 0 for x in v.values()):
            raise ValueError("allocation must give a positive integer weight for R and T")
        return v


class AnalysisConfig(BaseModel):
    """Model fitting configuration."""

    model_type: ModelType = ModelType.FIXED
    dataset_type: DatasetType = DatasetType.BALANCED
    confidence_level: float = Field(C.CONFIDENCE_LEVEL, gt=0.0, lt=1.0)
    reference: str = C.REFERENCE_TREATMENT
    endpoint_map: List[EndpointSpec] = Field(default_factory=_default_endpoints)
    collect_failures: bool = False

    @field_validator("model_type", mode="before")
    @classmethod
    def validate_model_type(cls, v):
        return ModelType.parse(v)

    @field_validator("dataset_type", mode="before")
    @classmethod
    def validate_dataset_type(cls, v):
        return DatasetType.parse(v)

    @field_validator("endpoint_map")
    @classmethod
    def validate_endpoint_map(cls, v: List[EndpointSpec]) -> List[EndpointSpec]:
        names = [e.parameter for e in v]
        if len(names) != len(set(names)):
            raise ValueError("endpoint_map lists a parameter more than once")
        return v

    def endpoint_pairs(self) -> List[Tuple[str, str]]:
        """Return endpoint map as (parameter, group) pairs."""
        return [(e.parameter, e.group) for e in self.endpoint_map]


class ReportConfig(BaseModel):
    """Table and forest plot settings."""

    x_limits: Tuple[float, float] = C.FOREST_X_LIMITS
    ref_lines: List[float] = Field(default_factory=lambda: list(C.FOREST_REF_LINES))
    be_limits: Tuple[float, float] = C.BE_LIMITS_PCT
    forest_plot: bool = True
    plot_format: str = "png"

    @field_validator("x_limits", "be_limits")
    @classmethod
    def validate_limits(cls, v: Tuple[float, float]) -> Tuple[float, float]:
        if v[0] >= v[1]:
            raise ValueError("limits must be increasing")
        return v


class AppConfig(BaseModel):
    """Complete application configuration."""

    run: RunConfig = Field(default_factory=RunConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @classmethod
    def from_toml_file(cls, path: Union[Path, str]) -> "AppConfig":
        """Load configuration from TOML file."""
        try:
            import tomllib
        except ImportError:
            import tomli as tomllib

        with open(path, "rb") as f:
            data = tomllib.load(f)
        return cls.model_validate(data)
