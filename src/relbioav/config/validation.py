"""Configuration validation utilities."""

from typing import List
import structlog

from ..contracts.errors import ValidationError
from ..contracts.types import DatasetType, Design, ModelType
from .model import AppConfig
from . import constants as C

logger = structlog.get_logger()

MIN_SUBJECTS_PER_SEQUENCE = 3


def validate_config(config: AppConfig) -> None:
    """Validate configuration for common issues and conflicts.
    
    Args:
        config: Configuration to validate
        
    Raises:
        ValidationError: If configuration is invalid
    """
    errors: List[str] = []
    warnings: List[str] = []
    
    _validate_design_model_combination(config, errors)
    _validate_imbalance(config, errors, warnings)
    _validate_sample_size(config, warnings)
    _validate_analysis_conventions(config, warnings)
    
    for warning in warnings:
        logger.warning(warning)
    
    if errors:
        raise ValidationError(
            f"Configuration validation failed: {'; '.join(errors)}"
        )


def _validate_design_model_combination(config: AppConfig, errors: List[str]) -> None:
    """Parallel designs have no within-subject structure to model."""
    design = config.simulation.design
    analysis = config.analysis

    if design is Design.PARALLEL:
        if analysis.model_type is ModelType.MIXED:
            errors.append("parallel design supports only the fixed (GLS) model")
        if analysis.dataset_type is DatasetType.UNBALANCED:
            errors.append("parallel design has no period to drop; use the balanced dataset")


def _validate_imbalance(config: AppConfig, errors: List[str], warnings: List[str]) -> None:
    """Check that the observations to drop exist."""
    sim = config.simulation
    if not sim.design.has_periods:
        return

    n_periods = len(sim.sequences[0]) if sim.design is Design.CROSSOVER else len(sim.sequence)
    if sim.drop_period > n_periods:
        errors.append(
            f"drop_period={sim.drop_period} exceeds the number of periods ({n_periods})"
        )

    missing = [s for s in sim.drop_subjects if s < 1 or s > sim.n_subjects]
    if missing:
        warnings.append(f"drop_subjects {missing} are outside 1..{sim.n_subjects} and will be ignored")


def _validate_sample_size(config: AppConfig, warnings: List[str]) -> None:
    """Warn when residual degrees of freedom will be scarce."""
    sim = config.simulation

    if sim.design is Design.CROSSOVER:
        per_sequence = sim.n_subjects // len(sim.sequences)
        if per_sequence < MIN_SUBJECTS_PER_SEQUENCE:
            warnings.append(
                f"only {per_sequence} subjects per sequence; model fitting may fail"
            )
    elif sim.design is Design.PARALLEL:
        block = sum(sim.allocation.values())
        if sim.n_subjects % block:
            warnings.append(
                f"n_subjects={sim.n_subjects} is not a multiple of the allocation block ({block}); "
                "groups will be unequal"
            )


def _validate_analysis_conventions(config: AppConfig, warnings: List[str]) -> None:
    """Flag departures from standard bioequivalence conventions."""
    analysis = config.analysis

    if abs(analysis.confidence_level - C.CONFIDENCE_LEVEL) > 1e-12:
        warnings.append(
            f"confidence_level={analysis.confidence_level} differs from the 90% bioequivalence convention"
        )

    if analysis.reference != C.REFERENCE_TREATMENT:
        warnings.append(
            f"reference={analysis.reference!r} differs from the conventional reference 'R'"
        )
