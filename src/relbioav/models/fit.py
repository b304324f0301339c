"""Model fitting entry points: one parameter, or every parameter of a dataset."""

from __future__ import annotations
from typing import Dict, MutableMapping, Optional, Union

import pandas as pd
import structlog

from ..config import constants as C
from ..contracts.errors import DataShapeError, FittingError, RelBioavError
from ..contracts.types import Design, ModelResult, ModelType
from ..simulation.schema import (
    ANALYSIS_COLUMNS,
    apply_categories,
    parameter_order,
    require_columns,
    select_parameter,
)
from .fitters import FITTERS, FittedModel
from .registry import get_model_spec

logger = structlog.get_logger()


def _design_columns(design: Design):
    if design is Design.CROSSOVER:
        return ANALYSIS_COLUMNS + ("Sequence", "Period")
    if design is Design.FIXED_SEQUENCE:
        return ANALYSIS_COLUMNS + ("Period",)
    return ANALYSIS_COLUMNS


def _prepare(data: pd.DataFrame, design: Design, parameter: Optional[str],
             reference: str) -> pd.DataFrame:
    require_columns(data, _design_columns(design), context=f"{design.value} dataset")
    typed = apply_categories(data, reference)

    if parameter is None:
        parameters = parameter_order(typed)
        if len(parameters) != 1:
            raise DataShapeError(
                "Dataset holds several PK parameters; select one to fit",
                {"parameters": list(parameters)},
            )
        parameter = parameters[0]

    subset = select_parameter(typed, parameter)
    observed = set(subset["Treatment"].astype(str))
    if reference not in observed or len(observed) < 2:
        raise DataShapeError(
            f"Both the reference ({reference}) and a test treatment are needed to fit {parameter}",
            {"parameter": parameter, "treatments": sorted(observed)},
        )
    return subset


def fit_model_detailed(
    data: pd.DataFrame,
    design: Union[str, Design],
    model_type: Union[str, ModelType],
    parameter: Optional[str] = None,
    level: float = C.CONFIDENCE_LEVEL,
    reference: str = C.REFERENCE_TREATMENT,
) -> FittedModel:
    """Fit one parameter and keep residuals and fitted values alongside the result."""
    spec = get_model_spec(design, model_type)
    subset = _prepare(data, spec.design, parameter, reference)
    name = str(subset["Parameter"].iloc[0])

    fitted = FITTERS[spec.kind](subset, spec, name, level, reference)

    contrast = fitted.result.contrast.iloc[0]
    logger.info(
        "Model fitted",
        parameter=name,
        design=spec.design.value,
        model_type=spec.model_type.value,
        nobs=fitted.result.nobs,
        sigma=round(fitted.result.sigma, 6),
        estimate=round(float(contrast["estimate"]), 6),
    )
    return fitted


def fit_model(
    data: pd.DataFrame,
    design: Union[str, Design],
    model_type: Union[str, ModelType],
    parameter: Optional[str] = None,
    level: float = C.CONFIDENCE_LEVEL,
    reference: str = C.REFERENCE_TREATMENT,
) -> ModelResult:
    """Fit the model form for ``design`` and ``model_type`` to one PK parameter.

    Args:
        data: Analysis dataset, either a single parameter or the full long
            table when ``parameter`` is given.
        design: Study design.
        model_type: "fixed" or "mixed" subject effect.
        parameter: Parameter to fit; required when ``data`` holds several.
        level: Confidence level of the intervals.
        reference: Reference treatment label.

    Returns:
        ModelResult with marginal means and the test-minus-reference contrast.

    Raises:
        InvalidArgumentError: Unknown design/model type or parallel + mixed.
        DataShapeError: Missing columns, an absent parameter or treatment.
        FittingError: The model could not be estimated.
    """
    return fit_model_detailed(data, design, model_type, parameter, level, reference).result


def run_models(
    data: pd.DataFrame,
    design: Union[str, Design],
    model_type: Union[str, ModelType],
    level: float = C.CONFIDENCE_LEVEL,
    reference: str = C.REFERENCE_TREATMENT,
    failures: Optional[MutableMapping[str, RelBioavError]] = None,
) -> Dict[str, ModelResult]:
    """Fit every PK parameter in ``data``, keyed and ordered by parameter name.

    Missing columns always raise before any fit. Without ``failures`` the first
    error aborts the run. With it, a parameter whose fit raises FittingError or
    DataShapeError is recorded there and skipped.
    """
    spec = get_model_spec(design, model_type)
    require_columns(data, _design_columns(spec.design), context=f"{spec.design.value} dataset")

    results: Dict[str, ModelResult] = {}
    for parameter in parameter_order(data):
        try:
            results[parameter] = fit_model(data, spec.design, spec.model_type, parameter, level, reference)
        except (FittingError, DataShapeError) as e:
            if failures is None:
                raise
            logger.warning("Model fit failed", parameter=parameter, error=e.message)
            failures[parameter] = e
    return results
