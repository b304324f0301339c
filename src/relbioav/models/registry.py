"""Closed set of model forms selected by (design, model type)."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Tuple, Union

from ..contracts.errors import InvalidArgumentError
from ..contracts.types import Design, ModelType


@dataclass(frozen=True)
class ModelSpec:
    """Model terms and fitting method for one design/model-type combination.

    ``formula`` is for display in reports and logs only and is never parsed.
    The design matrix is built from ``terms`` by :func:`relbioav.models.design.encode`.
    """

    design: Design
    model_type: ModelType
    formula: str
    terms: Tuple[str, ...]
    kind: str  # "ols", "mixedlm" or "gls"
    grid: Tuple[Tuple[str, ...], ...] = ()
    """Reference-grid factors averaged over for marginal means; inner tuples are nested"""
    description: str = ""

    @property
    def subject_label(self) -> str:
        return "random effect" if self.model_type is ModelType.MIXED else "fixed effect"


MODEL_SPECS: Dict[Tuple[Design, ModelType], ModelSpec] = {
    (Design.CROSSOVER, ModelType.FIXED): ModelSpec(
        design=Design.CROSSOVER,
        model_type=ModelType.FIXED,
        formula="logPK ~ Sequence + Subject(Sequence) + Period + Treatment",
        terms=("Sequence", "Subject", "Period", "Treatment"),
        kind="ols",
        grid=(("Sequence", "Subject"), ("Period",)),
        description="ANOVA with subject nested in sequence as fixed effect",
    ),
    (Design.CROSSOVER, ModelType.MIXED): ModelSpec(
        design=Design.CROSSOVER,
        model_type=ModelType.MIXED,
        formula="logPK ~ Sequence + Period + Treatment + (1 | Subject(Sequence))",
        terms=("Sequence", "Period", "Treatment"),
        kind="mixedlm",
        grid=(("Sequence",), ("Period",)),
        description="Linear mixed model with random intercept per subject within sequence",
    ),
    (Design.FIXED_SEQUENCE, ModelType.FIXED): ModelSpec(
        design=Design.FIXED_SEQUENCE,
        model_type=ModelType.FIXED,
        formula="logPK ~ Subject + Treatment",
        terms=("Subject", "Treatment"),
        kind="ols",
        grid=(("Subject",),),
        description="ANOVA with subject as fixed effect",
    ),
    (Design.FIXED_SEQUENCE, ModelType.MIXED): ModelSpec(
        design=Design.FIXED_SEQUENCE,
        model_type=ModelType.MIXED,
        formula="logPK ~ Treatment + (1 | Subject)",
        terms=("Treatment",),
        kind="mixedlm",
        grid=(),
        description="Linear mixed model with random intercept per subject",
    ),
    (Design.PARALLEL, ModelType.FIXED): ModelSpec(
        design=Design.PARALLEL,
        model_type=ModelType.FIXED,
        formula="logPK ~ Treatment, variance per Treatment",
        terms=("Treatment",),
        kind="gls",
        grid=(),
        description="Generalized least squares with residual variance per treatment",
    ),
}


def get_model_spec(design: Union[str, Design], model_type: Union[str, ModelType]) -> ModelSpec:
    """Look up the model form for a design and model type.

    Raises:
        InvalidArgumentError: For unknown values or a combination with no model
            (the parallel design has no mixed variant).
    """
    design = Design.parse(design)
    model_type = ModelType.parse(model_type)
    try:
        return MODEL_SPECS[(design, model_type)]
    except KeyError:
        raise InvalidArgumentError(
            f"No {model_type.value} model is defined for the {design.value} design",
            {"design": design.value, "model_type": model_type.value},
        ) from None


def list_model_specs() -> List[ModelSpec]:
    """All registered model forms."""
    return list(MODEL_SPECS.values())
