"""Linear model fitting, marginal means and residual diagnostics."""

from .diagnostics import diagnose_all, diagnose_model
from .fit import fit_model, fit_model_detailed, run_models
from .fitters import FittedModel
from .registry import MODEL_SPECS, ModelSpec, get_model_spec, list_model_specs

__all__ = [
    "fit_model",
    "fit_model_detailed",
    "run_models",
    "diagnose_model",
    "diagnose_all",
    "FittedModel",
    "ModelSpec",
    "MODEL_SPECS",
    "get_model_spec",
    "list_model_specs",
]
