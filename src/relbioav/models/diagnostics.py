"""Residual diagnostics: normality test and optional diagnostic plots."""

from __future__ import annotations
from typing import Dict, Optional, Union

import numpy as np
import pandas as pd
import structlog
from scipy import stats

from ..config import constants as C
from ..contracts.errors import DataShapeError
from ..contracts.types import Design, DiagnosticsResult, ModelType
from ..simulation.schema import parameter_order
from .fit import fit_model_detailed
from .registry import get_model_spec

try:
    import matplotlib.pyplot as plt
    HAS_PLOTTING = True
except ImportError:
    plt = None
    HAS_PLOTTING = False

logger = structlog.get_logger()

# scipy.stats.shapiro is defined for 3 <= n <= 5000
MIN_SHAPIRO_N = 3


def _diagnostic_figure(residuals: pd.Series, fitted: pd.Series, title: str):
    if not HAS_PLOTTING:
        raise ImportError("Matplotlib is required for diagnostic plots")

    fig, (ax_qq, ax_rf) = plt.subplots(1, 2, figsize=(10, 4))
    stats.probplot(residuals.to_numpy(), dist="norm", plot=ax_qq)
    ax_qq.set_title("Normal Q-Q")

    ax_rf.scatter(fitted.to_numpy(), residuals.to_numpy(), s=12, alpha=0.8)
    ax_rf.axhline(0.0, color="grey", linestyle="--", linewidth=1)
    ax_rf.set_xlabel("Fitted values")
    ax_rf.set_ylabel("Residuals")
    ax_rf.set_title("Residuals vs fitted")

    fig.suptitle(title)
    fig.tight_layout()
    return fig


def diagnose_model(
    data: pd.DataFrame,
    design: Union[str, Design],
    model_type: Union[str, ModelType],
    parameter: Optional[str] = None,
    plot: bool = False,
    reference: str = C.REFERENCE_TREATMENT,
) -> DiagnosticsResult:
    """Refit one parameter and test its residuals for normality.

    Parallel-design residuals are normalized by their group SD before testing,
    since the groups carry different variances.

    Raises:
        DataShapeError: Too few residuals for the Shapiro-Wilk test.
    """
    spec = get_model_spec(design, model_type)
    fitted = fit_model_detailed(data, spec.design, spec.model_type, parameter, reference=reference)
    name = fitted.result.parameter

    residuals = fitted.normalized if fitted.normalized is not None else fitted.residuals
    if len(residuals) < MIN_SHAPIRO_N:
        raise DataShapeError(
            f"At least {MIN_SHAPIRO_N} residuals are needed to test normality of {name}",
            {"parameter": name, "n": len(residuals)},
        )

    statistic, pvalue = stats.shapiro(np.asarray(residuals, dtype=float))
    label = f"{spec.design.value}, subject as {spec.subject_label}"
    figure = _diagnostic_figure(residuals, fitted.fitted, f"{name} ({label})") if plot else None

    logger.info("Residual diagnostics", parameter=name, shapiro_w=round(float(statistic), 4),
                shapiro_p=round(float(pvalue), 4))
    return DiagnosticsResult(
        parameter=name,
        residuals=residuals,
        fitted=fitted.fitted,
        shapiro_statistic=float(statistic),
        shapiro_pvalue=float(pvalue),
        model_label=label,
        figure=figure,
    )


def diagnose_all(
    data: pd.DataFrame,
    design: Union[str, Design],
    model_type: Union[str, ModelType],
    plot: bool = False,
    reference: str = C.REFERENCE_TREATMENT,
) -> Dict[str, DiagnosticsResult]:
    """Diagnostics for every parameter, in parameter order."""
    return {
        parameter: diagnose_model(data, design, model_type, parameter, plot=plot, reference=reference)
        for parameter in parameter_order(data)
    }
