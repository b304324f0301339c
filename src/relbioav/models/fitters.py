"""Fitting routines for the OLS, linear mixed and heteroscedastic GLS model forms."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
import warnings

import numpy as np
import pandas as pd
import statsmodels.api as sm
import structlog
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from ..contracts.errors import FittingError
from ..contracts.types import ModelResult
from .design import encode
from .emmeans import summarize_contrasts, summarize_means, treatment_contrast_vectors
from .registry import ModelSpec

logger = structlog.get_logger()

GLS_MAX_ITER = 50
GLS_TOL = 1e-10
# Relative SD of the random intercept, sqrt(group_var / scale), below which the fit is singular
SINGULAR_TOL = 1e-4
# Solver warnings that leave the fit unusable. The boundary heuristic and
# optimizer retries are passed on as warnings instead.
FIT_PROBLEMS = ("not positive definite", "Gradient optimization failed")


@dataclass(frozen=True)
class FittedModel:
    """A ModelResult together with what residual diagnostics need."""

    result: ModelResult
    residuals: pd.Series
    fitted: pd.Series
    normalized: Optional[pd.Series] = None
    raw: Any = None


def _series(values, data: pd.DataFrame) -> pd.Series:
    return pd.Series(np.asarray(values, dtype=float), index=data.index)


def _details(spec: ModelSpec, parameter: str, **extra) -> Dict[str, Any]:
    details = {
        "parameter": parameter,
        "design": spec.design.value,
        "model_type": spec.model_type.value,
    }
    details.update(extra)
    return details


def _model_result(spec, parameter, data, vectors, params, cov, df_means, df_contrast,
                  sigma, level, reference, **metadata) -> ModelResult:
    emmeans = summarize_means(vectors, params, cov, df_means, level)
    contrast = summarize_contrasts(vectors, params, cov, df_contrast, level, reference)
    return ModelResult(
        emmeans=emmeans,
        contrast=contrast,
        sigma=float(sigma),
        parameter=parameter,
        design=spec.design,
        model_type=spec.model_type,
        level=level,
        nobs=len(data),
        metadata=metadata,
    )


def fit_ols(data: pd.DataFrame, spec: ModelSpec, parameter: str, level: float,
            reference: str) -> FittedModel:
    """Ordinary least squares with subject as a fixed effect.

    The nested Subject(Sequence) coding is rank deficient; coefficients come
    from the pseudo-inverse and only estimable functions of them are reported.
    """
    X = encode(data, spec.terms)
    result = sm.OLS(data["logPK"], X).fit()

    if result.df_resid <= 0 or not np.isfinite(result.scale) or result.scale <= 0:
        raise FittingError(
            f"Insufficient residual degrees of freedom to fit {parameter}",
            _details(spec, parameter, df_resid=float(result.df_resid)),
        )

    vectors = treatment_contrast_vectors(spec.terms, data, spec.grid)
    params = result.params.to_numpy()
    cov = np.asarray(result.cov_params())
    df = float(result.df_resid)

    model_result = _model_result(
        spec, parameter, data, vectors, params, cov, df, df,
        np.sqrt(result.scale), level, reference,
        formula=spec.formula, df_resid=df,
    )
    return FittedModel(model_result, _series(result.resid, data), _series(result.fittedvalues, data), raw=result)


def _within_subject_df(exog: np.ndarray, groups: np.ndarray) -> float:
    """Residual df of the model with subject added as a fixed factor."""
    Z = pd.get_dummies(pd.Series(groups)).to_numpy(dtype=float)
    rank = np.linalg.matrix_rank(np.column_stack([exog, Z]))
    return float(len(groups) - rank)


def fit_mixed(data: pd.DataFrame, spec: ModelSpec, parameter: str, level: float,
              reference: str) -> FittedModel:
    """Linear mixed model (REML) with a random intercept per subject."""
    X = encode(data, spec.terms)
    groups = data["Subject"].cat.codes.to_numpy()
    model = sm.MixedLM(data["logPK"], X, groups=groups)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            result = model.fit(reml=True)
        except (np.linalg.LinAlgError, ValueError) as e:
            raise FittingError(
                f"Mixed model failed for {parameter}: {e}",
                _details(spec, parameter),
            ) from e

    messages = [str(w.message) for w in caught if issubclass(w.category, ConvergenceWarning)]
    problems = [m for m in messages if any(s in m for s in FIT_PROBLEMS)]
    for w in caught:
        if str(w.message) not in problems:
            logger.warning("Mixed model warning", parameter=parameter, warning=str(w.message))
            warnings.warn(w.message, w.category, stacklevel=2)
    if not result.converged or problems:
        raise FittingError(
            f"Mixed model did not converge for {parameter}",
            _details(spec, parameter, warnings=messages),
        )

    group_var = float(np.asarray(result.cov_re)[0, 0])
    scale = float(result.scale)
    if not np.isfinite(scale) or scale <= 0 or np.sqrt(max(group_var, 0.0) / scale) < SINGULAR_TOL:
        raise FittingError(
            f"Singular fit for {parameter}: subject variance is zero",
            _details(spec, parameter, group_var=group_var),
        )

    df = _within_subject_df(X.to_numpy(), groups)
    if df <= 0:
        raise FittingError(
            f"Insufficient residual degrees of freedom to fit {parameter}",
            _details(spec, parameter, df_resid=df),
        )

    k_fe = X.shape[1]
    vectors = treatment_contrast_vectors(spec.terms, data, spec.grid)
    params = np.asarray(result.fe_params)
    cov = np.asarray(result.cov_params())[:k_fe, :k_fe]

    model_result = _model_result(
        spec, parameter, data, vectors, params, cov, df, df,
        np.sqrt(result.scale), level, reference,
        formula=spec.formula, df_resid=df, group_var=group_var,
    )
    return FittedModel(model_result, _series(result.resid, data), _series(result.fittedvalues, data), raw=result)


def _pooled_sd(group_sd: pd.Series, group_n: pd.Series) -> float:
    """SD pooled across groups weighted by n - 1."""
    numerator = float(((group_n - 1) * group_sd ** 2).sum())
    return float(np.sqrt(numerator / float((group_n - 1).sum())))


def _welch_df(group_var: pd.Series, group_n: pd.Series, test: str, reference: str) -> float:
    a = group_var[test] / group_n[test]
    b = group_var[reference] / group_n[reference]
    return float((a + b) ** 2 / (a ** 2 / (group_n[test] - 1) + b ** 2 / (group_n[reference] - 1)))


def fit_gls(data: pd.DataFrame, spec: ModelSpec, parameter: str, level: float,
            reference: str) -> FittedModel:
    """Generalized least squares with a separate residual variance per treatment.

    Variances are re-estimated from the residuals of each group and the
    weighted fit repeated until the coefficients stop changing.
    """
    treatment = data["Treatment"].astype(str)
    group_n = data.groupby(treatment)["Subject"].nunique()
    if (group_n < 2).any():
        raise FittingError(
            f"Each treatment group needs at least two subjects to fit {parameter}",
            _details(spec, parameter, group_n=group_n.to_dict()),
        )

    X = encode(data, spec.terms)
    y = data["logPK"]
    result = sm.OLS(y, X).fit()
    converged = False
    for _ in range(GLS_MAX_ITER):
        group_var = result.resid.groupby(treatment).var(ddof=1)
        if (group_var <= 0).any():
            raise FittingError(
                f"Zero residual variance in a treatment group for {parameter}",
                _details(spec, parameter),
            )
        weights = 1.0 / treatment.map(group_var).to_numpy(dtype=float)
        updated = sm.WLS(y, X, weights=weights).fit()
        change = float(np.max(np.abs(updated.params.to_numpy() - result.params.to_numpy())))
        result = updated
        if change < GLS_TOL:
            converged = True
            break

    if not converged:
        raise FittingError(
            f"GLS variance iteration did not converge for {parameter}",
            _details(spec, parameter),
        )

    group_sd = np.sqrt(group_var)
    levels = [str(lvl) for lvl in data["Treatment"].cat.categories]
    df_means = {lvl: float(group_n[lvl] - 1) for lvl in levels}
    df_contrast = {
        f"{lvl} - {reference}": _welch_df(group_var, group_n, lvl, reference)
        for lvl in levels if lvl != reference
    }

    vectors = treatment_contrast_vectors(spec.terms, data, spec.grid)
    params = result.params.to_numpy()
    # Group variances are treated as known, so no extra scale factor
    cov = np.asarray(result.normalized_cov_params)

    model_result = _model_result(
        spec, parameter, data, vectors, params, cov, df_means, df_contrast,
        _pooled_sd(group_sd, group_n), level, reference,
        formula=spec.formula,
        group_sd={k: float(v) for k, v in group_sd.items()},
        group_n={k: int(v) for k, v in group_n.items()},
    )
    residuals = _series(result.resid, data)
    normalized = residuals / treatment.map(group_sd).astype(float)
    return FittedModel(model_result, residuals, _series(result.fittedvalues, data), normalized, raw=result)


FITTERS = {
    "ols": fit_ols,
    "mixedlm": fit_mixed,
    "gls": fit_gls,
}
