"""Estimated marginal means and treatment contrasts from a fitted linear model.

Marginal means follow the reference-grid convention: the prediction for a
treatment is averaged with equal weight over the levels of every other
factor in the model. Factors listed together in one grid group are nested
(e.g. Subject within Sequence): the first is weighted equally and the
following ones equally within it.
"""

from __future__ import annotations
from typing import Dict, Mapping, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

from .design import encode

DfSpec = Union[float, Mapping[str, float]]


def build_reference_grid(
    data: pd.DataFrame, groups: Sequence[Tuple[str, ...]]
) -> Tuple[pd.DataFrame, np.ndarray]:
    """Combinations of non-treatment factors and their averaging weights.

    Args:
        data: Data the model was fitted to.
        groups: Factor groups; each group contributes its observed level
            combinations and groups are crossed with each other.

    Returns:
        Tuple of (grid frame, weights summing to one).
    """
    grid = pd.DataFrame(index=[0])
    weights = np.ones(1)

    for group in groups:
        combos = data.loc[:, list(group)].drop_duplicates().sort_values(list(group)).reset_index(drop=True)
        w = _nested_weights(combos, group)
        grid = grid.merge(combos, how="cross")
        weights = np.outer(weights, w).ravel()

    return grid.reset_index(drop=True), weights


def _nested_weights(combos: pd.DataFrame, group: Tuple[str, ...]) -> np.ndarray:
    w = np.ones(len(combos))
    for depth, factor in enumerate(group):
        parents = list(group[:depth])
        if parents:
            n_children = combos.groupby(parents, observed=True)[factor].transform("nunique").to_numpy()
            w = w / n_children
        else:
            w = w / combos[factor].nunique()
    return w


def treatment_contrast_vectors(
    terms: Sequence[str], data: pd.DataFrame, groups: Sequence[Tuple[str, ...]]
) -> Dict[str, np.ndarray]:
    """Linear functions of the coefficients giving each treatment's marginal mean."""
    grid, weights = build_reference_grid(data, groups)
    levels = list(data["Treatment"].cat.categories)

    vectors: Dict[str, np.ndarray] = {}
    for level in levels:
        frame = grid.copy()
        frame["Treatment"] = pd.Categorical([level] * len(frame), categories=levels)
        X = encode(frame, terms).to_numpy()
        vectors[level] = weights @ X
    return vectors


def _df_for(df: DfSpec, key: str) -> float:
    if isinstance(df, Mapping):
        return float(df[key])
    return float(df)


def _interval(estimate: float, se: float, df: float, level: float) -> Tuple[float, float]:
    q = stats.t.ppf(0.5 + level / 2.0, df)
    return estimate - q * se, estimate + q * se


def summarize_means(
    vectors: Mapping[str, np.ndarray],
    params: np.ndarray,
    cov: np.ndarray,
    df: DfSpec,
    level: float,
) -> pd.DataFrame:
    """Marginal mean, SE and confidence limits per treatment."""
    rows = []
    for treatment, L in vectors.items():
        estimate = float(L @ params)
        se = float(np.sqrt(L @ cov @ L))
        dof = _df_for(df, treatment)
        lower, upper = _interval(estimate, se, dof, level)
        rows.append({
            "Treatment": treatment,
            "emmean": estimate,
            "SE": se,
            "df": dof,
            "lower_CL": lower,
            "upper_CL": upper,
        })
    return pd.DataFrame(rows)


def summarize_contrasts(
    vectors: Mapping[str, np.ndarray],
    params: np.ndarray,
    cov: np.ndarray,
    df: DfSpec,
    level: float,
    reference: str,
) -> pd.DataFrame:
    """Each non-reference treatment minus the reference, with inference."""
    rows = []
    for treatment, L_test in vectors.items():
        if treatment == reference:
            continue
        label = f"{treatment} - {reference}"
        L = L_test - vectors[reference]
        estimate = float(L @ params)
        se = float(np.sqrt(L @ cov @ L))
        dof = _df_for(df, label)
        lower, upper = _interval(estimate, se, dof, level)
        t_ratio = estimate / se
        rows.append({
            "contrast": label,
            "estimate": estimate,
            "SE": se,
            "df": dof,
            "lower_CL": lower,
            "upper_CL": upper,
            "t_ratio": t_ratio,
            "p_value": float(2.0 * stats.t.sf(abs(t_ratio), dof)),
        })
    return pd.DataFrame(rows)
