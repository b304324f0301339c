"""Column schema and categorical typing of PK analysis datasets."""

from __future__ import annotations
from typing import Iterable, Sequence

import pandas as pd

from ..config import constants as C
from ..contracts.errors import DataShapeError

ANALYSIS_COLUMNS = ("Subject", "Treatment", "Parameter", "logPK")
PERIOD_COLUMNS = ("Subject", "Sequence", "Period", "Treatment", "Parameter", "logPK", "PK")
PARALLEL_COLUMNS = ("Subject", "Treatment", "Parameter", "logPK", "PK")


def require_columns(data: pd.DataFrame, columns: Iterable[str], context: str = "dataset") -> None:
    """Raise DataShapeError if any of ``columns`` is absent from ``data``."""
    missing = [c for c in columns if c not in data.columns]
    if missing:
        raise DataShapeError(
            f"{context} is missing required columns: {', '.join(missing)}",
            {"missing": missing, "available": list(data.columns)},
        )


def treatment_categorical(values: pd.Series, reference: str = C.REFERENCE_TREATMENT) -> pd.Categorical:
    """Treatment factor with the reference level first."""
    labels = pd.Series(values).astype(str)
    others = sorted(set(labels) - {reference})
    return pd.Categorical(labels, categories=[reference, *others])


def label_key(value):
    """Integer form of an identifier such as "3", or its text when not numeric (e.g. "S03")."""
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        return text


def label_keys(values: Iterable) -> list:
    """Identifier keys for a column; all integers only when every label is numeric."""
    keys = [label_key(v) for v in values]
    if all(isinstance(k, int) for k in keys):
        return keys
    return [str(k) for k in keys]


def _id_categorical(values: pd.Series) -> pd.Categorical:
    keys = label_keys(values)
    return pd.Categorical(keys, categories=sorted(set(keys)))


def apply_categories(data: pd.DataFrame, reference: str = C.REFERENCE_TREATMENT) -> pd.DataFrame:
    """Return a copy of ``data`` with factor columns typed as categoricals.

    Subject and Period become integer categoricals when every label is
    numeric and string categoricals otherwise, Sequence a string categorical, Treatment a categorical with ``reference`` as first level.
    """
    require_columns(data, ANALYSIS_COLUMNS)
    out = data.copy()
    for col in ("Subject", "Period"):
        if col in out.columns:
            out[col] = _id_categorical(out[col])
    if "Sequence" in out.columns:
        out["Sequence"] = out["Sequence"].astype(str).astype("category")
    out["Treatment"] = treatment_categorical(out["Treatment"], reference)
    out["Parameter"] = out["Parameter"].astype(str)
    out["logPK"] = out["logPK"].astype(float)
    if "PK" in out.columns:
        out["PK"] = out["PK"].astype(float)
    return out


def select_parameter(data: pd.DataFrame, parameter: str) -> pd.DataFrame:
    """Rows of a single PK parameter, with unused categories dropped."""
    require_columns(data, ANALYSIS_COLUMNS)
    subset = data.loc[data["Parameter"] == parameter]
    if subset.empty:
        raise DataShapeError(
            f"No observations for parameter {parameter!r}",
            {"parameter": parameter, "available": sorted(data["Parameter"].unique())},
        )
    subset = subset.copy()
    for col in subset.columns:
        if isinstance(subset[col].dtype, pd.CategoricalDtype) and col != "Treatment":
            subset[col] = subset[col].cat.remove_unused_categories()
    return subset


def parameter_order(data: pd.DataFrame) -> Sequence[str]:
    """Parameters in sorted order, matching a split by parameter."""
    require_columns(data, ("Parameter",))
    return sorted(data["Parameter"].astype(str).unique())
