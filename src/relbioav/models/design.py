"""Treatment-coded design matrices for categorical model terms."""

from __future__ import annotations
from typing import Sequence

import numpy as np
import pandas as pd

from ..contracts.errors import DataShapeError


def encode(data: pd.DataFrame, terms: Sequence[str]) -> pd.DataFrame:
    """Intercept plus one indicator column per non-first level of each term.

    Columns depend only on the categories of each factor, so frames sharing
    categorical dtypes (such as a reference grid and the fitted data) encode
    to identical columns.

    Raises:
        DataShapeError: If a term is not a categorical column of ``data``.
    """
    columns = {"Intercept": np.ones(len(data))}
    for term in terms:
        if term not in data.columns or not isinstance(data[term].dtype, pd.CategoricalDtype):
            raise DataShapeError(
                f"Model term {term!r} must be a categorical column",
                {"term": term, "available": list(data.columns)},
            )
        values = data[term]
        for level in values.cat.categories[1:]:
            columns[f"{term}[T.{level}]"] = (values == level).to_numpy(dtype=float)
    return pd.DataFrame(columns, index=data.index)
