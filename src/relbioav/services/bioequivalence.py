"""Average bioequivalence conclusion from the final results table."""

from __future__ import annotations
from typing import Tuple

import pandas as pd

from ..config import constants as C
from .tables import forest_data


def bioequivalence_conclusion(final_table: pd.DataFrame,
                              limits: Tuple[float, float] = C.BE_LIMITS_PCT) -> pd.DataFrame:
    """Whether each parameter's confidence interval lies within ``limits`` (percent).

    Returns:
        DataFrame with Parameter, Group, ratio, lower, upper and a boolean
        ``bioequivalent`` column.
    """
    low, high = limits
    out = forest_data(final_table)
    out["bioequivalent"] = (out["lower"] >= low) & (out["upper"] <= high)
    return out
