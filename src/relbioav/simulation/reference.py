"""Static log-scale mean and variance reference tables."""

from __future__ import annotations
from typing import List

import pandas as pd

from ..config import constants as C


def mean_table() -> pd.DataFrame:
    """Population means on the log scale by (Treatment, Parameter)."""
    rows = [(trt, param, mu) for (trt, param), mu in C.MU_LOG.items()]
    return pd.DataFrame(rows, columns=["Treatment", "Parameter", "mu"])


def variance_components() -> pd.DataFrame:
    """Between- and within-subject SDs per parameter (crossover, fixed-sequence)."""
    return pd.DataFrame({
        "Parameter": list(C.BETWEEN_SD),
        "between_sd": [C.BETWEEN_SD[p] for p in C.BETWEEN_SD],
        "within_sd": [C.WITHIN_SD[p] for p in C.BETWEEN_SD],
    })


def parallel_sd_table() -> pd.DataFrame:
    """Single SD per parameter (parallel group)."""
    return pd.DataFrame({
        "Parameter": list(C.PARALLEL_SD),
        "sd": list(C.PARALLEL_SD.values()),
    })


def parameter_levels() -> List[str]:
    """PK parameters in order of first appearance in the mean table."""
    return list(dict.fromkeys(mean_table()["Parameter"]))
