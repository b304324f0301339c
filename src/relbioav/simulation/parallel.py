"""Simulation of a parallel-group study."""

from __future__ import annotations
from typing import Mapping, Optional

import numpy as np
import pandas as pd
import structlog

from ..config import constants as C
from .base import resolve_rng
from .reference import mean_table, parallel_sd_table, parameter_levels
from .schema import PARALLEL_COLUMNS, apply_categories

logger = structlog.get_logger()


def simulate_parallel(
    n_subjects: int = C.DEFAULT_N_SUBJECTS_PARALLEL,
    seed: int = C.DEFAULT_SEED,
    allocation: Optional[Mapping[str, int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> pd.DataFrame:
    """Simulate log-PK data for a two-arm parallel-group study.

    Treatments are allocated by permuting a vector that repeats the
    allocation block (``{"R": 1, "T": 1}`` gives 1:1) up to ``n_subjects``.
    Each subject gets one residual per parameter; there is no subject effect.

    Args:
        n_subjects: Total number of subjects.
        seed: Random seed, used only when ``rng`` is not given.
        allocation: Allocation ratio keyed by treatment.
        rng: Generator to draw from.

    Returns:
        Simulated data sorted by Parameter, Subject.
    """
    rng = resolve_rng(rng, seed)
    allocation = dict(allocation or {"R": 1, "T": 1})

    block = np.repeat(list(allocation.keys()), list(allocation.values()))
    treatments = rng.permutation(np.resize(block, n_subjects))

    design = pd.DataFrame({
        "Subject": np.arange(1, n_subjects + 1),
        "Treatment": treatments.astype(str),
    })
    log_params = mean_table().merge(parallel_sd_table(), on="Parameter", how="left")

    sim = (
        design.merge(pd.DataFrame({"Parameter": parameter_levels()}), how="cross")
        .merge(log_params, on=["Treatment", "Parameter"], how="left")
    )
    sim["residual"] = rng.normal(0.0, sim["sd"].to_numpy())
    sim["logPK"] = sim["mu"] + sim["residual"]
    sim["PK"] = np.exp(sim["logPK"])

    sim = sim.loc[:, list(PARALLEL_COLUMNS)]
    sim = sim.sort_values(["Parameter", "Subject"], kind="mergesort").reset_index(drop=True)

    logger.debug(
        "Simulated parallel design",
        n_subjects=n_subjects,
        allocation={k: int((treatments == k).sum()) for k in allocation},
    )
    return apply_categories(sim, C.REFERENCE_TREATMENT)
