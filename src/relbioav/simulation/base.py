"""Shared generative model for designs with repeated periods."""

from __future__ import annotations
from typing import Optional

import numpy as np
import pandas as pd
import structlog

from ..config import constants as C
from .reference import mean_table, parameter_levels, variance_components
from .schema import PERIOD_COLUMNS, apply_categories

logger = structlog.get_logger()


def resolve_rng(rng: Optional[np.random.Generator], seed: int) -> np.random.Generator:
    """Use the caller's generator, or create one from ``seed``."""
    if rng is not None:
        return rng
    return np.random.default_rng(seed)


def simulate_period_design(design: pd.DataFrame, rng: np.random.Generator) -> pd.DataFrame:
    """Overlay log-normal PK values on a (Subject, Sequence, Period, Treatment) design.

    One subject random effect is drawn per (Subject, Parameter) and shared by
    all periods of that subject; one residual is drawn per
    (Subject, Period, Parameter).

    Args:
        design: One row per subject and period with integer Subject and Period.
        rng: Generator for all random draws.

    Returns:
        Simulated data sorted by Parameter, Subject, Period.
    """
    params = parameter_levels()
    var = variance_components()
    log_params = mean_table().merge(var, on="Parameter", how="left")

    subjects = design["Subject"].drop_duplicates().sort_values()
    effects = pd.MultiIndex.from_product(
        [subjects, params], names=["Subject", "Parameter"]
    ).to_frame(index=False)
    effects = effects.merge(var, on="Parameter", how="left")
    effects["subject_re"] = rng.normal(0.0, effects["between_sd"].to_numpy())

    sim = (
        design.sort_values(["Subject", "Period"], kind="mergesort")
        .merge(pd.DataFrame({"Parameter": params}), how="cross")
        .merge(log_params, on=["Treatment", "Parameter"], how="left")
        .merge(effects[["Subject", "Parameter", "subject_re"]], on=["Subject", "Parameter"], how="left")
    )
    sim["residual"] = rng.normal(0.0, sim["within_sd"].to_numpy())
    sim["logPK"] = sim["mu"] + sim["subject_re"] + sim["residual"]
    sim["PK"] = np.exp(sim["logPK"])

    sim = sim.loc[:, list(PERIOD_COLUMNS)]
    sim = sim.sort_values(["Parameter", "Subject", "Period"], kind="mergesort").reset_index(drop=True)

    logger.debug(
        "Simulated period design",
        n_subjects=len(subjects),
        n_rows=len(sim),
    )
    return apply_categories(sim, C.REFERENCE_TREATMENT)
