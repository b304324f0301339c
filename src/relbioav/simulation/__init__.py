"""Simulation of Phase 1 PK bioavailability datasets."""

from __future__ import annotations
from typing import Optional, Union

import numpy as np
import pandas as pd

from ..contracts.types import Design, SimulatedStudy
from .crossover import simulate_crossover
from .fixed_sequence import simulate_fixed_sequence
from .parallel import simulate_parallel
from .imbalance import make_unbalanced
from .io import save_dataset, load_dataset
from .reference import mean_table, variance_components, parallel_sd_table, parameter_levels
from .schema import apply_categories, require_columns, select_parameter


def simulate_study(config, rng: Optional[np.random.Generator] = None) -> Union[SimulatedStudy, pd.DataFrame]:
    """Run the simulator selected by ``config.design``.

    Args:
        config: SimulationConfig.
        rng: Generator to draw from; defaults to one seeded with ``config.seed``.

    Returns:
        SimulatedStudy for period designs, a DataFrame for parallel designs.
    """
    design = Design.parse(config.design)
    if design is Design.CROSSOVER:
        return simulate_crossover(
            n_subjects=config.n_subjects,
            seed=config.seed,
            drop_subjects=config.drop_subjects,
            drop_period=config.drop_period,
            sequences=config.sequences,
            rng=rng,
        )
    if design is Design.FIXED_SEQUENCE:
        return simulate_fixed_sequence(
            n_subjects=config.n_subjects,
            seed=config.seed,
            sequence=config.sequence,
            drop_subjects=config.drop_subjects,
            drop_period=config.drop_period,
            rng=rng,
        )
    return simulate_parallel(
        n_subjects=config.n_subjects,
        seed=config.seed,
        allocation=config.allocation,
        rng=rng,
    )


__all__ = [
    "simulate_study",
    "simulate_crossover",
    "simulate_fixed_sequence",
    "simulate_parallel",
    "make_unbalanced",
    "save_dataset",
    "load_dataset",
    "mean_table",
    "variance_components",
    "parallel_sd_table",
    "parameter_levels",
    "apply_categories",
    "require_columns",
    "select_parameter",
]
