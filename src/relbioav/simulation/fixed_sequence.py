"""Simulation of a fixed-sequence study."""

from __future__ import annotations
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from ..config import constants as C
from ..contracts.types import Design, SimulatedStudy
from .base import resolve_rng, simulate_period_design
from .imbalance import make_unbalanced


def simulate_fixed_sequence(
    n_subjects: int = C.DEFAULT_N_SUBJECTS_PERIOD,
    seed: int = C.DEFAULT_SEED,
    sequence: Sequence[str] = C.DEFAULT_FIXED_SEQUENCE,
    drop_subjects: Iterable[int] = C.DEFAULT_DROP_SUBJECTS,
    drop_period: int = C.DEFAULT_DROP_PERIOD,
    rng: Optional[np.random.Generator] = None,
) -> SimulatedStudy:
    """Simulate log-PK data where every subject receives ``sequence`` in order.

    Args:
        n_subjects: Number of subjects.
        seed: Random seed, used only when ``rng`` is not given.
        sequence: Treatment order, e.g. ``("R", "T")``.
        drop_subjects: Subjects removed from ``drop_period`` in the unbalanced dataset.
        drop_period: Period removed for ``drop_subjects``.
        rng: Generator to draw from.

    Returns:
        SimulatedStudy with balanced and unbalanced datasets.
    """
    rng = resolve_rng(rng, seed)
    label = "".join(sequence)

    design = pd.DataFrame(
        [
            (subject, label, period, treatment)
            for subject in range(1, n_subjects + 1)
            for period, treatment in enumerate(sequence, start=1)
        ],
        columns=["Subject", "Sequence", "Period", "Treatment"],
    )

    balanced = simulate_period_design(design, rng)
    unbalanced = make_unbalanced(balanced, drop_subjects, drop_period)
    return SimulatedStudy(balanced=balanced, unbalanced=unbalanced, design=Design.FIXED_SEQUENCE)
