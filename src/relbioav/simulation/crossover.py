"""Simulation of a 2x2 crossover study."""

from __future__ import annotations
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from ..config import constants as C
from ..contracts.types import Design, SimulatedStudy
from .base import resolve_rng, simulate_period_design
from .imbalance import make_unbalanced


def simulate_crossover(
    n_subjects: int = C.DEFAULT_N_SUBJECTS_PERIOD,
    seed: int = C.DEFAULT_SEED,
    drop_subjects: Iterable[int] = C.DEFAULT_DROP_SUBJECTS,
    drop_period: int = C.DEFAULT_DROP_PERIOD,
    sequences: Sequence[str] = C.DEFAULT_CROSSOVER_SEQUENCES,
    rng: Optional[np.random.Generator] = None,
) -> SimulatedStudy:
    """Simulate log-PK data for a crossover study.

    Subjects are block-randomised to the sequences by permuting a vector of
    repeated sequence labels, so the sequences are as balanced as
    ``n_subjects`` allows. Each character of a sequence label is the
    treatment given in that period.

    Args:
        n_subjects: Number of subjects.
        seed: Random seed, used only when ``rng`` is not given.
        drop_subjects: Subjects removed from ``drop_period`` in the unbalanced dataset.
        drop_period: Period removed for ``drop_subjects``.
        sequences: Sequence labels, e.g. ``("TR", "RT")``.
        rng: Generator to draw from.

    Returns:
        SimulatedStudy with balanced and unbalanced datasets.
    """
    rng = resolve_rng(rng, seed)

    subjects = np.arange(1, n_subjects + 1)
    assigned = rng.permutation(np.resize(np.asarray(list(sequences)), n_subjects))

    design = pd.DataFrame(
        [
            (int(subject), str(seq), period, treatment)
            for subject, seq in zip(subjects, assigned)
            for period, treatment in enumerate(seq, start=1)
        ],
        columns=["Subject", "Sequence", "Period", "Treatment"],
    )

    balanced = simulate_period_design(design, rng)
    unbalanced = make_unbalanced(balanced, drop_subjects, drop_period)
    return SimulatedStudy(balanced=balanced, unbalanced=unbalanced, design=Design.CROSSOVER)
