"""Removal of observations to derive an unbalanced dataset."""

from __future__ import annotations
from typing import Iterable, Union

import pandas as pd
import structlog

from .schema import label_key, require_columns

logger = structlog.get_logger()


def make_unbalanced(data: pd.DataFrame, drop_subjects: Iterable[Union[int, str]], drop_period: Union[int, str]) -> pd.DataFrame:
    """Drop every row with Subject in ``drop_subjects`` and Period == ``drop_period``.

    Labels are matched as given, so both numeric IDs and IDs such as "S05"
    work. All other rows are returned unchanged and in their original order.

    Raises:
        DataShapeError: If the dataset has no Subject or Period column.
    """
    require_columns(data, ("Subject", "Period"), context="dataset to unbalance")
    drop = {label_key(s) for s in drop_subjects}
    period_key = label_key(drop_period)

    subject = data["Subject"].astype(object).map(label_key)
    period = data["Period"].astype(object).map(label_key)
    mask = subject.isin(drop) & (period == period_key)

    if drop and not mask.any():
        logger.warning(
            "No observations match the subjects/period to drop",
            drop_subjects=sorted(map(str, drop)),
            drop_period=period_key,
        )

    logger.info(
        "Removed observations",
        drop_subjects=sorted(map(str, drop)),
        drop_period=period_key,
        n_removed=int(mask.sum()),
    )
    return data.loc[~mask].reset_index(drop=True)
