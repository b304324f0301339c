"""Dataset persistence as parquet (typed) and CSV (for inspection)."""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Union

import pandas as pd
import structlog

from ..config import constants as C
from ..contracts.errors import DataShapeError
from .schema import apply_categories

logger = structlog.get_logger()


def save_dataset(data: pd.DataFrame, stem: Union[str, Path]) -> Dict[str, Path]:
    """Write ``data`` to ``<stem>.parquet`` and ``<stem>.csv``.

    The parquet file keeps categorical columns and full float precision;
    the CSV file is plain text for human inspection.

    Returns:
        Mapping of format name to written path.
    """
    stem = Path(stem)
    stem.parent.mkdir(parents=True, exist_ok=True)

    paths = {
        "parquet": stem.parent / f"{stem.name}.parquet",
        "csv": stem.parent / f"{stem.name}.csv",
    }
    data.to_parquet(paths["parquet"], index=False)
    data.to_csv(paths["csv"], index=False)

    logger.info("Dataset saved", rows=len(data), **{k: str(v) for k, v in paths.items()})
    return paths


def load_dataset(path: Union[str, Path], reference: str = C.REFERENCE_TREATMENT) -> pd.DataFrame:
    """Read a dataset written by :func:`save_dataset` and restore factor typing.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        DataShapeError: If the suffix is unsupported or required columns are missing.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".parquet":
        data = pd.read_parquet(path)
    elif suffix == ".csv":
        data = pd.read_csv(path)
    else:
        raise DataShapeError(f"Unsupported dataset format: {path.suffix}", {"path": str(path)})

    return apply_categories(data, reference)
