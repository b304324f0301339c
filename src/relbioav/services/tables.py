"""Assembly of the endpoint-grouped results table."""

from __future__ import annotations
from typing import Mapping, Sequence, Tuple, Union

import pandas as pd

from ..config import constants as C
from ..contracts.errors import DataShapeError
from ..contracts.types import ModelResult
from ..simulation.schema import require_columns
from .back_transform import back_transform

EndpointMap = Union[Sequence[Tuple[str, str]], Mapping[str, str]]


def _fmt(value: float, decimals: int = C.MEAN_DECIMALS) -> str:
    return f"{value:.{decimals}f}"


def subject_counts(data: pd.DataFrame, parameter: str) -> pd.Series:
    """Distinct subjects per treatment for one parameter."""
    require_columns(data, ("Subject", "Treatment", "Parameter"))
    subset = data.loc[data["Parameter"].astype(str) == parameter]
    return subset.groupby(subset["Treatment"].astype(str))["Subject"].nunique()


def prepare_table(result: ModelResult, data: pd.DataFrame, parameter: str,
                  group: str) -> pd.DataFrame:
    """Formatted block for one parameter: a header row then one row per treatment.

    Only the first treatment row carries ratio, gse, CI limits and gCV;
    every other cell in those columns is an empty string.
    """
    bt = back_transform(result)
    counts = subject_counts(data, parameter)
    contrast = bt.ratio.iloc[0]

    rows = [{
        "Parameter": parameter,
        "Treatment": parameter,
        "Group": group,
        "n": "", "adj_gmean": "", "adj_gse": "",
        "ratio": "", "gse": "", "lower": "", "upper": "", "gCV": "",
    }]
    for i, adj in enumerate(bt.adjusted.itertuples(index=False)):
        treatment = str(adj.Treatment)
        first = i == 0
        rows.append({
            "Parameter": parameter,
            "Treatment": treatment,
            "Group": group,
            "n": str(int(counts.get(treatment, 0))),
            "adj_gmean": _fmt(adj.adj_gmean),
            "adj_gse": _fmt(adj.adj_gse),
            "ratio": _fmt(contrast["ratio"] * 100) if first else "",
            "gse": _fmt(contrast["gse"]) if first else "",
            "lower": _fmt(contrast["lower"] * 100) if first else "",
            "upper": _fmt(contrast["upper"] * 100) if first else "",
            "gCV": _fmt(bt.gcv * 100, C.GCV_DECIMALS) if first else "",
        })
    return pd.DataFrame(rows, columns=list(C.FINAL_TABLE_COLUMNS))


def _endpoint_pairs(endpoint_map: EndpointMap):
    if isinstance(endpoint_map, Mapping):
        return list(endpoint_map.items())
    return [(str(p), str(g)) for p, g in endpoint_map]


def build_final_table(models: Mapping[str, ModelResult], data: pd.DataFrame,
                      endpoint_map: EndpointMap = C.DEFAULT_ENDPOINT_MAP) -> pd.DataFrame:
    """Concatenate parameter blocks in endpoint-map order.

    Args:
        models: Model results keyed by parameter.
        data: Dataset the models were fitted to (for subject counts).
        endpoint_map: (parameter, group) pairs or a parameter -> group mapping.

    Raises:
        DataShapeError: If a mapped parameter has no model result.
    """
    pairs = _endpoint_pairs(endpoint_map)
    missing = [p for p, _ in pairs if p not in models]
    if missing:
        raise DataShapeError(
            f"No model results for parameters: {', '.join(missing)}",
            {"missing": missing, "available": list(models)},
        )

    blocks = [prepare_table(models[p], data, p, g) for p, g in pairs]
    if not blocks:
        return pd.DataFrame(columns=list(C.FINAL_TABLE_COLUMNS))
    return pd.concat(blocks, ignore_index=True)


def forest_data(final_table: pd.DataFrame) -> pd.DataFrame:
    """Numeric ratio and CI per parameter from the rows that carry them."""
    require_columns(final_table, ("Parameter", "Group", "ratio", "lower", "upper"), context="final table")
    rows = final_table.loc[(final_table["lower"] != "") & (final_table["upper"] != "")]
    out = rows.loc[:, ["Parameter", "Group", "ratio", "lower", "upper"]].copy()
    for col in ("ratio", "lower", "upper"):
        out[col] = out[col].astype(float)
    return out.reset_index(drop=True)
