"""Rendering of the final table as a rich console table."""

from __future__ import annotations
from typing import Union

import pandas as pd
from rich.table import Table

from ..contracts.types import DatasetType, Design, ModelType
from ..models.registry import get_model_spec
from ..simulation.schema import require_columns
from ..config import constants as C

TABLE_TITLE = "Adjusted geometric means and relative bioavailability of treatment (T) vs reference (R)"
PLOT_TITLE = "Relative bioavailability of treatment (T) vs reference (R)"
INTRA_GCV_NOTE = "intra-individual gCV"
POOLED_GCV_NOTE = "calculated from pooled variance"
N_NOTE = "n = number of observations included in the analysis of each treatment"

COLUMN_LABELS = {
    "n": "n",
    "adj_gmean": "Adjusted gMean",
    "adj_gse": "Adjusted gSE",
    "ratio": "Ratio (T/R, %)",
    "gse": "gSE",
    "lower": "Lower (%)",
    "upper": "Upper (%)",
    "gCV": "gCV (%)²",
}


def subject_suffix(model_type: Union[str, ModelType], dataset_type: Union[str, DatasetType]) -> str:
    """'with subject as ... - ... dataset' qualifier of titles for period designs."""
    model_type = ModelType.parse(model_type)
    dataset_type = DatasetType.parse(dataset_type)
    subject = "random effect" if model_type is ModelType.MIXED else "fixed effect"
    return f"with subject as {subject} - {dataset_type.value} dataset"


def table_title(design: Union[str, Design], model_type: Union[str, ModelType],
                dataset_type: Union[str, DatasetType]) -> str:
    design = Design.parse(design)
    if design is Design.PARALLEL:
        return TABLE_TITLE
    return f"{TABLE_TITLE} {subject_suffix(model_type, dataset_type)}"


def gcv_note(design: Union[str, Design]) -> str:
    return POOLED_GCV_NOTE if Design.parse(design) is Design.PARALLEL else INTRA_GCV_NOTE


def render_table(final_table: pd.DataFrame, design: Union[str, Design],
                 model_type: Union[str, ModelType],
                 dataset_type: Union[str, DatasetType] = DatasetType.BALANCED) -> Table:
    """Build a rich Table grouped by endpoint group, one section per group.

    Raises:
        InvalidArgumentError: For unknown design, model type or dataset type,
            or the parallel design with a mixed model.
    """
    get_model_spec(design, model_type)
    require_columns(final_table, C.FINAL_TABLE_COLUMNS, context="final table")

    table = Table(
        title=table_title(design, model_type, dataset_type),
        caption=f"¹ {N_NOTE}\n² {gcv_note(design)}",
        caption_justify="left",
    )
    table.add_column("Treatment")
    for col, label in COLUMN_LABELS.items():
        table.add_column(label + ("¹" if col == "n" else ""), justify="right")

    current_group = None
    for row in final_table.itertuples(index=False):
        if row.Group != current_group:
            if current_group is not None:
                table.add_section()
            table.add_row(f"[bold]{row.Group}[/bold]")
            current_group = row.Group
        is_header = row.Treatment == row.Parameter
        label = f"[italic]{row.Treatment}[/italic]" if is_header else f"  {row.Treatment}"
        table.add_row(label, *(str(getattr(row, col)) for col in COLUMN_LABELS))
    return table
