"""Forest plot of T/R ratios with confidence intervals."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import pandas as pd

try:
    import matplotlib.pyplot as plt
    from matplotlib.figure import Figure
    import seaborn as sns
    HAS_PLOTTING = True
except ImportError:
    plt = None
    Figure = None
    HAS_PLOTTING = False

from ..config import constants as C
from ..contracts.errors import ReportingError
from ..contracts.types import DatasetType, Design, ModelType
from ..models.registry import get_model_spec
from .reporting import PLOT_TITLE, subject_suffix
from .tables import forest_data


@dataclass
class ForestPlotConfig:
    """Styling of the forest plot."""
    figsize: Tuple[float, float] = (8, 6)
    color: str = "blue"
    marker_size: float = 7.0
    line_width: float = 1.5
    style: str = "whitegrid"


def plot_title(design: Union[str, Design], model_type: Union[str, ModelType],
               dataset_type: Union[str, DatasetType]) -> str:
    if Design.parse(design) is Design.PARALLEL:
        return PLOT_TITLE
    return f"{PLOT_TITLE}\n{subject_suffix(model_type, dataset_type)}"


def make_forest_plot(
    final_table: pd.DataFrame,
    design: Union[str, Design],
    model_type: Union[str, ModelType],
    dataset_type: Union[str, DatasetType] = DatasetType.BALANCED,
    x_limits: Tuple[float, float] = C.FOREST_X_LIMITS,
    ref_lines: Sequence[float] = C.FOREST_REF_LINES,
    config: Optional[ForestPlotConfig] = None,
) -> "Figure":
    """One facet per endpoint group with ratio points and horizontal CI bars.

    Parameters are ordered Cmax, AUC0_tz, AUCINF_pred from the top; a dashed
    line marks 100 % and solid lines mark the other reference values.

    Raises:
        ReportingError: If matplotlib/seaborn are missing or no row carries a CI.
    """
    if not HAS_PLOTTING:
        raise ReportingError("Matplotlib and seaborn are required for the forest plot")
    get_model_spec(design, model_type)
    config = config or ForestPlotConfig()

    data = forest_data(final_table)
    if data.empty:
        raise ReportingError("Final table has no ratio with confidence limits to plot")

    order = [p for p in C.FOREST_PARAMETER_ORDER if p in set(data["Parameter"])]
    order += sorted(set(data["Parameter"]) - set(order))
    data["Parameter"] = pd.Categorical(data["Parameter"], categories=order)
    data = data.sort_values("Parameter")
    groups = list(dict.fromkeys(data["Group"]))

    sns.set_theme(style=config.style)
    fig, axes = plt.subplots(len(groups), 1, figsize=config.figsize, sharex=True, squeeze=False)

    for ax, group in zip(axes[:, 0], groups):
        block = data.loc[data["Group"] == group]
        labels = [p for p in order if p in set(block["Parameter"])]
        y = [labels.index(p) for p in block["Parameter"]]

        ax.errorbar(
            block["ratio"], y,
            xerr=[block["ratio"] - block["lower"], block["upper"] - block["ratio"]],
            fmt="o", color=config.color, markersize=config.marker_size,
            elinewidth=config.line_width, capsize=4,
        )
        for ref in ref_lines:
            ax.axvline(ref, color="black", linewidth=1, linestyle="--" if ref == 100 else "-")

        ax.set_yticks(range(len(labels)))
        ax.set_yticklabels(labels)
        ax.set_ylim(-0.5, len(labels) - 0.5)
        ax.invert_yaxis()
        ax.set_title(group)
        ax.set_ylabel("PK parameter")

    axes[-1, 0].set_xlim(*x_limits)
    axes[-1, 0].set_xlabel("gMean ratio (T/R, %)")
    fig.suptitle(plot_title(design, model_type, dataset_type), fontweight="bold")
    fig.tight_layout()
    return fig
