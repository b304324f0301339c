"""Back-transformation, table assembly and reporting of model results."""

from .back_transform import back_transform, geometric_cv
from .bioequivalence import bioequivalence_conclusion
from .reporting import render_table, table_title, gcv_note
from .tables import build_final_table, forest_data, prepare_table, subject_counts
from .visualization import ForestPlotConfig, make_forest_plot, plot_title

__all__ = [
    "back_transform",
    "geometric_cv",
    "prepare_table",
    "build_final_table",
    "subject_counts",
    "forest_data",
    "render_table",
    "table_title",
    "gcv_note",
    "make_forest_plot",
    "plot_title",
    "ForestPlotConfig",
    "bioequivalence_conclusion",
]
