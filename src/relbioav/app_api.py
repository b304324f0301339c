"""Main API facade for the relbioav package.

This module provides the interface used by the CLI and by scripts. All
high-level operations (simulate, analyze, full run) flow through these
functions.
"""

from __future__ import annotations
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Union

import matplotlib.pyplot as plt
import pandas as pd
import structlog

from .config import AppConfig, default_config, load_config, validate_config
from .contracts import (
    AnalysisResult,
    DatasetType,
    Design,
    ModelType,
    RelBioavError,
    RunResult,
    SimulatedStudy,
)
from .engine import RunContext
from .models import get_model_spec, list_model_specs, run_models
from .services import bioequivalence_conclusion, build_final_table, make_forest_plot
from .simulation import load_dataset, save_dataset, simulate_study

logger = structlog.get_logger()


def get_default_config() -> AppConfig:
    """Get default configuration.

    Returns:
        Default configuration (crossover, fixed model, balanced dataset)
    """
    return default_config()


def load_config_from_file(path: Union[str, Path]) -> AppConfig:
    """Load and validate configuration from file.

    Raises:
        ConfigError: If configuration cannot be loaded or is invalid
    """
    config = load_config(path)
    validate_config(config)
    return config


def validate_configuration(config: AppConfig) -> None:
    """Validate configuration for common issues.

    Raises:
        ValidationError: If configuration has errors
    """
    validate_config(config)


def list_models() -> List[Dict[str, str]]:
    """Describe every available (design, model type) combination."""
    return [
        {
            "design": spec.design.value,
            "model_type": spec.model_type.value,
            "formula": spec.formula,
            "description": spec.description,
        }
        for spec in list_model_specs()
    ]


def simulate(config: AppConfig, rng=None) -> Dict[str, pd.DataFrame]:
    """Simulate datasets for the configured design.

    Returns:
        Mapping of dataset type ("balanced", "unbalanced") to DataFrame; the
        parallel design yields only "balanced".
    """
    study = simulate_study(config.simulation, rng=rng)
    if isinstance(study, SimulatedStudy):
        return {
            DatasetType.BALANCED.value: study.balanced,
            DatasetType.UNBALANCED.value: study.unbalanced,
        }
    return {DatasetType.BALANCED.value: study}


def save_datasets(datasets: Dict[str, pd.DataFrame], output_dir: Union[str, Path],
                  design: Union[str, Design]) -> Dict[str, str]:
    """Write each dataset as parquet and CSV under ``output_dir``.

    Files are named ``<design>_<dataset type>.parquet`` / ``.csv``.
    """
    design = Design.parse(design)
    written: Dict[str, str] = {}
    for name, data in datasets.items():
        paths = save_dataset(data, Path(output_dir) / f"{design.value}_{name}")
        written.update({f"{name}_{fmt}": str(p) for fmt, p in paths.items()})
    return written


def load_data(path: Union[str, Path], reference: str = "R") -> pd.DataFrame:
    """Read a dataset written by :func:`save_datasets`."""
    return load_dataset(path, reference)


def analyze(
    data: pd.DataFrame,
    design: Union[str, Design],
    model_type: Union[str, ModelType],
    dataset_type: Union[str, DatasetType] = DatasetType.BALANCED,
    config: Optional[AppConfig] = None,
) -> AnalysisResult:
    """Fit every parameter, back-transform and assemble the final table.

    Args:
        data: Analysis dataset.
        design: Study design.
        model_type: "fixed" or "mixed".
        dataset_type: Label used in titles only.
        config: Supplies confidence level, reference, endpoint map, BE limits
            and the collect-failures switch; defaults when omitted.

    Raises:
        InvalidArgumentError: Unknown selections or parallel + mixed.
        DataShapeError: Dataset does not fit the design.
        FittingError: A parameter could not be fitted (unless failures are collected).
    """
    config = config or default_config()
    spec = get_model_spec(design, model_type)
    dataset_type = DatasetType.parse(dataset_type)
    analysis = config.analysis

    failures = {} if analysis.collect_failures else None
    models = run_models(
        data, spec.design, spec.model_type,
        level=analysis.confidence_level,
        reference=analysis.reference,
        failures=failures,
    )

    endpoints = [(p, g) for p, g in analysis.endpoint_pairs() if p in models]
    final_table = build_final_table(models, data, endpoints)
    conclusion = bioequivalence_conclusion(final_table, tuple(config.report.be_limits))

    logger.info(
        "Analysis completed",
        design=spec.design.value,
        model_type=spec.model_type.value,
        dataset_type=dataset_type.value,
        parameters=list(models),
        failed=sorted(failures or {}),
    )
    return AnalysisResult(
        models=models,
        final_table=final_table,
        conclusion=conclusion,
        design=spec.design,
        model_type=spec.model_type,
        dataset_type=dataset_type,
        failures=dict(failures or {}),
    )


def save_forest_plot(result: AnalysisResult, path: Union[str, Path],
                     config: Optional[AppConfig] = None) -> Path:
    """Draw the forest plot for ``result`` and write it to ``path``."""
    config = config or default_config()
    fig = make_forest_plot(
        result.final_table, result.design, result.model_type, result.dataset_type,
        x_limits=tuple(config.report.x_limits),
        ref_lines=config.report.ref_lines,
    )
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)
    logger.info("Forest plot saved", path=str(path))
    return path


def run_pipeline(config: AppConfig, run_id: Optional[str] = None,
                 artifact_directory: Optional[Union[str, Path]] = None) -> RunResult:
    """Simulate, analyze and write artifacts for one configuration.

    Artifacts (datasets, final table CSV, forest plot) go to
    ``<artifact_dir>/<run_id>/``.

    Raises:
        ValidationError: If configuration is invalid
        RelBioavError: If any stage fails
    """
    validate_config(config)
    if run_id is None:
        run_id = config.run.run_id or f"run_{uuid.uuid4().hex[:8]}"
    artifact_dir = Path(artifact_directory or config.run.artifact_dir)

    context = RunContext.from_config(config, run_id, artifact_dir)
    context.start_run()

    design = config.simulation.design
    model_type = config.analysis.model_type
    dataset_type = config.analysis.dataset_type
    artifacts: Dict[str, str] = {}

    try:
        with context.time_stage("simulate"):
            datasets = simulate(config, rng=context.rng)
            artifacts.update(save_datasets(datasets, context.artifact_path("data"), design))

        with context.time_stage("analyze"):
            result = analyze(datasets[dataset_type.value], design, model_type, dataset_type, config)

        with context.time_stage("report"):
            table_path = context.artifact_path("final_table.csv")
            result.final_table.to_csv(table_path, index=False)
            artifacts["final_table"] = str(table_path)
            if config.report.forest_plot:
                plot_path = context.artifact_path(f"forest_plot.{config.report.plot_format}")
                artifacts["forest_plot"] = str(save_forest_plot(result, plot_path, config))
    except RelBioavError as e:
        context.logger.error("Pipeline failed", error=e.message, details=e.details)
        raise

    runtime = context.end_run()
    metadata = context.metadata()
    metadata["status"] = "completed"

    return RunResult(
        run_id=run_id,
        config=config.model_dump(mode="json"),
        analysis=result,
        artifacts=artifacts,
        runtime_seconds=runtime,
        metadata=metadata,
    )
