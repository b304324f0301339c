"""Main CLI application."""

from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console
from rich.table import Table

from .. import app_api
from ..contracts.errors import RelBioavError
from ..services import render_table

app = typer.Typer(
    name="relbioav",
    help="Relative bioavailability - simulate and analyze Phase 1 PK studies",
    no_args_is_help=True
)
console = Console()


@app.callback()
def main(
    json_logs: bool = typer.Option(
        False, "--json-logs", help="Emit structured JSON log lines"
    ),
):
    """Relative bioavailability: simulate Phase 1 PK datasets and report T/R ratios."""
    if json_logs:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="ISO"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.make_filtering_bound_logger(20),  # INFO level
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=False,
        )


def _print_error(e: RelBioavError) -> None:
    console.print(f"❌ {e.message}", style="red")
    if e.details:
        console.print(f"Details: {e.details}")


@app.command()
def simulate(
    design: str = typer.Option("crossover", "--design", "-d", help="crossover, fixed_sequence or parallel"),
    n_subjects: Optional[int] = typer.Option(None, "--n-subjects", "-n", help="Number of subjects"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
    output_dir: Path = typer.Option(Path("data"), "--output", "-o", help="Output directory"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Simulate balanced (and unbalanced) datasets and write parquet + CSV files."""

    try:
        cfg = app_api.load_config_from_file(config) if config else app_api.get_default_config()

        updates = {"design": design}
        if n_subjects is not None:
            updates["n_subjects"] = n_subjects
        elif design.strip().lower() == "parallel" and config is None:
            updates["n_subjects"] = 80
        if seed is not None:
            updates["seed"] = seed
        cfg.simulation = cfg.simulation.model_validate({**cfg.simulation.model_dump(), **updates})

        datasets = app_api.simulate(cfg)
        written = app_api.save_datasets(datasets, output_dir, cfg.simulation.design)

        for name, data in datasets.items():
            console.print(f"✓ {name}: {len(data)} rows")
        for path in written.values():
            console.print(f"  {path}")

    except RelBioavError as e:
        _print_error(e)
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"❌ Invalid option: {e}", style="red")
        raise typer.Exit(1)


@app.command()
def analyze(
    data: Path = typer.Argument(..., help="Dataset file (.parquet or .csv)"),
    design: str = typer.Option(..., "--design", "-d", help="crossover, fixed_sequence or parallel"),
    model_type: str = typer.Option("fixed", "--model-type", "-m", help="fixed or mixed"),
    dataset_type: str = typer.Option("balanced", "--dataset-type", "-t", help="balanced or unbalanced"),
    plot: Optional[Path] = typer.Option(None, "--plot", "-p", help="Write forest plot to this file"),
    table_out: Optional[Path] = typer.Option(None, "--table", help="Write final table as CSV"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Fit, back-transform and print the results table for a dataset."""

    try:
        cfg = app_api.load_config_from_file(config) if config else app_api.get_default_config()
        frame = app_api.load_data(data, cfg.analysis.reference)

        with console.status("Fitting models..."):
            result = app_api.analyze(frame, design, model_type, dataset_type, cfg)

        console.print(render_table(result.final_table, result.design, result.model_type, result.dataset_type))
        for parameter, error in result.failures.items():
            console.print(f"⚠ {parameter}: {error.message}", style="yellow")

        if table_out:
            table_out.parent.mkdir(parents=True, exist_ok=True)
            result.final_table.to_csv(table_out, index=False)
            console.print(f"✓ Table written to {table_out}")
        if plot:
            app_api.save_forest_plot(result, plot, cfg)
            console.print(f"✓ Forest plot written to {plot}")

    except FileNotFoundError as e:
        console.print(f"❌ {e}", style="red")
        raise typer.Exit(1)
    except RelBioavError as e:
        _print_error(e)
        raise typer.Exit(1)


@app.command()
def run(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    run_id: Optional[str] = typer.Option(
        None, "--run-id", help="Custom run identifier"
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output directory for artifacts"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Validate configuration without running"
    ),
):
    """Run the full pipeline: simulate, fit, tabulate and plot."""

    try:
        if config:
            cfg = app_api.load_config_from_file(config)
            console.print(f"✓ Loaded configuration from {config}")
        else:
            cfg = app_api.get_default_config()
            console.print("✓ Using default configuration")

        app_api.validate_configuration(cfg)
        console.print("✓ Configuration validated")

        if dry_run:
            console.print("✓ Dry run completed successfully", style="green")
            return

        with console.status("Running pipeline..."):
            result = app_api.run_pipeline(cfg, run_id=run_id, artifact_directory=output_dir)

        analysis = result.analysis
        console.print(f"✅ Run completed: {result.run_id}", style="green")
        console.print(f"Runtime: {result.runtime_seconds:.2f}s")
        console.print(render_table(analysis.final_table, analysis.design, analysis.model_type, analysis.dataset_type))

        table = Table(title="Bioequivalence (90% CI within limits)")
        table.add_column("Parameter")
        table.add_column("Ratio (%)")
        table.add_column("90% CI (%)")
        table.add_column("Conclusion")
        for row in analysis.conclusion.itertuples(index=False):
            table.add_row(
                row.Parameter,
                f"{row.ratio:.2f}",
                f"{row.lower:.2f} - {row.upper:.2f}",
                "✓" if row.bioequivalent else "✗",
            )
        console.print(table)

        for name, path in result.artifacts.items():
            console.print(f"  {name}: {path}")

    except RelBioavError as e:
        _print_error(e)
        raise typer.Exit(1)


@app.command()
def validate(
    config: Path = typer.Argument(..., help="Configuration file to validate")
):
    """Validate a configuration file."""

    try:
        cfg = app_api.load_config_from_file(config)
        app_api.validate_configuration(cfg)
        console.print(f"✅ Configuration {config} is valid", style="green")

    except RelBioavError as e:
        console.print(f"❌ {e.message}", style="red")
        raise typer.Exit(1)


@app.command()
def info():
    """Display package information and available models."""

    from .. import __version__

    console.print(f"relbioav v{__version__}")
    console.print()

    table = Table(title="Model forms")
    table.add_column("Design")
    table.add_column("Subject")
    table.add_column("Model")
    for model in app_api.list_models():
        table.add_row(model["design"], model["model_type"], model["formula"])
    console.print(table)


if __name__ == "__main__":
    app()
