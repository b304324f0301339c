"""End-to-end tests of the facade: simulate, analyze, report."""

import pandas as pd
import pytest

from relbioav import app_api
from relbioav.config import AppConfig
from relbioav.contracts import DataShapeError, InvalidArgumentError, ValidationError


class TestAnalyze:
    """Test analysis of simulated datasets."""

    @pytest.mark.parametrize("design, model_type", [
        ("crossover", "fixed"),
        ("crossover", "mixed"),
        ("fixed_sequence", "fixed"),
        ("fixed_sequence", "mixed"),
    ])
    @pytest.mark.parametrize("dataset_type", ["balanced", "unbalanced"])
    def test_period_designs(self, design, model_type, dataset_type):
        config = AppConfig(simulation={"design": design})
        datasets = app_api.simulate(config)

        result = app_api.analyze(datasets[dataset_type], design, model_type, dataset_type)

        assert list(result.models) == ["AUC0_tz", "AUCINF_pred", "Cmax"]
        assert len(result.final_table) == 9
        assert list(result.conclusion["Parameter"]) == ["AUC0_tz", "Cmax", "AUCINF_pred"]
        assert result.failures == {}

        counts = result.final_table.loc[result.final_table["Treatment"].isin(["R", "T"])]
        if dataset_type == "balanced":
            assert set(counts["n"]) == {"16"}
        elif design == "fixed_sequence":
            # Subjects 5 and 6 lose their period-2 (T) observation
            assert set(counts.loc[counts["Treatment"] == "T", "n"]) == {"14"}
            assert set(counts.loc[counts["Treatment"] == "R", "n"]) == {"16"}
        else:
            assert counts["n"].astype(int).sum() == 3 * 30

    def test_parallel(self):
        config = AppConfig(simulation={"design": "parallel", "n_subjects": 80})
        datasets = app_api.simulate(config)
        assert list(datasets) == ["balanced"]

        result = app_api.analyze(datasets["balanced"], "parallel", "fixed")
        table = result.final_table
        assert set(table.loc[table["Treatment"].isin(["R", "T"]), "n"]) == {"40"}

    def test_parallel_mixed_rejected(self, parallel_data):
        with pytest.raises(InvalidArgumentError):
            app_api.analyze(parallel_data, "parallel", "mixed")

    def test_custom_endpoint_map(self, crossover_study):
        config = AppConfig(analysis={"endpoint_map": [{"parameter": "Cmax", "group": "Primary endpoints"}]})
        result = app_api.analyze(crossover_study.balanced, "crossover", "fixed", config=config)
        assert list(result.final_table["Treatment"]) == ["Cmax", "R", "T"]

    def test_collect_failures(self, crossover_study):
        data = crossover_study.balanced
        data = data.loc[~((data["Parameter"] == "Cmax") & (data["Treatment"] == "T"))]
        config = AppConfig(analysis={"collect_failures": True})

        result = app_api.analyze(data, "crossover", "fixed", config=config)
        assert list(result.failures) == ["Cmax"]
        assert "Cmax" not in set(result.final_table["Parameter"])

    def test_collect_failures_missing_column(self, crossover_study):
        """A dataset without Treatment fails before any model is fitted."""
        data = crossover_study.balanced.drop(columns=["Treatment"])
        config = AppConfig(analysis={"collect_failures": True})

        with pytest.raises(DataShapeError, match="Treatment"):
            app_api.analyze(data, "crossover", "fixed", config=config)


class TestRunPipeline:
    """Test the full configured run."""

    def test_artifacts(self, temp_dir):
        config = AppConfig(run={"artifact_dir": str(temp_dir)})
        result = app_api.run_pipeline(config, run_id="test_run")

        assert result.run_id == "test_run"
        assert result.metadata["status"] == "completed"
        assert set(result.metadata["stage_times"]) == {"simulate", "analyze", "report"}
        assert result.metadata["design"] == "crossover"
        assert result.metadata["model_type"] == "fixed"

        run_dir = temp_dir / "test_run"
        assert (run_dir / "final_table.csv").exists()
        assert (run_dir / "forest_plot.png").exists()
        assert (run_dir / "data" / "crossover_balanced.parquet").exists()
        assert (run_dir / "data" / "crossover_unbalanced.csv").exists()

        table = pd.read_csv(run_dir / "final_table.csv", dtype=str, keep_default_na=False)
        assert list(table.columns) == list(result.analysis.final_table.columns)

    def test_seed_reproducible(self, temp_dir):
        config = AppConfig(run={"artifact_dir": str(temp_dir)}, report={"forest_plot": False})
        first = app_api.run_pipeline(config, run_id="a")
        second = app_api.run_pipeline(config, run_id="b")
        pd.testing.assert_frame_equal(first.analysis.final_table, second.analysis.final_table)

    def test_invalid_config(self, temp_dir):
        config = AppConfig(
            run={"artifact_dir": str(temp_dir)},
            simulation={"design": "parallel", "n_subjects": 80},
            analysis={"model_type": "mixed"},
        )
        with pytest.raises(ValidationError):
            app_api.run_pipeline(config)


class TestListModels:
    def test_list_models(self):
        models = app_api.list_models()
        assert len(models) == 5
        assert {"design": "parallel", "model_type": "fixed"}.items() <= models[-1].items()
