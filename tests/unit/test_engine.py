"""Tests for the pipeline run context."""

from pathlib import Path

import numpy as np
import pytest

from relbioav.config import AppConfig
from relbioav.contracts import DatasetType, Design, ModelType, RelBioavError
from relbioav.engine import RunContext


@pytest.fixture
def context(temp_dir: Path) -> RunContext:
    config = AppConfig.model_validate({
        "simulation": {"design": "fixed_sequence", "seed": 7},
        "analysis": {"model_type": "mixed", "dataset_type": "unbalanced"},
    })
    return RunContext.from_config(config, "ctx_run", temp_dir)


class TestRunContext:
    """Test run identity, timing and artifact paths."""

    def test_selection_from_config(self, context: RunContext):
        assert context.design is Design.FIXED_SEQUENCE
        assert context.model_type is ModelType.MIXED
        assert context.dataset_type is DatasetType.UNBALANCED
        assert context.seed == 7

    def test_rng_seeded(self, context: RunContext):
        expected = np.random.default_rng(7).normal(size=3)
        np.testing.assert_allclose(context.rng.normal(size=3), expected)

    def test_metadata_carries_selection_and_stages(self, context: RunContext):
        with context.time_stage("simulate"):
            pass

        metadata = context.metadata()
        assert metadata["run_id"] == "ctx_run"
        assert metadata["design"] == "fixed_sequence"
        assert metadata["model_type"] == "mixed"
        assert metadata["dataset_type"] == "unbalanced"
        assert set(metadata["stage_times"]) == {"simulate"}
        assert metadata["total_runtime_s"] >= 0.0

    def test_failed_stage_is_timed_and_reraised(self, context: RunContext):
        with pytest.raises(RelBioavError):
            with context.time_stage("analyze"):
                raise RelBioavError("boom")
        assert "analyze" in context.stage_times

    def test_artifact_path_creates_run_dir(self, context: RunContext, temp_dir: Path):
        path = context.artifact_path("final_table.csv")
        assert path == temp_dir / "ctx_run" / "final_table.csv"
        assert path.parent.is_dir()

    def test_end_run_without_start(self, context: RunContext):
        assert context.end_run() == 0.0
