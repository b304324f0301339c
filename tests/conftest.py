"""Pytest configuration and fixtures."""

import sys
import tempfile
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

import matplotlib

matplotlib.use("Agg")

import pytest

from relbioav.config import AppConfig
from relbioav.simulation import simulate_crossover, simulate_fixed_sequence, simulate_parallel


@pytest.fixture
def temp_dir():
    """Temporary directory for test artifacts."""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def sample_config() -> AppConfig:
    """Sample configuration for testing."""
    return AppConfig()


@pytest.fixture(scope="session")
def crossover_study():
    """Default 16-subject crossover study (balanced + unbalanced)."""
    return simulate_crossover(n_subjects=16, seed=646997)


@pytest.fixture(scope="session")
def fixed_sequence_study():
    """Default 16-subject fixed-sequence study."""
    return simulate_fixed_sequence(n_subjects=16, seed=646997)


@pytest.fixture(scope="session")
def parallel_data():
    """Default 80-subject parallel-group dataset."""
    return simulate_parallel(n_subjects=80, seed=646997)


@pytest.fixture
def sample_toml_config(temp_dir: Path) -> Path:
    """Sample TOML configuration file."""
    config_content = """
[run]
run_id = "toml_run"
artifact_dir = "test_results"

[simulation]
design = "fixed_sequence"
n_subjects = 20
seed = 42
drop_subjects = [3, 4]

[analysis]
model_type = "mixed"
dataset_type = "unbalanced"

[[analysis.endpoint_map]]
parameter = "Cmax"
group = "Primary endpoints"

[[analysis.endpoint_map]]
parameter = "AUC0_tz"
group = "Secondary endpoint"

[report]
x_limits = [70, 140]
forest_plot = false
"""

    config_file = temp_dir / "test_config.toml"
    config_file.write_text(config_content)
    return config_file
