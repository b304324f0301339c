"""Tests for dataset persistence."""

import numpy as np
import pandas as pd
import pytest

from relbioav.contracts import DataShapeError
from relbioav.simulation import load_dataset, save_dataset


class TestDatasetIO:
    """Test parquet and CSV round trips."""

    def test_writes_both_formats(self, crossover_study, temp_dir):
        paths = save_dataset(crossover_study.balanced, temp_dir / "crossover_balanced")
        assert paths["parquet"].name == "crossover_balanced.parquet"
        assert paths["csv"].name == "crossover_balanced.csv"
        assert all(p.exists() for p in paths.values())

    def test_parquet_preserves_values_and_types(self, crossover_study, temp_dir):
        data = crossover_study.balanced
        paths = save_dataset(data, temp_dir / "ds")
        loaded = load_dataset(paths["parquet"])

        np.testing.assert_array_equal(loaded["logPK"].to_numpy(), data["logPK"].to_numpy())
        assert isinstance(loaded["Treatment"].dtype, pd.CategoricalDtype)
        assert list(loaded["Treatment"].cat.categories) == ["R", "T"]
        assert list(loaded["Subject"].cat.categories) == list(range(1, 17))

    def test_csv_restores_categories(self, parallel_data, temp_dir):
        paths = save_dataset(parallel_data, temp_dir / "parallel")
        loaded = load_dataset(paths["csv"])

        assert len(loaded) == 240
        assert list(loaded["Treatment"].cat.categories) == ["R", "T"]
        np.testing.assert_allclose(loaded["logPK"], parallel_data["logPK"], rtol=1e-12)

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_dataset(temp_dir / "absent.parquet")

    def test_unsupported_format(self, temp_dir):
        path = temp_dir / "data.xlsx"
        path.write_text("")
        with pytest.raises(DataShapeError, match="Unsupported"):
            load_dataset(path)
