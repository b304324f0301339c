"""Tests for design simulators and the imbalance injector."""

import numpy as np
import pandas as pd
import pytest

from relbioav.config import SimulationConfig
from relbioav.contracts import DataShapeError, SimulatedStudy
from relbioav.simulation import (
    make_unbalanced,
    mean_table,
    simulate_crossover,
    simulate_fixed_sequence,
    simulate_parallel,
    simulate_study,
    variance_components,
)

PARAMETERS = ["AUC0_tz", "AUCINF_pred", "Cmax"]


class TestReferenceTables:
    """Test static mean/variance tables."""

    def test_mean_table(self):
        table = mean_table()
        assert len(table) == 6
        mu = table.set_index(["Treatment", "Parameter"])["mu"]
        assert mu[("R", "Cmax")] == pytest.approx(5.088447)
        assert mu[("T", "AUC0_tz")] == pytest.approx(6.146901)

    def test_variance_components(self):
        var = variance_components().set_index("Parameter")
        assert var.loc["AUCINF_pred", "between_sd"] == pytest.approx(0.3078800)
        assert var.loc["Cmax", "within_sd"] == pytest.approx(0.1650787)


class TestCrossover:
    """Test 2x2 crossover simulation."""

    def test_row_counts(self, crossover_study: SimulatedStudy):
        """16 subjects x 2 periods x 3 parameters, minus 2 subjects x 3 parameters."""
        assert len(crossover_study.balanced) == 96
        assert len(crossover_study.unbalanced) == 90

    def test_schema(self, crossover_study: SimulatedStudy):
        data = crossover_study.balanced
        assert list(data.columns) == ["Subject", "Sequence", "Period", "Treatment", "Parameter", "logPK", "PK"]
        assert list(data["Treatment"].cat.categories) == ["R", "T"]
        assert sorted(data["Parameter"].unique()) == PARAMETERS
        np.testing.assert_allclose(data["PK"], np.exp(data["logPK"]))

    def test_sequences_balanced(self, crossover_study: SimulatedStudy):
        """Block randomisation gives 8 subjects per sequence."""
        per_sequence = (
            crossover_study.balanced.drop_duplicates("Subject")
            .groupby("Sequence", observed=True)["Subject"].count()
        )
        assert per_sequence.to_dict() == {"RT": 8, "TR": 8}

    def test_each_subject_gets_both_treatments(self, crossover_study: SimulatedStudy):
        data = crossover_study.balanced
        for _, rows in data.loc[data["Parameter"] == "Cmax"].groupby("Subject", observed=True):
            assert sorted(rows["Treatment"].astype(str)) == ["R", "T"]
            seq = rows.sort_values("Period")["Treatment"].astype(str).str.cat()
            assert seq == rows["Sequence"].iloc[0]

    def test_subject_effect_shared_across_periods(self, crossover_study: SimulatedStudy):
        """Within-subject correlation: subject means vary much more than within-subject differences."""
        data = crossover_study.balanced
        auc = data.loc[data["Parameter"] == "AUC0_tz"]
        subject_means = auc.groupby("Subject", observed=True)["logPK"].mean()
        assert subject_means.std() > 0.15

    def test_deterministic(self):
        """Identical seeds give identical datasets."""
        first = simulate_crossover(seed=123)
        second = simulate_crossover(seed=123)
        pd.testing.assert_frame_equal(first.balanced, second.balanced)
        pd.testing.assert_frame_equal(first.unbalanced, second.unbalanced)

    def test_seed_changes_values(self):
        first = simulate_crossover(seed=1)
        second = simulate_crossover(seed=2)
        assert not np.allclose(first.balanced["logPK"], second.balanced["logPK"])

    def test_explicit_generator(self):
        """A supplied generator takes precedence over the seed."""
        a = simulate_crossover(seed=1, rng=np.random.default_rng(99))
        b = simulate_crossover(seed=2, rng=np.random.default_rng(99))
        pd.testing.assert_frame_equal(a.balanced, b.balanced)

    def test_unbalanced_is_strict_subset(self, crossover_study: SimulatedStudy):
        balanced = crossover_study.balanced
        unbalanced = crossover_study.unbalanced
        keys = ["Subject", "Period", "Parameter"]

        merged = unbalanced.merge(balanced, on=keys, suffixes=("", "_bal"))
        assert len(merged) == len(unbalanced)
        np.testing.assert_array_equal(merged["logPK"], merged["logPK_bal"])

        removed = balanced.merge(unbalanced[keys], on=keys, how="left", indicator=True)
        removed = removed.loc[removed["_merge"] == "left_only"]
        assert set(removed["Subject"].astype(int)) == {5, 6}
        assert set(removed["Period"].astype(int)) == {2}


class TestFixedSequence:
    """Test fixed-sequence simulation."""

    def test_row_counts(self, fixed_sequence_study: SimulatedStudy):
        assert len(fixed_sequence_study.balanced) == 96
        assert len(fixed_sequence_study.unbalanced) == 90

    def test_same_order_for_all_subjects(self, fixed_sequence_study: SimulatedStudy):
        data = fixed_sequence_study.balanced
        period1 = data.loc[data["Period"] == 1, "Treatment"].astype(str)
        period2 = data.loc[data["Period"] == 2, "Treatment"].astype(str)
        assert set(period1) == {"R"}
        assert set(period2) == {"T"}
        assert set(data["Sequence"].astype(str)) == {"RT"}

    def test_custom_sequence(self):
        study = simulate_fixed_sequence(n_subjects=6, sequence=("T", "R"), drop_subjects=(1,))
        data = study.balanced
        assert set(data.loc[data["Period"] == 1, "Treatment"].astype(str)) == {"T"}
        assert len(study.unbalanced) == len(data) - 3


class TestParallel:
    """Test parallel-group simulation."""

    def test_allocation(self, parallel_data: pd.DataFrame):
        subjects = parallel_data.drop_duplicates("Subject")
        counts = subjects["Treatment"].astype(str).value_counts().to_dict()
        assert counts == {"R": 40, "T": 40}
        assert len(parallel_data) == 240

    def test_schema(self, parallel_data: pd.DataFrame):
        assert list(parallel_data.columns) == ["Subject", "Treatment", "Parameter", "logPK", "PK"]
        assert "Period" not in parallel_data.columns

    def test_one_treatment_per_subject(self, parallel_data: pd.DataFrame):
        per_subject = parallel_data.groupby("Subject", observed=True)["Treatment"].nunique()
        assert (per_subject == 1).all()

    def test_unequal_allocation(self):
        data = simulate_parallel(n_subjects=30, allocation={"R": 1, "T": 2})
        counts = data.drop_duplicates("Subject")["Treatment"].astype(str).value_counts().to_dict()
        assert counts == {"R": 10, "T": 20}

    def test_deterministic(self):
        pd.testing.assert_frame_equal(simulate_parallel(seed=5), simulate_parallel(seed=5))


class TestImbalance:
    """Test observation removal."""

    def test_missing_columns(self, parallel_data: pd.DataFrame):
        with pytest.raises(DataShapeError, match="Period"):
            make_unbalanced(parallel_data, [1], 2)

    def test_no_match_returns_all_rows(self, crossover_study: SimulatedStudy):
        data = crossover_study.balanced
        out = make_unbalanced(data, [99], 2)
        assert len(out) == len(data)

    def test_row_difference(self, crossover_study: SimulatedStudy):
        data = crossover_study.balanced
        out = make_unbalanced(data, [1, 2, 3], 1)
        assert len(data) - len(out) == 3 * 3

    def test_string_subject_ids(self, crossover_study: SimulatedStudy):
        data = crossover_study.balanced
        labelled = data.assign(Subject="S" + data["Subject"].astype(str))
        out = make_unbalanced(labelled, ["S5", "S6"], 2)

        assert len(labelled) - len(out) == 2 * 3
        kept = out.loc[out["Subject"].isin(["S5", "S6"]), "Period"].astype(int)
        assert set(kept) == {1}

    def test_numeric_labels_match_text(self, crossover_study: SimulatedStudy):
        data = crossover_study.balanced
        out = make_unbalanced(data, ["5", "6"], "2")
        pd.testing.assert_frame_equal(out, crossover_study.unbalanced)


class TestSimulateStudy:
    """Test config-driven dispatch."""

    def test_dispatch_period_design(self):
        study = simulate_study(SimulationConfig(design="fixed_sequence", n_subjects=10))
        assert isinstance(study, SimulatedStudy)
        assert len(study.balanced) == 60

    def test_dispatch_parallel(self):
        data = simulate_study(SimulationConfig(design="parallel", n_subjects=20))
        assert isinstance(data, pd.DataFrame)
        assert len(data) == 60
