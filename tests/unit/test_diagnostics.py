"""Tests for residual diagnostics."""

import numpy as np
import pytest

from relbioav.contracts import DiagnosticsResult
from relbioav.models import diagnose_all, diagnose_model


class TestDiagnostics:
    """Test Shapiro-Wilk checks and diagnostic figures."""

    def test_crossover_fixed(self, crossover_study):
        result = diagnose_model(crossover_study.balanced, "crossover", "fixed", "Cmax")

        assert isinstance(result, DiagnosticsResult)
        assert len(result.residuals) == 32
        assert 0.0 < result.shapiro_statistic <= 1.0
        assert 0.0 <= result.shapiro_pvalue <= 1.0
        assert result.figure is None
        assert result.model_label == "crossover, subject as fixed effect"

    def test_residuals_sum_to_zero(self, crossover_study):
        result = diagnose_model(crossover_study.balanced, "crossover", "fixed", "AUC0_tz")
        assert float(np.sum(result.residuals)) == pytest.approx(0.0, abs=1e-8)

    def test_parallel_normalized(self, parallel_data):
        """Parallel residuals are scaled to unit variance within each group."""
        result = diagnose_model(parallel_data, "parallel", "fixed", "Cmax")
        treatment = parallel_data.loc[parallel_data["Parameter"] == "Cmax", "Treatment"].astype(str)
        sd = result.residuals.groupby(treatment).std(ddof=1)
        np.testing.assert_allclose(sd.to_numpy(), 1.0)

    def test_plot(self, fixed_sequence_study):
        import matplotlib.pyplot as plt

        result = diagnose_model(fixed_sequence_study.balanced, "fixed_sequence", "mixed", "Cmax", plot=True)
        try:
            titles = [ax.get_title() for ax in result.figure.get_axes()]
            assert titles == ["Normal Q-Q", "Residuals vs fitted"]
        finally:
            plt.close(result.figure)

    def test_all_parameters(self, crossover_study):
        results = diagnose_all(crossover_study.unbalanced, "crossover", "fixed")
        assert list(results) == ["AUC0_tz", "AUCINF_pred", "Cmax"]
        assert all(len(r.residuals) == 30 for r in results.values())
