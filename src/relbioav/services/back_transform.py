"""Back-transformation of log-scale model results to the geometric scale."""

from __future__ import annotations

import numpy as np

from ..contracts.types import BackTransformed, ModelResult


def geometric_cv(sigma: float) -> float:
    """Geometric coefficient of variation, sqrt(exp(sigma^2) - 1), as a fraction."""
    return float(np.sqrt(np.expm1(sigma ** 2)))


def back_transform(result: ModelResult) -> BackTransformed:
    """Exponentiate marginal means and the treatment contrast.

    adj_gse and gse are exp(SE) rather than a delta-method standard error.
    Ratio and confidence limits are returned as fractions; callers scale
    them to percent for display. The input is not modified.

    Args:
        result: Log-scale model result.

    Returns:
        BackTransformed with adjusted means, ratio frame and gCV.
    """
    adjusted = result.emmeans.copy()
    adjusted["adj_gmean"] = np.exp(adjusted["emmean"])
    adjusted["adj_gse"] = np.exp(adjusted["SE"])

    ratio = result.contrast.copy()
    ratio["ratio"] = np.exp(ratio["estimate"])
    ratio["gse"] = np.exp(ratio["SE"])
    ratio["lower"] = np.exp(ratio["lower_CL"])
    ratio["upper"] = np.exp(ratio["upper_CL"])

    return BackTransformed(adjusted=adjusted, ratio=ratio, gcv=geometric_cv(result.sigma))
