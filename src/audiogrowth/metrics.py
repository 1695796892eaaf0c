#########################################################################################
##
##                         CLINICALLY DERIVED CURVE METRICS
##                                   (metrics.py)
##
#########################################################################################

"""Slope and onset age from fitted logistic parameters.

Interval bounds of the metrics are obtained by substituting the parameter
interval endpoints into the closed-form transforms. This ignores the
correlation between parameters and is therefore only an approximation of
a delta-method or profile interval; it is kept because the reported
analysis uses it.
"""

# IMPORTS ===============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from .config import DEFAULT_ONSET_THRESHOLD
from .opt.sensitivity import ParameterInterval, confidence_intervals


# RECORD ================================================================================

@dataclass(frozen=True)
class DerivedMetric:
    """Derived quantity with substituted interval bounds (NaN if undefined)."""

    name: str
    estimate: float
    lower: float
    upper: float
    unit: str = ""


# SUBSTITUTION ==========================================================================

def _finite_or_nan(value) -> float:
    value = float(value)
    return value if np.isfinite(value) else np.nan


def substitute_bounds(
    h: Callable[..., float],
    estimate: Sequence[float],
    lower: Sequence[float],
    upper: Sequence[float],
    policy: str = "marginal",
) -> tuple[float, float, float]:
    """Evaluate ``h`` at the estimate and at substituted interval endpoints.

    Parameters
    ----------
    h : callable
        Transform taking the model-ordered parameters as positional args.
    estimate, lower, upper : sequence of float
        Point estimates and interval endpoints per parameter.
    policy : str
        ``"marginal"`` evaluates ``h`` at the lower and upper endpoint of
        each parameter in turn, the others held at their estimate, and
        takes the envelope. ``"joint"`` substitutes all lower endpoints
        together and all upper endpoints together.

    Returns
    -------
    (point, low, high)
        ``low <= high`` is restored when the transform inverted the order.
        Bounds are NaN if any substitution is undefined.
    """
    point = _finite_or_nan(h(*estimate))

    if policy == "marginal":
        candidates = []
        for i in range(len(estimate)):
            for endpoint in (lower[i], upper[i]):
                theta = list(estimate)
                theta[i] = endpoint
                candidates.append(h(*theta))
    elif policy == "joint":
        candidates = [h(*lower), h(*upper)]
    else:
        raise ValueError(f"Unknown substitution policy '{policy}'")

    values = np.array([_finite_or_nan(c) for c in candidates])
    if np.any(np.isnan(values)):
        return point, np.nan, np.nan

    return point, float(values.min()), float(values.max())


# TRANSFORMER ===========================================================================

def _model_intervals(fit, intervals: Sequence[ParameterInterval], group):
    """Model-ordered estimate, lower and upper vectors for one group."""
    by_name = {iv.name: iv for iv in intervals}
    param = fit.parameterization
    if param.per_group:
        if group is None:
            raise ValueError("group is required for a per-group parameterization")
        if str(group) not in param.groups:
            raise ValueError(f"Unknown group {group!r}, expected one of {list(param.groups)}")

    est, lo, hi = [], [], []
    for name in param.model.param_names:
        key = f"{name}[{group}]" if name in param.per_group else name
        iv = by_name[key]
        est.append(iv.estimate)
        lo.append(iv.lower)
        hi.append(iv.upper)
    return est, lo, hi


def derive_metrics(
    fit,
    intervals: Sequence[ParameterInterval] | None = None,
    *,
    onset_threshold: float = DEFAULT_ONSET_THRESHOLD,
    substitution: str = "marginal",
    group: str | None = None,
    level: float = 0.95,
) -> list[DerivedMetric]:
    """Slope at the midpoint and onset age of a fitted curve.

    Parameters
    ----------
    fit : FitResult
    intervals : list[ParameterInterval], optional
        Parameter intervals of ``fit``; asymptotic intervals at ``level``
        are computed when omitted.
    onset_threshold : float
        Threshold ``T`` whose crossing age defines onset.
    substitution : str
        ``"marginal"`` or ``"joint"``, see :func:`substitute_bounds`.
    group : str, optional
        Group to report for a per-group parameterization.

    Returns
    -------
    list[DerivedMetric]
        ``slope`` (dB/year, ``A·scale/4``) and ``onset_age`` (years).
    """
    if intervals is None:
        intervals = confidence_intervals(fit, level)

    model = fit.model
    est, lo, hi = _model_intervals(fit, intervals, group)

    def slope(*theta):
        return model.slope(*theta)

    def onset(*theta):
        return model.inverse(onset_threshold, *theta)

    metrics = []
    for name, h, unit in (("slope", slope, "dB/year"), ("onset_age", onset, "years")):
        point, low, high = substitute_bounds(h, est, lo, hi, substitution)
        metrics.append(DerivedMetric(name, point, low, high, unit))
    return metrics
