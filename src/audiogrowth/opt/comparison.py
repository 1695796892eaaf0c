#########################################################################################
##
##                         NESTED MODEL COMPARISON (F-TEST)
##                                 (comparison.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Mapping, Sequence

import numpy as np
import scipy.stats as sci_stats

from ..errors import AudiogrowthError, ComparisonPreconditionError, NestingError
from ..utils.logger import LoggerManager
from .parameter_estimator import FitResult, GroupedParameterization, ParameterEstimator

log = LoggerManager().get_logger("opt.comparison")


# RESULT CONTAINERS =====================================================================

@dataclass(frozen=True)
class ComparisonResult:
    """Extra-sum-of-squares F-test of a simple model against a complex one.

    ``df1 = df_simple - df_complex`` and ``df2 = df_complex``. When the
    comparison could not be computed, the numeric fields are NaN and
    ``error`` holds the reason.
    """

    simple: str
    complex: str
    rss_simple: float
    rss_complex: float
    df1: int
    df2: int
    f_statistic: float
    p_value: float
    error: str = ""


    @property
    def model_pair(self) -> str:
        return f"{self.simple} vs {self.complex}"


    @property
    def ok(self) -> bool:
        return not self.error


@dataclass
class NestedFit:
    """One member of a nested family and its fit (``None`` when it failed)."""

    parameterization: GroupedParameterization
    fit: FitResult | None = None
    error: str = ""


    @property
    def label(self) -> str:
        return self.parameterization.label


# F-TEST ================================================================================

def f_test(
    rss_simple: float,
    df_simple: int,
    rss_complex: float,
    df_complex: int,
) -> tuple[float, int, int, float]:
    """Extra-sum-of-squares F-statistic and its p-value.

    ``F = ((RSS_s - RSS_c) / (df_s - df_c)) / (RSS_c / df_c)``, referred to
    an F distribution with ``(df_s - df_c, df_c)`` degrees of freedom.

    Returns
    -------
    (F, df1, df2, p_value)
    """
    df1 = int(df_simple) - int(df_complex)
    df2 = int(df_complex)
    if df1 <= 0:
        raise NestingError(
            f"complex model must have fewer residual degrees of freedom "
            f"({df_complex} >= {df_simple})"
        )
    if df2 <= 0:
        raise ComparisonPreconditionError(
            f"complex model has no residual degrees of freedom ({df2})"
        )
    if rss_complex < 0 or rss_simple < 0:
        raise ValueError("residual sums of squares must be non-negative")

    if rss_complex == 0.0:
        F = np.inf if rss_simple > 0.0 else np.nan
    else:
        F = ((rss_simple - rss_complex) / df1) / (rss_complex / df2)

    if np.isfinite(F):
        p_value = float(sci_stats.f.sf(F, df1, df2))
    elif F == np.inf:
        p_value = 0.0
    else:
        p_value = np.nan
    return float(F), df1, df2, p_value


def _validate_pair(simple: FitResult | None, complex_: FitResult | None) -> None:
    if simple is None or complex_ is None:
        raise ComparisonPreconditionError("missing fit result")
    for fit in (simple, complex_):
        if not fit.converged:
            raise ComparisonPreconditionError(
                f"{fit.parameterization.label} fit did not converge"
            )
    if simple.dataset != complex_.dataset or simple.n_observations != complex_.n_observations:
        raise NestingError(
            f"models were fit to different data ({simple.dataset}, n={simple.n_observations} "
            f"vs {complex_.dataset}, n={complex_.n_observations})"
        )
    if simple.data_digest and complex_.data_digest and simple.data_digest != complex_.data_digest:
        raise NestingError(
            f"models were fit to different observations under the same name ({simple.dataset})"
        )
    if not simple.parameterization.is_nested_in(complex_.parameterization):
        raise NestingError(
            f"'{simple.parameterization.label}' is not nested in "
            f"'{complex_.parameterization.label}'"
        )


def compare_pair(simple: FitResult, complex_: FitResult) -> ComparisonResult:
    """F-test of ``simple`` against the nested ``complex_`` model.

    Raises
    ------
    ComparisonPreconditionError
        A fit is missing or did not converge.
    NestingError
        The models are not nested or were not fit to the same data.
    """
    _validate_pair(simple, complex_)
    F, df1, df2, p = f_test(simple.rss, simple.dof, complex_.rss, complex_.dof)
    return ComparisonResult(
        simple=simple.parameterization.label,
        complex=complex_.parameterization.label,
        rss_simple=float(simple.rss),
        rss_complex=float(complex_.rss),
        df1=df1,
        df2=df2,
        f_statistic=F,
        p_value=p,
    )


def compare_nested(
    fits: Sequence[FitResult | NestedFit | None],
    *,
    all_pairs: bool = False,
    labels: Sequence[str] | None = None,
) -> list[ComparisonResult]:
    """Compare models ordered from simplest to most complex.

    Adjacent pairs are compared by default, every pair with ``all_pairs``.
    A comparison whose inputs are missing, non-converged or not nested is
    returned with its ``error`` set; the others are unaffected.

    Parameters
    ----------
    fits : sequence
        Fit results (or :class:`NestedFit` records) in increasing complexity.
    all_pairs : bool
        Compare every pair instead of adjacent pairs only.
    labels : sequence of str, optional
        Display names used for missing fits.
    """
    entries = []
    for i, item in enumerate(fits):
        if isinstance(item, NestedFit):
            entries.append((item.label, item.fit))
        elif item is not None:
            entries.append((item.parameterization.label, item))
        else:
            name = labels[i] if labels is not None else f"model {i}"
            entries.append((name, None))

    pairs = (
        combinations(range(len(entries)), 2)
        if all_pairs
        else zip(range(len(entries) - 1), range(1, len(entries)))
    )

    results = []
    for i, j in pairs:
        (name_s, fit_s), (name_c, fit_c) = entries[i], entries[j]
        try:
            results.append(compare_pair(fit_s, fit_c))
        except (ComparisonPreconditionError, ValueError) as exc:
            log.warning("comparison '%s vs %s' not computed: %s", name_s, name_c, exc)
            results.append(ComparisonResult(
                simple=name_s,
                complex=name_c,
                rss_simple=float(fit_s.rss) if fit_s is not None else np.nan,
                rss_complex=float(fit_c.rss) if fit_c is not None else np.nan,
                df1=-1,
                df2=-1,
                f_statistic=np.nan,
                p_value=np.nan,
                error=str(exc),
            ))
    return results


# NESTED FAMILIES =======================================================================

def nested_family(
    model,
    key: str,
    groups: Sequence[str],
    levels: Sequence[Sequence[str]] = ((), ("midpoint",), ("midpoint", "scale")),
) -> list[GroupedParameterization]:
    """Parameterizations of increasing complexity over the same groups.

    The default levels are: all parameters shared, per-group midpoint with
    a shared scale, and per-group midpoint and scale.
    """
    family = [GroupedParameterization(model, key, groups, per_group) for per_group in levels]
    for simple, complex_ in zip(family, family[1:]):
        if not simple.is_nested_in(complex_):
            raise NestingError(
                f"'{simple.label}' is not nested in '{complex_.label}'"
            )
    return family


def fit_nested_family(
    dataset,
    model,
    key: str,
    *,
    levels: Sequence[Sequence[str]] = ((), ("midpoint",), ("midpoint", "scale")),
    n_starts: int = 500,
    seed: int | None = 0,
    sampling_bounds: Mapping[str, tuple[float, float]] | None = None,
    lower_bounds: Mapping[str, float] | None = None,
    upper_bounds: Mapping[str, float] | None = None,
    max_nfev: int = 200,
    n_workers: int = 1,
) -> list[NestedFit]:
    """Fit every member of a nested family to the full dataset.

    A member whose fit fails is returned with ``fit=None`` and the error
    message, so the comparisons involving it report the failure instead of
    aborting the batch.
    """
    family = nested_family(model, key, dataset.groups(key), levels)
    out = []
    for param in family:
        try:
            est = ParameterEstimator(
                dataset,
                param,
                sampling_bounds=sampling_bounds,
                lower_bounds=lower_bounds,
                upper_bounds=upper_bounds,
            )
            fit = est.fit_multistart(n_starts, seed, max_nfev=max_nfev, n_workers=n_workers)
        except (AudiogrowthError, ValueError, np.linalg.LinAlgError) as exc:
            log.warning("nested model '%s' failed: %s", param.label, exc)
            out.append(NestedFit(param, None, str(exc)))
            continue

        log.info("nested model '%s': %d parameters, RSS=%.6g",
                 param.label, fit.n_params, fit.rss)
        out.append(NestedFit(param, fit))
    return out
