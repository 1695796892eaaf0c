#########################################################################################
##
##                          PER-GROUP INDEPENDENT FITTING
##                                  (grouped.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Mapping

import numpy as np

from ..errors import (
    AudiogrowthError,
    ConvergenceError,
    DegenerateDataError,
    InsufficientDataError,
)
from ..utils.logger import LoggerManager
from .parameter_estimator import FitResult, ParameterEstimator

log = LoggerManager().get_logger("opt.grouped")

# Numerical failures isolated to the group that raised them
_GROUP_FAILURES = (AudiogrowthError, ValueError, np.linalg.LinAlgError, FloatingPointError)


# RESULT CONTAINERS =====================================================================

@dataclass(frozen=True)
class SkipRecord:
    """A partition excluded from the result set, with the reason."""

    group: str
    reason: str
    n_observations: int
    error: str = ""


@dataclass
class GroupedFitResult:
    """Per-group fits of one grouping key.

    Attributes
    ----------
    key : str
        Grouping key used to partition the dataset.
    fits : dict
        ``{group: FitResult}`` for every group that was fitted, sorted by label.
    skipped : list[SkipRecord]
        Groups excluded for insufficient data or failed optimization.
    """

    key: str
    fits: dict = field(default_factory=dict)
    skipped: list = field(default_factory=list)


    def __len__(self) -> int:
        return len(self.fits)


    @property
    def groups(self) -> list[str]:
        return list(self.fits)


    def display(self) -> None:
        """Print one line per fitted and skipped group."""
        print("=" * 60)
        print(f"Grouped fits by {self.key}: {len(self.fits)} fitted, "
              f"{len(self.skipped)} skipped")
        print("=" * 60)
        for g, fit in self.fits.items():
            est = ", ".join(f"{k}={v:.4g}" for k, v in fit.parameters.items())
            print(f"  {g:20s}  n={fit.n_observations:<5d} RSS={fit.rss:<10.4g} {est}")
        for rec in self.skipped:
            print(f"  {rec.group:20s}  n={rec.n_observations:<5d} skipped: {rec.reason}")
        print("=" * 60)


# HELPERS ===============================================================================

def _skip_reason(exc: Exception) -> str:
    if isinstance(exc, InsufficientDataError):
        return "insufficient data"
    if isinstance(exc, DegenerateDataError):
        return "degenerate ages"
    if isinstance(exc, ConvergenceError):
        return "no convergence"
    return "fit error"


def group_seeds(seed: int | None, groups: list[str]) -> dict[str, int]:
    """Independent per-group seeds derived from one base seed."""
    children = np.random.SeedSequence(seed).spawn(len(groups))
    return {g: int(child.generate_state(1)[0]) for g, child in zip(groups, children)}


def _fit_partition(
    group: str,
    dataset,
    model,
    *,
    min_observations: int,
    seed: int,
    n_starts: int,
    sampling_bounds,
    lower_bounds,
    upper_bounds,
    max_nfev: int,
    trial_workers: int,
) -> FitResult | SkipRecord:
    n = len(dataset)
    try:
        if n <= min_observations:
            raise InsufficientDataError(
                f"{n} observation(s), need more than {min_observations}",
                n_observations=n,
            )
        est = ParameterEstimator(
            dataset,
            model,
            sampling_bounds=sampling_bounds,
            lower_bounds=lower_bounds,
            upper_bounds=upper_bounds,
        )
        fit = est.fit_multistart(
            n_starts, seed, max_nfev=max_nfev, n_workers=trial_workers
        )
    except _GROUP_FAILURES as exc:
        reason = _skip_reason(exc)
        log.warning("group '%s' skipped (%s): %s", group, reason, exc)
        return SkipRecord(group=group, reason=reason, n_observations=n, error=str(exc))

    log.info("group '%s': n=%d, RSS=%.6g, %d/%d starts converged",
             group, n, fit.rss, fit.n_converged, fit.n_starts)
    return fit


# ORCHESTRATION =========================================================================

def fit_partitions(
    partitions: Mapping[str, object],
    model,
    *,
    key: str = "group",
    min_observations: int = 5,
    n_starts: int = 500,
    seed: int | None = 0,
    sampling_bounds: Mapping[str, tuple[float, float]] | None = None,
    lower_bounds: Mapping[str, float] | None = None,
    upper_bounds: Mapping[str, float] | None = None,
    max_nfev: int = 200,
    n_workers: int = 1,
    trial_workers: int = 1,
) -> GroupedFitResult:
    """Fit ``model`` independently to every dataset of ``partitions``.

    A partition is fitted only with more than ``min_observations``
    observations. Partitions that are too small, degenerate, or where every
    optimizer start fails are recorded in ``skipped``; no partition can abort
    another. With ``n_workers > 1`` the partitions run in a thread pool and
    the call returns after every task has finished.
    """
    groups = sorted(partitions, key=str)
    seeds = group_seeds(seed, groups)

    def _task(g):
        return _fit_partition(
            g,
            partitions[g],
            model,
            min_observations=min_observations,
            seed=seeds[g],
            n_starts=n_starts,
            sampling_bounds=sampling_bounds,
            lower_bounds=lower_bounds,
            upper_bounds=upper_bounds,
            max_nfev=max_nfev,
            trial_workers=trial_workers,
        )

    if n_workers > 1 and len(groups) > 1:
        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            outcomes = list(pool.map(_task, groups))
    else:
        outcomes = [_task(g) for g in groups]

    result = GroupedFitResult(key=key)
    for g, outcome in zip(groups, outcomes):
        if isinstance(outcome, SkipRecord):
            result.skipped.append(outcome)
        else:
            result.fits[g] = outcome

    log.info("grouped by %s: %d fitted, %d skipped",
             key, len(result.fits), len(result.skipped))
    return result


def fit_groups(dataset, key: str, model, **kwargs) -> GroupedFitResult:
    """Partition ``dataset`` by ``key`` and fit every partition.

    Parameters
    ----------
    dataset : FittableDataset
    key : str
        ``"domain"`` or ``"variant"``.
    model : LogisticModel
    **kwargs
        Forwarded to :func:`fit_partitions`.
    """
    return fit_partitions(dataset.partition(key), model, key=key, **kwargs)
