#########################################################################################
##
##                              END-TO-END ANALYSIS RUN
##                                  (analysis.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

import pandas as pd

from . import report
from .config import DEFAULT_SAMPLING_BOUNDS, AnalysisConfig
from .data import FittableDataset, ingest
from .metrics import derive_metrics
from .models import make_model
from .opt.comparison import compare_nested, fit_nested_family
from .opt.grouped import GroupedFitResult, fit_groups
from .opt.parameter_estimator import ParameterEstimator
from .opt.sensitivity import confidence_intervals, profile_intervals
from .utils.logger import LoggerManager

log = LoggerManager().get_logger("analysis")


# REPORT ================================================================================

@dataclass
class AnalysisReport:
    """Everything produced by :func:`run_analysis`.

    Attributes
    ----------
    config : AnalysisConfig
    dataset : FittableDataset
    grouped : dict
        ``{key: GroupedFitResult}`` for every grouping key.
    intervals : dict
        ``{key: {group: [ParameterInterval, ...]}}``.
    metrics : dict
        ``{key: {group: [DerivedMetric, ...]}}``.
    nested : list[NestedFit]
        Nested family fitted to the full dataset.
    comparisons : list[ComparisonResult]
    """

    config: AnalysisConfig
    dataset: FittableDataset
    grouped: dict = field(default_factory=dict)
    intervals: dict = field(default_factory=dict)
    metrics: dict = field(default_factory=dict)
    nested: list = field(default_factory=list)
    comparisons: list = field(default_factory=list)


    def parameter_table(self, key: str = "domain") -> pd.DataFrame:
        return report.parameter_table(self.intervals.get(key, {}), self.metrics.get(key, {}))


    def comparison_table(self) -> pd.DataFrame:
        return report.comparison_table(self.comparisons)


    def skip_table(self, key: str = "domain") -> pd.DataFrame:
        grouped = self.grouped.get(key)
        return report.skip_table(grouped.skipped if grouped is not None else [])


# PIPELINE ==============================================================================

def _group_intervals(
    grouped: GroupedFitResult,
    partitions: Mapping[str, FittableDataset],
    model,
    config: AnalysisConfig,
) -> dict:
    out = {}
    for g, fit in grouped.fits.items():
        if config.ci_method == "profile":
            est = ParameterEstimator(
                partitions[g],
                model,
                sampling_bounds=config.sampling_bounds,
                lower_bounds=config.lower_bounds,
            )
            out[g] = profile_intervals(est, fit, config.confidence_level)
        else:
            out[g] = confidence_intervals(fit, config.confidence_level)
    return out


def run_analysis(
    frame: pd.DataFrame,
    variant_domains: Mapping[str, str],
    config: AnalysisConfig | None = None,
    *,
    keys: Sequence[str] = ("domain", "variant"),
    comparison_key: str = "domain",
) -> AnalysisReport:
    """Fit, derive and compare growth curves for one cohort.

    Steps: ingestion; independent multi-start fits per group for every key
    in ``keys``; confidence intervals and derived metrics per fitted group;
    nested-family fits on the full dataset grouped by ``comparison_key`` and
    their F-test comparisons.

    Raises
    ------
    IngestionError
        The only error that aborts the run. Group and comparison failures
        are recorded in the report.
    """
    config = config or AnalysisConfig()
    dataset = ingest(frame, variant_domains)

    model = make_model(config.asymptote, config.fit_asymptote)
    box = {**DEFAULT_SAMPLING_BOUNDS, **config.sampling_bounds}
    reference = [0.5 * sum(box[n]) for n in model.param_names]
    model.verify_inverse(reference)

    log.info("analysis of %s: %d observations, %d subjects",
             dataset.name, len(dataset), dataset.n_subjects)

    result = AnalysisReport(config=config, dataset=dataset)
    fit_kwargs = dict(
        n_starts=config.n_starts,
        seed=config.seed,
        sampling_bounds=config.sampling_bounds,
        lower_bounds=config.lower_bounds,
        max_nfev=config.max_nfev,
    )

    for key in keys:
        partitions = dataset.partition(key)
        grouped = fit_groups(
            dataset,
            key,
            model,
            min_observations=config.min_observations,
            n_workers=config.n_workers,
            **fit_kwargs,
        )
        intervals = _group_intervals(grouped, partitions, model, config)

        result.grouped[key] = grouped
        result.intervals[key] = intervals
        result.metrics[key] = {
            g: derive_metrics(
                grouped.fits[g],
                ivs,
                onset_threshold=config.onset_threshold,
                substitution=config.substitution,
            )
            for g, ivs in intervals.items()
        }

    if len(dataset.groups(comparison_key)) < 2:
        log.warning("fewer than two '%s' groups, nested comparison skipped", comparison_key)
        return result

    result.nested = fit_nested_family(
        dataset, model, comparison_key, n_workers=config.n_workers, **fit_kwargs
    )
    result.comparisons = compare_nested(result.nested, all_pairs=config.all_pairs)

    for c in result.comparisons:
        if c.ok:
            log.info("%s: F(%d, %d) = %.4g, p = %.3g",
                     c.model_pair, c.df1, c.df2, c.f_statistic, c.p_value)

    return result
