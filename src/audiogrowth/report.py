#########################################################################################
##
##                               TABULAR RESULT REPORTS
##                                   (report.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

import pandas as pd

PARAMETER_COLUMNS = ["group", "parameter_name", "point_estimate", "ci_low", "ci_high"]
COMPARISON_COLUMNS = ["model_pair", "F", "df1", "df2", "p_value", "error"]
SKIP_COLUMNS = ["group", "reason", "n_observations", "error"]


# TABLES ================================================================================

def parameter_table(
    intervals: Mapping[str, Sequence],
    metrics: Mapping[str, Sequence] | None = None,
) -> pd.DataFrame:
    """One row per group and parameter (then per derived metric).

    Parameters
    ----------
    intervals : mapping
        ``{group: [ParameterInterval, ...]}``.
    metrics : mapping, optional
        ``{group: [DerivedMetric, ...]}``, appended after the parameters of
        each group.
    """
    rows = []
    for group, ivs in intervals.items():
        for iv in ivs:
            rows.append((group, iv.name, iv.estimate, iv.lower, iv.upper))
        for m in (metrics or {}).get(group, ()):
            rows.append((group, m.name, m.estimate, m.lower, m.upper))
    return pd.DataFrame(rows, columns=PARAMETER_COLUMNS)


def comparison_table(results: Iterable) -> pd.DataFrame:
    """One row per nested-model comparison; failed comparisons keep NaNs."""
    rows = [
        (
            r.model_pair,
            r.f_statistic,
            r.df1 if r.ok else pd.NA,
            r.df2 if r.ok else pd.NA,
            r.p_value,
            r.error,
        )
        for r in results
    ]
    table = pd.DataFrame(rows, columns=COMPARISON_COLUMNS)
    table["df1"] = table["df1"].astype("Int64")
    table["df2"] = table["df2"].astype("Int64")
    return table


def skip_table(skipped: Iterable) -> pd.DataFrame:
    """One row per skipped partition."""
    rows = [(s.group, s.reason, s.n_observations, s.error) for s in skipped]
    return pd.DataFrame(rows, columns=SKIP_COLUMNS)
