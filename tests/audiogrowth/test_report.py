########################################################################################
##
##                                  TESTS FOR
##                                  'report.py'
##
########################################################################################

# IMPORTS ==============================================================================

import numpy as np
import pandas as pd

from audiogrowth.metrics import DerivedMetric
from audiogrowth.opt import ComparisonResult, ParameterInterval, SkipRecord
from audiogrowth.report import (
    COMPARISON_COLUMNS,
    PARAMETER_COLUMNS,
    SKIP_COLUMNS,
    comparison_table,
    parameter_table,
    skip_table,
)


# TESTS ================================================================================

def test_parameter_table_rows_and_order():
    intervals = {
        "a": [ParameterInterval("scale", 0.1, 0.09, 0.11),
              ParameterInterval("midpoint", 50.0, np.nan, np.nan)],
        "b": [ParameterInterval("scale", 0.2, 0.15, 0.25)],
    }
    metrics = {"a": [DerivedMetric("slope", 3.25, 2.9, 3.6, "dB/year")]}
    table = parameter_table(intervals, metrics)

    assert list(table.columns) == PARAMETER_COLUMNS
    assert list(table["parameter_name"]) == ["scale", "midpoint", "slope", "scale"]
    assert list(table["group"]) == ["a", "a", "a", "b"]
    assert np.isnan(table.loc[1, "ci_low"])


def test_parameter_table_empty():
    table = parameter_table({})
    assert table.empty
    assert list(table.columns) == PARAMETER_COLUMNS


def test_comparison_table_keeps_failed_rows():
    ok = ComparisonResult("shared", "per-group midpoint", 100.0, 80.0, 2, 50, 6.25, 0.004)
    failed = ComparisonResult("per-group midpoint", "per-group scale+midpoint",
                              80.0, np.nan, -1, -1, np.nan, np.nan, error="missing fit result")
    table = comparison_table([ok, failed])

    assert list(table.columns) == COMPARISON_COLUMNS
    assert table.loc[0, "df1"] == 2
    assert table.loc[1, "df1"] is pd.NA
    assert np.isnan(table.loc[1, "F"])
    assert table.loc[1, "error"] == "missing fit result"
    assert str(table["df2"].dtype) == "Int64"


def test_skip_table():
    table = skip_table([SkipRecord("d", "insufficient data", 3, "3 observation(s)")])
    assert list(table.columns) == SKIP_COLUMNS
    assert table.loc[0, "n_observations"] == 3
    assert table.loc[0, "reason"] == "insufficient data"
