########################################################################################
##
##                                  TESTS FOR
##                              'opt/comparison.py'
##
########################################################################################

# IMPORTS ==============================================================================

import numpy as np
import pytest

from audiogrowth.data import FittableDataset
from audiogrowth.errors import ComparisonPreconditionError, NestingError
from audiogrowth.models import FixedAsymptoteLogistic
from audiogrowth.opt import (
    ComparisonResult,
    FitResult,
    GroupedParameterization,
    NestedFit,
    compare_nested,
    compare_pair,
    f_test,
    fit_nested_family,
    nested_family,
)


# ═══════════════════════════════════════════════════════════════════════════
# Helpers / Fixtures
# ═══════════════════════════════════════════════════════════════════════════

MODEL = FixedAsymptoteLogistic(130.0)
GROUPS = ["a", "b"]


def _fake_fit(parameterization, rss, n=200, dataset="cohort", converged=True, digest=""):
    p = parameterization.n_params
    return FitResult(
        parameters={name: 0.0 for name in parameterization.parameter_names},
        x=np.zeros(p),
        covariance=None,
        jacobian=np.zeros((n, p)),
        rss=rss,
        n_observations=n,
        converged=converged,
        message="",
        nfev=1,
        n_starts=1,
        n_converged=1,
        seed=0,
        dataset=dataset,
        parameterization=parameterization,
        active_mask=np.zeros(p, dtype=bool),
        data_digest=digest,
    )


@pytest.fixture
def family():
    return nested_family(MODEL, "domain", GROUPS)


def _two_group_dataset(mid_a=40.0, mid_b=60.0, noise=1.0, seed=0):
    rng = np.random.default_rng(seed)
    age = np.tile(np.linspace(10.0, 90.0, 25), 2)
    mid = np.repeat([mid_a, mid_b], 25)
    y = 130.0 / (1.0 + np.exp(-0.08 * (age - mid))) + rng.normal(0.0, noise, 50)
    labels = np.repeat(GROUPS, 25)
    return FittableDataset(age, y, [f"s{i:02d}" for i in range(50)], labels, labels,
                           name="cohort")


# ═══════════════════════════════════════════════════════════════════════════
# F-test
# ═══════════════════════════════════════════════════════════════════════════

class TestFTest:

    def test_known_value(self):
        F, df1, df2, p = f_test(1000.0, 198, 900.0, 196)
        assert (df1, df2) == (2, 196)
        assert F == pytest.approx((100.0 / 2) / (900.0 / 196))
        assert 0.0 < p < 0.001

    def test_larger_reduction_is_more_significant(self):
        F_big, _, _, p_big = f_test(1000.0, 198, 900.0, 196)
        F_small, _, _, p_small = f_test(1000.0, 198, 995.0, 196)
        assert F_big > F_small
        assert p_big < p_small

    def test_no_reduction(self):
        F, _, _, p = f_test(500.0, 100, 500.0, 98)
        assert F == 0.0
        assert p == pytest.approx(1.0)

    def test_perfect_complex_fit(self):
        F, _, _, p = f_test(10.0, 10, 0.0, 8)
        assert F == np.inf
        assert p == 0.0

    def test_wrong_order_raises_nesting_error(self):
        with pytest.raises(NestingError):
            f_test(900.0, 196, 1000.0, 198)

    def test_equal_dof_raises_nesting_error(self):
        with pytest.raises(NestingError):
            f_test(1000.0, 198, 900.0, 198)

    def test_zero_complex_dof(self):
        with pytest.raises(ComparisonPreconditionError):
            f_test(10.0, 2, 5.0, 0)

    def test_negative_rss(self):
        with pytest.raises(ValueError):
            f_test(-1.0, 10, 1.0, 8)


# ═══════════════════════════════════════════════════════════════════════════
# Pairwise and family comparison
# ═══════════════════════════════════════════════════════════════════════════

class TestComparePair:

    def test_basic(self, family):
        simple = _fake_fit(family[0], 1000.0)
        complex_ = _fake_fit(family[1], 900.0)
        res = compare_pair(simple, complex_)
        assert isinstance(res, ComparisonResult)
        assert res.ok
        assert res.model_pair == "shared vs per-group midpoint"
        assert (res.df1, res.df2) == (1, 197)

    def test_not_nested(self, family):
        with pytest.raises(NestingError):
            compare_pair(_fake_fit(family[2], 900.0), _fake_fit(family[1], 1000.0))

    def test_different_data(self, family):
        with pytest.raises(NestingError, match="different data"):
            compare_pair(_fake_fit(family[0], 1000.0),
                         _fake_fit(family[1], 900.0, dataset="other"))

    def test_same_name_different_observations(self, family):
        with pytest.raises(NestingError, match="different observations"):
            compare_pair(_fake_fit(family[0], 1000.0, digest="aaaa"),
                         _fake_fit(family[1], 900.0, digest="bbbb"))

    def test_same_observations_pass(self, family):
        res = compare_pair(_fake_fit(family[0], 1000.0, digest="aaaa"),
                           _fake_fit(family[1], 900.0, digest="aaaa"))
        assert res.ok

    def test_non_converged(self, family):
        with pytest.raises(ComparisonPreconditionError):
            compare_pair(_fake_fit(family[0], 1000.0),
                         _fake_fit(family[1], 900.0, converged=False))

    def test_missing(self, family):
        with pytest.raises(ComparisonPreconditionError):
            compare_pair(None, _fake_fit(family[1], 900.0))


class TestCompareNested:

    def test_adjacent_pairs(self, family):
        fits = [_fake_fit(p, rss) for p, rss in zip(family, [1000.0, 900.0, 890.0])]
        res = compare_nested(fits)
        assert [r.model_pair for r in res] == [
            "shared vs per-group midpoint",
            "per-group midpoint vs per-group scale+midpoint",
        ]
        assert all(r.ok for r in res)

    def test_all_pairs(self, family):
        fits = [_fake_fit(p, rss) for p, rss in zip(family, [1000.0, 900.0, 890.0])]
        res = compare_nested(fits, all_pairs=True)
        assert len(res) == 3
        assert res[1].model_pair == "shared vs per-group scale+midpoint"
        assert res[1].df1 == 2

    def test_missing_fit_recorded(self, family):
        nested = [
            NestedFit(family[0], _fake_fit(family[0], 1000.0)),
            NestedFit(family[1], None, "no convergence"),
            NestedFit(family[2], _fake_fit(family[2], 890.0)),
        ]
        res = compare_nested(nested)
        assert len(res) == 2
        assert not res[0].ok
        assert res[0].df1 == -1
        assert np.isnan(res[0].f_statistic)
        assert res[0].rss_simple == 1000.0
        assert not res[1].ok

    def test_failure_does_not_affect_other_pairs(self, family):
        nested = [
            NestedFit(family[0], _fake_fit(family[0], 1000.0)),
            NestedFit(family[1], None, "no convergence"),
            NestedFit(family[2], _fake_fit(family[2], 890.0)),
        ]
        res = compare_nested(nested, all_pairs=True)
        assert [r.ok for r in res] == [False, True, False]

    def test_labels_for_missing(self, family):
        res = compare_nested([None, _fake_fit(family[1], 900.0)], labels=["M0", "M1"])
        assert res[0].simple == "M0"
        assert res[0].error


class TestNestedFamily:

    def test_default_levels(self, family):
        assert [p.label for p in family] == [
            "shared", "per-group midpoint", "per-group scale+midpoint"
        ]
        assert [p.n_params for p in family] == [2, 3, 4]

    def test_non_nested_levels(self):
        with pytest.raises(NestingError):
            nested_family(MODEL, "domain", GROUPS, levels=[("midpoint",), ("scale",)])

    def test_fit_family_detects_midpoint_shift(self):
        ds = _two_group_dataset()
        nested = fit_nested_family(ds, MODEL, "domain", n_starts=10, seed=0)
        assert all(nf.fit is not None for nf in nested)

        assert {nf.fit.data_digest for nf in nested} == {ds.fingerprint}

        rss = [nf.fit.rss for nf in nested]
        assert rss[0] > rss[1]
        assert rss[1] >= rss[2] - 1e-6 * rss[1]

        res = compare_nested(nested)
        assert res[0].p_value < 1e-6
        assert res[0].df2 == 50 - 3

    def test_fits_from_different_cohorts_with_same_name_rejected(self):
        first = fit_nested_family(_two_group_dataset(seed=0), MODEL, "domain", n_starts=5, seed=0)
        second = fit_nested_family(_two_group_dataset(seed=1), MODEL, "domain", n_starts=5, seed=0)
        assert first[0].fit.dataset == second[1].fit.dataset
        assert first[0].fit.n_observations == second[1].fit.n_observations
        with pytest.raises(NestingError, match="different observations"):
            compare_pair(first[0].fit, second[1].fit)

    def test_fit_family_failure_recorded(self):
        ds = _two_group_dataset()
        nested = fit_nested_family(
            ds, MODEL, "domain", n_starts=3, seed=0, max_nfev=1,
            sampling_bounds={"scale": (0.03, 0.05), "midpoint": (20.0, 30.0)},
        )
        assert all(nf.fit is None for nf in nested)
        assert all(nf.error for nf in nested)
        res = compare_nested(nested)
        assert not any(r.ok for r in res)


def test_per_group_label_uses_model_order():
    p = GroupedParameterization(MODEL, "domain", GROUPS, ["midpoint", "scale"])
    assert p.label == "per-group scale+midpoint"
