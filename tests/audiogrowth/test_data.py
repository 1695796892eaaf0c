########################################################################################
##
##                                  TESTS FOR
##                                   'data.py'
##
########################################################################################

# IMPORTS ==============================================================================

import numpy as np
import pandas as pd
import pytest

from audiogrowth.data import FittableDataset, Observation, ingest, simulate_cohort
from audiogrowth.errors import IngestionError


# HELPERS ==============================================================================

VARIANT_DOMAINS = {"v1": "D1", "v2": "D1", "v3": "D2"}


def _frame(**overrides):
    data = {
        "subject_id": ["s2", "s1", "s1", "s3", "s2"],
        "domain_label": ["D1", "D1", "D1", "D2", "D1"],
        "variant_label": ["v2", "v1", "v1", "v3", "v2"],
        "age": [30.0, 40.0, 20.0, 55.0, 10.0],
        "threshold": [35.0, 50.0, 20.0, 70.0, 15.0],
    }
    data.update(overrides)
    return pd.DataFrame(data)


# ═══════════════════════════════════════════════════════════════════════════
# Ingestion
# ═══════════════════════════════════════════════════════════════════════════

class TestIngest:

    def test_basic(self):
        ds = ingest(_frame(), VARIANT_DOMAINS)
        assert len(ds) == 5
        assert ds.n_subjects == 3

    def test_simulated_cohort_with_extra_columns(self):
        frame = simulate_cohort({"a": (0.1, 50.0), "b": (0.05, 60.0)}, seed=0)
        frame["site"] = "clinic"
        ds = ingest(frame, {"a": "a", "b": "b"}, name="cohort")
        assert len(ds) == len(frame)
        assert sorted(set(ds.domain)) == ["a", "b"]

    def test_series_sorted_by_subject_then_age(self):
        ds = ingest(_frame(), VARIANT_DOMAINS)
        assert list(ds.subject_id) == ["s1", "s1", "s2", "s2", "s3"]
        np.testing.assert_array_equal(ds.age, [20.0, 40.0, 10.0, 30.0, 55.0])
        np.testing.assert_array_equal(ds.threshold, [20.0, 50.0, 15.0, 35.0, 70.0])

    def test_arrays_are_read_only(self):
        ds = ingest(_frame(), VARIANT_DOMAINS)
        with pytest.raises(ValueError):
            ds.age[0] = 99.0

    def test_domain_derived_from_mapping(self):
        frame = _frame().drop(columns=["domain_label"])
        ds = ingest(frame, VARIANT_DOMAINS)
        assert sorted(set(ds.domain)) == ["D1", "D2"]

    def test_missing_column(self):
        with pytest.raises(IngestionError, match="Missing required columns"):
            ingest(_frame().drop(columns=["age"]), VARIANT_DOMAINS)

    def test_unmapped_variant(self):
        frame = _frame(variant_label=["v2", "v1", "v1", "v9", "v2"])
        with pytest.raises(IngestionError, match="v9"):
            ingest(frame, VARIANT_DOMAINS)

    def test_contradicting_domain(self):
        frame = _frame(domain_label=["D1", "D1", "D2", "D2", "D1"])
        with pytest.raises(IngestionError, match="contradicts"):
            ingest(frame, VARIANT_DOMAINS)

    def test_missing_values(self):
        frame = _frame(threshold=[35.0, None, 20.0, 70.0, 15.0])
        with pytest.raises(IngestionError, match="missing values"):
            ingest(frame, VARIANT_DOMAINS)

    def test_non_numeric_age(self):
        frame = _frame(age=["30", "forty", "20", "55", "10"])
        with pytest.raises(IngestionError, match="Non-numeric"):
            ingest(frame, VARIANT_DOMAINS)

    def test_negative_age(self):
        frame = _frame(age=[30.0, -1.0, 20.0, 55.0, 10.0])
        with pytest.raises(IngestionError, match="non-negative"):
            ingest(frame, VARIANT_DOMAINS)

    def test_empty_mapping(self):
        with pytest.raises(IngestionError):
            ingest(_frame(), {})

    def test_not_a_frame(self):
        with pytest.raises(IngestionError):
            ingest({"age": [1.0]}, VARIANT_DOMAINS)

    def test_out_of_range_threshold_warns(self):
        frame = _frame(threshold=[35.0, 50.0, -5.0, 70.0, 15.0])
        with pytest.warns(UserWarning, match="clinical range"):
            ingest(frame, VARIANT_DOMAINS)


# ═══════════════════════════════════════════════════════════════════════════
# Dataset
# ═══════════════════════════════════════════════════════════════════════════

class TestFittableDataset:

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="threshold"):
            FittableDataset([1, 2], [1], ["a", "b"], ["d", "d"], ["v", "v"])

    def test_partition_by_domain_aggregates_variants(self):
        ds = ingest(_frame(), VARIANT_DOMAINS)
        parts = ds.partition("domain")
        assert list(parts) == ["D1", "D2"]
        assert len(parts["D1"]) == 4
        assert set(parts["D1"].variant) == {"v1", "v2"}

    def test_partition_by_variant(self):
        ds = ingest(_frame(), VARIANT_DOMAINS)
        parts = ds.partition("variant")
        assert {g: len(p) for g, p in parts.items()} == {"v1": 2, "v2": 2, "v3": 1}
        assert parts["v3"].name.endswith("[variant=v3]")

    def test_unknown_key(self):
        ds = ingest(_frame(), VARIANT_DOMAINS)
        with pytest.raises(ValueError, match="Unknown grouping key"):
            ds.labels("subject")

    def test_iteration_yields_observations(self):
        ds = ingest(_frame(), VARIANT_DOMAINS)
        obs = list(ds)
        assert all(isinstance(o, Observation) for o in obs)
        assert obs[0] == Observation("s1", "D1", "v1", 20.0, 20.0)

    def test_observation_is_immutable(self):
        o = Observation("s1", "D1", "v1", 20.0, 20.0)
        with pytest.raises(AttributeError):
            o.age = 30.0

    def test_fingerprint_identifies_observations(self):
        ds = ingest(_frame(), VARIANT_DOMAINS)
        shuffled = ingest(_frame().iloc[::-1], VARIANT_DOMAINS)
        changed = ingest(_frame(threshold=[35.0, 50.0, 20.0, 71.0, 15.0]), VARIANT_DOMAINS)
        assert ds.fingerprint == shuffled.fingerprint
        assert ds.fingerprint != changed.fingerprint

    def test_to_frame_round_trip(self):
        ds = ingest(_frame(), VARIANT_DOMAINS)
        again = ingest(ds.to_frame(), VARIANT_DOMAINS)
        np.testing.assert_array_equal(again.age, ds.age)


class TestSimulateCohort:

    def test_shape(self):
        frame = simulate_cohort(
            {"a": (0.1, 50.0), "b": (0.05, 60.0), "c": (0.08, 40.0)},
            n_subjects=30, ages_per_subject=3, seed=1,
        )
        assert len(frame) == 270
        assert frame.groupby("subject_id").size().eq(3).all()
        assert set(frame["domain_label"]) == {"a", "b", "c"}

    def test_reproducible(self):
        a = simulate_cohort({"a": (0.1, 50.0)}, seed=3)
        b = simulate_cohort({"a": (0.1, 50.0)}, seed=3)
        pd.testing.assert_frame_equal(a, b)

    def test_noise_free_values_follow_curve(self):
        frame = simulate_cohort({"a": (0.1, 50.0)}, noise=0.0, seed=0)
        expected = 130.0 / (1.0 + np.exp(-0.1 * (frame["age"] - 50.0)))
        np.testing.assert_allclose(frame["threshold"], expected)
