#########################################################################################
##
##                         LONGITUDINAL OBSERVATION CONTAINERS
##                                    (data.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

import hashlib
import warnings
from dataclasses import dataclass
from typing import Iterator, Mapping

import numpy as np
import pandas as pd

from .errors import IngestionError


# CONSTANTS =============================================================================

REQUIRED_COLUMNS = ["subject_id", "variant_label", "age", "threshold"]

GROUP_KEYS = ("domain", "variant")

#: Clinical range of hearing thresholds in dB HL.
THRESHOLD_RANGE = (0.0, 130.0)


# OBSERVATION ===========================================================================

@dataclass(frozen=True)
class Observation:
    """A single threshold measurement of one subject at one age."""

    subject_id: str
    domain: str
    variant: str
    age: float
    threshold: float


# DATASET ===============================================================================

class FittableDataset:
    """Read-only collection of observations sharing a partition key.

    Observations are stored column-wise and sorted by ``(subject_id, age)``,
    so every subject's series is ordered by age.

    Parameters
    ----------
    age : array_like
        Age in years, shape (n,).
    threshold : array_like
        Threshold in dB, shape (n,).
    subject_id, domain, variant : array_like
        Labels per observation, shape (n,).
    name : str
        Identity of the dataset, carried into fit results.
    """

    def __init__(
        self,
        age,
        threshold,
        subject_id,
        domain,
        variant,
        name: str = "dataset",
    ):
        age = np.asarray(age, dtype=float).reshape(-1)
        threshold = np.asarray(threshold, dtype=float).reshape(-1)
        subject_id = np.asarray(subject_id, dtype=object).reshape(-1)
        domain = np.asarray(domain, dtype=object).reshape(-1)
        variant = np.asarray(variant, dtype=object).reshape(-1)

        n = age.size
        for label, arr in (("threshold", threshold), ("subject_id", subject_id),
                           ("domain", domain), ("variant", variant)):
            if arr.size != n:
                raise ValueError(
                    f"FittableDataset requires '{label}' with {n} entries, got {arr.size}"
                )

        order = np.lexsort((age, subject_id.astype(str)))

        self.age = age[order]
        self.threshold = threshold[order]
        self.subject_id = subject_id[order]
        self.domain = domain[order]
        self.variant = variant[order]
        self.name = str(name)

        for arr in (self.age, self.threshold, self.subject_id, self.domain, self.variant):
            arr.setflags(write=False)


    def __len__(self) -> int:
        return self.age.size


    def __iter__(self) -> Iterator[Observation]:
        for i in range(len(self)):
            yield Observation(
                subject_id=self.subject_id[i],
                domain=self.domain[i],
                variant=self.variant[i],
                age=float(self.age[i]),
                threshold=float(self.threshold[i]),
            )


    def __repr__(self) -> str:
        return (
            f"FittableDataset(name={self.name!r}, n={len(self)}, "
            f"subjects={self.n_subjects})"
        )


    @property
    def n_subjects(self) -> int:
        """Number of distinct subjects."""
        return len(set(self.subject_id))


    @property
    def fingerprint(self) -> str:
        """Digest of the sorted ``(age, threshold)`` columns, identifies the data itself."""
        h = hashlib.sha256(self.age.tobytes())
        h.update(self.threshold.tobytes())
        return h.hexdigest()


    def labels(self, key: str) -> np.ndarray:
        """Group label of every observation for ``key`` ("domain" or "variant")."""
        if key not in GROUP_KEYS:
            raise ValueError(f"Unknown grouping key '{key}', expected one of {GROUP_KEYS}")
        return getattr(self, key)


    def groups(self, key: str) -> list[str]:
        """Sorted distinct labels for ``key``."""
        return sorted(set(self.labels(key)), key=str)


    def subset(self, mask, name: str | None = None) -> "FittableDataset":
        """Dataset restricted to the observations selected by ``mask``."""
        mask = np.asarray(mask, dtype=bool)
        return FittableDataset(
            age=self.age[mask],
            threshold=self.threshold[mask],
            subject_id=self.subject_id[mask],
            domain=self.domain[mask],
            variant=self.variant[mask],
            name=name if name is not None else self.name,
        )


    def partition(self, key: str) -> dict[str, "FittableDataset"]:
        """Split into one dataset per label of ``key``, in sorted label order."""
        labels = self.labels(key)
        return {
            g: self.subset(labels == g, name=f"{self.name}[{key}={g}]")
            for g in self.groups(key)
        }


    def to_frame(self) -> pd.DataFrame:
        """Tabular view using the ingestion column names."""
        return pd.DataFrame({
            "subject_id": self.subject_id,
            "domain_label": self.domain,
            "variant_label": self.variant,
            "age": self.age,
            "threshold": self.threshold,
        })


# INGESTION =============================================================================

def ingest(
    frame: pd.DataFrame,
    variant_domains: Mapping[str, str],
    name: str = "cohort",
) -> FittableDataset:
    """Validate a measurement table and build a :class:`FittableDataset`.

    Parameters
    ----------
    frame : pandas.DataFrame
        Columns ``subject_id, variant_label, age, threshold`` and optionally
        ``domain_label``. Missing domain labels are derived from the mapping.
    variant_domains : mapping
        Many-to-one mapping from variant label to domain label.
    name : str
        Dataset identity.

    Raises
    ------
    IngestionError
        On missing columns, missing or non-numeric values, negative ages,
        unmapped variants, or domain labels that contradict the mapping.
    """
    if not isinstance(frame, pd.DataFrame):
        raise IngestionError(f"Expected a pandas DataFrame, got {type(frame).__name__}")

    missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
    if missing:
        raise IngestionError(f"Missing required columns: {missing}")

    if not variant_domains:
        raise IngestionError("variant_domains mapping is empty")

    cols = REQUIRED_COLUMNS + (["domain_label"] if "domain_label" in frame.columns else [])
    table = frame[cols]

    null_rows = table[REQUIRED_COLUMNS].isna().any(axis=1)
    if null_rows.any():
        raise IngestionError(
            f"{int(null_rows.sum())} row(s) with missing values, "
            f"first at index {table.index[null_rows.to_numpy()][0]!r}"
        )

    try:
        age = pd.to_numeric(table["age"]).to_numpy(dtype=float)
        threshold = pd.to_numeric(table["threshold"]).to_numpy(dtype=float)
    except (ValueError, TypeError) as exc:
        raise IngestionError(f"Non-numeric age or threshold: {exc}") from exc

    if not (np.all(np.isfinite(age)) and np.all(np.isfinite(threshold))):
        raise IngestionError("age and threshold must be finite")
    if np.any(age < 0):
        raise IngestionError("age must be non-negative")

    lo, hi = THRESHOLD_RANGE
    n_out = int(np.sum((threshold < lo) | (threshold > hi)))
    if n_out:
        warnings.warn(
            f"{n_out} threshold value(s) outside the clinical range {THRESHOLD_RANGE}",
            UserWarning,
            stacklevel=2,
        )

    variant = table["variant_label"].astype(str).to_numpy(dtype=object)
    mapping = {str(k): str(v) for k, v in variant_domains.items()}

    unmapped = sorted(set(variant) - set(mapping))
    if unmapped:
        raise IngestionError(f"Unmapped variant label(s): {unmapped}")

    domain = np.array([mapping[v] for v in variant], dtype=object)

    if "domain_label" in table.columns:
        given = table["domain_label"].astype(str).to_numpy(dtype=object)
        conflict = given != domain
        if conflict.any():
            i = int(np.flatnonzero(conflict)[0])
            raise IngestionError(
                f"domain_label '{given[i]}' contradicts mapping "
                f"'{variant[i]}' -> '{domain[i]}'"
            )

    return FittableDataset(
        age=age,
        threshold=threshold,
        subject_id=table["subject_id"].astype(str).to_numpy(dtype=object),
        domain=domain,
        variant=variant,
        name=name,
    )


# SYNTHETIC COHORTS =====================================================================

def simulate_cohort(
    groups: Mapping[str, tuple[float, float]],
    *,
    n_subjects: int = 30,
    ages_per_subject: int = 3,
    asymptote: float = 130.0,
    noise: float = 2.0,
    age_range: tuple[float, float] = (5.0, 85.0),
    follow_up: float = 4.0,
    seed: int | None = None,
) -> pd.DataFrame:
    """Draw a synthetic longitudinal cohort from known logistic curves.

    Each subject gets a uniform baseline age and ``ages_per_subject`` visits
    spaced ``follow_up`` years apart. Variant and domain labels both equal
    the group label.

    Parameters
    ----------
    groups : mapping
        ``{label: (scale, midpoint)}``.

    Returns
    -------
    pandas.DataFrame
        Columns ``subject_id, domain_label, variant_label, age, threshold``.
    """
    rng = np.random.default_rng(seed)
    rows = []
    for label, (scale, midpoint) in groups.items():
        for s in range(n_subjects):
            base = rng.uniform(*age_range)
            ages = base + follow_up * np.arange(ages_per_subject)
            mean = asymptote / (1.0 + np.exp(-scale * (ages - midpoint)))
            values = mean + rng.normal(0.0, noise, size=ages.size)
            for a, y in zip(ages, values):
                rows.append((f"{label}-{s:03d}", label, label, float(a), float(y)))

    return pd.DataFrame(
        rows, columns=["subject_id", "domain_label", "variant_label", "age", "threshold"]
    )
