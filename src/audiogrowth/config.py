#########################################################################################
##
##                               ANALYSIS CONFIGURATION
##                                   (config.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

import numpy as np


# DEFAULTS ==============================================================================

#: Clinical ceiling of the threshold scale (dB HL), used as fixed asymptote.
DEFAULT_ASYMPTOTE = 130.0

#: Threshold crossing (dB HL) that defines the onset age.
DEFAULT_ONSET_THRESHOLD = 25.0

DEFAULT_SAMPLING_BOUNDS = {
    "scale": (0.01, 0.3),
    "midpoint": (5.0, 120.0),
    "asymptote": (60.0, 130.0),
}

DEFAULT_LOWER_BOUNDS = {
    "scale": 0.001,
    "midpoint": 5.0,
    "asymptote": 1.0,
}

_CI_METHODS = ("wald", "profile")
_SUBSTITUTIONS = ("marginal", "joint")


# CONFIG ================================================================================

@dataclass
class AnalysisConfig:
    """Settings for one analysis run.

    Parameters
    ----------
    asymptote : float
        Fixed asymptote ``A`` of the two-parameter model.
    onset_threshold : float
        Threshold ``T`` whose crossing age is reported as onset age.
    fit_asymptote : bool
        Use the three-parameter model with a free asymptote.
    n_starts : int
        Number of random starts per fit.
    seed : int
        Base seed for start-point sampling.
    min_observations : int
        A partition is fitted only with strictly more observations than this.
    confidence_level : float
        Coverage of the parameter intervals.
    ci_method : str
        ``"wald"`` (asymptotic) or ``"profile"`` (profile likelihood).
    substitution : str
        Endpoint substitution policy for derived metrics, ``"marginal"`` or
        ``"joint"``.
    sampling_bounds : dict
        Start-point sampling box overrides per parameter name. Parameters not
        named use ``DEFAULT_SAMPLING_BOUNDS``, except the midpoint, which is
        sampled over the observed age range of each fitted dataset.
    lower_bounds : dict
        Hard lower bounds per parameter name.
    max_nfev : int
        Evaluation cap for a single optimizer start.
    n_workers : int
        Worker threads for group-level fitting (1 runs serially).
    all_pairs : bool
        Compare every pair of nested models instead of adjacent pairs only.
    """

    asymptote: float = DEFAULT_ASYMPTOTE
    onset_threshold: float = DEFAULT_ONSET_THRESHOLD
    fit_asymptote: bool = False
    n_starts: int = 500
    seed: int = 0
    min_observations: int = 5
    confidence_level: float = 0.95
    ci_method: str = "wald"
    substitution: str = "marginal"
    sampling_bounds: dict = field(default_factory=dict)
    lower_bounds: dict = field(default_factory=lambda: dict(DEFAULT_LOWER_BOUNDS))
    max_nfev: int = 200
    n_workers: int = 1
    all_pairs: bool = False


    def __post_init__(self) -> None:
        if not np.isfinite(self.asymptote) or self.asymptote <= 0:
            raise ValueError(f"asymptote must be positive, got {self.asymptote}")
        if not 0.0 < self.onset_threshold < self.asymptote:
            raise ValueError(
                f"onset_threshold must lie in (0, {self.asymptote}), "
                f"got {self.onset_threshold}"
            )
        if self.n_starts < 1:
            raise ValueError(f"n_starts must be >= 1, got {self.n_starts}")
        if self.min_observations < 0:
            raise ValueError("min_observations must be non-negative")
        if not 0.0 < self.confidence_level < 1.0:
            raise ValueError(
                f"confidence_level must lie in (0, 1), got {self.confidence_level}"
            )
        if self.ci_method not in _CI_METHODS:
            raise ValueError(f"ci_method must be one of {_CI_METHODS}")
        if self.substitution not in _SUBSTITUTIONS:
            raise ValueError(f"substitution must be one of {_SUBSTITUTIONS}")
        if self.max_nfev < 1:
            raise ValueError("max_nfev must be >= 1")
        if self.n_workers < 1:
            raise ValueError("n_workers must be >= 1")

        # Partial overrides keep the defaults for unnamed parameters
        self.lower_bounds = {**DEFAULT_LOWER_BOUNDS, **self.lower_bounds}

        for name, (lo, hi) in self.sampling_bounds.items():
            if not lo < hi:
                raise ValueError(
                    f"sampling bounds for '{name}' are inverted: ({lo}, {hi})"
                )


    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "AnalysisConfig":
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")

        kwargs = dict(values)
        if "sampling_bounds" in kwargs:
            kwargs["sampling_bounds"] = {
                k: tuple(v) for k, v in kwargs["sampling_bounds"].items()
            }
        return cls(**kwargs)
