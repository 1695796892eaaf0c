#########################################################################################
##
##                          SATURATING SIGMOID GROWTH MODELS
##                                   (models.py)
##
#########################################################################################

"""Logistic growth curves of threshold against age.

The two-parameter model keeps the asymptote ``A`` fixed at a domain constant::

    f(age; scale, midpoint) = A / (1 + exp(-scale * (age - midpoint)))

and has the closed-form inverse::

    g(y; scale, midpoint) = midpoint - ln(A / y - 1) / scale,   0 < y < A

The three-parameter model fits ``A`` as well.
"""

# IMPORTS ===============================================================================

from __future__ import annotations

from typing import Mapping, Sequence

import numpy as np
from scipy.special import expit

from .config import DEFAULT_ASYMPTOTE, DEFAULT_LOWER_BOUNDS, DEFAULT_SAMPLING_BOUNDS
from .errors import ModelConsistencyError
from .opt.parameter_estimator import Parameter


# BASE MODEL ============================================================================

class LogisticModel:
    """Base class of the logistic model family.

    Parameter vectors ``theta`` are ordered as :attr:`param_names`. All
    functions broadcast, so ``theta`` entries may be per-observation arrays.

    Parameters
    ----------
    asymptote : float
        Saturation level ``A``; the fixed value for the two-parameter model
        and the default initial value for the three-parameter model.
    """

    name = "logistic"
    param_names: tuple[str, ...] = ()

    def __init__(self, asymptote: float = DEFAULT_ASYMPTOTE):
        if not np.isfinite(asymptote) or asymptote <= 0:
            raise ValueError(f"asymptote must be positive, got {asymptote}")
        self.asymptote = float(asymptote)


    @property
    def n_params(self) -> int:
        """Number of free parameters."""
        return len(self.param_names)


    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.asymptote == other.asymptote


    def __hash__(self) -> int:
        return hash((type(self).__name__, self.asymptote))


    def __repr__(self) -> str:
        return f"{type(self).__name__}(asymptote={self.asymptote})"


    # PARAMETER HANDLING ----------------------------------------------------------------

    def asymptote_of(self, theta: Sequence) -> float | np.ndarray:
        """Saturation level for parameter vector ``theta``."""
        return self.asymptote


    def unpack(self, theta: Sequence) -> dict:
        """Map a parameter vector to ``{name: value}``."""
        if len(theta) != self.n_params:
            raise ValueError(
                f"{type(self).__name__} expects {self.n_params} parameters, "
                f"got {len(theta)}"
            )
        return dict(zip(self.param_names, theta))


    def pack(self, params: Mapping[str, float]) -> tuple:
        """Inverse of :meth:`unpack`."""
        missing = [n for n in self.param_names if n not in params]
        if missing:
            raise KeyError(f"Missing parameters: {missing}")
        return tuple(params[n] for n in self.param_names)


    def parameters(
        self,
        sampling_bounds: Mapping[str, tuple[float, float]] | None = None,
        lower_bounds: Mapping[str, float] | None = None,
        upper_bounds: Mapping[str, float] | None = None,
    ) -> list[Parameter]:
        """Default estimation parameters of this model.

        Hard bounds enforce ``scale > 0``; the midpoint is bounded below by a
        practical minimum age and otherwise left free.
        """
        sampling = {**DEFAULT_SAMPLING_BOUNDS, **(sampling_bounds or {})}
        lower = {**DEFAULT_LOWER_BOUNDS, **(lower_bounds or {})}
        upper = dict(upper_bounds or {})

        params = []
        for name in self.param_names:
            lo_s, hi_s = sampling[name]
            params.append(
                Parameter(
                    name,
                    value=0.5 * (lo_s + hi_s),
                    bounds=(lower.get(name, -np.inf), upper.get(name, np.inf)),
                    sampling=(lo_s, hi_s),
                )
            )
        return params


    # MODEL FUNCTIONS -------------------------------------------------------------------

    def forward(self, age, *theta) -> np.ndarray:
        """Evaluate the growth curve at ``age``."""
        scale, midpoint = theta[0], theta[1]
        A = self.asymptote_of(theta)
        age = np.asarray(age, dtype=float)
        return A * expit(np.asarray(scale) * (age - np.asarray(midpoint)))


    def inverse(self, y, *theta) -> np.ndarray:
        """Age at which the curve reaches ``y``; NaN outside ``(0, A)``."""
        scale, midpoint = np.asarray(theta[0], dtype=float), np.asarray(theta[1], dtype=float)
        A = np.asarray(self.asymptote_of(theta), dtype=float)
        y = np.asarray(y, dtype=float)

        valid = (y > 0.0) & (y < A) & (scale > 0.0)
        with np.errstate(divide="ignore", invalid="ignore"):
            out = midpoint - np.log(A / y - 1.0) / scale
        return np.where(valid, out, np.nan)


    def slope(self, *theta) -> np.ndarray:
        """Derivative at the inflection point, ``A * scale / 4``."""
        return np.asarray(self.asymptote_of(theta)) * np.asarray(theta[0]) / 4.0


    def verify_inverse(self, theta: Sequence, n: int = 101, atol: float = 1e-6) -> float:
        """Check ``forward(inverse(y)) == y`` on a grid inside ``(0, A)``.

        Returns
        -------
        float
            Largest absolute round-trip error.

        Raises
        ------
        ModelConsistencyError
            If the error exceeds ``atol``.
        """
        A = float(self.asymptote_of(theta))
        y = np.linspace(0.0, A, n + 2)[1:-1]
        y_back = self.forward(self.inverse(y, *theta), *theta)
        err = float(np.max(np.abs(y_back - y)))
        if not np.isfinite(err) or err > atol:
            raise ModelConsistencyError(
                f"{type(self).__name__}: forward(inverse(y)) deviates by {err:.3g} "
                f"for theta={tuple(theta)}"
            )
        return err


# CONCRETE MODELS =======================================================================

class FixedAsymptoteLogistic(LogisticModel):
    """Two-parameter logistic curve with the asymptote held at a constant."""

    name = "logistic2"
    param_names = ("scale", "midpoint")


class FreeAsymptoteLogistic(LogisticModel):
    """Three-parameter logistic curve with a fitted asymptote."""

    name = "logistic3"
    param_names = ("scale", "midpoint", "asymptote")

    def asymptote_of(self, theta: Sequence) -> float | np.ndarray:
        return theta[2]


    def parameters(self, sampling_bounds=None, lower_bounds=None, upper_bounds=None):
        params = super().parameters(sampling_bounds, lower_bounds, upper_bounds)
        params[2].value = float(np.clip(self.asymptote, *params[2].sampling))
        return params


def make_model(asymptote: float = DEFAULT_ASYMPTOTE, fit_asymptote: bool = False) -> LogisticModel:
    """Return the two- or three-parameter model."""
    if fit_asymptote:
        return FreeAsymptoteLogistic(asymptote)
    return FixedAsymptoteLogistic(asymptote)
