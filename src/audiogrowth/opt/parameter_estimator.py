#########################################################################################
##
##                      MULTI-START NONLINEAR LEAST-SQUARES ESTIMATION
##                              (parameter_estimator.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import numpy as np
import scipy.optimize as sci_opt

from ..config import DEFAULT_LOWER_BOUNDS
from ..errors import ConvergenceError, DegenerateDataError, InsufficientDataError
from ..utils.logger import LoggerManager

log = LoggerManager().get_logger("opt.estimator")

# Failures that discard a single optimizer start instead of aborting the fit
_START_FAILURES = (np.linalg.LinAlgError, ValueError, FloatingPointError)


__all__ = [
    "Parameter",
    "GroupedParameterization",
    "EstimatorResult",
    "FitResult",
    "ParameterEstimator",
    "fit_multistart",
]


# PARAMETER DECLARATION =================================================================

class Parameter:
    """Estimation parameter with hard bounds and a start-point sampling box.

    Parameters
    ----------
    name : str
        Parameter identifier.
    value : float
        Default initial value for single-start fits.
    bounds : tuple[float, float]
        Hard lower / upper bounds enforced by the optimizer.
    sampling : tuple[float, float], optional
        Box from which random start points are drawn uniformly. Must be
        finite; clipped to ``bounds`` where it reaches outside them.
        Defaults to ``bounds`` when those are finite.

    Example
    -------
    .. code-block:: python

        scale = Parameter("scale", value=0.1, bounds=(0.001, np.inf),
                          sampling=(0.01, 0.3))
        rng = np.random.default_rng(0)
        scale.draw(rng, size=5)
    """

    def __init__(
        self,
        name: str,
        value: float = 1.0,
        bounds: tuple[float, float] = (-np.inf, np.inf),
        sampling: tuple[float, float] | None = None,
    ):
        self.name = name

        lo, hi = (float(b) for b in bounds)
        if lo > hi:
            raise ValueError(f"Parameter '{name}': lower bound {lo} > upper bound {hi}")
        self.bounds = (lo, hi)

        if sampling is None:
            sampling = self.bounds
        s_lo, s_hi = (float(s) for s in sampling)
        if not (np.isfinite(s_lo) and np.isfinite(s_hi)):
            raise ValueError(f"Parameter '{name}': sampling bounds must be finite")
        if s_lo > s_hi:
            raise ValueError(
                f"Parameter '{name}': sampling lower bound {s_lo} > upper bound {s_hi}"
            )
        if s_lo < lo or s_hi > hi:
            warnings.warn(
                f"Parameter '{name}': sampling box ({s_lo}, {s_hi}) clipped to "
                f"bounds ({lo}, {hi})",
                UserWarning,
                stacklevel=2,
            )
            s_lo, s_hi = max(s_lo, lo), min(s_hi, hi)
            if s_lo > s_hi:
                raise ValueError(
                    f"Parameter '{name}': sampling box does not intersect bounds"
                )
        self.sampling = (s_lo, s_hi)

        self._value = float(value)
        if float(value) < lo or float(value) > hi:
            warnings.warn(
                f"Parameter '{name}': initial value {value} outside bounds ({lo}, {hi})",
                UserWarning,
                stacklevel=2,
            )


    @property
    def value(self) -> float:
        """Default initial value."""
        return self._value


    @value.setter
    def value(self, new_value: float) -> None:
        self.set(new_value)


    def __call__(self) -> float:
        return self._value


    def set(self, value: float) -> None:
        """Set the default initial value."""
        self._value = float(value)


    def draw(self, rng: np.random.Generator, size: int | None = None):
        """Draw start values uniformly from the sampling box."""
        return rng.uniform(self.sampling[0], self.sampling[1], size=size)


    def copy(self, name: str | None = None) -> "Parameter":
        """Return an independent copy, optionally renamed."""
        return Parameter(
            name if name is not None else self.name,
            value=self._value,
            bounds=self.bounds,
            sampling=self.sampling,
        )


    def __repr__(self) -> str:
        return (
            f"Parameter(name={self.name!r}, value={self._value}, "
            f"bounds={self.bounds}, sampling={self.sampling})"
        )


# PARAMETERIZATION ======================================================================

class GroupedParameterization:
    """Map a model onto observations with shared and per-group parameters.

    Shared parameters take one value for all observations; each parameter
    named in ``per_group`` takes one value per group label. The optimizer
    vector lists the shared parameters first (in model order), then the
    per-group parameters group by group.

    Parameters
    ----------
    model : LogisticModel
        Curve family.
    key : str, optional
        Grouping key of the dataset ("domain" or "variant").
    groups : sequence of str
        Group labels, in the order their parameters appear in the vector.
    per_group : sequence of str
        Model parameter names estimated separately for each group.

    Example
    -------
    .. code-block:: python

        # shared scale, one midpoint per domain
        p = GroupedParameterization(model, key="domain",
                                    groups=["A", "B"], per_group=["midpoint"])
        p.parameter_names   # ('scale', 'midpoint[A]', 'midpoint[B]')
    """

    def __init__(
        self,
        model,
        key: str | None = None,
        groups: Sequence[str] = (),
        per_group: Sequence[str] = (),
    ):
        unknown = [n for n in per_group if n not in model.param_names]
        if unknown:
            raise ValueError(f"Unknown per-group parameter(s) {unknown} for {model!r}")

        self.model = model
        self.per_group = tuple(n for n in model.param_names if n in set(per_group))
        self.key = key
        self.groups = tuple(str(g) for g in groups)

        if self.per_group and (key is None or not self.groups):
            raise ValueError("per-group parameters require a grouping key and groups")
        if len(set(self.groups)) != len(self.groups):
            raise ValueError("group labels must be unique")

        self.shared = tuple(n for n in model.param_names if n not in self.per_group)


    @property
    def label(self) -> str:
        """Short human-readable name, e.g. ``"per-group midpoint"``."""
        if not self.per_group:
            return "shared"
        return "per-group " + "+".join(self.per_group)


    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Names in optimizer-vector order."""
        names = list(self.shared)
        for g in self.groups:
            names.extend(f"{n}[{g}]" for n in self.per_group)
        return tuple(names)


    @property
    def n_params(self) -> int:
        return len(self.shared) + len(self.per_group) * len(self.groups)


    def __repr__(self) -> str:
        return (
            f"GroupedParameterization({self.model!r}, key={self.key!r}, "
            f"groups={list(self.groups)}, per_group={list(self.per_group)})"
        )


    def parameters(
        self,
        sampling_bounds: Mapping[str, tuple[float, float]] | None = None,
        lower_bounds: Mapping[str, float] | None = None,
        upper_bounds: Mapping[str, float] | None = None,
    ) -> list[Parameter]:
        """Flattened estimation parameters built from the model defaults."""
        base = {
            p.name: p
            for p in self.model.parameters(sampling_bounds, lower_bounds, upper_bounds)
        }
        params = [base[n].copy() for n in self.shared]
        for g in self.groups:
            params.extend(base[n].copy(f"{n}[{g}]") for n in self.per_group)
        return params


    def group_index(self, dataset) -> np.ndarray:
        """Position of every observation's group in :attr:`groups`."""
        n = len(dataset)
        if not self.per_group:
            return np.zeros(n, dtype=int)

        lookup = {g: i for i, g in enumerate(self.groups)}
        labels = dataset.labels(self.key)
        try:
            return np.array([lookup[str(lbl)] for lbl in labels], dtype=int)
        except KeyError as exc:
            raise ValueError(
                f"Dataset label {exc.args[0]!r} not among groups {list(self.groups)}"
            ) from None


    def expand(self, x: np.ndarray, group_index: np.ndarray) -> tuple:
        """Model-ordered parameter vector per observation.

        Shared entries are scalars, per-group entries arrays aligned with
        ``group_index``.
        """
        x = np.asarray(x, dtype=float)
        n_s, n_g = len(self.shared), len(self.per_group)
        values = dict(zip(self.shared, x[:n_s]))
        if n_g:
            block = x[n_s:].reshape(len(self.groups), n_g)
            for k, name in enumerate(self.per_group):
                values[name] = block[group_index, k]
        return tuple(values[n] for n in self.model.param_names)


    def theta(self, x: np.ndarray, group: str | None = None) -> tuple[float, ...]:
        """Model-ordered parameters of one group (or of the shared fit)."""
        x = np.asarray(x, dtype=float)
        if not self.per_group:
            return tuple(float(v) for v in x)
        if group is None:
            raise ValueError("group is required for a per-group parameterization")

        idx = np.array([self.groups.index(str(group))])
        return tuple(float(np.ravel(v)[0]) for v in self.expand(x, idx))


    def predict(self, x: np.ndarray, age, group_index: np.ndarray) -> np.ndarray:
        """Curve values at ``age`` for the given per-observation groups."""
        return self.model.forward(age, *self.expand(x, group_index))


    def is_nested_in(self, other: "GroupedParameterization") -> bool:
        """True if ``other`` strictly extends this parameterization."""
        return (
            self.model == other.model
            and set(self.per_group) < set(other.per_group)
            and (not self.per_group or (self.key, self.groups) == (other.key, other.groups))
        )


# ESTIMATOR RESULT ======================================================================

@dataclass
class EstimatorResult:
    """Outcome of a single optimizer start."""

    x: np.ndarray
    cost: float
    nfev: int
    success: bool
    message: str
    jac: np.ndarray | None = None
    active_mask: np.ndarray | None = None


    @property
    def rss(self) -> float:
        """Residual sum of squares (``least_squares`` reports half of it)."""
        return 2.0 * self.cost


    def __repr__(self) -> str:
        status = "SUCCESS" if self.success else "FAILED"
        return (
            f"EstimatorResult({status}, cost={self.cost:.4g}, "
            f"nfev={self.nfev}, x={self.x})"
        )


@dataclass(frozen=True, eq=False)
class FitResult:
    """Best converged fit of a multi-start run.

    Attributes
    ----------
    parameters : dict
        ``{name: estimate}`` in optimizer-vector order.
    x : np.ndarray
        Estimates as a vector.
    covariance : np.ndarray or None
        ``s² (JᵀJ)⁻¹``; ``None`` when ``JᵀJ`` is not positive definite.
    jacobian : np.ndarray
        Residual Jacobian at the optimum, shape ``(n_observations, n_params)``.
    rss : float
        Residual sum of squares.
    n_observations : int
    converged : bool
    n_starts, n_converged : int
        Starts attempted and starts that converged.
    seed : int or None
        Seed used for start-point sampling.
    dataset : str
        Name of the source dataset.
    parameterization : GroupedParameterization
    active_mask : np.ndarray
        True where the estimate sits on a hard bound.
    data_digest : str
        Fingerprint of the observations the fit was made on, empty if unknown.
    """

    parameters: dict
    x: np.ndarray
    covariance: np.ndarray | None
    jacobian: np.ndarray
    rss: float
    n_observations: int
    converged: bool
    message: str
    nfev: int
    n_starts: int
    n_converged: int
    seed: int | None
    dataset: str
    parameterization: Any
    active_mask: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))
    data_digest: str = ""


    @property
    def model(self):
        return self.parameterization.model


    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(self.parameters)


    @property
    def n_params(self) -> int:
        return len(self.parameters)


    @property
    def dof(self) -> int:
        """Residual degrees of freedom ``n - p``."""
        return self.n_observations - self.n_params


    @property
    def sigma2(self) -> float:
        """Residual variance ``RSS / (n - p)``."""
        return self.rss / self.dof if self.dof > 0 else np.nan


    @property
    def aic(self) -> float:
        """Gaussian least-squares AIC, counting the error variance."""
        n, k = self.n_observations, self.n_params + 1
        return n * np.log(self.rss / n) + 2 * k if self.rss > 0 else -np.inf


    @property
    def bic(self) -> float:
        n, k = self.n_observations, self.n_params + 1
        return n * np.log(self.rss / n) + k * np.log(n) if self.rss > 0 else -np.inf


    def theta(self, group: str | None = None) -> tuple[float, ...]:
        """Model-ordered parameters, for one group of a per-group fit."""
        return self.parameterization.theta(self.x, group)


    def display(self) -> None:
        """Print a summary table of the estimates."""
        print("=" * 60)
        print(f"Fit of {self.parameterization.label} {self.model.name} to {self.dataset}")
        print("=" * 60)
        se = (
            np.sqrt(np.diag(self.covariance))
            if self.covariance is not None
            else np.full(self.n_params, np.nan)
        )
        for (name, val), s, at_bound in zip(self.parameters.items(), se, self.active_mask):
            flag = "  (at bound)" if at_bound else ""
            print(f"  {name:28s} = {val:12.6g}   se = {s:.4g}{flag}")
        print("-" * 60)
        print(f"  RSS = {self.rss:.6g}   n = {self.n_observations}   df = {self.dof}")
        print(f"  starts converged: {self.n_converged}/{self.n_starts}")
        print("=" * 60)


def _with_observed_midpoint(dataset, sampling_bounds, lower_bounds):
    """Default the midpoint start box to the observed age range."""
    sampling = dict(sampling_bounds or {})
    if "midpoint" in sampling or len(dataset) == 0:
        return sampling

    floor = {**DEFAULT_LOWER_BOUNDS, **(lower_bounds or {})}.get("midpoint", -np.inf)
    lo = max(float(np.min(dataset.age)), floor)
    hi = float(np.max(dataset.age))
    if lo < hi:
        sampling["midpoint"] = (lo, hi)
    return sampling


# PARAMETER ESTIMATOR ===================================================================

class ParameterEstimator:
    """Least-squares fitting of a logistic model to one dataset.

    Parameters
    ----------
    dataset : FittableDataset
        Observations to fit.
    model : LogisticModel or GroupedParameterization
        Curve family; a bare model is fitted with all parameters shared.
    sampling_bounds : mapping, optional
        Start-point sampling box per model parameter name. Without a
        ``"midpoint"`` entry the midpoint is sampled over the observed age
        range of ``dataset``.
    lower_bounds, upper_bounds : mapping, optional
        Hard bounds per model parameter name.
    parameters : list[Parameter], optional
        Explicit parameter list overriding the defaults; must follow the
        parameterization's vector order.

    Example
    -------
    .. code-block:: python

        est = ParameterEstimator(dataset, FixedAsymptoteLogistic(130.0))
        fit = est.fit_multistart(n_starts=500, seed=1)
        fit.display()
    """

    def __init__(
        self,
        dataset,
        model,
        *,
        sampling_bounds: Mapping[str, tuple[float, float]] | None = None,
        lower_bounds: Mapping[str, float] | None = None,
        upper_bounds: Mapping[str, float] | None = None,
        parameters: list[Parameter] | None = None,
    ):
        if isinstance(model, GroupedParameterization):
            self.parameterization = model
        else:
            self.parameterization = GroupedParameterization(model)

        self.dataset = dataset

        if parameters is None:
            sampling_bounds = _with_observed_midpoint(dataset, sampling_bounds, lower_bounds)
            parameters = self.parameterization.parameters(
                sampling_bounds, lower_bounds, upper_bounds
            )
        if len(parameters) != self.parameterization.n_params:
            raise ValueError(
                f"Expected {self.parameterization.n_params} parameters, "
                f"got {len(parameters)}"
            )
        self.parameters: list[Parameter] = list(parameters)

        self._group_index = self.parameterization.group_index(dataset)


    @property
    def model(self):
        return self.parameterization.model


    @property
    def n_params(self) -> int:
        return len(self.parameters)


    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """Hard lower and upper bounds as arrays."""
        lower = np.array([p.bounds[0] for p in self.parameters], dtype=float)
        upper = np.array([p.bounds[1] for p in self.parameters], dtype=float)
        return lower, upper


    # OPTIMIZATION ENGINE ---------------------------------------------------------------

    def _validate_fit_inputs(self) -> None:
        """Reject datasets that cannot support the parameter count."""
        n = len(self.dataset)
        if n <= self.n_params:
            raise InsufficientDataError(
                f"{self.dataset.name}: {n} observation(s) for {self.n_params} "
                f"free parameter(s)",
                n_observations=n,
            )

        if np.ptp(self.dataset.age) == 0.0:
            raise DegenerateDataError(
                f"{self.dataset.name}: all {n} observations share age "
                f"{self.dataset.age[0]}"
            )

        if self.parameterization.per_group:
            counts = np.bincount(self._group_index, minlength=len(self.parameterization.groups))
            empty = [g for g, c in zip(self.parameterization.groups, counts) if c == 0]
            if empty:
                raise InsufficientDataError(
                    f"{self.dataset.name}: no observations for group(s) {empty}",
                    n_observations=n,
                )


    def predict(self, x: np.ndarray, age=None) -> np.ndarray:
        """Model values at the dataset ages (or at ``age`` for a shared fit)."""
        if age is None:
            return self.parameterization.predict(x, self.dataset.age, self._group_index)
        if self.parameterization.per_group:
            raise ValueError("age override requires a shared parameterization")
        return self.model.forward(age, *np.asarray(x, dtype=float))


    def residuals(self, x: np.ndarray) -> np.ndarray:
        """Residual vector ``f(age; x) - threshold``."""
        return self.predict(x) - self.dataset.threshold


    def fit(
        self,
        *,
        x0: Sequence[float] | None = None,
        max_nfev: int = 200,
        loss: str = "linear",
        verbose: int = 0,
    ) -> EstimatorResult:
        """Run one bounded least-squares minimization from ``x0``.

        Parameters
        ----------
        x0 : sequence of float, optional
            Start vector; defaults to the parameters' initial values.
        max_nfev : int
            Evaluation cap; reaching it counts as non-convergence.
        loss : str
            Loss function for ``scipy.optimize.least_squares``. Residual sums
            of squares and F-tests assume ``"linear"``.
        verbose : int
            Verbosity passed to SciPy.
        """
        if x0 is None:
            x0 = [p.value for p in self.parameters]
        lower, upper = self.bounds()
        x0_arr = np.clip(np.asarray(x0, dtype=float), lower, upper)

        res = sci_opt.least_squares(
            self.residuals,
            x0=x0_arr,
            bounds=(lower, upper),
            method="trf",
            loss=loss,
            max_nfev=int(max_nfev),
            verbose=int(verbose),
        )

        return EstimatorResult(
            x=res.x,
            cost=float(res.cost),
            nfev=int(res.nfev),
            success=bool(res.success),
            message=str(res.message),
            jac=np.asarray(res.jac, dtype=float),
            active_mask=np.asarray(res.active_mask),
        )


    # MULTI-START -----------------------------------------------------------------------

    def draw_starts(self, n_starts: int, seed: int | None = None) -> np.ndarray:
        """Draw ``n_starts`` start vectors uniformly from the sampling boxes."""
        rng = np.random.default_rng(seed)
        starts = np.empty((int(n_starts), self.n_params))
        for j, p in enumerate(self.parameters):
            starts[:, j] = p.draw(rng, size=int(n_starts))
        return starts


    def _run_start(self, index: int, x0: np.ndarray, max_nfev: int) -> EstimatorResult | None:
        try:
            with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
                res = self.fit(x0=x0, max_nfev=max_nfev)
        except _START_FAILURES as exc:
            log.debug("start %d discarded: %s: %s", index, type(exc).__name__, exc)
            return None

        if not res.success or not np.isfinite(res.cost):
            log.debug("start %d discarded: %s", index, res.message)
            return None
        return res


    def fit_multistart(
        self,
        n_starts: int = 500,
        seed: int | None = 0,
        *,
        max_nfev: int = 200,
        n_workers: int = 1,
    ) -> FitResult:
        """Fit from ``n_starts`` random starts and keep the lowest RSS.

        Starts that raise or fail to converge are discarded. The result is
        deterministic for a fixed ``seed``: all starts are drawn before any
        optimization, and ties are resolved by start index.

        Parameters
        ----------
        n_starts : int
            Number of random starts.
        seed : int, optional
            Seed of the start-point sampler.
        max_nfev : int
            Evaluation cap per start.
        n_workers : int
            Threads used to run the starts.

        Returns
        -------
        FitResult

        Raises
        ------
        InsufficientDataError, DegenerateDataError
            Dataset rejected before optimization.
        ConvergenceError
            No start converged.
        """
        if n_starts < 1:
            raise ValueError(f"n_starts must be >= 1, got {n_starts}")
        self._validate_fit_inputs()

        starts = self.draw_starts(n_starts, seed)

        if n_workers > 1:
            with ThreadPoolExecutor(max_workers=n_workers) as pool:
                outcomes = list(pool.map(
                    lambda item: self._run_start(item[0], item[1], max_nfev),
                    enumerate(starts),
                ))
        else:
            outcomes = [self._run_start(i, x0, max_nfev) for i, x0 in enumerate(starts)]

        converged = [(res.rss, i, res) for i, res in enumerate(outcomes) if res is not None]
        if not converged:
            raise ConvergenceError(
                f"{self.dataset.name}: none of {n_starts} starts converged",
                n_starts=n_starts,
            )

        _, best_idx, best = min(converged, key=lambda item: (item[0], item[1]))
        log.debug(
            "%s: %d/%d starts converged, best start %d with RSS %.6g",
            self.dataset.name, len(converged), n_starts, best_idx, best.rss,
        )
        return self._make_result(best, n_starts, len(converged), seed)


    def _make_result(
        self,
        best: EstimatorResult,
        n_starts: int,
        n_converged: int,
        seed: int | None,
    ) -> FitResult:
        from .sensitivity import covariance_matrix

        n = len(self.dataset)
        rss = best.rss
        covariance = covariance_matrix(best.jac, rss, n - self.n_params)

        for arr in (best.x, best.jac):
            arr.setflags(write=False)
        if covariance is not None:
            covariance.setflags(write=False)

        return FitResult(
            parameters=dict(zip(self.parameterization.parameter_names, map(float, best.x))),
            x=best.x,
            covariance=covariance,
            jacobian=best.jac,
            rss=rss,
            n_observations=n,
            converged=True,
            message=best.message,
            nfev=best.nfev,
            n_starts=n_starts,
            n_converged=n_converged,
            seed=seed,
            dataset=self.dataset.name,
            parameterization=self.parameterization,
            active_mask=np.asarray(best.active_mask) != 0,
            data_digest=self.dataset.fingerprint,
        )


    # PROFILING -------------------------------------------------------------------------

    def profile_rss(
        self,
        x_ref: np.ndarray,
        index: int,
        value: float,
        *,
        max_nfev: int = 200,
    ) -> float:
        """Minimum RSS with parameter ``index`` held at ``value``.

        The remaining parameters are re-optimized from ``x_ref``. Returns NaN
        when the constrained fit fails.
        """
        x_ref = np.asarray(x_ref, dtype=float)
        lower, upper = self.bounds()
        free = np.arange(self.n_params) != index

        def _full(x_free):
            x = x_ref.copy()
            x[index] = value
            x[free] = x_free
            return x

        try:
            with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
                if not free.any():
                    r = self.residuals(_full(np.empty(0)))
                    return float(r @ r)
                res = sci_opt.least_squares(
                    lambda xf: self.residuals(_full(xf)),
                    x0=np.clip(x_ref[free], lower[free], upper[free]),
                    bounds=(lower[free], upper[free]),
                    method="trf",
                    max_nfev=int(max_nfev),
                )
        except _START_FAILURES as exc:
            log.debug("profile of %s at %g failed: %s",
                      self.parameters[index].name, value, exc)
            return np.nan

        return 2.0 * float(res.cost) if np.isfinite(res.cost) else np.nan


    # SENSITIVITY -----------------------------------------------------------------------

    def sensitivity(self, result: FitResult):
        """Covariance, correlation and conditioning of ``result``.

        Returns
        -------
        SensitivityResult
        """
        from .sensitivity import SensitivityResult

        return SensitivityResult(
            jacobian=result.jacobian,
            param_names=list(result.parameter_names),
            param_values=result.x,
            rss=result.rss,
            dof=result.dof,
            active_mask=result.active_mask,
        )


# FUNCTIONAL INTERFACE ==================================================================

def fit_multistart(
    dataset,
    model,
    *,
    n_starts: int = 500,
    seed: int | None = 0,
    sampling_bounds: Mapping[str, tuple[float, float]] | None = None,
    lower_bounds: Mapping[str, float] | None = None,
    upper_bounds: Mapping[str, float] | None = None,
    max_nfev: int = 200,
    n_workers: int = 1,
) -> FitResult:
    """Best-of-N random-start fit of ``model`` to ``dataset``.

    See :meth:`ParameterEstimator.fit_multistart`.
    """
    est = ParameterEstimator(
        dataset,
        model,
        sampling_bounds=sampling_bounds,
        lower_bounds=lower_bounds,
        upper_bounds=upper_bounds,
    )
    return est.fit_multistart(n_starts, seed, max_nfev=max_nfev, n_workers=n_workers)
