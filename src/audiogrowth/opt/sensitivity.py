#########################################################################################
##
##                    PARAMETER UNCERTAINTY & CONFIDENCE INTERVALS
##                                 (sensitivity.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import scipy.linalg as sci_linalg
import scipy.optimize as sci_opt
import scipy.stats as sci_stats

from ..utils.logger import LoggerManager

log = LoggerManager().get_logger("opt.sensitivity")

# Smallest accepted ratio of FIM eigenvalues before the matrix counts as singular
_RCOND = 1e-12


# HELPERS ===============================================================================

def covariance_matrix(jacobian: np.ndarray, rss: float, dof: int) -> np.ndarray | None:
    """Asymptotic covariance ``s² (JᵀJ)⁻¹`` with ``s² = RSS / dof``.

    Returns ``None`` when ``dof <= 0`` or ``JᵀJ`` is not numerically
    positive definite (e.g. an optimum pinned against a bound, or a
    parameter the data cannot identify).
    """
    jac = np.asarray(jacobian, dtype=float)
    if dof <= 0 or jac.ndim != 2 or jac.shape[1] == 0:
        return None
    if not np.all(np.isfinite(jac)):
        return None

    fim = jac.T @ jac
    eig = np.linalg.eigvalsh(fim)
    if eig[0] <= _RCOND * max(eig[-1], 0.0) or eig[-1] <= 0.0:
        return None

    try:
        factor = sci_linalg.cho_factor(fim, lower=True)
    except np.linalg.LinAlgError:
        return None

    cov = (rss / dof) * sci_linalg.cho_solve(factor, np.eye(fim.shape[0]))
    return cov if np.all(np.isfinite(cov)) else None


def _build_stats(fim: np.ndarray, covariance: np.ndarray | None) -> dict:
    """Standard errors, correlation, eigen-decomposition and conditioning."""
    n_p = fim.shape[0]

    if covariance is not None:
        std_errors = np.sqrt(np.maximum(np.diag(covariance), 0.0))
    else:
        std_errors = np.full(n_p, np.nan)

    corr = np.full((n_p, n_p), np.nan)
    if covariance is not None:
        for i in range(n_p):
            for j in range(n_p):
                denom = std_errors[i] * std_errors[j]
                if denom > 0.0:
                    corr[i, j] = covariance[i, j] / denom
                elif i == j:
                    corr[i, j] = 1.0

    eigenvalues, eigenvectors = np.linalg.eigh(fim)
    idx = np.argsort(eigenvalues)[::-1]
    eigenvalues = eigenvalues[idx]
    eigenvectors = eigenvectors[:, idx]

    pos_ev = eigenvalues[eigenvalues > 0.0]
    if len(pos_ev) == n_p and n_p >= 2:
        condition_number = float(pos_ev[0] / pos_ev[-1])
    elif len(pos_ev) == 1 and n_p == 1:
        condition_number = 1.0
    else:
        condition_number = np.inf

    return dict(
        std_errors=std_errors,
        correlation=corr,
        eigenvalues=eigenvalues,
        eigenvectors=eigenvectors,
        condition_number=condition_number,
    )


def t_critical(level: float, dof: int) -> float:
    """Two-sided Student-t quantile for coverage ``level``."""
    if not 0.0 < level < 1.0:
        raise ValueError(f"level must lie in (0, 1), got {level}")
    if dof <= 0:
        return np.nan
    return float(sci_stats.t.ppf(0.5 * (1.0 + level), dof))


# INTERVAL RECORD =======================================================================

@dataclass(frozen=True)
class ParameterInterval:
    """Point estimate and confidence bounds of one parameter.

    Undefined bounds are NaN.
    """

    name: str
    estimate: float
    lower: float
    upper: float
    method: str = "wald"


    @property
    def defined(self) -> bool:
        return bool(np.isfinite(self.lower) and np.isfinite(self.upper))


# CLASS: SensitivityResult ==============================================================

class SensitivityResult:
    """Local uncertainty of a least-squares optimum.

    All statistics derive from the residual Jacobian **J** at the optimum.
    With ``rss`` and ``dof`` given, the covariance is scaled by the residual
    variance ``s² = RSS / dof``; otherwise ``pinv(JᵀJ)`` is reported
    unscaled, which corresponds to unit-variance residuals.

    Parameters
    ----------
    jacobian : np.ndarray, shape (n_residuals, n_params)
    param_names : list of str
    param_values : np.ndarray, shape (n_params,)
    rss : float, optional
        Residual sum of squares at the optimum.
    dof : int, optional
        Residual degrees of freedom.
    active_mask : np.ndarray of bool, optional
        Parameters whose estimate sits on a hard bound. Their intervals are
        undefined.

    Attributes
    ----------
    fim : np.ndarray
        ``Jᵀ J``.
    covariance : np.ndarray or None
        ``None`` when ``Jᵀ J`` is not positive definite.
    std_errors : np.ndarray
        ``√diag(covariance)``; NaN when the covariance is undefined.
    correlation : np.ndarray
        Normalised covariance; NaN when the covariance is undefined.
    eigenvalues, eigenvectors : np.ndarray
        Eigen-decomposition of the FIM, descending.
    condition_number : float
        Ratio of the largest to smallest positive FIM eigenvalue.
    """

    def __init__(
        self,
        jacobian: np.ndarray,
        param_names: list,
        param_values: np.ndarray,
        rss: float | None = None,
        dof: int | None = None,
        active_mask: np.ndarray | None = None,
    ):
        self.jacobian = np.asarray(jacobian, dtype=float)
        self.param_names = list(param_names)
        self.param_values = np.asarray(param_values, dtype=float)
        self.rss = rss
        self.dof = dof

        n_p = len(self.param_names)
        self.active_mask = (
            np.zeros(n_p, dtype=bool) if active_mask is None
            else np.asarray(active_mask, dtype=bool)
        )

        self.fim = self.jacobian.T @ self.jacobian

        if rss is not None and dof is not None:
            self.covariance = covariance_matrix(self.jacobian, rss, dof)
        else:
            # unscaled, as for sigma-normalised residuals
            self.covariance = covariance_matrix(self.jacobian, float(dof or 1), dof or 1)

        stats = _build_stats(self.fim, self.covariance)
        self.std_errors = stats["std_errors"]
        self.correlation = stats["correlation"]
        self.eigenvalues = stats["eigenvalues"]
        self.eigenvectors = stats["eigenvectors"]
        self.condition_number = stats["condition_number"]


    @property
    def positive_definite(self) -> bool:
        return self.covariance is not None


    def intervals(self, level: float = 0.95) -> list[ParameterInterval]:
        """Asymptotic intervals ``estimate ± t · se``.

        Parameters on an active bound, and all parameters when the covariance
        is undefined, get NaN bounds.
        """
        crit = t_critical(level, self.dof if self.dof is not None else 10**9)

        out = []
        for i, name in enumerate(self.param_names):
            est = float(self.param_values[i])
            se = self.std_errors[i]
            if self.active_mask[i] or not np.isfinite(se) or not np.isfinite(crit):
                lo = hi = np.nan
            else:
                lo, hi = est - crit * se, est + crit * se
            out.append(ParameterInterval(name, est, float(lo), float(hi), "wald"))
        return out


    # DISPLAY ===========================================================================

    def display(self) -> None:
        """Print parameter values, standard errors and conditioning."""
        W = 72
        line = "=" * W
        dash = "-" * W

        print(line)
        print("  Parameter Uncertainty")
        print(line)
        print(f"  {'Parameter':<22} {'Value':>12} {'Std Error':>12} "
              f"{'Rel Error':>10}  {'OK?':>4}")
        print(dash)

        for i, name in enumerate(self.param_names):
            val = self.param_values[i]
            se = self.std_errors[i]
            if abs(val) > 1e-15 and np.isfinite(se):
                rel = se / abs(val)
                rel_str = f"{rel * 100:.2f}%"
            else:
                rel = np.inf
                rel_str = "N/A"
            flag = "✓" if (np.isfinite(rel) and rel < 0.5) else "✗"
            print(f"  {name:<22} {val:>12.4g} {se:>12.4g} {rel_str:>10}  {flag:>4}")

        print(dash)

        cn = self.condition_number
        if cn < 1e3:
            cn_label = "excellent"
        elif cn < 1e6:
            cn_label = "acceptable"
        else:
            cn_label = "POOR, parameters may not be identifiable"
        print(f"\n  FIM condition number : {cn:.3g}  ({cn_label})")
        if not self.positive_definite:
            print("  Covariance undefined (FIM not positive definite)")
        print(line)


# INTERVAL ESTIMATORS ===================================================================

def confidence_intervals(fit, level: float = 0.95) -> list[ParameterInterval]:
    """Asymptotic confidence intervals of a converged :class:`FitResult`."""
    sens = SensitivityResult(
        jacobian=fit.jacobian,
        param_names=list(fit.parameter_names),
        param_values=fit.x,
        rss=fit.rss,
        dof=fit.dof,
        active_mask=fit.active_mask,
    )
    if not sens.positive_definite:
        log.warning("%s: covariance not positive definite, intervals undefined",
                    fit.dataset)
    return sens.intervals(level)


def _profile_bound(estimator, fit, index, direction, step, crit, max_steps) -> float:
    """Walk away from the estimate until the profile crosses ``crit``."""
    x_hat = np.asarray(fit.x, dtype=float)
    s2 = fit.sigma2
    lower, upper = estimator.bounds()
    limit = upper[index] if direction > 0 else lower[index]

    def excess(v):
        rss = estimator.profile_rss(x_hat, index, v)
        return (rss - fit.rss) / s2 - crit ** 2

    prev = float(x_hat[index])
    for _ in range(max_steps):
        v = prev + direction * step
        at_limit = (direction > 0 and v >= limit) or (direction < 0 and v <= limit)
        if at_limit:
            v = float(limit)
            if v == prev:
                return np.nan

        f_v = excess(v)
        if not np.isfinite(f_v):
            return np.nan
        if f_v > 0.0:
            try:
                return float(sci_opt.brentq(excess, prev, v, xtol=1e-10 * max(1.0, abs(v))))
            except ValueError:
                return np.nan
        if at_limit:
            return np.nan

        prev = v
        step *= 1.6

    return np.nan


def profile_intervals(
    estimator,
    fit,
    level: float = 0.95,
    *,
    max_steps: int = 40,
) -> list[ParameterInterval]:
    """Profile-likelihood confidence intervals.

    For each parameter the others are re-optimized along a grid of fixed
    values; the bound is the value where
    ``(RSS_profile - RSS_min) / s² = t²`` with ``t`` the Student-t quantile
    at ``n - p`` degrees of freedom. A bound that cannot be bracketed before
    hitting a hard bound is NaN.

    Parameters
    ----------
    estimator : ParameterEstimator
        Estimator that produced ``fit``.
    fit : FitResult
    level : float
        Coverage.
    max_steps : int
        Maximum expansion steps per direction.
    """
    crit = t_critical(level, fit.dof)
    x_hat = np.asarray(fit.x, dtype=float)

    if not np.isfinite(crit) or not fit.sigma2 > 0.0:
        return [
            ParameterInterval(name, float(v), np.nan, np.nan, "profile")
            for name, v in zip(fit.parameter_names, x_hat)
        ]

    std_errors = (
        np.sqrt(np.maximum(np.diag(fit.covariance), 0.0))
        if fit.covariance is not None
        else np.full(fit.n_params, np.nan)
    )

    out = []
    for i, name in enumerate(fit.parameter_names):
        est = float(x_hat[i])
        se = std_errors[i]
        step = se if np.isfinite(se) and se > 0.0 else 0.1 * max(abs(est), 1e-3)

        lo = _profile_bound(estimator, fit, i, -1.0, step, crit, max_steps)
        hi = _profile_bound(estimator, fit, i, +1.0, step, crit, max_steps)
        out.append(ParameterInterval(name, est, lo, hi, "profile"))
    return out
