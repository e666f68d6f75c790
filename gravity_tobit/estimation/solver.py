"""BHHH maximum-likelihood solver for the left-censored Tobit model.

The curvature of the log-likelihood is approximated by the outer product of
the per-observation scores (Berndt-Hall-Hall-Hausman), so only first
derivatives are needed. Each Newton-type step can be halved until the
log-likelihood does not decrease and the scale stays positive.
"""

from __future__ import annotations

import math
import time
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from gravity_tobit.estimation.diagnostics import record_convergence_failure, record_rank_deficiency
from gravity_tobit.estimation.likelihood import censored_mask, loglike, scoreobs
from gravity_tobit.estimation.models import SIGMA, FitResult
from gravity_tobit.exceptions import ConvergenceFailure, InvalidInputError, NumericalError
from gravity_tobit.utils.logging import get_logger

log = get_logger(__name__, component="solver")

DEFAULT_MAX_ITERATIONS = 500
DEFAULT_TOLERANCE = 1e-8
DEFAULT_GRADIENT_TOLERANCE = 1e-6
DEFAULT_MAX_STEP_HALVINGS = 30


def _as_design(design_matrix, column_names: Optional[Sequence[str]]) -> Tuple[np.ndarray, List[str]]:
    if isinstance(design_matrix, pd.DataFrame):
        names = [str(c) for c in design_matrix.columns]
        X = design_matrix.to_numpy(dtype=float)
    else:
        X = np.asarray(design_matrix, dtype=float)
        names = []
    if X.ndim != 2:
        raise InvalidInputError(f"design_matrix must be 2-dimensional, got shape {X.shape}")
    if X.shape[0] == 0 or X.shape[1] == 0:
        raise InvalidInputError(f"design_matrix must have at least one row and one column, got shape {X.shape}")
    if column_names is not None:
        names = [str(c) for c in column_names]
    if not names:
        names = [f"x{i}" for i in range(X.shape[1])]
    if len(names) != X.shape[1]:
        raise InvalidInputError(f"Got {len(names)} column names for {X.shape[1]} design columns")
    if SIGMA in names:
        raise InvalidInputError(f"'{SIGMA}' is reserved for the scale parameter")
    if not np.isfinite(X).all():
        raise InvalidInputError("design_matrix contains missing or non-finite values")
    return X, names


def _as_outcome(outcome_vector, n_rows: int, threshold: float) -> np.ndarray:
    y = np.asarray(outcome_vector, dtype=float).reshape(-1)
    if y.shape[0] != n_rows:
        raise InvalidInputError(f"outcome_vector has {y.shape[0]} values for {n_rows} design rows")
    if not np.isfinite(y).all():
        raise InvalidInputError("outcome_vector contains missing or non-finite values")
    if (y < threshold).any():
        raise InvalidInputError(
            f"{int((y < threshold).sum())} outcome values lie below the censoring threshold {threshold:g}"
        )
    return y


def _initial_params(initial_params, n_coef: int) -> np.ndarray:
    if initial_params is None:
        return np.append(np.zeros(n_coef), 1.0)
    theta = np.asarray(initial_params, dtype=float).reshape(-1).copy()
    if theta.shape[0] != n_coef + 1:
        raise InvalidInputError(
            f"initial_params must have {n_coef + 1} entries ({n_coef} coefficients and sigma), got {theta.shape[0]}"
        )
    if not np.isfinite(theta).all():
        raise InvalidInputError("initial_params must be finite")
    if theta[-1] <= 0:
        raise InvalidInputError(f"initial sigma must be > 0, got {theta[-1]}")
    return theta


def _invert(info: np.ndarray, *, pseudo_inverse: bool, iteration: int, warnings: List[str]) -> np.ndarray:
    if not np.isfinite(info).all():
        raise NumericalError("Information matrix contains non-finite entries", iteration=iteration)
    size = info.shape[0]
    rank = int(np.linalg.matrix_rank(info))
    if rank < size:
        if not pseudo_inverse:
            raise NumericalError(f"Information matrix is singular (rank {rank} of {size})", iteration=iteration)
        record_rank_deficiency(warnings, iteration=iteration, rank=rank, size=size)
        return np.linalg.pinv(info)
    try:
        return np.linalg.inv(info)
    except np.linalg.LinAlgError as exc:
        if not pseudo_inverse:
            raise NumericalError(f"Information matrix is singular: {exc}", iteration=iteration) from exc
        return np.linalg.pinv(info)


def _scores(theta: np.ndarray, X: np.ndarray, y: np.ndarray, threshold: float, iteration: int) -> np.ndarray:
    S = scoreobs(theta, X, y, threshold)
    if not np.isfinite(S).all():
        raise NumericalError("Score contributions are not finite", iteration=iteration)
    return S


def _halving_search(
    theta: np.ndarray,
    direction: np.ndarray,
    ll: float,
    X: np.ndarray,
    y: np.ndarray,
    threshold: float,
    max_step_halvings: int,
) -> Tuple[Optional[np.ndarray], float, float]:
    """Largest step ``2**-h`` that keeps sigma positive and does not lower the log-likelihood."""
    step = 1.0
    for _ in range(max_step_halvings + 1):
        candidate = theta + step * direction
        if candidate[-1] > 0:
            ll_candidate = loglike(candidate, X, y, threshold)
            if math.isfinite(ll_candidate) and ll_candidate >= ll:
                return candidate, ll_candidate, step
        step /= 2.0
    return None, ll, 0.0


def fit(
    design_matrix,
    outcome_vector,
    threshold: float,
    initial_params=None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    tolerance: float = DEFAULT_TOLERANCE,
    *,
    gradient_tolerance: float = DEFAULT_GRADIENT_TOLERANCE,
    max_step_halvings: int = DEFAULT_MAX_STEP_HALVINGS,
    step_halving: bool = True,
    pseudo_inverse: bool = True,
    raise_on_failure: bool = False,
    column_names: Optional[Sequence[str]] = None,
    formula: Optional[str] = None,
) -> FitResult:
    """Maximise the left-censored Tobit log-likelihood with BHHH iterations.

    Observations with ``y <= threshold`` are treated as censored. Returns a
    :class:`FitResult`; when the iteration budget runs out, or step halving
    finds no ascent step before the gradient is small enough, the result has
    ``converged=False`` unless ``raise_on_failure`` asks for a
    :class:`ConvergenceFailure` instead.

    Raises:
        InvalidInputError: malformed arrays, threshold or start values.
        NumericalError: non-finite likelihood/scores, a non-positive scale after
            an unhalved step, or a singular information matrix when
            ``pseudo_inverse`` is off.
    """

    if not isinstance(threshold, (int, float, np.floating, np.integer)) or not math.isfinite(threshold):
        raise InvalidInputError(f"threshold must be a finite scalar, got {threshold!r}")
    threshold = float(threshold)
    if int(max_iterations) != max_iterations or max_iterations <= 0:
        raise InvalidInputError(f"max_iterations must be a positive integer, got {max_iterations!r}")
    if not tolerance > 0 or not gradient_tolerance > 0:
        raise InvalidInputError("tolerance and gradient_tolerance must be > 0")
    if max_step_halvings < 0:
        raise InvalidInputError("max_step_halvings must be >= 0")

    X, names = _as_design(design_matrix, column_names)
    y = _as_outcome(outcome_vector, X.shape[0], threshold)
    theta = _initial_params(initial_params, X.shape[1])
    n_censored = int(censored_mask(y, threshold).sum())

    started = time.perf_counter()
    ll = loglike(theta, X, y, threshold)
    if not math.isfinite(ll):
        raise NumericalError("Log-likelihood is not finite at the initial parameters", iteration=0)
    trace = [ll]
    warnings: List[str] = []
    converged = False
    message = ""
    stalled: Optional[str] = None
    iteration = 0

    while True:
        S = _scores(theta, X, y, threshold, iteration)
        gradient = S.sum(axis=0)
        gradient_norm = float(np.linalg.norm(gradient))
        if gradient_norm < gradient_tolerance:
            converged = True
            message = f"gradient norm {gradient_norm:.3g} below {gradient_tolerance:g}"
            break
        if iteration >= max_iterations:
            break
        iteration += 1

        direction = _invert(S.T @ S, pseudo_inverse=pseudo_inverse, iteration=iteration, warnings=warnings) @ gradient

        if step_halving:
            candidate, ll_new, step = _halving_search(theta, direction, ll, X, y, threshold, max_step_halvings)
            if candidate is None:
                # gradient norm is still above gradient_tolerance here
                stalled = (
                    f"No ascent step found within {max_step_halvings} step halvings at iteration {iteration} "
                    f"(gradient norm {gradient_norm:.3g} above {gradient_tolerance:g})"
                )
                break
        else:
            step = 1.0
            candidate = theta + direction
            if candidate[-1] <= 0:
                raise NumericalError(f"Scale parameter became non-positive (sigma={candidate[-1]:.6g})", iteration=iteration)
            ll_new = loglike(candidate, X, y, threshold)
            if not math.isfinite(ll_new):
                raise NumericalError("Log-likelihood is not finite after update", iteration=iteration)

        change = ll_new - ll
        theta, ll = candidate, ll_new
        trace.append(ll)
        log.debug(
            "BHHH iteration",
            extra={"iteration": iteration, "log_likelihood": ll, "gradient_norm": gradient_norm, "step": step},
        )
        if abs(change) < tolerance:
            converged = True
            message = f"log-likelihood change {abs(change):.3g} below {tolerance:g}"
            break

    S = _scores(theta, X, y, threshold, iteration)
    gradient_norm = float(np.linalg.norm(S.sum(axis=0)))
    covariance = _invert(S.T @ S, pseudo_inverse=pseudo_inverse, iteration=iteration, warnings=warnings)
    param_names = [*names, SIGMA]

    result = FitResult(
        coefficients=pd.Series(theta[:-1], index=names, name="estimate"),
        sigma=float(theta[-1]),
        covariance=pd.DataFrame(covariance, index=param_names, columns=param_names),
        threshold=threshold,
        log_likelihood=ll,
        iterations=iteration,
        converged=converged,
        n_obs=X.shape[0],
        n_censored=n_censored,
        gradient_norm=gradient_norm,
        regressor_means=pd.Series(X.mean(axis=0), index=names, name="mean"),
        formula=formula,
        log_likelihood_trace=trace,
        warnings=warnings,
        message=message,
    )

    if not converged:
        record_convergence_failure(result, max_iterations=max_iterations, reason=stalled)
        if raise_on_failure:
            raise ConvergenceFailure(result.message, result=result)
        return result

    log.info(
        "Tobit fit converged",
        extra={
            "iteration": iteration,
            "n_obs": result.n_obs,
            "n_censored": n_censored,
            "log_likelihood": ll,
            "gradient_norm": gradient_norm,
            "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            "status": "CONVERGED",
        },
    )
    return result


__all__ = [
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_TOLERANCE",
    "DEFAULT_GRADIENT_TOLERANCE",
    "DEFAULT_MAX_STEP_HALVINGS",
    "fit",
]
