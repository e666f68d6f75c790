"""Logging helpers for solver failure modes that do not abort a fit."""

from __future__ import annotations

from typing import List, Optional

from gravity_tobit.estimation.models import FitResult
from gravity_tobit.utils.logging import get_logger

log = get_logger(__name__, component="solver")


def record_convergence_failure(result: FitResult, *, max_iterations: int, reason: Optional[str] = None) -> FitResult:
    """Log diagnostics for a fit that stopped short of convergence and mark the result.

    ``reason`` overrides the default iteration-limit message, e.g. when step
    halving found no ascent step before the budget ran out.
    """

    message = reason or (
        f"Iteration limit of {max_iterations} reached without convergence "
        f"(last log-likelihood change above tolerance, gradient norm {result.gradient_norm:.3g})"
    )
    if message not in result.warnings:
        result.warnings.append(message)
    result.converged = False
    result.message = message

    log.warning(
        "Model failed to converge",
        extra={
            "iteration": result.iterations,
            "n_obs": result.n_obs,
            "log_likelihood": result.log_likelihood,
            "gradient_norm": result.gradient_norm,
            "status": "FAILED",
        },
    )
    return result


def record_rank_deficiency(warnings: List[str], *, iteration: int, rank: int, size: int) -> None:
    """Note (once per fit) that the information matrix needed a pseudo-inverse."""

    message = (
        f"Information matrix is rank deficient (rank {rank} of {size}); "
        "using pseudo-inverse, standard errors of collinear terms are not identified"
    )
    if any(w.startswith("Information matrix is rank deficient") for w in warnings):
        return
    warnings.append(message)
    log.warning(message, extra={"iteration": iteration, "status": "RANK_DEFICIENT"})


__all__ = ["record_convergence_failure", "record_rank_deficiency"]
