"""Project-wide exception types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from gravity_tobit.estimation.models import FitResult


class GravityTobitError(Exception):
    """Base exception for all estimation errors."""


class InvalidInputError(GravityTobitError):
    """Raised when arguments are malformed (missing column, bad constant, bad shape)."""


class DegenerateInputError(GravityTobitError):
    """Raised when the prepared data cannot identify a regression."""


class NumericalError(GravityTobitError):
    """Raised when the optimizer breaks down numerically."""

    def __init__(self, message: str, *, iteration: Optional[int] = None) -> None:
        if iteration is not None:
            message = f"{message} (iteration {iteration})"
        super().__init__(message)
        self.iteration = iteration


class ConvergenceFailure(GravityTobitError):
    """Raised when the iteration budget is exhausted before convergence.

    Carries the partial fit so callers can inspect the last iterate.
    """

    def __init__(self, message: str, *, result: Optional["FitResult"] = None) -> None:
        super().__init__(message)
        self.result = result
        self.iteration = result.iterations if result is not None else None


class ConfigError(GravityTobitError):
    """Raised when configuration is missing or malformed."""


class ConfigValidationError(ConfigError):
    """Raised when validation fails for supplied configuration."""


__all__ = [
    "GravityTobitError",
    "InvalidInputError",
    "DegenerateInputError",
    "NumericalError",
    "ConvergenceFailure",
    "ConfigError",
    "ConfigValidationError",
]
