"""Left-censored Tobit estimation of gravity models."""

from gravity_tobit.data.preparation import PreparedData, prepare
from gravity_tobit.estimation.models import FitResult
from gravity_tobit.estimation.solver import fit
from gravity_tobit.exceptions import (
    ConvergenceFailure,
    DegenerateInputError,
    GravityTobitError,
    InvalidInputError,
    NumericalError,
)
from gravity_tobit.models.tobit import tobit
from gravity_tobit.schema.estimation_config import EstimationConfig

__version__ = "0.1.0"

__all__ = [
    "ConvergenceFailure",
    "DegenerateInputError",
    "EstimationConfig",
    "FitResult",
    "GravityTobitError",
    "InvalidInputError",
    "NumericalError",
    "PreparedData",
    "fit",
    "prepare",
    "tobit",
]
