"""Input checks for gravity datasets."""

from __future__ import annotations

import math
import numbers
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from gravity_tobit.exceptions import DegenerateInputError, InvalidInputError

MIN_OBSERVATIONS = 2
RESERVED_COLUMNS = ("(Intercept)", "dist_log")


def require_dataframe(observations: object) -> pd.DataFrame:
    if not isinstance(observations, pd.DataFrame):
        raise InvalidInputError(
            f"observations must be a pandas DataFrame, got {type(observations).__name__}"
        )
    return observations


def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise InvalidInputError(f"Missing required columns: {missing}")


def require_numeric(df: pd.DataFrame, cols: Iterable[str]) -> None:
    non_numeric = [c for c in cols if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise InvalidInputError(f"Columns must be numeric: {non_numeric}")


def require_unique_regressors(distance_column: str, other_regressors: Sequence[str]) -> None:
    names = [distance_column, *other_regressors]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise InvalidInputError(f"Regressors listed more than once: {duplicates}")
    reserved = [n for n in other_regressors if n in RESERVED_COLUMNS]
    if reserved:
        raise InvalidInputError(f"Regressor names clash with generated columns: {reserved}")


def validate_added_constant(added_constant: object) -> float:
    """Return the constant as float; must be a finite real scalar > 0."""
    if isinstance(added_constant, bool) or not isinstance(added_constant, numbers.Real):
        raise InvalidInputError(f"added_constant must be a real scalar, got {added_constant!r}")
    value = float(added_constant)
    if not math.isfinite(value):
        raise InvalidInputError(f"added_constant must be finite, got {value}")
    if value <= 0:
        raise InvalidInputError(f"added_constant must be > 0 so that log(0 + added_constant) is defined, got {value}")
    return value


def ensure_min_observations(n_rows: int, min_required: int = MIN_OBSERVATIONS) -> None:
    """Raise when too few rows survive filtering to identify a regression."""
    if n_rows < min_required:
        raise DegenerateInputError(
            f"Insufficient observations after filtering: need >= {min_required}, got {n_rows}"
        )


def ensure_outcome_varies(outcome: np.ndarray) -> None:
    if np.ptp(outcome) == 0:
        raise DegenerateInputError(
            f"Transformed outcome has zero variance (all values equal {outcome[0]:.6g}); regression is not identified"
        )


def ensure_finite_regressors(df: pd.DataFrame, cols: Iterable[str]) -> None:
    bad = {}
    for col in cols:
        values = df[col].to_numpy(dtype=float, na_value=np.nan)
        n_bad = int((~np.isfinite(values)).sum())
        if n_bad:
            bad[col] = n_bad
    if bad:
        raise InvalidInputError(f"Regressors contain missing or non-finite values in retained rows: {bad}")


__all__ = [
    "MIN_OBSERVATIONS",
    "RESERVED_COLUMNS",
    "require_dataframe",
    "require_columns",
    "require_numeric",
    "require_unique_regressors",
    "validate_added_constant",
    "ensure_min_observations",
    "ensure_outcome_varies",
    "ensure_finite_regressors",
]
