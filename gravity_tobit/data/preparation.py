"""Data preparation for the gravity Tobit model.

Turns a bilateral-flow dataset into a well-posed left-censored regression:
rows with unusable distances are dropped, distance is logged, the flow is
shifted by ``added_constant`` and logged, and the smallest transformed flow
becomes the shared censoring threshold.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import pandas as pd

from gravity_tobit.data.validation import (
    ensure_finite_regressors,
    ensure_min_observations,
    ensure_outcome_varies,
    require_columns,
    require_dataframe,
    require_numeric,
    require_unique_regressors,
    validate_added_constant,
)
from gravity_tobit.exceptions import InvalidInputError
from gravity_tobit.utils.logging import get_logger

log = get_logger(__name__, component="preparation")

INTERCEPT = "(Intercept)"
DIST_LOG = "dist_log"
OUTCOME = "y_cens_log_tobit"


@dataclass(frozen=True)
class PreparedData:
    design_matrix: pd.DataFrame
    outcome: pd.Series
    threshold: float
    formula: str
    added_constant: float
    n_input: int

    @property
    def n_obs(self) -> int:
        return len(self.outcome)

    @property
    def n_dropped(self) -> int:
        return self.n_input - self.n_obs

    @property
    def column_names(self) -> list[str]:
        return list(self.design_matrix.columns)

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray, float]:
        """Return ``(design_matrix, outcome_vector, threshold)`` as numpy values."""
        return (
            self.design_matrix.to_numpy(dtype=float),
            self.outcome.to_numpy(dtype=float),
            self.threshold,
        )


def build_formula(other_regressor_columns: Sequence[str]) -> str:
    return f"{OUTCOME} ~ " + " + ".join([DIST_LOG, *other_regressor_columns])


def valid_distance_mask(distance: pd.Series) -> np.ndarray:
    """True where distance is finite and strictly positive (missing counts as invalid)."""
    values = distance.to_numpy(dtype=float, na_value=np.nan)
    with np.errstate(invalid="ignore"):
        return np.isfinite(values) & (values > 0)


def log_outcome(dependent: pd.Series, added_constant: float) -> pd.Series:
    """``log(dependent + added_constant)`` with missing flows counted as zero."""
    flows = dependent.astype(float).fillna(0.0)
    with np.errstate(invalid="ignore", divide="ignore"):
        transformed = np.log(flows + added_constant)
    return transformed.rename(OUTCOME)


def prepare(
    observations: pd.DataFrame,
    dependent_column: str,
    distance_column: str,
    other_regressor_columns: Sequence[str] = (),
    added_constant: float = 1.0,
) -> PreparedData:
    """Validate, filter and transform ``observations`` for the Tobit solver."""

    df = require_dataframe(observations)
    other_regressor_columns = list(other_regressor_columns)
    for name in (dependent_column, distance_column, *other_regressor_columns):
        if not isinstance(name, str):
            raise InvalidInputError(f"Column names must be strings, got {name!r}")
    required = [dependent_column, distance_column, *other_regressor_columns]
    require_columns(df, required)
    require_numeric(df, required)
    require_unique_regressors(distance_column, other_regressor_columns)
    constant = validate_added_constant(added_constant)

    keep = valid_distance_mask(df[distance_column])
    retained = df.loc[keep]
    n_dropped = int((~keep).sum())
    if n_dropped:
        log.debug(
            "Dropped rows with zero, negative, infinite or missing distance",
            extra={"n_dropped": n_dropped, "n_obs": len(retained)},
        )
    ensure_min_observations(len(retained))

    outcome = log_outcome(retained[dependent_column], constant)
    if not np.isfinite(outcome.to_numpy()).all():
        n_bad = int((~np.isfinite(outcome.to_numpy())).sum())
        raise InvalidInputError(
            f"log({dependent_column} + {constant:g}) is undefined for {n_bad} rows; "
            f"flows must be >= 0"
        )
    ensure_outcome_varies(outcome.to_numpy())
    threshold = float(outcome.min())

    ensure_finite_regressors(retained, other_regressor_columns)
    design = pd.DataFrame(index=retained.index)
    design[INTERCEPT] = 1.0
    design[DIST_LOG] = np.log(retained[distance_column].astype(float))
    for col in other_regressor_columns:
        design[col] = retained[col].astype(float)

    prepared = PreparedData(
        design_matrix=design,
        outcome=outcome,
        threshold=threshold,
        formula=build_formula(other_regressor_columns),
        added_constant=constant,
        n_input=len(df),
    )
    log.info(
        "Prepared censored regression problem",
        extra={
            "n_obs": prepared.n_obs,
            "n_dropped": prepared.n_dropped,
            "n_censored": int((outcome <= threshold).sum()),
            "threshold": threshold,
        },
    )
    return prepared


__all__ = [
    "INTERCEPT",
    "DIST_LOG",
    "OUTCOME",
    "PreparedData",
    "build_formula",
    "valid_distance_mask",
    "log_outcome",
    "prepare",
]
