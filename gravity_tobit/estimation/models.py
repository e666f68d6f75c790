"""Fit result record for the censored-regression solver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from scipy.stats import norm

from gravity_tobit.exceptions import ConvergenceFailure, InvalidInputError

SIGMA = "sigma"


@dataclass
class FitResult:
    coefficients: pd.Series
    sigma: float
    covariance: pd.DataFrame
    threshold: float
    log_likelihood: float
    iterations: int
    converged: bool
    n_obs: int
    n_censored: int
    gradient_norm: float
    regressor_means: pd.Series
    formula: Optional[str] = None
    log_likelihood_trace: List[float] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    message: str = ""

    @property
    def n_uncensored(self) -> int:
        return self.n_obs - self.n_censored

    @property
    def n_params(self) -> int:
        return len(self.coefficients) + 1

    @property
    def params(self) -> np.ndarray:
        """Full parameter vector ``[beta..., sigma]``, usable as start values."""
        return np.append(self.coefficients.to_numpy(dtype=float), self.sigma)

    def standard_errors(self) -> pd.Series:
        diag = np.diag(self.covariance.to_numpy(dtype=float))
        se = np.sqrt(np.where(diag >= 0, diag, np.nan))
        return pd.Series(se, index=self.covariance.index, name="std_error")

    def coefficient_table(self) -> pd.DataFrame:
        """Estimates with asymptotic standard errors, z values and two-sided p-values."""
        estimates = pd.Series(self.params, index=self.covariance.index, name="estimate")
        se = self.standard_errors()
        with np.errstate(divide="ignore", invalid="ignore"):
            z = estimates / se
        p = 2.0 * norm.sf(np.abs(z.to_numpy(dtype=float)))
        return pd.DataFrame(
            {
                "estimate": estimates,
                "std_error": se,
                "z_value": z,
                "p_value": p,
            },
            index=self.covariance.index,
        )

    def aic(self) -> float:
        return float(2 * self.n_params - 2 * self.log_likelihood)

    def bic(self) -> float:
        return float(self.n_params * np.log(max(self.n_obs, 1)) - 2 * self.log_likelihood)

    def marginal_effects(self, at: Optional[pd.Series] = None) -> pd.Series:
        """Marginal effects on the unconditional expectation ``E[y]``.

        For a left bound ``t`` the effect of regressor ``j`` is
        ``beta_j * Phi((x'beta - t) / sigma)``, evaluated at ``at`` (the
        regressor means by default). The intercept is excluded.
        """
        point = self.regressor_means if at is None else at.reindex(self.coefficients.index)
        if point.isna().any():
            missing = list(point.index[point.isna()])
            raise InvalidInputError(f"Evaluation point is missing values for {missing}")
        xb = float(np.dot(point.to_numpy(dtype=float), self.coefficients.to_numpy(dtype=float)))
        prob_uncensored = float(norm.cdf((xb - self.threshold) / self.sigma))
        effects = self.coefficients * prob_uncensored
        return effects.drop(labels="(Intercept)", errors="ignore").rename("marginal_effect")

    def raise_for_convergence(self) -> None:
        if not self.converged:
            raise ConvergenceFailure(self.message or "Fit did not converge", result=self)

    def to_dict(self) -> Dict[str, Any]:
        table = self.coefficient_table()
        return {
            "formula": self.formula,
            "converged": self.converged,
            "iterations": self.iterations,
            "message": self.message,
            "log_likelihood": self.log_likelihood,
            "aic": self.aic(),
            "bic": self.bic(),
            "threshold": self.threshold,
            "n_obs": self.n_obs,
            "n_censored": self.n_censored,
            "n_uncensored": self.n_uncensored,
            "gradient_norm": self.gradient_norm,
            "coefficients": {
                name: {col: _json_float(row[col]) for col in table.columns} for name, row in table.iterrows()
            },
            "covariance": self.covariance.to_numpy(dtype=float).tolist(),
            "parameter_names": list(self.covariance.index),
            "warnings": list(self.warnings),
        }


def _json_float(value: float) -> Optional[float]:
    value = float(value)
    return value if np.isfinite(value) else None


__all__ = ["FitResult", "SIGMA"]
