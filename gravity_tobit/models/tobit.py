"""Gravity model estimated as a left-censored Tobit with a known threshold.

Zero flows have no logarithm, so ``added_constant`` (1 by default) is added
to every flow before logging. The smallest transformed flow, ``log(1) = 0``
in the default case, is the left-censoring bound of the latent regression.
Distance (the first regressor) is logged automatically; any other regressors
enter verbatim and should already be logged where that is appropriate.

Coefficients describe the latent variable. The marginal effect of a regressor
on the expected observed flow is the coefficient scaled by the probability of
the latent value exceeding the threshold (see ``FitResult.marginal_effects``).
"""

from __future__ import annotations

from typing import Optional, Sequence

import pandas as pd

from gravity_tobit.data.preparation import prepare
from gravity_tobit.estimation.models import FitResult
from gravity_tobit.estimation.solver import fit
from gravity_tobit.exceptions import InvalidInputError
from gravity_tobit.schema.estimation_config import EstimationConfig
from gravity_tobit.utils.logging import get_logger

log = get_logger(__name__, component="tobit")


def tobit(
    data: pd.DataFrame,
    dependent_variable: str,
    regressors: Sequence[str],
    added_constant: Optional[float] = None,
    *,
    config: Optional[EstimationConfig] = None,
    initial_params=None,
) -> FitResult:
    """Estimate a gravity equation by left-censored Tobit.

    Args:
        data: bilateral dataset with the flow, a distance measure and other regressors.
        dependent_variable: name of the flow column (zeros and missing values allowed).
        regressors: distance column first, followed by additional regressors,
            e.g. ``["distw", "rta", "lgdp_o", "lgdp_d"]``.
        added_constant: constant added to the flow before logging; overrides
            ``config.added_constant`` when given.
        config: solver settings; defaults to :class:`EstimationConfig`.
        initial_params: start values ``[beta..., sigma]``; zeros and sigma 1 by default.
    """

    if isinstance(regressors, str):
        regressors = [regressors]
    regressors = list(regressors)
    if not regressors:
        raise InvalidInputError("regressors must contain at least the distance column")
    config = config or EstimationConfig()
    constant = config.added_constant if added_constant is None else added_constant

    distance, additional = regressors[0], regressors[1:]
    prepared = prepare(
        data,
        dependent_column=dependent_variable,
        distance_column=distance,
        other_regressor_columns=additional,
        added_constant=constant,
    )
    log.info("Estimating gravity Tobit", extra={"n_obs": prepared.n_obs, "threshold": prepared.threshold})
    return fit(
        prepared.design_matrix,
        prepared.outcome,
        prepared.threshold,
        initial_params=initial_params,
        formula=prepared.formula,
        **config.solver_options(),
    )


__all__ = ["tobit"]
