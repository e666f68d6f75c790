"""Left-censored Tobit log-likelihood and per-observation scores.

Parameter vectors are laid out as ``[beta_0, ..., beta_{k-1}, sigma]``.
An observation is censored when ``y <= threshold``.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from scipy.stats import norm


def split_params(params: np.ndarray) -> Tuple[np.ndarray, float]:
    params = np.asarray(params, dtype=float)
    return params[:-1], float(params[-1])


def censored_mask(y: np.ndarray, threshold: float) -> np.ndarray:
    return np.asarray(y, dtype=float) <= threshold


def loglikeobs(params: np.ndarray, X: np.ndarray, y: np.ndarray, threshold: float) -> np.ndarray:
    """Per-observation log-likelihood contributions."""
    beta, sigma = split_params(params)
    mu = X @ beta
    cens = censored_mask(y, threshold)
    ll = np.empty_like(mu)
    ll[~cens] = norm.logpdf((y[~cens] - mu[~cens]) / sigma) - np.log(sigma)
    ll[cens] = norm.logcdf((threshold - mu[cens]) / sigma)
    return ll


def loglike(params: np.ndarray, X: np.ndarray, y: np.ndarray, threshold: float) -> float:
    return float(loglikeobs(params, X, y, threshold).sum())


def inverse_mills(c: np.ndarray) -> np.ndarray:
    """phi(c) / Phi(c), evaluated in log space so deep left tails stay finite."""
    return np.exp(norm.logpdf(c) - norm.logcdf(c))


def scoreobs(params: np.ndarray, X: np.ndarray, y: np.ndarray, threshold: float) -> np.ndarray:
    """Per-observation gradient of the log-likelihood, shape ``(n, k + 1)``."""
    beta, sigma = split_params(params)
    mu = X @ beta
    cens = censored_mask(y, threshold)

    # d ll_i / d mu_i and d ll_i / d sigma
    dmu = np.empty_like(mu)
    dsigma = np.empty_like(mu)

    r = (y[~cens] - mu[~cens]) / sigma
    dmu[~cens] = r / sigma
    dsigma[~cens] = (r**2 - 1.0) / sigma

    c = (threshold - mu[cens]) / sigma
    lam = inverse_mills(c)
    dmu[cens] = -lam / sigma
    dsigma[cens] = -lam * c / sigma

    return np.column_stack([X * dmu[:, None], dsigma])


def score(params: np.ndarray, X: np.ndarray, y: np.ndarray, threshold: float) -> np.ndarray:
    return scoreobs(params, X, y, threshold).sum(axis=0)


__all__ = [
    "split_params",
    "censored_mask",
    "loglikeobs",
    "loglike",
    "inverse_mills",
    "scoreobs",
    "score",
]
