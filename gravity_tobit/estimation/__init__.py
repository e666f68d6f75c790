"""Censored-regression solver: likelihood, BHHH optimizer and fit results."""

from __future__ import annotations

from .likelihood import loglike, loglikeobs, score, scoreobs
from .models import FitResult
from .solver import fit

__all__ = ["FitResult", "fit", "loglike", "loglikeobs", "score", "scoreobs"]
