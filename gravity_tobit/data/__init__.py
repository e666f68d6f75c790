"""Dataset loading and preparation for the censored regression."""

from __future__ import annotations

from .loader import load_dataset
from .preparation import PreparedData, prepare

__all__ = ["PreparedData", "load_dataset", "prepare"]
