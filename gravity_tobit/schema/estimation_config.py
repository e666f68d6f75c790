"""Estimation configuration schema and validation."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields

from gravity_tobit.exceptions import ConfigValidationError


@dataclass(slots=True)
class EstimationConfig:
    added_constant: float = 1.0
    max_iterations: int = 500
    tolerance: float = 1e-8
    gradient_tolerance: float = 1e-6
    max_step_halvings: int = 30
    step_halving: bool = True
    pseudo_inverse: bool = True
    raise_on_failure: bool = False

    def __post_init__(self) -> None:
        if not math.isfinite(self.added_constant) or self.added_constant <= 0:
            raise ConfigValidationError("added_constant must be a finite number > 0")
        if self.max_iterations <= 0:
            raise ConfigValidationError("max_iterations must be > 0")
        if not self.tolerance > 0:
            raise ConfigValidationError("tolerance must be > 0")
        if not self.gradient_tolerance > 0:
            raise ConfigValidationError("gradient_tolerance must be > 0")
        if self.max_step_halvings < 0:
            raise ConfigValidationError("max_step_halvings must be >= 0")

    @classmethod
    def from_dict(cls, data: dict) -> "EstimationConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(f"Unknown estimation settings: {unknown}")
        return cls(**data)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def solver_options(self) -> dict:
        """Keyword arguments accepted by the censored-regression solver."""
        options = self.to_dict()
        options.pop("added_constant")
        return options


__all__ = ["EstimationConfig"]
