"""Fit CLI command wiring."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from gravity_tobit.config.loader import load_config_with_precedence, parse_bool
from gravity_tobit.data.loader import load_dataset
from gravity_tobit.exceptions import ConfigValidationError
from gravity_tobit.models.tobit import tobit
from gravity_tobit.schema.estimation_config import EstimationConfig
from gravity_tobit.utils.logging import get_logger

log = get_logger(__name__, component="cli_fit")

ENV_PREFIX = "GRAVITY_TOBIT_"


def _split_columns(value: str | list | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def fit(
    data: Path = typer.Argument(..., help="CSV or Parquet file with bilateral observations"),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional YAML/JSON config path"),
    dependent: Optional[str] = typer.Option(None, "--dependent", help="Flow column (zeros allowed)"),
    regressors: Optional[str] = typer.Option(
        None, "--regressors", help="Comma-separated regressors, distance first (e.g. distw,rta,lgdp_o)"
    ),
    added_constant: Optional[float] = typer.Option(None, "--added-constant", help="Constant added before logging"),
    max_iterations: Optional[int] = typer.Option(None, "--max-iterations", help="BHHH iteration budget"),
    tolerance: Optional[float] = typer.Option(None, "--tolerance", help="Log-likelihood change tolerance"),
    strict: Optional[bool] = typer.Option(None, "--strict/--no-strict", help="Fail when the fit does not converge"),
    output: Optional[Path] = typer.Option(None, "--output", help="Write the JSON result here instead of stdout"),
) -> None:
    defaults = {
        "dependent": None,
        "regressors": None,
        "added_constant": 1.0,
        "max_iterations": 500,
        "tolerance": 1e-8,
        "gradient_tolerance": 1e-6,
        "max_step_halvings": 30,
        "step_halving": True,
        "pseudo_inverse": True,
        "strict": False,
    }
    cli_values = {
        "dependent": dependent,
        "regressors": regressors,
        "added_constant": added_constant,
        "max_iterations": max_iterations,
        "tolerance": tolerance,
        "strict": strict,
    }
    casters = {
        "dependent": str,
        "regressors": _split_columns,
        "added_constant": float,
        "max_iterations": int,
        "tolerance": float,
        "gradient_tolerance": float,
        "max_step_halvings": int,
        "step_halving": parse_bool,
        "pseudo_inverse": parse_bool,
        "strict": parse_bool,
    }
    cfg = load_config_with_precedence(
        config_path=config,
        env_prefix=ENV_PREFIX,
        cli_values=cli_values,
        defaults=defaults,
        casters=casters,
    )

    if not cfg.get("dependent"):
        raise ConfigValidationError("dependent is required (CLI > ENV > config file)")
    if not cfg.get("regressors"):
        raise ConfigValidationError("regressors are required, distance first (CLI > ENV > config file)")

    estimation = EstimationConfig(
        added_constant=cfg["added_constant"],
        max_iterations=cfg["max_iterations"],
        tolerance=cfg["tolerance"],
        gradient_tolerance=cfg["gradient_tolerance"],
        max_step_halvings=cfg["max_step_halvings"],
        step_halving=cfg["step_halving"],
        pseudo_inverse=cfg["pseudo_inverse"],
        raise_on_failure=cfg["strict"],
    )

    df = load_dataset(data)
    log.info("Loaded dataset", extra={"n_obs": len(df)})
    result = tobit(df, cfg["dependent"], cfg["regressors"], config=estimation)

    payload = json.dumps(result.to_dict(), indent=2)
    if output is not None:
        output.write_text(payload)
        log.info("Wrote fit result", extra={"status": str(output)})
    else:
        typer.echo(payload)
    if not result.converged:
        typer.echo(f"WARNING: {result.message}", err=True)
