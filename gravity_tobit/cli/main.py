"""Typer CLI entrypoint with structured error handling."""

from __future__ import annotations

import sys

import typer

from gravity_tobit.cli.commands.fit import fit
from gravity_tobit.exceptions import (
    ConfigValidationError,
    ConvergenceFailure,
    DegenerateInputError,
    InvalidInputError,
    NumericalError,
)
from gravity_tobit.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Gravity model Tobit estimation CLI")


@app.callback()
def _root() -> None:
    """Estimate left-censored gravity models."""


app.command()(fit)


log = get_logger(__name__, component="cli")


def main() -> None:
    configure_logging(component="cli")
    try:
        app()
    except ConfigValidationError as exc:
        log.error(str(exc))
        raise SystemExit(1)
    except (InvalidInputError, DegenerateInputError) as exc:
        log.error(f"Input validation failed: {exc}")
        raise SystemExit(2)
    except NumericalError as exc:
        log.error(f"Numerical failure during estimation: {exc}")
        raise SystemExit(3)
    except ConvergenceFailure as exc:
        log.error(f"Estimation did not converge: {exc}")
        raise SystemExit(4)
    except KeyboardInterrupt:
        log.info("Shutdown requested.")
        raise SystemExit(130)
    except Exception:
        log.exception("Unhandled exception")
        raise SystemExit(255)


if __name__ == "__main__":
    sys.exit(main())
