"""Read bilateral datasets from disk for the CLI."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from gravity_tobit.exceptions import InvalidInputError

SUPPORTED_SUFFIXES = {".csv", ".parquet", ".pq"}


def load_dataset(path: Path | str) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise InvalidInputError(f"Dataset not found: {path}")
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path)
    if suffix in {".parquet", ".pq"}:
        return pd.read_parquet(path)
    raise InvalidInputError(f"Unsupported dataset format '{suffix}'; expected one of {sorted(SUPPORTED_SUFFIXES)}")


__all__ = ["load_dataset", "SUPPORTED_SUFFIXES"]
