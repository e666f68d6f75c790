"""Layered configuration loading: CLI > environment > config file > defaults."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

from gravity_tobit.exceptions import ConfigValidationError
from gravity_tobit.utils.logging import get_logger

log = get_logger(__name__, component="config")

Caster = Callable[[Any], Any]


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc
    return content or {}


def load_config_file(config_path: Path | str | None) -> Dict[str, Any]:
    """Read a YAML or JSON mapping; an absent path yields an empty mapping."""
    if config_path is None:
        return {}
    path = Path(config_path)
    if not path.exists():
        raise ConfigValidationError(f"Config file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in {".yml", ".yaml"}:
        content = _load_yaml(path)
    elif suffix == ".json":
        try:
            content = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigValidationError(f"Invalid JSON in {path}: {exc}") from exc
    else:
        raise ConfigValidationError(f"Unsupported config format '{suffix}' (use .yaml, .yml or .json)")
    if not isinstance(content, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at top level")
    return content


def _cast(key: str, value: Any, casters: Mapping[str, Caster]) -> Any:
    caster = casters.get(key)
    if caster is None or value is None:
        return value
    try:
        return caster(value)
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(f"Invalid value for {key}: {value!r}") from exc


def load_config_with_precedence(
    *,
    config_path: Path | str | None,
    env_prefix: str,
    cli_values: Mapping[str, Any],
    defaults: Mapping[str, Any],
    casters: Optional[Mapping[str, Caster]] = None,
) -> Dict[str, Any]:
    """Merge settings with precedence CLI > ENV > file > defaults.

    Only keys present in ``defaults`` are recognised. CLI values of ``None``
    mean "not supplied" and fall through to the next layer.
    """

    casters = casters or {}
    file_values = load_config_file(config_path)
    unknown = sorted(set(file_values) - set(defaults))
    if unknown:
        raise ConfigValidationError(f"Unknown config keys in {config_path}: {unknown}")

    merged: Dict[str, Any] = {}
    sources: Dict[str, str] = {}
    for key, default in defaults.items():
        env_key = f"{env_prefix}{key.upper()}"
        if cli_values.get(key) is not None:
            merged[key], sources[key] = cli_values[key], "cli"
        elif env_key in os.environ:
            merged[key], sources[key] = os.environ[env_key], "env"
        elif key in file_values:
            merged[key], sources[key] = file_values[key], "file"
        else:
            merged[key], sources[key] = default, "default"
        merged[key] = _cast(key, merged[key], casters)

    log.debug("Configuration resolved", extra={"status": sources})
    return merged


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


__all__ = ["load_config_file", "load_config_with_precedence", "parse_bool"]
