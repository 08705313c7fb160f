from __future__ import annotations

import os
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from illustration_png.core.types import ServiceConfig

ENV_PREFIX = "ILLUSTRATION_PNG_"

_CASTS = {
    "port": int,
    "max_dimension": int,
    "cache_max_age": int,
    "fetch_timeout": float,
    "static_dir": Path,
}


def _coerce(key: str, value: Any) -> Any:
    if value is None:
        return None
    cast = _CASTS.get(key)
    return cast(value) if cast else value


def load_yaml_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file {str(path)!r} not found")
    data = yaml.safe_load(path.read_text()) or {}
    known = {f.name for f in fields(ServiceConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys {unknown}. Available: {sorted(known)}")
    return data


def load_env_config(environ: dict[str, str] | None = None) -> dict[str, Any]:
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for f in fields(ServiceConfig):
        raw = environ.get(ENV_PREFIX + f.name.upper())
        if raw:
            values[f.name] = raw
    return values


def build_service_config(
    config_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
    **overrides: Any,
) -> ServiceConfig:
    """Merge defaults, an optional YAML file, the environment and explicit overrides.

    Later sources win. Overrides set to None are ignored so CLI flags left
    unset do not mask the other layers.
    """
    merged: dict[str, Any] = {}
    if config_path is not None:
        merged.update(load_yaml_config(Path(config_path)))
    merged.update(load_env_config(environ))
    merged.update({k: v for k, v in overrides.items() if v is not None})

    return ServiceConfig(**{key: _coerce(key, value) for key, value in merged.items()})
