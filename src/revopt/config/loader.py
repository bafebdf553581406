"""
Configuration loading utilities.

Supports environment variable interpolation and config inheritance.
Minimal configs only need: source.base_url
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from revopt.config.settings import LoaderConfig


def _interpolate_env_vars(value: str) -> str:
    """
    Interpolate environment variables in string values.

    Supports ${VAR} and ${VAR:default} syntax.
    """
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return re.sub(pattern, replacer, value)


def _process_config_values(obj: Any) -> Any:
    """Recursively process config values for env var interpolation."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _process_config_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_process_config_values(item) for item in obj]
    return obj


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and process environment variables."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return _process_config_values(data) if data else {}


def load_config(
    config_path: Path,
    base_path: Path | None = None,
) -> LoaderConfig:
    """
    Load loader configuration from YAML file(s).

    Minimal config requires only:
        - source.base_url: str

    Args:
        config_path: Path to the main configuration file.
        base_path: Optional path to base configuration for inheritance.

    Returns:
        Fully validated LoaderConfig instance.
    """
    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        # Try to find base.yaml in same directory
        potential_base = config_path.parent / "base.yaml"
        is_self = potential_base.resolve() == config_path.resolve()
        base_data = (
            load_yaml(potential_base) if potential_base.exists() and not is_self else {}
        )

    main_data = load_yaml(config_path)
    merged = _deep_merge(base_data, main_data)

    source_data = merged.get("source") or {}
    if not source_data.get("base_url"):
        msg = "Config must specify 'source.base_url'"
        raise ValueError(msg)

    # Relative cache directories resolve against the config file location
    cache_data = dict(merged.get("cache") or {})
    if cache_data.get("directory"):
        cache_dir = Path(cache_data["directory"])
        if not cache_dir.is_absolute():
            cache_dir = config_path.parent / cache_dir
        cache_data["directory"] = cache_dir

    return LoaderConfig(
        source=source_data,
        transport=merged.get("transport") or {},
        cache=cache_data,
        validation=merged.get("validation") or {},
        logging=merged.get("logging") or {},
    )
