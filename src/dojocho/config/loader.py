"""
Configuration loader with deep merge.

Precedence order (lowest to highest):
1. Defaults (defined in the Pydantic schemas)
2. YAML file (``dojo.yaml`` at the project root)
3. Environment variables
4. CLI arguments

The merge is recursive to preserve every key at every level.
"""

import os
from pathlib import Path
from typing import Any

import yaml

from .schema import AppConfig

CONFIG_FILENAMES = ("dojo.yaml", ".dojo.yaml")
RC_FILENAME = ".dojorc"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursive dictionary merge.

    Args:
        base: Base dictionary
        override: Dictionary whose values win over the base

    Returns:
        New merged dictionary. Override wins on leaf conflicts.

    Example:
        >>> deep_merge({"http": {"timeout": 30}}, {"http": {"timeout": 5}})
        {'http': {'timeout': 5}}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from ``start`` to the first directory holding ``.dojorc``.

    Falls back to ``start`` (or the CWD) when no marker is found.
    """
    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if (candidate / RC_FILENAME).exists():
            return candidate
    return origin


def find_config_file(project_root: Path) -> Path | None:
    """Return the project's YAML config file, if any."""
    for name in CONFIG_FILENAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def load_yaml_config(config_path: Path | None) -> dict[str, Any]:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML file, or None to skip

    Returns:
        Dictionary with the configuration, or an empty dict if there is no file
    """
    if not config_path:
        return {}

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def load_env_overrides() -> dict[str, Any]:
    """Load overrides from environment variables.

    Supported variables:
        DOJO_LOG_LEVEL: overrides logging.level
        DOJO_PACKS_DIR: overrides packs_dir
        DOJO_KATAS_PATH: overrides katas_path
    """
    overrides: dict[str, Any] = {}

    if log_level := os.environ.get("DOJO_LOG_LEVEL"):
        overrides.setdefault("logging", {})["level"] = log_level.lower()

    if packs_dir := os.environ.get("DOJO_PACKS_DIR"):
        overrides["packs_dir"] = packs_dir

    if katas_path := os.environ.get("DOJO_KATAS_PATH"):
        overrides["katas_path"] = katas_path

    return overrides


def apply_cli_overrides(config_dict: dict[str, Any], cli_args: dict[str, Any]) -> dict[str, Any]:
    """Apply overrides coming from CLI arguments.

    Args:
        config_dict: Base configuration (already merged with YAML and env)
        cli_args: Dictionary with the CLI arguments

    Returns:
        Configuration with CLI overrides applied
    """
    overrides: dict[str, Any] = {}

    if cli_args.get("log_file"):
        overrides.setdefault("logging", {})["file"] = cli_args["log_file"]

    if cli_args.get("verbose") is not None:
        overrides.setdefault("logging", {})["verbose"] = cli_args["verbose"]

    if cli_args.get("timeout"):
        overrides.setdefault("http", {})["timeout"] = cli_args["timeout"]

    return deep_merge(config_dict, overrides)


def load_config(
    config_path: Path | None = None,
    cli_args: dict[str, Any] | None = None,
) -> AppConfig:
    """Load and validate the full project configuration.

    Args:
        config_path: Path to the YAML configuration file
        cli_args: Dictionary with CLI arguments

    Returns:
        Validated AppConfig

    Raises:
        FileNotFoundError: If config_path does not exist
        ValidationError: If the final configuration is invalid
    """
    cli_args = cli_args or {}

    yaml_config = load_yaml_config(config_path)

    env_overrides = load_env_overrides()
    merged = deep_merge(yaml_config, env_overrides)

    merged = apply_cli_overrides(merged, cli_args)

    return AppConfig(**merged)
