"""
Configuration Parser for the Intergenic Region Job

Reads a YAML configuration file and turns it into engine settings.

Example config.yaml:

    store:
      path: /data/warehouse
    resources:
      workers: 8
      executor: thread
    provenance:
      data_source: InterMine post-processor
      data_set:
        name: InterMine intergenic regions
        description: Intergenic regions created by the InterMine core post-processor
        url: http://www.intermine.org
    logging:
      level: INFO
      file: intergenic_regions.log

Precedence: command-line flags > environment (IGR_STORE_PATH, IGR_WORKERS)
> YAML > defaults.

Usage:
    from igrpipe.config_parser import load_config, get_nested
    config = load_config("config.yaml")
    store_path = get_nested(config, "store.path")
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .engine import EXECUTORS

ENV_OVERRIDES = {
    "IGR_STORE_PATH": "store.path",
    "IGR_WORKERS": "resources.workers",
}

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file, or None for an empty config

    Returns:
        Dictionary containing configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    if config_path is None:
        return {}

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}

    return config


def get_nested(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested value from config using dot notation.

    Examples:
        >>> config = {"store": {"path": "/data/warehouse"}}
        >>> get_nested(config, "store.path")
        '/data/warehouse'
        >>> get_nested(config, "store.missing", "default")
        'default'
    """
    keys = key_path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def set_nested(config: Dict[str, Any], key_path: str, value: Any) -> None:
    """Set a nested value using dot notation, creating sections as needed."""
    keys = key_path.split('.')
    section = config
    for key in keys[:-1]:
        if not isinstance(section.get(key), dict):
            section[key] = {}
        section = section[key]
    section[keys[-1]] = value


def apply_env_overrides(config: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Overlay IGR_* environment variables onto the config (in place)."""
    environ = os.environ if environ is None else environ
    for var, key_path in ENV_OVERRIDES.items():
        value = environ.get(var, "").strip()
        if value:
            set_nested(config, key_path, value)
    return config


def validate_config(config: Dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration values.

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    store_path = get_nested(config, "store.path")
    if not store_path:
        errors.append("Missing: entity store directory (store.path)")
    elif not Path(str(store_path)).is_dir():
        errors.append(f"Store directory not found: {store_path} (store.path)")

    workers = get_nested(config, "resources.workers")
    if workers is not None:
        try:
            if int(workers) < 1:
                errors.append(f"resources.workers must be >= 1, got {workers}")
        except (ValueError, TypeError):
            errors.append(f"resources.workers must be an integer, got {workers}")

    executor = get_nested(config, "resources.executor", "thread")
    if executor not in EXECUTORS:
        errors.append(f"resources.executor must be one of {', '.join(EXECUTORS)}, got {executor}")

    level = str(get_nested(config, "logging.level", "INFO")).upper()
    if level not in LOG_LEVELS:
        errors.append(f"logging.level must be one of {', '.join(sorted(LOG_LEVELS))}, got {level}")

    return len(errors) == 0, errors


def engine_kwargs(config: Dict[str, Any]) -> Dict[str, Any]:
    """Keyword arguments for IntergenicRegionEngine drawn from a validated config."""
    kwargs: Dict[str, Any] = {
        "executor": get_nested(config, "resources.executor", "thread"),
    }
    workers = get_nested(config, "resources.workers")
    if workers is not None:
        kwargs["workers"] = int(workers)

    provenance = {
        "data_source_name": "provenance.data_source",
        "data_set_name": "provenance.data_set.name",
        "data_set_description": "provenance.data_set.description",
        "data_set_url": "provenance.data_set.url",
    }
    for name, key_path in provenance.items():
        value = get_nested(config, key_path)
        if value is not None:
            kwargs[name] = str(value)
    return kwargs


def print_config_summary(config: Dict[str, Any]) -> None:
    """Print a human-readable config summary."""
    print("=" * 60)
    print("Intergenic Region Job Configuration")
    print("=" * 60)

    sections = [
        ("Store", [
            ("store.path", "Store Directory"),
        ]),
        ("Resources", [
            ("resources.workers", "Workers"),
            ("resources.executor", "Executor"),
        ]),
        ("Provenance", [
            ("provenance.data_source", "Data Source"),
            ("provenance.data_set.name", "Data Set"),
        ]),
    ]

    for section_name, fields in sections:
        print(f"\n{section_name}:")
        for key_path, label in fields:
            value = get_nested(config, key_path, "default")
            print(f"  {label}: {value}")

    print("\n" + "=" * 60)
