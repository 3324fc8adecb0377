"""
Configuration file loading and merging.

Search order:
1. Explicit path (--config flag)
2. .runreport/config.yaml (current directory)
3. ~/.runreport/config.yaml (user home)
4. Environment only

Values from the file override environment settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from runreport.config.settings import Settings
from runreport.core.errors import ConfigurationError

logger = structlog.get_logger()

CONFIG_DIR = ".runreport"
CONFIG_FILE = "config.yaml"


def get_config_path(explicit_path: str | Path | None = None) -> Path | None:
    """
    Find the configuration file to use.

    Returns:
        Path to config file or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigurationError("Config file not found", {"path": str(path)})

    cwd_config = Path.cwd() / CONFIG_DIR / CONFIG_FILE
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / CONFIG_DIR / CONFIG_FILE
    if home_config.exists():
        return home_config

    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError("Failed to read config file", {"path": str(path), "error": str(e)}) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a mapping", {"path": str(path)})
    return data


def load_settings(path: str | Path | None = None) -> Settings:
    """
    Load settings from the environment, overlaid with a YAML config file.

    The file may nest values under a ``run_history`` key or keep them at
    the top level, using the same field names as :class:`Settings`.
    """
    config_path = get_config_path(path)
    base = Settings()
    if config_path is None:
        return base

    data = _read_yaml(config_path)
    section = data.get("run_history", data)
    if not isinstance(section, dict):
        raise ConfigurationError("run_history section must be a mapping", {"path": str(config_path)})

    unknown = sorted(set(section) - set(Settings.model_fields))
    if unknown:
        logger.warning("ignored_config_keys", path=str(config_path), keys=unknown)

    overrides = {k: v for k, v in section.items() if k in Settings.model_fields}
    logger.debug("loaded_config", path=str(config_path))
    return Settings(**{**base.model_dump(), **overrides})
