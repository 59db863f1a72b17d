"""Configuration file lookup and loading.

Each installation keeps one YAML file per environment under config/, named
config-{env}.yaml, plus an optional config/.env with database credentials.
Services read their own top-level block (``dashboard``, ``uplink_logger``)
and the shared ``mqtt`` and ``log_level`` keys.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv

ENV_VARIABLE = "STATIONWATCH_ENV"
DEFAULT_ENVIRONMENT = "stationwatch"


def get_repo_root() -> Path:
    """Directory that holds the config/ folder of an installation."""
    return Path(__file__).parent.parent.parent


def get_config_path(
    config_name: Optional[str] = None,
    config_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Path of a configuration file, config/config-{env}.yaml by default."""
    directory = Path(config_dir) if config_dir is not None else get_repo_root() / "config"
    if config_name is None:
        config_name = f"config-{os.getenv(ENV_VARIABLE, DEFAULT_ENVIRONMENT)}.yaml"
    return directory / config_name


def load_yaml_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load .env files, then the YAML configuration.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the file does not hold a mapping.
    """
    load_dotenv(get_repo_root() / "config" / ".env")
    load_dotenv()

    path = Path(config_path) if config_path is not None else get_config_path()
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def get_section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """A top-level block of the config, empty if absent."""
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def get_log_level(config: Dict[str, Any]) -> str:
    """Log level from the config, INFO by default."""
    return str(config.get("log_level", "INFO")).upper()
