"""Configuration loader for xlauth."""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import DEFAULT_EXE, DEFAULT_NAME, DEFAULT_TIMEOUT, Defaults, XlauthError
from .preferences import get_preference
from .durations import parse_duration

logger = logging.getLogger(__name__)

KNOWN_DEFAULT_KEYS = {"name", "timeout", "launcher_path"}


class ConfigError(XlauthError):
    """Configuration error exception."""
    pass


def default_config_path() -> Path:
    return Path.home() / ".config" / "xlauth" / "config.yml"


def _get_config_path() -> Optional[Path]:
    """
    Resolve the config file using XDG Base Directory standard.

    Priority order:
    1. User preference (stored in ~/.config/xlauth/preferences.json)
    2. Default location: ~/.config/xlauth/config.yml

    Returns:
        Path to an existing config file, or None when there is none. The
        config file is optional; built-in defaults apply without it.
    """
    config_path_pref = get_preference("config_path")
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return config_path
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return default_config

    logger.debug("No config file found, using built-in defaults")
    return None


def _read_config(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")
    return config


def load_config() -> Defaults:
    """
    Load operation defaults, layering the config file over built-in constants.

    Expected format:
        defaults:
          name: "[default]"
          timeout: 60s
          launcher_path: xivlauncher-core

    Returns:
        Defaults with every field populated

    Raises:
        ConfigError: If the config file is unreadable or holds invalid values
    """
    config_path = _get_config_path()
    config = _read_config(config_path) if config_path else {}

    for key in config:
        if key != "defaults":
            logger.warning(f"Ignoring unknown config section '{key}' in {config_path}")

    section = config.get("defaults") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'defaults' in {config_path} must be a mapping")

    for key in section:
        if key not in KNOWN_DEFAULT_KEYS:
            logger.warning(f"Ignoring unknown config key 'defaults.{key}' in {config_path}")

    name = section.get("name", DEFAULT_NAME)
    if not isinstance(name, str) or not name:
        raise ConfigError(f"'defaults.name' in {config_path} must be a non-empty string")

    launcher_path = section.get("launcher_path", DEFAULT_EXE)
    if not isinstance(launcher_path, str) or not launcher_path:
        raise ConfigError(f"'defaults.launcher_path' in {config_path} must be a non-empty string")

    raw_timeout = section.get("timeout", DEFAULT_TIMEOUT)
    try:
        if isinstance(raw_timeout, (int, float)) and not isinstance(raw_timeout, bool):
            # Bare YAML numbers are seconds
            timeout = parse_duration(f"{raw_timeout}s")
        else:
            timeout = parse_duration(str(raw_timeout))
    except ValueError as e:
        raise ConfigError(f"'defaults.timeout' in {config_path} is invalid: {e}")

    if config_path:
        logger.info(f"Configuration loaded successfully from {config_path}")
    return Defaults(name=name, timeout=timeout, launcher_path=launcher_path)
