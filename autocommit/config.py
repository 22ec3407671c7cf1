"""
Config Module - Loads auto-commit options from .autocommit.json and the environment
"""

import os
import json
import logging
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".autocommit.json"
ENV_PREFIX = "AUTOCOMMIT_"

DEFAULT_CONFIG: Dict[str, Any] = {
    "automatically_push": False,
    "ask_for_summary": False,
    "shell_command_separator": " && ",
    "debounce_interval": None,
    "default_message": None,
    "commit_additional_flags": "",
    "silent": False,
    "add_new_files": True,
}


class ConfigError(ValueError):
    """Raised when an option has a value of the wrong type"""


@dataclass
class AutoCommitConfig:
    """Options controlling when and how a saved file is committed"""

    automatically_push: bool = False
    ask_for_summary: bool = False
    shell_command_separator: str = " && "
    debounce_interval: Optional[Union[int, float]] = None
    default_message: Optional[str] = None
    commit_additional_flags: str = ""
    silent: bool = False
    add_new_files: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AutoCommitConfig":
        """
        Build a config from a mapping, validating every known option

        Args:
            data: Option names mapped to values; unknown keys are ignored

        Returns:
            A validated AutoCommitConfig

        Raises:
            ConfigError: If an option has the wrong type
        """
        known = {f.name for f in fields(cls)}
        values = dict(DEFAULT_CONFIG)
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown option: {key}")
                continue
            values[key] = value

        for key in ("automatically_push", "ask_for_summary", "silent", "add_new_files"):
            if not isinstance(values[key], bool):
                raise ConfigError(f"{key} must be a boolean, got {values[key]!r}")

        for key in ("shell_command_separator", "commit_additional_flags"):
            if not isinstance(values[key], str):
                raise ConfigError(f"{key} must be a string, got {values[key]!r}")

        message = values["default_message"]
        if message is not None and not isinstance(message, str):
            raise ConfigError(f"default_message must be a string, got {message!r}")

        interval = values["debounce_interval"]
        if interval is not None:
            if isinstance(interval, bool) or not isinstance(interval, (int, float)):
                raise ConfigError(f"debounce_interval must be a number, got {interval!r}")
            if interval < 0:
                raise ConfigError(f"debounce_interval must not be negative, got {interval!r}")

        return cls(**values)

    def merged(self, overrides: Mapping[str, Any]) -> "AutoCommitConfig":
        """Return a copy with the non-None entries of overrides applied"""
        data = asdict(self)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return AutoCommitConfig.from_mapping(data)


def find_config_file(start: Union[str, Path]) -> Optional[Path]:
    """Return the nearest .autocommit.json at or above start, if any"""
    search = Path(start).resolve()
    if not search.is_dir():
        search = search.parent
    for directory in [search, *search.parents]:
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _parse_env_value(key: str, raw: str) -> Any:
    default = DEFAULT_CONFIG[key]
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ConfigError(f"{ENV_PREFIX}{key.upper()} must be a boolean, got {raw!r}")
    if key == "debounce_interval":
        if not raw.strip():
            return None
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ConfigError(f"{ENV_PREFIX}DEBOUNCE_INTERVAL must be a number, got {raw!r}")
    return raw


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect AUTOCOMMIT_* variables as option overrides"""
    environ = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}
    for key in DEFAULT_CONFIG:
        env_key = ENV_PREFIX + key.upper()
        if env_key in environ:
            overrides[key] = _parse_env_value(key, environ[env_key])
    return overrides


def load_config(
    start: Union[str, Path],
    environ: Optional[Mapping[str, str]] = None,
) -> AutoCommitConfig:
    """
    Load the configuration that applies to a file

    The nearest .autocommit.json above start is merged over the defaults,
    then AUTOCOMMIT_* environment variables are applied on top.

    Args:
        start: The watched file or a directory to search upwards from
        environ: Environment mapping, defaults to os.environ

    Returns:
        The effective AutoCommitConfig

    Raises:
        ConfigError: If the file is not a JSON object or an option is invalid
    """
    data: Dict[str, Any] = {}
    config_file = find_config_file(start)
    if config_file is not None:
        logger.debug(f"Loading config from {config_file}")
        try:
            loaded = json.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read {config_file}: {e}")
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_file} must contain a JSON object")
        data.update(loaded)

    data.update(env_overrides(environ))
    return AutoCommitConfig.from_mapping(data)
