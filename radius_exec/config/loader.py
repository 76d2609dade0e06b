"""Configuration loading.

Load order: config file → environment variables → schema defaults.
Environment values only fill options the file leaves unset.
"""

import configparser
import os
import re

from radius_exec.exceptions import ConfigurationError
from radius_exec.utils.logger import get_logger, level_from_name

from .constants import (
    ENV_LOG_LEVEL,
    ENV_PREFIX,
    EXEC_OPTIONS,
    SECTION_EXEC,
    SECTION_LOGGING,
)
from .schema import ExecModuleConfig, validate_module_config

logger = get_logger(__name__)


def parse_section_name(section: str) -> tuple[bool, str | None]:
    """Classify a section title.

    Returns ``(True, None)`` for the bare ``exec`` section, ``(True, name)``
    for ``exec <name>`` and ``(False, None)`` for anything else.
    """
    words = section.split()
    if not words or words[0] != SECTION_EXEC or len(words) > 2:
        return False, None
    return True, (words[1] if len(words) == 2 else None)


def env_var_name(instance: str | None, key: str) -> str:
    """Environment variable overriding ``key`` of an instance."""
    if instance is None:
        return f"{ENV_PREFIX}{key.upper()}"
    slug = re.sub(r"[^A-Za-z0-9]", "_", instance).upper()
    return f"{ENV_PREFIX}{slug}_{key.upper()}"


def apply_env_overrides(
    config: configparser.ConfigParser,
    section: str,
    key: str,
    env_var: str,
) -> None:
    """Apply environment variable override to config value.

    Args:
        config: ConfigParser instance
        section: Section name
        key: Key name
        env_var: Environment variable carrying the value
    """
    value = os.environ.get(env_var)
    if value is None:
        return
    if not config.has_section(section):
        config.add_section(section)
    # only fill the key when the config file leaves it unset
    if not config.has_option(section, key):
        config.set(section, key, value)
        logger.debug(
            "Configuration option taken from environment",
            event="exec.config.env_override",
            section=section,
            key=key,
            env_var=env_var,
        )


def new_parser() -> configparser.ConfigParser:
    # Program lines contain %{...} references, so no interpolation.
    return configparser.ConfigParser(interpolation=None)


def load_config(path: str) -> configparser.ConfigParser:
    """Read an INI file.

    Raises:
        ConfigurationError: file missing or not parseable
    """
    if not os.path.exists(path):
        raise ConfigurationError(f"Configuration file not found: {path}")
    config = new_parser()
    try:
        with open(path, encoding="utf-8") as fh:
            config.read_file(fh, source=path)
    except configparser.Error as exc:
        raise ConfigurationError(f"Cannot parse {path}: {exc}") from exc
    logger.debug(
        "Loaded configuration file",
        event="exec.config.loaded",
        path=path,
        sections=config.sections(),
    )
    return config


def module_configs(config: configparser.ConfigParser) -> list[ExecModuleConfig]:
    """Validate every exec section into an ExecModuleConfig.

    Raises:
        ConfigurationError: for the first invalid section
    """
    configs: list[ExecModuleConfig] = []
    for section in config.sections():
        is_exec, name = parse_section_name(section)
        if not is_exec:
            continue
        for key in EXEC_OPTIONS:
            apply_env_overrides(config, section, key, env_var_name(name, key))
        options = dict(config.items(section))
        configs.append(validate_module_config(options, name=name))
    return configs


def log_level(config: configparser.ConfigParser) -> int:
    """Logging level from ``[logging] level`` or the environment"""
    apply_env_overrides(config, SECTION_LOGGING, "level", ENV_LOG_LEVEL)
    return level_from_name(config.get(SECTION_LOGGING, "level", fallback=None))


__all__ = [
    "apply_env_overrides",
    "env_var_name",
    "load_config",
    "log_level",
    "module_configs",
    "new_parser",
    "parse_section_name",
]
