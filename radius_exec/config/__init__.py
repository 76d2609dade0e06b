"""Exec module configuration

- INI file loading with environment overrides
- Pydantic validation into read-only instance settings
"""

from .constants import *
from .loader import load_config, module_configs
from .schema import ExecModuleConfig, validate_module_config

__all__ = [
    "ExecModuleConfig",
    "load_config",
    "module_configs",
    "validate_module_config",
]
