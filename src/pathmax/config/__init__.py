"""Configuration management for pathmax.

This module provides Hydra-based configuration management with hierarchical
parameter groups and runtime override capabilities.
"""

from .config_manager import (
    ConfigContext, ConfigManager, default_config_dir, get_config, get_parameter, load_config,
    set_config
)
from .validators import ConfigValidationError, validate_config

__all__ = [
    'ConfigContext',
    'ConfigManager',
    'default_config_dir',
    'load_config',
    'get_config',
    'get_parameter',
    'set_config',
    'validate_config',
    'ConfigValidationError'
]
