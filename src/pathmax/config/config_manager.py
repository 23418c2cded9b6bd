"""Hydra-backed configuration for pathmax.

The active configuration is process-global: ``load_config`` composes
``conf/config.yaml`` (plus overrides), validates it and installs it, after
which ``SearchConfig.from_config()`` and ``create_alt_heuristic()`` read their
defaults from it.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from hydra import compose, initialize_config_dir
from hydra.core.global_hydra import GlobalHydra
from omegaconf import DictConfig, OmegaConf, open_dict

from .validators import validate_config

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "PATHMAX_CONFIG_DIR"

_global_config: Optional[DictConfig] = None


def default_config_dir() -> Path:
    """``$PATHMAX_CONFIG_DIR`` if set, else ``conf/`` at the project root."""
    if CONFIG_DIR_ENV in os.environ:
        return Path(os.environ[CONFIG_DIR_ENV])
    return Path(__file__).resolve().parents[3] / "conf"


class ConfigManager:
    """Loads, validates and updates one configuration directory."""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_dir: Directory holding ``<name>.yaml`` files; defaults to
                ``default_config_dir()``

        Raises:
            FileNotFoundError: if the directory does not exist
        """
        self.config_dir = Path(config_dir or default_config_dir()).resolve()
        self.config: Optional[DictConfig] = None

        if not self.config_dir.is_dir():
            raise FileNotFoundError(f"Configuration directory not found: {self.config_dir}")

        logger.debug(f"Configuration manager using {self.config_dir}")

    def load_config(self,
                    config_name: str = "config",
                    overrides: Optional[List[str]] = None,
                    validate: bool = True) -> DictConfig:
        """Compose ``config_name`` with Hydra overrides and make it global.

        Args:
            config_name: Config file name without ``.yaml``
            overrides: Hydra override strings, e.g. ``"search.astar.repair_policy=never"``
            validate: Run ``validate_config`` before installing the result

        Returns:
            The composed configuration

        Raises:
            ConfigValidationError: if validation is requested and fails
        """
        overrides = list(overrides or [])

        # Hydra refuses to initialize twice in one process
        GlobalHydra.instance().clear()
        try:
            with initialize_config_dir(config_dir=str(self.config_dir), version_base=None):
                cfg = compose(config_name=config_name, overrides=overrides)
        except Exception as e:
            logger.error(f"Failed to compose configuration '{config_name}': {e}")
            raise

        if validate:
            validate_config(cfg)

        self.config = cfg
        set_config(cfg, validate=False)

        logger.info(f"Loaded configuration '{config_name}' from {self.config_dir}"
                    + (f" with overrides {overrides}" if overrides else ""))
        return cfg

    def get_config(self) -> Optional[DictConfig]:
        return self.config

    def _require_config(self) -> DictConfig:
        if self.config is None:
            raise RuntimeError("No configuration loaded. Call load_config() first.")
        return self.config

    def update_config(self, updates: Dict[str, Any]) -> None:
        """Apply dotted-key updates; nothing changes if the result is invalid.

        Args:
            updates: Mapping of dotted keys to new values

        Raises:
            ConfigValidationError: if the updated configuration is invalid
        """
        candidate = copy.deepcopy(self._require_config())
        with open_dict(candidate):
            for key, value in updates.items():
                OmegaConf.update(candidate, key, value, merge=False)

        validate_config(candidate)

        with open_dict(self.config):
            for key, value in updates.items():
                OmegaConf.update(self.config, key, value, merge=False)
        logger.info(f"Configuration updated: {updates}")

    def save_config(self, output_path: Union[str, Path]) -> None:
        """Write the current configuration as YAML."""
        config = self._require_config()
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        OmegaConf.save(config, output_path)
        logger.info(f"Configuration saved to {output_path}")

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``search.astar.repair_policy``."""
        return OmegaConf.select(self._require_config(), key, default=default)


def load_config(config_name: str = "config",
                overrides: Optional[List[str]] = None,
                config_dir: Optional[Union[str, Path]] = None,
                validate: bool = True) -> DictConfig:
    """Load a configuration with a fresh ``ConfigManager`` and make it global."""
    return ConfigManager(config_dir).load_config(config_name, overrides, validate)


def get_config() -> Optional[DictConfig]:
    """Get the global configuration (None if nothing was loaded)."""
    return _global_config


def set_config(config: Optional[DictConfig], validate: bool = True) -> None:
    """Install ``config`` as the global configuration; None clears it."""
    global _global_config
    if config is not None and validate:
        validate_config(config)
    _global_config = config


def get_parameter(key: str, default: Any = None) -> Any:
    """Dotted-key lookup in the global configuration, ``default`` when unset."""
    if _global_config is None:
        return default
    return OmegaConf.select(_global_config, key, default=default)


_ABSENT = object()


class ConfigContext:
    """Temporarily change the global configuration.

    ``ConfigContext({'search.astar.repair_policy': 'never'})`` applies the
    changes on entry and restores the previous values on exit; keys that did
    not exist before are removed again.
    """

    def __init__(self, changes: Dict[str, Any]):
        self.changes = dict(changes)
        self.saved: Dict[str, Any] = {}
        self.config: Optional[DictConfig] = None

    def __enter__(self) -> DictConfig:
        self.config = get_config()
        if self.config is None:
            raise RuntimeError("No global configuration loaded")

        for key in self.changes:
            self.saved[key] = OmegaConf.select(self.config, key, default=_ABSENT)

        with open_dict(self.config):
            for key, value in self.changes.items():
                OmegaConf.update(self.config, key, value, merge=False)
        return self.config

    def __exit__(self, exc_type, exc_val, exc_tb):
        with open_dict(self.config):
            for key, value in self.saved.items():
                if value is _ABSENT:
                    parent_key, _, leaf = key.rpartition('.')
                    parent = OmegaConf.select(self.config, parent_key) if parent_key else self.config
                    parent.pop(leaf, None)
                else:
                    OmegaConf.update(self.config, key, value, merge=False)
