"""Logging helpers."""

import logging
from typing import Optional, Union

from omegaconf import DictConfig, OmegaConf


def setup_logging(level: Union[int, str] = logging.INFO,
                  format_string: Optional[str] = None) -> None:
    """Setup logging configuration.

    Args:
        level: Logging level (number or name such as ``"DEBUG"``)
        format_string: Custom format string

    Raises:
        ValueError: if ``level`` is not a known level name
    """
    if isinstance(level, str):
        name = level
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level: {name!r}")

    if format_string is None:
        if level <= logging.DEBUG:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_string = "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True
    )


def setup_logging_from_config(cfg: DictConfig) -> None:
    """Configure logging from the ``logging`` group of a loaded config."""
    level = OmegaConf.select(cfg, 'logging.level', default='INFO')
    format_string = OmegaConf.select(cfg, 'logging.format', default=None)
    setup_logging(level, format_string)
