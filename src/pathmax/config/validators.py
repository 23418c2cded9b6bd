"""Configuration validation for pathmax."""

import logging
from typing import List

from omegaconf import DictConfig

logger = logging.getLogger(__name__)

REPAIR_POLICIES = ('auto', 'always', 'never')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""
    pass


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: DictConfig) -> None:
    """Validate the complete configuration.

    Args:
        config: Configuration to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        validate_search_config(config.get('search', {}))
        validate_logging_config(config.get('logging', {}))

        for warning in validate_parameter_ranges(config):
            logger.warning(f"Configuration warning: {warning}")

        logger.info("Configuration validation passed")

    except ConfigValidationError:
        raise
    except Exception as e:
        raise ConfigValidationError(f"Configuration validation failed: {e}")


def validate_search_config(search_config: DictConfig) -> None:
    """Validate search configuration section.

    Args:
        search_config: Search configuration section
    """
    if not search_config:
        return

    astar_config = search_config.get('astar', {})
    if astar_config:
        max_nodes = astar_config.get('max_nodes_expanded', None)
        if max_nodes is not None and (not _is_int(max_nodes) or max_nodes <= 0):
            raise ConfigValidationError(
                f"astar.max_nodes_expanded must be null or a positive integer, got {max_nodes}"
            )

        max_time = astar_config.get('max_computation_time', None)
        if max_time is not None and (not _is_number(max_time) or max_time <= 0):
            raise ConfigValidationError(
                f"astar.max_computation_time must be null or a positive number, got {max_time}"
            )

        policy = astar_config.get('repair_policy', 'auto')
        if policy not in REPAIR_POLICIES:
            raise ConfigValidationError(
                f"astar.repair_policy must be one of {REPAIR_POLICIES}, got {policy}"
            )

        for key in ('strict_target_check', 'validate_edge_weights'):
            value = astar_config.get(key, True)
            if not isinstance(value, bool):
                raise ConfigValidationError(f"astar.{key} must be a boolean, got {value}")

        every = astar_config.get('log_progress_every', 0)
        if not _is_int(every) or every < 0:
            raise ConfigValidationError(
                f"astar.log_progress_every must be a non-negative integer, got {every}"
            )

    heuristics_config = search_config.get('heuristics', {})
    if heuristics_config:
        per_vertex = heuristics_config.get('landmarks_per_vertex', 1)
        if not _is_int(per_vertex) or per_vertex < 1:
            raise ConfigValidationError(
                f"heuristics.landmarks_per_vertex must be a positive integer, got {per_vertex}"
            )

        num_landmarks = heuristics_config.get('num_landmarks', 4)
        if not _is_int(num_landmarks) or num_landmarks < 1:
            raise ConfigValidationError(
                f"heuristics.num_landmarks must be a positive integer, got {num_landmarks}"
            )

        if per_vertex > num_landmarks:
            raise ConfigValidationError(
                f"heuristics.landmarks_per_vertex ({per_vertex}) exceeds "
                f"num_landmarks ({num_landmarks})"
            )


def validate_logging_config(logging_config: DictConfig) -> None:
    """Validate logging configuration section.

    Args:
        logging_config: Logging configuration section
    """
    if not logging_config:
        return

    level = logging_config.get('level', 'INFO')
    if str(level).upper() not in LOG_LEVELS:
        raise ConfigValidationError(f"logging.level must be one of {LOG_LEVELS}, got {level}")


def validate_parameter_ranges(config: DictConfig) -> List[str]:
    """Validate parameter ranges and return warnings.

    Args:
        config: Configuration to validate

    Returns:
        List of warning messages
    """
    warnings = []

    astar_config = config.get('search', {}).get('astar', {})
    if astar_config:
        if astar_config.get('repair_policy', 'auto') == 'never':
            warnings.append("repair_policy 'never' disables BPMX repair for inconsistent heuristics")

        if (astar_config.get('max_nodes_expanded', None) is None and
                astar_config.get('max_computation_time', None) is None):
            warnings.append("no search budget configured; searches run until the frontier empties")

    return warnings
