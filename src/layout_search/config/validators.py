"""Configuration validation for layout-search."""

import logging
from typing import Any, List

from omegaconf import DictConfig

from layout_search.search.evaluation import EvaluationStrategy
from layout_search.search.frontier import DuplicatePolicy

logger = logging.getLogger(__name__)

VALID_STRATEGIES = ('uniform_cost', 'heuristic')
VALID_DUPLICATE_POLICIES = ('closed_set_only', 'open_and_closed')
VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""
    pass


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parses(enum_type, value):
    try:
        return enum_type.parse(value)
    except ValueError:
        return None


def validate_config(config: DictConfig) -> None:
    """Validate the complete configuration.

    Args:
        config: Configuration to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        validate_search_config(config.get('search', {}))
        validate_domains_config(config.get('domains', {}))
        validate_logging_config(config.get('logging', {}))
    except ConfigValidationError as e:
        raise ConfigValidationError(f"Configuration validation failed: {e}") from e

    logger.debug("Configuration validation passed")


def validate_search_config(search_config: DictConfig) -> None:
    """Validate search configuration section.

    Args:
        search_config: Search configuration section
    """
    if not search_config:
        return

    # Aliases such as astar or dedup are accepted, as on the command line
    strategy = search_config.get('strategy', 'uniform_cost')
    if _parses(EvaluationStrategy, strategy) is None:
        raise ConfigValidationError(
            f"search.strategy must be one of {VALID_STRATEGIES} or an alias, got {strategy}"
        )

    policy = search_config.get('duplicate_policy', 'closed_set_only')
    if _parses(DuplicatePolicy, policy) is None:
        raise ConfigValidationError(
            f"search.duplicate_policy must be one of {VALID_DUPLICATE_POLICIES} or an alias, got {policy}"
        )

    max_nodes = search_config.get('max_nodes_expanded', None)
    if max_nodes is not None and (not _is_int(max_nodes) or max_nodes <= 0):
        raise ConfigValidationError(
            f"search.max_nodes_expanded must be positive integer or null, got {max_nodes}"
        )

    max_depth = search_config.get('max_depth', None)
    if max_depth is not None and (not _is_int(max_depth) or max_depth < 0):
        raise ConfigValidationError(
            f"search.max_depth must be non-negative integer or null, got {max_depth}"
        )

    max_time = search_config.get('max_computation_time', None)
    if max_time is not None and (not _is_number(max_time) or max_time <= 0):
        raise ConfigValidationError(
            f"search.max_computation_time must be positive number or null, got {max_time}"
        )

    validate_costs = search_config.get('validate_costs', True)
    if not isinstance(validate_costs, bool):
        raise ConfigValidationError(
            f"search.validate_costs must be boolean, got {validate_costs}"
        )


def validate_domains_config(domains_config: DictConfig) -> None:
    """Validate domains configuration section.

    Args:
        domains_config: Domains configuration section
    """
    if not domains_config:
        return

    tile_config = domains_config.get('sliding_tile', {})
    if tile_config:
        size = tile_config.get('size', None)
        if size is not None and (not _is_int(size) or size < 2):
            raise ConfigValidationError(
                f"domains.sliding_tile.size must be integer >= 2 or null, got {size}"
            )

    container_config = domains_config.get('containers', {})
    if container_config:
        default_cost = container_config.get('default_cost', 1)
        if not _is_int(default_cost) or not 0 <= default_cost <= 9:
            raise ConfigValidationError(
                f"domains.containers.default_cost must be integer between 0 and 9, got {default_cost}"
            )


def validate_logging_config(logging_config: DictConfig) -> None:
    """Validate logging configuration section."""
    if not logging_config:
        return

    level = str(logging_config.get('level', 'WARNING')).upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigValidationError(
            f"logging.level must be one of {VALID_LOG_LEVELS}, got {level}"
        )


def check_config_consistency(config: DictConfig) -> List[str]:
    """Check configuration consistency and return warnings.

    Args:
        config: Configuration to check

    Returns:
        List of consistency issues
    """
    issues = []

    search_config = config.get('search', {}) or {}
    policy = search_config.get('duplicate_policy', 'closed_set_only')
    if _parses(DuplicatePolicy, policy) is DuplicatePolicy.OPEN_AND_CLOSED:
        issues.append(
            "open_and_closed drops later, cheaper paths to a layout already in the frontier; "
            "with unequal step costs or a heuristic the returned path may be suboptimal"
        )

    if search_config.get('max_depth') == 0:
        issues.append("max_depth=0 never expands the start layout")

    return issues
