"""Configuration for layout-search.

Defaults ship in ``layout_search/conf/config.yaml``; Hydra composes them with
overrides given on the command line or in code.
"""

from .config_manager import (
    ConfigManager, ConfigContext, load_config, get_config, get_parameter, as_override_list
)
from .validators import validate_config, check_config_consistency, ConfigValidationError

__all__ = [
    'ConfigManager',
    'ConfigContext',
    'load_config',
    'get_config',
    'get_parameter',
    'as_override_list',
    'validate_config',
    'check_config_consistency',
    'ConfigValidationError'
]
