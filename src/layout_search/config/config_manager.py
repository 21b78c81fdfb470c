"""Hydra-backed configuration for layout-search.

The packaged ``conf/config.yaml`` holds every default; callers adjust it with
Hydra override strings (``search.strategy=heuristic``) or with a mapping of
dotted keys to values.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from omegaconf import DictConfig, OmegaConf, open_dict
from hydra import compose, initialize_config_dir
from hydra.core.global_hydra import GlobalHydra

from layout_search.search.engine import SearchConfig

from .validators import validate_config, check_config_consistency

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "conf"

Overrides = Union[Sequence[str], Mapping[str, Any], None]

# Most recently loaded configuration, shared by the module-level helpers
_global_config: Optional[DictConfig] = None


def _override_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def as_override_list(overrides: Overrides) -> List[str]:
    """Normalize overrides to Hydra's ``key=value`` strings.

    A mapping ``{"search.max_depth": None}`` becomes ``["search.max_depth=null"]``.
    """
    if not overrides:
        return []
    if isinstance(overrides, Mapping):
        return [f"{key}={_override_value(value)}" for key, value in overrides.items()]
    return [str(override) for override in overrides]


class ConfigManager:
    """Loads, validates and edits one configuration tree."""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_dir: Directory holding ``config.yaml``; the packaged one when None
        """
        self.config_dir = Path(config_dir or DEFAULT_CONFIG_DIR).resolve()
        self.config: Optional[DictConfig] = None

        if not self.config_dir.is_dir():
            raise FileNotFoundError(f"Configuration directory not found: {self.config_dir}")

    def _require_config(self) -> DictConfig:
        if self.config is None:
            raise RuntimeError("No configuration loaded. Call load_config() first.")
        return self.config

    def load_config(self,
                    config_name: str = "config",
                    overrides: Overrides = None,
                    validate: bool = True) -> DictConfig:
        """Compose ``config_name`` from the config directory.

        Args:
            config_name: YAML file name without extension
            overrides: Override strings or a mapping of dotted keys to values
            validate: Run ``validate_config`` on the result

        Returns:
            Composed configuration, also published as the global one

        Raises:
            ConfigValidationError: If validation is on and fails
            hydra.errors.HydraException: If an override is malformed or names an unknown key
        """
        override_list = as_override_list(overrides)

        # Hydra keeps process-wide state between compose calls
        GlobalHydra.instance().clear()
        try:
            with initialize_config_dir(config_dir=str(self.config_dir), version_base=None):
                cfg = compose(config_name=config_name, overrides=override_list)
        except Exception as e:
            logger.error(f"Failed to compose configuration '{config_name}': {e}")
            raise

        if validate:
            validate_config(cfg)
            for issue in check_config_consistency(cfg):
                logger.warning(issue)

        self.config = cfg
        global _global_config
        _global_config = cfg

        if override_list:
            logger.info(f"Applied overrides: {override_list}")
        logger.debug(f"Loaded configuration '{config_name}' from {self.config_dir}")
        return cfg

    def get_config(self) -> Optional[DictConfig]:
        return self.config

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``search.max_depth``."""
        return OmegaConf.select(self._require_config(), key, default=default)

    def set_parameter(self, key: str, value: Any) -> None:
        """Set a dotted key, creating it when missing."""
        config = self._require_config()
        with open_dict(config):
            OmegaConf.update(config, key, value, merge=False)
        logger.debug(f"Parameter set: {key} = {value}")

    def update_config(self, updates: Mapping[str, Any]) -> None:
        """Apply several dotted-key updates at once."""
        self._require_config()
        for key, value in updates.items():
            self.set_parameter(key, value)
        logger.info(f"Configuration updated with: {dict(updates)}")

    def save_config(self, output_path: Union[str, Path]) -> None:
        """Write the current configuration as YAML."""
        config = self._require_config()
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        OmegaConf.save(config, output_path)
        logger.info(f"Configuration saved to: {output_path}")

    def search_config(self) -> SearchConfig:
        """Engine settings from the ``search`` section."""
        return SearchConfig.from_config(self._require_config())

    def domain_options(self, domain: str) -> Dict[str, Any]:
        """Parser keyword arguments for a canonical domain name."""
        config = self._require_config()
        if domain == 'tiles':
            return {'size': OmegaConf.select(config, 'domains.sliding_tile.size', default=None)}
        if domain == 'containers':
            return {'default_cost': OmegaConf.select(config, 'domains.containers.default_cost', default=1)}
        return {}


def load_config(config_name: str = "config",
                overrides: Overrides = None,
                config_dir: Optional[Union[str, Path]] = None,
                validate: bool = True) -> DictConfig:
    """Load a configuration with a throwaway manager and make it the global one."""
    return ConfigManager(config_dir).load_config(config_name, overrides, validate)


def get_config() -> Optional[DictConfig]:
    """Return the most recently loaded configuration, or None."""
    return _global_config


def get_parameter(key: str, default: Any = None) -> Any:
    """Look up a dotted key in the global configuration."""
    if _global_config is None:
        logger.warning("No global configuration loaded")
        return default
    return OmegaConf.select(_global_config, key, default=default)


class ConfigContext:
    """Temporarily change keys of the global configuration.

    ``ConfigContext(**{"search.max_depth": 3})`` applies the change on entry and
    restores the previous values on exit. Keys that did not exist are removed
    again.
    """

    _MISSING = object()

    def __init__(self, **changes: Any):
        self.changes = changes
        self.config = get_config()
        self._saved: Dict[str, Any] = {}

    def __enter__(self) -> DictConfig:
        if self.config is None:
            raise RuntimeError("No global configuration loaded")

        with open_dict(self.config):
            for key, value in self.changes.items():
                self._saved[key] = OmegaConf.select(self.config, key, default=self._MISSING)
                OmegaConf.update(self.config, key, value, merge=False)
        return self.config

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.config is None:
            return

        with open_dict(self.config):
            for key, previous in self._saved.items():
                if previous is self._MISSING:
                    parent_key, _, leaf = key.rpartition('.')
                    parent = OmegaConf.select(self.config, parent_key) if parent_key else self.config
                    parent.pop(leaf, None)
                else:
                    OmegaConf.update(self.config, key, previous, merge=False)
        self._saved.clear()
