"""
Configuration Manager for the loadshedding engine

Loads the YAML configuration file, validates it into HubConfig and
initialises the configured timezone.
"""

import yaml
import logging
from typing import Any, Dict, Optional
from pathlib import Path
from sheddinghub.config import HubConfig
from sheddinghub.timezone_utils import initialize_timezones

log = logging.getLogger(__name__)

class ConfigurationManager:
    """Manages configuration loading from config.yaml."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config_cache: Optional[HubConfig] = None

    def load_config(self) -> HubConfig:
        """Load configuration from config.yaml and initialise timezones."""
        log.info(f"Loading configuration from {self.config_path}")
        config = HubConfig(**self._load_from_file())
        self._config_cache = config

        # Initialize timezone utilities with the loaded configuration
        initialize_timezones(config.timezone)
        return config

    def _load_from_file(self) -> Dict[str, Any]:
        """Read the raw config dictionary."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        if not isinstance(config_dict, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(config_dict).__name__}")
        return config_dict

    def save_config(self, config: HubConfig) -> None:
        """Write configuration back to config.yaml (used after area changes)."""
        with open(self.config_path, 'w') as f:
            yaml.safe_dump(config.model_dump(mode="json"), f, sort_keys=False)
        self._config_cache = config
        log.info(f"Configuration saved to {self.config_path}")

    def update_area(self, area: Optional[str]) -> HubConfig:
        """Set or clear the loadshedding area and persist it."""
        config = self._config_cache or self.load_config()
        grid = config.grid.model_copy(update={"area": area or None})
        updated = config.model_copy(update={"grid": grid})
        self.save_config(updated)
        return updated
