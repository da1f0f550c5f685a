"""Configuration management module"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from loguru import logger

from ..core.storage.database import default_data_dir

DEFAULT_CONFIG: Dict[str, Any] = {
    'app': {
        'logging': True,
        'query_return_limit': 25,
        'timedate_format': '%b %d %Y, %I:%M:%S %p',
        'always_on_top': False,
        'check_interval': 500
    },
    'stores': {
        'text': {
            'enabled': True,
            'max_size': 5120
        },
        'image': {
            'enabled': False,
            'max_size': 5120
        },
        # Reserved, file copies are not captured
        'file': {
            'enabled': False,
            'max_size': 5120
        }
    },
    'storage': {
        'database_path': None
    }
}


class ConfigManager:
    """Manages application configuration"""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager

        Args:
            config_path: Path to configuration file
        """
        if config_path is None:
            config_path = str(default_data_dir() / 'settings.yaml')

        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self._load_defaults()
        self._load_config()

    def _load_defaults(self):
        """Load default configuration"""
        default_path = Path(__file__).parent.parent.parent / 'config' / 'default_settings.yaml'

        try:
            if default_path.exists():
                with open(default_path, 'r', encoding='utf-8') as f:
                    self.config = yaml.safe_load(f) or {}
                logger.info("Loaded default configuration")
            else:
                logger.debug(f"Default config not found: {default_path}")
                self.config = copy.deepcopy(DEFAULT_CONFIG)

        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load defaults: {e}")
            self.config = copy.deepcopy(DEFAULT_CONFIG)

    def _load_config(self):
        """Load user configuration"""
        try:
            if os.path.exists(self.config_path):
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    user_config = yaml.safe_load(f) or {}

                # Merge with defaults
                self._merge_config(self.config, user_config)
                logger.debug(f"Loaded user configuration from {self.config_path}")

        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load user config: {e}")

    def _merge_config(self, base: Dict, updates: Dict):
        """
        Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            updates: Updates to apply
        """
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def save(self) -> bool:
        """Save current configuration to file"""
        try:
            directory = os.path.dirname(self.config_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(self.config, f, default_flow_style=False)

            logger.info(f"Configuration saved to {self.config_path}")
            return True

        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save configuration: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            key: Configuration key (dot notation supported)
            default: Default value if not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value

        Args:
            key: Configuration key (dot notation supported)
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        # Navigate to the parent
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        logger.debug(f"Set config: {key} = {value}")

    def get_all(self) -> Dict[str, Any]:
        """Get entire configuration"""
        return copy.deepcopy(self.config)

    def reset(self):
        """Reset to default configuration"""
        self._load_defaults()
        logger.info("Configuration reset to defaults")

    def validate(self) -> bool:
        """
        Validate configuration

        Returns:
            True if valid
        """
        required = [
            'app.query_return_limit',
            'app.check_interval',
            'stores.text.max_size',
            'stores.image.max_size'
        ]

        for key in required:
            if self.get(key) is None:
                logger.error(f"Missing required config: {key}")
                return False

        if self.get('app.query_return_limit', 0) < 1:
            logger.error("Query return limit too small (min 1)")
            return False

        if self.get('app.check_interval', 0) < 100:
            logger.error("Check interval too small (min 100ms)")
            return False

        for kind in ('text', 'image'):
            if self.get(f'stores.{kind}.max_size', 0) <= 0:
                logger.error(f"Max size for {kind} must be positive")
                return False

        return True
