"""
Configuration management for threatmd.

Handles loading and managing configuration from files, environment variables,
and command-line options.
"""

from __future__ import annotations

import logging
import os
import yaml
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ThreatMDConfig:
    """Main configuration for threatmd."""

    # Documents
    file_extension: str = "md"
    condition_language: str = "python"
    reference_separator: str = ", "

    # Output
    json_indent: int = 2

    # Batch behaviour
    skip_invalid: bool = False

    log_level: str = "WARNING"


class ConfigManager:
    """Manages threatmd configuration from multiple sources."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_dir = Path.home() / '.threatmd'
        self.config_file = config_file or self.config_dir / 'config.yaml'
        self._config: Optional[ThreatMDConfig] = None

    def load_config(self) -> ThreatMDConfig:
        """Load configuration from all sources."""
        if self._config:
            return self._config

        # Start with defaults
        config = ThreatMDConfig()

        # Load from file if it exists
        if self.config_file.exists():
            file_config = self._load_from_file()
            config = self._merge_configs(config, file_config)

        # Override with environment variables
        env_config = self._load_from_env()
        config = self._merge_configs(config, env_config)

        self._config = config
        return config

    def _load_from_file(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(self.config_file, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not load config file {self.config_file}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.config_file}: expected a mapping")
            return {}
        return data

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        extension = os.getenv('THREATMD_EXTENSION')
        if extension:
            env_config['file_extension'] = extension

        language = os.getenv('THREATMD_CONDITION_LANGUAGE')
        if language:
            env_config['condition_language'] = language

        separator = os.getenv('THREATMD_REFERENCE_SEPARATOR')
        if separator is not None:
            env_config['reference_separator'] = separator

        indent = os.getenv('THREATMD_JSON_INDENT')
        if indent:
            try:
                env_config['json_indent'] = int(indent)
            except ValueError:
                logger.warning(f"Ignoring THREATMD_JSON_INDENT={indent!r}: not an integer")

        skip_invalid = os.getenv('THREATMD_SKIP_INVALID')
        if skip_invalid:
            env_config['skip_invalid'] = skip_invalid.lower() in ('true', '1', 'yes', 'on')

        log_level = os.getenv('THREATMD_LOG_LEVEL')
        if log_level:
            env_config['log_level'] = log_level

        return env_config

    def _merge_configs(self, base: ThreatMDConfig, override: Dict[str, Any]) -> ThreatMDConfig:
        """Merge a configuration dictionary into ``base``."""
        known = {f.name: f for f in fields(ThreatMDConfig)}

        for key, value in override.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue

            if key == 'file_extension':
                value = str(value).lstrip('.')
            elif key == 'json_indent':
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    logger.warning(f"Ignoring json_indent={value!r}: expected a non-negative integer")
                    continue
            elif key == 'skip_invalid':
                if not isinstance(value, bool):
                    logger.warning(f"Ignoring skip_invalid={value!r}: expected a boolean")
                    continue
            elif key == 'log_level':
                value = str(value).upper()
                if value not in LOG_LEVELS:
                    logger.warning(f"Ignoring unknown log level: {value}")
                    continue
            else:
                value = str(value)

            setattr(base, key, value)

        return base

    def save_config(self, config: ThreatMDConfig) -> None:
        """Save configuration to file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, 'w') as f:
            yaml.safe_dump(asdict(config), f, default_flow_style=False, indent=2)

    def create_default_config(self) -> Path:
        """Create a default configuration file."""
        self.save_config(ThreatMDConfig())
        return self.config_file

    def get_config_info(self) -> Dict[str, Any]:
        """Get information about current configuration."""
        config = self.load_config()

        return {
            'config_file': str(self.config_file),
            'config_exists': self.config_file.exists(),
            **asdict(config),
        }


# Global config manager instance
_config_manager: Optional[ConfigManager] = None

def get_config_manager() -> ConfigManager:
    """Get the global config manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager

def load_config() -> ThreatMDConfig:
    """Load the current configuration."""
    return get_config_manager().load_config()
