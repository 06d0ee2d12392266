"""
Configuration Management Module for the Capability Mint Authority

Handles hierarchical configuration loading, environment variable mapping,
validation, and the logging setup shared by every component.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from crypto.verifier import SUPPORTED_HASHES


# Environment variable prefix
ENV_PREFIX = 'CAPMINT_'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Default configuration values
DEFAULT_CONFIG = {
    # Logic version compiled into this build
    'engine': {
        'version': 1,
        'authority_id': 'capmint',
    },

    # Event sinks
    'events': {
        'jsonl_path': None,
        'log_events': False,
    },

    'logging': {
        'level': 'INFO',
    },

    'crypto': {
        'hash': 'sha256',
    },

    'ledger': {
        'allow_faucet': True,
    },

    'storage': {
        'snapshot_path': None,
    },
}

# Configuration profiles
PROFILES = {
    'production': {
        'events': {'log_events': True},
        'logging': {'level': 'WARNING'},
        'ledger': {'allow_faucet': False},
    },
    'development': {
        'events': {'log_events': True},
        'logging': {'level': 'DEBUG'},
        'ledger': {'allow_faucet': True},
    },
}


def config_search_paths() -> List[Path]:
    """Configuration file locations in order of precedence (highest to lowest)."""
    return [
        Path.cwd() / '.capmint.yml',
        Path.cwd() / '.capmint.json',
        Path.cwd() / 'capmint.config.yml',
        Path.cwd() / 'capmint.config.json',
        Path.home() / '.capmint' / 'config.yml',
        Path.home() / '.capmint' / 'config.json',
    ]


def setup_logging(level: Union[str, int] = 'INFO', stream=None) -> logging.Logger:
    """Configure the root logger with a single stream handler."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, '_capmint', False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._capmint = True
    root.addHandler(handler)
    root.setLevel(level)
    return root


class ConfigurationError(Exception):
    """Configuration file could not be read."""
    pass


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None, profile: Optional[str] = None,
                 environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
            profile: Configuration profile to load (production, development)
            environ: Environment mapping, defaults to ``os.environ``
        """
        self.logger = logging.getLogger('authority.config')
        self.config_file = config_file
        self.profile = profile
        self.environ = os.environ if environ is None else environ
        self._config_cache = None
        self._config_sources = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        configs = []
        self._config_sources = []

        # 1. Start with default configuration
        configs.append(DEFAULT_CONFIG)
        self._config_sources.append("defaults")

        # 2. Apply profile if specified
        if self.profile:
            if self.profile not in PROFILES:
                raise ConfigurationError(f"Unknown profile: {self.profile}")
            configs.append(PROFILES[self.profile])
            self._config_sources.append(f"profile:{self.profile}")
            self.logger.debug(f"Applied profile: {self.profile}")

        # 3. Load configuration files
        if self.config_file:
            configs.append(self._load_config_file(Path(self.config_file)) or {})
            self._config_sources.append(f"file:{self.config_file}")
        else:
            for config_path in config_search_paths():
                if config_path.exists():
                    config_data = self._load_config_file(config_path)
                    if config_data:
                        configs.append(config_data)
                        self._config_sources.append(f"file:{config_path}")
                        self.logger.debug(f"Loaded config from {config_path}")
                        break  # Use first found config file

        # 4. Apply environment variables
        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        self._config_cache = self._deep_merge(*configs)
        self._expand_paths(self._config_cache)
        return self._config_cache

    def _load_config_file(self, path: Path) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        try:
            with open(path, 'r') as f:
                if path.suffix in ['.yml', '.yaml']:
                    return yaml.safe_load(f)
                elif path.suffix == '.json':
                    return json.load(f)
                else:
                    self.logger.warning(f"Unknown config file format: {path}")
                    return None
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to load config from {path}: {e}")

    def _load_environment_variables(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        ``CAPMINT_<SECTION>_<KEY>``: the first underscore separates the
        section, so ``CAPMINT_EVENTS_JSONL_PATH`` sets ``events.jsonl_path``.
        """
        env_config = {}

        for key, value in self.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            config_key = key[len(ENV_PREFIX):].lower()
            if '_' not in config_key:
                continue
            section, name = config_key.split('_', 1)
            env_config.setdefault(section, {})[name] = self._parse_env_value(value)

        return env_config

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ['true', 'yes']:
            return True
        elif value.lower() in ['false', 'no']:
            return False
        elif value.lower() in ['none', 'null']:
            return None

        try:
            return json.loads(value)
        except ValueError:
            return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                elif isinstance(value, dict):
                    result[key] = self._deep_merge(value)
                else:
                    result[key] = value

        return result

    def _expand_paths(self, config: Dict[str, Any]):
        """Expand ~ and environment variables in path values."""
        for key, value in config.items():
            if isinstance(value, dict):
                self._expand_paths(value)
            elif isinstance(value, str) and ('~' in value or '$' in value):
                config[key] = os.path.expanduser(os.path.expandvars(value))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'engine.version')
            default: Default value if key not found
        """
        current = self.load()

        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set(self, key_path: str, value: Any):
        """Set configuration value by dot-notation path."""
        config = self.load()

        keys = key_path.split('.')
        current = config
        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value

    def save(self, path: Optional[str] = None, format: str = 'yaml') -> Path:
        """Save current configuration to file."""
        config = self.load()

        if not path:
            path = Path.cwd() / ('.capmint.yml' if format == 'yaml' else '.capmint.json')

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            if format == 'yaml':
                yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(config, f, indent=2)

        self.logger.info(f"Configuration saved to {path}")
        return path

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        config = self.load()
        errors = []

        version = config.get('engine', {}).get('version')
        if not isinstance(version, int) or isinstance(version, bool) or version < 1:
            errors.append(f"Engine version must be a positive integer: {version!r}")

        hash_name = config.get('crypto', {}).get('hash')
        if hash_name not in SUPPORTED_HASHES:
            errors.append(f"Unsupported hash function: {hash_name}")

        level = config.get('logging', {}).get('level')
        if not isinstance(level, str) or level.upper() not in logging._nameToLevel:
            errors.append(f"Invalid log level: {level}")

        if not isinstance(config.get('ledger', {}).get('allow_faucet'), bool):
            errors.append("ledger.allow_faucet must be a boolean")

        return errors

    def get_sources(self) -> List[str]:
        """Get list of configuration sources that were loaded."""
        self.load()
        return self._config_sources

    def reset(self):
        """Reset configuration cache."""
        self._config_cache = None
        self._config_sources = []
