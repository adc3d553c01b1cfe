"""Configuration loader with YAML support and environment variable substitution."""

import copy
import logging
import os
import re
from typing import Any, Dict
from urllib.parse import urlparse

import yaml

logger = logging.getLogger('clickup_offline_wiki.config')

DEFAULT_CONFIG_PATH = 'config.yaml'

SYNC_MODES = ('api', 'local')

DEFAULT_CONFIG: Dict[str, Any] = {
    'clickup': {
        'api_key': '',
        'api_base_url': 'https://api.clickup.com/api/v3',
        'app_host': 'app.clickup.com',
    },
    'sync': {
        'mode': 'api',
        'data_dir': '.clickup-data',
        'output_path': '.clickup',
        'max_page_fetch_depth': 3,
        'max_page_depth': -1,
        'debug': False,
        'show_progress': True,
        'report_path': None,
    },
    'logging': {
        'level': None,
        'file': None,
    },
    'advanced': {
        'request_timeout': 30,
        'max_retries': 3,
        'retry_backoff_factor': 2.0,
    },
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH, allow_missing: bool = False) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Values missing from the file are filled in from DEFAULT_CONFIG.

        Args:
            config_path: Path to YAML configuration file
            allow_missing: Use defaults (with a warning) when the file doesn't exist

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist and allow_missing is False
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            if not allow_missing:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            logger.warning(f"Configuration file not found: {config_path}, using defaults")
            return cls._substitute_env_vars_recursive(copy.deepcopy(DEFAULT_CONFIG))

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        # Substitute environment variables recursively
        config_data = cls._substitute_env_vars_recursive(config_data)

        return deep_merge(DEFAULT_CONFIG, config_data)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        mode = get_nested(config, 'sync.mode', 'api')
        if mode not in SYNC_MODES:
            raise ValueError(f"sync.mode must be one of: {list(SYNC_MODES)}")

        if mode == 'api':
            api_key = get_nested(config, 'clickup.api_key')
            if api_key is None or api_key == '':
                raise ValueError("ClickUp API key is required")
            cls._validate_required_field(config, 'clickup.api_key')
            cls._validate_url(get_nested(config, 'clickup.api_base_url', ''), 'clickup.api_base_url')
        else:
            cls._validate_required_field(config, 'sync.data_dir')

        app_host = get_nested(config, 'clickup.app_host', 'app.clickup.com')
        if not isinstance(app_host, str) or not app_host or '/' in app_host:
            raise ValueError("clickup.app_host must be a host name such as app.clickup.com")

        cls._validate_required_field(config, 'sync.output_path')
        output_path = get_nested(config, 'sync.output_path')
        if os.path.exists(output_path) and not os.path.isdir(output_path):
            raise ValueError(f"sync.output_path '{output_path}' is not a directory")

        for field in ('sync.max_page_fetch_depth', 'sync.max_page_depth'):
            value = get_nested(config, field, -1)
            if isinstance(value, bool) or not isinstance(value, int) or value < -1:
                raise ValueError(f"{field} must be an integer >= -1 (-1 = unlimited)")

        for field in ('sync.debug', 'sync.show_progress'):
            if not isinstance(get_nested(config, field, False), bool):
                raise ValueError(f"{field} must be a boolean")

        # Validate timeout settings
        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("advanced.request_timeout must be a positive number")

        max_retries = get_nested(config, 'advanced.max_retries', 3)
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise ValueError("advanced.max_retries must be a non-negative integer")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        # Ensure nested dictionaries exist
        for section in ('clickup', 'sync', 'logging'):
            if section not in merged:
                merged[section] = {}

        if getattr(args, 'api_key', None):
            merged['clickup']['api_key'] = args.api_key

        if getattr(args, 'mode', None):
            merged['sync']['mode'] = args.mode

        if getattr(args, 'data_dir', None):
            merged['sync']['data_dir'] = args.data_dir

        if getattr(args, 'output', None):
            merged['sync']['output_path'] = args.output

        if getattr(args, 'depth', None) is not None:
            merged['sync']['max_page_fetch_depth'] = args.depth

        if getattr(args, 'debug', None) is not None:
            merged['sync']['debug'] = args.debug

        if getattr(args, 'progress', None) is not None:
            merged['sync']['show_progress'] = args.progress

        if getattr(args, 'report_path', None):
            merged['sync']['report_path'] = args.report_path

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        # Check for unsubstituted environment variables
        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url or '')
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of base with override's values merged in, recursing into dictionaries."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "clickup.api_key")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'deep_merge', 'get_nested']
