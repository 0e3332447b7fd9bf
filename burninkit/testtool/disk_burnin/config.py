"""
Disk Burn-In Configuration Management

This module provides configuration management and validation for the
burn-in sequence.
"""

import re
from typing import Dict, Any, Optional
from pathlib import Path

import yaml

from .exceptions import BurnInConfigError

_NONE_TYPE = type(None)


class BurnInConfig:
    """
    Configuration manager for burn-in parameters.

    This class provides:
    - Default configuration values
    - Configuration validation
    - Configuration merging
    - Loading from YAML files

    Poll intervals and timeouts set to ``None`` are derived from the drive's
    recommended self-test durations at run time. A timeout of ``0`` means
    the wait is unbounded.

    Example:
        >>> config = BurnInConfig.get_default_config()
        >>> print(config['block_size'])
        8192
        >>> BurnInConfig.validate_config({'blocks_at_once': 32})
        True
    """

    # Default configuration values
    DEFAULT_CONFIG: Dict[str, Any] = {
        # Target
        'device': '',

        # Destructive scan (badblocks)
        'block_size': 8192,
        'blocks_at_once': 64,
        'full_pass': False,         # False = stop on first bad block

        # Execution mode
        'dry_run': True,            # True = record commands, never run them

        # Polling
        'short_poll_interval_seconds': None,
        'extended_poll_interval_seconds': None,
        'scan_poll_interval_seconds': 60,

        # Maximum waits (minutes)
        'short_timeout_minutes': None,
        'extended_timeout_minutes': None,
        'scan_timeout_minutes': 0,

        # Tools
        'smartctl_path': 'smartctl',
        'badblocks_path': 'badblocks',
        'command_timeout_seconds': 60,

        # Logging
        'log_dir': './burnin_logs',
        'log_smart_snapshots': True,
    }

    # Valid parameter names
    VALID_PARAMS = set(DEFAULT_CONFIG.keys())

    # Type mapping for validation
    PARAM_TYPES: Dict[str, Any] = {
        'device': str,
        'block_size': int,
        'blocks_at_once': int,
        'full_pass': bool,
        'dry_run': bool,
        'short_poll_interval_seconds': (int, float, _NONE_TYPE),
        'extended_poll_interval_seconds': (int, float, _NONE_TYPE),
        'scan_poll_interval_seconds': (int, float),
        'short_timeout_minutes': (int, float, _NONE_TYPE),
        'extended_timeout_minutes': (int, float, _NONE_TYPE),
        'scan_timeout_minutes': (int, float, _NONE_TYPE),
        'smartctl_path': str,
        'badblocks_path': str,
        'command_timeout_seconds': (int, float),
        'log_dir': str,
        'log_smart_snapshots': bool,
    }

    # Value constraints
    PARAM_CONSTRAINTS: Dict[str, Dict[str, Any]] = {
        'block_size': {'min': 512, 'max': 1048576},
        'blocks_at_once': {'min': 1, 'max': 65536},
        'short_poll_interval_seconds': {'min': 0.1, 'max': 86400},
        'extended_poll_interval_seconds': {'min': 0.1, 'max': 86400},
        'scan_poll_interval_seconds': {'min': 0.1, 'max': 86400},
        'short_timeout_minutes': {'min': 0},
        'extended_timeout_minutes': {'min': 0},
        'scan_timeout_minutes': {'min': 0},
        'command_timeout_seconds': {'min': 1, 'max': 3600},
        'device': {'pattern': r'^(/dev/\S+)?$'},
    }

    @staticmethod
    def validate_config(config: Dict[str, Any]) -> bool:
        """
        Validate configuration dictionary.

        Checks:
        - Parameter names are valid
        - Parameter types are correct
        - Parameter values are within acceptable ranges

        Args:
            config: Configuration dictionary to validate

        Returns:
            True if configuration is valid

        Raises:
            ValueError: If validation fails with detailed error message

        Example:
            >>> BurnInConfig.validate_config({'block_size': 4096})
            True
            >>> BurnInConfig.validate_config({'block_size': 100})
            Traceback (most recent call last):
            ...
            ValueError: block_size must be >= 512
        """
        for key, value in config.items():
            if key not in BurnInConfig.VALID_PARAMS:
                raise ValueError(f"Unknown configuration parameter: {key}")

            expected_type = BurnInConfig.PARAM_TYPES.get(key)
            if expected_type is not None:
                # bool is an int subclass; keep numeric fields strict
                if isinstance(value, bool) and expected_type is not bool:
                    raise ValueError(f"{key} must not be a boolean")
                if isinstance(expected_type, tuple):
                    if not isinstance(value, expected_type):
                        names = ', '.join(t.__name__ for t in expected_type)
                        raise ValueError(
                            f"{key} must be one of types ({names}), got {type(value).__name__}"
                        )
                elif not isinstance(value, expected_type):
                    raise ValueError(
                        f"{key} must be of type {expected_type.__name__}, got {type(value).__name__}"
                    )

            if value is None or key not in BurnInConfig.PARAM_CONSTRAINTS:
                continue

            constraints = BurnInConfig.PARAM_CONSTRAINTS[key]
            if 'min' in constraints and value < constraints['min']:
                raise ValueError(f"{key} must be >= {constraints['min']}")
            if 'max' in constraints and value > constraints['max']:
                raise ValueError(f"{key} must be <= {constraints['max']}")
            if 'pattern' in constraints and not re.match(constraints['pattern'], str(value)):
                raise ValueError(f"{key} must match pattern {constraints['pattern']}")

        return True

    @staticmethod
    def get_default_config() -> Dict[str, Any]:
        """
        Get a copy of default configuration.

        Returns:
            Dict[str, Any]: Copy of default configuration dictionary
        """
        return BurnInConfig.DEFAULT_CONFIG.copy()

    @staticmethod
    def merge_config(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration dictionaries.

        Updates are applied to base, base values are preserved if not in updates.

        Args:
            base: Base configuration dictionary
            updates: Updates to apply

        Returns:
            Dict[str, Any]: Merged configuration dictionary
        """
        merged = base.copy()
        merged.update(updates)
        return merged

    @staticmethod
    def load_file(path: str) -> Dict[str, Any]:
        """
        Load configuration overrides from a YAML file.

        Args:
            path: Path to the YAML file

        Returns:
            Dict[str, Any]: Validated overrides (not merged with defaults)

        Raises:
            BurnInConfigError: If the file is missing, unreadable or invalid

        Example:
            >>> overrides = BurnInConfig.load_file('./burnin.yaml')
        """
        config_file = Path(path)
        if not config_file.exists():
            raise BurnInConfigError(f"Config file not found: {path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise BurnInConfigError(f"Failed to read config file {path}: {e}")

        if not isinstance(data, dict):
            raise BurnInConfigError(f"Config file {path} must contain a mapping")

        try:
            BurnInConfig.validate_config(data)
        except ValueError as e:
            raise BurnInConfigError(f"Invalid configuration in {path}: {e}")

        return data

    @staticmethod
    def build(overrides: Optional[Dict[str, Any]] = None, path: Optional[str] = None) -> Dict[str, Any]:
        """
        Build a complete, validated configuration.

        Precedence: defaults < YAML file < explicit overrides.

        Args:
            overrides: Explicit parameter values
            path: Optional YAML file with overrides

        Returns:
            Dict[str, Any]: Complete configuration dictionary

        Raises:
            BurnInConfigError: If any value is invalid
        """
        config = BurnInConfig.get_default_config()
        if path:
            config = BurnInConfig.merge_config(config, BurnInConfig.load_file(path))

        overrides = overrides or {}
        try:
            BurnInConfig.validate_config(overrides)
        except ValueError as e:
            raise BurnInConfigError(f"Invalid configuration: {e}")

        return BurnInConfig.merge_config(config, overrides)
