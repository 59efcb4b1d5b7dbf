"""
Configuration Management for the ShredMate API client.

This module handles client configuration including the backend URL, request
timeout, token storage and logging, with support for configuration files,
environment variables and runtime overrides.
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any
from configparser import ConfigParser, Error as ConfigParserError
from urllib.parse import urlsplit

from shredmate_shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
VALID_LOG_FORMATS = ('standard', 'json', 'detailed')
VALID_TOKEN_BACKENDS = ('auto', 'keyring', 'file', 'memory')

ENV_MAPPINGS = {
    'SHREDMATE_BASE_URL': ('server', 'base_url'),
    'SHREDMATE_TIMEOUT': ('server', 'timeout'),
    'SHREDMATE_LOG_LEVEL': ('logging', 'level'),
    'SHREDMATE_TOKEN_SERVICE': ('auth', 'token_service'),
    'SHREDMATE_TOKEN_BACKEND': ('auth', 'token_backend'),
}

DEFAULTS: Dict[str, Dict[str, Any]] = {
    'server': {
        'base_url': 'http://localhost:3000',
        'timeout': 30.0,
        'user_agent': 'ShredMateClient/1.0'
    },
    'auth': {
        'token_service': 'shredmate-client',
        'token_backend': 'auto',
        'storage_dir': None
    },
    'logging': {
        'level': 'INFO',
        'format': 'standard',
        'file': None,
        'audit_file': None,
        'max_size': 10485760,  # 10MB
        'backup_count': 3
    }
}


def _parse_env_value(value: str) -> Any:
    if value.lower() in ('true', 'false'):
        return value.lower() == 'true'
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


class ClientConfiguration:
    """
    Configuration manager for the ShredMate client.

    Supports configuration from:
    1. Runtime overrides, e.g. command line arguments (highest priority)
    2. Environment variables
    3. Configuration file
    4. Default values (lowest priority)
    """

    def __init__(self, config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        self._config_file = config_file or self._get_default_config_path()
        self._config_data: Dict[str, Any] = {}
        self._overrides: Dict[str, Any] = dict(overrides or {})

        self._load_configuration()

    def _get_default_config_path(self) -> str:
        """Get default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME')
        config_dir = Path(xdg_config) if xdg_config else Path.home() / '.config'
        return str(config_dir / 'shredmate' / 'client.conf')

    def _load_configuration(self) -> None:
        """Load configuration from file and environment variables."""
        if os.path.exists(self._config_file):
            self._load_from_file()
            logger.info(f"Configuration loaded from: {self._config_file}")
        else:
            logger.debug(f"Configuration file not found: {self._config_file}")

        self._load_from_environment()
        self._set_defaults()
        self.validate()

    def _load_from_file(self) -> None:
        """Load configuration from INI file."""
        config = ConfigParser()
        try:
            config.read(self._config_file)
        except ConfigParserError as e:
            raise ConfigurationError(
                f"Failed to parse configuration file {self._config_file}: {e}",
                context={'config_file': self._config_file},
                cause=e
            ) from e

        for section_name in config.sections():
            section_data = {}
            for key, value in config[section_name].items():
                # Try to parse as JSON for complex values
                try:
                    section_data[key] = json.loads(value)
                except (json.JSONDecodeError, ValueError):
                    section_data[key] = value

            self._config_data[section_name] = section_data

    def _load_from_environment(self) -> None:
        """Load configuration from environment variables."""
        for env_var, (section, key) in ENV_MAPPINGS.items():
            value = os.environ.get(env_var)
            if value is not None:
                self._config_data.setdefault(section, {})[key] = _parse_env_value(value)

    def _set_defaults(self) -> None:
        """Set default configuration values."""
        for section, section_defaults in DEFAULTS.items():
            section_data = self._config_data.setdefault(section, {})
            for key, default_value in section_defaults.items():
                if key not in section_data:
                    section_data[key] = default_value

    def validate(self) -> None:
        """
        Validate the effective configuration.

        Raises:
            ConfigurationError: If a value is missing or malformed
        """
        base_url = self.get_base_url()
        parts = urlsplit(str(base_url))
        if parts.scheme not in ('http', 'https') or not parts.netloc:
            raise ConfigurationError(f"Invalid base URL: {base_url}", config_key='server.base_url')

        timeout = self.get_config('server.timeout')
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigurationError(
                f"Timeout must be a positive number, got {timeout!r}",
                config_key='server.timeout'
            )

        backend = self.get_token_backend()
        if backend not in VALID_TOKEN_BACKENDS:
            raise ConfigurationError(f"Unknown token backend: {backend}", config_key='auth.token_backend')

        if self.get_log_level() not in VALID_LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.get_log_level()}", config_key='logging.level')

        if self.get_log_format() not in VALID_LOG_FORMATS:
            raise ConfigurationError(f"Unknown log format: {self.get_log_format()}", config_key='logging.format')

    def get_config(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key in format 'section.key'
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if key in self._overrides:
            return self._overrides[key]

        if '.' not in key:
            return self._config_data.get(key, default)

        section, config_key = key.split('.', 1)
        return self._config_data.get(section, {}).get(config_key, default)

    def set_override(self, key: str, value: Any) -> None:
        """
        Set configuration override (highest priority).

        Args:
            key: Configuration key in format 'section.key'
            value: Override value
        """
        self._overrides[key] = value
        self.validate()

    def get_all_config(self) -> Dict[str, Any]:
        """Get all configuration data, with overrides applied."""
        merged = {section: dict(values) for section, values in self._config_data.items()}
        for key, value in self._overrides.items():
            if '.' in key:
                section, config_key = key.split('.', 1)
                merged.setdefault(section, {})[config_key] = value
        return merged

    def get_config_file_path(self) -> str:
        return self._config_file

    def reload_configuration(self) -> None:
        """Reload configuration from file and environment."""
        self._config_data.clear()
        self._load_configuration()
        logger.info("Configuration reloaded")

    # Convenience methods for common configuration values

    def get_base_url(self) -> str:
        return self.get_config('server.base_url')

    def get_timeout(self) -> float:
        """Get request timeout in seconds."""
        return float(self.get_config('server.timeout', 30.0))

    def get_user_agent(self) -> str:
        return self.get_config('server.user_agent', 'ShredMateClient/1.0')

    def get_token_service(self) -> str:
        """Get keyring service name used for stored credentials."""
        return self.get_config('auth.token_service', 'shredmate-client')

    def get_token_backend(self) -> str:
        return str(self.get_config('auth.token_backend', 'auto')).lower()

    def get_token_storage_dir(self) -> Optional[Path]:
        storage_dir = self.get_config('auth.storage_dir')
        return Path(storage_dir).expanduser() if storage_dir else None

    def get_log_level(self) -> str:
        return str(self.get_config('logging.level', 'INFO')).upper()

    def get_log_format(self) -> str:
        return str(self.get_config('logging.format', 'standard')).lower()

    def get_log_file(self) -> Optional[str]:
        return self.get_config('logging.file')

    def get_audit_log_file(self) -> Optional[str]:
        return self.get_config('logging.audit_file')
