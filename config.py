"""
HR console configuration

Section dataclasses with built-in defaults, layered with an environment
specific YAML file, an explicit config file and environment variables.
"""

import os
import yaml
import json
from typing import Dict, Any, Optional
from dataclasses import dataclass
from pathlib import Path
import logging

from exceptions import ConfigurationException

logger = logging.getLogger(__name__)


@dataclass
class BackendConfig:
    """HR REST backend connection settings"""
    api_base_url: str = "http://localhost:4000/api"
    connection_timeout: int = 10  # seconds
    request_timeout: int = 30  # seconds
    fetch_timeout: float = 30.0  # seconds, upper bound for one page fetch
    max_retries: int = 2
    retry_delay: float = 0.5  # seconds
    pool_size: int = 10


@dataclass
class QueryConfig:
    """List view defaults"""
    items_per_page: int = 10
    max_items_per_page: int = 100
    default_sort_order: str = "asc"
    clear_on_error: bool = False


@dataclass
class SessionConfig:
    """Session store settings"""
    cookie_name: str = "hr_console_session"
    ttl_seconds: int = 28800
    token_expiry_buffer_seconds: int = 300
    max_notifications: int = 50
    login_path: str = "/login"


@dataclass
class ServiceConfig:
    """Console service settings"""
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    cors_origins: str = "*"


@dataclass
class LoggingConfig:
    """Logging settings"""
    level: str = "INFO"
    file: str = "logs/hr_console.log"
    max_size: int = 10485760  # 10MB
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ConsoleConfig:
    """Top level console configuration"""

    SECTIONS = ('backend', 'query', 'session', 'service', 'logging')

    def __init__(self, config_file: Optional[str] = None, environment: str = "development"):
        """Build the configuration.

        Args:
            config_file: optional YAML or JSON file applied after the
                environment file
            environment: development, testing or production
        """
        self.environment = environment
        self.config_file = config_file
        self._config_data: Dict[str, Any] = {}

        self.backend = BackendConfig()
        self.query = QueryConfig()
        self.session = SessionConfig()
        self.service = ServiceConfig()
        self.logging = LoggingConfig()

        self._load_config()

        logger.info(f"Console config initialized for environment: {environment}")

    def _load_config(self) -> None:
        try:
            self._load_default_config()
            self._load_environment_config()
            if self.config_file:
                self._load_file_config(self.config_file)
            self._load_env_config()
            self._apply_config()
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise

    def _load_default_config(self) -> None:
        default_config = {
            'backend': {
                'api_base_url': 'http://localhost:4000/api',
                'connection_timeout': 10,
                'request_timeout': 30,
                'fetch_timeout': 30.0,
                'max_retries': 2,
                'retry_delay': 0.5,
                'pool_size': 10
            },
            'query': {
                'items_per_page': 10,
                'max_items_per_page': 100,
                'default_sort_order': 'asc',
                'clear_on_error': False
            },
            'session': {
                'cookie_name': 'hr_console_session',
                'ttl_seconds': 28800,
                'token_expiry_buffer_seconds': 300,
                'max_notifications': 50,
                'login_path': '/login'
            },
            'service': {
                'host': '0.0.0.0',
                'port': 8080,
                'debug': False,
                'cors_origins': '*'
            },
            'logging': {
                'level': 'INFO',
                'file': 'logs/hr_console.log',
                'max_size': 10485760,
                'backup_count': 5,
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            }
        }

        self._config_data.update(default_config)

    def _load_environment_config(self) -> None:
        env_config_file = f"config/console_{self.environment}.yaml"
        if os.path.exists(env_config_file):
            self._load_file_config(env_config_file)

    def _load_file_config(self, config_file: str) -> None:
        try:
            config_path = Path(config_file)
            if not config_path.exists():
                logger.warning(f"Config file not found: {config_file}")
                return

            with open(config_path, 'r', encoding='utf-8') as f:
                if config_path.suffix.lower() in ['.yaml', '.yml']:
                    file_config = yaml.safe_load(f)
                elif config_path.suffix.lower() == '.json':
                    file_config = json.load(f)
                else:
                    logger.warning(f"Unsupported config file format: {config_file}")
                    return

            if file_config:
                self._merge_config(self._config_data, file_config)
                logger.info(f"Loaded config from: {config_file}")

        except Exception as e:
            logger.error(f"Failed to load config file {config_file}: {e}")
            raise

    def _load_env_config(self) -> None:
        env_mappings = {
            # backend
            'HR_API_BASE_URL': ('backend', 'api_base_url', str),
            'HR_API_REQUEST_TIMEOUT': ('backend', 'request_timeout', int),
            'HR_API_FETCH_TIMEOUT': ('backend', 'fetch_timeout', float),
            'HR_API_MAX_RETRIES': ('backend', 'max_retries', int),

            # list views
            'HR_ITEMS_PER_PAGE': ('query', 'items_per_page', int),
            'HR_CLEAR_ON_ERROR': ('query', 'clear_on_error', bool),

            # sessions
            'HR_SESSION_COOKIE': ('session', 'cookie_name', str),
            'HR_SESSION_TTL_SECONDS': ('session', 'ttl_seconds', int),

            # service
            'HR_CONSOLE_HOST': ('service', 'host', str),
            'HR_CONSOLE_PORT': ('service', 'port', int),
            'HR_CONSOLE_DEBUG': ('service', 'debug', bool),
            'HR_CONSOLE_CORS_ORIGINS': ('service', 'cors_origins', str),

            # logging
            'LOG_LEVEL': ('logging', 'level', str),
            'LOG_FILE': ('logging', 'file', str),
        }

        for env_var, (section, key, type_func) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    if type_func == bool:
                        value = value.lower() in ('true', '1', 'yes', 'on')
                    else:
                        value = type_func(value)

                    if section not in self._config_data:
                        self._config_data[section] = {}
                    self._config_data[section][key] = value

                    logger.info(f"Applied env config: {env_var}={value}")

                except (ValueError, TypeError) as e:
                    logger.warning(f"Invalid env config value for {env_var}: {value}, error: {e}")

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> None:
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def _apply_config(self) -> None:
        try:
            for section in self.SECTIONS:
                if section not in self._config_data:
                    continue
                target = getattr(self, section)
                for key, value in self._config_data[section].items():
                    if hasattr(target, key):
                        setattr(target, key, value)
        except Exception as e:
            logger.error(f"Failed to apply config: {e}")
            raise

    def get(self, key: str, default: Any = None) -> Any:
        """Read a value by dotted key, e.g. ``backend.api_base_url``."""
        keys = key.split('.')
        value = self._config_data

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """Write a value by dotted key and re-apply the sections."""
        keys = key.split('.')
        config = self._config_data

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

        self._apply_config()

    def ensure_valid(self) -> None:
        """Check required sections and value ranges.

        Raises:
            ConfigurationException: first failing key with the reason
        """
        for section in self.SECTIONS:
            if section not in self._config_data:
                raise ConfigurationException(section, "missing required section")

        checks = [
            ('backend.api_base_url', bool(self.backend.api_base_url), "must be specified"),
            ('backend.request_timeout', self.backend.request_timeout > 0, "must be positive"),
            ('backend.fetch_timeout', self.backend.fetch_timeout > 0, "must be positive"),
            ('backend.max_retries', self.backend.max_retries >= 0, "must not be negative"),
            ('query.items_per_page', self.query.items_per_page > 0, "must be positive"),
            ('query.items_per_page', self.query.items_per_page <= self.query.max_items_per_page,
             "must not exceed max_items_per_page"),
            ('query.default_sort_order', self.query.default_sort_order in ('asc', 'desc'),
             "must be asc or desc"),
            ('session.ttl_seconds', self.session.ttl_seconds > 0, "must be positive"),
            ('service.port', 1 <= self.service.port <= 65535, "must be between 1 and 65535"),
            ('service.host', self.service.host is not None, "must be specified"),
        ]

        for key, condition, message in checks:
            if not condition:
                raise ConfigurationException(key, message)

    def validate(self) -> bool:
        """``ensure_valid`` as a boolean, logging the failure."""
        try:
            self.ensure_valid()
        except ConfigurationException as e:
            logger.error(f"Config validation failed: {e.message}")
            return False
        except (TypeError, AttributeError) as e:
            logger.error(f"Config validation error: {e}")
            return False

        logger.info("Config validation passed")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return self._config_data.copy()

    def save_to_file(self, file_path: str) -> None:
        """Write the merged configuration to a YAML or JSON file."""
        try:
            config_path = Path(file_path)
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(config_path, 'w', encoding='utf-8') as f:
                if config_path.suffix.lower() in ['.yaml', '.yml']:
                    yaml.dump(self._config_data, f, default_flow_style=False, allow_unicode=True)
                elif config_path.suffix.lower() == '.json':
                    json.dump(self._config_data, f, indent=2, ensure_ascii=False)
                else:
                    raise ValueError(f"Unsupported file format: {config_path.suffix}")

            logger.info(f"Config saved to: {file_path}")

        except Exception as e:
            logger.error(f"Failed to save config to {file_path}: {e}")
            raise
