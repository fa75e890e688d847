"""
Configuration for the struct validation package.

Settings are read from the process environment, optionally seeded from a
``.env`` file through python-dotenv. Environment-specific classes inherit from
BaseConfig and are selected with get_config().

Environment variables:
    STRUCTVALIDATOR_ENV: production (default), development or testing
    STRUCTVALIDATOR_TAG_KEY: dataclass field metadata key holding rule strings
    STRUCTVALIDATOR_LOG_LEVEL: stdlib logging level name
    STRUCTVALIDATOR_LOG_FORMAT: console or json
    STRUCTVALIDATOR_METRICS_ENABLED: toggle prometheus counters
"""

import logging
import os
from typing import Any, Dict, Optional, Type

from dotenv import find_dotenv, load_dotenv

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = 'STRUCTVALIDATOR_'

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
VALID_LOG_FORMATS = ('console', 'json')


class EnvironmentManager:
    """
    Environment variable access backed by python-dotenv.

    Loads the nearest ``.env`` file without overriding variables that are
    already set, then exposes typed lookups.
    """

    def __init__(self, env_file: Optional[str] = None):
        """
        Initialize environment manager.

        Args:
            env_file: Optional path to .env file, defaults to auto-discovery
        """
        self.env_file = env_file if env_file is not None else find_dotenv(usecwd=True)
        self.logger = logging.getLogger(f"{__name__}.EnvironmentManager")
        self._load_environment_variables()

    def _load_environment_variables(self) -> None:
        if not self.env_file:
            return
        try:
            load_dotenv(self.env_file, override=False)
            self.logger.debug("Environment variables loaded from %s", self.env_file)
        except OSError as e:
            raise ConfigurationError(f"Failed to load environment variables: {e}")

    def get_optional_env(self, key: str, default: Any = None, var_type: type = str) -> Any:
        """
        Get optional environment variable with default value and type conversion.

        Args:
            key: Environment variable name without the package prefix
            default: Default value if variable is not set
            var_type: Expected variable type

        Returns:
            Environment variable value or default

        Raises:
            ConfigurationError: When the value cannot be converted
        """
        value = os.getenv(ENV_PREFIX + key)
        if value is None:
            return default

        try:
            if var_type == bool:
                return value.strip().lower() in ('true', '1', 'yes', 'on')
            return var_type(value)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Environment variable '{ENV_PREFIX + key}' has invalid type: {e}"
            )


class BaseConfig:
    """Base configuration shared by every environment."""

    ENVIRONMENT = 'production'

    def __init__(self, env_manager: Optional[EnvironmentManager] = None):
        self.env_manager = env_manager or EnvironmentManager()
        self._configure_base_settings()
        self._configure_logging_settings()
        self._validate_configuration()

    def _configure_base_settings(self) -> None:
        self.TAG_KEY = self.env_manager.get_optional_env('TAG_KEY', 'validate')
        self.METRICS_ENABLED = self.env_manager.get_optional_env('METRICS_ENABLED', True, bool)

    def _configure_logging_settings(self) -> None:
        self.LOG_LEVEL = self.env_manager.get_optional_env('LOG_LEVEL', 'INFO').upper()
        self.LOG_FORMAT = self.env_manager.get_optional_env('LOG_FORMAT', 'console').lower()

    def _validate_configuration(self) -> None:
        if not self.TAG_KEY or not self.TAG_KEY.strip():
            raise ConfigurationError("TAG_KEY must be a non-empty metadata key")
        if self.LOG_LEVEL not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}, got {self.LOG_LEVEL}"
            )
        if self.LOG_FORMAT not in VALID_LOG_FORMATS:
            raise ConfigurationError(
                f"LOG_FORMAT must be one of {', '.join(VALID_LOG_FORMATS)}, got {self.LOG_FORMAT}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'environment': self.ENVIRONMENT,
            'tag_key': self.TAG_KEY,
            'metrics_enabled': self.METRICS_ENABLED,
            'log_level': self.LOG_LEVEL,
            'log_format': self.LOG_FORMAT,
        }


class DevelopmentConfig(BaseConfig):
    """Development configuration with verbose logging."""

    ENVIRONMENT = 'development'

    def _configure_logging_settings(self) -> None:
        self.LOG_LEVEL = self.env_manager.get_optional_env('LOG_LEVEL', 'DEBUG').upper()
        self.LOG_FORMAT = self.env_manager.get_optional_env('LOG_FORMAT', 'console').lower()


class TestingConfig(BaseConfig):
    """Testing configuration; metrics are disabled to keep tests isolated."""

    ENVIRONMENT = 'testing'

    def _configure_base_settings(self) -> None:
        super()._configure_base_settings()
        self.METRICS_ENABLED = False


CONFIG_REGISTRY: Dict[str, Type[BaseConfig]] = {
    'production': BaseConfig,
    'development': DevelopmentConfig,
    'testing': TestingConfig,
}


def get_config(
    config_name: Optional[str] = None,
    env_manager: Optional[EnvironmentManager] = None,
) -> BaseConfig:
    """
    Configuration factory returning an environment-specific configuration.

    Args:
        config_name: Optional configuration name override
        env_manager: Environment manager to read from, discovers a .env file when omitted

    Returns:
        Environment-specific configuration instance

    Raises:
        ConfigurationError: When an unknown configuration name is given
    """
    config_name = (config_name or os.getenv(ENV_PREFIX + 'ENV', 'production')).lower()

    config_class = CONFIG_REGISTRY.get(config_name)
    if config_class is None:
        raise ConfigurationError(
            f"Unknown configuration '{config_name}'. "
            f"Available: {', '.join(sorted(CONFIG_REGISTRY))}"
        )

    return config_class(env_manager=env_manager)
