from .settings import (
    BaseConfig,
    DevelopmentConfig,
    EnvironmentManager,
    TestingConfig,
    get_config,
)
from .logging import configure_logging, filter_sensitive_data

__all__ = [
    'BaseConfig',
    'DevelopmentConfig',
    'EnvironmentManager',
    'TestingConfig',
    'get_config',
    'configure_logging',
    'filter_sensitive_data',
]
