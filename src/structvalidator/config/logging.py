"""
Structured logging configuration.

The package logs through structlog everywhere but never configures logging on
import. Applications call configure_logging() once at startup to get either
human-readable console output or JSON lines for log aggregation.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import EventDict, WrappedLogger

from .settings import BaseConfig, get_config

SENSITIVE_KEYS = frozenset({
    'password', 'token', 'secret', 'api_key', 'credential', 'auth',
})


def _is_sensitive(key: Any) -> bool:
    """Match whole key names or underscore-separated segments, so 'author' is kept."""
    name = str(key).lower()
    return any(
        name == s or name.startswith(s + '_') or name.endswith('_' + s) or f'_{s}_' in name
        for s in SENSITIVE_KEYS
    )


def filter_sensitive_data(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Redact values whose key looks like a credential."""

    def mask(data: Dict[str, Any]) -> Dict[str, Any]:
        masked = {}
        for key, value in data.items():
            if _is_sensitive(key):
                masked[key] = '[REDACTED]'
            elif isinstance(value, dict):
                masked[key] = mask(value)
            else:
                masked[key] = value
        return masked

    event = event_dict.pop('event', None)
    event_dict = mask(event_dict)
    if event is not None:
        event_dict['event'] = event
    return event_dict


def configure_logging(config: Optional[BaseConfig] = None) -> None:
    """
    Configure stdlib logging and structlog processors.

    Args:
        config: Package configuration, loaded with get_config() when omitted
    """
    config = config or get_config()

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL),
        format='%(message)s',
        stream=sys.stdout,
        force=True,
    )

    processors = [
        filter_sensitive_data,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if config.LOG_FORMAT == 'json':
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
