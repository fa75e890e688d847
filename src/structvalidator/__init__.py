"""
structvalidator - readable error messages for dataclass validation.

Decorates a tag-driven rule engine with a policy that turns raw rule failures
into one human-readable message per violated rule.
"""

from .context import ValidationContext
from .engine import FailedRule, FieldLevel, MarshmallowRuleEngine, RuleEngine, parse_rules
from .exceptions import (
    BaseValidatorError,
    ConfigurationError,
    ErrorCategory,
    ErrorSeverity,
    FieldValidationError,
    RuleDefinitionError,
    ValidationErrors,
)
from .fields import FieldValidation, validate_file_exists, validate_required_when
from .messages import DEFAULT_ERROR_MESSAGES, ErrorFactory, invalid_value_message
from .validator import Validator, new_validator

__version__ = '1.0.0'

__all__ = [
    'Validator',
    'new_validator',
    'ValidationContext',
    'FailedRule',
    'FieldLevel',
    'MarshmallowRuleEngine',
    'RuleEngine',
    'parse_rules',
    'BaseValidatorError',
    'ConfigurationError',
    'ErrorCategory',
    'ErrorSeverity',
    'FieldValidationError',
    'RuleDefinitionError',
    'ValidationErrors',
    'FieldValidation',
    'validate_file_exists',
    'validate_required_when',
    'DEFAULT_ERROR_MESSAGES',
    'ErrorFactory',
    'invalid_value_message',
]
