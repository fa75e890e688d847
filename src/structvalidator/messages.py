"""
Error message factories.

A factory turns a FailedRule into the error the caller sees. The Validator
keeps two registries: factories overriding the message of a specific rule tag,
and one default factory used when nothing more specific applies.
"""

from typing import Callable, Dict, Union

from .engine import FailedRule
from .exceptions import FieldValidationError
from .rules import as_text

ErrorFactory = Callable[[FailedRule], Union[Exception, str]]


def _error(rule: FailedRule, message: str) -> FieldValidationError:
    return FieldValidationError(message, tag=rule.tag, field=rule.field)


def one_of_message(rule: FailedRule) -> FieldValidationError:
    return _error(rule, f"{as_text(rule.value)} is invalid. Valid values are {rule.param}.")


def tcp4_addr_message(rule: FailedRule) -> FieldValidationError:
    return _error(rule, f"{as_text(rule.value)} is not a valid tcp address")


def hostname_message(rule: FailedRule) -> FieldValidationError:
    return _error(rule, f"{as_text(rule.value)} is not a valid hostname")


def required_with_message(rule: FailedRule) -> FieldValidationError:
    return _error(rule, f"{rule.field.lower()} is required with {rule.param.lower()}")


def required_without_message(rule: FailedRule) -> FieldValidationError:
    return _error(rule, f"{rule.field.lower()} is required when {rule.param.lower()} is not set")


def required_message(rule: FailedRule) -> FieldValidationError:
    return _error(rule, f"{rule.field.lower()} is required.")


def invalid_value_message(rule: FailedRule) -> FieldValidationError:
    """Fallback for rules with neither an override nor a contextual error."""
    return _error(rule, f"{as_text(rule.value)} is an invalid {rule.field.lower()}")


DEFAULT_ERROR_MESSAGES: Dict[str, ErrorFactory] = {
    'oneof': one_of_message,
    'tcp4_addr': tcp4_addr_message,
    'hostname': hostname_message,
    'required_with': required_with_message,
    'required_without': required_without_message,
    'required': required_message,
}


def default_error_messages() -> Dict[str, ErrorFactory]:
    """Return a fresh copy of the built-in override registry."""
    return dict(DEFAULT_ERROR_MESSAGES)


def build_error(factory: ErrorFactory, rule: FailedRule) -> Exception:
    """Apply a factory, wrapping plain string results in FieldValidationError."""
    result = factory(rule)
    if isinstance(result, Exception):
        return result
    return _error(rule, str(result))
