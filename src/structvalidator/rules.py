"""
Built-in rule predicates.

Each predicate receives a FieldLevel and returns True when the field satisfies
the rule. Where marshmallow ships a validator for the concern (OneOf, Length,
Range, Regexp, Email, URL) the predicate delegates to it.
"""

import ipaddress
from numbers import Number
from typing import Any, Callable, Dict, NamedTuple

from marshmallow import ValidationError, validate

from .exceptions import RuleDefinitionError

# RFC 952 hostname, without nested quantifiers
HOSTNAME_RFC952_REGEX = r'^(?!.*\.\.)[a-zA-Z][a-zA-Z0-9.\-]*[a-zA-Z0-9]$'

SIZED_TYPES = (str, bytes, list, tuple, dict, set, frozenset)


class Rule(NamedTuple):
    """A registered predicate and whether its tag needs a parameter."""
    predicate: Callable[[Any], bool]
    requires_param: bool = False


def is_zero(value: Any) -> bool:
    """Return True when value is the zero value of its type."""
    if value is None:
        return True
    if isinstance(value, SIZED_TYPES):
        return len(value) == 0
    if isinstance(value, (bool, Number)):
        return not value
    return False


def as_text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _passes(validator: validate.Validator, value: Any) -> bool:
    try:
        validator(value)
    except ValidationError:
        return False
    return True


def _sibling_names(fl) -> list:
    return fl.param.split()


def _numeric_param(fl, integer: bool = False):
    try:
        return int(fl.param) if integer else float(fl.param)
    except ValueError:
        raise RuleDefinitionError(
            f"Rule '{fl.tag}' on field '{fl.field_name}' expects a numeric parameter, "
            f"got {fl.param!r}",
            tag=fl.tag,
        )


def _unsupported(fl) -> RuleDefinitionError:
    return RuleDefinitionError(
        f"Rule '{fl.tag}' cannot be applied to field '{fl.field_name}' "
        f"of type {type(fl.field).__name__}",
        tag=fl.tag,
    )


def has_value(fl) -> bool:
    return not is_zero(fl.field)


def required_with(fl) -> bool:
    """Field must be set when any of the named siblings is set."""
    if any(not is_zero(fl.sibling(name)) for name in _sibling_names(fl)):
        return not is_zero(fl.field)
    return True


def required_without(fl) -> bool:
    """Field must be set when any of the named siblings is not set."""
    if any(is_zero(fl.sibling(name)) for name in _sibling_names(fl)):
        return not is_zero(fl.field)
    return True


def one_of(fl) -> bool:
    return _passes(validate.OneOf(fl.param.split()), as_text(fl.field))


def is_hostname(fl) -> bool:
    if not isinstance(fl.field, str):
        return False
    return _passes(validate.Regexp(HOSTNAME_RFC952_REGEX), fl.field)


def is_tcp4_addr(fl) -> bool:
    """``host:port`` where host is an IPv4 literal and port is numeric."""
    if not isinstance(fl.field, str):
        return False

    host, sep, port = fl.field.rpartition(':')
    if not sep or not (port.isascii() and port.isdigit()) or int(port) > 65535:
        return False
    try:
        ipaddress.IPv4Address(host)
    except ValueError:
        return False
    return True


def _bound(fl, length_kwarg: str, range_kwarg: str) -> bool:
    value = fl.field
    if isinstance(value, SIZED_TYPES):
        return _passes(validate.Length(**{length_kwarg: _numeric_param(fl, integer=True)}), value)
    if isinstance(value, Number) and not isinstance(value, bool):
        if range_kwarg == 'equal':
            return value == _numeric_param(fl)
        return _passes(validate.Range(**{range_kwarg: _numeric_param(fl)}), value)
    raise _unsupported(fl)


def minimum(fl) -> bool:
    return _bound(fl, 'min', 'min')


def maximum(fl) -> bool:
    return _bound(fl, 'max', 'max')


def length(fl) -> bool:
    return _bound(fl, 'equal', 'equal')


def is_email(fl) -> bool:
    return isinstance(fl.field, str) and _passes(validate.Email(), fl.field)


def is_url(fl) -> bool:
    return isinstance(fl.field, str) and _passes(validate.URL(), fl.field)


BUILTIN_RULES: Dict[str, Rule] = {
    'required': Rule(has_value),
    'required_with': Rule(required_with, requires_param=True),
    'required_without': Rule(required_without, requires_param=True),
    'oneof': Rule(one_of, requires_param=True),
    'hostname': Rule(is_hostname),
    'tcp4_addr': Rule(is_tcp4_addr),
    'min': Rule(minimum, requires_param=True),
    'max': Rule(maximum, requires_param=True),
    'len': Rule(length, requires_param=True),
    'email': Rule(is_email),
    'url': Rule(is_url),
}
