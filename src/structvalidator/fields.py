"""
Custom field validation functions.

A field validation function receives a FieldLevel and returns None when the
field is valid, or a fully formed error describing the violation. Unlike a
plain rule predicate it can word its message using information only known
while validating, such as a sibling field's value.
"""

import os
from typing import Callable, Optional

from .engine import FieldLevel
from .exceptions import FieldValidationError, RuleDefinitionError
from .rules import as_text, is_zero

FieldValidation = Callable[[FieldLevel], Optional[Exception]]


def validate_file_exists(fl: FieldLevel) -> Optional[Exception]:
    """Valid when a filesystem entry exists at the path held by the field."""
    path = as_text(fl.field)
    try:
        os.stat(path)
    except OSError:
        # permission and other stat errors read the same as a missing file
        return FieldValidationError(f"Could not find file {path}.", tag=fl.tag, field=fl.field_name)
    return None


def validate_required_when(fl: FieldLevel) -> Optional[Exception]:
    """
    Conditional requirement on a sibling field, parameter ``"<sibling> <value>"``.

    The field is reported when it holds a non-zero value while the sibling is
    not set to the expected value. A zero field is always accepted.
    """
    params = fl.param.split()
    if len(params) != 2:
        raise RuleDefinitionError(
            f"Rule '{fl.tag}' on field '{fl.field_name}' expects '<field> <value>', "
            f"got {fl.param!r}",
            tag=fl.tag,
        )

    sibling_name, expected = params
    sibling = fl.sibling(sibling_name)

    if not is_zero(fl.field) and as_text(sibling) != expected:
        return FieldValidationError(
            f"{fl.field_name.lower()} is required when {sibling_name.lower()} is set to {expected}",
            tag=fl.tag,
            field=fl.field_name,
        )
    return None
