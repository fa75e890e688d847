"""
Per-call validation context.

A ValidationContext is created for every Validator.validate() call and passed
explicitly through the rule engine to each custom rule invocation and then to
message resolution. Contextual errors recorded by custom rules therefore never
leak between calls, and a single Validator can be shared across threads.
"""

from typing import Any, Dict, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


class ValidationContext:
    """
    Contextual errors recorded by custom rules during one validation call.

    Errors are keyed by ``(tag, field)`` so two fields failing the same custom
    rule keep their own messages.

    Attributes:
        struct: The struct instance being validated
    """

    def __init__(self, struct: Any = None):
        self.struct = struct
        self._tag_errors: Dict[Tuple[str, str], Exception] = {}

    def record(self, tag: str, field: str, error: Exception) -> None:
        """Record the contextual error a custom rule produced for a field."""
        self._tag_errors[(tag, field)] = error
        logger.debug("Contextual error recorded", tag=tag, field=field)

    def lookup(self, tag: str, field: str) -> Optional[Exception]:
        return self._tag_errors.get((tag, field))

    def clear(self) -> None:
        self._tag_errors.clear()

    def __len__(self) -> int:
        return len(self._tag_errors)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._tag_errors
