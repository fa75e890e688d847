"""
Exception hierarchy for struct validation.

Provides the base error class shared by every failure this package reports,
the per-field error produced by message factories, and the aggregated error
returned by a validation call.

Classes:
    BaseValidatorError: Base class carrying code, category, severity and details
    FieldValidationError: One resolved, human-readable violation message
    ValidationErrors: Ordered collection of FieldValidationError for one call
    RuleDefinitionError: Malformed or unknown rule annotation (programmer error)
    ConfigurationError: Invalid package configuration
"""

from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional

import structlog

logger = structlog.get_logger(__name__)


class ErrorCategory(Enum):
    """Error categories for hierarchical classification."""

    VALIDATION = "validation"
    DEFINITION = "definition"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels for logging."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BaseValidatorError(Exception):
    """
    Base exception class for all validation package errors.

    Attributes:
        message: Human-readable error message
        code: Package-specific error code
        category: Error category for classification
        severity: Error severity level
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.category = category
        self.severity = severity
        self.details = details or {}

        self._log_error()

    def _log_error(self) -> None:
        """Log error with structured logging."""
        log_data = {
            'error_code': self.code,
            'error_category': self.category.value,
            'error_severity': self.severity.value,
            'details': self.details,
        }

        if self.severity in [ErrorSeverity.HIGH, ErrorSeverity.CRITICAL]:
            logger.error(self.message, **log_data)
        elif self.severity == ErrorSeverity.MEDIUM:
            logger.warning(self.message, **log_data)
        else:
            logger.debug(self.message, **log_data)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format for JSON output."""
        return {
            'message': self.message,
            'code': self.code,
            'category': self.category.value,
            'severity': self.severity.value,
            'details': self.details,
        }


class FieldValidationError(BaseValidatorError):
    """A single violated rule rendered as a readable message."""

    def __init__(
        self,
        message: str,
        tag: Optional[str] = None,
        field: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop('details', None) or {}
        if tag:
            details['tag'] = tag
        if field:
            details['field'] = field
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            details=details,
            **kwargs
        )
        self.tag = tag
        self.field = field


class ValidationErrors(BaseValidatorError):
    """
    Aggregated result of one failed validation call.

    Holds one error per violated rule, in the order the rule engine reported
    them. The text form joins every message with a newline so it can be shown
    directly in a CLI or a log line.
    """

    def __init__(self, errors: Iterable[Exception]):
        self.errors: List[Exception] = list(errors)
        super().__init__(
            message="\n".join(str(e) for e in self.errors),
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            details={'error_count': len(self.errors)},
        )

    @property
    def messages(self) -> List[str]:
        return [str(e) for e in self.errors]

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[Exception]:
        return iter(self.errors)

    def __getitem__(self, index: int) -> Exception:
        return self.errors[index]

    def __bool__(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['errors'] = [
            e.to_dict() if isinstance(e, BaseValidatorError) else {'message': str(e)}
            for e in self.errors
        ]
        return result


class RuleDefinitionError(BaseValidatorError):
    """
    Raised for malformed rule annotations.

    Unknown rule tags, missing rule parameters and references to fields that
    do not exist are setup-time defects. They always propagate to the caller
    and are never turned into violation messages.
    """

    def __init__(self, message: str, tag: Optional[str] = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if tag:
            details['tag'] = tag
        super().__init__(
            message=message,
            category=ErrorCategory.DEFINITION,
            severity=ErrorSeverity.HIGH,
            details=details,
            **kwargs
        )
        self.tag = tag


class ConfigurationError(BaseValidatorError):
    """Custom exception for configuration validation errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            **kwargs
        )


__all__ = [
    'BaseValidatorError',
    'FieldValidationError',
    'ValidationErrors',
    'RuleDefinitionError',
    'ConfigurationError',
    'ErrorCategory',
    'ErrorSeverity',
]
