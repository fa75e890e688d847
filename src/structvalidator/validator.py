"""
Struct validation with readable, context-specific error messages.

The Validator runs a struct through a rule engine, then resolves every
reported violation to a message. Resolution consults, in order:

1. the override factory registered for the rule's tag,
2. the contextual error a custom rule recorded for the failing field during
   this call,
3. the default factory.

Static overrides win over captured context because they are an explicit,
global message policy; contextual errors cover custom rules that have no
override. All violations of one call are returned together as a single
ValidationErrors.

Example:
    @dataclass
    class Listener:
        proto: str = field(default="", metadata={"validate": "required,oneof=tcp http"})

    validator = new_validator()
    errors = validator.validate(Listener(proto="ftp"))
    if errors:
        print(errors)
"""

from typing import Any, List, Optional

import structlog
from prometheus_client import Counter

from .config.settings import BaseConfig, EnvironmentManager, get_config
from .context import ValidationContext
from .engine import FailedRule, FieldLevel, MarshmallowRuleEngine, RuleEngine
from .exceptions import RuleDefinitionError, ValidationErrors
from .fields import FieldValidation, validate_file_exists, validate_required_when
from .messages import (
    ErrorFactory,
    build_error,
    default_error_messages,
    invalid_value_message,
)

logger = structlog.get_logger(__name__)

validation_counter = Counter(
    'structvalidator_validations_total',
    'Total number of struct validations by outcome',
    ['outcome']
)

rule_failure_counter = Counter(
    'structvalidator_rule_failures_total',
    'Total number of rule failures by tag and message source',
    ['tag', 'source']
)


class Validator:
    """
    Validation orchestrator.

    Registries are configured once at setup and only read during validation;
    everything specific to one call lives in a ValidationContext, so a single
    instance can be shared across threads.
    """

    def __init__(self, engine: Optional[RuleEngine] = None, config: Optional[BaseConfig] = None):
        """
        Initialize the validator with the built-in message set and custom rules.

        Args:
            engine: Rule engine to delegate to; a MarshmallowRuleEngine by default
            config: Package configuration, read from the process environment when omitted
        """
        # Only an explicit config or EnvironmentManager reads a .env file.
        self.config = config or get_config(env_manager=EnvironmentManager(env_file=''))
        self.engine = engine or MarshmallowRuleEngine(tag_key=self.config.TAG_KEY)
        self.metrics_enabled = self.config.METRICS_ENABLED

        self._overrides = default_error_messages()
        self._default_factory: ErrorFactory = invalid_value_message

        self.register_custom_rule('file', validate_file_exists)
        self.register_custom_rule('required_when', validate_required_when)

    def override_error_message(self, tag: str, factory: ErrorFactory) -> None:
        """Override the error message factory for a particular rule tag."""
        self._overrides[tag] = factory
        logger.debug("Error message overridden", tag=tag)

    def default_error_message(self, factory: ErrorFactory) -> None:
        """Set the fallback error message factory for all rule tags."""
        self._default_factory = factory

    def register_custom_rule(self, tag: str, validation: FieldValidation) -> None:
        """
        Register a field validation function that words its own error.

        When the function returns an error it is recorded in the call's
        context under the tag and field, and the engine is told the rule
        failed.
        """
        if not callable(validation):
            raise RuleDefinitionError(f"Validation for rule '{tag}' is not callable", tag=tag)

        def predicate(fl: FieldLevel) -> bool:
            error = validation(fl)
            if error is not None:
                fl.context.record(tag, fl.field_name, error)
                return False
            return True

        self.engine.register_rule(tag, predicate)

    def validate(self, struct: Any) -> Optional[ValidationErrors]:
        """
        Validate a struct against its rules.

        Args:
            struct: Dataclass instance with rule metadata on its fields

        Returns:
            None when every rule passes, otherwise a ValidationErrors with one
            resolved error per violation in engine order

        Raises:
            RuleDefinitionError: If the struct's rule annotations are malformed
        """
        context = ValidationContext(struct)
        failed_rules = self._check(struct, context)

        if not failed_rules:
            self._record_outcome('valid')
            logger.debug("Struct validated", struct=type(struct).__name__)
            return None

        errors = ValidationErrors(self._resolve(rule, context) for rule in failed_rules)
        self._record_outcome('invalid')
        logger.info("Struct validation failed",
                    struct=type(struct).__name__,
                    error_count=len(errors),
                    failed_fields=[rule.field for rule in failed_rules])
        return errors

    def ensure_valid(self, struct: Any) -> None:
        """
        Validate a struct and raise instead of returning the errors.

        Raises:
            ValidationErrors: If any rule is violated
        """
        errors = self.validate(struct)
        if errors is not None:
            raise errors

    def _check(self, struct: Any, context: ValidationContext) -> List[FailedRule]:
        return self.engine.check(struct, context)

    def _resolve(self, rule: FailedRule, context: ValidationContext) -> Exception:
        factory = self._overrides.get(rule.tag)
        if factory is not None:
            self._record_failure(rule.tag, 'override')
            return build_error(factory, rule)

        contextual = context.lookup(rule.tag, rule.field)
        if contextual is not None:
            self._record_failure(rule.tag, 'context')
            return contextual

        self._record_failure(rule.tag, 'default')
        return build_error(self._default_factory, rule)

    def _record_outcome(self, outcome: str) -> None:
        if self.metrics_enabled:
            validation_counter.labels(outcome=outcome).inc()

    def _record_failure(self, tag: str, source: str) -> None:
        if self.metrics_enabled:
            rule_failure_counter.labels(tag=tag, source=source).inc()


def new_validator(config: Optional[BaseConfig] = None) -> Validator:
    """Create a Validator with the built-in messages and custom rules."""
    return Validator(config=config)
