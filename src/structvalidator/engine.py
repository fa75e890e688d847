"""
Rule evaluation engine backed by marshmallow.

Structs are dataclasses whose fields carry a rule string in their metadata::

    @dataclass
    class Listener:
        proto: str = field(default="", metadata={"validate": "required,oneof=tcp http"})

MarshmallowRuleEngine generates one marshmallow Schema per dataclass type,
dumps the struct through it and evaluates the rule strings in a
``@validates_schema`` hook. Every violation is reported as a FailedRule; the
engine never formats messages, that is the Validator's job.

Rule strings are comma separated; the first ``=`` in a segment separates the
rule tag from its parameter (``oneof=tcp http``). Rules on a field run in the
declared order and evaluation of that field stops at the first failure.
"""

import dataclasses
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Protocol, Tuple, Type

import structlog
from marshmallow import Schema, ValidationError, fields, validates_schema

from .context import ValidationContext
from .exceptions import RuleDefinitionError
from .rules import BUILTIN_RULES, Rule

logger = structlog.get_logger(__name__)

RULES_METADATA_KEY = 'structvalidator.rules'


class RuleSpec(NamedTuple):
    """One parsed rule of a field's rule string."""
    tag: str
    param: str


@dataclass(frozen=True)
class FailedRule:
    """
    A single rule violation reported by the engine.

    Attributes:
        tag: Rule identifier, e.g. ``required`` or ``oneof``
        field: Name of the struct field that failed
        value: The field's value at validation time
        param: The rule's declared parameter, empty when it has none
        namespace: ``StructName.field`` for log correlation
    """
    tag: str
    field: str
    value: Any
    param: str = ''
    namespace: str = ''


@dataclass(frozen=True)
class FieldLevel:
    """
    Field-level context handed to every rule predicate.

    Attributes:
        field: The value of the field under validation
        parent: The struct instance holding the field
        param: The rule's declared parameter string
        field_name: Name of the field under validation
        tag: Tag the rule was invoked under
        context: Per-call validation context
    """
    field: Any
    parent: Any
    param: str
    field_name: str
    tag: str
    context: ValidationContext

    def sibling(self, name: str) -> Any:
        """
        Return the value of another field of the parent struct.

        Raises:
            RuleDefinitionError: If the parent has no field with that name
        """
        if not _has_field(self.parent, name):
            raise RuleDefinitionError(
                f"Rule '{self.tag}' on field '{self.field_name}' references "
                f"unknown field '{name}'",
                tag=self.tag,
            )
        return getattr(self.parent, name)


Predicate = Callable[[FieldLevel], bool]


def _has_field(struct: Any, name: str) -> bool:
    if dataclasses.is_dataclass(struct):
        return any(f.name == name for f in dataclasses.fields(struct))
    return hasattr(struct, name)


def parse_rules(rule_string: Optional[str]) -> Tuple[RuleSpec, ...]:
    """
    Parse a rule string into an ordered tuple of RuleSpec.

    Args:
        rule_string: e.g. ``"required_without=addr,required_when=proto http"``

    Returns:
        Parsed rules in declared order; empty for a blank string

    Raises:
        RuleDefinitionError: On empty segments or empty tag names
    """
    if rule_string is None or not rule_string.strip():
        return ()

    specs = []
    for segment in rule_string.split(','):
        tag, _, param = segment.partition('=')
        tag = tag.strip()
        if not tag:
            raise RuleDefinitionError(
                f"Malformed rule string {rule_string!r}: empty rule in segment {segment!r}"
            )
        specs.append(RuleSpec(tag, param.strip()))
    return tuple(specs)


class RuleEngine(Protocol):
    """The capabilities the Validator needs from a rule evaluation engine."""

    def register_rule(self, tag: str, predicate: Predicate) -> None:
        ...

    def check(self, struct: Any, context: ValidationContext) -> List[FailedRule]:
        ...


class StructSchema(Schema):
    """
    Base schema for generated struct schemas.

    Field rules are evaluated in a schema-level hook so predicates can see the
    whole struct. Violations are raised as one marshmallow ValidationError whose
    messages map each failing field to its FailedRule.
    """

    field_order: Tuple[str, ...] = ()

    def __init__(self, *args, **kwargs):
        self.rules: Dict[str, Rule] = kwargs.pop('rules', {})
        context = kwargs.pop('validation_context', None)
        self.validation_context: ValidationContext = (
            context if context is not None else ValidationContext()
        )
        super().__init__(*args, **kwargs)

    @validates_schema
    def check_field_rules(self, data, **kwargs):
        struct = self.validation_context.struct
        struct_name = type(struct).__name__
        failures = {}

        for key in self.field_order:
            field_obj = self.fields[key]
            name = field_obj.attribute
            value = data.get(name)
            for spec in field_obj.metadata.get(RULES_METADATA_KEY, ()):
                level = FieldLevel(
                    field=value,
                    parent=struct,
                    param=spec.param,
                    field_name=name,
                    tag=spec.tag,
                    context=self.validation_context,
                )
                if not self.rules[spec.tag].predicate(level):
                    failures[name] = [FailedRule(
                        tag=spec.tag,
                        field=name,
                        value=value,
                        param=spec.param,
                        namespace=f"{struct_name}.{name}",
                    )]
                    break

        if failures:
            raise ValidationError(failures)


class MarshmallowRuleEngine:
    """
    RuleEngine implementation generating marshmallow schemas from dataclasses.

    Example:
        engine = MarshmallowRuleEngine()
        engine.register_rule('even', lambda fl: fl.field % 2 == 0)
        failed = engine.check(struct, ValidationContext(struct))
    """

    def __init__(self, tag_key: str = 'validate'):
        self.tag_key = tag_key
        self._rules: Dict[str, Rule] = dict(BUILTIN_RULES)
        self._schema_cache: Dict[Type, Type[StructSchema]] = {}
        self._lock = threading.Lock()

    @property
    def rule_tags(self) -> List[str]:
        return sorted(self._rules)

    def register_rule(self, tag: str, predicate: Predicate, requires_param: bool = False) -> None:
        """
        Register a boolean predicate under a rule tag.

        A later registration for the same tag, including a built-in one,
        replaces the earlier predicate.
        """
        if not tag or not tag.strip():
            raise RuleDefinitionError("Rule tag cannot be empty")
        if not callable(predicate):
            raise RuleDefinitionError(f"Predicate for rule '{tag}' is not callable", tag=tag)

        self._rules[tag] = Rule(predicate, requires_param)
        logger.debug("Rule registered", tag=tag, requires_param=requires_param)

    def schema_for(self, struct_type: Type) -> Type[StructSchema]:
        """Return the cached generated schema class for a dataclass type."""
        schema_class = self._schema_cache.get(struct_type)
        if schema_class is not None:
            return schema_class

        if not (dataclasses.is_dataclass(struct_type) and isinstance(struct_type, type)):
            raise RuleDefinitionError(
                f"Cannot validate {struct_type!r}: only dataclass instances are supported"
            )

        declared = {}
        for index, dc_field in enumerate(dataclasses.fields(struct_type)):
            rule_string = dc_field.metadata.get(self.tag_key, '')
            declared[f"field_{index}"] = fields.Raw(
                allow_none=True,
                attribute=dc_field.name,
                data_key=dc_field.name,
                metadata={
                    self.tag_key: rule_string,
                    RULES_METADATA_KEY: parse_rules(rule_string),
                },
            )

        schema_class = StructSchema.from_dict(declared, name=f"{struct_type.__name__}Schema")
        schema_class.field_order = tuple(declared)
        with self._lock:
            self._schema_cache.setdefault(struct_type, schema_class)

        logger.debug("Struct schema generated",
                     struct=struct_type.__name__,
                     field_count=len(declared))
        return self._schema_cache[struct_type]

    def check(self, struct: Any, context: ValidationContext) -> List[FailedRule]:
        """
        Evaluate every rule of a struct.

        Args:
            struct: Dataclass instance to check
            context: Per-call context handed to every predicate

        Returns:
            FailedRule descriptors in field declaration order

        Raises:
            RuleDefinitionError: On unknown rules or missing required parameters
        """
        schema_class = self.schema_for(type(struct))
        schema = schema_class(rules=dict(self._rules), validation_context=context)
        self._check_definitions(schema)

        errors = schema.validate(schema.dump(struct))

        return [
            failed
            for field_errors in errors.values()
            for failed in field_errors
            if isinstance(failed, FailedRule)
        ]

    def _check_definitions(self, schema: StructSchema) -> None:
        for field_obj in schema.fields.values():
            for spec in field_obj.metadata.get(RULES_METADATA_KEY, ()):
                rule = schema.rules.get(spec.tag)
                if rule is None:
                    raise RuleDefinitionError(
                        f"Undefined validation rule '{spec.tag}' on field '{field_obj.attribute}'",
                        tag=spec.tag,
                    )
                if rule.requires_param and not spec.param:
                    raise RuleDefinitionError(
                        f"Rule '{spec.tag}' on field '{field_obj.attribute}' requires a parameter",
                        tag=spec.tag,
                    )
