"""
Validator orchestration tests.

Covers message resolution order, registration of overrides and custom rules,
aggregation of every violation of one call, and isolation between calls.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from prometheus_client import REGISTRY

from structvalidator import (
    FieldValidationError,
    RuleDefinitionError,
    ValidationErrors,
    Validator,
    new_validator,
)
from tests.fixtures.structs import (
    CertificateConfig,
    KeyPairConfig,
    ListenerConfig,
    PortConfig,
    ServerConfig,
)


class TestValidateScenarios:
    """End-to-end validation of the listener struct."""

    def test_required_when_reports_sibling_condition(self, validator):
        """tcp listener with a host set names the expected proto."""
        errors = validator.validate(ListenerConfig(proto="tcp", host="asd"))

        assert str(errors) == "host is required when proto is set to http"

    def test_required_when_satisfied(self, validator):
        assert validator.validate(ListenerConfig(proto="http", host="asd")) is None

    def test_oneof_message(self, validator):
        errors = validator.validate(ListenerConfig(proto="ftp"))

        assert "ftp is invalid. Valid values are tcp http." in str(errors)

    def test_every_violation_reported_in_field_order(self, validator):
        errors = validator.validate(ListenerConfig(proto="ftp"))

        assert str(errors).split("\n") == [
            "ftp is invalid. Valid values are tcp http.",
            "host is required when addr is not set",
            "addr is required when host is not set",
        ]
        assert len(errors) == 3

    def test_missing_file(self, validator):
        errors = validator.validate(CertificateConfig(cert_file="/no/such/file"))

        assert str(errors) == "Could not find file /no/such/file."

    def test_existing_file(self, validator, existing_file):
        assert validator.validate(CertificateConfig(cert_file=existing_file)) is None

    def test_valid_struct_with_all_builtin_rules(self, validator):
        assert validator.validate(ServerConfig()) is None

    def test_line_count_matches_violations(self, validator):
        server = ServerConfig(name="ab", hostname="-bad-", workers=0)
        errors = validator.validate(server)

        assert len(str(errors).split("\n")) == 3
        assert errors.messages == [
            "ab is an invalid name",
            "-bad- is not a valid hostname",
            "0 is an invalid workers",
        ]


class TestResolutionOrder:
    """Override registry, then call context, then default factory."""

    def test_override_changes_only_its_tag(self, validator):
        validator.override_error_message('oneof', lambda rule: f"unsupported {rule.field}: {rule.value}")

        errors = validator.validate(ListenerConfig(proto="ftp"))

        assert errors.messages[0] == "unsupported proto: ftp"
        assert errors.messages[1] == "host is required when addr is not set"

    def test_later_override_replaces_earlier(self, validator):
        validator.override_error_message('oneof', lambda rule: "first")
        validator.override_error_message('oneof', lambda rule: "second")

        errors = validator.validate(ListenerConfig(proto="ftp"))

        assert errors.messages[0] == "second"

    def test_override_supersedes_contextual_error(self, validator):
        validator.override_error_message(
            'required_when',
            lambda rule: FieldValidationError(f"{rule.field} conflicts with {rule.param}"),
        )

        errors = validator.validate(ListenerConfig(proto="tcp", host="asd"))

        assert str(errors) == "host conflicts with proto http"

    def test_contextual_error_used_without_override(self, validator):
        errors = validator.validate(ListenerConfig(proto="tcp", host="asd"))

        assert isinstance(errors[0], FieldValidationError)
        assert errors[0].tag == 'required_when'
        assert errors[0].field == 'host'

    def test_default_factory_replaced(self, validator):
        validator.default_error_message(lambda rule: f"bad {rule.field} ({rule.tag}={rule.param})")

        errors = validator.validate(ServerConfig(workers=0))

        assert str(errors) == "bad workers (min=1)"

    def test_default_factory_used_when_custom_rule_records_nothing(self, validator):
        validator.engine.register_rule('even', lambda fl: fl.field % 2 == 0)

        errors = validator.validate(PortConfig(port=7))

        assert str(errors) == "7 is an invalid port"

    def test_factory_may_return_plain_string(self, validator):
        validator.override_error_message('required', lambda rule: f"{rule.field} missing")

        errors = validator.validate(ServerConfig(name=""))

        assert isinstance(errors[0], FieldValidationError)
        assert str(errors) == "name missing"


class TestCustomRules:
    """Registration of field validation functions."""

    def test_register_custom_rule(self, validator):
        def even_port(fl):
            if fl.field % 2:
                return FieldValidationError(f"port {fl.field} must be even")
            return None

        validator.register_custom_rule('even', even_port)

        assert validator.validate(PortConfig(port=8)) is None
        assert str(validator.validate(PortConfig(port=7))) == "port 7 must be even"

    def test_same_tag_on_two_fields_keeps_both_messages(self, validator):
        errors = validator.validate(KeyPairConfig(cert_file="/no/cert", key_file="/no/key"))

        assert errors.messages == [
            "Could not find file /no/cert.",
            "Could not find file /no/key.",
        ]

    def test_non_callable_rejected(self, validator):
        with pytest.raises(RuleDefinitionError):
            validator.register_custom_rule('broken', "not a function")

    def test_errors_raised_by_custom_rule_propagate(self, validator):
        def explode(fl):
            raise RuntimeError("rule bug")

        validator.register_custom_rule('even', explode)

        with pytest.raises(RuntimeError, match="rule bug"):
            validator.validate(PortConfig(port=2))


class TestCallIsolation:
    """No state carries over between validation calls."""

    def test_repeated_valid_calls(self, validator):
        listener = ListenerConfig(proto="http", host="asd")

        assert validator.validate(listener) is None
        assert validator.validate(listener) is None

    def test_valid_call_after_failed_call(self, validator):
        assert validator.validate(ListenerConfig(proto="tcp", host="asd")) is not None
        assert validator.validate(ListenerConfig(proto="http", host="asd")) is None

    def test_concurrent_calls_keep_their_own_messages(self, validator):
        def run(index):
            path = f"/no/such/file-{index}"
            return path, validator.validate(CertificateConfig(cert_file=path))

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(run, range(200)))

        for path, errors in results:
            assert str(errors) == f"Could not find file {path}."


class TestEnsureValid:

    def test_raises_aggregated_error(self, validator):
        with pytest.raises(ValidationErrors) as exc_info:
            validator.ensure_valid(ListenerConfig(proto="ftp"))

        assert len(exc_info.value) == 3

    def test_passes_silently(self, validator):
        validator.ensure_valid(ListenerConfig(proto="http", host="asd"))

    def test_annotation_errors_are_not_violations(self, validator):
        with pytest.raises(RuleDefinitionError):
            validator.validate(PortConfig(port=1))


class TestNewValidator:

    def test_builtin_rules_registered(self, testing_config):
        validator = new_validator(testing_config)

        assert validator.config is testing_config
        assert str(validator.validate(CertificateConfig(cert_file="/no/such/file"))) == \
            "Could not find file /no/such/file."


class TestMetrics:

    @staticmethod
    def _sample(name, labels):
        return REGISTRY.get_sample_value(name, labels) or 0.0

    def test_counters_updated_when_enabled(self, testing_config):
        testing_config.METRICS_ENABLED = True
        validator = Validator(config=testing_config)
        before = self._sample('structvalidator_validations_total', {'outcome': 'invalid'})
        before_context = self._sample(
            'structvalidator_rule_failures_total', {'tag': 'file', 'source': 'context'}
        )

        validator.validate(CertificateConfig(cert_file="/no/such/file"))

        assert self._sample('structvalidator_validations_total', {'outcome': 'invalid'}) == before + 1
        assert self._sample(
            'structvalidator_rule_failures_total', {'tag': 'file', 'source': 'context'}
        ) == before_context + 1

    def test_counters_untouched_when_disabled(self, validator):
        before = self._sample('structvalidator_validations_total', {'outcome': 'valid'})

        validator.validate(ListenerConfig(proto="http", host="asd"))

        assert self._sample('structvalidator_validations_total', {'outcome': 'valid'}) == before
